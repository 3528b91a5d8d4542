"""
Billing module - payment provider event intake and reconciliation.

This module handles:
- Webhook verification and event routing
- Entitlement resolution from provider payloads
- Reconciliation of provider events into license records
- The payment provider gateway (Stripe)
"""
