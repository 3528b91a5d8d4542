"""
Licenses module - License records and entitlement state.

This module handles:
- License entity and domain logic
- Active license selection and entitlement state derivation
- Free trials and subscription cancellation
- License persistence and per-user serialization
"""
