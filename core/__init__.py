"""
Core module for shared domain infrastructure.

This module contains:
- Domain events, exceptions and value objects
- The in-process event bus and its handlers
- Observability middleware and metrics
- Health checks and management commands
"""
