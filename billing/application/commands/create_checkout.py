"""
CreateCheckoutCommand.

Command to open a hosted checkout page for a catalog product.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CreateCheckoutCommand:
    """Command to start a purchase."""

    user_id: str
    product_id: str
    customer_email: Optional[str] = None
