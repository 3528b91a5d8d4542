"""
CancelLicenseCommand.

Command to cancel a user's subscription at the end of its current period.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class CancelLicenseCommand:
    """Command to cancel the license a user currently holds."""

    user_id: str
    reason: Optional[str] = None
