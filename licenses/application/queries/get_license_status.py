"""
GetLicenseStatusQuery.

Query for the derived entitlement state of a user.
"""
from dataclasses import dataclass


@dataclass
class GetLicenseStatusQuery:
    """Query to get the entitlement state of a user."""

    user_id: str
