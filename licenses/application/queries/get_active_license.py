"""
GetActiveLicenseQuery.

Query for the license currently granting a user access.
"""
from dataclasses import dataclass


@dataclass
class GetActiveLicenseQuery:
    """Query to get the active license of a user."""

    user_id: str
