"""
StartTrialCommand.

Command to start a free trial for a user.
"""

from dataclasses import dataclass


@dataclass
class StartTrialCommand:
    """Command to start a free trial."""

    user_id: str
