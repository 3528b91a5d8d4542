"""
Reconciliation DTOs.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from licenses.domain.license import License


class ReconciliationAction(Enum):
    """What reconciling one event did to the license store."""

    CREATED = "created"
    UPGRADED = "upgraded"
    REACTIVATED = "reactivated"
    UPDATED = "updated"
    EXPIRED = "expired"
    NOOP = "noop"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ReconciliationResult:
    """Outcome of reconciling one provider event."""

    action: ReconciliationAction
    license: Optional[License] = None

    @classmethod
    def noop(cls) -> "ReconciliationResult":
        return cls(action=ReconciliationAction.NOOP)
