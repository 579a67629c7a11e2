"""Gate statuses, actors, and the review cycle.

The status vocabulary belongs to the source-of-truth provider and may grow
without the gate knowing, so statuses are opaque names compared by equality.
Only two of them are distinguished by the gate:

    ┌────────────────────┐  cast_vote (preconditions met)  ┌───────────────┐
    │  REQUIRED_STATUS   │ ───────────────────────────────►│ TARGET_STATUS │
    │ (Ready for Review) │◄─────────────────────────────── │  (Approved)   │
    └────────────────────┘        external re-open         └───────────────┘

Re-entering REQUIRED_STATUS makes the item eligible for a ledger reset.
Every other status is inert: nobody can act on it.
"""

from typing import Iterable, NamedTuple, Optional

from reviewgate.core.models import UNKNOWN_STATUS, Actor, Status, normalize_actors

__all__ = ["UNKNOWN_STATUS", "Actor", "GateRule", "Status", "normalize_actors"]


class GateRule(NamedTuple):
    """The two statuses the gate distinguishes."""

    required_status: Status
    target_status: Status

    @classmethod
    def from_names(cls, required: str, target: str) -> "GateRule":
        return cls(Status(required), Status(target))

    def is_reviewable(self, status: Status) -> bool:
        """Only items in the required status accept votes."""
        return status == self.required_status

    def is_target(self, status: Status) -> bool:
        return status == self.target_status

    def find_destination(self, destinations: Iterable[Status]) -> Optional[Status]:
        """Pick the destination matching the target status, case-insensitively."""
        for destination in destinations:
            if self.target_status.matches(destination):
                return destination
        return None
