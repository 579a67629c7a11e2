"""Read model of the approval gate.

``build_projection`` is a pure function of the gate's inputs: no I/O, no
exceptions for malformed data. Projections are rebuilt on every read and
never stored.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from .ledger import normalize_ledger, restriction_allows
from .states import Actor, GateRule, Status, normalize_actors


@dataclass(frozen=True)
class Projection:
    """What a client renders for one actor looking at one item."""

    item_id: Optional[str]
    item_key: Optional[str]
    status: str
    approvers: List[Actor]
    vote_count: int
    total_eligible: int
    has_actor_voted: bool
    can_act: bool
    approval_given_by: Optional[Any] = None
    approval_date: Optional[Any] = None
    message: Optional[str] = None

    def with_message(self, message: Optional[str]) -> "Projection":
        return replace(self, message=message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "item_id": self.item_id,
            "item_key": self.item_key,
            "status": self.status,
            "approvers": [a.to_dict() for a in self.approvers],
            "vote_count": self.vote_count,
            "total_eligible": self.total_eligible,
            "has_actor_voted": self.has_actor_voted,
            "can_act": self.can_act,
            "approval_given_by": self.approval_given_by,
            "approval_date": self.approval_date,
            "message": self.message,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Projection":
        return cls(
            item_id=data.get("item_id"),
            item_key=data.get("item_key"),
            status=data.get("status") or Status.of(None).name,
            approvers=normalize_actors(data.get("approvers")),
            vote_count=int(data.get("vote_count") or 0),
            total_eligible=int(data.get("total_eligible") or 0),
            has_actor_voted=bool(data.get("has_actor_voted")),
            can_act=bool(data.get("can_act")),
            approval_given_by=data.get("approval_given_by"),
            approval_date=data.get("approval_date"),
            message=data.get("message"),
        )


def can_act(
    rule: GateRule,
    status: Status,
    approvers: Iterable[Actor],
    actor: Optional[Actor],
    restriction: Iterable[Actor] = (),
) -> bool:
    """Whether ``actor`` may approve an item in ``status`` right now."""
    if actor is None or not rule.is_reviewable(status):
        return False
    approver_ids = {a.account_id for a in approvers}
    if actor.account_id not in approver_ids:
        return False
    return restriction_allows(restriction, actor)


def build_projection(
    rule: GateRule,
    status: Any,
    approvers: Any,
    ledger: Any,
    actor: Optional[Actor],
    restriction: Any = None,
    *,
    item_id: Optional[str] = None,
    item_key: Optional[str] = None,
    annotations: Optional[Dict[str, Any]] = None,
) -> Projection:
    """Derive the projection for one actor.

    Approval annotations left over from a previous cycle are hidden while the
    item is back under review, so a reset that has cleared the ledger but
    not yet the provider fields never shows a half-cleared gate.
    """
    status = Status.of(status)
    approver_list = normalize_actors(approvers)
    votes = normalize_ledger(ledger)
    allowed = normalize_actors(restriction) if restriction else []

    approver_ids = {a.account_id for a in approver_list}
    eligible_votes = [v for v in votes if v in approver_ids]

    annotations = annotations or {}
    if rule.is_reviewable(status):
        given_by, approval_date = None, None
    else:
        given_by = annotations.get("approval_given_by")
        approval_date = annotations.get("approval_date")

    return Projection(
        item_id=item_id,
        item_key=item_key,
        status=status.name,
        approvers=approver_list,
        vote_count=len(eligible_votes),
        total_eligible=len(approver_list),
        has_actor_voted=actor is not None and actor.account_id in votes,
        can_act=can_act(rule, status, approver_list, actor, allowed),
        approval_given_by=given_by,
        approval_date=approval_date,
    )
