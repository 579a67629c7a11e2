"""Approval gate engine.

Decides whether an approval is legal, records votes, and asks the provider
to move the item forward. The engine holds no mutable state between calls:
every operation re-reads the item from the provider and the ledger from the
item store, so any number of sessions can call it concurrently.
"""

from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from reviewgate.core.errors import (
    AlreadyTransitionedError,
    GateError,
    InvalidStateError,
    NoTransitionError,
    NotAuthorizedError,
    RateLimitError,
    UpstreamError,
    ValidationError,
)
from reviewgate.core.gate_config import AnnotationFields, GateConfig
from reviewgate.core.logger import get_logger
from reviewgate.providers.base import ItemSnapshot, SourceOfTruthProvider
from reviewgate.store.base import ItemStore
from .ledger import ParticipantRestriction, VoteLedger, restriction_allows
from .projection import Projection, build_projection
from .states import Actor, GateRule, Status

logger = get_logger("engine")


def require_item_ref(item_ref: Optional[str]) -> str:
    """Validate the item reference a caller passed in."""
    if not item_ref or not str(item_ref).strip():
        raise ValidationError("Missing item key or id")
    return str(item_ref).strip()


class ApprovalGateEngine:
    """
    Approval gate for one provider view and one item store.

    Handles:
    - Building the read model for the acting user
    - Casting approval votes (transition + annotations + ledger)
    - Resetting the ledger when an item re-enters review
    """

    def __init__(
        self,
        provider: SourceOfTruthProvider,
        store: ItemStore,
        config: GateConfig,
        *,
        key_prefix: str = "reviewgate",
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the engine.

        Args:
            provider: Source-of-truth provider bound to the acting user
            store: Item store holding ledgers and participant lists
            config: Gate configuration (statuses and annotation fields)
            key_prefix: Namespace for item store keys
            clock: Returns the current time; defaults to UTC now
        """
        self.provider = provider
        self.store = store
        self.config = config
        self.rule = GateRule.from_names(config.required_status, config.target_status)
        self.ledger = VoteLedger(store, key_prefix, config.ledger_key)
        self.restriction = ParticipantRestriction(store, key_prefix)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def annotations(self) -> AnnotationFields:
        return self.config.annotations

    def _read_item(self, item_ref: Optional[str]) -> ItemSnapshot:
        return self.provider.read_item(require_item_ref(item_ref), self.config.read_fields)

    def _read_annotations(self, item: ItemSnapshot) -> Dict[str, Any]:
        return {
            "approval_date": item.field_value(self.annotations.approval_date_field),
            "approval_given_by": item.field_value(self.annotations.approval_given_by_field),
        }

    def get_projection(self, item_ref: Optional[str], actor: Optional[Actor] = None) -> Projection:
        """
        Build the read model of an item for the acting user.

        Args:
            item_ref: Item key or internal id
            actor: Acting user; resolved through the provider when omitted

        Returns:
            Projection for the actor

        Raises:
            ValidationError: If no item reference was given
            NotFoundError: If the item does not resolve
            UpstreamError: If the provider or the store fails
        """
        item = self._read_item(item_ref)
        actor = actor or self.provider.read_actor()

        return build_projection(
            self.rule,
            item.status,
            item.approvers,
            self.ledger.read(item.id),
            actor,
            self.restriction.read(item.id),
            item_id=item.id,
            item_key=item.key,
            annotations=self._read_annotations(item),
        )

    def cast_vote(self, item_ref: Optional[str], actor: Optional[Actor] = None) -> Dict[str, Any]:
        """
        Cast an approval vote and move the item to the target status.

        Preconditions are checked in order and the first failure wins:
        the item resolves, it is in the required status, the actor is a
        listed approver, and the actor passes the participant restriction.

        Returns:
            ``{"message", "annotations_written", "warnings"}``

        Raises:
            NotFoundError, InvalidStateError, NotAuthorizedError,
            NoTransitionError, AlreadyTransitionedError, UpstreamError
        """
        item = self._read_item(item_ref)
        actor = actor or self.provider.read_actor()

        if not self.rule.is_reviewable(item.status):
            raise InvalidStateError(item.status.name, self.rule.required_status.name)

        approver_ids = {a.account_id for a in item.approvers}
        if not approver_ids or actor.account_id not in approver_ids:
            raise NotAuthorizedError("Only listed approvers can approve this issue")

        if not restriction_allows(self.restriction.read(item.id), actor):
            raise NotAuthorizedError("You are not on the participant list for this issue")

        transitions = self.provider.list_transitions(item.id)
        destination = self.rule.find_destination(t.destination for t in transitions)
        if destination is None:
            current = self._current_status(item.id)
            if current is not None and not self.rule.is_reviewable(current):
                logger.info(f"{item.key or item.id} already left review (now {current.name})")
                raise AlreadyTransitionedError(current.name)
            raise NoTransitionError(
                self.rule.target_status.name,
                item.status.name,
                [t.destination.name for t in transitions],
            )
        transition = next(t for t in transitions if t.destination == destination)

        self._execute_transition(item, transition.id)
        logger.info(f"{item.key or item.id} moved to {destination.name} by {actor.account_id}")

        warnings: List[str] = []
        annotations_written = self._write_annotations(item, actor, warnings)

        if not self.ledger.add(item.id, actor.account_id):
            logger.debug(f"{actor.account_id} had already voted on {item.id}")

        return {
            "message": f"Approved by {actor.display_name or actor.account_id}",
            "annotations_written": annotations_written,
            "warnings": warnings,
        }

    def _execute_transition(self, item: ItemSnapshot, transition_id: str) -> None:
        """Execute a transition, classifying losses of the approval race."""
        try:
            self.provider.execute_transition(item.id, transition_id)
        except RateLimitError:
            raise
        except UpstreamError as e:
            current = self._current_status(item.id)
            if current is not None and not self.rule.is_reviewable(current):
                logger.info(f"{item.key or item.id} already left review (now {current.name})")
                raise AlreadyTransitionedError(current.name) from e
            raise

    def _current_status(self, item_id: str) -> Optional[Status]:
        try:
            return self.provider.read_item(item_id, ["status"]).status
        except GateError:
            return None

    def _write_annotations(self, item: ItemSnapshot, actor: Actor, warnings: List[str]) -> bool:
        """Best-effort write of the approval date and approver fields."""
        values: Dict[str, Any] = {}
        if self.annotations.approval_date_field:
            now = self._clock()
            if self.annotations.approval_date_format == "date":
                values[self.annotations.approval_date_field] = now.date().isoformat()
            else:
                values[self.annotations.approval_date_field] = now.isoformat()
        if self.annotations.approval_given_by_field:
            values[self.annotations.approval_given_by_field] = {"accountId": actor.account_id}

        if not values:
            return False

        try:
            self.provider.write_fields(item.id, values)
        except UpstreamError as e:
            logger.warning(f"Approval annotations not written for {item.id}: {e}")
            warnings.append(f"Approved, but approval fields were not updated: {e.message}")
            return False
        return True

    def reset_on_reentry(self, item_ref: Optional[str]) -> Dict[str, Any]:
        """
        Clear the ledger and annotations of an item back under review.

        Safe to call redundantly: an item that is not under review, or is
        already clear, is left alone.

        Returns:
            ``{"reset": True}`` or ``{"reset": False, "reason": ...}``
        """
        item = self._read_item(item_ref)
        if not self.rule.is_reviewable(item.status):
            return {"reset": False, "reason": f"Status is {item.status.name}"}

        annotations = self._read_annotations(item)
        votes = self.ledger.read(item.id)
        if not votes and not any(annotations.values()):
            return {"reset": False, "reason": "Already clear"}

        # The ledger goes first, in one delete; leftover annotations are not
        # shown while the item is under review.
        self.ledger.clear(item.id)
        if not self.annotations.is_empty:
            self.provider.write_fields(item.id, {f: None for f in self.annotations.field_ids})

        logger.info(f"Approval reset for {item.key or item.id} ({len(votes)} votes cleared)")
        return {"reset": True}

