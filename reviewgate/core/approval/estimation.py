"""Estimation variant of the gate.

Team members enter a numeric estimate per item, hidden from each other
until someone reveals them. Who may take part is governed by the same
participant restriction as approval votes.
"""

import math
from typing import Any, Dict, Iterable, List, Optional

from reviewgate.core.errors import NotAuthorizedError, ValidationError
from reviewgate.core.logger import get_logger
from reviewgate.providers.base import SourceOfTruthProvider
from reviewgate.store.base import ItemStore, store_key
from .engine import require_item_ref
from .ledger import ParticipantRestriction, restriction_allows
from .states import Actor

logger = get_logger("estimation")

ESTIMATES_KIND = "estimates"


def normalize_session(raw: Any) -> Dict[str, Any]:
    """Coerce a stored session into ``{"revealed", "estimates"}``."""
    if not isinstance(raw, dict):
        return {"revealed": False, "estimates": {}}
    estimates = raw.get("estimates")
    return {
        "revealed": bool(raw.get("revealed")),
        "estimates": dict(estimates) if isinstance(estimates, dict) else {},
    }


def parse_estimate(value: Any) -> float:
    """Parse an estimate; it must be a finite, non-negative number."""
    if isinstance(value, bool):
        raise ValidationError("Estimate must be a non-negative number.")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError("Estimate must be a non-negative number.")
    if not math.isfinite(number) or number < 0:
        raise ValidationError("Estimate must be a non-negative number.")
    return int(number) if number.is_integer() else number


class EstimationService:
    """Estimation sessions, keyed by canonical item id."""

    def __init__(
        self,
        provider: SourceOfTruthProvider,
        store: ItemStore,
        *,
        key_prefix: str = "reviewgate",
    ):
        self.provider = provider
        self.store = store
        self.key_prefix = key_prefix
        self.restriction = ParticipantRestriction(store, key_prefix)

    def _resolve(self, item_ref: Optional[str]) -> str:
        """Canonical item id, so sessions and restrictions match the approval gate."""
        return self.provider.read_item(require_item_ref(item_ref), ["status"]).id

    def _key(self, item_ref: str) -> str:
        return store_key(self.key_prefix, ESTIMATES_KIND, item_ref)

    def _state(self, item_ref: str, session: Dict[str, Any]) -> Dict[str, Any]:
        return {
            **session,
            "participants": [a.to_dict() for a in self.restriction.read(item_ref)],
        }

    def get_state(self, item_ref: Optional[str]) -> Dict[str, Any]:
        item_ref = self._resolve(item_ref)
        return self._state(item_ref, normalize_session(self.store.get(self._key(item_ref))))

    def enter_estimate(self, item_ref: Optional[str], actor: Actor, estimate: Any) -> Dict[str, Any]:
        """Record or replace the actor's estimate and hide results again."""
        item_ref = self._resolve(item_ref)
        if not actor or not actor.account_id:
            raise ValidationError("An acting user is required.")
        value = parse_estimate(estimate)

        if not restriction_allows(self.restriction.read(item_ref), actor):
            raise NotAuthorizedError("You are not allowed to participate in this poker session.")

        session = normalize_session(self.store.get(self._key(item_ref)))
        session["estimates"][actor.account_id] = {
            "display_name": actor.display_name or actor.account_id,
            "estimate": value,
        }
        session["revealed"] = False
        self.store.set(self._key(item_ref), session)

        logger.debug(f"Estimate recorded for {item_ref} by {actor.account_id}")
        return self._state(item_ref, session)

    def reveal(self, item_ref: Optional[str]) -> Dict[str, Any]:
        item_ref = self._resolve(item_ref)
        session = normalize_session(self.store.get(self._key(item_ref)))
        session["revealed"] = True
        self.store.set(self._key(item_ref), session)
        return self._state(item_ref, session)

    def clear(self, item_ref: Optional[str]) -> Dict[str, Any]:
        item_ref = self._resolve(item_ref)
        self.store.delete(self._key(item_ref))
        return self._state(item_ref, normalize_session(None))

    def get_participants(self, item_ref: Optional[str]) -> List[Dict[str, Any]]:
        item_ref = self._resolve(item_ref)
        return [a.to_dict() for a in self.restriction.read(item_ref)]

    def set_participants(self, item_ref: Optional[str], participants: Iterable[Any]) -> Dict[str, Any]:
        """Replace the allow-list. An empty list lets everyone take part."""
        item_ref = self._resolve(item_ref)
        actors = self.restriction.write(item_ref, participants)
        logger.info(f"Participants for {item_ref} set to {len(actors)} actor(s)")
        return self.get_state(item_ref)
