"""Per-item values the gate keeps in the item store.

- The vote ledger: account ids that voted in the current review cycle.
- The participant restriction: who may vote or estimate on an item.

Both are rewritten whole on every change. Two writers racing on the same
item can drop each other's addition; set semantics keep the practical
impact small, and the next vote by the dropped actor records it again.
"""

from typing import Any, Iterable, List

from reviewgate.store.base import ItemStore, store_key
from .states import Actor, normalize_actors

PARTICIPANTS_KIND = "participants"


def normalize_ledger(raw: Any) -> List[str]:
    """Ordered, duplicate-free account ids. Non-list values read as empty."""
    if not isinstance(raw, (list, tuple)):
        return []
    return list(dict.fromkeys(str(v) for v in raw if isinstance(v, (str, int)) and v != ""))


class VoteLedger:
    """Vote ledger for items, stored under ``<prefix>:<ledger_key>:<item_id>``."""

    def __init__(self, store: ItemStore, prefix: str, ledger_key: str):
        self.store = store
        self.prefix = prefix
        self.ledger_key = ledger_key

    def key(self, item_id: str) -> str:
        return store_key(self.prefix, self.ledger_key, item_id)

    def read(self, item_id: str) -> List[str]:
        """Current voters; a missing ledger is an empty one."""
        return normalize_ledger(self.store.get(self.key(item_id)))

    def add(self, item_id: str, account_id: str) -> bool:
        """Record a vote. Returns False when the actor had already voted."""
        votes = self.read(item_id)
        if account_id in votes:
            return False
        votes.append(account_id)
        self.store.set(self.key(item_id), votes)
        return True

    def clear(self, item_id: str) -> None:
        """Drop every vote in a single delete."""
        self.store.delete(self.key(item_id))


class ParticipantRestriction:
    """Allow-list of actors for an item. An empty list lets anyone act."""

    def __init__(self, store: ItemStore, prefix: str):
        self.store = store
        self.prefix = prefix

    def key(self, item_id: str) -> str:
        return store_key(self.prefix, PARTICIPANTS_KIND, item_id)

    def read(self, item_id: str) -> List[Actor]:
        return normalize_actors(self.store.get(self.key(item_id)))

    def write(self, item_id: str, participants: Iterable[Any]) -> List[Actor]:
        actors = normalize_actors(list(participants))
        if actors:
            self.store.set(self.key(item_id), [a.to_dict() for a in actors])
        else:
            self.store.delete(self.key(item_id))
        return actors


def restriction_allows(restriction: Iterable[Actor], actor: Actor) -> bool:
    """True when the restriction is empty or names the actor."""
    allowed = {a.account_id for a in restriction}
    return not allowed or actor.account_id in allowed
