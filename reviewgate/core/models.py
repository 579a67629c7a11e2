"""Domain primitives shared by providers, stores and the gate."""

from dataclasses import dataclass, field
from typing import Any, List, Optional

UNKNOWN_STATUS = "Unknown"


@dataclass(frozen=True)
class Status:
    """An opaque, provider-defined workflow status."""

    name: str

    def __str__(self) -> str:
        return self.name

    def matches(self, other: "Status | str") -> bool:
        """Case-insensitive comparison, as used for transition destinations."""
        other_name = other.name if isinstance(other, Status) else str(other)
        return self.name.lower() == other_name.lower()

    @classmethod
    def of(cls, value: Any) -> "Status":
        """Build a status from a provider value, tolerating missing data."""
        if isinstance(value, Status):
            return value
        if isinstance(value, dict):
            value = value.get("name")
        if not value or not isinstance(value, str):
            return cls(UNKNOWN_STATUS)
        return cls(value)


@dataclass(frozen=True)
class Actor:
    """A user who may approve or estimate. Identity is the account id."""

    account_id: str
    display_name: str = field(default="", compare=False)

    def to_dict(self) -> dict:
        return {"account_id": self.account_id, "display_name": self.display_name}

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["Actor"]:
        """Parse a provider user object; returns None when it has no id."""
        if isinstance(raw, Actor):
            return raw
        if isinstance(raw, str):
            return cls(raw, raw) if raw else None
        if not isinstance(raw, dict):
            return None
        account_id = raw.get("accountId") or raw.get("account_id") or raw.get("id")
        if not account_id:
            return None
        display_name = raw.get("displayName") or raw.get("display_name") or raw.get("name")
        return cls(str(account_id), str(display_name or account_id))


def normalize_actors(raw: Any) -> List[Actor]:
    """Turn provider user data into an ordered, de-duplicated actor list.

    Anything that is not a list yields an empty list; entries without an
    identity are skipped. First occurrence wins.
    """
    if not isinstance(raw, (list, tuple)):
        return []

    seen = set()
    actors = []
    for entry in raw:
        actor = Actor.from_raw(entry)
        if actor is None or actor.account_id in seen:
            continue
        seen.add(actor.account_id)
        actors.append(actor)
    return actors

