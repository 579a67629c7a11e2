"""Base classes for source-of-truth providers.

A provider is the authoritative system that owns items: their status, their
approver list, and the workflow transitions available from the current
status. The gate only reads items and asks the provider to transition them.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from reviewgate.core.models import Actor, Status


@dataclass
class Transition:
    """A workflow transition offered from the item's current status."""

    id: str
    destination: Status
    name: Optional[str] = None


@dataclass
class ItemSnapshot:
    """What the gate reads about an item in one request."""

    id: str
    key: Optional[str]
    status: Status
    approvers: List[Actor] = field(default_factory=list)
    fields: Dict[str, Any] = field(default_factory=dict)

    def field_value(self, field_id: Optional[str]) -> Any:
        """Value of a provider field, None when unset or not configured."""
        if not field_id:
            return None
        return self.fields.get(field_id)


class SourceOfTruthProvider(ABC):
    """Abstract base class for source-of-truth providers.

    Each provider must implement:
    - Reading an item by key or internal id
    - Resolving the actor making the request
    - Listing and executing workflow transitions
    - Writing annotation fields

    Implementations raise ``NotFoundError`` for unknown items,
    ``RateLimitError`` when throttled and ``UpstreamError`` for any other
    failure, with the upstream status code and body in the message.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Name of this provider (e.g., 'jira')."""
        pass

    @abstractmethod
    def read_item(self, item_ref: str, fields: List[str]) -> ItemSnapshot:
        """Read an item by key or id.

        Args:
            item_ref: Item key or internal id
            fields: Provider field ids to include in ``ItemSnapshot.fields``

        Returns:
            ItemSnapshot with the canonical id resolved
        """
        pass

    @abstractmethod
    def read_actor(self) -> Actor:
        """Resolve the actor on whose behalf requests are made."""
        pass

    @abstractmethod
    def list_transitions(self, item_id: str) -> List[Transition]:
        """List transitions available from the item's current status."""
        pass

    @abstractmethod
    def execute_transition(self, item_id: str, transition_id: str) -> None:
        """Perform a transition."""
        pass

    @abstractmethod
    def write_fields(self, item_id: str, values: Dict[str, Any]) -> None:
        """Write provider fields. ``None`` clears a field."""
        pass

    def close(self) -> None:
        """Release any underlying connection."""
        return None
