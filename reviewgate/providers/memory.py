"""In-memory provider for local development and tests.

An ``InMemoryWorkspace`` plays the role of the remote system (items plus a
workflow); each ``InMemoryProvider`` is a view of it on behalf of one actor,
the same way a Jira client is bound to the acting user's credentials.
"""

import copy
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

from reviewgate.core.models import Actor, Status, normalize_actors
from reviewgate.core.errors import GateError, NotFoundError, UpstreamError
from .base import ItemSnapshot, SourceOfTruthProvider, Transition

DEFAULT_WORKFLOW = {
    "To Do": ["In Progress"],
    "In Progress": ["Ready for Review", "To Do"],
    "Ready for Review": ["Approved", "In Progress"],
    "Approved": ["Ready for Review", "Done"],
    "Done": [],
}


def transition_id_for(destination: str) -> str:
    return "to-" + destination.lower().replace(" ", "-")


class InMemoryWorkspace:
    """Items and workflow shared by every provider view."""

    def __init__(self, workflow: Optional[Dict[str, List[str]]] = None):
        self.workflow = copy.deepcopy(workflow or DEFAULT_WORKFLOW)
        self._items: Dict[str, Dict[str, Any]] = {}
        self._keys: Dict[str, str] = {}
        self._failures: Dict[str, List[Tuple[GateError, Optional[Callable[[], None]]]]] = {}
        self._lock = threading.Lock()
        self._next_id = 10000

    def add_item(
        self,
        key: str,
        status: str,
        approvers: Optional[List[Any]] = None,
        fields: Optional[Dict[str, Any]] = None,
    ) -> str:
        """Create an item and return its internal id."""
        with self._lock:
            self._next_id += 1
            item_id = str(self._next_id)
            self._items[item_id] = {
                "key": key,
                "status": status,
                "approvers": list(approvers or []),
                "fields": dict(fields or {}),
            }
            self._keys[key] = item_id
        return item_id

    def resolve(self, item_ref: str) -> str:
        if item_ref in self._items:
            return item_ref
        if item_ref in self._keys:
            return self._keys[item_ref]
        raise NotFoundError(item_ref)

    def item(self, item_ref: str) -> Dict[str, Any]:
        return self._items[self.resolve(item_ref)]

    def set_status(self, item_ref: str, status: str) -> None:
        """Move an item outside the gate (a re-open, another approver...)."""
        with self._lock:
            self.item(item_ref)["status"] = status

    def fail_next(
        self,
        operation: str,
        error: GateError,
        side_effect: Optional[Callable[[], None]] = None,
    ) -> None:
        """Make the next call of ``operation`` raise ``error``.

        ``side_effect`` runs just before raising, to simulate a concurrent
        change that caused the failure.
        """
        self._failures.setdefault(operation, []).append((error, side_effect))

    def _maybe_fail(self, operation: str) -> None:
        pending = self._failures.get(operation)
        if not pending:
            return
        error, side_effect = pending.pop(0)
        if side_effect is not None:
            side_effect()
        raise error


class InMemoryProvider(SourceOfTruthProvider):
    """Provider view over an ``InMemoryWorkspace`` bound to one actor."""

    def __init__(self, workspace: InMemoryWorkspace, actor: Optional[Actor], *, approver_field: str):
        self.workspace = workspace
        self.actor = actor
        self.approver_field = approver_field

    @property
    def provider_name(self) -> str:
        return "memory"

    def read_item(self, item_ref: str, fields: List[str]) -> ItemSnapshot:
        self.workspace._maybe_fail("read_item")
        item_id = self.workspace.resolve(item_ref)
        item = self.workspace.item(item_id)
        return ItemSnapshot(
            id=item_id,
            key=item["key"],
            status=Status.of(item["status"]),
            approvers=normalize_actors(item["approvers"]),
            fields={f: copy.deepcopy(item["fields"].get(f)) for f in fields if f != "status"},
        )

    def read_actor(self) -> Actor:
        self.workspace._maybe_fail("read_actor")
        if self.actor is None:
            raise UpstreamError("myself fetch failed: 401 Unauthorized", status_code=401)
        return self.actor

    def list_transitions(self, item_id: str) -> List[Transition]:
        self.workspace._maybe_fail("list_transitions")
        status = self.workspace.item(item_id)["status"]
        return [
            Transition(id=transition_id_for(dest), destination=Status(dest), name=dest)
            for dest in self.workspace.workflow.get(status, [])
        ]

    def execute_transition(self, item_id: str, transition_id: str) -> None:
        self.workspace._maybe_fail("execute_transition")
        with self.workspace._lock:
            item = self.workspace.item(item_id)
            for dest in self.workspace.workflow.get(item["status"], []):
                if transition_id_for(dest) == transition_id:
                    item["status"] = dest
                    return
        raise UpstreamError(
            f"Transition failed: 400 Transition id '{transition_id}' is not valid for this issue.",
            status_code=400,
        )

    def write_fields(self, item_id: str, values: Dict[str, Any]) -> None:
        self.workspace._maybe_fail("write_fields")
        with self.workspace._lock:
            self.workspace.item(item_id)["fields"].update(copy.deepcopy(values))
