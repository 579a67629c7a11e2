"""Item store backed by Jira issue properties.

Keys built by ``store_key(prefix, kind, item_id)`` map to the property
``<prefix>.<kind>`` on issue ``item_id``. Kinds listed as bare map to the
property ``<kind>`` instead, which is where existing installations keep the
vote ledger (``approvalVotes``). A missing property reads as absent.
"""

from typing import Any, Iterable, Optional, Tuple

from reviewgate.providers.jira import JiraProvider
from .base import ItemStore


def split_key(key: str, bare_kinds: Iterable[str] = ()) -> Tuple[str, str]:
    """Split a namespaced key into (issue id, property key)."""
    namespace, sep, item_id = key.rpartition(":")
    if not sep or not namespace or not item_id:
        raise ValueError(f"Not a namespaced item key: {key}")
    kind = namespace.rpartition(":")[2]
    if kind in bare_kinds:
        return item_id, kind
    return item_id, namespace.replace(":", ".")


class IssuePropertyStore(ItemStore):
    """Stores values on the issue itself, next to the data they describe."""

    def __init__(self, provider: JiraProvider, *, bare_kinds: Iterable[str] = ()):
        self.provider = provider
        self.bare_kinds = frozenset(bare_kinds)

    @property
    def store_name(self) -> str:
        return "issue_property"

    def _locate(self, key: str) -> Tuple[str, str]:
        return split_key(key, self.bare_kinds)

    def get(self, key: str) -> Optional[Any]:
        item_id, prop = self._locate(key)
        return self.provider.get_property(item_id, prop)

    def set(self, key: str, value: Any) -> None:
        item_id, prop = self._locate(key)
        self.provider.set_property(item_id, prop, value)

    def delete(self, key: str) -> None:
        item_id, prop = self._locate(key)
        self.provider.delete_property(item_id, prop)
