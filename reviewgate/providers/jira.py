"""Jira Cloud provider.

Reads issues, the current user and workflow transitions over the Jira REST
API v3 and performs transitions and field updates on the acting user's
behalf.
"""

import base64
from typing import Any, Dict, List, Optional

import httpx

from reviewgate.core.models import Actor, Status, normalize_actors
from reviewgate.core.errors import NotFoundError, RateLimitError, UpstreamError
from reviewgate.core.logger import get_logger
from .base import ItemSnapshot, SourceOfTruthProvider, Transition

logger = get_logger("jira_provider")

API_PREFIX = "/rest/api/3"


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """Parse a Retry-After header given in seconds."""
    if not value:
        return None
    try:
        seconds = float(value)
    except ValueError:
        return None
    return max(0.0, seconds)


class JiraProvider(SourceOfTruthProvider):
    """Source-of-truth provider backed by Jira Cloud.

    Auth is either a forwarded ``Authorization`` header (the acting user's
    own credentials) or Basic auth built from an email and API token.
    """

    def __init__(
        self,
        base_url: str,
        *,
        approver_field: str,
        email: Optional[str] = None,
        api_token: Optional[str] = None,
        authorization: Optional[str] = None,
        timeout: float = 20.0,
        client: Optional[httpx.Client] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.approver_field = approver_field

        headers = {"Accept": "application/json"}
        if authorization:
            headers["Authorization"] = authorization
        elif email and api_token:
            token = base64.b64encode(f"{email}:{api_token}".encode("utf-8")).decode("ascii")
            headers["Authorization"] = f"Basic {token}"

        self._owns_client = client is None
        self.client = client or httpx.Client(base_url=self.base_url, timeout=timeout)
        self._headers = headers

    @property
    def provider_name(self) -> str:
        return "jira"

    def _request(
        self,
        method: str,
        path: str,
        label: str,
        *,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> httpx.Response:
        """Send a request, mapping transport failures to UpstreamError."""
        try:
            return self.client.request(
                method,
                f"{self.base_url}{API_PREFIX}{path}",
                headers=self._headers,
                json=json,
                params=params,
            )
        except httpx.HTTPError as e:
            logger.warning(f"{label} request failed: {e}")
            raise UpstreamError(f"{label} failed: {e}") from e

    def _raise_for_status(self, response: httpx.Response, label: str) -> httpx.Response:
        """Raise a classified error for any non-2xx response."""
        if response.is_success:
            return response

        body = response.text
        if response.status_code == 429:
            retry_after = parse_retry_after(response.headers.get("Retry-After"))
            logger.warning(f"{label} rate limited (retry after {retry_after})")
            raise RateLimitError(
                f"{label} failed: 429 {body}", retry_after=retry_after, body=body
            )

        raise UpstreamError(
            f"{label} failed: {response.status_code} {body}",
            status_code=response.status_code,
            body=body,
        )

    def read_item(self, item_ref: str, fields: List[str]) -> ItemSnapshot:
        wanted = list(dict.fromkeys(["status", self.approver_field, *fields]))
        response = self._request(
            "GET", f"/issue/{item_ref}", "Issue fetch", params={"fields": ",".join(wanted)}
        )
        if response.status_code == 404:
            raise NotFoundError(item_ref)
        data = self._raise_for_status(response, "Issue fetch").json()

        raw_fields = data.get("fields") or {}
        return ItemSnapshot(
            id=str(data.get("id") or item_ref),
            key=data.get("key"),
            status=Status.of(raw_fields.get("status")),
            approvers=normalize_actors(raw_fields.get(self.approver_field)),
            fields={f: raw_fields.get(f) for f in fields if f != "status"},
        )

    def read_actor(self) -> Actor:
        response = self._raise_for_status(
            self._request("GET", "/myself", "myself fetch"), "myself fetch"
        )
        actor = Actor.from_raw(response.json())
        if actor is None:
            raise UpstreamError("myself fetch failed: response has no accountId")
        return actor

    def list_transitions(self, item_id: str) -> List[Transition]:
        response = self._raise_for_status(
            self._request("GET", f"/issue/{item_id}/transitions", "Transitions fetch"),
            "Transitions fetch",
        )
        transitions = []
        for raw in response.json().get("transitions") or []:
            destination = (raw.get("to") or {}).get("name")
            if not raw.get("id") or not destination:
                continue
            transitions.append(
                Transition(id=str(raw["id"]), destination=Status(destination), name=raw.get("name"))
            )
        return transitions

    def execute_transition(self, item_id: str, transition_id: str) -> None:
        response = self._request(
            "POST",
            f"/issue/{item_id}/transitions",
            "Transition",
            json={"transition": {"id": transition_id}},
        )
        self._raise_for_status(response, "Transition")

    def write_fields(self, item_id: str, values: Dict[str, Any]) -> None:
        response = self._request("PUT", f"/issue/{item_id}", "Issue update", json={"fields": values})
        self._raise_for_status(response, "Issue update")

    # Issue properties, used by IssuePropertyStore

    def get_property(self, item_id: str, key: str) -> Any:
        """Read an issue property value, None when it does not exist."""
        response = self._request("GET", f"/issue/{item_id}/properties/{key}", "Property GET")
        if response.status_code == 404:
            return None
        return self._raise_for_status(response, "Property GET").json().get("value")

    def set_property(self, item_id: str, key: str, value: Any) -> None:
        response = self._request(
            "PUT", f"/issue/{item_id}/properties/{key}", "Property PUT", json=value
        )
        self._raise_for_status(response, "Property PUT")

    def delete_property(self, item_id: str, key: str) -> None:
        response = self._request("DELETE", f"/issue/{item_id}/properties/{key}", "Property DELETE")
        if response.status_code == 404:
            return
        self._raise_for_status(response, "Property DELETE")

    def close(self) -> None:
        if self._owns_client:
            self.client.close()
