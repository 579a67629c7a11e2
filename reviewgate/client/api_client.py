"""Async HTTP client for the gate service."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from reviewgate.core.approval.projection import Projection
from reviewgate.core.errors import GateError, RateLimitError, UpstreamError, error_from_dict
from reviewgate.core.logger import get_logger
from reviewgate.providers.jira import parse_retry_after

logger = get_logger("api_client")


class GateApiClient:
    """Calls the gate endpoints on behalf of one user.

    Error responses are turned back into the classified ``GateError``
    subclasses the service raised, so callers handle one taxonomy on both
    sides of the wire.
    """

    def __init__(
        self,
        base_url: str = "",
        *,
        authorization: Optional[str] = None,
        timeout: float = 20.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        headers = {"Accept": "application/json"}
        if authorization:
            headers["Authorization"] = authorization
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=timeout)
        self._headers = headers

    async def __aenter__(self) -> "GateApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    @staticmethod
    def _item_path(item_ref: str, suffix: str) -> str:
        return f"/api/items/{quote(str(item_ref), safe='')}/{suffix}"

    async def _request(self, method: str, path: str, label: str, *, json: Any = None) -> Any:
        try:
            response = await self.client.request(method, path, headers=self._headers, json=json)
        except httpx.HTTPError as e:
            logger.warning(f"{label} request failed: {e}")
            raise UpstreamError(f"{label} failed: {e}") from e

        if response.is_success:
            try:
                return response.json()
            except ValueError as e:
                logger.warning(f"{label} returned an unreadable body: {e}")
                raise UpstreamError(
                    f"{label} failed: invalid response body", status_code=response.status_code
                ) from e
        raise self._error_for(response, label)

    @staticmethod
    def _error_for(response: httpx.Response, label: str) -> GateError:
        """Classify an error response."""
        try:
            payload = response.json()
        except ValueError:
            payload = None

        error_body = payload.get("error") if isinstance(payload, dict) else None
        if isinstance(error_body, dict) and error_body.get("code"):
            error = error_from_dict(error_body)
            if isinstance(error, RateLimitError) and error.retry_after is None:
                error.retry_after = parse_retry_after(response.headers.get("Retry-After"))
            return error

        if response.status_code == 429:
            return RateLimitError(
                f"{label} failed: 429 {response.text}",
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                body=response.text,
            )
        return UpstreamError(
            f"{label} failed: {response.status_code} {response.text}",
            status_code=response.status_code,
            body=response.text,
        )

    async def get_projection(self, item_ref: str) -> Projection:
        data = await self._request("GET", self._item_path(item_ref, "projection"), "Projection fetch")
        return Projection.from_dict(data)

    async def approve(self, item_ref: str) -> Dict[str, Any]:
        return await self._request("POST", self._item_path(item_ref, "approve"), "Approve")

    async def reset(self, item_ref: str) -> Dict[str, Any]:
        return await self._request("POST", self._item_path(item_ref, "reset"), "Reset")

    async def get_participants(self, item_ref: str) -> List[Dict[str, Any]]:
        data = await self._request("GET", self._item_path(item_ref, "participants"), "Participants fetch")
        return data.get("participants") or []

    async def set_participants(self, item_ref: str, participants: List[Any]) -> Dict[str, Any]:
        return await self._request(
            "PUT",
            self._item_path(item_ref, "participants"),
            "Participants update",
            json={"participants": participants},
        )

    async def get_estimates(self, item_ref: str) -> Dict[str, Any]:
        return await self._request("GET", self._item_path(item_ref, "estimates"), "Estimates fetch")

    async def enter_estimate(self, item_ref: str, estimate: Any) -> Dict[str, Any]:
        return await self._request(
            "POST", self._item_path(item_ref, "estimates"), "Estimate", json={"estimate": estimate}
        )

    async def reveal_estimates(self, item_ref: str) -> Dict[str, Any]:
        return await self._request("POST", self._item_path(item_ref, "estimates/reveal"), "Reveal")

    async def clear_estimates(self, item_ref: str) -> Dict[str, Any]:
        return await self._request("DELETE", self._item_path(item_ref, "estimates"), "Clear estimates")
