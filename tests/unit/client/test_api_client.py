"""Tests for the async gate API client."""

import json

import httpx
import pytest

from reviewgate.client.api_client import GateApiClient
from reviewgate.core.errors import (
    InvalidStateError,
    NoTransitionError,
    RateLimitError,
    UpstreamError,
)


def make_client(handler):
    return GateApiClient(
        authorization="Bearer alice",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler), base_url="http://gate"),
    )


def error_response(status_code, error, headers=None):
    return httpx.Response(status_code, json={"error": error}, headers=headers or {})


class TestRequests:
    """Test request building and decoding."""

    @pytest.mark.asyncio
    async def test_get_projection(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "item_id": "10001",
                "item_key": "GATE-1",
                "status": "Ready for Review",
                "approvers": [{"account_id": "alice", "display_name": "Alice"}],
                "vote_count": 0,
                "total_eligible": 1,
                "has_actor_voted": False,
                "can_act": True,
            })

        async with make_client(handler) as client:
            projection = await client.get_projection("GATE-1")

        assert projection.can_act
        assert projection.approvers[0].display_name == "Alice"
        assert seen[0].url.path == "/api/items/GATE-1/projection"
        assert seen[0].headers["Authorization"] == "Bearer alice"

    @pytest.mark.asyncio
    async def test_item_ref_is_quoted(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"reset": False, "reason": "Already clear"})

        async with make_client(handler) as client:
            await client.reset("a/b")

        assert seen[0].url.raw_path == b"/api/items/a%2Fb/reset"

    @pytest.mark.asyncio
    async def test_enter_estimate(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"revealed": False, "estimates": {}, "participants": []})

        async with make_client(handler) as client:
            await client.enter_estimate("GATE-1", 5)

        assert seen[0].method == "POST"
        assert json.loads(seen[0].content) == {"estimate": 5}


class TestErrorMapping:
    """Test error responses become classified errors."""

    @pytest.mark.asyncio
    async def test_invalid_state(self):
        def handler(request):
            return error_response(409, InvalidStateError("In Progress", "Ready for Review").to_dict())

        async with make_client(handler) as client:
            with pytest.raises(InvalidStateError) as exc_info:
                await client.approve("GATE-1")

        assert exc_info.value.current_status == "In Progress"

    @pytest.mark.asyncio
    async def test_no_transition_keeps_alternatives(self):
        def handler(request):
            error = NoTransitionError("Approved", "Ready for Review", ["In Progress"])
            return error_response(422, error.to_dict())

        async with make_client(handler) as client:
            with pytest.raises(NoTransitionError) as exc_info:
                await client.approve("GATE-1")

        assert exc_info.value.available == ["In Progress"]

    @pytest.mark.asyncio
    async def test_rate_limited_uses_header(self):
        def handler(request):
            return error_response(
                429, RateLimitError().to_dict(), headers={"Retry-After": "4"}
            )

        async with make_client(handler) as client:
            with pytest.raises(RateLimitError) as exc_info:
                await client.get_projection("GATE-1")

        assert exc_info.value.retry_after == 4.0

    @pytest.mark.asyncio
    async def test_bare_429(self):
        def handler(request):
            return httpx.Response(429, text="Too Many Requests")

        async with make_client(handler) as client:
            with pytest.raises(RateLimitError):
                await client.get_projection("GATE-1")

    @pytest.mark.asyncio
    async def test_unclassified_error(self):
        def handler(request):
            return httpx.Response(503, text="upstream connect error")

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError) as exc_info:
                await client.get_projection("GATE-1")

        assert exc_info.value.status_code == 503
        assert "upstream connect error" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError, match="connection refused"):
                await client.get_projection("GATE-1")

    @pytest.mark.asyncio
    async def test_unreadable_success_body(self):
        """Test a 2xx response that is not JSON is an upstream failure."""
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        async with make_client(handler) as client:
            with pytest.raises(UpstreamError, match="invalid response body") as exc_info:
                await client.get_projection("GATE-1")

        assert exc_info.value.status_code == 200
