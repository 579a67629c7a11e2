"""Classified errors raised by the review gate.

Every error carries a stable ``code`` and the HTTP status the API maps it to,
so the same taxonomy survives the trip server -> JSON -> client.
"""

from typing import Any, Dict, List, Optional


class GateError(Exception):
    """Base class for all review gate errors."""

    code = "gate_error"
    http_status = 500
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def details(self) -> Dict[str, Any]:
        """Extra fields rendered next to code and message."""
        return {}

    def to_dict(self) -> Dict[str, Any]:
        body = {"code": self.code, "message": self.message}
        body.update(self.details())
        return body


class ValidationError(GateError):
    """Raised when a request is malformed (missing item reference, bad estimate)."""

    code = "invalid_input"
    http_status = 400


class NotFoundError(GateError):
    """Raised when an item reference does not resolve."""

    code = "not_found"
    http_status = 404

    def __init__(self, item_ref: str, message: Optional[str] = None):
        super().__init__(message or f"Item {item_ref} not found")
        self.item_ref = item_ref

    def details(self) -> Dict[str, Any]:
        return {"item_ref": self.item_ref}


class InvalidStateError(GateError):
    """Raised when the item is in the wrong status for the attempted action."""

    code = "invalid_state"
    http_status = 409

    def __init__(self, current_status: str, required_status: str):
        super().__init__(
            f'Must be in "{required_status}" to approve (current: {current_status})'
        )
        self.current_status = current_status
        self.required_status = required_status

    def details(self) -> Dict[str, Any]:
        return {
            "current_status": self.current_status,
            "required_status": self.required_status,
        }


class NotAuthorizedError(GateError):
    """Raised when the actor is not on the approver list or participant list."""

    code = "not_authorized"
    http_status = 403


class NoTransitionError(GateError):
    """Raised when the workflow offers no transition to the target status."""

    code = "no_transition"
    http_status = 422

    def __init__(self, target_status: str, current_status: str, available: List[str]):
        listed = ", ".join(available) or "(none)"
        super().__init__(
            f'No transition to "{target_status}" from "{current_status}". '
            f"Available: {listed}"
        )
        self.target_status = target_status
        self.current_status = current_status
        self.available = list(available)

    def details(self) -> Dict[str, Any]:
        return {
            "target_status": self.target_status,
            "current_status": self.current_status,
            "available": self.available,
        }


class AlreadyTransitionedError(GateError):
    """Raised when another actor moved the item out of review first.

    This is a benign race: the caller should refresh and will see the end
    state regardless of who won.
    """

    code = "already_transitioned"
    http_status = 409

    def __init__(self, current_status: str):
        super().__init__(f"Item already moved to {current_status}")
        self.current_status = current_status

    def details(self) -> Dict[str, Any]:
        return {"current_status": self.current_status}


class UpstreamError(GateError):
    """Raised when the provider or the item store fails."""

    code = "upstream_error"
    http_status = 502
    retryable = True

    def __init__(
        self,
        message: str,
        *,
        status_code: Optional[int] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body

    def details(self) -> Dict[str, Any]:
        return {"upstream_status": self.status_code}


class RateLimitError(UpstreamError):
    """Raised when the upstream signals throttling (HTTP 429)."""

    code = "rate_limited"
    http_status = 429

    def __init__(
        self,
        message: str = "Rate limit exceeded",
        *,
        retry_after: Optional[float] = None,
        body: Optional[str] = None,
    ):
        super().__init__(message, status_code=429, body=body)
        self.retry_after = retry_after

    def details(self) -> Dict[str, Any]:
        return {"upstream_status": 429, "retry_after": self.retry_after}


ERROR_CLASSES = {
    cls.code: cls
    for cls in (
        ValidationError,
        NotFoundError,
        InvalidStateError,
        NotAuthorizedError,
        NoTransitionError,
        AlreadyTransitionedError,
        UpstreamError,
        RateLimitError,
    )
}


def error_from_dict(data: Dict[str, Any]) -> GateError:
    """Rebuild a classified error from its ``to_dict`` rendering."""
    code = data.get("code", "")
    message = data.get("message") or "Unknown error"

    if code == "not_found":
        return NotFoundError(data.get("item_ref") or "", message)
    if code == "invalid_state":
        return InvalidStateError(
            data.get("current_status") or "Unknown", data.get("required_status") or ""
        )
    if code == "no_transition":
        return NoTransitionError(
            data.get("target_status") or "",
            data.get("current_status") or "Unknown",
            data.get("available") or [],
        )
    if code == "already_transitioned":
        return AlreadyTransitionedError(data.get("current_status") or "Unknown")
    if code == "rate_limited":
        return RateLimitError(message, retry_after=data.get("retry_after"))
    if code == "upstream_error":
        return UpstreamError(message, status_code=data.get("upstream_status"))

    cls = ERROR_CLASSES.get(code, GateError)
    return cls(message)
