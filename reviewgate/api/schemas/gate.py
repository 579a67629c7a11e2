"""Schemas for the approval gate endpoints."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ActorSchema(BaseModel):
    account_id: str
    display_name: str = ""


class ProjectionResponse(BaseModel):
    """Read model of one item for the calling user."""
    item_id: Optional[str] = None
    item_key: Optional[str] = None
    status: str
    approvers: List[ActorSchema] = []
    vote_count: int = Field(0, ge=0)
    total_eligible: int = Field(0, ge=0)
    has_actor_voted: bool = False
    can_act: bool = False
    approval_given_by: Optional[Any] = None
    approval_date: Optional[Any] = None
    message: Optional[str] = None


class VoteResponse(BaseModel):
    message: str
    annotations_written: bool
    warnings: List[str] = []


class ResetResponse(BaseModel):
    reset: bool
    reason: Optional[str] = None


class ErrorResponse(BaseModel):
    """Body of every error response: ``{"error": {"code", "message", ...}}``."""
    error: Dict[str, Any]
