"""Approval gate endpoints."""

from fastapi import APIRouter, Depends

from reviewgate.api.deps import get_engine
from reviewgate.api.schemas import ErrorResponse, ProjectionResponse, ResetResponse, VoteResponse
from reviewgate.core.approval import ApprovalGateEngine

router = APIRouter(
    prefix="/items",
    tags=["approvals"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        429: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)


@router.get("/{item_ref}/projection", response_model=ProjectionResponse)
def get_projection(item_ref: str, engine: ApprovalGateEngine = Depends(get_engine)):
    """Get the approval state of an item for the calling user."""
    return engine.get_projection(item_ref).to_dict()


@router.post(
    "/{item_ref}/approve",
    response_model=VoteResponse,
    responses={422: {"model": ErrorResponse}},
)
def approve_item(item_ref: str, engine: ApprovalGateEngine = Depends(get_engine)):
    """Cast the calling user's approval vote and move the item forward."""
    return engine.cast_vote(item_ref)


@router.post("/{item_ref}/reset", response_model=ResetResponse)
def reset_item(item_ref: str, engine: ApprovalGateEngine = Depends(get_engine)):
    """Clear votes and approval fields of an item that is back under review.

    Intended for the status-change hook; redundant calls are harmless.
    """
    return engine.reset_on_reentry(item_ref)
