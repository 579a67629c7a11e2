"""Estimation session and participant list endpoints."""

from fastapi import APIRouter, Depends

from reviewgate.api.deps import get_estimation
from reviewgate.api.schemas import (
    ErrorResponse,
    EstimateRequest,
    EstimationStateResponse,
    ParticipantsResponse,
    ParticipantsUpdate,
)
from reviewgate.core.approval import EstimationService

router = APIRouter(
    prefix="/items",
    tags=["estimation"],
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)


@router.get("/{item_ref}/participants", response_model=ParticipantsResponse)
def get_participants(item_ref: str, service: EstimationService = Depends(get_estimation)):
    """List who may take part in the gate. Empty means everyone."""
    return {"participants": service.get_participants(item_ref)}


@router.put("/{item_ref}/participants", response_model=EstimationStateResponse)
def set_participants(
    item_ref: str,
    update: ParticipantsUpdate,
    service: EstimationService = Depends(get_estimation),
):
    """Replace the participant list."""
    return service.set_participants(item_ref, update.participants)


@router.get("/{item_ref}/estimates", response_model=EstimationStateResponse)
def get_estimates(item_ref: str, service: EstimationService = Depends(get_estimation)):
    return service.get_state(item_ref)


@router.post("/{item_ref}/estimates", response_model=EstimationStateResponse)
def enter_estimate(
    item_ref: str,
    request: EstimateRequest,
    service: EstimationService = Depends(get_estimation),
):
    """Record the calling user's estimate. Hides results until revealed again."""
    actor = service.provider.read_actor()
    return service.enter_estimate(item_ref, actor, request.estimate)


@router.post("/{item_ref}/estimates/reveal", response_model=EstimationStateResponse)
def reveal_estimates(item_ref: str, service: EstimationService = Depends(get_estimation)):
    return service.reveal(item_ref)


@router.delete("/{item_ref}/estimates", response_model=EstimationStateResponse)
def clear_estimates(item_ref: str, service: EstimationService = Depends(get_estimation)):
    return service.clear(item_ref)
