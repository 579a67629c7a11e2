"""Schemas for the estimation endpoints."""

from typing import Any, Dict, List, Union

from pydantic import BaseModel

from .gate import ActorSchema


class EstimateEntry(BaseModel):
    display_name: str = ""
    estimate: Union[int, float]


class EstimationStateResponse(BaseModel):
    revealed: bool = False
    estimates: Dict[str, EstimateEntry] = {}
    participants: List[ActorSchema] = []


class EstimateRequest(BaseModel):
    # Validated by the service so bad values surface as invalid_input
    estimate: Any = None


class ParticipantsUpdate(BaseModel):
    participants: List[Any] = []


class ParticipantsResponse(BaseModel):
    participants: List[ActorSchema] = []
