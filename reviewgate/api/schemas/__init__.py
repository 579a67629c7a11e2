from .estimation import EstimateEntry, EstimateRequest, EstimationStateResponse, ParticipantsResponse, ParticipantsUpdate
from .gate import ActorSchema, ErrorResponse, ProjectionResponse, ResetResponse, VoteResponse

__all__ = [
    "ActorSchema",
    "ErrorResponse",
    "EstimateEntry",
    "EstimateRequest",
    "EstimationStateResponse",
    "ParticipantsResponse",
    "ParticipantsUpdate",
    "ProjectionResponse",
    "ResetResponse",
    "VoteResponse",
]
