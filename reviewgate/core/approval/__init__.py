"""Approval gate for reviewgate.

Implements the review status rule, the vote ledger, the read model and the
engine that ties them to a provider and an item store.
"""

from .states import Actor, GateRule, Status
from .projection import Projection, build_projection, can_act
from .ledger import ParticipantRestriction, VoteLedger
from .engine import ApprovalGateEngine
from .estimation import EstimationService

__all__ = [
    "Actor",
    "GateRule",
    "Status",
    "Projection",
    "build_projection",
    "can_act",
    "ParticipantRestriction",
    "VoteLedger",
    "ApprovalGateEngine",
    "EstimationService",
]
