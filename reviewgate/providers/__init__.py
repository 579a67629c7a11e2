"""Source-of-truth providers."""

from .base import ItemSnapshot, SourceOfTruthProvider, Transition

__all__ = ["ItemSnapshot", "SourceOfTruthProvider", "Transition"]
