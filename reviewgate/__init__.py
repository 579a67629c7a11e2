"""Multi-party approval gate with a client-side synchronization controller."""

__version__ = "0.1.0"
