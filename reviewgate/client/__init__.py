from .api_client import GateApiClient
from .notifications import (
    EventNotificationSource,
    NotificationSource,
    PollingNotificationSource,
    first_available_source,
)
from .sync import RefreshTrigger, SyncController

__all__ = [
    "EventNotificationSource",
    "GateApiClient",
    "NotificationSource",
    "PollingNotificationSource",
    "RefreshTrigger",
    "SyncController",
    "first_available_source",
]
