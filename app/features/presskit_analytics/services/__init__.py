"""
Service layer for press kit analytics.
"""

from .analytics_service import AnalyticsServiceError, PressKitAnalyticsService, analytics_service
from .ingest_service import (
    PressKitIngestService,
    TrackingStoreError,
    TrackingValidationError,
    ingest_service,
)
from .notification_dispatcher import NotificationDispatcher, notification_dispatcher
from .notification_gate import NOTIFICATION_COOLDOWN, NotificationGate

__all__ = [
    "AnalyticsServiceError",
    "NOTIFICATION_COOLDOWN",
    "NotificationDispatcher",
    "NotificationGate",
    "PressKitAnalyticsService",
    "PressKitIngestService",
    "TrackingStoreError",
    "TrackingValidationError",
    "analytics_service",
    "ingest_service",
    "notification_dispatcher",
]
