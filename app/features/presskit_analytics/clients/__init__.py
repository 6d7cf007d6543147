"""
Outbound HTTP clients: geolocation, email, and the viewer-side tracker.
"""

from .email_client import EmailDispatchError, ResendEmailClient, email_client
from .geolocation_client import GeolocationClient, geolocation_client
from .tracker_client import PressKitTracker, ViewSession

__all__ = [
    "EmailDispatchError",
    "GeolocationClient",
    "PressKitTracker",
    "ResendEmailClient",
    "ViewSession",
    "email_client",
    "geolocation_client",
]
