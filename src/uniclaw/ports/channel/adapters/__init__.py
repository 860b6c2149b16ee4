"""
Sphere SDK port.

The bridge talks to the wallet/identity SDK only through SphereClient.
"""

from .base import (
    EVENT_GROUP_JOINED,
    EVENT_GROUP_KICKED,
    EVENT_GROUP_LEFT,
    EVENT_PAYMENT_REQUEST_INCOMING,
    EVENT_TRANSFER_INCOMING,
    SphereClient,
    SphereNotReadyError,
    Unsubscribe,
)

__all__ = [
    "EVENT_GROUP_JOINED",
    "EVENT_GROUP_KICKED",
    "EVENT_GROUP_LEFT",
    "EVENT_PAYMENT_REQUEST_INCOMING",
    "EVENT_TRANSFER_INCOMING",
    "SphereClient",
    "SphereNotReadyError",
    "Unsubscribe",
]
