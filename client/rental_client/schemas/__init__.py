"""Public exports for Pydantic schemas."""

from __future__ import annotations

from .auth import AuthResult, RegistrationRequest, UserProfile, UserRole
from .bike import Bike, BikeCategory, BikeLocation, BikeQuery, BikeWrite
from .booking import Booking, BookingCreate, BookingStatus
from .notification import (
    Notification,
    NotificationType,
    map_notification,
    merge_notifications,
)

__all__ = [
    "AuthResult",
    "Bike",
    "BikeCategory",
    "BikeLocation",
    "BikeQuery",
    "BikeWrite",
    "Booking",
    "BookingCreate",
    "BookingStatus",
    "Notification",
    "NotificationType",
    "RegistrationRequest",
    "UserProfile",
    "UserRole",
    "map_notification",
    "merge_notifications",
]
