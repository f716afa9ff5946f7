"""REST-backed repositories, one per backend resource."""

from rental_client.repositories.auth import AuthRepository
from rental_client.repositories.base import BaseRepository
from rental_client.repositories.bike import BikeRepository
from rental_client.repositories.booking import BookingRepository
from rental_client.repositories.notification import NotificationRepository

__all__ = [
    "AuthRepository",
    "BaseRepository",
    "BikeRepository",
    "BookingRepository",
    "NotificationRepository",
]
