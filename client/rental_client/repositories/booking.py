"""Repository wrapping the booking endpoints."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from rental_client.repositories.base import BaseRepository
from rental_client.schemas.booking import Booking, BookingCreate


class BookingRepository(BaseRepository):
    async def list_mine(self) -> list[Booking]:
        response = await self.gateway.get("/bookings/my")
        items = self.as_list(self.unwrap(response), "bookings", "items")
        return [Booking.model_validate(item) for item in items]

    async def create(self, booking: BookingCreate) -> Booking:
        response = await self.gateway.post("/bookings", json=booking.to_payload())
        return Booking.model_validate(self.unwrap(response))

    async def update(self, booking_id: str, changes: dict[str, Any]) -> Booking:
        response = await self.gateway.put(
            f"/bookings/{quote(str(booking_id), safe='')}",
            json=changes,
        )
        return Booking.model_validate(self.unwrap(response))

    async def cancel(self, booking_id: str) -> None:
        await self.gateway.delete(f"/bookings/{quote(str(booking_id), safe='')}")


__all__ = ["BookingRepository"]
