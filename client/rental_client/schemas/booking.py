"""Schemas describing bookings (rentals) seen by renters and owners."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class BookingStatus(StrEnum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    ACTIVE = "active"
    COMPLETED = "completed"


class Booking(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    bike_id: str | None = Field(default=None, validation_alias=AliasChoices("bikeId", "bike_id"))
    bike_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("bikeName", "bike_name"),
    )
    renter_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("renterName", "renter_name"),
    )
    start_time: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("startTime", "startDate", "start_time"),
    )
    end_time: datetime | None = Field(
        default=None,
        validation_alias=AliasChoices("endTime", "endDate", "end_time"),
    )
    amount: float | None = None
    # Open set: the backend adds statuses faster than clients ship.
    status: str = BookingStatus.PENDING.value

    @model_validator(mode="before")
    @classmethod
    def _flatten_bike(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        bike = value.get("bike")
        if isinstance(bike, dict):
            data = dict(value)
            data.setdefault("bikeId", bike.get("id"))
            data.setdefault("bikeName", bike.get("name"))
            return data
        return value

    @field_validator("id", "bike_id", mode="before")
    @classmethod
    def _coerce_ids(cls, value: object) -> str | None:
        return None if value is None else str(value)


class BookingCreate(BaseModel):
    bike_id: str = Field(serialization_alias="bikeId")
    start_time: datetime = Field(serialization_alias="startTime")
    end_time: datetime = Field(serialization_alias="endTime")

    @model_validator(mode="after")
    def _validate_window(self) -> "BookingCreate":
        if self.end_time <= self.start_time:
            raise ValueError("Booking end time must be after the start time.")
        return self

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


__all__ = ["Booking", "BookingCreate", "BookingStatus"]
