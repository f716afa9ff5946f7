"""Notification records plus the mapping and merge rules shared by every source."""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

DEFAULT_TITLE = "New Notification"
DEFAULT_MESSAGE = "You have a new update regarding your rentals."
DEFAULT_TYPE = "general"

TYPE_TITLES: dict[str, str] = {
    "rental_request": "New Rental Request",
}


class NotificationType(StrEnum):
    """Known notification tags. The backend may send tags outside this set."""

    RENTAL_REQUEST = "rental_request"
    RENTAL_APPROVED = "rental_approved"
    RENTAL_REJECTED = "rental_rejected"
    RENTAL_CANCELLED = "rental_cancelled"
    PAYMENT = "payment"
    RIDE_COMPLETED = "ride_completed"
    GENERAL = "general"


def utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


def default_title(notification_type: str | None) -> str:
    return TYPE_TITLES.get(notification_type or "", DEFAULT_TITLE)


def _title_for(data: dict[str, Any]) -> str:
    return default_title(data.get("type"))


class Notification(BaseModel):
    """
    One user-facing notification.

    Defaults are only applied for values absent from the source payload, so
    ``model_fields_set`` tells which fields the source actually carried. The
    merge relies on that to decide which fields an incoming record overrides.
    Timestamps are always UTC-aware; an unparsable value becomes the current
    time.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    type: str = DEFAULT_TYPE
    title: str = Field(default_factory=_title_for)
    message: str = DEFAULT_MESSAGE
    created_at: datetime = Field(default_factory=utc_now, alias="createdAt")
    read: bool = False
    data: Any = None

    @field_validator("created_at", mode="before")
    @classmethod
    def _normalize_created_at(cls, value: object) -> datetime:
        return normalize_timestamp(value)

    @field_serializer("created_at")
    def _serialize_created_at(self, value: datetime) -> str:
        return to_iso_timestamp(value)

    @property
    def known_type(self) -> NotificationType | None:
        try:
            return NotificationType(self.type)
        except ValueError:
            return None


def to_iso_timestamp(value: datetime) -> str:
    """Canonical `YYYY-MM-DDTHH:MM:SS.mmmZ` form used for display and ordering."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def parse_timestamp(value: object) -> datetime | None:
    """
    Parse a timestamp in any of the shapes the backend sends.

    Accepts datetimes, ISO-8601 strings (including a trailing ``Z``) and epoch
    milliseconds. Naive values are treated as UTC. Returns None when the value
    cannot be parsed.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            return None
        if candidate.endswith(("Z", "z")):
            candidate = f"{candidate[:-1]}+00:00"
        try:
            parsed = datetime.fromisoformat(candidate)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def normalize_timestamp(value: object) -> datetime:
    """Parse the value, substituting the current time when it is missing or invalid."""
    return parse_timestamp(value) or utc_now()


def generate_notification_id() -> str:
    return str(uuid.uuid4())


def _first_present(payload: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = payload.get(key)
        if value is not None:
            return value
    return None


def map_notification(payload: Any) -> Notification:
    """
    Map a raw backend or socket payload to a Notification.

    Malformed payloads are defaulted rather than rejected: a missing id gets
    a generated one, missing display strings get generic defaults and an
    unparsable timestamp becomes "now".
    """
    source: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}

    raw_id = _first_present(source, "id", "notificationId")
    values: dict[str, Any] = {
        "id": str(raw_id) if raw_id is not None else generate_notification_id(),
        "data": source.get("data") if source.get("data") is not None else payload,
    }

    raw_type = source.get("type")
    if raw_type is not None:
        values["type"] = str(raw_type)

    title = source.get("title")
    if title is not None:
        values["title"] = str(title)

    message = _first_present(source, "message", "description")
    if message is not None:
        values["message"] = str(message)

    created_at = parse_timestamp(_first_present(source, "createdAt", "created_at", "timestamp"))
    if created_at is not None:
        values["created_at"] = created_at

    for read_key in ("read", "isRead"):
        if isinstance(source.get(read_key), bool):
            values["read"] = source[read_key]
            break

    return Notification(**values)


def merge_notifications(
    current: Iterable[Notification],
    incoming: Iterable[Notification],
) -> list[Notification]:
    """
    Reconcile two notification collections keyed by id.

    On an id collision the fields the incoming record carried win over the
    existing ones; anything else is inserted. The result is ordered newest
    first. Merging the same incoming set twice changes nothing.
    """
    by_id: dict[str, Notification] = {item.id: item for item in current}

    for item in incoming:
        existing = by_id.get(item.id)
        if existing is None:
            by_id[item.id] = item
            continue
        overrides = {name: getattr(item, name) for name in item.model_fields_set}
        by_id[item.id] = existing.model_copy(update=overrides)

    return sorted(by_id.values(), key=lambda item: item.created_at, reverse=True)


def count_unread(notifications: Iterable[Notification]) -> int:
    return sum(1 for item in notifications if not item.read)


__all__ = [
    "DEFAULT_MESSAGE",
    "DEFAULT_TITLE",
    "Notification",
    "NotificationType",
    "count_unread",
    "default_title",
    "map_notification",
    "merge_notifications",
    "normalize_timestamp",
    "parse_timestamp",
    "to_iso_timestamp",
]
