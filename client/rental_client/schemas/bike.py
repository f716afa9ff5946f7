"""Schemas describing bikes, gear categories and listing filters."""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


class BikeLocation(BaseModel):
    model_config = ConfigDict(extra="ignore")

    lat: float = Field(default=0.0, validation_alias=AliasChoices("lat", "latitude"))
    lng: float = Field(default=0.0, validation_alias=AliasChoices("lng", "longitude"))
    city: str = ""
    state: str = ""


class Bike(BaseModel):
    """
    Listing as shown on the map and detail pages.

    The backend is inconsistent about field names across endpoints, so the
    model accepts the known aliases and fills display defaults.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str
    name: str = "Unknown bike"
    location: BikeLocation = Field(default_factory=BikeLocation)
    price_per_day: float = Field(
        default=0.0,
        alias="pricePerDay",
        validation_alias=AliasChoices("pricePerDay", "rentAmount", "price_per_day"),
    )
    category: str = "General"
    available: bool = True
    images: list[str] = Field(default_factory=list)
    condition: str | None = Field(
        default=None,
        validation_alias=AliasChoices("condition", "bikeCondition"),
    )
    reviews: int | None = Field(
        default=None,
        validation_alias=AliasChoices("reviews", "reviewCount"),
    )
    rating: float | None = Field(
        default=None,
        validation_alias=AliasChoices("rating", "averageRating"),
    )

    @model_validator(mode="before")
    @classmethod
    def _flatten_nested(cls, value: Any) -> Any:
        if not isinstance(value, dict):
            return value
        data = dict(value)
        category = data.get("category")
        if isinstance(category, dict):
            data["category"] = category.get("name") or "General"
        if "images" not in data:
            owner = data.get("owner")
            if isinstance(owner, dict) and isinstance(owner.get("images"), list):
                data["images"] = owner["images"]
        if data.get("location") is None:
            data.pop("location", None)
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str:
        return "" if value is None else str(value)


class BikeCategory(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str
    sub_categories: list[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices("subCategories", "sub_categories"),
    )

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: object) -> str | None:
        return None if value is None else str(value)


class BikeQuery(BaseModel):
    """Filters for the listing endpoint; unset filters are not sent."""

    lat: float | None = None
    lng: float | None = None
    category: str | None = None
    sub_category: str | None = Field(default=None, serialization_alias="subCategory")
    search: str | None = None

    def to_params(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class BikeWrite(BaseModel):
    """Payload for creating or editing a listing."""

    name: str = Field(min_length=1)
    price_per_day: float = Field(gt=0, serialization_alias="pricePerDay")
    category: str | None = None
    condition: str | None = None
    description: str | None = None
    location: BikeLocation | None = None
    images: list[str] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


__all__ = ["Bike", "BikeCategory", "BikeLocation", "BikeQuery", "BikeWrite"]
