"""Repository wrapping the bike/gear listing endpoints."""

from __future__ import annotations

from urllib.parse import quote

from rental_client.repositories.base import BaseRepository
from rental_client.schemas.bike import Bike, BikeCategory, BikeQuery, BikeWrite


class BikeRepository(BaseRepository):
    """Listing, lookup and owner-side management of bikes."""

    async def list_bikes(self, query: BikeQuery | None = None) -> list[Bike]:
        params = query.to_params() if query is not None else None
        response = await self.gateway.get("/bikes", params=params)
        items = self.as_list(self.unwrap(response), "bikes", "items")
        return [Bike.model_validate(item) for item in items]

    async def nearby(
        self,
        lat: float,
        lng: float,
        *,
        radius_km: float | None = None,
    ) -> list[Bike]:
        response = await self.gateway.get(
            "/bikes/nearby",
            params={"lat": lat, "lng": lng, "radius": radius_km},
        )
        items = self.as_list(self.unwrap(response), "bikes", "items")
        return [Bike.model_validate(item) for item in items]

    async def get_bike(self, bike_id: str) -> Bike:
        response = await self.gateway.get(f"/bikes/{quote(str(bike_id), safe='')}")
        return Bike.model_validate(self.unwrap(response))

    async def categories(self) -> list[BikeCategory]:
        response = await self.gateway.get("/bikes/categories")
        items = self.as_list(self.unwrap(response), "categories", "items")
        return [BikeCategory.model_validate(item) for item in items]

    async def create_bike(self, bike: BikeWrite) -> Bike:
        response = await self.gateway.post("/bikes", json=bike.to_payload())
        return Bike.model_validate(self.unwrap(response))

    async def update_bike(self, bike_id: str, bike: BikeWrite) -> Bike:
        response = await self.gateway.put(
            f"/bikes/{quote(str(bike_id), safe='')}",
            json=bike.to_payload(),
        )
        return Bike.model_validate(self.unwrap(response))

    async def delete_bike(self, bike_id: str) -> None:
        await self.gateway.delete(f"/bikes/{quote(str(bike_id), safe='')}")


__all__ = ["BikeRepository"]
