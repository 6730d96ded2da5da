"""Wiring for one user session: settings, store, API client and services."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from .availability import AvailabilityService
from .booking import BookingCache, BookingService
from .client import ApiClient
from .comparison import ComparisonStore
from .config import Settings
from .storage import KeyValueStore, open_store


@dataclass
class ClientSession:
    settings: Settings
    store: KeyValueStore
    client: ApiClient
    comparison: ComparisonStore
    availability: AvailabilityService
    bookings: BookingService

    async def aclose(self) -> None:
        await self.client.aclose()


def create_session(
    settings: Settings | None = None,
    *,
    store: KeyValueStore | None = None,
    http: httpx.AsyncClient | None = None,
) -> ClientSession:
    settings = settings or Settings()
    store = store if store is not None else open_store(settings.storage_path)
    client = ApiClient(settings, store, http=http)
    return ClientSession(
        settings=settings,
        store=store,
        client=client,
        comparison=ComparisonStore.from_settings(settings, store),
        availability=AvailabilityService(client),
        bookings=BookingService(client, BookingCache.from_settings(settings, store)),
    )
