from __future__ import annotations

from collections.abc import Callable
from typing import Any

import httpx
from supabase import AsyncClient, PostgrestAPIError, acreate_client

from weddingops.domain.collections import get_collection

CHANGES_CHANNEL = "db-changes"


class RemoteError(RuntimeError):
    pass


class RemoteClient:
    """Row-level access to the hosted backend.

    One instance is built at startup and handed to the store and the auth
    adapter; `close()` releases the realtime channels it opened.
    """

    def __init__(self, client: AsyncClient) -> None:
        self.client = client
        self._channels: list[Any] = []

    @classmethod
    async def connect(cls, url: str, anon_key: str) -> RemoteClient:
        return cls(await acreate_client(url, anon_key))

    @property
    def auth(self):
        return self.client.auth

    async def list(self, collection: str) -> list[dict[str, Any]]:
        spec = get_collection(collection)
        query = self.client.table(spec.name).select("*").order(spec.order_column, desc=True)
        response = await self._execute(query)
        return list(response.data or [])

    async def insert(self, collection: str, row: dict[str, Any]) -> dict[str, Any]:
        response = await self._execute(self.client.table(collection).insert(row))
        if not response.data:
            raise RemoteError(f"Insert into {collection} returned no row.")
        return response.data[0]

    async def update(self, collection: str, key: str, row: dict[str, Any]) -> dict[str, Any]:
        query = self.client.table(collection).update(row).eq(key, row[key])
        response = await self._execute(query)
        if not response.data:
            raise RemoteError(f"{collection} {row[key]} was not found or is not writable.")
        return response.data[0]

    async def delete(self, collection: str, key: str, record_id: str) -> bool:
        await self._execute(self.client.table(collection).delete().eq(key, record_id))
        return True

    async def subscribe(self, callback: Callable[[dict[str, Any]], None]) -> Any:
        """Listen to every insert/update/delete in the public schema."""
        channel = self.client.channel(CHANGES_CHANNEL)
        channel.on_postgres_changes("*", schema="public", callback=callback)
        await channel.subscribe()
        self._channels.append(channel)
        return channel

    async def unsubscribe(self, channel: Any) -> None:
        if channel in self._channels:
            self._channels.remove(channel)
        await self.client.remove_channel(channel)

    async def close(self) -> None:
        for channel in list(self._channels):
            await self.unsubscribe(channel)

    async def _execute(self, query):
        try:
            return await query.execute()
        except PostgrestAPIError as exc:
            raise RemoteError(exc.message or str(exc)) from exc
        except httpx.HTTPError as exc:
            raise RemoteError(f"Backend request failed: {exc}") from exc
