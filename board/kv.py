"""
Key-value client abstraction for the remote storage tier.

Supports an in-memory implementation for tests/local runs and a Redis-backed
implementation for production.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Protocol

import redis.asyncio as redis


class RemoteKV(Protocol):
    """Minimal key-value interface the store needs from the remote backend."""

    async def get(self, key: str) -> Optional[str]:
        ...

    async def set(self, key: str, value: str) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...


@dataclass
class InMemoryKVClient:
    """Dict-backed key-value client for testing/dev."""

    items: dict[str, str] = field(default_factory=dict)

    async def get(self, key: str) -> Optional[str]:
        return self.items.get(key)

    async def set(self, key: str, value: str) -> None:
        self.items[key] = value

    async def delete(self, key: str) -> None:
        self.items.pop(key, None)


@dataclass
class RedisKVClient:
    """Redis-backed key-value client storing each collection under one string key."""

    url: str
    key_prefix: str = "board:"
    socket_timeout: Optional[float] = 2.0

    def __post_init__(self):
        self.client = redis.Redis.from_url(
            self.url,
            socket_timeout=self.socket_timeout,
            socket_connect_timeout=self.socket_timeout,
            decode_responses=True,
        )

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    async def get(self, key: str) -> Optional[str]:
        return await self.client.get(self._key(key))

    async def set(self, key: str, value: str) -> None:
        await self.client.set(self._key(key), value)

    async def delete(self, key: str) -> None:
        await self.client.delete(self._key(key))

    async def close(self) -> None:
        await self.client.aclose()
