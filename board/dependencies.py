"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from board.config import Settings, get_settings
from board.kv import InMemoryKVClient, RedisKVClient, RemoteKV
from board.store import ResilientStore

logger = logging.getLogger(__name__)

_store: ResilientStore | None = None


def build_remote_client(settings: Settings) -> RemoteKV | None:
    """
    Pick the remote tier from settings; ``None`` means no remote is configured.
    """
    if settings.use_in_memory_backends:
        return InMemoryKVClient()
    if not settings.redis_url:
        return None
    return RedisKVClient(
        url=settings.redis_url,
        key_prefix=settings.redis_key_prefix,
        socket_timeout=settings.remote_timeout_seconds,
    )


def build_store(settings: Settings) -> ResilientStore:
    remote = build_remote_client(settings)
    if remote is None:
        logger.warning("No remote store configured; serving from process memory only")
    return ResilientStore(
        remote=remote, remote_timeout=settings.remote_timeout_seconds
    )


def get_store() -> ResilientStore:
    """
    Return a singleton store so the fallback tier persists across requests.
    """
    global _store
    if _store:
        return _store
    _store = build_store(get_settings())
    return _store


def set_store(store: ResilientStore | None) -> None:
    """Install (or clear, with ``None``) the process-wide store."""
    global _store
    _store = store
