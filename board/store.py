"""
Two-tier storage for posts and comment collections.

Every write replaces the local fallback snapshot first and then tries the
remote key-value backend. Reads try the remote backend and fall back to the
local snapshot on any failure, so backend trouble never reaches the caller;
it shows up only in the ``source`` of a read and the ``persisted`` flag of a
write.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Generic, Mapping, Optional, Sequence, TypeVar

from board.fallback import FallbackStore
from board.kv import RemoteKV
from board.models import POSTS_KEY, Comment, Post, comments_key

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Tier(str, Enum):
    REMOTE = "remote"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class ReadResult(Generic[T]):
    value: list[T]
    source: Tier


@dataclass(frozen=True)
class WriteResult:
    # success: the local snapshot was replaced. persisted: the remote write went through.
    success: bool
    persisted: bool


class MalformedPayloadError(ValueError):
    """Raised when a stored value is not a well-formed collection."""


def encode_collection(items: Sequence[Any]) -> str:
    return json.dumps([item.as_dict() for item in items])


def decode_collection(
    raw: Optional[str], parse: Callable[[Mapping[str, Any]], T]
) -> list[T]:
    """Decode a serialized collection; a missing value is an empty collection."""
    if raw is None:
        return []
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"invalid JSON: {exc}") from exc
    if not isinstance(data, list):
        raise MalformedPayloadError(f"expected a list, got {type(data).__name__}")
    try:
        return [parse(entry) for entry in data]
    except (KeyError, TypeError, ValueError) as exc:
        raise MalformedPayloadError(f"invalid entry: {exc}") from exc


class ResilientStore:
    """
    Posts/comments store composed of an optional remote tier and a local fallback.

    Constructed once per process and shared by all requests. ``remote`` may be
    ``None``, which behaves like a backend that is always down except that no
    attempt is made. Each operation calls the remote at most once and never
    retries.
    """

    def __init__(
        self,
        remote: Optional[RemoteKV] = None,
        fallback: Optional[FallbackStore] = None,
        remote_timeout: Optional[float] = 2.0,
    ):
        self.remote = remote
        self.fallback = fallback if fallback is not None else FallbackStore()
        self.remote_timeout = remote_timeout
        # Advisory only; every operation still tries the remote first.
        self._remote_reachable = remote is not None

    @property
    def remote_configured(self) -> bool:
        return self.remote is not None

    @property
    def remote_reachable(self) -> bool:
        return self._remote_reachable

    async def get_posts(self) -> ReadResult[Post]:
        return await self._read(POSTS_KEY, Post.from_dict)

    async def set_posts(self, posts: Sequence[Post]) -> WriteResult:
        return await self._write(POSTS_KEY, posts)

    async def get_comments(self, post_id: str) -> ReadResult[Comment]:
        return await self._read(comments_key(post_id), Comment.from_dict)

    async def set_comments(
        self, post_id: str, comments: Sequence[Comment]
    ) -> WriteResult:
        return await self._write(comments_key(post_id), comments)

    async def delete_comments_for(self, post_id: str) -> None:
        """Best-effort removal of a post's comment collection from both tiers."""
        key = comments_key(post_id)
        self.fallback.delete(key)
        if self.remote is None:
            return
        try:
            await self._call_remote(self.remote.delete(key))
        except Exception as exc:
            self._record_failure("delete", key, exc)
        else:
            self._remote_reachable = True

    def fallback_size(self) -> int:
        """Number of posts in the local fallback snapshot; 0 if it is unreadable."""
        try:
            return len(decode_collection(self.fallback.get(POSTS_KEY), Post.from_dict))
        except MalformedPayloadError:
            return 0

    def seed_fallback(self, key: str, items: Sequence[Any]) -> None:
        """Replace a fallback snapshot without touching the remote tier."""
        self.fallback.set(key, encode_collection(items))

    async def _read(
        self, key: str, parse: Callable[[Mapping[str, Any]], T]
    ) -> ReadResult[T]:
        if self.remote is not None:
            try:
                raw = await self._call_remote(self.remote.get(key))
                value = decode_collection(raw, parse)
            except Exception as exc:
                self._record_failure("read", key, exc)
            else:
                self._remote_reachable = True
                logger.debug("Read %s from remote (%d items)", key, len(value))
                return ReadResult(value=value, source=Tier.REMOTE)
        return ReadResult(value=self._read_fallback(key, parse), source=Tier.FALLBACK)

    async def _write(self, key: str, items: Sequence[Any]) -> WriteResult:
        payload = encode_collection(items)
        self.fallback.set(key, payload)
        if self.remote is None:
            return WriteResult(success=True, persisted=False)
        try:
            await self._call_remote(self.remote.set(key, payload))
        except Exception as exc:
            self._record_failure("write", key, exc)
            return WriteResult(success=True, persisted=False)
        self._remote_reachable = True
        logger.debug("Wrote %s to remote (%d items)", key, len(items))
        return WriteResult(success=True, persisted=True)

    def _read_fallback(
        self, key: str, parse: Callable[[Mapping[str, Any]], T]
    ) -> list[T]:
        raw = self.fallback.get(key)
        try:
            return decode_collection(raw, parse)
        except MalformedPayloadError:
            logger.exception("Discarding malformed fallback snapshot for %s", key)
            self.fallback.delete(key)
            return []

    async def _call_remote(self, call: Awaitable[T]) -> T:
        if self.remote_timeout is None or self.remote_timeout <= 0:
            return await call
        return await asyncio.wait_for(call, timeout=self.remote_timeout)

    def _record_failure(self, op: str, key: str, exc: BaseException) -> None:
        self._remote_reachable = False
        if isinstance(exc, asyncio.TimeoutError):
            logger.warning(
                "Remote %s of %s timed out after %ss; using fallback",
                op,
                key,
                self.remote_timeout,
            )
        else:
            logger.warning(
                "Remote %s of %s failed (%s: %s); using fallback",
                op,
                key,
                type(exc).__name__,
                exc,
            )
