"""
Post and comment records plus the helpers that create and patch them.

Records travel to and from the key-value backend as JSON objects with
camelCase keys, the same shape the HTTP API returns.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Mapping, Optional

POSTS_KEY = "posts"
COMMENTS_KEY_PREFIX = "comments:"

# Only these post fields may be overwritten by a patch.
PATCHABLE_FIELDS = ("likes", "comments", "shares", "liked")
COUNTER_FIELDS = ("likes", "comments", "shares")


def comments_key(post_id: str) -> str:
    if not post_id:
        raise ValueError("post_id must be a non-empty string")
    return f"{COMMENTS_KEY_PREFIX}{post_id}"


def new_id() -> str:
    """Millisecond timestamp plus a random suffix, unique under concurrent creation."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}"


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _require_str(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value:
        raise ValueError(f"{key!r} must be a non-empty string")
    return value


def _counter(data: Mapping[str, Any], key: str) -> int:
    value = data.get(key, 0)
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key!r} must be an integer")
    if value < 0:
        raise ValueError(f"{key!r} must be >= 0")
    return value


def _flag(data: Mapping[str, Any], key: str) -> bool:
    value = data.get(key, False)
    if not isinstance(value, bool):
        raise ValueError(f"{key!r} must be a boolean")
    return value


@dataclass
class Post:
    id: str
    content: str
    author: str
    created_at: str = field(default_factory=utc_now_iso)
    likes: int = 0
    comments: int = 0
    shares: int = 0
    liked: bool = False

    @classmethod
    def create(cls, content: str, author: str) -> "Post":
        return cls(id=new_id(), content=content, author=author)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Post":
        if not isinstance(data, Mapping):
            raise ValueError("post entry must be an object")
        return cls(
            id=_require_str(data, "id"),
            content=str(data.get("content", "")),
            author=str(data.get("author", "")),
            created_at=str(data.get("createdAt") or utc_now_iso()),
            likes=_counter(data, "likes"),
            comments=_counter(data, "comments"),
            shares=_counter(data, "shares"),
            liked=_flag(data, "liked"),
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "content": self.content,
            "author": self.author,
            "createdAt": self.created_at,
            "likes": self.likes,
            "comments": self.comments,
            "shares": self.shares,
            "liked": self.liked,
        }


@dataclass
class Comment:
    id: str
    post_id: str
    content: str
    author: str
    avatar: Optional[str] = None
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def create(
        cls, post_id: str, content: str, author: str, avatar: Optional[str] = None
    ) -> "Comment":
        return cls(
            id=new_id(),
            post_id=post_id,
            content=content,
            author=author,
            avatar=avatar,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Comment":
        if not isinstance(data, Mapping):
            raise ValueError("comment entry must be an object")
        avatar = data.get("avatar")
        return cls(
            id=_require_str(data, "id"),
            post_id=_require_str(data, "postId"),
            content=str(data.get("content", "")),
            author=str(data.get("author", "")),
            avatar=str(avatar) if avatar is not None else None,
            created_at=str(data.get("createdAt") or utc_now_iso()),
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "postId": self.post_id,
            "content": self.content,
            "author": self.author,
            "avatar": self.avatar,
            "createdAt": self.created_at,
        }


def apply_patch(post: Post, changes: Mapping[str, Any]) -> Post:
    """
    Return a copy of ``post`` with the allow-listed fields in ``changes`` applied.

    Keys outside ``PATCHABLE_FIELDS`` are ignored. Negative counters raise
    ``ValueError``.
    """
    updates: dict[str, Any] = {}
    for name in PATCHABLE_FIELDS:
        if name not in changes or changes[name] is None:
            continue
        if name in COUNTER_FIELDS:
            updates[name] = _counter(changes, name)
        else:
            updates[name] = _flag(changes, name)
    return replace(post, **updates)
