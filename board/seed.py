"""
Bootstrap the fallback tier from a json-server style ``db.json`` file.

The file holds ``{"posts": [...], "comments": [...]}`` where each comment
carries the ``postId`` of its post.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, TypeVar

from board.models import POSTS_KEY, Comment, Post, comments_key
from board.store import ResilientStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class SeedData:
    posts: List[Post] = field(default_factory=list)
    comments: Dict[str, List[Comment]] = field(default_factory=dict)

    @property
    def comment_count(self) -> int:
        return sum(len(items) for items in self.comments.values())


def _stringify_ids(entry: Any) -> Any:
    # json-server hands out integer ids.
    if isinstance(entry, dict):
        entry = dict(entry)
        for key in ("id", "postId"):
            if isinstance(entry.get(key), int) and not isinstance(entry[key], bool):
                entry[key] = str(entry[key])
    return entry


def _parse_entries(
    entries: Any, parse: Callable[[Any], T], kind: str
) -> List[T]:
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise ValueError(f"seed {kind!r} must be a list")
    parsed: List[T] = []
    for index, entry in enumerate(entries):
        try:
            parsed.append(parse(_stringify_ids(entry)))
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Skipping seed %s #%d: %s", kind, index, exc)
    return parsed


def parse_seed(data: Any) -> SeedData:
    if not isinstance(data, dict):
        raise ValueError("seed file must contain a JSON object")
    posts = _parse_entries(data.get("posts"), Post.from_dict, "posts")
    posts.sort(key=lambda post: post.created_at, reverse=True)

    grouped: Dict[str, List[Comment]] = defaultdict(list)
    for comment in _parse_entries(data.get("comments"), Comment.from_dict, "comments"):
        grouped[comment.post_id].append(comment)
    return SeedData(posts=posts, comments=dict(grouped))


def load_seed(path: str | Path) -> SeedData:
    """Read and validate a seed file. Raises if the file is missing or not JSON."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return parse_seed(data)


def apply_seed(store: ResilientStore, seed: SeedData) -> None:
    """Write seed collections into the fallback tier only."""
    store.seed_fallback(POSTS_KEY, seed.posts)
    for post_id, comments in seed.comments.items():
        store.seed_fallback(comments_key(post_id), comments)
    logger.info(
        "Seeded fallback store with %d posts and %d comments",
        len(seed.posts),
        seed.comment_count,
    )


async def push_seed(store: ResilientStore, seed: SeedData) -> bool:
    """
    Write seed collections through both tiers.

    Returns True only if every collection reached the remote backend.
    """
    persisted = (await store.set_posts(seed.posts)).persisted
    for post_id, comments in seed.comments.items():
        result = await store.set_comments(post_id, comments)
        persisted = persisted and result.persisted
    return persisted
