"""
Push a json-server style db.json into the configured remote store.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from board.config import get_settings
from board.dependencies import build_store
from board.seed import load_seed, push_seed

logger = logging.getLogger(__name__)


async def _push(path: Path) -> bool:
    settings = get_settings()
    store = build_store(settings)
    if not store.remote_configured:
        logger.error("No remote store configured; set REDIS_URL")
        return False
    seed = load_seed(path)
    try:
        persisted = await push_seed(store, seed)
    finally:
        close = getattr(store.remote, "close", None)
        if close is not None:
            await close()
    logger.info(
        "Pushed %d posts and %d comments (persisted=%s)",
        len(seed.posts),
        seed.comment_count,
        persisted,
    )
    return persisted


def main() -> int:
    parser = argparse.ArgumentParser(description="Push seed data to the remote store")
    parser.add_argument(
        "path",
        type=Path,
        nargs="?",
        default=Path("db.json"),
        help="Seed file with 'posts' and 'comments' arrays",
    )
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    return 0 if asyncio.run(_push(args.path)) else 1


if __name__ == "__main__":
    raise SystemExit(main())
