"""
FastAPI application entry point for the bulletin-board backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from board.config import Settings, get_settings
from board.dependencies import get_store, set_store
from board.routes import router
from board.seed import apply_seed, load_seed
from board.store import ResilientStore
from board.timeout import TimeoutGuard

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None, store: Optional[ResilientStore] = None
) -> FastAPI:
    settings = settings or get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    if store is not None:
        set_store(store)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = get_store()
        if settings.seed_path:
            apply_seed(active, load_seed(settings.seed_path))
        yield
        close = getattr(active.remote, "close", None)
        if close is not None:
            await close()

    app = FastAPI(title="Bulletin Board Backend", version="0.1.0", lifespan=lifespan)
    app.include_router(router, prefix=settings.api_prefix)
    app.add_middleware(TimeoutGuard, timeout=settings.request_timeout_seconds)
    # Outermost, so timeout responses get CORS headers too.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list(),
        allow_methods=["GET", "POST", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type"],
    )
    return app


app = create_app()
