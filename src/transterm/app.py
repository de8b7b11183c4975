"""FastAPI application for the TransTerm glossary service."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI

from .http_rpc import router as rpc_router
from .logging_setup import configure_logging
from .persistence import get_store
from .settings import settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    configure_logging()
    store = get_store()
    logger.info("TransTerm ready (backend=%s)", settings.backend)
    yield
    store.close()


app = FastAPI(title="TransTerm", version="0.1.0", lifespan=lifespan)
app.include_router(rpc_router)


@app.get("/health")
def health() -> dict[str, Any]:
    return {
        "status": "ok",
        "backend": settings.backend,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
