"""FastAPI application with lifespan-managed backend client and session store."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from .api.router import api_router
from .auth.refresher import SessionRefresher
from .auth.session import SessionStore
from .autocomplete.resolver import AutocompleteResolver
from .backend.client import BackendClient
from .catalog import CategoryCache
from .config import settings
from .listings.browser import ListingBrowser
from .publish.orchestrator import PublishOrchestrator
from .web.views import router as web_router

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Shared state accessible by API endpoints
app_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    if not settings.backend_enabled:
        logger.warning("Backend anon key not configured, requests will be anonymous")

    backend = BackendClient()
    app_state["backend"] = backend

    sessions = SessionStore(backend)
    sessions.start()
    app_state["sessions"] = sessions

    app_state["categories"] = CategoryCache(backend)
    app_state["resolver"] = AutocompleteResolver(backend)
    app_state["browser"] = ListingBrowser(backend)
    app_state["publisher"] = PublishOrchestrator(backend)

    refresher = SessionRefresher(backend)
    refresher.start()
    app_state["refresher"] = refresher

    logger.info("BiciMarket started (backend=%s)", settings.backend_url)
    yield

    # Shutdown
    refresher.shutdown()
    sessions.close()
    await backend.close()
    app_state.clear()
    logger.info("BiciMarket stopped")


app = FastAPI(
    title="BiciMarket",
    description="Classifieds marketplace for bicycles",
    version="0.1.0",
    lifespan=lifespan,
)
app.include_router(api_router)
app.include_router(web_router)
