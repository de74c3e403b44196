"""
FastAPI application factory for the calendar API.

Usage:
    uvicorn api.app:app --reload --port 3001
    python run.py                               # adds the holiday refresh scheduler
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.routers import categories, events, holidays, places, preferences
from config.settings import settings


def create_app(store, lifespan=None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The EventStore is stored on app.state so routers can retrieve it via
    request.app.state.store.
    """
    app = FastAPI(
        title="Calendar API",
        version="1.0",
        lifespan=lifespan,
    )

    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register all routers under /api/v1
    PREFIX = "/api/v1"
    app.include_router(holidays.router,    prefix=PREFIX)
    app.include_router(events.router,      prefix=PREFIX)
    app.include_router(categories.router,  prefix=PREFIX)
    app.include_router(places.router,      prefix=PREFIX)
    app.include_router(preferences.router, prefix=PREFIX)

    return app


# ── Module-level app for `uvicorn api.app:app` ────────────────────────────────

def _make_default_app() -> FastAPI:
    from services.event_store import EventStore

    store = EventStore(
        years_back=settings.holiday_years_back,
        years_ahead=settings.holiday_years_ahead,
        visible_categories=settings.default_visible_categories,
        time_zone=settings.default_time_zone,
    )
    return create_app(store)


app = _make_default_app()
