"""
Calendar backend — local runner.

Starts the FastAPI app plus an APScheduler job that recomputes the holiday
window shortly after midnight, so the rolling [year-1, year+2] range moves
forward on January 1st without a restart.

Usage:
    python run.py
    PORT=3001 python run.py      # override port (default from CALENDAR_PORT)
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys

import structlog
import uvicorn

from config.settings import settings

# ── Logging setup ──────────────────────────────────────────────────────────────
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.dev.ConsoleRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    stream=sys.stdout,
)

log = structlog.get_logger("calendar.run")


async def main() -> None:
    log.info("calendar runner starting")

    from api.app import create_app
    from services.event_store import EventStore

    store = EventStore(
        years_back=settings.holiday_years_back,
        years_ahead=settings.holiday_years_ahead,
        visible_categories=settings.default_visible_categories,
        time_zone=settings.default_time_zone,
    )
    start_year, end_year = store.holiday_year_range()
    log.info("holidays loaded", start_year=start_year, end_year=end_year, events=len(store.events))

    app = create_app(store)

    # ── Scheduler ─────────────────────────────────────────────────────────────
    from apscheduler.schedulers.asyncio import AsyncIOScheduler

    scheduler = AsyncIOScheduler()

    async def _refresh_holidays() -> None:
        store.refresh_holidays()
        start, end = store.holiday_year_range()
        log.info("holiday window refreshed", start_year=start, end_year=end)

    scheduler.add_job(
        _refresh_holidays, trigger="cron", hour=0, minute=5,
        id="holiday_refresh", name="Recompute holiday window",
    )
    scheduler.start()
    log.info("scheduler started", cron="00:05 local")

    # ── Start uvicorn in the same event loop ───────────────────────────────────
    port = int(os.environ.get("PORT", settings.port))
    config = uvicorn.Config(
        app,
        host="0.0.0.0",
        port=port,
        log_level=settings.log_level.lower(),
        loop="none",
    )
    server = uvicorn.Server(config)
    log.info("server starting", port=port)

    try:
        await server.serve()
    finally:
        scheduler.shutdown(wait=False)
        log.info("calendar runner stopped")


if __name__ == "__main__":
    asyncio.run(main())
