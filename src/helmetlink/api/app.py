# src/helmetlink/api/app.py
"""
FastAPI application wiring.

This file creates the `FastAPI` instance and runs the session lifecycle: a pump thread
drains the session's update queue for as long as the app is up. Endpoints live in
`helmetlink.api.routes`.
"""

from __future__ import annotations

import logging
import threading
from contextlib import asynccontextmanager

from fastapi import FastAPI
from starlette.middleware.cors import CORSMiddleware

from helmetlink.config.settings import get_settings
from helmetlink.core.logging import configure_logging

from . import routes

configure_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    session = routes.get_session()

    stop = threading.Event()
    pump = threading.Thread(
        target=session.queue.run_forever,
        args=(stop,),
        kwargs={"max_wait_seconds": settings.api.pump_interval_seconds},
        name="helmetlink-pump",
        daemon=True,
    )
    pump.start()
    session.queue.submit(session.start).result(timeout=settings.api.call_timeout_seconds)
    logger.info("Update queue pump started")

    yield

    try:
        session.queue.submit(session.stop).result(timeout=settings.api.call_timeout_seconds)
    finally:
        stop.set()
        session.queue.wake()
        pump.join(timeout=5.0)
        logger.info("Update queue pump stopped")


app = FastAPI(title="HelmetLink API", version="0.1.0", lifespan=lifespan)

cors_origins = get_settings().api.cors_origins
if cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(routes.router)
