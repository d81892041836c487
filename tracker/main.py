# tracker/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import settings
from .logging_setup import setup_logging
from .services.store import DataStore, close_store, init_store

from .api import data as data_api
from .api import sync as sync_api
from .api import entities as entities_api

logger = logging.getLogger(__name__)


def create_app(store: Optional[DataStore] = None) -> FastAPI:
    """
    Build the API application.

    Without an explicit store, one is built from settings at startup and
    resolved remote -> local -> sample data.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        active = init_store(store)
        if store is None:
            setup_logging(settings)
            try:
                active.remote.create_tables()
            except SQLAlchemyError as e:
                # initialize() falls back to local data
                logger.warning("Could not provision remote tables: %s", e)
            await active.initialize()
        yield
        close_store()

    app = FastAPI(title="Manufacturing Project Tracker", lifespan=lifespan)

    @app.exception_handler(RequestValidationError)
    async def request_validation_error(request: Request, exc: RequestValidationError):
        # same {field, message} shape as store validation errors
        err = exc.errors()[0]
        loc = [str(p) for p in err["loc"] if p != "body"]
        detail = {"field": ".".join(loc) or "body", "message": err["msg"]}
        return JSONResponse(status_code=422, content={"detail": detail})

    # Include API routers
    app.include_router(data_api.router)
    app.include_router(sync_api.router)
    app.include_router(entities_api.router)

    @app.get("/")
    def root():
        return {"app": "tracker", "status": "/api/data/status"}

    return app


app = create_app()
