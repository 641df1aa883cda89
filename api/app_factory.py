"""FastAPI application factory and middleware setup."""

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.segment_handlers import create_segment_router, register_error_handlers
from data_services.segment_service import build_segment_repository
from data_workers.pg_segment_repository import PGSegmentRepository
from main_configs import (
    CORS_ALLOW_CREDENTIALS,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    MAIN_APP_DESCRIPTION,
    MAIN_APP_TITLE,
    MAIN_APP_VERSION,
)

logger = logging.getLogger("LEO Segments API")


def create_app(segment_repository: Optional[PGSegmentRepository] = None) -> FastAPI:
    """
    Factory function to create and configure the FastAPI application.

    Includes:
    - CORS middleware
    - Health check endpoint
    - Segment routes and error mapping

    Args:
        segment_repository: repository to serve from. Built from
            DatabaseSettings (environment / .env) when omitted.

    Returns:
        Configured FastAPI application instance
    """
    app = FastAPI(
        title=MAIN_APP_TITLE,
        description=MAIN_APP_DESCRIPTION,
        version=MAIN_APP_VERSION,
    )

    # --------------------
    # CORS Middleware
    # --------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ALLOW_ORIGINS,
        allow_credentials=CORS_ALLOW_CREDENTIALS,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )

    # --------------------
    # Health Check
    # --------------------
    @app.get("/ping")
    def ping():
        """Health check endpoint."""
        return {"status": "ok"}

    # --------------------
    # Segments
    # --------------------
    if segment_repository is None:
        segment_repository = build_segment_repository()
    app.state.segment_repository = segment_repository

    register_error_handlers(app)
    app.include_router(create_segment_router())

    logger.info("%s %s ready", MAIN_APP_TITLE, MAIN_APP_VERSION)
    return app
