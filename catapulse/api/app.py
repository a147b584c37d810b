"""
FastAPI application factory for the Catapulse logic engine.

Exposes the engine over JSON so the editor, the preview and standalone
exports all evaluate documents with the same implementation.

Run with:
    uvicorn catapulse.api.app:app --reload
"""

import logging
import os

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from catapulse.api.routes import configure_routes, is_truthy, router

# Load environment variables from .env
load_dotenv()

# Logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""

    application = FastAPI(
        title="Catapulse Process Engine",
        description="Conditional logic engine for multi-stage process forms",
        version="0.1.0",
    )

    # CORS: allow all origins in development
    allowed_origins = os.getenv("CORS_ALLOWED_ORIGINS", "*").split(",")
    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    strict_references = is_truthy(os.getenv("CATAPULSE_STRICT_REFERENCES"), default=False)
    configure_routes(strict_references=strict_references)
    application.include_router(router, prefix="/api")

    @application.on_event("startup")
    async def on_startup():
        logger.info("Catapulse engine API starting up")
        logger.info("CORS origins: %s", ",".join(allowed_origins))
        logger.info("Strict reference checking: %s", strict_references)

    return application


# Create the app instance (used by uvicorn)
app = create_app()
