"""FastAPI application main entry point."""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

load_dotenv()

from .middleware import register_error_handlers
from .routes import auth, chat, diary, engagement, posts, users, vector
from ..services.config import get_config
from ..services.seed import init_and_seed

logger = logging.getLogger(__name__)

DEV_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
    "http://127.0.0.1:5173",
]


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Lifespan handler to run startup tasks."""
    logger.info("Running startup: initializing database and local demo user...")
    try:
        init_and_seed()
        logger.info("Startup complete: database ready")
    except Exception as exc:
        logger.exception(f"Startup failed: {exc}")
        logger.error("App starting without an initialized database")
    yield


def create_app() -> FastAPI:
    config = get_config()
    app = FastAPI(
        title="Introvirght API",
        description="Mindful social journaling: posts, follows, private diary and a reflective AI companion",
        version="1.0.0",
        lifespan=lifespan,
    )

    origins = list(DEV_ORIGINS)
    if config.frontend_url and config.frontend_url not in origins:
        origins.append(config.frontend_url)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(posts.router)
    app.include_router(diary.router)
    app.include_router(chat.router)
    app.include_router(engagement.router)
    app.include_router(vector.router)

    @app.get("/health")
    async def health():
        """Liveness check."""
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "environment": get_config().environment,
        }

    return app


app = create_app()


__all__ = ["app", "create_app"]
