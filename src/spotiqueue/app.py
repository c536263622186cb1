"""FastAPI application factory for SpotiQueue."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from spotiqueue.common.config import get_settings
from spotiqueue.common.logging import setup_logging
from spotiqueue.common.schemas import HealthResponse

logger = logging.getLogger(__name__)


async def init_database() -> None:
    """Create tables and seed any missing runtime config defaults."""
    from spotiqueue.deps import get_config_service, get_db, get_gateway, get_spotify_connect

    db = get_db()
    await db.init()
    await db.create_all()
    async with db.get_session() as session:
        seeded = await get_config_service().seed_defaults(session)
        refresh_token = await get_spotify_connect().refresh_token(session)
    if seeded:
        logger.info("Seeded config defaults: %s", ", ".join(seeded))
    # A token stored by Spotify Connect outlives restarts
    get_gateway().set_refresh_token(refresh_token)


def create_app() -> FastAPI:
    settings = get_settings()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Startup
        await init_database()
        yield
        # Shutdown
        from spotiqueue.deps import close_clients, get_db
        await close_clients()
        await get_db().close()

    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health", response_model=HealthResponse)
    async def health():
        return HealthResponse(version=settings.api_version)

    prefix = settings.api_prefix

    # Mount routers
    from spotiqueue.configstore.router import router as config_router
    from spotiqueue.fingerprints.router import router as fingerprint_router
    from spotiqueue.admission.router import router as queue_router
    from spotiqueue.votes.router import router as vote_router
    from spotiqueue.prequeue.router import router as prequeue_router
    from spotiqueue.notifications.router import router as slack_router
    from spotiqueue.activity.router import router as activity_router
    from spotiqueue.admin.router import router as admin_router
    from spotiqueue.playback.router import router as playback_router

    app.include_router(config_router, prefix=prefix, tags=["config"])
    app.include_router(fingerprint_router, prefix=prefix, tags=["fingerprint"])
    app.include_router(queue_router, prefix=prefix, tags=["queue"])
    app.include_router(vote_router, prefix=prefix, tags=["votes"])
    app.include_router(prequeue_router, prefix=prefix, tags=["prequeue"])
    app.include_router(slack_router, prefix=prefix, tags=["slack"])
    app.include_router(activity_router, prefix=prefix, tags=["activity"])
    app.include_router(admin_router, prefix=prefix, tags=["admin"])
    app.include_router(playback_router, prefix=prefix, tags=["playback"])

    return app
