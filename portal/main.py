# portal/main.py
from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from portal.core.config import Settings, get_settings
from portal.core.google_oauth import GoogleOAuthClient
from portal.database import Database

# Routers
from portal.routers.auth import callback_router as google_callback_router
from portal.routers.auth import router as auth_router
from portal.routers.users import router as users_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    Startup:
      - Try to connect to the database and create tables. A failure is
        logged and the server keeps running. The next request that opens
        a session tries again (see `Database.session`); store routes answer
        500 until the database is reachable.

    Shutdown (uvicorn runs this on SIGINT/SIGTERM, then exits 0):
      - Close the Google HTTP client.
      - Dispose the engine, releasing pooled connections, even if closing
        the client failed.
    """
    database: Database = app.state.database
    try:
        await run_in_threadpool(database.connect)
        logger.info("database connected")
    except Exception as e:
        logger.error(f"database connection failed: {e}")

    yield

    try:
        app.state.oauth_client.close()
    finally:
        await run_in_threadpool(database.disconnect)
        logger.info("database disconnected")


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    oauth_client: GoogleOAuthClient | None = None,
) -> FastAPI:
    """
    Build the application and wire its long-lived resources.

    The database and Google client are created here (or injected by tests)
    and exposed to handlers through `app.state`.
    """
    settings = settings or get_settings()

    app = FastAPI(title=settings.PROJECT_NAME, version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database or Database(settings.DATABASE_URL)
    app.state.oauth_client = oauth_client or GoogleOAuthClient(
        client_id=settings.GOOGLE_CLIENT_ID,
        client_secret=settings.GOOGLE_CLIENT_SECRET,
        callback_url=settings.GOOGLE_CALLBACK_URL,
    )
    if not app.state.oauth_client.configured:
        logger.warning("GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not set; Google login will fail")

    # --- CORS: the single frontend origin, cookies allowed ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.CLIENT_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(google_callback_router)
    app.include_router(auth_router)
    app.include_router(users_router)

    @app.get("/", response_class=PlainTextResponse)
    def root():
        """Liveness check; never touches the database."""
        return "hello from server"

    return app


app = create_app()


def run() -> None:
    import uvicorn

    port = get_settings().PORT
    logger.info(f"starting server on port {port}")
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
