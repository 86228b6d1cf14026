# portal/database.py
import logging

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

logger = logging.getLogger(__name__)


def _engine_url(url: str) -> str:
    """Append sslmode=require to Postgres URLs that don't set it already."""
    if not url.startswith("postgres") or "sslmode=" in url:
        return url
    return url + ("&" if "?" in url else "?") + "sslmode=require"


class Database:
    """
    The one long-lived store handle.

    Built by the app factory, kept on `app.state.database`, and shared by all
    requests; each request opens its own Session through `get_session`.

    - SQLite in-memory needs StaticPool so all connections share one DB.
    - SQLite needs check_same_thread=False because FastAPI runs sync
      endpoints in a threadpool.
    - Postgres: pool_pre_ping validates pooled connections before use.
    """

    def __init__(self, url: str, *, echo: bool = False):
        self.url = url
        if url.startswith("sqlite"):
            kwargs = {"connect_args": {"check_same_thread": False}}
            if ":memory:" in url or url in ("sqlite://", "sqlite:///"):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs = {"pool_pre_ping": True}
        self.engine = create_engine(_engine_url(url), echo=echo, **kwargs)
        self.ready = False

    def connect(self) -> None:
        """
        Verify connectivity and create tables defined in SQLModel metadata
        if they do not exist.
        """
        # Register the table on the metadata before create_all()
        from portal.models import user as _user_models  # noqa: F401

        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        SQLModel.metadata.create_all(self.engine)
        self.ready = True

    def disconnect(self) -> None:
        """Close every pooled connection. Checked-out connections close on release."""
        self.engine.dispose()

    def session(self):
        # Startup could not reach the store; try again so a fresh database
        # still gets its tables once it comes up
        if not self.ready:
            try:
                self.connect()
            except Exception as exc:
                logger.warning("database still unavailable: %s", exc)
        with Session(self.engine) as session:
            yield session


def get_session(request: Request):
    """
    FastAPI dependency that yields a SQLModel Session.

    Usage:

        from fastapi import Depends

        @router.get("/example")
        def example_endpoint(session: Session = Depends(get_session)):
            ...
    """
    yield from request.app.state.database.session()
