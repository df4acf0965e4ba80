import logging
from datetime import datetime, UTC

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

from aegis.config import Settings

log = logging.getLogger(__name__)

Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(UTC)


def _mask(url: str) -> str:
    if "@" not in url or "://" not in url:
        return url
    scheme, rest = url.split("://", 1)
    creds, tail = rest.split("@", 1)
    return f"{scheme}://{creds.split(':', 1)[0]}:***@{tail}"


class AppContext:
    """Process-wide resources shared by every request of one app instance.

    Built once by ``create_app`` and reachable from request dependencies via
    ``request.app.state.context``.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        url = settings.database_url
        # Only apply sqlite-specific connect_args when using sqlite
        connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
        self.engine = create_engine(url, connect_args=connect_args, pool_pre_ping=True)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        log.info("Database: %s", _mask(url))

    def create_tables(self) -> None:
        # model modules register their tables on Base when imported
        from aegis.models import task, user  # noqa: F401

        Base.metadata.create_all(bind=self.engine)

    def close(self) -> None:
        self.engine.dispose()
        log.info("Database connection closed")


def get_settings(request: Request) -> Settings:
    return request.app.state.context.settings


def get_db(request: Request):
    db = request.app.state.context.session_factory()
    try:
        yield db
    finally:
        db.close()
