"""FastAPI dependencies for database sessions and tenant scoping."""

from collections.abc import Callable, Iterator

from fastapi import Header
from sqlalchemy.orm import Session

from toolwright.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """Yield a request-scoped session and always close it."""

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_session_factory() -> Callable[[], Session]:
    """Session factory handed to background jobs that outlive the request."""

    return SessionLocal


def get_tenant_id(x_tenant_id: str = Header(..., min_length=1)) -> str:
    """Resolve the calling tenant from the upstream auth layer's header."""

    return x_tenant_id.strip()
