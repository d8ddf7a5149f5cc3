"""Engine and schema setup for the back-office order database."""

import logging
import os

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from backoffice.adapters.outbound.sqlalchemy_models import Base

logger = logging.getLogger(__name__)

_BACKOFFICE_DIR = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_DEFAULT_URL = f"sqlite:///{os.path.join(_BACKOFFICE_DIR, 'data', 'backoffice.db')}"


def _resolve_sqlite_url(url: str) -> str:
    # Relative sqlite paths are taken from the backoffice directory.
    if not url.startswith("sqlite:///") or url.startswith("sqlite:////"):
        return url
    path = url[len("sqlite:///"):]
    if path == ":memory:" or os.path.isabs(path):
        return url
    path = os.path.join(_BACKOFFICE_DIR, path)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    return f"sqlite:///{path}"


def get_engine(url: str | None = None) -> Engine:
    """Engine for *url*, else ``DATABASE_URL``, else the bundled SQLite file."""
    return create_engine(
        _resolve_sqlite_url(url or os.environ.get("DATABASE_URL") or _DEFAULT_URL)
    )


def init_db(engine: Engine | None = None) -> Engine:
    """Create the orders, references and settings tables when missing."""
    engine = engine or get_engine()
    Base.metadata.create_all(engine)
    logger.debug("Schema ready on %s", engine.url)
    return engine
