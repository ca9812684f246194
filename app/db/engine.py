# app/db/engine.py

import logging
from functools import lru_cache

from fastapi import Depends
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine

from app.core.config import Settings, get_settings
from app.core.errors import ConfigurationError
from app.db.schema import metadata

logger = logging.getLogger(__name__)


@lru_cache
def engine_for(url: str) -> Engine:
    connect_args = {}
    if url.startswith("sqlite"):
        # sync routes run in FastAPI's threadpool
        connect_args["check_same_thread"] = False
    # echo=True if you want to see SQL printed in the terminal
    return create_engine(url, future=True, connect_args=connect_args)


def get_engine(settings: Settings = Depends(get_settings)) -> Engine:
    if not settings.database_url:
        raise ConfigurationError("Database not configured")
    return engine_for(settings.database_url)


def init_db(engine: Engine) -> None:
    metadata.create_all(engine)


def check_database(url: str) -> str:
    """
    Run a trivial query against the store. Returns "ok" or the error text.
    """
    try:
        with engine_for(url).connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as exc:
        logger.warning("Database check failed: %s", exc)
        return str(exc)
    return "ok"
