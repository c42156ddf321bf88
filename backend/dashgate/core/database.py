"""Synchronous SQLAlchemy engine for the widget metadata store.

The only table is WIDGET_RESOURCE; DDL and DML are plain SQL resolved per
dialect by dashgate.dao.queries. There is no ORM layer.
"""

from functools import lru_cache

from sqlalchemy import Engine, create_engine

from dashgate.core.config import settings


@lru_cache
def get_engine() -> Engine:
    """Process-wide engine. Connections are checked out per operation."""
    return create_engine(
        settings.database.database_url_sync,
        echo=settings.database.database_echo,
        pool_pre_ping=True,
    )
