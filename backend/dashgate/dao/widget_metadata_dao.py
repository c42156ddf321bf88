"""Widget metadata DAO for the WIDGET_RESOURCE table.

Every operation checks out its own connection and returns it on every exit
path. Writes run in an explicit transaction: commit on success, best-effort
rollback on failure. Rollback and close failures are logged, never raised,
so they can not hide the error that caused them.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Connection, Engine, text
from sqlalchemy.exc import SQLAlchemyError

from dashgate.core.errors import PersistenceError
from dashgate.core.metrics import widget_metadata_operations_total
from dashgate.dao.queries import (
    CREATE_WIDGET_RESOURCE_TABLE,
    DELETE_WIDGET_BY_ID,
    TABLE_CHECK,
    TABLE_NAME_PLACEHOLDER,
    WIDGET_RESOURCE_TABLE,
    QueryManager,
)

logger = logging.getLogger(__name__)


class WidgetMetadataDao:
    def __init__(self, engine: Engine, query_manager: QueryManager | None = None):
        self._engine = engine
        self._query_manager = query_manager or QueryManager()

    def init_table(self) -> bool:
        """Create WIDGET_RESOURCE unless it already exists.

        Returns:
            True if the table was created by this call.

        Raises:
            PersistenceError: the CREATE TABLE failed (and was rolled back).
        """
        if self._table_exists(WIDGET_RESOURCE_TABLE):
            return False
        self._create_widget_resource_table()
        return True

    def delete(self, widget_id: str) -> int:
        """Delete one widget row by id. A missing id is not an error.

        Returns:
            Number of rows deleted (0 or 1).
        """
        query = None
        with self._connect() as connection:
            query = self._query_manager.get_query(connection, DELETE_WIDGET_BY_ID)
            transaction = connection.begin()
            try:
                deleted = connection.execute(text(query), {"widget_id": widget_id}).rowcount
                transaction.commit()
            except SQLAlchemyError as e:
                _rollback_quietly(transaction)
                widget_metadata_operations_total.labels(
                    operation="delete", status="error"
                ).inc()
                logger.debug("Failed to execute SQL query %s", query)
                raise PersistenceError(f"Cannot delete widget id: '{widget_id}'.") from e

        widget_metadata_operations_total.labels(operation="delete", status="ok").inc()
        return deleted

    def _create_widget_resource_table(self) -> None:
        query = None
        with self._connect() as connection:
            query = self._query_manager.get_query(
                connection, CREATE_WIDGET_RESOURCE_TABLE
            )
            transaction = connection.begin()
            try:
                connection.execute(text(query))
                transaction.commit()
            except SQLAlchemyError as e:
                _rollback_quietly(transaction)
                widget_metadata_operations_total.labels(
                    operation="create_table", status="error"
                ).inc()
                logger.debug("Failed to execute SQL query %s", query)
                raise PersistenceError(
                    f"Unable to create the '{WIDGET_RESOURCE_TABLE}' table."
                ) from e

        widget_metadata_operations_total.labels(
            operation="create_table", status="ok"
        ).inc()
        logger.info("Created table %s", WIDGET_RESOURCE_TABLE)

    def _table_exists(self, table_name: str) -> bool:
        """Probe the table with a dialect-specific query; any DB error means absent."""
        query = None
        with self._connect() as connection:
            query = self._query_manager.get_query(connection, TABLE_CHECK).replace(
                TABLE_NAME_PLACEHOLDER, table_name
            )
            try:
                connection.execute(text(query))
                return True
            except SQLAlchemyError as e:
                _rollback_quietly(connection)
                logger.debug(
                    "Table '%s' assumed to not exist since its existence check query %s "
                    "resulted in exception %s.",
                    table_name,
                    query,
                    e,
                )
                return False

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        connection = self._engine.connect()
        try:
            yield connection
        finally:
            _close_quietly(connection)


def _rollback_quietly(target) -> None:
    """Roll back a Transaction or Connection, logging (not raising) failures."""
    try:
        target.rollback()
    except SQLAlchemyError:
        logger.error("An error occurred when rolling back DB connection.", exc_info=True)


def _close_quietly(connection: Connection) -> None:
    try:
        connection.close()
    except SQLAlchemyError:
        logger.error("An error occurred when closing DB connection.", exc_info=True)
