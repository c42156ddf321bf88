"""Dialect-specific SQL for the widget metadata table.

Queries are looked up by database product (``engine.dialect.name``).
"""

from sqlalchemy import Connection

from dashgate.core.errors import PersistenceError

WIDGET_RESOURCE_TABLE = "WIDGET_RESOURCE"
TABLE_NAME_PLACEHOLDER = "{{TABLE_NAME}}"

TABLE_CHECK = "table_check"
CREATE_WIDGET_RESOURCE_TABLE = "create_widget_resource_table"
DELETE_WIDGET_BY_ID = "delete_widget_by_id"

_CREATE_TABLE = "CREATE TABLE WIDGET_RESOURCE (id VARCHAR(255) NOT NULL, PRIMARY KEY (id))"
_DELETE = "DELETE FROM WIDGET_RESOURCE WHERE id = :widget_id"

DEFAULT_QUERIES: dict[str, dict[str, str]] = {
    "sqlite": {
        TABLE_CHECK: "SELECT 1 FROM {{TABLE_NAME}} LIMIT 1",
        CREATE_WIDGET_RESOURCE_TABLE: _CREATE_TABLE,
        DELETE_WIDGET_BY_ID: _DELETE,
    },
    "postgresql": {
        TABLE_CHECK: "SELECT 1 FROM {{TABLE_NAME}} LIMIT 1",
        CREATE_WIDGET_RESOURCE_TABLE: _CREATE_TABLE,
        DELETE_WIDGET_BY_ID: _DELETE,
    },
    "mysql": {
        TABLE_CHECK: "SELECT 1 FROM {{TABLE_NAME}} LIMIT 1",
        CREATE_WIDGET_RESOURCE_TABLE: _CREATE_TABLE,
        DELETE_WIDGET_BY_ID: _DELETE,
    },
    "mariadb": {
        TABLE_CHECK: "SELECT 1 FROM {{TABLE_NAME}} LIMIT 1",
        CREATE_WIDGET_RESOURCE_TABLE: _CREATE_TABLE,
        DELETE_WIDGET_BY_ID: _DELETE,
    },
    "mssql": {
        TABLE_CHECK: "SELECT TOP 1 1 FROM {{TABLE_NAME}}",
        CREATE_WIDGET_RESOURCE_TABLE: _CREATE_TABLE,
        DELETE_WIDGET_BY_ID: _DELETE,
    },
    "oracle": {
        TABLE_CHECK: "SELECT 1 FROM {{TABLE_NAME}} WHERE ROWNUM = 1",
        CREATE_WIDGET_RESOURCE_TABLE: (
            "CREATE TABLE WIDGET_RESOURCE (id VARCHAR2(255) NOT NULL, PRIMARY KEY (id))"
        ),
        DELETE_WIDGET_BY_ID: _DELETE,
    },
}


class QueryManager:
    """Resolves named queries for the database behind a connection."""

    def __init__(self, queries: dict[str, dict[str, str]] | None = None):
        self._queries = queries if queries is not None else DEFAULT_QUERIES

    def get_query(self, connection: Connection, key: str) -> str:
        dialect = connection.dialect.name
        dialect_queries = self._queries.get(dialect)
        if dialect_queries is None:
            raise PersistenceError(f"Unsupported database type '{dialect}'.")
        try:
            return dialect_queries[key]
        except KeyError:
            raise PersistenceError(
                f"Query '{key}' is not defined for database type '{dialect}'."
            ) from None
