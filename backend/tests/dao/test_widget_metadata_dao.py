"""Tests for WidgetMetadataDao against a throwaway SQLite database."""

import logging
from unittest.mock import MagicMock

import pytest
from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError

from dashgate.core.errors import ErrorKind, PersistenceError
from dashgate.dao import widget_metadata_dao
from dashgate.dao.queries import (
    CREATE_WIDGET_RESOURCE_TABLE,
    DEFAULT_QUERIES,
    DELETE_WIDGET_BY_ID,
    TABLE_CHECK,
    QueryManager,
)
from dashgate.dao.widget_metadata_dao import WidgetMetadataDao


# ── Helpers ──────────────────────────────────────────────────────────────


def _record_statements(engine) -> list[str]:
    statements: list[str] = []

    @event.listens_for(engine, "before_cursor_execute")
    def _record(conn, cursor, statement, parameters, context, executemany):
        statements.append(statement)

    return statements


def _insert_widget(engine, widget_id: str) -> None:
    with engine.begin() as connection:
        connection.execute(
            text("INSERT INTO WIDGET_RESOURCE (id) VALUES (:id)"), {"id": widget_id}
        )


def _widget_ids(engine) -> list[str]:
    with engine.connect() as connection:
        return [row[0] for row in connection.execute(text("SELECT id FROM WIDGET_RESOURCE"))]


# ── init_table ───────────────────────────────────────────────────────────


def test_init_table_creates_table_once(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine)
    statements = _record_statements(sqlite_engine)

    assert dao.init_table() is True
    assert dao.init_table() is False

    creates = [s for s in statements if s.startswith("CREATE TABLE")]
    assert len(creates) == 1
    assert _widget_ids(sqlite_engine) == []


def test_init_table_leaves_existing_rows_alone(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine)
    dao.init_table()
    _insert_widget(sqlite_engine, "SalesChart")

    assert dao.init_table() is False
    assert _widget_ids(sqlite_engine) == ["SalesChart"]


def test_failed_create_is_rolled_back_and_raised(sqlite_engine):
    queries = {"sqlite": {**DEFAULT_QUERIES["sqlite"], CREATE_WIDGET_RESOURCE_TABLE: "CREATE TABLE ("}}
    dao = WidgetMetadataDao(sqlite_engine, QueryManager(queries))

    with pytest.raises(PersistenceError) as exc_info:
        dao.init_table()

    assert exc_info.value.kind is ErrorKind.PERSISTENCE
    assert exc_info.value.message == "Unable to create the 'WIDGET_RESOURCE' table."
    assert isinstance(exc_info.value.__cause__, OperationalError)
    assert sqlite_engine.pool.checkedout() == 0


def test_failing_existence_check_means_table_is_absent(sqlite_engine):
    queries = {"sqlite": {**DEFAULT_QUERIES["sqlite"], TABLE_CHECK: "SELECT * FROM nowhere_{{TABLE_NAME}}"}}
    dao = WidgetMetadataDao(sqlite_engine, QueryManager(queries))

    assert dao.init_table() is True
    assert _widget_ids(sqlite_engine) == []


def test_unsupported_database_is_rejected(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine, QueryManager({"postgresql": DEFAULT_QUERIES["postgresql"]}))

    with pytest.raises(PersistenceError, match="Unsupported database type 'sqlite'"):
        dao.init_table()

    assert sqlite_engine.pool.checkedout() == 0


# ── delete ───────────────────────────────────────────────────────────────


def test_delete_removes_the_row(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine)
    dao.init_table()
    _insert_widget(sqlite_engine, "SalesChart")
    _insert_widget(sqlite_engine, "AreaChart")

    assert dao.delete("SalesChart") == 1
    assert _widget_ids(sqlite_engine) == ["AreaChart"]


def test_delete_of_missing_id_is_a_noop(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine)
    dao.init_table()

    assert dao.delete("ghost") == 0


def test_delete_binds_the_id_as_a_parameter(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine)
    dao.init_table()
    _insert_widget(sqlite_engine, "SalesChart")

    assert dao.delete("x' OR '1'='1") == 0
    assert _widget_ids(sqlite_engine) == ["SalesChart"]


def test_delete_failure_is_raised_and_connection_returned(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine)  # table never created

    with pytest.raises(PersistenceError) as exc_info:
        dao.delete("SalesChart")

    assert exc_info.value.message == "Cannot delete widget id: 'SalesChart'."
    assert sqlite_engine.pool.checkedout() == 0


def test_many_operations_do_not_leak_connections(sqlite_engine):
    dao = WidgetMetadataDao(sqlite_engine)
    for i in range(20):
        dao.init_table()
        dao.delete(f"w{i}")

    assert sqlite_engine.pool.checkedout() == 0


# ── Cleanup helpers ──────────────────────────────────────────────────────


def test_rollback_failure_is_logged_not_raised(caplog):
    transaction = MagicMock()
    transaction.rollback.side_effect = OperationalError("ROLLBACK", {}, Exception("gone"))

    with caplog.at_level(logging.ERROR, logger=widget_metadata_dao.__name__):
        widget_metadata_dao._rollback_quietly(transaction)

    assert "rolling back" in caplog.text


def test_close_failure_is_logged_not_raised(caplog):
    connection = MagicMock()
    connection.close.side_effect = OperationalError("CLOSE", {}, Exception("gone"))

    with caplog.at_level(logging.ERROR, logger=widget_metadata_dao.__name__):
        widget_metadata_dao._close_quietly(connection)

    assert "closing DB connection" in caplog.text


# ── QueryManager ─────────────────────────────────────────────────────────


@pytest.mark.parametrize("dialect", sorted(DEFAULT_QUERIES))
def test_every_dialect_defines_every_query(dialect):
    assert set(DEFAULT_QUERIES[dialect]) == {
        TABLE_CHECK,
        CREATE_WIDGET_RESOURCE_TABLE,
        DELETE_WIDGET_BY_ID,
    }
    assert "{{TABLE_NAME}}" in DEFAULT_QUERIES[dialect][TABLE_CHECK]


def test_unknown_query_key_is_rejected(sqlite_engine):
    with sqlite_engine.connect() as connection:
        with pytest.raises(PersistenceError, match="not defined"):
            QueryManager().get_query(connection, "drop_everything")
