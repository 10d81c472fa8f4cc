"""
Envelope store SQL: composition, conditional writes and schema DDL.

No database is needed; queries are captured before execution and rendered
with as_string(None).
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from uuid import uuid4

import pytest
from psycopg import sql

from config import DatabaseConfig
from core.models import EnvelopeStatus, NewEnvelopeEvent
from core.models.enums import EventType
from exceptions import DatabaseError
from infrastructure.cluster_lock import PostgreSQLClusterLockRepository
from infrastructure.database_initializer import DatabaseInitializer, _ddl_steps
from infrastructure.envelopes import PostgreSQLEnvelopeRepository


class RecordingCursor:
    """Cursor stand-in that records statements and reports a fixed rowcount."""

    def __init__(self, rowcount=1):
        self.rowcount = rowcount
        self.statements = []

    def execute(self, query, params=None):
        self.statements.append((query.as_string(None), params))

    def fetchone(self):
        return {}


@pytest.fixture
def db_config():
    return DatabaseConfig(user="router", db_schema="blob_router")


@pytest.fixture
def captured(monkeypatch):
    """Replace query execution on every PostgreSQL repository with a recorder."""
    calls = []

    def fake_execute(self, query, params=None, fetch=None):
        if not isinstance(query, sql.Composable):
            raise TypeError("not composed")
        calls.append((query.as_string(None), params, fetch))
        return [] if fetch == 'all' else None

    monkeypatch.setattr(PostgreSQLEnvelopeRepository, "_execute_query", fake_execute)
    monkeypatch.setattr(PostgreSQLClusterLockRepository, "_execute_query", fake_execute)
    return calls


def _transaction_with(monkeypatch, cursor):
    @contextmanager
    def fake_transaction(self):
        yield cursor

    monkeypatch.setattr(PostgreSQLEnvelopeRepository, "_transaction", fake_transaction)


EVENT = NewEnvelopeEvent(type=EventType.DISPATCHED)


class TestSQLComposition:

    def test_table_names_are_schema_qualified(self, db_config):
        repo = PostgreSQLEnvelopeRepository(config=db_config)
        assert repo._table("envelopes").as_string(None) == '"blob_router"."envelopes"'

    def test_hostile_schema_name_is_quoted(self):
        repo = PostgreSQLEnvelopeRepository(config=DatabaseConfig(user="u", db_schema="x; DROP TABLE y;--"))
        rendered = repo._table("envelopes").as_string(None)
        assert rendered.startswith('"x; DROP TABLE y;--"')

    def test_plain_string_queries_are_rejected(self, db_config):
        repo = PostgreSQLEnvelopeRepository(config=db_config)
        with pytest.raises(TypeError):
            repo._execute_query("SELECT 1")

    def test_invalid_fetch_mode(self, db_config):
        repo = PostgreSQLEnvelopeRepository(config=db_config)
        with pytest.raises(ValueError):
            repo._execute_query(sql.SQL("SELECT 1"), fetch="many")


class TestEnvelopeQueries:

    def test_find_last_orders_newest_first(self, db_config, captured):
        PostgreSQLEnvelopeRepository(config=db_config).find_last("a.zip", "bulkscan")

        query, params, fetch = captured[0]
        assert '"blob_router"."envelopes"' in query
        assert "ORDER BY created_at DESC" in query
        assert "LIMIT 1" in query
        assert params == ("a.zip", "bulkscan")
        assert fetch == "one"

    def test_find_by_status_adds_only_given_filters(self, db_config, captured):
        repo = PostgreSQLEnvelopeRepository(config=db_config)

        repo.find_by_status(EnvelopeStatus.DISPATCHED)
        repo.find_by_status(EnvelopeStatus.DISPATCHED, container="bulkscan", is_deleted=False)

        assert "container" not in captured[0][0].split("WHERE")[1]
        assert captured[0][1] == ("DISPATCHED",)
        assert "status = %s AND container = %s AND is_deleted = %s" in captured[1][0]
        assert captured[1][1] == ("DISPATCHED", "bulkscan", False)

    def test_incomplete_envelopes_are_created_before_cutoff(self, db_config, captured):
        cutoff = datetime(2025, 3, 1, tzinfo=timezone.utc)
        PostgreSQLEnvelopeRepository(config=db_config).find_incomplete_before(cutoff)

        query, params, _ = captured[0]
        assert "status = %s AND created_at < %s" in query
        assert params == ("CREATED", cutoff)

    def test_rejected_pending_notification_joins_latest_rejection(self, db_config, captured):
        PostgreSQLEnvelopeRepository(config=db_config).find_rejected_pending_notification()

        query, params, _ = captured[0]
        assert "DISTINCT ON (e.id)" in query
        assert '"blob_router"."envelope_events"' in query
        assert "e.pending_notification = TRUE" in query
        assert params == ("REJECTED", "REJECTED")


class TestConditionalWrites:

    def test_status_update_is_compare_and_set(self, db_config, monkeypatch):
        cursor = RecordingCursor(rowcount=1)
        _transaction_with(monkeypatch, cursor)
        envelope_id = uuid4()

        updated = PostgreSQLEnvelopeRepository(config=db_config).update_status(
            envelope_id, EnvelopeStatus.CREATED, EnvelopeStatus.DISPATCHED, EVENT
        )

        assert updated is True
        update_sql, params = cursor.statements[0]
        assert "WHERE id = %s AND status = %s" in update_sql
        assert params[-2:] == (envelope_id, "CREATED")
        assert "clock_timestamp()" in cursor.statements[1][0]

    def test_status_update_keeps_file_last_modified_when_not_given(self, db_config, monkeypatch):
        cursor = RecordingCursor(rowcount=1)
        _transaction_with(monkeypatch, cursor)
        verified = datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
        repo = PostgreSQLEnvelopeRepository(config=db_config)

        repo.update_status(uuid4(), EnvelopeStatus.CREATED, EnvelopeStatus.DISPATCHED, EVENT,
                           file_last_modified=verified)
        repo.update_status(uuid4(), EnvelopeStatus.CREATED, EnvelopeStatus.DISPATCHED, EVENT)

        update_sql, params = cursor.statements[0]
        assert "file_last_modified = COALESCE(%s, file_last_modified)" in update_sql
        assert verified in params
        assert cursor.statements[2][1][3] is None

    def test_lost_race_writes_no_event(self, db_config, monkeypatch):
        cursor = RecordingCursor(rowcount=0)
        _transaction_with(monkeypatch, cursor)

        updated = PostgreSQLEnvelopeRepository(config=db_config).update_status(
            uuid4(), EnvelopeStatus.CREATED, EnvelopeStatus.DISPATCHED, EVENT
        )

        assert updated is False
        assert len(cursor.statements) == 1

    def test_mark_as_deleted_requires_terminal_status(self, db_config, monkeypatch):
        cursor = RecordingCursor(rowcount=1)
        _transaction_with(monkeypatch, cursor)

        PostgreSQLEnvelopeRepository(config=db_config).mark_as_deleted(
            uuid4(), NewEnvelopeEvent(type=EventType.DELETED)
        )

        update_sql, params = cursor.statements[0]
        assert "is_deleted = FALSE AND status = ANY(%s)" in update_sql
        assert sorted(params[1]) == ["DISPATCHED", "REJECTED"]

    def test_pending_notification_flips_only_from_opposite_value(self, db_config, monkeypatch):
        cursor = RecordingCursor(rowcount=1)
        _transaction_with(monkeypatch, cursor)
        envelope_id = uuid4()

        PostgreSQLEnvelopeRepository(config=db_config).update_pending_notification(envelope_id, False)

        update_sql, params = cursor.statements[0]
        assert "pending_notification = %s" in update_sql.split("WHERE")[1]
        assert params == (False, envelope_id, True)
        assert len(cursor.statements) == 1


class TestClusterLockQueries:

    def test_acquire_only_takes_over_expired_rows(self, db_config, captured):
        acquired = PostgreSQLClusterLockRepository(config=db_config).try_acquire("send-notifications", 600, "me")

        query, params, fetch = captured[0]
        assert acquired is False
        assert "ON CONFLICT (name) DO UPDATE" in query
        assert '"blob_router"."job_locks".locked_until <= now()' in query
        assert params == ("send-notifications", 600, "me")
        assert fetch == "one"

    def test_release_is_owner_scoped(self, db_config, captured):
        PostgreSQLClusterLockRepository(config=db_config).release("send-notifications", "me")

        query, params, _ = captured[0]
        assert "WHERE name = %s AND locked_by = %s" in query
        assert params == ("send-notifications", "me")


class TestDatabaseInitializer:

    def test_steps_in_dependency_order(self):
        names = [name for name, _ in _ddl_steps("blob_router")]
        assert names == [
            "schema",
            "envelopes",
            "envelopes_container_file_name_idx",
            "envelopes_status_idx",
            "envelope_events",
            "envelope_events_envelope_id_idx",
            "job_locks",
        ]

    @pytest.mark.parametrize("name,statement", _ddl_steps("blob_router"))
    def test_every_step_is_idempotent(self, name, statement):
        rendered = statement.as_string(None)
        assert "IF NOT EXISTS" in rendered
        assert '"blob_router"' in rendered

    def test_stops_at_first_failure(self, db_config, monkeypatch):
        executed = []

        def fake_execute(self, query, params=None, fetch=None):
            executed.append(query)
            if len(executed) == 3:
                raise DatabaseError("permission denied")

        monkeypatch.setattr(DatabaseInitializer, "_execute_query", fake_execute)

        result = DatabaseInitializer(config=db_config).initialize_all()

        assert result.success is False
        assert [s.status for s in result.steps] == ["success", "success", "failed"]
        assert result.to_dict()["steps"][2]["error"] == "permission denied"
        assert len(executed) == 3

    def test_all_steps_succeed(self, db_config, monkeypatch):
        monkeypatch.setattr(DatabaseInitializer, "_execute_query", lambda self, q, p=None, fetch=None: None)

        result = DatabaseInitializer(config=db_config).initialize_all()

        assert result.success is True
        assert len(result.steps) == 7
        assert result.schema == "blob_router"


class TestConnectionString:

    def test_explicit_connection_string_wins(self, db_config):
        repo = PostgreSQLEnvelopeRepository(config=db_config, connection_string="postgresql://explicit")
        assert repo._get_connection_string() == "postgresql://explicit"

    def test_override_beats_managed_identity(self):
        config = DatabaseConfig(use_managed_identity=True, connection_string_override="postgresql://override")
        assert PostgreSQLEnvelopeRepository(config=config)._get_connection_string() == "postgresql://override"

    def test_password_auth_from_config(self, db_config):
        assert "user=router" in PostgreSQLEnvelopeRepository(config=db_config)._get_connection_string()
