# ============================================================================
# ENVELOPE STORE (POSTGRESQL)
# ============================================================================
# STATUS: Infrastructure - envelopes + envelope_events persistence
# PURPOSE: Envelope state machine writes and audit trail, as conditional SQL
# EXPORTS: PostgreSQLEnvelopeRepository
# INTERFACES: IEnvelopeRepository
# PYDANTIC_MODELS: Envelope, NewEnvelope, EnvelopeEvent, NewEnvelopeEvent, RejectedEnvelope
# DEPENDENCIES: psycopg, psycopg.sql
# ============================================================================

"""
PostgreSQL Envelope Repository.

Every state-changing statement carries its precondition in the WHERE
clause (status = 'CREATED', is_deleted = false, ...). The event row is
inserted in the same transaction only when the UPDATE matched, so two
workers racing on the same envelope produce exactly one transition and
one audit entry.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from psycopg import sql

from core.models import (
    Envelope,
    EnvelopeEvent,
    EnvelopeStatus,
    NewEnvelope,
    NewEnvelopeEvent,
    RejectedEnvelope,
)
from core.models.enums import EventType
from core.logic import get_envelope_terminal_states
from .interface_repository import IEnvelopeRepository
from .postgresql import PostgreSQLRepository

ENVELOPES_TABLE = "envelopes"
EVENTS_TABLE = "envelope_events"


class PostgreSQLEnvelopeRepository(PostgreSQLRepository, IEnvelopeRepository):
    """
    PostgreSQL implementation of the envelope store.
    """

    # ========================================================================
    # READS
    # ========================================================================

    def find(self, envelope_id: UUID) -> Optional[Envelope]:
        query = sql.SQL("SELECT * FROM {} WHERE id = %s").format(self._table(ENVELOPES_TABLE))
        row = self._execute_query(query, (envelope_id,), fetch='one')
        return Envelope(**row) if row else None

    def find_last(self, file_name: str, container: str) -> Optional[Envelope]:
        query = sql.SQL("""
            SELECT * FROM {}
            WHERE file_name = %s AND container = %s
            ORDER BY created_at DESC
            LIMIT 1
        """).format(self._table(ENVELOPES_TABLE))
        row = self._execute_query(query, (file_name, container), fetch='one')
        return Envelope(**row) if row else None

    def find_by_status(self, status: EnvelopeStatus, container: Optional[str] = None,
                       is_deleted: Optional[bool] = None) -> List[Envelope]:
        conditions = [sql.SQL("status = %s")]
        params: List[Any] = [status.value]
        if container is not None:
            conditions.append(sql.SQL("container = %s"))
            params.append(container)
        if is_deleted is not None:
            conditions.append(sql.SQL("is_deleted = %s"))
            params.append(is_deleted)

        query = sql.SQL("SELECT * FROM {} WHERE {} ORDER BY created_at").format(
            self._table(ENVELOPES_TABLE),
            sql.SQL(" AND ").join(conditions)
        )
        rows = self._execute_query(query, tuple(params), fetch='all')
        return [Envelope(**row) for row in rows]

    def find_all(self, file_name: Optional[str] = None, container: Optional[str] = None,
                 created_on: Optional[date] = None) -> List[Envelope]:
        conditions = [sql.SQL("TRUE")]
        params: List[Any] = []
        if file_name is not None:
            conditions.append(sql.SQL("file_name = %s"))
            params.append(file_name)
        if container is not None:
            conditions.append(sql.SQL("container = %s"))
            params.append(container)
        if created_on is not None:
            conditions.append(sql.SQL("created_at::date = %s"))
            params.append(created_on)

        query = sql.SQL("SELECT * FROM {} WHERE {} ORDER BY created_at DESC").format(
            self._table(ENVELOPES_TABLE),
            sql.SQL(" AND ").join(conditions)
        )
        rows = self._execute_query(query, tuple(params), fetch='all')
        return [Envelope(**row) for row in rows]

    def find_incomplete_before(self, cutoff: datetime) -> List[Envelope]:
        query = sql.SQL("""
            SELECT * FROM {}
            WHERE status = %s AND created_at < %s
            ORDER BY created_at
        """).format(self._table(ENVELOPES_TABLE))
        rows = self._execute_query(query, (EnvelopeStatus.CREATED.value, cutoff), fetch='all')
        return [Envelope(**row) for row in rows]

    def find_events(self, envelope_id: UUID) -> List[EnvelopeEvent]:
        query = sql.SQL("""
            SELECT * FROM {}
            WHERE envelope_id = %s
            ORDER BY created_at, id
        """).format(self._table(EVENTS_TABLE))
        rows = self._execute_query(query, (envelope_id,), fetch='all')
        return [EnvelopeEvent(**row) for row in rows]

    def find_rejected_pending_notification(self) -> List[RejectedEnvelope]:
        """
        Envelopes awaiting a rejection notice, with the error from their most
        recent REJECTED event.
        """
        query = sql.SQL("""
            SELECT DISTINCT ON (e.id)
                   e.id AS envelope_id,
                   e.container,
                   e.file_name,
                   ev.error_code,
                   ev.notes AS error_description
            FROM {envelopes} e
            LEFT JOIN {events} ev
                   ON ev.envelope_id = e.id AND ev.type = %s
            WHERE e.status = %s AND e.pending_notification = TRUE
            ORDER BY e.id, ev.created_at DESC
        """).format(
            envelopes=self._table(ENVELOPES_TABLE),
            events=self._table(EVENTS_TABLE),
        )
        rows = self._execute_query(
            query, (EventType.REJECTED.value, EnvelopeStatus.REJECTED.value), fetch='all'
        )
        return [RejectedEnvelope(**row) for row in rows]

    # ========================================================================
    # WRITES
    # ========================================================================

    def _insert_event_row(self, cursor, envelope_id: UUID, event: NewEnvelopeEvent) -> Dict[str, Any]:
        # clock_timestamp() keeps events written in one transaction ordered
        cursor.execute(
            sql.SQL("""
                INSERT INTO {} (envelope_id, type, error_code, notes, created_at)
                VALUES (%s, %s, %s, %s, clock_timestamp())
                RETURNING *
            """).format(self._table(EVENTS_TABLE)),
            (
                envelope_id,
                event.type.value,
                event.error_code.value if event.error_code else None,
                event.notes,
            )
        )
        return cursor.fetchone()

    def insert(self, envelope: NewEnvelope, event: NewEnvelopeEvent) -> Envelope:
        envelope_id = uuid4()
        with self._error_context("envelope insert", f"{envelope.container}/{envelope.file_name}"):
            with self._transaction() as cursor:
                cursor.execute(
                    sql.SQL("""
                        INSERT INTO {} (id, container, file_name, file_created_at, status,
                                        file_size, is_deleted, pending_notification, created_at)
                        VALUES (%s, %s, %s, %s, %s, %s, FALSE, FALSE, now())
                        RETURNING *
                    """).format(self._table(ENVELOPES_TABLE)),
                    (
                        envelope_id,
                        envelope.container,
                        envelope.file_name,
                        envelope.file_created_at,
                        envelope.status.value,
                        envelope.file_size,
                    )
                )
                row = cursor.fetchone()
                self._insert_event_row(cursor, envelope_id, event)
        self.logger.info(f"✅ Envelope created: {envelope_id} ({envelope.container}/{envelope.file_name})")
        return Envelope(**row)

    def update_status(self, envelope_id: UUID, expected: EnvelopeStatus, status: EnvelopeStatus,
                      event: NewEnvelopeEvent, dispatched_at: Optional[datetime] = None,
                      pending_notification: Optional[bool] = None,
                      file_last_modified: Optional[datetime] = None) -> bool:
        with self._error_context("status update", str(envelope_id)):
            with self._transaction() as cursor:
                cursor.execute(
                    sql.SQL("""
                        UPDATE {} SET
                            status = %s,
                            dispatched_at = COALESCE(%s, dispatched_at),
                            pending_notification = COALESCE(%s, pending_notification),
                            file_last_modified = COALESCE(%s, file_last_modified)
                        WHERE id = %s AND status = %s
                    """).format(self._table(ENVELOPES_TABLE)),
                    (status.value, dispatched_at, pending_notification, file_last_modified,
                     envelope_id, expected.value)
                )
                if cursor.rowcount != 1:
                    return False
                self._insert_event_row(cursor, envelope_id, event)
        return True

    def mark_as_deleted(self, envelope_id: UUID, event: NewEnvelopeEvent) -> bool:
        terminal = [s.value for s in get_envelope_terminal_states()]
        with self._error_context("mark as deleted", str(envelope_id)):
            with self._transaction() as cursor:
                cursor.execute(
                    sql.SQL("""
                        UPDATE {} SET is_deleted = TRUE
                        WHERE id = %s AND is_deleted = FALSE AND status = ANY(%s)
                    """).format(self._table(ENVELOPES_TABLE)),
                    (envelope_id, terminal)
                )
                if cursor.rowcount != 1:
                    return False
                self._insert_event_row(cursor, envelope_id, event)
        return True

    def update_pending_notification(self, envelope_id: UUID, pending: bool,
                                    event: Optional[NewEnvelopeEvent] = None) -> bool:
        with self._error_context("pending notification update", str(envelope_id)):
            with self._transaction() as cursor:
                cursor.execute(
                    sql.SQL("""
                        UPDATE {} SET pending_notification = %s
                        WHERE id = %s AND pending_notification = %s
                    """).format(self._table(ENVELOPES_TABLE)),
                    (pending, envelope_id, not pending)
                )
                if cursor.rowcount != 1:
                    return False
                if event is not None:
                    self._insert_event_row(cursor, envelope_id, event)
        return True

    def insert_event(self, envelope_id: UUID, event: NewEnvelopeEvent) -> EnvelopeEvent:
        with self._error_context("event insert", str(envelope_id)):
            with self._transaction() as cursor:
                row = self._insert_event_row(cursor, envelope_id, event)
        return EnvelopeEvent(**row)
