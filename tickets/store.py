"""
tickets/store.py -- SQLAlchemy Core persistence layer for tickets.

Pattern: Repository + Data Mapper. TicketStore is the repository;
_row_to_ticket is the mapper. Every list query returns newest first.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TicketStore(db_url)
    ticket_id = store.create_ticket(Ticket(title="Printer down", author_id=1))
    mine = store.list_by_author(1)
    store.close()
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, MetaData, String, Table, Text, select

from core.database import make_engine, now_iso
from tickets.models import Ticket

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tickets = Table(
    "tickets",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("title", String(200), nullable=False),
    Column("description", Text, nullable=False, server_default=""),
    Column("priority", String(10), nullable=False, server_default="medium"),
    Column("status", String(20), nullable=False, server_default="open"),
    Column("author_id", Integer, nullable=False, index=True),
    Column("internal_sec_id", Integer, index=True),
    Column("dependency_id", Integer, index=True),
    Column("created_at", String(32), nullable=False),
)


class TicketStore:
    def __init__(self, db_url: str, timeout: float = 5.0) -> None:
        self.engine = make_engine(db_url, timeout)
        metadata.create_all(self.engine)

    def create_ticket(self, ticket: Ticket) -> int:
        """Insert a ticket and return its ID. created_at is always set here."""
        with self.engine.begin() as conn:
            result = conn.execute(
                _tickets.insert().values(
                    title=ticket.title,
                    description=ticket.description,
                    priority=ticket.priority,
                    status=ticket.status,
                    author_id=ticket.author_id,
                    internal_sec_id=ticket.internal_sec_id,
                    dependency_id=ticket.dependency_id,
                    created_at=now_iso(),
                )
            )
            return result.inserted_primary_key[0]

    def get_by_id(self, ticket_id: int) -> Ticket | None:
        with self.engine.connect() as conn:
            row = conn.execute(_tickets.select().where(_tickets.c.id == ticket_id)).fetchone()
        return _row_to_ticket(row) if row is not None else None

    def list_by_author(self, author_id: int) -> list[Ticket]:
        return self._list(_tickets.c.author_id == author_id)

    def list_by_internal_sec(self, internal_sec_id: int) -> list[Ticket]:
        return self._list(_tickets.c.internal_sec_id == internal_sec_id)

    def list_by_dependency(self, dependency_id: int) -> list[Ticket]:
        return self._list(_tickets.c.dependency_id == dependency_id)

    def _list(self, condition) -> list[Ticket]:
        with self.engine.connect() as conn:
            rows = conn.execute(
                select(_tickets).where(condition).order_by(_tickets.c.created_at.desc(), _tickets.c.id.desc())
            ).fetchall()
        return [_row_to_ticket(r) for r in rows]

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_ticket(row) -> Ticket:
    return Ticket(
        id=row.id,
        title=row.title,
        description=row.description,
        priority=row.priority,
        status=row.status,
        author_id=row.author_id,
        internal_sec_id=row.internal_sec_id,
        dependency_id=row.dependency_id,
        created_at=row.created_at,
    )
