"""
tickets/models.py -- Domain dataclass for support tickets.

Pure data container with zero logic. Visibility rules live in
tickets/service.py.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class Ticket:
    """A support ticket.

    internal_sec_id is the sector the ticket is addressed to. dependency_id is
    copied from that sector at creation time so dependency-wide queries do
    not need to join across stores.

    id is None before the record is written to the database.
    """

    title: str
    author_id: int
    description: str = ""
    priority: str = "medium"  # "low" | "medium" | "high"
    status: str = "open"  # "open" | "in_progress" | "closed"
    internal_sec_id: int | None = None
    dependency_id: int | None = None
    id: int | None = None
    created_at: str = ""  # ISO 8601, set by store on insert
