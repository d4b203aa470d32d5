"""
tickets/service.py -- Ticket queries scoped by session claims.

Every operation takes the SessionClaims produced by the authorization gate;
the service never sees a raw token.

Visibility:
  author       -- tickets the claimant created.
  internal sec -- tickets addressed to the claimant's internal sector.
  dependency   -- tickets addressed to any sector of the claimant's
                  dependency.

Tokens issued at registration carry no sector claim. Sector and dependency
queries answer those with an empty list instead of failing.
"""

from __future__ import annotations

import logging

from auth.models import SessionClaims
from auth.store import UserStore
from core.exceptions import NotFoundError
from tickets.models import Ticket
from tickets.store import TicketStore

logger = logging.getLogger("ticketdesk.tickets")


class TicketService:
    def __init__(self, store: TicketStore, user_store: UserStore) -> None:
        self.store = store
        self.user_store = user_store

    def get_tickets_author(self, claims: SessionClaims) -> list[Ticket]:
        return self.store.list_by_author(claims.user_id)

    def get_tickets_internal_sec(self, claims: SessionClaims) -> list[Ticket]:
        if claims.internal_sec_id is None:
            logger.info("User id=%d has no internal sector claim; no sector tickets visible", claims.user_id)
            return []
        return self.store.list_by_internal_sec(claims.internal_sec_id)

    def get_tickets_dependency(self, claims: SessionClaims) -> list[Ticket]:
        if claims.internal_sec_id is None:
            logger.info("User id=%d has no internal sector claim; no dependency tickets visible", claims.user_id)
            return []
        sector = self.user_store.get_internal_sec(claims.internal_sec_id)
        if sector is None or sector.dependency_id is None:
            return []
        return self.store.list_by_dependency(sector.dependency_id)

    def create_ticket(
        self,
        claims: SessionClaims,
        title: str,
        description: str = "",
        priority: str = "medium",
        internal_sec_id: int | None = None,
    ) -> Ticket:
        """Create a ticket authored by the claimant.

        The ticket is addressed to internal_sec_id if given, otherwise to the
        claimant's own sector (if the token carries one). Raises NotFoundError
        if the target sector does not exist.
        """
        target = internal_sec_id if internal_sec_id is not None else claims.internal_sec_id
        dependency_id = None
        if target is not None:
            sector = self.user_store.get_internal_sec(target)
            if sector is None:
                raise NotFoundError(f"Internal sector {target} not found.")
            dependency_id = sector.dependency_id

        ticket = Ticket(
            title=title,
            description=description,
            priority=priority,
            author_id=claims.user_id,
            internal_sec_id=target,
            dependency_id=dependency_id,
        )
        ticket_id = self.store.create_ticket(ticket)
        logger.info("User id=%d created ticket id=%d (internal_sec=%s)", claims.user_id, ticket_id, target)
        return self.store.get_by_id(ticket_id)
