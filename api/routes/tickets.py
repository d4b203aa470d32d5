"""
api/routes/tickets.py -- Ticket endpoints. Every route requires a session.

Routes:
  GET  /tickets              -- tickets created by the current user
  GET  /tickets/internalsec  -- tickets addressed to the user's internal sector
  GET  /tickets/dependency   -- tickets addressed to any sector of the user's dependency
  POST /tickets              -- create a ticket authored by the current user

Sector and dependency views read the claims in the session token. A token
issued at registration has no sector claim, so both views return [].
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import TicketCreate, TicketResponse
from auth.dependencies import get_session_claims
from auth.models import SessionClaims
from tickets.service import TicketService

router = APIRouter()


def get_ticket_service(request: Request) -> TicketService:
    return request.app.state.ticket_service


@router.get("/tickets", response_model=list[TicketResponse])
def list_author_tickets(
    claims: SessionClaims = Depends(get_session_claims),
    service: TicketService = Depends(get_ticket_service),
) -> list[TicketResponse]:
    return [TicketResponse.from_ticket(t) for t in service.get_tickets_author(claims)]


@router.get("/tickets/internalsec", response_model=list[TicketResponse])
def list_internal_sec_tickets(
    claims: SessionClaims = Depends(get_session_claims),
    service: TicketService = Depends(get_ticket_service),
) -> list[TicketResponse]:
    return [TicketResponse.from_ticket(t) for t in service.get_tickets_internal_sec(claims)]


@router.get("/tickets/dependency", response_model=list[TicketResponse])
def list_dependency_tickets(
    claims: SessionClaims = Depends(get_session_claims),
    service: TicketService = Depends(get_ticket_service),
) -> list[TicketResponse]:
    return [TicketResponse.from_ticket(t) for t in service.get_tickets_dependency(claims)]


@router.post("/tickets", response_model=TicketResponse, status_code=201)
def create_ticket(
    body: TicketCreate,
    claims: SessionClaims = Depends(get_session_claims),
    service: TicketService = Depends(get_ticket_service),
) -> TicketResponse:
    """Create a ticket. Addressed to body.internal_sec_id, else to the author's sector."""
    ticket = service.create_ticket(
        claims,
        title=body.title,
        description=body.description,
        priority=body.priority.value,
        internal_sec_id=body.internal_sec_id,
    )
    return TicketResponse.from_ticket(ticket)
