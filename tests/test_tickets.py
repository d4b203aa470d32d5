"""Tests for tickets/service.py and the /tickets routes.

Covers:
- author view returns only the claimant's tickets, newest first
- sector view filters by the internalSec claim; missing claim -> []
- dependency view spans every sector of the claimant's dependency
- create addresses the claimant's sector by default, or an explicit one
- unknown target sector -> NotFoundError / 404
- every /tickets route is 401 without a session
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from auth.models import SessionClaims
from auth.store import UserStore
from conftest import login, register
from core.exceptions import NotFoundError
from tickets.service import TicketService


def _claims(user_id: int, internal_sec_id: int | None = None, role: str | None = None) -> SessionClaims:
    return SessionClaims(user_id=user_id, issued_at=0, expires_at=0, role=role, internal_sec_id=internal_sec_id)


@pytest.fixture
def sectors(user_store: UserStore) -> dict[str, int]:
    """Guest + Soporte under General; Finanzas under its own dependency."""
    guest = user_store.get_internal_sec_by_name("Guest")
    soporte = user_store.create_internal_sec("Soporte", dependency_id=guest.dependency_id)
    finanzas_dep = user_store.create_dependency("Administracion")
    finanzas = user_store.create_internal_sec("Finanzas", dependency_id=finanzas_dep)
    return {"guest": guest.id, "soporte": soporte, "finanzas": finanzas}


class TestTicketService:
    def test_author_view(self, ticket_service: TicketService, sectors: dict[str, int]) -> None:
        first = ticket_service.create_ticket(_claims(1, sectors["guest"]), title="first")
        second = ticket_service.create_ticket(_claims(1, sectors["guest"]), title="second")
        ticket_service.create_ticket(_claims(2, sectors["guest"]), title="someone else")

        tickets = ticket_service.get_tickets_author(_claims(1))
        assert [t.id for t in tickets] == [second.id, first.id]

    def test_create_defaults_to_claimant_sector(self, ticket_service: TicketService, sectors: dict[str, int]) -> None:
        ticket = ticket_service.create_ticket(_claims(1, sectors["soporte"]), title="printer", priority="high")
        assert ticket.author_id == 1
        assert ticket.internal_sec_id == sectors["soporte"]
        assert ticket.dependency_id is not None
        assert ticket.status == "open"
        assert ticket.priority == "high"
        assert ticket.created_at

    def test_create_without_any_sector(self, ticket_service: TicketService) -> None:
        ticket = ticket_service.create_ticket(_claims(1), title="no sector")
        assert ticket.internal_sec_id is None
        assert ticket.dependency_id is None

    def test_create_unknown_sector(self, ticket_service: TicketService) -> None:
        with pytest.raises(NotFoundError):
            ticket_service.create_ticket(_claims(1), title="x", internal_sec_id=999)

    def test_internal_sec_view(self, ticket_service: TicketService, sectors: dict[str, int]) -> None:
        to_soporte = ticket_service.create_ticket(_claims(1), title="a", internal_sec_id=sectors["soporte"])
        ticket_service.create_ticket(_claims(1), title="b", internal_sec_id=sectors["finanzas"])

        visible = ticket_service.get_tickets_internal_sec(_claims(2, sectors["soporte"]))
        assert [t.id for t in visible] == [to_soporte.id]

    def test_dependency_view(self, ticket_service: TicketService, sectors: dict[str, int]) -> None:
        to_guest = ticket_service.create_ticket(_claims(1), title="a", internal_sec_id=sectors["guest"])
        to_soporte = ticket_service.create_ticket(_claims(1), title="b", internal_sec_id=sectors["soporte"])
        ticket_service.create_ticket(_claims(1), title="c", internal_sec_id=sectors["finanzas"])

        visible = ticket_service.get_tickets_dependency(_claims(2, sectors["guest"]))
        assert {t.id for t in visible} == {to_guest.id, to_soporte.id}

    def test_missing_sector_claim_means_no_access(self, ticket_service: TicketService, sectors: dict[str, int]) -> None:
        ticket_service.create_ticket(_claims(1), title="a", internal_sec_id=sectors["guest"])
        assert ticket_service.get_tickets_internal_sec(_claims(1)) == []
        assert ticket_service.get_tickets_dependency(_claims(1)) == []

    def test_dependency_view_with_unknown_sector_claim(self, ticket_service: TicketService) -> None:
        assert ticket_service.get_tickets_dependency(_claims(1, 999)) == []


class TestTicketRoutes:
    @pytest.mark.parametrize(
        ("method", "path"),
        [
            ("get", "/tickets"),
            ("get", "/tickets/internalsec"),
            ("get", "/tickets/dependency"),
            ("post", "/tickets"),
        ],
    )
    def test_requires_session(self, client: TestClient, method: str, path: str) -> None:
        kwargs = {"json": {"title": "x"}} if method == "post" else {}
        resp = getattr(client, method)(path, **kwargs)
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthenticated"

    def test_create_and_list_after_login(self, client: TestClient) -> None:
        register(client)
        login(client)

        resp = client.post("/tickets", json={"title": "VPN down", "description": "since 9am"})
        assert resp.status_code == 201, resp.text
        created = resp.json()
        assert created["author_id"] == 1
        assert created["priority"] == "medium"
        assert created["internal_sec_id"] is not None

        assert [t["id"] for t in client.get("/tickets").json()] == [created["id"]]
        assert [t["id"] for t in client.get("/tickets/internalsec").json()] == [created["id"]]
        assert [t["id"] for t in client.get("/tickets/dependency").json()] == [created["id"]]

    def test_registration_session_sees_no_sector_tickets(self, client: TestClient) -> None:
        register(client)
        resp = client.post("/tickets", json={"title": "mine"})
        assert resp.status_code == 201
        assert resp.json()["internal_sec_id"] is None

        assert len(client.get("/tickets").json()) == 1
        assert client.get("/tickets/internalsec").json() == []
        assert client.get("/tickets/dependency").json() == []

    def test_create_for_unknown_sector(self, client: TestClient) -> None:
        register(client)
        resp = client.post("/tickets", json={"title": "x", "internal_sec_id": 999})
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_invalid_priority(self, client: TestClient) -> None:
        register(client)
        resp = client.post("/tickets", json={"title": "x", "priority": "urgent"})
        assert resp.status_code == 422
