"""Global test configuration.

In-memory ConnectWise and PagerDuty doubles shared by the use case,
integration and web tests.
"""

import asyncio
import itertools
from typing import Optional

import pytest

from ticketsync.domain.entities.incident import (
    Incident,
    IncidentDraft,
    IncidentNote,
    IncidentStatus,
)
from ticketsync.domain.entities.ticket import Ticket
from ticketsync.domain.services.errors import RemoteCallError
from ticketsync.domain.value_objects.ticket_patch import NoteKind, TicketPatch


class FakeTicketing:
    """TicketingPort double recording every write."""

    def __init__(self) -> None:
        self.tickets: dict[int, Ticket] = {}
        self.descriptions: dict[int, str] = {}
        self.patches: list[tuple[int, TicketPatch]] = []
        self.notes: list[tuple[int, str, NoteKind]] = []
        self.fail_description = False

    async def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        return self.tickets.get(ticket_id)

    async def get_ticket_description(self, ticket_id: int) -> Optional[str]:
        if self.fail_description:
            raise RemoteCallError("notes unavailable", status=503)
        return self.descriptions.get(ticket_id)

    async def update_ticket(self, ticket_id: int, patch: TicketPatch) -> None:
        self.patches.append((ticket_id, patch))

    async def add_ticket_note(self, ticket_id: int, text: str, kind: NoteKind) -> None:
        self.notes.append((ticket_id, text, kind))


class FakeAlerting:
    """AlertingPort double keeping incidents in creation order."""

    def __init__(self) -> None:
        self.incidents: list[Incident] = []
        self.drafts: list[IncidentDraft] = []
        self.incident_notes: dict[str, list[IncidentNote]] = {}
        self.status_updates: list[tuple[str, str]] = []
        self.lookups = 0
        self.fail_notes = False
        self._ids = itertools.count(1)

    def seed(self, key: str, status: IncidentStatus, title: str = "") -> Incident:
        incident = Incident(
            id=f"PINC{next(self._ids)}", status=status, title=title, incident_key=key
        )
        self.incidents.append(incident)
        return incident

    async def create_incident(self, draft: IncidentDraft) -> Incident:
        # Yield so concurrent callers interleave like real network calls
        await asyncio.sleep(0)
        self.drafts.append(draft)
        return self.seed(str(draft.key), IncidentStatus.TRIGGERED, draft.title)

    async def update_incident(self, incident_id: str, status: str) -> Incident:
        self.status_updates.append((incident_id, status))
        for i, incident in enumerate(self.incidents):
            if incident.id == incident_id:
                updated = Incident(
                    id=incident.id,
                    status=IncidentStatus.parse(status),
                    title=incident.title,
                    incident_key=incident.incident_key,
                )
                self.incidents[i] = updated
                return updated
        raise RemoteCallError(f"Incident {incident_id} not found", status=404)

    async def get_incident_by_key(self, key: str) -> Optional[Incident]:
        self.lookups += 1
        await asyncio.sleep(0)
        matches = [i for i in self.incidents if i.incident_key == key]
        for incident in matches:
            if not incident.is_resolved:
                return incident
        return matches[0] if matches else None

    async def add_incident_note(self, incident_id: str, content: str) -> None:
        self.incident_notes.setdefault(incident_id, []).append(IncidentNote(content))

    async def fetch_incident_notes(self, incident_id: str) -> list[IncidentNote]:
        if self.fail_notes:
            raise RemoteCallError("notes unavailable", status=500)
        return list(self.incident_notes.get(incident_id, []))


@pytest.fixture()
def ticketing() -> FakeTicketing:
    return FakeTicketing()


@pytest.fixture()
def alerting() -> FakeAlerting:
    return FakeAlerting()


@pytest.fixture()
def sleeper():
    """Returns an async no-op sleep that records requested delays."""
    delays: list[float] = []

    async def sleep(delay: float) -> None:
        delays.append(delay)
        await asyncio.sleep(0)

    sleep.delays = delays
    return sleep
