"""
Alerting Port

Architectural Intent:
- Port interface for the incident-paging side (PagerDuty)
- Abstracts incident lifecycle: create, transition, lookup by key, notes

Design Decisions:
- Uses Protocol for structural typing (no inheritance needed)
- get_incident_by_key returns the most relevant incident for a key, or None
- fetch_incident_notes may raise; callers decide whether to degrade
"""

from typing import Optional, Protocol, runtime_checkable

from ticketsync.domain.entities.incident import Incident, IncidentDraft, IncidentNote


@runtime_checkable
class AlertingPort(Protocol):
    """Port for alerting system operations."""

    async def create_incident(self, draft: IncidentDraft) -> Incident:
        """Open a new incident. Returns the created incident."""
        ...

    async def update_incident(self, incident_id: str, status: str) -> Incident:
        """Transition an incident (acknowledged / resolved)."""
        ...

    async def get_incident_by_key(self, key: str) -> Optional[Incident]:
        """Look up an incident by its external correlation key."""
        ...

    async def add_incident_note(self, incident_id: str, content: str) -> None:
        """Append a note to an incident."""
        ...

    async def fetch_incident_notes(self, incident_id: str) -> list[IncidentNote]:
        """List the notes of an incident in the order PagerDuty returns them."""
        ...
