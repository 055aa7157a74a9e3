"""
Ticketing Port

Architectural Intent:
- Port interface for the service-desk side (ConnectWise Manage)
- Covers the reads and patches the synchronization core needs, nothing more

Design Decisions:
- Uses Protocol for structural typing (no inheritance needed)
- get_ticket_description is best-effort: implementations return None on failure
- Write methods raise RemoteCallError on failure
"""

from typing import Optional, Protocol, runtime_checkable

from ticketsync.domain.entities.ticket import Ticket
from ticketsync.domain.value_objects.ticket_patch import NoteKind, TicketPatch


@runtime_checkable
class TicketingPort(Protocol):
    """Port for ticketing system operations."""

    async def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        """Fetch a ticket. Returns None if it does not exist."""
        ...

    async def get_ticket_description(self, ticket_id: int) -> Optional[str]:
        """Fetch the initial description of a ticket (best-effort)."""
        ...

    async def update_ticket(self, ticket_id: int, patch: TicketPatch) -> None:
        """Apply a patch to a ticket."""
        ...

    async def add_ticket_note(self, ticket_id: int, text: str, kind: NoteKind) -> None:
        """Append a note of the given kind to a ticket."""
        ...
