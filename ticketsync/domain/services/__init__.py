"""
Domain Services Package

Architectural Intent:
- Contains the pure decision logic of ticket/incident synchronization
- State mappers, signature verification, and resolution note selection
"""

from ticketsync.domain.services.errors import (
    SyncError,
    RejectedInputError,
    UnmappedBoardError,
    SignatureError,
    RemoteCallError,
)
from ticketsync.domain.services.signature_verifier import verify_signature
from ticketsync.domain.services.ticket_state_mapper import (
    TicketAction,
    TicketStateMapping,
    map_ticket_state,
    is_priority_admitted,
)
from ticketsync.domain.services.incident_event_mapper import (
    IncidentEventMapping,
    map_incident_event,
)
from ticketsync.domain.services.resolution_note import ResolutionNoteResolver

__all__ = [
    "SyncError",
    "RejectedInputError",
    "UnmappedBoardError",
    "SignatureError",
    "RemoteCallError",
    "verify_signature",
    "TicketAction",
    "TicketStateMapping",
    "map_ticket_state",
    "is_priority_admitted",
    "IncidentEventMapping",
    "map_incident_event",
    "ResolutionNoteResolver",
]
