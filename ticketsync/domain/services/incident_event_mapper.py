"""
Incident -> Ticket Event Mapping

Architectural Intent:
- Pure domain service translating a PagerDuty webhook event into the
  ConnectWise changes it implies (status patch, priority patch, note)
- PagerDuty priority ids are deployment-specific, so they are passed in

Domain Rules:
- incident.resolved     -> status "Returned To Normal" plus one resolution note
- incident.acknowledged -> status "Acknowledged"
- incident.annotated    -> no patch, a detail note with the annotation text
- A priority id outside the configured five produces no priority patch
- Any other event type is unhandled
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ticketsync.domain.value_objects.priority import TICKET_PRIORITIES, TicketPriority
from ticketsync.domain.value_objects.ticket_patch import NoteKind, TicketPatch

RESOLVED = "incident.resolved"
ACKNOWLEDGED = "incident.acknowledged"
ANNOTATED = "incident.annotated"

STATUS_FOR_EVENT: dict[str, str] = {
    RESOLVED: "Returned To Normal",
    ACKNOWLEDGED: "Acknowledged",
}

DEFAULT_ANNOTATION = "Annotation added in PagerDuty"


@dataclass(frozen=True)
class IncidentEventMapping:
    """ConnectWise-side effects of one PagerDuty event.

    Attributes:
        patch: Status and/or priority operations to apply in a single call.
        note_kind: Kind of note to append, if any.
        fetch_resolution_note: True when the note text must come from the
            incident's PagerDuty notes.
        handled: False for event types ticketsync does not act on.
    """

    patch: TicketPatch = field(default_factory=TicketPatch)
    note_kind: Optional[NoteKind] = None
    fetch_resolution_note: bool = False
    handled: bool = True

    @property
    def status_name(self) -> Optional[str]:
        for op in self.patch.operations:
            if op.path == "status":
                return op.value["name"]
        return None


def ticket_priority_for(
    pd_priority_id: Optional[str], priority_ids: Mapping[str, str]
) -> Optional[TicketPriority]:
    """Map a PagerDuty priority id to a ConnectWise priority.

    Args:
        pd_priority_id: Priority id carried by the incident.
        priority_ids: Bucket code ("P1".."P5") -> configured PagerDuty priority id.
    """
    if not pd_priority_id:
        return None
    for code, configured_id in priority_ids.items():
        if configured_id and configured_id == pd_priority_id:
            return TICKET_PRIORITIES.get(code)
    return None


def map_incident_event(
    event_type: str,
    pd_priority_id: Optional[str],
    priority_ids: Mapping[str, str],
) -> IncidentEventMapping:
    if event_type == ANNOTATED:
        return IncidentEventMapping(note_kind=NoteKind.DETAIL)

    status_name = STATUS_FOR_EVENT.get(event_type)
    if status_name is None:
        return IncidentEventMapping(handled=False)

    patch = TicketPatch().with_status(status_name)
    priority = ticket_priority_for(pd_priority_id, priority_ids)
    if priority:
        patch = patch.with_priority(priority)

    if event_type == RESOLVED:
        return IncidentEventMapping(
            patch=patch,
            note_kind=NoteKind.RESOLUTION,
            fetch_resolution_note=True,
        )
    return IncidentEventMapping(patch=patch)


def annotation_text(incident: dict[str, Any], data: dict[str, Any]) -> str:
    """Text of an annotation event: the note description, its content, or the incident summary."""
    details = incident.get("event_details") or {}
    return (
        details.get("description")
        or data.get("content")
        or incident.get("summary")
        or DEFAULT_ANNOTATION
    )
