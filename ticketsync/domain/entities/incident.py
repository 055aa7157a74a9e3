"""
Incident Entity Module

Architectural Intent:
- Read model of a PagerDuty incident and its notes
- Owned by PagerDuty: ticketsync creates and transitions incidents, never deletes them
- IncidentDraft carries everything needed to open a new incident

Domain Rules:
- Lifecycle status is one of triggered, acknowledged, resolved
- The ConnectWise ticket reference is the first "#<digits>" token of the title
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from ticketsync.domain.value_objects.correlation_key import CorrelationKey
from ticketsync.domain.value_objects.priority import PriorityBucket

_TICKET_REF_RE = re.compile(r"#(\d+)")


class IncidentStatus(Enum):
    TRIGGERED = "triggered"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"

    @classmethod
    def parse(cls, value: str) -> IncidentStatus:
        try:
            return cls(value.strip().lower())
        except ValueError:
            raise ValueError(f"Unknown incident status: {value!r}") from None


def ticket_reference(title: Optional[str]) -> Optional[int]:
    """Extract the ConnectWise ticket id embedded in an incident title."""
    if not title:
        return None
    match = _TICKET_REF_RE.search(title)
    return int(match.group(1)) if match else None


@dataclass(frozen=True)
class Incident:
    """PagerDuty incident snapshot."""

    id: str
    status: IncidentStatus
    title: str = ""
    urgency: str = ""
    priority_id: str = ""
    incident_key: str = ""
    service_id: str = ""
    html_url: str = ""

    @property
    def is_resolved(self) -> bool:
        return self.status is IncidentStatus.RESOLVED

    @property
    def ticket_id(self) -> Optional[int]:
        return ticket_reference(self.title)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Incident:
        if not data.get("id"):
            raise ValueError("Incident payload has no id")
        priority = data.get("priority") or {}
        service = data.get("service") or {}
        return cls(
            id=str(data["id"]),
            status=IncidentStatus.parse(str(data.get("status") or "triggered")),
            title=str(data.get("title") or ""),
            urgency=str(data.get("urgency") or ""),
            priority_id=str(priority.get("id") or ""),
            incident_key=str(data.get("incident_key") or ""),
            service_id=str(service.get("id") or ""),
            html_url=str(data.get("html_url") or ""),
        )


@dataclass(frozen=True)
class IncidentNote:
    content: str
    created_at: str = ""

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> IncidentNote:
        return cls(
            content=str(data.get("content") or ""),
            created_at=str(data.get("created_at") or ""),
        )


@dataclass(frozen=True)
class IncidentDraft:
    """Everything PagerDuty needs to open an incident for a ticket.

    Attributes:
        key: Correlation key, sent as the PagerDuty incident_key.
        title: "<code> | #<ticket id> - <summary>".
        service_id: Target PagerDuty service.
        bucket: Priority bucket (code and urgency).
        priority_id: PagerDuty priority reference id (may be empty).
        details: Incident body text.
        note: Optional note appended after creation.
    """

    key: CorrelationKey
    title: str
    service_id: str
    bucket: PriorityBucket
    priority_id: str = ""
    details: str = ""
    note: Optional[str] = None

    def to_payload(self) -> dict[str, Any]:
        incident: dict[str, Any] = {
            "type": "incident",
            "title": self.title,
            "service": {"id": self.service_id, "type": "service_reference"},
            "urgency": self.bucket.urgency.value,
            "body": {"type": "incident_body", "details": self.details},
            "incident_key": str(self.key),
        }
        if self.priority_id:
            incident["priority"] = {
                "id": self.priority_id,
                "type": "priority_reference",
            }
        return {"incident": incident}
