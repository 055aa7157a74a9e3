"""
Webhook DTOs

Architectural Intent:
- Data Transfer Objects at the use case boundary for both webhook directions
- Normalizes the loose payload shapes each platform sends
- Decouples HTTP representation from the synchronization use cases
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from http import HTTPStatus
from typing import Any, Optional

logger = logging.getLogger(__name__)


class SyncOutcome(Enum):
    CREATED = "created"
    RESOLVED = "resolved"
    UPDATED = "updated"
    ANNOTATED = "annotated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    IGNORED = "ignored"
    NOT_FOUND = "not_found"
    REJECTED = "rejected"
    UNAUTHORIZED = "unauthorized"
    FAILED = "failed"


_HTTP_STATUS: dict[SyncOutcome, HTTPStatus] = {
    SyncOutcome.NOT_FOUND: HTTPStatus.NOT_FOUND,
    SyncOutcome.REJECTED: HTTPStatus.BAD_REQUEST,
    SyncOutcome.UNAUTHORIZED: HTTPStatus.BAD_REQUEST,
    SyncOutcome.FAILED: HTTPStatus.INTERNAL_SERVER_ERROR,
}


@dataclass(frozen=True)
class SyncResult:
    outcome: SyncOutcome
    message: str
    ticket_id: Optional[int] = None
    status: Optional[str] = None
    incident_id: Optional[str] = None

    @property
    def http_status(self) -> HTTPStatus:
        return _HTTP_STATUS.get(self.outcome, HTTPStatus.OK)

    @property
    def ok(self) -> bool:
        return self.http_status == HTTPStatus.OK

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message, "outcome": self.outcome.value}
        if self.ticket_id is not None:
            body["ticket_id"] = self.ticket_id
        if self.status is not None:
            body["status"] = self.status
        if self.incident_id is not None:
            body["incident_id"] = self.incident_id
        return body


def _first(body: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        value = body.get(key)
        if value:
            return value
    return None


@dataclass(frozen=True)
class TicketWebhookEvent:
    """Normalized ConnectWise callback.

    ConnectWise puts the ticket under ``instance``, ``entity`` or ``Entity``,
    sometimes as a JSON-encoded string.
    """

    type: str
    action: str = ""
    ticket: Optional[dict[str, Any]] = None

    @classmethod
    def from_body(cls, body: dict[str, Any]) -> TicketWebhookEvent:
        ticket = _first(body, "instance", "entity", "Entity")
        if isinstance(ticket, str):
            try:
                ticket = json.loads(ticket)
            except json.JSONDecodeError:
                logger.warning("ConnectWise entity is not valid JSON")
                ticket = None
        if not isinstance(ticket, dict):
            ticket = None
        return cls(
            type=str(_first(body, "type", "Type") or "").lower(),
            action=str(_first(body, "action", "Action", "event") or ""),
            ticket=ticket,
        )

    @property
    def is_ticket(self) -> bool:
        return self.type == "ticket"


@dataclass(frozen=True)
class IncidentWebhookEvent:
    """PagerDuty v3 webhook as received.

    Attributes:
        raw_body: Exact request bytes, used for signature verification.
        signature: Value of the X-PagerDuty-Signature header, if present.
        payload: Parsed JSON body, or None when the body is not a JSON object.
    """

    raw_body: bytes
    signature: Optional[str] = None
    payload: Optional[dict[str, Any]] = field(default=None, compare=False)

    @classmethod
    def from_raw(cls, raw_body: bytes, signature: Optional[str]) -> IncidentWebhookEvent:
        try:
            payload = json.loads(raw_body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError):
            payload = None
        if not isinstance(payload, dict):
            payload = None
        return cls(raw_body=raw_body, signature=signature, payload=payload)

    @property
    def event(self) -> dict[str, Any]:
        event = (self.payload or {}).get("event")
        return event if isinstance(event, dict) else {}

    @property
    def is_well_formed(self) -> bool:
        return isinstance(self.event.get("data"), dict)

    @property
    def event_type(self) -> str:
        return str(self.event.get("event_type") or "")

    @property
    def data(self) -> dict[str, Any]:
        data = self.event.get("data")
        return data if isinstance(data, dict) else {}

    @property
    def incident(self) -> dict[str, Any]:
        incident = self.data.get("incident")
        return incident if isinstance(incident, dict) else self.data

    @property
    def incident_id(self) -> str:
        return str(self.incident.get("id") or "")

    @property
    def title(self) -> str:
        return str(self.incident.get("title") or "")

    @property
    def priority_id(self) -> Optional[str]:
        priority = self.incident.get("priority") or {}
        return priority.get("id") if isinstance(priority, dict) else None

    def _service_field(self, name: str) -> Optional[str]:
        candidates = [self.incident.get("service"), self.data.get("service")]
        services = self.incident.get("services")
        if isinstance(services, list) and services:
            candidates.append(services[0])
        for service in candidates:
            if isinstance(service, dict) and service.get(name):
                return str(service[name])
        return None

    @property
    def service_id(self) -> Optional[str]:
        return self._service_field("id")

    @property
    def service_name(self) -> str:
        return self._service_field("summary") or "Unknown Service"
