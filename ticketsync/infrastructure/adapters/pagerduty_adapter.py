"""
PagerDuty Adapter

Architectural Intent:
- Implements AlertingPort against the PagerDuty REST API v2
- Uses stdlib urllib for the HTTP layer via JsonRestClient

Design Decisions:
- Write calls carry the From header (the acting PagerDuty user)
- get_incident_by_key prefers an unresolved incident when PagerDuty returns
  several for one key (a reopened ticket leaves a resolved predecessor)
"""

import logging
from typing import Optional

from ticketsync.domain.entities.incident import Incident, IncidentDraft, IncidentNote
from ticketsync.domain.services.errors import RemoteCallError
from ticketsync.infrastructure.adapters.rest_client import JsonRestClient

logger = logging.getLogger(__name__)


class PagerDutyAdapter:
    """PagerDuty alerting adapter."""

    def __init__(
        self,
        api_key: str = "",
        user_email: str = "",
        api_url: str = "https://api.pagerduty.com",
        timeout: float = 30.0,
        client: Optional[JsonRestClient] = None,
    ) -> None:
        """Initialize PagerDuty adapter.

        Args:
            api_key: PagerDuty REST API key
            user_email: Email of the PagerDuty user acting on write calls
            api_url: REST API base URL
            timeout: Per-request timeout in seconds
            client: Pre-built REST client (tests)
        """
        self._user_email = user_email
        self._client = client or JsonRestClient(
            api_url,
            headers={
                "Authorization": f"Token token={api_key}",
                "Accept": "application/vnd.pagerduty+json;version=2",
                "Content-Type": "application/json",
            },
            timeout=timeout,
        )

    @property
    def _from(self) -> dict[str, str]:
        return {"From": self._user_email} if self._user_email else {}

    @staticmethod
    def _incident_from(data: object, action: str) -> Incident:
        incident = data.get("incident") if isinstance(data, dict) else None
        if not isinstance(incident, dict):
            raise RemoteCallError(f"PagerDuty {action} returned no incident", payload=data)
        return Incident.from_payload(incident)

    async def create_incident(self, draft: IncidentDraft) -> Incident:
        data = await self._client.request(
            "POST", "incidents", body=draft.to_payload(), headers=self._from
        )
        return self._incident_from(data, "create")

    async def update_incident(self, incident_id: str, status: str) -> Incident:
        data = await self._client.request(
            "PUT",
            f"incidents/{incident_id}",
            body={"incident": {"type": "incident", "status": status}},
            headers=self._from,
        )
        logger.info("Updated PagerDuty incident %s -> %s", incident_id, status)
        return self._incident_from(data, "update")

    async def get_incident_by_key(self, key: str) -> Optional[Incident]:
        data = await self._client.request("GET", "incidents", query={"incident_key": key})
        incidents = [
            Incident.from_payload(item)
            for item in ((data or {}).get("incidents") or [])
            if isinstance(item, dict) and item.get("id")
        ]
        if not incidents:
            return None
        for incident in incidents:
            if not incident.is_resolved:
                return incident
        return incidents[0]

    async def add_incident_note(self, incident_id: str, content: str) -> None:
        await self._client.request(
            "POST",
            f"incidents/{incident_id}/notes",
            body={"note": {"content": content}},
            headers=self._from,
        )

    async def fetch_incident_notes(self, incident_id: str) -> list[IncidentNote]:
        data = await self._client.request("GET", f"incidents/{incident_id}/notes")
        return [
            IncidentNote.from_payload(note)
            for note in ((data or {}).get("notes") or [])
            if isinstance(note, dict)
        ]
