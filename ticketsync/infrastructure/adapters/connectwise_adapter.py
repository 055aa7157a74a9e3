"""
ConnectWise Manage Adapter

Architectural Intent:
- Implements TicketingPort against the ConnectWise Manage REST API (v3.0)
- Uses stdlib urllib for the HTTP layer via JsonRestClient

Design Decisions:
- Authenticates with "Basic base64(company+public:private)" plus the clientId header
- The initial description is the first ticket note flagged detailDescriptionFlag
- Description lookups are best-effort and return None on any failure
- Note kinds map onto exactly one of the three ConnectWise note flags
"""

import base64
import logging
from typing import Optional

from ticketsync.domain.entities.ticket import Ticket
from ticketsync.domain.services.errors import RemoteCallError
from ticketsync.domain.value_objects.ticket_patch import NoteKind, TicketPatch
from ticketsync.infrastructure.adapters.rest_client import JsonRestClient

logger = logging.getLogger(__name__)

_NOTE_FLAGS = {
    NoteKind.DETAIL: "detailDescriptionFlag",
    NoteKind.RESOLUTION: "resolutionFlag",
    NoteKind.INTERNAL: "internalAnalysisFlag",
}


def note_payload(text: str, kind: NoteKind) -> dict:
    payload = {"text": text, **{flag: False for flag in _NOTE_FLAGS.values()}}
    payload[_NOTE_FLAGS[kind]] = True
    return payload


class ConnectWiseAdapter:
    """ConnectWise Manage ticketing adapter."""

    def __init__(
        self,
        site_url: str = "https://na.myconnectwise.net",
        company_id: str = "",
        public_key: str = "",
        private_key: str = "",
        client_id: str = "",
        api_version: str = "v2025_1",
        timeout: float = 30.0,
        client: Optional[JsonRestClient] = None,
    ) -> None:
        """Initialize ConnectWise adapter.

        Args:
            site_url: ConnectWise site, e.g. https://na.myconnectwise.net
            company_id: Company identifier used in the API member login
            public_key: API member public key
            private_key: API member private key
            client_id: Developer client id sent as the clientId header
            api_version: Versioned API path segment
            timeout: Per-request timeout in seconds
            client: Pre-built REST client (tests)
        """
        token = base64.b64encode(
            f"{company_id}+{public_key}:{private_key}".encode("utf-8")
        ).decode("ascii")
        self._client = client or JsonRestClient(
            f"{site_url.rstrip('/')}/{api_version}/apis/3.0",
            headers={
                "Authorization": f"Basic {token}",
                "Content-Type": "application/json",
                "Accept": "application/json",
                "clientId": client_id,
            },
            timeout=timeout,
        )

    async def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        try:
            data = await self._client.request("GET", f"service/tickets/{ticket_id}")
        except RemoteCallError as e:
            if e.status == 404:
                return None
            raise
        if not isinstance(data, dict):
            return None
        return Ticket.from_payload(data)

    async def get_ticket_description(self, ticket_id: int) -> Optional[str]:
        try:
            notes = await self._client.request("GET", f"service/tickets/{ticket_id}/notes")
        except Exception as e:
            logger.error("Failed to fetch notes for Ticket #%d: %s", ticket_id, e)
            return None

        for note in notes or []:
            if isinstance(note, dict) and note.get("detailDescriptionFlag") is True:
                logger.info("Fetched initial description for Ticket #%d", ticket_id)
                return note.get("text")

        logger.info("No initial description found for Ticket #%d", ticket_id)
        return None

    async def update_ticket(self, ticket_id: int, patch: TicketPatch) -> None:
        await self._client.request("PATCH", f"service/tickets/{ticket_id}", body=patch.to_list())
        logger.info("Updated ticket #%d in ConnectWise", ticket_id)

    async def add_ticket_note(self, ticket_id: int, text: str, kind: NoteKind) -> None:
        await self._client.request(
            "POST", f"service/tickets/{ticket_id}/notes", body=note_payload(text, kind)
        )
        logger.info("Added %s note to Ticket #%d", kind.value, ticket_id)
