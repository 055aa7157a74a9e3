"""
Sync Incident To Ticket Use Case

Architectural Intent:
- Handles one PagerDuty v3 webhook and mirrors it onto the ConnectWise ticket
- Verifies the webhook signature with the secret of the originating service
- Never raises: every path returns a SyncResult

Flow:
1. Malformed envelope                 -> rejected
2. incident.annotated                 -> detail note (before service resolution)
3. No service info                    -> skipped (system event)
4. Unknown service / bad signature    -> rejected
5. No "#<ticket>" in the title        -> skipped
6. Status + priority patch in one call, then one resolution note if resolved
"""

import logging
from typing import Mapping, Optional, Sequence

from ticketsync.application.dtos.webhook_dtos import (
    IncidentWebhookEvent,
    SyncOutcome,
    SyncResult,
)
from ticketsync.domain.entities.incident import ticket_reference
from ticketsync.domain.ports.ticketing_port import TicketingPort
from ticketsync.domain.services.errors import RejectedInputError, SignatureError
from ticketsync.domain.services.incident_event_mapper import (
    ANNOTATED,
    annotation_text,
    map_incident_event,
)
from ticketsync.domain.services.resolution_note import ResolutionNoteResolver
from ticketsync.domain.services.signature_verifier import verify_signature
from ticketsync.domain.value_objects.service_route import ServiceRoute, route_for_service
from ticketsync.domain.value_objects.ticket_patch import NoteKind

logger = logging.getLogger(__name__)


class SyncIncidentToTicket:
    def __init__(
        self,
        ticketing: TicketingPort,
        resolver: ResolutionNoteResolver,
        routes: Sequence[ServiceRoute],
        priority_ids: Optional[Mapping[str, str]] = None,
    ):
        self.ticketing = ticketing
        self.resolver = resolver
        self.routes = tuple(routes)
        self.priority_ids = dict(priority_ids or {})

    async def execute(self, event: IncidentWebhookEvent) -> SyncResult:
        try:
            return await self._sync(event)
        except SignatureError as e:
            logger.error("%s", e)
            return SyncResult(SyncOutcome.UNAUTHORIZED, "Invalid signature")
        except RejectedInputError as e:
            logger.error("Rejected PagerDuty webhook: %s", e)
            return SyncResult(SyncOutcome.REJECTED, str(e))
        except Exception:
            logger.exception("Error handling PagerDuty webhook")
            return SyncResult(SyncOutcome.FAILED, "Internal Server Error")

    async def _sync(self, event: IncidentWebhookEvent) -> SyncResult:
        if not event.is_well_formed:
            raise RejectedInputError("Invalid PagerDuty v3 payload")

        event_type = event.event_type
        if event_type == ANNOTATED:
            return await self._annotate(event)

        service_id = event.service_id
        service_name = event.service_name
        logger.info(
            "Received %s from PagerDuty service: %s (%s)",
            event_type,
            service_name,
            service_id,
            extra={"event_type": event_type, "incident_id": event.incident_id},
        )

        if not service_id:
            logger.info("Skipping PagerDuty event %r: no service info", event_type)
            return SyncResult(SyncOutcome.SKIPPED, "Event skipped (no service info)")

        self._authenticate(event, service_id, service_name)

        ticket_id = self._ticket_id(event)
        if ticket_id is None:
            logger.info("No ConnectWise ticket ID found in incident title %r", event.title)
            return SyncResult(SyncOutcome.SKIPPED, "No ConnectWise ticket ID found")

        logger.info(
            "Matched PagerDuty incident %s -> ConnectWise Ticket #%d (service: %s)",
            event.incident_id,
            ticket_id,
            service_name,
            extra={"ticket_id": ticket_id, "incident_id": event.incident_id, "event_type": event_type},
        )

        mapping = map_incident_event(event_type, event.priority_id, self.priority_ids)
        if not mapping.handled:
            logger.info("Unhandled PagerDuty event type %r for Ticket #%d", event_type, ticket_id)
            return SyncResult(
                SyncOutcome.IGNORED, f"Unhandled event type {event_type}", ticket_id=ticket_id
            )

        if mapping.patch:
            await self.ticketing.update_ticket(ticket_id, mapping.patch)
            logger.info("Updated ConnectWise Ticket #%d (%d operations)", ticket_id, len(mapping.patch))

        if mapping.fetch_resolution_note:
            note = await self.resolver.resolve(event.incident_id)
            await self.ticketing.add_ticket_note(ticket_id, note, NoteKind.RESOLUTION)
            logger.info("Added resolution note to ConnectWise Ticket #%d: %s", ticket_id, note)
            return SyncResult(
                SyncOutcome.RESOLVED,
                "PagerDuty v3 webhook processed successfully",
                ticket_id=ticket_id,
                status=mapping.status_name,
                incident_id=event.incident_id,
            )

        return SyncResult(
            SyncOutcome.UPDATED,
            "PagerDuty v3 webhook processed successfully",
            ticket_id=ticket_id,
            status=mapping.status_name,
            incident_id=event.incident_id,
        )

    def _authenticate(
        self, event: IncidentWebhookEvent, service_id: str, service_name: str
    ) -> None:
        route = route_for_service(self.routes, service_id, service_name)
        if route is None:
            raise RejectedInputError(f"Unknown service: {service_name}")
        if not route.secret:
            raise RejectedInputError(f"No webhook secret configured for service: {service_name}")
        if not verify_signature(event.raw_body, event.signature, route.secret):
            raise SignatureError(
                f"PagerDuty signature verification failed for service: {service_name}"
            )

    @staticmethod
    def _ticket_id(event: IncidentWebhookEvent) -> Optional[int]:
        ticket_id = ticket_reference(event.title)
        if ticket_id is None:
            # Incident references in v3 payloads carry the title as summary
            ticket_id = ticket_reference(event.incident.get("summary"))
        return ticket_id

    async def _annotate(self, event: IncidentWebhookEvent) -> SyncResult:
        ticket_id = self._ticket_id(event)
        if ticket_id is None:
            logger.info("Skipped annotation event: no ticket ID found")
            return SyncResult(SyncOutcome.SKIPPED, "Annotation skipped (no ticket ID)")

        text = annotation_text(event.incident, event.data)
        await self.ticketing.add_ticket_note(ticket_id, text, NoteKind.DETAIL)
        logger.info("Added PagerDuty annotation to ConnectWise Ticket #%d: %s", ticket_id, text)
        return SyncResult(SyncOutcome.ANNOTATED, "Annotation handled", ticket_id=ticket_id)
