"""
Sync Ticket To Incident Use Case

Architectural Intent:
- Handles one ConnectWise ticket callback and brings PagerDuty in line
- Decides create / resolve / no-op from the ticket status and the current
  PagerDuty incident for the ticket's correlation key
- Never raises: every path returns a SyncResult

Decision table (incident looked up by correlation key, re-checked once):
    no incident, any status       -> create (admission gates still apply)
    TRIGGER, incident resolved    -> create a new incident (ticket reopened)
    TRIGGER, incident active      -> no-op
    RESOLVE, incident active      -> resolve it
    RESOLVE, incident resolved    -> no-op
    NONE, incident found          -> no-op (unmapped status)
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from ticketsync.application.dtos.webhook_dtos import (
    SyncOutcome,
    SyncResult,
    TicketWebhookEvent,
)
from ticketsync.application.use_cases.create_incident import CreateIncident
from ticketsync.domain.entities.incident import Incident
from ticketsync.domain.entities.ticket import Ticket
from ticketsync.domain.ports.alerting_port import AlertingPort
from ticketsync.domain.ports.ticketing_port import TicketingPort
from ticketsync.domain.services.errors import RejectedInputError
from ticketsync.domain.services.ticket_state_mapper import TicketAction, map_ticket_state
from ticketsync.domain.value_objects.sync_policy import SyncPolicy

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


async def fetch_description(ticketing: TicketingPort, ticket: Ticket) -> Ticket:
    """Best-effort enrichment with the ticket's initial description."""
    try:
        description = await ticketing.get_ticket_description(ticket.id)
    except Exception as e:
        logger.warning("Description fetch failed for Ticket #%d: %s", ticket.id, e)
        return ticket
    return ticket.with_description(description)


class SyncTicketToIncident:
    def __init__(
        self,
        ticketing: TicketingPort,
        alerting: AlertingPort,
        create_incident: CreateIncident,
        policy: SyncPolicy,
        recheck_delay: float = 2.0,
        sleep: Sleeper = asyncio.sleep,
    ):
        self.ticketing = ticketing
        self.alerting = alerting
        self.create_incident = create_incident
        self.policy = policy
        self.recheck_delay = recheck_delay
        self._sleep = sleep

    async def execute(self, event: TicketWebhookEvent) -> SyncResult:
        try:
            return await self._sync(event)
        except RejectedInputError as e:
            logger.error("Rejected ConnectWise webhook: %s", e)
            return SyncResult(SyncOutcome.REJECTED, str(e))
        except Exception as e:
            logger.exception("Error processing ConnectWise webhook")
            return SyncResult(
                SyncOutcome.FAILED,
                f"Error creating/updating PagerDuty incident: {e}",
            )

    async def _sync(self, event: TicketWebhookEvent) -> SyncResult:
        if not event.is_ticket:
            return SyncResult(SyncOutcome.IGNORED, "Ignored non-ticket webhook")
        if not event.ticket or not event.ticket.get("id"):
            return SyncResult(SyncOutcome.REJECTED, "Missing ticket object or ID")

        try:
            ticket = Ticket.from_payload(event.ticket)
        except ValueError as e:
            raise RejectedInputError(str(e)) from e

        logger.info(
            "ConnectWise %s for Ticket #%d [board=%s, status=%s]",
            event.action or "callback",
            ticket.id,
            ticket.board,
            ticket.status,
            extra={"ticket_id": ticket.id},
        )

        if not self.policy.is_board_allowed(ticket.board):
            logger.info("Skipped Ticket #%d: board %r not allowed", ticket.id, ticket.board)
            return SyncResult(
                SyncOutcome.SKIPPED,
                "Board not allowed",
                ticket_id=ticket.id,
                status=ticket.status,
            )

        ticket = await fetch_description(self.ticketing, ticket)
        mapping = map_ticket_state(ticket, self.policy)

        existing = await self._find_incident(str(ticket.correlation_key))
        if existing is None:
            # Admission gates are applied by CreateIncident
            return await self._create(ticket, "Created PagerDuty incident")

        if mapping.action is TicketAction.TRIGGER:
            if existing.is_resolved:
                logger.info(
                    "Ticket #%d reopened after PagerDuty incident %s resolved",
                    ticket.id,
                    existing.id,
                )
                return await self._create(ticket, "Created new PagerDuty incident")
            logger.info(
                "Ticket #%d already active in PagerDuty (status: %s)",
                ticket.id,
                existing.status.value,
            )
            return self._result(
                SyncOutcome.UNCHANGED, "Incident already active", ticket, existing
            )

        if mapping.action is TicketAction.NONE:
            logger.info(
                "Ticket #%d: ConnectWise status %r has no PagerDuty mapping",
                ticket.id,
                ticket.status,
            )
            return self._result(SyncOutcome.UNCHANGED, "No PagerDuty mapping", ticket, existing)

        if existing.is_resolved:
            logger.info("Ticket #%d already resolved in PagerDuty", ticket.id)
            return self._result(
                SyncOutcome.UNCHANGED, "Incident already resolved", ticket, existing
            )

        await self.alerting.update_incident(existing.id, "resolved")
        logger.info(
            "Ticket #%d -> PagerDuty incident %s set to resolved",
            ticket.id,
            existing.id,
            extra={"ticket_id": ticket.id, "incident_id": existing.id},
        )
        return self._result(SyncOutcome.RESOLVED, "Resolved PagerDuty incident", ticket, existing)

    async def _find_incident(self, key: str) -> Optional[Incident]:
        incident = await self.alerting.get_incident_by_key(key)
        if incident is None:
            # PagerDuty indexes new incidents with a short lag
            logger.debug("No incident for %s yet, re-checking in %.1fs", key, self.recheck_delay)
            await self._sleep(self.recheck_delay)
            incident = await self.alerting.get_incident_by_key(key)
        if incident is not None:
            logger.info(
                "Existing PagerDuty incident %s for %s (status: %s)",
                incident.id,
                key,
                incident.status.value,
            )
        return incident

    async def _create(self, ticket: Ticket, message: str) -> SyncResult:
        incident = await self.create_incident.execute(ticket)
        if incident is None:
            return self._result(SyncOutcome.SKIPPED, "Skipped by admission policy", ticket)
        return self._result(SyncOutcome.CREATED, message, ticket, incident)

    @staticmethod
    def _result(
        outcome: SyncOutcome,
        message: str,
        ticket: Ticket,
        incident: Optional[Incident] = None,
    ) -> SyncResult:
        return SyncResult(
            outcome,
            message,
            ticket_id=ticket.id,
            status=ticket.status,
            incident_id=incident.id if incident else None,
        )
