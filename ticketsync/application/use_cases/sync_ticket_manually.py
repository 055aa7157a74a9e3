"""
Sync Ticket Manually Use Case

Architectural Intent:
- Operator-triggered sync of one ConnectWise ticket to PagerDuty
- Fetches the ticket instead of receiving it in a webhook, then reuses the
  shared incident creation (so an active incident is never duplicated)
"""

import logging

from ticketsync.application.dtos.webhook_dtos import SyncOutcome, SyncResult
from ticketsync.application.use_cases.create_incident import CreateIncident
from ticketsync.application.use_cases.sync_ticket_to_incident import fetch_description
from ticketsync.domain.ports.ticketing_port import TicketingPort
from ticketsync.domain.services.errors import RejectedInputError
from ticketsync.domain.value_objects.sync_policy import SyncPolicy

logger = logging.getLogger(__name__)


class SyncTicketManually:
    def __init__(
        self,
        ticketing: TicketingPort,
        create_incident: CreateIncident,
        policy: SyncPolicy,
    ):
        self.ticketing = ticketing
        self.create_incident = create_incident
        self.policy = policy

    async def execute(self, ticket_id: int) -> SyncResult:
        try:
            ticket = await self.ticketing.get_ticket(ticket_id)
            if ticket is None:
                return SyncResult(
                    SyncOutcome.NOT_FOUND,
                    f"Ticket #{ticket_id} not found in ConnectWise",
                    ticket_id=ticket_id,
                )
            logger.info("Fetched ConnectWise Ticket #%d", ticket_id)

            if not self.policy.is_board_allowed(ticket.board):
                logger.info("Ticket #%d skipped: board %r not allowed", ticket_id, ticket.board)
                return SyncResult(
                    SyncOutcome.SKIPPED,
                    f"Ticket #{ticket_id} skipped: board {ticket.board!r} is not allowed",
                    ticket_id=ticket_id,
                    status=ticket.status,
                )

            ticket = await fetch_description(self.ticketing, ticket)
            incident = await self.create_incident.execute(ticket)
        except RejectedInputError as e:
            logger.error("Failed to sync Ticket #%d to PagerDuty: %s", ticket_id, e)
            return SyncResult(SyncOutcome.REJECTED, str(e), ticket_id=ticket_id)
        except Exception as e:
            logger.exception("Failed to sync Ticket #%d to PagerDuty", ticket_id)
            return SyncResult(
                SyncOutcome.FAILED,
                f"Error syncing ConnectWise ticket to PagerDuty: {e}",
                ticket_id=ticket_id,
            )

        if incident is None:
            return SyncResult(
                SyncOutcome.SKIPPED,
                f"Ticket #{ticket_id} skipped by admission policy",
                ticket_id=ticket_id,
                status=ticket.status,
            )
        return SyncResult(
            SyncOutcome.CREATED,
            f"PagerDuty incident created for ConnectWise Ticket #{ticket_id}",
            ticket_id=ticket_id,
            status=ticket.status,
            incident_id=incident.id,
        )
