"""
Create Incident Use Case

Architectural Intent:
- Opens the PagerDuty incident for a ConnectWise ticket, at most once per key
- Shared by the webhook path and the manual sync path
- The dedup guard covers only "does an incident exist, if not create it";
  status transitions are not serialized

Design Decisions:
- The correlation key doubles as the PagerDuty incident_key, so PagerDuty
  deduplicates as well; the local guard is an optimization on top
- An existing resolved incident does not block creation (ticket reopened)
"""

import logging
from typing import Mapping, Optional, Sequence

from ticketsync.domain.entities.incident import Incident, IncidentDraft
from ticketsync.domain.entities.ticket import Ticket
from ticketsync.domain.ports.alerting_port import AlertingPort
from ticketsync.domain.ports.dedup_guard_port import DedupGuardPort
from ticketsync.domain.services.errors import UnmappedBoardError
from ticketsync.domain.services.ticket_state_mapper import is_priority_admitted
from ticketsync.domain.value_objects.priority import bucket_for_priority_name
from ticketsync.domain.value_objects.service_route import ServiceRoute, route_for_board
from ticketsync.domain.value_objects.sync_policy import SyncPolicy

logger = logging.getLogger(__name__)

NO_SUMMARY = "No summary"
NO_DETAILS = "No details provided."


def incident_title(code: str, ticket: Ticket) -> str:
    summary = " ".join((ticket.summary or "").split()) or NO_SUMMARY
    return f"{code} | #{ticket.id} - {summary}"


class CreateIncident:
    def __init__(
        self,
        alerting: AlertingPort,
        guard: DedupGuardPort,
        routes: Sequence[ServiceRoute],
        policy: SyncPolicy,
        priority_ids: Optional[Mapping[str, str]] = None,
    ):
        self.alerting = alerting
        self.guard = guard
        self.routes = tuple(routes)
        self.policy = policy
        self.priority_ids = dict(priority_ids or {})

    async def execute(self, ticket: Ticket) -> Optional[Incident]:
        key = str(ticket.correlation_key)

        async with self.guard.hold(key) as owner:
            if not owner:
                logger.info("Creation for %s already in flight, re-checking", key)

            existing = await self.alerting.get_incident_by_key(key)
            if existing is not None and not existing.is_resolved:
                logger.info(
                    "PagerDuty incident %s already exists for %s (status: %s)",
                    existing.id,
                    key,
                    existing.status.value,
                )
                return existing

            draft = self.build_draft(ticket)
            if draft is None:
                return None

            incident = await self.alerting.create_incident(draft)
            logger.info(
                "Created PagerDuty incident %s for Ticket #%d (%s)",
                incident.id,
                ticket.id,
                draft.title,
                extra={"ticket_id": ticket.id, "incident_id": incident.id},
            )

            if draft.note:
                await self.alerting.add_incident_note(incident.id, draft.note)
                logger.info("Added description note to PagerDuty incident %s", incident.id)

            return incident

    def build_draft(self, ticket: Ticket) -> Optional[IncidentDraft]:
        """Apply routing and admission policies; None means the ticket is not paged."""
        route = route_for_board(self.routes, ticket.board)
        if route is None or not route.service_id:
            raise UnmappedBoardError(ticket.board)

        if not self.policy.passes_keyword_gate(ticket.board, ticket.summary):
            logger.info(
                "Ticket #%d skipped: summary has none of the required keywords",
                ticket.id,
            )
            return None

        bucket = bucket_for_priority_name(ticket.priority)
        if not is_priority_admitted(bucket, self.policy):
            logger.info(
                "Ticket #%d skipped: priority %r (%s) below admission threshold",
                ticket.id,
                ticket.priority,
                bucket.code,
            )
            return None

        return IncidentDraft(
            key=ticket.correlation_key,
            title=incident_title(bucket.code, ticket),
            service_id=route.service_id,
            bucket=bucket,
            priority_id=self.priority_ids.get(bucket.code, ""),
            details=ticket.description or ticket.summary or NO_DETAILS,
            note=ticket.description,
        )
