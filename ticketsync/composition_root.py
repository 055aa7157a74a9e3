"""
Composition Root

Architectural Intent:
- Dependency injection composition root for the ticketsync application
- Single place where all adapters and use cases are wired together
- No adapter instantiation should occur outside this module

Design Decisions:
- Uses a simple dataclass container instead of a DI framework
- Remote adapters can be passed in, so tests wire in-memory fakes
- The dedup guard is created once and shared by every creation path
"""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from ticketsync.application.use_cases.create_incident import CreateIncident
from ticketsync.application.use_cases.sync_incident_to_ticket import SyncIncidentToTicket
from ticketsync.application.use_cases.sync_ticket_manually import SyncTicketManually
from ticketsync.application.use_cases.sync_ticket_to_incident import SyncTicketToIncident
from ticketsync.domain.ports.alerting_port import AlertingPort
from ticketsync.domain.ports.ticketing_port import TicketingPort
from ticketsync.domain.services.resolution_note import ResolutionNoteResolver
from ticketsync.infrastructure.adapters.connectwise_adapter import ConnectWiseAdapter
from ticketsync.infrastructure.adapters.pagerduty_adapter import PagerDutyAdapter
from ticketsync.infrastructure.config import TicketSyncConfig
from ticketsync.infrastructure.dedup_guard import InMemoryDedupGuard
from ticketsync.infrastructure.telemetry.otel_exporter import OTELConfig, OTELExporter


@dataclass
class TicketSyncContainer:
    """DI container holding all wired dependencies."""

    config: TicketSyncConfig
    ticketing: TicketingPort
    alerting: AlertingPort
    dedup_guard: InMemoryDedupGuard
    telemetry: OTELExporter
    create_incident: CreateIncident
    ticket_to_incident: SyncTicketToIncident
    incident_to_ticket: SyncIncidentToTicket
    manual_sync: SyncTicketManually


def create_container(
    config: TicketSyncConfig,
    ticketing: Optional[TicketingPort] = None,
    alerting: Optional[AlertingPort] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TicketSyncContainer:
    """Create and wire all dependencies."""
    cw = config.connectwise
    pd = config.pagerduty

    if ticketing is None:
        ticketing = ConnectWiseAdapter(
            site_url=cw.site_url,
            company_id=cw.company_id,
            public_key=cw.public_key,
            private_key=cw.private_key,
            client_id=cw.client_id,
            api_version=cw.api_version,
            timeout=cw.timeout,
        )
    if alerting is None:
        alerting = PagerDutyAdapter(
            api_key=pd.api_key,
            user_email=pd.user_email,
            api_url=pd.api_url,
            timeout=pd.timeout,
        )

    policy = config.sync.policy()
    routes = pd.routes()
    priority_ids = pd.priority_ids()

    dedup_guard = InMemoryDedupGuard(contention_delay=config.sync.contention_delay, sleep=sleep)
    telemetry = OTELExporter(
        OTELConfig(endpoint=config.telemetry.endpoint, insecure=config.telemetry.insecure)
    )

    create_incident = CreateIncident(alerting, dedup_guard, routes, policy, priority_ids)
    ticket_to_incident = SyncTicketToIncident(
        ticketing,
        alerting,
        create_incident,
        policy,
        recheck_delay=config.sync.recheck_delay,
        sleep=sleep,
    )
    incident_to_ticket = SyncIncidentToTicket(
        ticketing, ResolutionNoteResolver(alerting), routes, priority_ids
    )
    manual_sync = SyncTicketManually(ticketing, create_incident, policy)

    return TicketSyncContainer(
        config=config,
        ticketing=ticketing,
        alerting=alerting,
        dedup_guard=dedup_guard,
        telemetry=telemetry,
        create_incident=create_incident,
        ticket_to_incident=ticket_to_incident,
        incident_to_ticket=incident_to_ticket,
        manual_sync=manual_sync,
    )
