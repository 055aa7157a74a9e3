"""Tests for the SyncTicketToIncident use case."""

import logging

import pytest
from unittest.mock import AsyncMock

from ticketsync.application.dtos.webhook_dtos import SyncOutcome, TicketWebhookEvent
from ticketsync.application.use_cases.create_incident import CreateIncident
from ticketsync.application.use_cases.sync_ticket_to_incident import SyncTicketToIncident
from ticketsync.domain.entities.incident import IncidentStatus
from ticketsync.domain.value_objects.service_route import ServiceRoute
from ticketsync.domain.value_objects.sync_policy import SyncPolicy
from ticketsync.infrastructure.dedup_guard import InMemoryDedupGuard

ROUTES = (
    ServiceRoute("Technical Support", "PTS", "s-ts"),
    ServiceRoute("Alerts", "PNOC", "s-noc"),
    ServiceRoute("Security Operations Center", "PSOC", "s-soc"),
)


def _event(ticket_id=42, status="New", board="Technical Support", **ticket_fields):
    ticket = {
        "id": ticket_id,
        "summary": "Issue via Critical outage",
        "board": {"name": board},
        "status": {"name": status},
        "priority": {"name": "1a - Emergency"},
    }
    ticket.update(ticket_fields)
    return TicketWebhookEvent.from_body({"type": "ticket", "action": "updated", "entity": ticket})


@pytest.fixture()
def use_case(ticketing, alerting, sleeper):
    policy = SyncPolicy()
    create = CreateIncident(alerting, InMemoryDedupGuard(contention_delay=0.0), ROUTES, policy)
    return SyncTicketToIncident(
        ticketing, alerting, create, policy, recheck_delay=2.0, sleep=sleeper
    )


class TestEnvelope:
    @pytest.mark.asyncio
    async def test_non_ticket_ignored(self, use_case, alerting):
        event = TicketWebhookEvent.from_body({"type": "company", "entity": {"id": 1}})
        result = await use_case.execute(event)

        assert result.outcome is SyncOutcome.IGNORED
        assert result.message == "Ignored non-ticket webhook"
        assert alerting.lookups == 0

    @pytest.mark.asyncio
    async def test_missing_ticket_rejected(self, use_case):
        result = await use_case.execute(TicketWebhookEvent.from_body({"type": "ticket"}))

        assert result.outcome is SyncOutcome.REJECTED
        assert result.http_status == 400
        assert result.message == "Missing ticket object or ID"

    @pytest.mark.asyncio
    async def test_non_numeric_id_rejected(self, use_case):
        result = await use_case.execute(_event(ticket_id="abc"))
        assert result.outcome is SyncOutcome.REJECTED

    @pytest.mark.asyncio
    async def test_board_not_allowed(self, use_case, alerting):
        result = await use_case.execute(_event(board="Projects"))

        assert result.outcome is SyncOutcome.SKIPPED
        assert result.message == "Board not allowed"
        assert result.http_status == 200
        assert alerting.lookups == 0


class TestTrigger:
    @pytest.mark.asyncio
    async def test_creates_when_absent(self, use_case, alerting, sleeper):
        result = await use_case.execute(_event())

        assert result.outcome is SyncOutcome.CREATED
        assert result.ticket_id == 42
        assert len(alerting.drafts) == 1
        assert alerting.drafts[0].title.startswith("P1 | #42")
        # One re-check after the first "not found"
        assert sleeper.delays == [2.0]

    @pytest.mark.asyncio
    async def test_recheck_finds_incident(self, use_case, alerting, sleeper):
        original = alerting.get_incident_by_key

        async def appears_late(key):
            incident = await original(key)
            if not sleeper.delays:
                return None
            return incident

        alerting.seed("CW-42", IncidentStatus.TRIGGERED)
        alerting.get_incident_by_key = appears_late

        result = await use_case.execute(_event())

        assert result.outcome is SyncOutcome.UNCHANGED
        assert alerting.drafts == []

    @pytest.mark.asyncio
    async def test_active_incident_not_duplicated(self, use_case, alerting, sleeper):
        existing = alerting.seed("CW-42", IncidentStatus.ACKNOWLEDGED)
        result = await use_case.execute(_event())

        assert result.outcome is SyncOutcome.UNCHANGED
        assert result.incident_id == existing.id
        assert alerting.drafts == []
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_reopened_ticket_gets_new_incident(self, use_case, alerting):
        alerting.seed("CW-42", IncidentStatus.RESOLVED)
        result = await use_case.execute(_event(status="Re-Opened"))

        assert result.outcome is SyncOutcome.CREATED
        assert result.message == "Created new PagerDuty incident"
        assert len(alerting.drafts) == 1

    @pytest.mark.asyncio
    async def test_keyword_gate_suppresses_trigger(self, use_case, alerting):
        result = await use_case.execute(_event(summary="Printer jam"))

        assert result.outcome is SyncOutcome.SKIPPED
        assert result.http_status == 200
        assert alerting.drafts == []

    @pytest.mark.asyncio
    async def test_description_fetched(self, use_case, ticketing, alerting):
        ticketing.descriptions[42] = "Customer reports total outage"
        await use_case.execute(_event())
        assert alerting.drafts[0].details == "Customer reports total outage"

    @pytest.mark.asyncio
    async def test_description_failure_is_not_fatal(self, use_case, ticketing, alerting):
        ticketing.fail_description = True
        result = await use_case.execute(_event())

        assert result.outcome is SyncOutcome.CREATED
        assert alerting.drafts[0].details == "Issue via Critical outage"


class TestResolve:
    @pytest.mark.asyncio
    async def test_resolves_active_incident(self, use_case, alerting):
        existing = alerting.seed("CW-42", IncidentStatus.TRIGGERED)
        result = await use_case.execute(_event(status="Completed: Resolved"))

        assert result.outcome is SyncOutcome.RESOLVED
        assert alerting.status_updates == [(existing.id, "resolved")]

    @pytest.mark.asyncio
    async def test_resolve_log_carries_context(self, use_case, alerting, caplog):
        existing = alerting.seed("CW-42", IncidentStatus.TRIGGERED)
        with caplog.at_level(logging.INFO, logger="ticketsync"):
            await use_case.execute(_event(status="Completed: Resolved"))

        records = [r for r in caplog.records if getattr(r, "incident_id", None) == existing.id]
        assert len(records) == 1
        assert records[0].ticket_id == 42
        assert "set to resolved" in records[0].getMessage()

    @pytest.mark.asyncio
    async def test_keyword_gate_does_not_block_resolve(self, use_case, alerting):
        alerting.seed("CW-42", IncidentStatus.TRIGGERED)
        result = await use_case.execute(_event(status="Cancelled", summary="Printer jam"))
        assert result.outcome is SyncOutcome.RESOLVED

    @pytest.mark.asyncio
    async def test_already_resolved_is_noop(self, use_case, alerting):
        alerting.seed("CW-42", IncidentStatus.RESOLVED)
        result = await use_case.execute(_event(status="Returned To Normal"))

        assert result.outcome is SyncOutcome.UNCHANGED
        assert alerting.status_updates == []

    @pytest.mark.asyncio
    async def test_absent_incident_is_created(self, use_case, alerting, sleeper):
        result = await use_case.execute(_event(status="Completed: Resolved", board="Alerts"))

        assert result.outcome is SyncOutcome.CREATED
        assert len(alerting.drafts) == 1
        assert str(alerting.drafts[0].key) == "CW-42"
        assert alerting.status_updates == []
        assert sleeper.delays == [2.0]

    @pytest.mark.asyncio
    async def test_absent_incident_still_keyword_gated(self, use_case, alerting):
        result = await use_case.execute(_event(status="Chat Abandoned", summary="Printer jam"))

        assert result.outcome is SyncOutcome.SKIPPED
        assert alerting.drafts == []


class TestNoMapping:
    @pytest.mark.asyncio
    async def test_unmapped_status_with_incident(self, use_case, alerting, sleeper):
        existing = alerting.seed("CW-42", IncidentStatus.TRIGGERED)
        result = await use_case.execute(_event(status="In Progress"))

        assert result.outcome is SyncOutcome.UNCHANGED
        assert result.incident_id == existing.id
        assert alerting.lookups == 1
        assert alerting.status_updates == []
        assert alerting.drafts == []
        assert sleeper.delays == []

    @pytest.mark.asyncio
    async def test_unmapped_status_without_incident(self, use_case, alerting):
        result = await use_case.execute(_event(status="In Progress", board="Alerts"))

        assert result.outcome is SyncOutcome.CREATED
        assert len(alerting.drafts) == 1
        assert alerting.drafts[0].service_id == "PNOC"


class TestFailures:
    @pytest.mark.asyncio
    async def test_remote_failure_is_500(self, ticketing, sleeper):
        alerting = AsyncMock()
        alerting.get_incident_by_key = AsyncMock(side_effect=RuntimeError("timeout"))
        policy = SyncPolicy()
        create = CreateIncident(alerting, InMemoryDedupGuard(), ROUTES, policy)
        use_case = SyncTicketToIncident(ticketing, alerting, create, policy, sleep=sleeper)

        result = await use_case.execute(_event())

        assert result.outcome is SyncOutcome.FAILED
        assert result.http_status == 500
        assert "timeout" in result.message

    @pytest.mark.asyncio
    async def test_unmapped_board_is_400(self, ticketing, alerting, sleeper):
        policy = SyncPolicy(allowed_boards=("Projects",))
        create = CreateIncident(alerting, InMemoryDedupGuard(), ROUTES, policy)
        use_case = SyncTicketToIncident(ticketing, alerting, create, policy, sleep=sleeper)

        result = await use_case.execute(_event(board="Projects"))

        assert result.outcome is SyncOutcome.REJECTED
        assert result.http_status == 400
