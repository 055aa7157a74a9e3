"""Tests for value objects: CorrelationKey, priorities, routes, patches, SyncPolicy."""

import pytest
from ticketsync.domain.value_objects.correlation_key import CorrelationKey
from ticketsync.domain.value_objects.priority import (
    ALL_BUCKETS,
    P1,
    P2,
    P3,
    P4,
    P5,
    TICKET_PRIORITIES,
    Urgency,
    bucket_for_priority_name,
)
from ticketsync.domain.value_objects.service_route import (
    ServiceRoute,
    route_for_board,
    route_for_service,
)
from ticketsync.domain.value_objects.sync_policy import (
    ALERTS,
    SECURITY_OPERATIONS,
    TECHNICAL_SUPPORT,
    SyncPolicy,
)
from ticketsync.domain.value_objects.ticket_patch import (
    NoteKind,
    PatchOperation,
    TicketPatch,
)


class TestCorrelationKey:
    def test_for_ticket(self):
        key = CorrelationKey.for_ticket(42)
        assert str(key) == "CW-42"
        assert key.ticket_id == 42

    def test_for_ticket_accepts_numeric_string(self):
        assert CorrelationKey.for_ticket(" 1007 ") == CorrelationKey("CW-1007")

    def test_deterministic(self):
        assert CorrelationKey.for_ticket(5) == CorrelationKey.for_ticket("5")

    def test_non_numeric_rejected(self):
        with pytest.raises(ValueError, match="must be numeric"):
            CorrelationKey.for_ticket("abc")

    def test_wrong_prefix_rejected(self):
        with pytest.raises(ValueError, match="must start with"):
            CorrelationKey("PD-42")

    def test_missing_digits_rejected(self):
        with pytest.raises(ValueError, match="Invalid correlation key"):
            CorrelationKey("CW-")

    def test_frozen(self):
        key = CorrelationKey("CW-1")
        with pytest.raises(AttributeError):
            key.value = "CW-2"


class TestPriorityBuckets:
    @pytest.mark.parametrize(
        "name, bucket",
        [
            ("1a - Emergency", P1),
            ("1b - Emergency", P1),
            ("2a - Critical", P2),
            ("2b - Critical", P2),
            ("2c - Critical", P2),
            ("3 - High", P3),
            ("4a - Normal", P4),
            ("4b - Normal", P4),
            ("4c - Normal", P4),
        ],
    )
    def test_named_priorities(self, name, bucket):
        assert bucket_for_priority_name(name) == bucket

    def test_case_insensitive(self):
        assert bucket_for_priority_name("  1A - EMERGENCY ") == P1

    @pytest.mark.parametrize("name", ["10a - Maintenance", "", None, "Whatever"])
    def test_unknown_falls_back_to_p5(self, name):
        assert bucket_for_priority_name(name) == P5

    def test_urgency(self):
        assert [b.urgency for b in ALL_BUCKETS] == [
            Urgency.HIGH,
            Urgency.HIGH,
            Urgency.HIGH,
            Urgency.LOW,
            Urgency.LOW,
        ]
        assert P1.is_urgent and not P4.is_urgent


class TestTicketPriorities:
    def test_pagerduty_to_connectwise_table(self):
        table = {code: (p.name, p.id) for code, p in TICKET_PRIORITIES.items()}
        assert table == {
            "P1": ("1a - Emergency", 6),
            "P2": ("2a - Critical", 15),
            "P3": ("3 - High", 8),
            "P4": ("4a - Normal", 7),
            "P5": ("10a - Maintenance", 12),
        }


class TestServiceRoute:
    ROUTES = (
        ServiceRoute(TECHNICAL_SUPPORT, "PTS", "s-ts"),
        ServiceRoute(ALERTS, "PNOC", "s-noc"),
        ServiceRoute(SECURITY_OPERATIONS, "PSOC", "s-soc"),
    )

    def test_empty_board_rejected(self):
        with pytest.raises(ValueError, match="cannot be empty"):
            ServiceRoute("")

    def test_secret_hidden_from_repr(self):
        assert "s-ts" not in repr(self.ROUTES[0])

    def test_route_for_board(self):
        assert route_for_board(self.ROUTES, ALERTS).service_id == "PNOC"
        assert route_for_board(self.ROUTES, "Projects") is None

    def test_route_for_service_by_id(self):
        assert route_for_service(self.ROUTES, "PSOC").board == SECURITY_OPERATIONS

    def test_route_for_service_by_name(self):
        route = route_for_service(self.ROUTES, "PUNKNOWN", TECHNICAL_SUPPORT)
        assert route.secret == "s-ts"

    def test_route_for_service_unknown(self):
        assert route_for_service(self.ROUTES, "PUNKNOWN", "Unknown Service") is None


class TestTicketPatch:
    def test_empty_patch_is_falsy(self):
        assert not TicketPatch()
        assert len(TicketPatch()) == 0

    def test_status_and_priority_in_one_patch(self):
        patch = TicketPatch().with_status("Acknowledged").with_priority(TICKET_PRIORITIES["P2"])
        assert patch.to_list() == [
            {"op": "replace", "path": "status", "value": {"name": "Acknowledged"}},
            {"op": "replace", "path": "priority", "value": {"id": 15, "name": "2a - Critical"}},
        ]

    def test_with_status_does_not_mutate(self):
        base = TicketPatch()
        base.with_status("New")
        assert base.operations == ()

    def test_operation_to_dict(self):
        assert PatchOperation("summary", "x").to_dict() == {
            "op": "replace",
            "path": "summary",
            "value": "x",
        }

    def test_note_kinds(self):
        assert {k.value for k in NoteKind} == {"Detail", "Resolution", "Internal"}


class TestSyncPolicy:
    def test_defaults(self):
        policy = SyncPolicy()
        assert policy.keyword_gate is True
        assert policy.strict_priority is False
        assert set(policy.allowed_boards) == {TECHNICAL_SUPPORT, ALERTS, SECURITY_OPERATIONS}

    def test_board_allowed(self):
        policy = SyncPolicy(allowed_boards=(ALERTS,))
        assert policy.is_board_allowed(ALERTS)
        assert not policy.is_board_allowed(TECHNICAL_SUPPORT)

    def test_keyword_gate_case_insensitive(self):
        policy = SyncPolicy()
        assert policy.passes_keyword_gate(TECHNICAL_SUPPORT, "Issue via Critical outage")
        assert not policy.passes_keyword_gate(TECHNICAL_SUPPORT, "Printer jam")

    def test_keyword_gate_only_on_keyword_board(self):
        policy = SyncPolicy()
        assert policy.passes_keyword_gate(ALERTS, "Printer jam")

    def test_keyword_gate_disabled(self):
        policy = SyncPolicy(keyword_gate=False)
        assert policy.passes_keyword_gate(TECHNICAL_SUPPORT, "Printer jam")

    def test_gate_without_keywords_rejected(self):
        with pytest.raises(ValueError, match="at least one keyword"):
            SyncPolicy(keywords=())
