"""
Ticket -> Incident State Mapping

Architectural Intent:
- Pure domain service deciding what a ConnectWise ticket state means for PagerDuty
- Status vocabulary is a fixed ConnectWise enum, encoded as explicit sets
- No I/O: the orchestrator acts on the returned mapping

Domain Rules:
- A resolve status always maps to RESOLVE
- A trigger status maps to TRIGGER only when the keyword gate passes
- Every other status maps to NONE
- TRIGGER_STATUSES and RESOLVE_STATUSES are disjoint
"""

from dataclasses import dataclass
from enum import Enum, auto

from ticketsync.domain.entities.ticket import Ticket
from ticketsync.domain.value_objects.priority import (
    PriorityBucket,
    STRICT_ADMITTED,
    bucket_for_priority_name,
)
from ticketsync.domain.value_objects.sync_policy import SyncPolicy


class TicketAction(Enum):
    TRIGGER = auto()
    RESOLVE = auto()
    NONE = auto()


TRIGGER_STATUSES: frozenset[str] = frozenset({
    "New",
    "Re-Opened",
    "Detection: Waiting IRT Assignment",
    "Detection: Augmentt",
    "Detection: Nodeware",
    "New (email connector)",
    "New (Portal)",
    "New (Chat)",
})

RESOLVE_STATUSES: frozenset[str] = frozenset({
    "Cancelled",
    "Cancelled: Duplicate",
    "Cancelled: Child Ticket",
    "Cancelled: Self Resolved",
    "Completed: Resolved",
    "Completed: No Reply (Client)",
    "Completed: Do Not Notify",
    "Returned To Normal",
    "Completed: Marked by Client",
    "Completed: No Response",
    "Chat Abandoned",
})


@dataclass(frozen=True)
class TicketStateMapping:
    action: TicketAction
    bucket: PriorityBucket

    @property
    def priority_code(self) -> str:
        return self.bucket.code

    @property
    def urgency(self) -> str:
        return self.bucket.urgency.value


def status_action(status_name: str) -> TicketAction:
    """Classify a status name without any admission gate."""
    status = (status_name or "").strip()
    if status in RESOLVE_STATUSES:
        return TicketAction.RESOLVE
    if status in TRIGGER_STATUSES:
        return TicketAction.TRIGGER
    return TicketAction.NONE


def map_ticket_state(ticket: Ticket, policy: SyncPolicy) -> TicketStateMapping:
    action = status_action(ticket.status)
    if action is TicketAction.TRIGGER and not policy.passes_keyword_gate(
        ticket.board, ticket.summary
    ):
        action = TicketAction.NONE
    return TicketStateMapping(
        action=action, bucket=bucket_for_priority_name(ticket.priority)
    )


def is_priority_admitted(bucket: PriorityBucket, policy: SyncPolicy) -> bool:
    if policy.strict_priority:
        return bucket in STRICT_ADMITTED
    return True
