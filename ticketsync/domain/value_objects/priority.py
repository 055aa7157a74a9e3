"""
Priority Value Objects

Architectural Intent:
- Enumerates the priority vocabulary shared by both platforms
- ConnectWise priority names collapse into five buckets (P1..P5)
- Each bucket fixes the PagerDuty urgency and the code embedded in incident titles

Design Decisions:
- Mappings are explicit tables so exhaustiveness is checkable by tests
- Unknown ConnectWise priority names fall into the P5 bucket
"""

from dataclasses import dataclass
from enum import Enum


class Urgency(Enum):
    HIGH = "high"
    LOW = "low"


@dataclass(frozen=True)
class PriorityBucket:
    """A PagerDuty priority level as seen from a ConnectWise ticket."""

    code: str
    urgency: Urgency

    @property
    def is_urgent(self) -> bool:
        return self.urgency is Urgency.HIGH


P1 = PriorityBucket("P1", Urgency.HIGH)
P2 = PriorityBucket("P2", Urgency.HIGH)
P3 = PriorityBucket("P3", Urgency.HIGH)
P4 = PriorityBucket("P4", Urgency.LOW)
P5 = PriorityBucket("P5", Urgency.LOW)

ALL_BUCKETS: tuple[PriorityBucket, ...] = (P1, P2, P3, P4, P5)
DEFAULT_BUCKET = P5

# Buckets admitted when the strict priority policy is active
STRICT_ADMITTED: frozenset[PriorityBucket] = frozenset({P1, P2, P3})

# Lower-cased ConnectWise priority name -> bucket
PRIORITY_NAME_BUCKETS: dict[str, PriorityBucket] = {
    "1a - emergency": P1,
    "1b - emergency": P1,
    "2a - critical": P2,
    "2b - critical": P2,
    "2c - critical": P2,
    "3 - high": P3,
    "4a - normal": P4,
    "4b - normal": P4,
    "4c - normal": P4,
}


@dataclass(frozen=True)
class TicketPriority:
    """A ConnectWise priority record (name plus numeric id)."""

    name: str
    id: int


# Bucket code -> ConnectWise priority applied when PagerDuty changes priority
TICKET_PRIORITIES: dict[str, TicketPriority] = {
    "P1": TicketPriority("1a - Emergency", 6),
    "P2": TicketPriority("2a - Critical", 15),
    "P3": TicketPriority("3 - High", 8),
    "P4": TicketPriority("4a - Normal", 7),
    "P5": TicketPriority("10a - Maintenance", 12),
}


def bucket_for_priority_name(priority_name: str | None) -> PriorityBucket:
    """Map a ConnectWise priority name to its bucket (P5 when unrecognized)."""
    normalized = (priority_name or "").strip().lower()
    return PRIORITY_NAME_BUCKETS.get(normalized, DEFAULT_BUCKET)
