"""
Correlation Key Value Object

Architectural Intent:
- Immutable identifier linking one ConnectWise ticket to one PagerDuty incident
- Derived deterministically from the ticket id so lookups are idempotent
- Sent to PagerDuty as the incident_key, letting the remote side deduplicate too
"""

from dataclasses import dataclass

KEY_PREFIX = "CW-"


@dataclass(frozen=True)
class CorrelationKey:
    """
    Value Object for the cross-system key of a ticket/incident pair.
    """
    value: str

    def __post_init__(self) -> None:
        if not self.value.startswith(KEY_PREFIX):
            raise ValueError(f"Correlation key must start with {KEY_PREFIX!r}")
        if not self.value[len(KEY_PREFIX):].isdigit():
            raise ValueError(f"Invalid correlation key: {self.value!r}")

    def __str__(self) -> str:
        return self.value

    @property
    def ticket_id(self) -> int:
        return int(self.value[len(KEY_PREFIX):])

    @staticmethod
    def for_ticket(ticket_id: int | str) -> "CorrelationKey":
        ticket_str = str(ticket_id).strip()
        if not ticket_str.isdigit():
            raise ValueError(f"Ticket id must be numeric, got {ticket_id!r}")
        return CorrelationKey(f"{KEY_PREFIX}{int(ticket_str)}")
