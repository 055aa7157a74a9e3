"""
Ticket Entity Module

Architectural Intent:
- Read model of a ConnectWise service ticket
- Owned by ConnectWise: ticketsync only reads tickets and requests patches
- Built from the nested JSON shapes ConnectWise uses in webhooks and REST replies

Domain Rules:
- A ticket always has a numeric id
- Board, status and priority are referenced by name
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Optional

from ticketsync.domain.value_objects.correlation_key import CorrelationKey


def _name_of(value: Any) -> str:
    """Extract the ``name`` of a ConnectWise reference object."""
    if isinstance(value, dict):
        return str(value.get("name") or "").strip()
    if isinstance(value, str):
        return value.strip()
    return ""


@dataclass(frozen=True)
class Ticket:
    """ConnectWise ticket snapshot.

    Attributes:
        id: Numeric ticket id.
        board: Board (category) name, e.g. "Technical Support".
        status: Status name, e.g. "New".
        priority: Priority name, e.g. "1a - Emergency".
        summary: One-line ticket summary.
        description: Initial description, fetched separately from ticket notes.
    """

    id: int
    board: str = ""
    status: str = ""
    priority: str = ""
    summary: str = ""
    description: Optional[str] = None

    def __post_init__(self) -> None:
        if self.id <= 0:
            raise ValueError(f"Ticket id must be positive, got {self.id}")

    @property
    def correlation_key(self) -> CorrelationKey:
        return CorrelationKey.for_ticket(self.id)

    def with_description(self, description: Optional[str]) -> Ticket:
        if not description:
            return self
        return replace(self, description=description)

    @classmethod
    def from_payload(cls, data: dict[str, Any]) -> Ticket:
        raw_id = data.get("id")
        if raw_id is None or not str(raw_id).strip().isdigit():
            raise ValueError(f"Ticket payload has no numeric id: {raw_id!r}")
        return cls(
            id=int(str(raw_id).strip()),
            board=_name_of(data.get("board")),
            status=_name_of(data.get("status")),
            priority=_name_of(data.get("priority")),
            summary=str(data.get("summary") or ""),
            description=data.get("description") or None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "board": {"name": self.board},
            "status": {"name": self.status},
            "priority": {"name": self.priority},
            "summary": self.summary,
            "description": self.description,
        }
