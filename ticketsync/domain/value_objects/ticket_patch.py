"""
Ticket Patch Value Objects

Architectural Intent:
- Models the JSON-patch style operations ConnectWise accepts on tickets
- A TicketPatch is an ordered, immutable list of replace operations
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any

from ticketsync.domain.value_objects.priority import TicketPriority


class NoteKind(Enum):
    DETAIL = "Detail"
    RESOLUTION = "Resolution"
    INTERNAL = "Internal"


@dataclass(frozen=True)
class PatchOperation:
    path: str
    value: Any
    op: str = "replace"

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op, "path": self.path, "value": self.value}


@dataclass(frozen=True)
class TicketPatch:
    operations: tuple[PatchOperation, ...] = ()

    def __bool__(self) -> bool:
        return bool(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def with_status(self, status_name: str) -> "TicketPatch":
        op = PatchOperation(path="status", value={"name": status_name})
        return TicketPatch(self.operations + (op,))

    def with_priority(self, priority: TicketPriority) -> "TicketPatch":
        op = PatchOperation(
            path="priority", value={"id": priority.id, "name": priority.name}
        )
        return TicketPatch(self.operations + (op,))

    def to_list(self) -> list[dict[str, Any]]:
        return [op.to_dict() for op in self.operations]
