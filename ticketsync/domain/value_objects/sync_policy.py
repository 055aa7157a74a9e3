"""
Sync Policy Value Object

Architectural Intent:
- Collects the admission policies that decide which tickets page anyone
- Both gates are named toggles: deployments have run with and without each

Policies:
- keyword_gate: tickets on the keyword board only trigger when the summary
  contains one of the keywords (case-insensitive)
- strict_priority: only P1-P3 tickets open incidents; otherwise every
  priority is admitted, unknown ones as P5
"""

from dataclasses import dataclass

TECHNICAL_SUPPORT = "Technical Support"
SECURITY_OPERATIONS = "Security Operations Center"
ALERTS = "Alerts"

DEFAULT_BOARDS: tuple[str, ...] = (TECHNICAL_SUPPORT, SECURITY_OPERATIONS, ALERTS)
DEFAULT_KEYWORDS: tuple[str, ...] = ("critical", "emergency", "outage", "down")


@dataclass(frozen=True)
class SyncPolicy:
    allowed_boards: tuple[str, ...] = DEFAULT_BOARDS
    keyword_gate: bool = True
    keyword_board: str = TECHNICAL_SUPPORT
    keywords: tuple[str, ...] = DEFAULT_KEYWORDS
    strict_priority: bool = False

    def __post_init__(self) -> None:
        if self.keyword_gate and not self.keywords:
            raise ValueError("keyword_gate requires at least one keyword")

    def is_board_allowed(self, board: str) -> bool:
        return board in self.allowed_boards

    def passes_keyword_gate(self, board: str, summary: str) -> bool:
        if not self.keyword_gate or board != self.keyword_board:
            return True
        text = (summary or "").lower()
        return any(keyword.lower() in text for keyword in self.keywords)
