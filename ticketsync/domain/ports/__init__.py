"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for external dependencies
- Ports define what the domain needs, adapters implement how
- Follows Hexagonal Architecture principles
"""

from ticketsync.domain.ports.ticketing_port import TicketingPort
from ticketsync.domain.ports.alerting_port import AlertingPort
from ticketsync.domain.ports.dedup_guard_port import DedupGuardPort

__all__ = [
    "TicketingPort",
    "AlertingPort",
    "DedupGuardPort",
]
