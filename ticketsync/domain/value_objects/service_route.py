"""
Service Route Value Object

Architectural Intent:
- Binds one ConnectWise board to one PagerDuty service and its webhook secret
- Routes are resolved from either direction: board name (ticket -> incident)
  or PagerDuty service identity (incident -> ticket)
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional


@dataclass(frozen=True)
class ServiceRoute:
    """
    Value Object pairing a board with its PagerDuty service.

    Attributes:
        board: ConnectWise board name, also the PagerDuty service display name.
        service_id: PagerDuty service id.
        secret: Webhook signing secret of the PagerDuty service.
    """
    board: str
    service_id: str = ""
    secret: str = field(default="", repr=False)

    def __post_init__(self) -> None:
        if not self.board:
            raise ValueError("Service route board cannot be empty")


def route_for_board(routes: Iterable[ServiceRoute], board: str) -> Optional[ServiceRoute]:
    for route in routes:
        if route.board == board:
            return route
    return None


def route_for_service(
    routes: Iterable[ServiceRoute], service_id: str, service_name: str = ""
) -> Optional[ServiceRoute]:
    """Resolve a route by service id first, then by service display name."""
    routes = tuple(routes)
    if service_id:
        for route in routes:
            if route.service_id and route.service_id == service_id:
                return route
    if service_name:
        return route_for_board(routes, service_name)
    return None
