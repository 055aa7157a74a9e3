"""
Synchronization Errors

Architectural Intent:
- Exception taxonomy shared by use cases and adapters
- Rejected input is a client-class failure and is never retried
- Remote call failures are server-class failures unless the call is best-effort
"""

from typing import Any, Optional


class SyncError(Exception):
    pass


class RejectedInputError(SyncError):
    """Malformed payload, missing identifier, or unresolvable service."""


class UnmappedBoardError(RejectedInputError):
    def __init__(self, board: str) -> None:
        super().__init__(f"Ticket board {board!r} is not mapped to any PagerDuty service")
        self.board = board


class SignatureError(RejectedInputError):
    """Webhook signature did not verify."""


class RemoteCallError(SyncError):
    """A call to ConnectWise or PagerDuty failed.

    Attributes:
        status: HTTP status of the failed response, if one was received.
        payload: Decoded response body, if available.
    """

    def __init__(
        self, message: str, status: Optional[int] = None, payload: Any = None
    ) -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload
