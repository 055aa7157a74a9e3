"""
Resolution Note Resolver

Architectural Intent:
- Chooses the text of the single resolution note copied to ConnectWise when a
  PagerDuty incident resolves
- Best-effort: a failed notes fetch degrades to a fixed default, never raises

Selection order:
1. Latest note starting with "Resolution Note:" (marker stripped)
2. Chronologically last note
3. DEFAULT_RESOLUTION_NOTE
"""

import logging
import re
from typing import Sequence

from ticketsync.domain.entities.incident import IncidentNote
from ticketsync.domain.ports.alerting_port import AlertingPort

logger = logging.getLogger(__name__)

RESOLUTION_MARKER = "Resolution Note:"
DEFAULT_RESOLUTION_NOTE = "Resolved in PagerDuty"

_MARKER_RE = re.compile(r"^Resolution Note:\s*", re.IGNORECASE)


def select_resolution_note(notes: Sequence[IncidentNote]) -> str:
    # Stable sort: notes without timestamps keep their API order
    ordered = sorted(notes, key=lambda note: note.created_at or "")
    if not ordered:
        return DEFAULT_RESOLUTION_NOTE

    for note in reversed(ordered):
        content = note.content.strip()
        if content.startswith(RESOLUTION_MARKER):
            return _MARKER_RE.sub("", content).strip() or DEFAULT_RESOLUTION_NOTE

    return ordered[-1].content.strip() or DEFAULT_RESOLUTION_NOTE


class ResolutionNoteResolver:
    def __init__(self, alerting: AlertingPort) -> None:
        self.alerting = alerting

    async def resolve(self, incident_id: str) -> str:
        try:
            notes = await self.alerting.fetch_incident_notes(incident_id)
        except Exception as e:
            logger.warning(
                "Error fetching PagerDuty notes for %s, using fallback text: %s",
                incident_id,
                e,
            )
            return DEFAULT_RESOLUTION_NOTE

        if not notes:
            logger.info("No notes on PagerDuty incident %s, using fallback text", incident_id)
        note = select_resolution_note(notes)
        logger.info("Resolution note for PagerDuty incident %s: %s", incident_id, note)
        return note
