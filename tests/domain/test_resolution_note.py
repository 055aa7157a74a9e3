"""Tests for resolution note selection."""

import pytest
from unittest.mock import AsyncMock

from ticketsync.domain.entities.incident import IncidentNote
from ticketsync.domain.services.errors import RemoteCallError
from ticketsync.domain.services.resolution_note import (
    DEFAULT_RESOLUTION_NOTE,
    ResolutionNoteResolver,
    select_resolution_note,
)


def _notes(*contents: str) -> list[IncidentNote]:
    return [IncidentNote(c) for c in contents]


class TestSelectResolutionNote:
    def test_marked_note_wins(self):
        assert select_resolution_note(_notes("foo", "Resolution Note: bar")) == "bar"

    def test_marked_note_wins_even_if_older(self):
        notes = [
            IncidentNote("Resolution Note: restarted", "2024-01-01T10:00:00Z"),
            IncidentNote("follow-up chatter", "2024-01-01T11:00:00Z"),
        ]
        assert select_resolution_note(notes) == "restarted"

    def test_latest_marked_note(self):
        notes = _notes("Resolution Note: first", "Resolution Note: second", "plain")
        assert select_resolution_note(notes) == "second"

    def test_last_note_fallback(self):
        assert select_resolution_note(_notes("foo", "baz")) == "baz"

    def test_sorted_by_created_at(self):
        notes = [
            IncidentNote("newest", "2024-01-02T00:00:00Z"),
            IncidentNote("oldest", "2024-01-01T00:00:00Z"),
        ]
        assert select_resolution_note(notes) == "newest"

    def test_empty(self):
        assert select_resolution_note([]) == DEFAULT_RESOLUTION_NOTE

    def test_empty_marker_body_uses_default(self):
        assert select_resolution_note(_notes("Resolution Note:   ")) == DEFAULT_RESOLUTION_NOTE


class TestResolutionNoteResolver:
    @pytest.mark.asyncio
    async def test_resolves_from_notes(self):
        alerting = AsyncMock()
        alerting.fetch_incident_notes = AsyncMock(
            return_value=_notes("Resolution Note: fixed DNS")
        )
        resolver = ResolutionNoteResolver(alerting)

        assert await resolver.resolve("PINC1") == "fixed DNS"
        alerting.fetch_incident_notes.assert_awaited_once_with("PINC1")

    @pytest.mark.asyncio
    async def test_fetch_failure_falls_back(self):
        alerting = AsyncMock()
        alerting.fetch_incident_notes = AsyncMock(side_effect=RemoteCallError("boom", status=500))
        resolver = ResolutionNoteResolver(alerting)

        assert await resolver.resolve("PINC1") == DEFAULT_RESOLUTION_NOTE

    @pytest.mark.asyncio
    async def test_no_notes(self):
        alerting = AsyncMock()
        alerting.fetch_incident_notes = AsyncMock(return_value=[])
        resolver = ResolutionNoteResolver(alerting)

        assert await resolver.resolve("PINC1") == "Resolved in PagerDuty"
