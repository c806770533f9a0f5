"""
FNF Chart Info - Psych Engine Event Merging

Psych Engine keeps most timed events (scroll speed changes, camera moves,
...) in a separate ``events.json`` next to the chart.  Before the chart is
summarised those events are folded into the chart's own event list.

Event locations:
    psych_v1 chart / events file   – top-level ``events``
    legacy chart / events file     – ``song.events``
"""

from __future__ import annotations

import copy
import json
from typing import Any

from loguru import logger


def _chart_events(chart: dict[str, Any]) -> list[Any]:
    if chart.get("format") == "psych_v1":
        events = chart.get("events")
    else:
        song = chart.get("song")
        events = song.get("events") if isinstance(song, dict) else None
    return list(events) if isinstance(events, list) else []


def _events_file_events(events_file: dict[str, Any]) -> list[Any]:
    if events_file.get("format") == "psych_v1" and isinstance(
        events_file.get("events"), list
    ):
        return list(events_file["events"])
    song = events_file.get("song")
    if isinstance(song, dict) and isinstance(song.get("events"), list):
        return list(song["events"])
    return []


def _event_key(event: Any) -> str:
    return json.dumps(event, sort_keys=True, separators=(",", ":"))


def dedupe_events(events: list[Any]) -> list[Any]:
    """Drop structurally identical events, keeping the first occurrence."""
    seen: set[str] = set()
    unique: list[Any] = []
    for event in events:
        key = _event_key(event)
        if key in seen:
            continue
        seen.add(key)
        unique.append(event)
    return unique


def merge_chart_and_events(
    chart: dict[str, Any], events_file: dict[str, Any]
) -> dict[str, Any]:
    """
    Return a copy of *chart* with *events_file*'s events merged in.

    Chart events come first, then the events file's, each in their original
    order; duplicates are removed.  The result is written back to the chart's
    native event location.  Neither argument is modified, and merging the
    same events file twice gives the same result as merging it once.
    """
    chart_events = _chart_events(chart)
    extra_events = _events_file_events(events_file)
    merged = copy.deepcopy(dedupe_events(chart_events + extra_events))

    result = copy.deepcopy(chart)
    if result.get("format") == "psych_v1":
        result["events"] = merged
    elif isinstance(result.get("song"), dict):
        result["song"]["events"] = merged

    logger.debug(
        "🔀 Merged events: {} from chart + {} from events file → {} unique",
        len(chart_events),
        len(extra_events),
        len(merged),
    )
    return result
