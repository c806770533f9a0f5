"""
FNF Chart Info - Summary Rendering

Maps a :class:`ChartSummary` to presentation-ready data:

    - :func:`build_display_model` – ordered header fields and one section
      per difficulty (lane counts, max combo, max score)
    - :func:`render_text`         – plain-text report of a display model
    - :func:`render_wiki_template` – Funkipedia ``{{SongInfo}}`` template
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from src.services.chart_extractors import (
    LANE_NAMES,
    UNKNOWN,
    ChartSummary,
    DifficultyStats,
    ScrollSpeedEntry,
)
from src.services.chart_formats import EngineKind
from src.utils import format_number, is_truthy

WIKI_LINE_BREAK = "<br>"
RULE = "-" * 40


@dataclass(frozen=True)
class DifficultySection:
    title: str | None
    lanes: list[tuple[str, int]]
    max_combo: int
    max_score: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "lanes": [{"label": label, "count": count} for label, count in self.lanes],
            "max_combo": self.max_combo,
            "max_score": self.max_score,
        }


@dataclass(frozen=True)
class DisplayModel:
    header: list[tuple[str, str]]
    sections: list[DifficultySection] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "header": [{"label": label, "value": value} for label, value in self.header],
            "sections": [s.to_dict() for s in self.sections],
        }


# ---------------------------------------------------------------------------
# Field formatting
# ---------------------------------------------------------------------------


def difficulty_title(difficulty: str | None) -> str | None:
    if not difficulty:
        return None
    return difficulty[:1].upper() + difficulty[1:]


def _value(value: Any) -> str:
    return format_number(value) if is_truthy(value) else UNKNOWN


def format_bpm(summary: ChartSummary) -> str:
    """``"150"`` or ``"150 (120, 180)"`` when the chart changes tempo."""
    primary = _value(summary.bpm_primary)
    if summary.bpm_change_list:
        changes = ", ".join(format_number(b) for b in summary.bpm_change_list)
        return f"{primary} ({changes})"
    return primary


def format_scroll_entry(entry: ScrollSpeedEntry) -> str:
    """``"2.5"``, ``"2.5 (3.75, 1.25)"`` or ``"1.2 (Easy)"``."""
    text = _value(entry.initial_speed)
    if entry.changes:
        text += f" ({', '.join(format_number(c) for c in entry.changes)})"
    title = difficulty_title(entry.difficulty)
    if title:
        text += f" ({title})"
    return text


def _with_difficulty(value: int, stats: DifficultyStats) -> str:
    title = difficulty_title(stats.difficulty)
    return f"{value} ({title})" if title else str(value)


# ---------------------------------------------------------------------------
# Display model
# ---------------------------------------------------------------------------


def build_display_model(summary: ChartSummary) -> DisplayModel:
    header: list[tuple[str, str]] = [
        ("Engine", summary.engine_label),
        ("Song", _value(summary.song_name)),
    ]
    # Only V-Slice files carry artist/charter
    if summary.engine is EngineKind.VSLICE:
        header.append(("Artist", _value(summary.artist)))
        header.append(("Charter", _value(summary.charter)))
    header.append(("BPM", format_bpm(summary)))
    header.append(
        (
            "Scroll Speed",
            ", ".join(format_scroll_entry(e) for e in summary.scroll_speed_timeline)
            or UNKNOWN,
        )
    )

    sections = []
    for stats in summary.per_difficulty.values():
        lanes = [
            (LANE_NAMES.get(lane, f"Lane {lane}"), stats.lane_counts.get(lane, 0))
            for lane in range(summary.key_count)
        ]
        sections.append(
            DifficultySection(
                title=difficulty_title(stats.difficulty),
                lanes=lanes,
                max_combo=stats.max_combo,
                max_score=stats.max_score,
            )
        )

    return DisplayModel(header=header, sections=sections)


def render_text(model: DisplayModel) -> str:
    lines = ["Chart Information", RULE]
    lines.extend(f"{label}: {value}" for label, value in model.header)

    for section in model.sections:
        lines.append(RULE)
        if section.title:
            lines.append(f"{section.title} Difficulty")
        lines.extend(f"{label}: {count}" for label, count in section.lanes)
        lines.append(f"Max Combo: {section.max_combo}")
        lines.append(f"Max Score: {section.max_score}")

    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Wiki template
# ---------------------------------------------------------------------------


def render_wiki_template(summary: ChartSummary) -> str:
    """
    Render the Funkipedia ``{{SongInfo}}`` template.

    Fields with one value per difficulty are joined with ``<br>``; anything
    missing is written as ``Unknown``.  ``icon``, ``file`` and ``inst`` are
    left blank for the editor to fill in.
    """
    stats = list(summary.per_difficulty.values())
    scroll = WIKI_LINE_BREAK.join(
        format_scroll_entry(e) for e in summary.scroll_speed_timeline
    )
    max_combo = WIKI_LINE_BREAK.join(_with_difficulty(s.max_combo, s) for s in stats)
    max_score = WIKI_LINE_BREAK.join(_with_difficulty(s.max_score, s) for s in stats)

    fields = [
        ("name", _value(summary.song_name)),
        ("icon", ""),
        ("file", ""),
        ("inst", ""),
        ("composer", _value(summary.artist)),
        ("charter", _value(summary.charter)),
        ("bpm", format_bpm(summary)),
        ("scroll", scroll or UNKNOWN),
        ("maxcombo", max_combo or UNKNOWN),
        ("maxscore", max_score or UNKNOWN),
    ]
    body = "\n".join(f"    | {key} = {value}" for key, value in fields)
    return "{{SongInfo\n" + body + "}}"
