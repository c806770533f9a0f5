"""
FNF Chart Info - Chart Extractors

Turns a classified chart (plus an optional same-engine metadata/event file)
into a :class:`ChartSummary`: song info, BPM list, scroll speed timeline and
per-lane note counts for every difficulty the chart carries.

Each engine says "which lane, whose note" differently:

    Psych Engine    – notes live in sections; ``mustHitSection`` decides
                      whether lanes 0-3 or 4-7 belong to the player
    V-Slice         – ``notes[difficulty][].d`` is an absolute lane, 0-3
                      is always the player
    Codename Engine – explicit strum lines; the one with ``type == 1`` is
                      the player

With 8-key charts every range doubles (0-7 player / 8-15 opponent for
Psych).  Extractors never raise on missing optional fields, they fall back
to ``"Unknown"`` / 0.  The only hard failure is a Codename chart without a
player strum line (:class:`StructuralGap`).
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any

from loguru import logger

from src.services.chart_formats import (
    Classification,
    EngineKind,
    FileKind,
    PsychVariant,
)
from src.services.chart_merge import merge_chart_and_events
from src.services.errors import StructuralGap, UnrecognizedFormat
from src.utils import is_number, is_truthy

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

UNKNOWN = "Unknown"
META_NOT_PROVIDED = "<meta.json not provided>"

LANE_NAMES: dict[int, str] = {
    0: "Left",
    1: "Down",
    2: "Up",
    3: "Right",
    4: "Extra1",
    5: "Extra2",
    6: "Extra3",
    7: "Extra4",
}

# Base V-Slice difficulty order when no metadata file says otherwise
VSLICE_DIFFICULTIES = ["easy", "normal", "hard"]

PSYCH_SCROLL_EVENT = "Change Scroll Speed"
VSLICE_SCROLL_EVENT = "ScrollSpeed"
CODENAME_BPM_EVENT = "BPM Change"
CODENAME_SCROLL_EVENT = "Scroll Speed Change"

# Codename strum line types: 0 = opponent, 1 = player, 2 = additional (GF)
CODENAME_PLAYER_STRUMLINE = 1

PSYCH_LEGACY_LABEL = "Psych Engine (Legacy) / Kade Engine / Other"


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MetadataBundle:
    """Auxiliary files attached to a chart.  At most one slot is used."""

    psych_events: dict[str, Any] | None = None
    vslice_metadata: dict[str, Any] | None = None
    codename_metadata: dict[str, Any] | None = None

    def for_engine(self, engine: EngineKind) -> dict[str, Any] | None:
        if engine is EngineKind.PSYCH:
            return self.psych_events
        if engine is EngineKind.VSLICE:
            return self.vslice_metadata
        if engine is EngineKind.CODENAME:
            return self.codename_metadata
        return None

    @property
    def is_empty(self) -> bool:
        return (
            self.psych_events is None
            and self.vslice_metadata is None
            and self.codename_metadata is None
        )

    @classmethod
    def from_file(cls, kind: FileKind, data: dict[str, Any]) -> MetadataBundle:
        if kind is FileKind.PSYCH_EVENTS:
            return cls(psych_events=data)
        if kind is FileKind.VSLICE_METADATA:
            return cls(vslice_metadata=data)
        if kind is FileKind.CODENAME_METADATA:
            return cls(codename_metadata=data)
        raise ValueError(f"{kind.value} is not a metadata file kind")


@dataclass(frozen=True)
class ScrollSpeedEntry:
    """Starting scroll speed for one difficulty and the speeds it changes to."""

    difficulty: str | None
    initial_speed: Any
    changes: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "difficulty": self.difficulty,
            "initial_speed": self.initial_speed,
            "changes": list(self.changes),
        }


@dataclass(frozen=True)
class DifficultyStats:
    """Player note counts for one difficulty."""

    difficulty: str | None
    lane_counts: dict[int, int]
    multiplier: int

    @property
    def total_notes(self) -> int:
        return sum(self.lane_counts.values())

    @property
    def max_combo(self) -> int:
        return self.total_notes

    @property
    def max_score(self) -> int:
        return self.total_notes * self.multiplier

    def to_dict(self) -> dict[str, Any]:
        return {
            "difficulty": self.difficulty,
            "lane_counts": {str(k): v for k, v in self.lane_counts.items()},
            "total_notes": self.total_notes,
            "max_score": self.max_score,
        }


@dataclass(frozen=True)
class ChartSummary:
    """Engine-independent summary of a chart."""

    song_name: Any
    artist: Any
    charter: Any
    engine: EngineKind
    engine_label: str
    bpm_primary: Any
    bpm_change_list: list[Any]
    scroll_speed_timeline: list[ScrollSpeedEntry]
    per_difficulty: dict[str | None, DifficultyStats]
    multiplier: int
    key_count: int = 4

    @property
    def difficulties(self) -> list[str | None]:
        return list(self.per_difficulty.keys())

    @property
    def total_notes(self) -> int:
        return sum(d.total_notes for d in self.per_difficulty.values())

    def with_multiplier(self, multiplier: int) -> ChartSummary:
        """Same summary, max scores recomputed for *multiplier*."""
        per_difficulty = {
            key: replace(stats, multiplier=multiplier)
            for key, stats in self.per_difficulty.items()
        }
        return replace(self, multiplier=multiplier, per_difficulty=per_difficulty)

    def to_dict(self) -> dict[str, Any]:
        return {
            "song_name": self.song_name,
            "artist": self.artist,
            "charter": self.charter,
            "engine": self.engine.name.lower(),
            "engine_label": self.engine_label,
            "bpm_primary": self.bpm_primary,
            "bpm_change_list": list(self.bpm_change_list),
            "scroll_speed_timeline": [e.to_dict() for e in self.scroll_speed_timeline],
            "difficulties": [d.to_dict() for d in self.per_difficulty.values()],
            "multiplier": self.multiplier,
            "key_count": self.key_count,
        }


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _lane_index(value: Any) -> int | None:
    """Coerce a raw lane value to an int, or ``None`` if it isn't one."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _empty_lane_counts(key_count: int) -> dict[int, int]:
    return {lane: 0 for lane in range(key_count)}


def _as_list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_truthy(*values: Any, default: Any = UNKNOWN) -> Any:
    for value in values:
        if is_truthy(value):
            return value
    return default


def _parse_multiplier(raw: Any) -> float | None:
    if is_number(raw):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip())
        except ValueError:
            return None
    return None


# ---------------------------------------------------------------------------
# Psych Engine
# ---------------------------------------------------------------------------


def _psych_scroll_changes(chart_data: dict[str, Any], initial_speed: Any) -> list[float]:
    """
    Scroll speeds reached through ``Change Scroll Speed`` events.

    Each event is ``[time, [[name, value1, value2], ...]]``; only the first
    sub-event of each entry is inspected.  ``value1`` is a multiplier on the
    chart's base speed, which may itself be a numeric string.
    """
    changes: list[float] = []
    base = _parse_multiplier(initial_speed)
    if base is None:
        base = 1
    for event in _as_list(chart_data.get("events")):
        if not isinstance(event, list) or len(event) < 2:
            continue
        sub_events = event[1]
        if not isinstance(sub_events, list) or not sub_events:
            continue
        first = sub_events[0]
        if not isinstance(first, list) or not first or first[0] != PSYCH_SCROLL_EVENT:
            continue

        multiplier = _parse_multiplier(first[1] if len(first) > 1 else None)
        if multiplier is None:
            logger.warning(
                "⚠️ Ignoring scroll speed event at {} with unreadable value: {!r}",
                event[0],
                first[1] if len(first) > 1 else None,
            )
            continue
        changes.append(round(base * multiplier, 2))
    return changes


def _psych_bpms(chart_data: dict[str, Any]) -> tuple[Any, list[Any]]:
    """Return ``(primary_bpm, other_bpms)`` in first-seen order."""
    bpms: list[Any] = []
    for section in _as_list(chart_data.get("notes")):
        if not isinstance(section, dict):
            continue
        bpm = section.get("bpm")
        if section.get("changeBPM") is True and is_number(bpm) and bpm != 0:
            if bpm not in bpms:
                bpms.append(bpm)

    chart_bpm = chart_data.get("bpm")
    if is_truthy(chart_bpm) and chart_bpm not in bpms:
        bpms.append(chart_bpm)

    primary = chart_bpm if is_truthy(chart_bpm) else UNKNOWN
    if len(bpms) <= 1:
        return primary, []
    return primary, [b for b in bpms if b != chart_bpm]


def _psych_lane_counts(chart_data: dict[str, Any], key_count: int) -> dict[int, int]:
    """
    Count the player's notes per lane.

    In a must-hit section lanes ``0..k-1`` are the player's; otherwise the
    player's notes sit in ``k..2k-1`` and are shifted down by ``k``.
    Anything else (the opponent's half, GF notes, event notes) is ignored.
    """
    counts = _empty_lane_counts(key_count)
    for section in _as_list(chart_data.get("notes")):
        if not isinstance(section, dict):
            continue
        must_hit = section.get("mustHitSection") or False
        for note in _as_list(section.get("sectionNotes")):
            if not isinstance(note, list) or len(note) < 2:
                continue
            lane = _lane_index(note[1])
            if lane is None:
                continue
            if must_hit and 0 <= lane < key_count:
                counts[lane] += 1
            elif not must_hit and key_count <= lane < key_count * 2:
                counts[lane - key_count] += 1
    return counts


def extract_psych(
    chart: dict[str, Any],
    variant: PsychVariant,
    multiplier: int,
    key_count: int = 4,
) -> ChartSummary:
    """Summarise a Psych Engine chart (events already merged in)."""
    if variant is PsychVariant.LEGACY_CONVERT:
        chart_data = _as_dict(chart.get("song"))
        label = PSYCH_LEGACY_LABEL
    else:
        chart_data = chart
        label = EngineKind.PSYCH.label

    initial_speed = _first_truthy(chart_data.get("speed"), default=1)
    scroll_changes = _psych_scroll_changes(chart_data, initial_speed)
    bpm_primary, bpm_changes = _psych_bpms(chart_data)
    lane_counts = _psych_lane_counts(chart_data, key_count)

    summary = ChartSummary(
        song_name=_first_truthy(chart_data.get("song"), chart_data.get("songName")),
        artist=UNKNOWN,
        charter=UNKNOWN,
        engine=EngineKind.PSYCH,
        engine_label=label,
        bpm_primary=bpm_primary,
        bpm_change_list=bpm_changes,
        scroll_speed_timeline=[ScrollSpeedEntry(None, initial_speed, scroll_changes)],
        per_difficulty={None: DifficultyStats(None, lane_counts, multiplier)},
        multiplier=multiplier,
        key_count=key_count,
    )
    _log_summary(summary)
    return summary


# ---------------------------------------------------------------------------
# V-Slice
# ---------------------------------------------------------------------------


def vslice_difficulty_order(
    chart: dict[str, Any], metadata: dict[str, Any] | None = None
) -> list[str]:
    """
    Difficulties to report, in display order.

    The base order comes from ``metadata.playData.difficulties`` when a
    metadata file is attached, otherwise ``easy, normal, hard``.  Any other
    difficulty the chart has notes for is appended alphabetically.
    This also applies without metadata, so erect and nightmare charts that
    arrive on their own are still reported after the base three.
    Difficulties without notes are left out.
    """
    notes = _as_dict(chart.get("notes"))
    present = {
        name for name, diff_notes in notes.items() if len(_as_list(diff_notes)) > 0
    }

    play_data = _as_dict(_as_dict(metadata).get("playData"))
    listed = [d for d in _as_list(play_data.get("difficulties")) if isinstance(d, str)]
    base = listed if listed else VSLICE_DIFFICULTIES

    ordered: list[str] = []
    for name in base:
        if name in present and name not in ordered:
            ordered.append(name)
    ordered.extend(sorted(present - set(ordered)))
    return ordered


def _vslice_scroll_multipliers(chart: dict[str, Any]) -> list[float]:
    values: list[float] = []
    for event in _as_list(chart.get("events")):
        if not isinstance(event, dict) or event.get("e") != VSLICE_SCROLL_EVENT:
            continue
        scroll = _as_dict(event.get("v")).get("scroll")
        if is_number(scroll):
            values.append(scroll)
    return values


def _vslice_bpms(
    chart: dict[str, Any], metadata: dict[str, Any] | None
) -> tuple[Any, list[Any]]:
    time_changes = [
        tc for tc in _as_list(_as_dict(metadata).get("timeChanges")) if isinstance(tc, dict)
    ]
    first_bpm = time_changes[0].get("bpm") if time_changes else None
    primary = _first_truthy(first_bpm, chart.get("bpm"))

    changes: list[Any] = []
    for tc in time_changes[1:]:
        bpm = tc.get("bpm")
        if is_number(bpm) and bpm != primary and bpm not in changes:
            changes.append(bpm)
    return primary, changes


def extract_vslice(
    chart: dict[str, Any],
    metadata: dict[str, Any] | None,
    multiplier: int,
    key_count: int = 4,
) -> ChartSummary:
    """Summarise a V-Slice chart, using its metadata file when available."""
    meta = _as_dict(metadata)
    scroll_speeds = _as_dict(chart.get("scrollSpeed"))
    notes = _as_dict(chart.get("notes"))
    scroll_multipliers = _vslice_scroll_multipliers(chart)

    timeline: list[ScrollSpeedEntry] = []
    per_difficulty: dict[str | None, DifficultyStats] = {}

    for difficulty in vslice_difficulty_order(chart, metadata):
        initial = scroll_speeds.get(difficulty)
        initial = initial if is_number(initial) and initial != 0 else None
        if initial is not None:
            changes = [round(initial * m, 4) for m in scroll_multipliers]
        else:
            changes = list(scroll_multipliers)
        timeline.append(ScrollSpeedEntry(difficulty, initial, changes))

        counts = _empty_lane_counts(key_count)
        for note in _as_list(notes.get(difficulty)):
            lane = _lane_index(_as_dict(note).get("d"))
            if lane is not None and 0 <= lane < key_count:
                counts[lane] += 1
        per_difficulty[difficulty] = DifficultyStats(difficulty, counts, multiplier)

    bpm_primary, bpm_changes = _vslice_bpms(chart, metadata)

    summary = ChartSummary(
        song_name=_first_truthy(meta.get("songName"), chart.get("songName")),
        artist=_first_truthy(meta.get("artist"), chart.get("artist")),
        charter=_first_truthy(meta.get("charter"), chart.get("charter")),
        engine=EngineKind.VSLICE,
        engine_label=EngineKind.VSLICE.label,
        bpm_primary=bpm_primary,
        bpm_change_list=bpm_changes,
        scroll_speed_timeline=timeline,
        per_difficulty=per_difficulty,
        multiplier=multiplier,
        key_count=key_count,
    )
    _log_summary(summary)
    return summary


# ---------------------------------------------------------------------------
# Codename Engine
# ---------------------------------------------------------------------------


def find_player_strumline(chart: dict[str, Any]) -> dict[str, Any] | None:
    for line in _as_list(chart.get("strumLines")):
        if isinstance(line, dict) and line.get("type") == CODENAME_PLAYER_STRUMLINE:
            return line
    return None


def extract_codename(
    chart: dict[str, Any],
    meta: dict[str, Any] | None,
    multiplier: int,
    key_count: int = 4,
) -> ChartSummary:
    """
    Summarise a Codename Engine chart.

    Song name and starting BPM only exist in ``meta.json``; without it they
    are reported as ``<meta.json not provided>`` rather than ``Unknown``.

    Raises
    ------
    StructuralGap
        If the chart has no player strum line.
    """
    player = find_player_strumline(chart)
    if player is None:
        raise StructuralGap("No player strum line found in the chart.")

    counts = _empty_lane_counts(key_count)
    for note in _as_list(player.get("notes")):
        lane = _lane_index(_as_dict(note).get("id"))
        if lane is not None and 0 <= lane < key_count:
            counts[lane] += 1

    bpm_changes: list[Any] = []
    scroll_changes: list[Any] = []
    for event in _as_list(chart.get("events")):
        if not isinstance(event, dict):
            continue
        params = _as_list(event.get("params"))
        if event.get("name") == CODENAME_BPM_EVENT and len(params) > 0:
            bpm_changes.append(params[0])
        elif event.get("name") == CODENAME_SCROLL_EVENT and len(params) > 1:
            scroll_changes.append(params[1])

    if meta is not None:
        song_name = _first_truthy(meta.get("displayName"))
        starting_bpm = _first_truthy(meta.get("bpm"))
    else:
        song_name = META_NOT_PROVIDED
        starting_bpm = META_NOT_PROVIDED

    summary = ChartSummary(
        song_name=song_name,
        artist=UNKNOWN,
        charter=UNKNOWN,
        engine=EngineKind.CODENAME,
        engine_label=EngineKind.CODENAME.label,
        bpm_primary=starting_bpm,
        # A single "BPM Change" is the song's starting tempo, not a change
        bpm_change_list=bpm_changes if len(bpm_changes) > 1 else [],
        scroll_speed_timeline=[
            ScrollSpeedEntry(
                None, _first_truthy(chart.get("scrollSpeed")), scroll_changes
            )
        ],
        per_difficulty={None: DifficultyStats(None, counts, multiplier)},
        multiplier=multiplier,
        key_count=key_count,
    )
    _log_summary(summary)
    return summary


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------


def summarize_chart(
    chart: dict[str, Any],
    classification: Classification,
    metadata: MetadataBundle | None = None,
    multiplier: int | None = None,
    key_count: int = 4,
) -> ChartSummary:
    """
    Summarise any supported chart.

    Psych event files are merged into the chart first; V-Slice and Codename
    metadata are handed to their extractor.  *multiplier* defaults to the
    engine's default score multiplier.
    """
    bundle = metadata or MetadataBundle()
    engine = classification.engine
    if multiplier is None:
        multiplier = engine.default_multiplier

    if classification.kind is FileKind.PSYCH_CHART:
        if bundle.psych_events is not None:
            chart = merge_chart_and_events(chart, bundle.psych_events)
        variant = classification.variant or PsychVariant.V1
        return extract_psych(chart, variant, multiplier, key_count)

    if classification.kind is FileKind.VSLICE_CHART:
        return extract_vslice(chart, bundle.vslice_metadata, multiplier, key_count)

    if classification.kind is FileKind.CODENAME_CHART:
        return extract_codename(chart, bundle.codename_metadata, multiplier, key_count)

    raise UnrecognizedFormat(f"{classification.kind.value} is not a chart file.")


def _log_summary(summary: ChartSummary) -> None:
    logger.info(
        "📊 Summarised chart: {} | {} | bpm={} | difficulties: {} | {} notes | x{}",
        summary.song_name,
        summary.engine_label,
        summary.bpm_primary,
        ", ".join(d or "default" for d in summary.difficulties) or "none",
        summary.total_notes,
        summary.multiplier,
    )
