"""
FNF Chart Info - Chart Session

Works out what a batch of one or two uploaded JSON documents *is* (a chart,
a chart plus its metadata/event file, or a metadata file for the chart that
is already loaded) and keeps the result in an immutable :class:`Session`.

Every operation takes the current session and returns a new one; nothing
here holds global state.  The API router and the CLI each keep the current
session and swap it after a successful call.  On error the caller simply
keeps the session it had.

State machine::

    EMPTY ──chart──▶ CHART_LOADED ──matching metadata──▶ CHART_WITH_METADATA
      ▲                   │  ▲                                  │
      └──── reset ────────┘  └────── new chart / 2-file batch ──┘

The score multiplier resets to the engine default whenever a new chart is
classified, and survives metadata attachment and key-count changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Sequence

from loguru import logger

from src.config import (
    DEFAULT_KEY_COUNT,
    DEFAULT_SCORE_MULTIPLIER,
    ISSUES_URL,
    MAX_UPLOAD_FILES,
    SUPPORTED_KEY_COUNTS,
)
from src.services.chart_extractors import (
    ChartSummary,
    MetadataBundle,
    summarize_chart,
)
from src.services.chart_formats import (
    Classification,
    EngineKind,
    FileKind,
    classify,
)
from src.services.chart_merge import merge_chart_and_events
from src.services.errors import (
    EngineMismatch,
    InvalidFileCount,
    InvalidKeyCount,
    InvalidMultiplier,
    MissingPrerequisite,
    UnrecognizedFormat,
)

# A named, decoded JSON document: (filename, data)
NamedInput = tuple[str, Any]

MSG_CHART_LOADED = "Chart loaded."
MSG_METADATA_ADDED = "Metadata file added and chart reprocessed."
MSG_NO_VALID_CHART = (
    "No valid chart or event files detected. If you believe this is an "
    f"error, please report it here:\n{ISSUES_URL}"
)
MSG_UNSUPPORTED = (
    "Unsupported chart format. If you believe this is an error, please "
    f"report it here:\n{ISSUES_URL}"
)
MSG_LOAD_CHART_FIRST = (
    "Please load a chart file first before loading metadata or event files."
)


class SessionState(str, Enum):
    EMPTY = "empty"
    CHART_LOADED = "chart_loaded"
    CHART_WITH_METADATA = "chart_with_metadata"


@dataclass(frozen=True)
class Session:
    """Everything needed to recompute the current summary."""

    chart: dict[str, Any] | None = None
    classification: Classification | None = None
    metadata: MetadataBundle = field(default_factory=MetadataBundle)
    engine: EngineKind = EngineKind.UNKNOWN
    multiplier: int = DEFAULT_SCORE_MULTIPLIER
    key_count: int = DEFAULT_KEY_COUNT
    chart_name: str | None = None
    metadata_name: str | None = None

    @property
    def state(self) -> SessionState:
        if self.chart is None:
            return SessionState.EMPTY
        if self.metadata.is_empty:
            return SessionState.CHART_LOADED
        return SessionState.CHART_WITH_METADATA

    @property
    def has_chart(self) -> bool:
        return self.chart is not None

    def to_dict(self) -> dict[str, Any]:
        return {
            "state": self.state.value,
            "engine": self.engine.label,
            "chart_kind": self.classification.kind.value if self.classification else None,
            "chart_name": self.chart_name,
            "metadata_name": self.metadata_name,
            "multiplier": self.multiplier,
            "key_count": self.key_count,
        }


@dataclass(frozen=True)
class SessionUpdate:
    """Outcome of a successful session operation."""

    session: Session
    summary: ChartSummary | None
    message: str


# ---------------------------------------------------------------------------
# Session operations
# ---------------------------------------------------------------------------


def reset_session(key_count: int = DEFAULT_KEY_COUNT) -> Session:
    return Session(key_count=key_count)


def summarize(session: Session) -> ChartSummary | None:
    """Recompute the summary from the cached chart; ``None`` when empty."""
    if session.chart is None or session.classification is None:
        return None
    return summarize_chart(
        session.chart,
        session.classification,
        session.metadata,
        session.multiplier,
        session.key_count,
    )


def _new_chart_session(
    previous: Session,
    name: str,
    chart: dict[str, Any],
    classification: Classification,
    metadata: MetadataBundle | None = None,
    metadata_name: str | None = None,
) -> Session:
    engine = classification.engine
    logger.info(
        "🎵 New chart {} detected as {} (multiplier reset to {})",
        name,
        engine.label,
        engine.default_multiplier,
    )
    return Session(
        chart=chart,
        classification=classification,
        metadata=metadata or MetadataBundle(),
        engine=engine,
        multiplier=engine.default_multiplier,
        key_count=previous.key_count,
        chart_name=name,
        metadata_name=metadata_name,
    )


def _absorb_events(chart: dict[str, Any], kind: FileKind, data: Any) -> dict[str, Any]:
    """
    Fold a Psych events file into the cached chart.

    Successive events files accumulate; the merge dedupes, so attaching the
    same file again changes nothing.  Other metadata leaves the chart as is.
    """
    if kind is FileKind.PSYCH_EVENTS:
        return merge_chart_and_events(chart, data)
    return chart


def _mismatch(kind: FileKind, name: str, prefix: str = "") -> EngineMismatch:
    expected = kind.engine.label
    noun = "event file" if kind is FileKind.PSYCH_EVENTS else "metadata file"
    return EngineMismatch(
        f"{prefix}This {noun} is for {expected} charts only. "
        "Please load a matching event file.",
        expected_engine=expected,
        filename=name,
    )


def _load_single(session: Session, name: str, data: Any) -> SessionUpdate:
    classification = classify(data)
    kind = classification.kind

    if kind.is_chart:
        new_session = _new_chart_session(session, name, data, classification)
        return SessionUpdate(new_session, summarize(new_session), MSG_CHART_LOADED)

    if kind.is_metadata:
        if not session.has_chart:
            logger.warning("⚠️ {} is a {} but no chart is loaded", name, kind.value)
            raise MissingPrerequisite(MSG_LOAD_CHART_FIRST, filename=name)
        if kind.engine is not session.engine:
            logger.warning(
                "⚠️ {} is for {} but the loaded chart is {}",
                name,
                kind.engine.label,
                session.engine.label,
            )
            raise _mismatch(kind, name)

        new_session = replace(
            session,
            chart=_absorb_events(session.chart, kind, data),
            metadata=MetadataBundle.from_file(kind, data),
            metadata_name=name,
        )
        logger.info("📎 Attached {} to {}", name, session.chart_name)
        return SessionUpdate(new_session, summarize(new_session), MSG_METADATA_ADDED)

    logger.warning("⚠️ {} matched no supported format", name)
    raise UnrecognizedFormat(MSG_UNSUPPORTED, filename=name)


def _load_pair(session: Session, files: Sequence[NamedInput]) -> SessionUpdate:
    classified = [(name, data, classify(data)) for name, data in files]
    charts = [c for c in classified if c[2].is_chart]
    others = [c for c in classified if not c[2].is_chart]

    if len(charts) != 1:
        logger.warning("⚠️ Two-file upload contained {} charts", len(charts))
        raise UnrecognizedFormat(MSG_NO_VALID_CHART)

    chart_name, chart, chart_cls = charts[0]
    meta_name, meta, meta_cls = others[0]

    if not meta_cls.is_metadata:
        raise UnrecognizedFormat(MSG_NO_VALID_CHART, filename=meta_name)
    if meta_cls.engine is not chart_cls.engine:
        raise _mismatch(meta_cls.kind, meta_name, prefix="No valid chart detected. ")

    new_session = _new_chart_session(
        session,
        chart_name,
        _absorb_events(chart, meta_cls.kind, meta),
        chart_cls,
        metadata=MetadataBundle.from_file(meta_cls.kind, meta),
        metadata_name=meta_name,
    )
    return SessionUpdate(new_session, summarize(new_session), MSG_CHART_LOADED)


def load_files(session: Session, files: Sequence[NamedInput]) -> SessionUpdate:
    """
    Resolve one or two decoded JSON documents against the current session.

    Parameters
    ----------
    session : Session
        The current session (returned unchanged to the caller on error).
    files : sequence of (filename, data)
        Decoded JSON documents, in upload order.

    Raises
    ------
    InvalidFileCount
        Zero or more than two files.
    UnrecognizedFormat, MissingPrerequisite, EngineMismatch, StructuralGap
        See module docstring; the session is not changed.
    """
    if not 1 <= len(files) <= MAX_UPLOAD_FILES:
        raise InvalidFileCount("Please upload one or two valid JSON files.")

    if len(files) == 1:
        name, data = files[0]
        return _load_single(session, name, data)
    return _load_pair(session, files)


def update_multiplier(session: Session, value: Any) -> SessionUpdate:
    """
    Set a new score multiplier and recompute the summary.

    Accepts positive integers and strings holding one.  Anything else raises
    :class:`InvalidMultiplier` and leaves the session alone.
    """
    multiplier: int | None = None
    if isinstance(value, int) and not isinstance(value, bool):
        multiplier = value
    elif isinstance(value, float) and value.is_integer():
        multiplier = int(value)
    elif isinstance(value, str):
        try:
            multiplier = int(value.strip())
        except ValueError:
            multiplier = None

    if multiplier is None or multiplier <= 0:
        raise InvalidMultiplier("Please enter a valid positive number.")

    new_session = replace(session, multiplier=multiplier)
    logger.info("🧮 Score multiplier updated to {}", multiplier)
    return SessionUpdate(
        new_session,
        summarize(new_session),
        f"Score multiplier updated to {multiplier}",
    )


def update_key_count(session: Session, value: Any) -> SessionUpdate:
    """Switch between 4-key and 8-key lane ranges and recompute."""
    if (
        isinstance(value, bool)
        or not isinstance(value, int)
        or value not in SUPPORTED_KEY_COUNTS
    ):
        raise InvalidKeyCount(
            f"Key count must be one of {', '.join(map(str, sorted(SUPPORTED_KEY_COUNTS)))}."
        )

    new_session = replace(session, key_count=int(value))
    logger.info("🎹 Key count set to {}", value)
    return SessionUpdate(
        new_session, summarize(new_session), f"Key count updated to {value}"
    )
