"""
FNF Chart Info - Chart Format Detection

Classifies a decoded JSON document as one of the chart, event or metadata
layouts written by the supported Friday Night Funkin' engines:

    Psych Engine    – chart (``psych_v1`` or legacy ``{"song": {...}}``)
                      and a separate ``events.json``
    V-Slice         – ``<song>-chart.json`` and ``<song>-metadata.json``
    Codename Engine – chart with ``"codenameChart": true`` and ``meta.json``

The predicates only look at the shape of the document.  Some documents
satisfy more than one loose check, so :func:`classify` evaluates them in the
fixed order given by :data:`CLASSIFICATION_ORDER` and returns the first hit.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable

from loguru import logger

from src.config import (
    CODENAME_SCORE_MULTIPLIER,
    DEFAULT_SCORE_MULTIPLIER,
    PSYCH_SCORE_MULTIPLIER,
    VSLICE_SCORE_MULTIPLIER,
)
from src.utils import is_truthy

# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------


class EngineKind(str, Enum):
    PSYCH = "Psych Engine"
    VSLICE = "V-Slice Engine"
    CODENAME = "Codename Engine"
    UNKNOWN = "Unknown"

    @property
    def label(self) -> str:
        return self.value

    @property
    def default_multiplier(self) -> int:
        return ENGINE_MULTIPLIERS.get(self, DEFAULT_SCORE_MULTIPLIER)


ENGINE_MULTIPLIERS: dict[EngineKind, int] = {
    EngineKind.PSYCH: PSYCH_SCORE_MULTIPLIER,
    EngineKind.VSLICE: VSLICE_SCORE_MULTIPLIER,
    EngineKind.CODENAME: CODENAME_SCORE_MULTIPLIER,
}


class PsychVariant(str, Enum):
    V1 = "psych_v1"
    # Pre-1.0 Psych, Kade and most other legacy forks: everything under "song"
    LEGACY_CONVERT = "psych_v1_convert"


class FileKind(str, Enum):
    PSYCH_CHART = "psych_chart"
    PSYCH_EVENTS = "psych_events"
    VSLICE_CHART = "vslice_chart"
    VSLICE_METADATA = "vslice_metadata"
    CODENAME_CHART = "codename_chart"
    CODENAME_METADATA = "codename_metadata"
    UNRECOGNIZED = "unrecognized"

    @property
    def engine(self) -> EngineKind:
        return FILE_KIND_ENGINES.get(self, EngineKind.UNKNOWN)

    @property
    def is_chart(self) -> bool:
        return self in CHART_KINDS

    @property
    def is_metadata(self) -> bool:
        return self in METADATA_KINDS


FILE_KIND_ENGINES: dict[FileKind, EngineKind] = {
    FileKind.PSYCH_CHART: EngineKind.PSYCH,
    FileKind.PSYCH_EVENTS: EngineKind.PSYCH,
    FileKind.VSLICE_CHART: EngineKind.VSLICE,
    FileKind.VSLICE_METADATA: EngineKind.VSLICE,
    FileKind.CODENAME_CHART: EngineKind.CODENAME,
    FileKind.CODENAME_METADATA: EngineKind.CODENAME,
}

CHART_KINDS = frozenset(
    {FileKind.PSYCH_CHART, FileKind.VSLICE_CHART, FileKind.CODENAME_CHART}
)
METADATA_KINDS = frozenset(
    {FileKind.PSYCH_EVENTS, FileKind.VSLICE_METADATA, FileKind.CODENAME_METADATA}
)


@dataclass(frozen=True)
class Classification:
    """Result of :func:`classify`.  ``variant`` is only set for Psych charts."""

    kind: FileKind
    variant: PsychVariant | None = None

    @property
    def engine(self) -> EngineKind:
        return self.kind.engine

    @property
    def is_chart(self) -> bool:
        return self.kind.is_chart

    @property
    def is_metadata(self) -> bool:
        return self.kind.is_metadata


UNRECOGNIZED = Classification(FileKind.UNRECOGNIZED)


# ---------------------------------------------------------------------------
# Structural predicates
# ---------------------------------------------------------------------------


def _field(data: Any, key: str) -> Any:
    """Dict lookup that tolerates non-dict values."""
    if isinstance(data, dict):
        return data.get(key)
    return None


def psych_chart_variant(data: Any) -> PsychVariant | None:
    """Return the Psych chart variant, or ``None`` if this isn't a Psych chart."""
    fmt = _field(data, "format")
    if fmt == "psych_v1" and is_truthy(_field(data, "notes")):
        return PsychVariant.V1

    song = _field(data, "song")
    if (fmt == "psych_v1_convert" or not is_truthy(fmt)) and is_truthy(
        _field(song, "notes")
    ):
        return PsychVariant.LEGACY_CONVERT

    return None


def is_psych_chart(data: Any) -> bool:
    return psych_chart_variant(data) is not None


def is_psych_events(data: Any) -> bool:
    """An ``events.json``: events but no notes, in either Psych layout."""
    song = _field(data, "song")
    if is_truthy(_field(song, "events")) and not is_truthy(_field(song, "notes")):
        return True
    return (
        _field(data, "format") == "psych_v1"
        and is_truthy(_field(data, "events"))
        and not is_truthy(_field(data, "notes"))
    )


def is_vslice_metadata(data: Any) -> bool:
    return (
        is_truthy(_field(data, "version"))
        and is_truthy(_field(data, "songName"))
        and is_truthy(_field(data, "artist"))
        and not is_truthy(_field(data, "notes"))
    )


def is_vslice_chart(data: Any) -> bool:
    return (
        is_truthy(_field(data, "version"))
        and is_truthy(_field(data, "notes"))
        and is_truthy(_field(data, "scrollSpeed"))
    )


def is_codename_metadata(data: Any) -> bool:
    return is_truthy(_field(data, "displayName")) and is_truthy(_field(data, "bpm"))


def is_codename_chart(data: Any) -> bool:
    return _field(data, "codenameChart") is True


# Priority list.  A Psych chart may also carry events, so the chart check
# must precede the events check; the remaining entries keep the historical
# order users' files have been classified in.
CLASSIFICATION_ORDER: list[tuple[FileKind, Callable[[Any], bool]]] = [
    (FileKind.PSYCH_CHART, is_psych_chart),
    (FileKind.PSYCH_EVENTS, is_psych_events),
    (FileKind.VSLICE_METADATA, is_vslice_metadata),
    (FileKind.VSLICE_CHART, is_vslice_chart),
    (FileKind.CODENAME_METADATA, is_codename_metadata),
    (FileKind.CODENAME_CHART, is_codename_chart),
]


def classify(data: Any) -> Classification:
    """
    Classify a decoded JSON document.

    Never raises: anything that matches no known layout (including
    non-object JSON values) comes back as ``FileKind.UNRECOGNIZED``.
    """
    for kind, predicate in CLASSIFICATION_ORDER:
        if predicate(data):
            variant = psych_chart_variant(data) if kind is FileKind.PSYCH_CHART else None
            logger.debug("🔎 Classified input as {} ({})", kind.value, variant)
            return Classification(kind, variant)

    logger.debug("🔎 Input matched no known chart layout")
    return UNRECOGNIZED
