"""
FNF Chart Info - Pytest Configuration & Shared Fixtures

Provides reusable fixtures for:
- Sample charts for each engine (Psych v1, legacy Psych, V-Slice, Codename)
- Matching metadata / event files
- A FastAPI test client with a fresh session per test
- Helpers for writing chart files to a temporary directory
"""

import copy
import json
from pathlib import Path
from typing import Any, Dict

import pytest
from fastapi.testclient import TestClient

# ---------------------------------------------------------------------------
# Sample data — Psych Engine
# ---------------------------------------------------------------------------

# Player notes: lane 0 and 3 (must-hit), 6→2 and 4→0 (opponent-side
# section), 7→3 (section with no mustHitSection flag).  Total = 5.
SAMPLE_PSYCH_V1_CHART: Dict[str, Any] = {
    "format": "psych_v1",
    "song": "Bopeebo",
    "bpm": 100,
    "speed": 2.5,
    "needsVoices": True,
    "notes": [
        {
            "mustHitSection": True,
            "sectionNotes": [[0, 0, 0], [100, 3, 0], [200, 5, 0]],
        },
        {
            "mustHitSection": False,
            "changeBPM": True,
            "bpm": 120,
            "sectionNotes": [[300, 6, 0], [400, 1, 0], [500, 4, 0]],
        },
        {
            "changeBPM": True,
            "bpm": 100,
            "sectionNotes": [[600, 7, 0]],
        },
    ],
    "events": [
        [1000, [["Change Scroll Speed", "1.5", "1"]]],
        [2000, [["Hey!", "BF", ""]]],
        [3000, [["Change Scroll Speed", "0.5", "1"]]],
    ],
}

SAMPLE_PSYCH_V1_EVENTS: Dict[str, Any] = {
    "format": "psych_v1",
    "events": [
        [1000, [["Change Scroll Speed", "1.5", "1"]]],
        [4000, [["Change Scroll Speed", "2", "1"]]],
    ],
}

# Player notes: lanes 1, 2 (must-hit) and 7→3 (opponent-side).  Total = 3.
SAMPLE_PSYCH_LEGACY_CHART: Dict[str, Any] = {
    "song": {
        "song": "Fresh",
        "bpm": 120,
        "speed": 1.8,
        "needsVoices": True,
        "notes": [
            {"mustHitSection": True, "sectionNotes": [[0, 1, 0], [50, 2, 0]]},
            {"mustHitSection": False, "sectionNotes": [[100, 7, 0], [150, 0, 0]]},
        ],
        "events": [[500, [["Change Scroll Speed", "2", "1"]]]],
    }
}

SAMPLE_PSYCH_LEGACY_EVENTS: Dict[str, Any] = {
    "song": {
        "events": [
            [500, [["Change Scroll Speed", "2", "1"]]],
            [800, [["Change Scroll Speed", "0.5", "1"]]],
        ]
    }
}

# ---------------------------------------------------------------------------
# Sample data — V-Slice
# ---------------------------------------------------------------------------

SAMPLE_VSLICE_CHART: Dict[str, Any] = {
    "version": "2.0.0",
    "scrollSpeed": {"easy": 1.2, "normal": 1.5, "hard": 2.0},
    "events": [
        {"t": 0, "e": "FocusCamera", "v": {"char": 1}},
        {"t": 5000, "e": "ScrollSpeed", "v": {"scroll": 1.5, "duration": 4}},
    ],
    "notes": {
        "easy": [{"t": 0, "d": 0}, {"t": 100, "d": 1}, {"t": 200, "d": 5}],
        "normal": [
            {"t": 0, "d": 0},
            {"t": 100, "d": 1},
            {"t": 200, "d": 2},
            {"t": 300, "d": 3},
        ],
        "hard": [
            {"t": 0, "d": 0},
            {"t": 50, "d": 0},
            {"t": 100, "d": 3},
            {"t": 150, "d": 2},
            {"t": 200, "d": 6},
        ],
        "erect": [{"t": 0, "d": 1}],
        "nightmare": [],
    },
    "generatedBy": "Friday Night Funkin' - v0.5.0",
}

SAMPLE_VSLICE_METADATA: Dict[str, Any] = {
    "version": "2.2.0",
    "songName": "Bopeebo",
    "artist": "Kawai Sprite",
    "charter": "ninjamuffin99",
    "timeChanges": [
        {"t": 0, "bpm": 100},
        {"t": 10000, "bpm": 150},
        {"t": 20000, "bpm": 100},
    ],
    "playData": {
        "difficulties": ["hard", "easy", "normal"],
        "characters": {"player": "bf", "girlfriend": "gf", "opponent": "dad"},
    },
}

# ---------------------------------------------------------------------------
# Sample data — Codename Engine
# ---------------------------------------------------------------------------

# Player strum line (type 1): lanes 0, 2, 2, 3 plus an out-of-range id 5.
SAMPLE_CODENAME_CHART: Dict[str, Any] = {
    "codenameChart": True,
    "scrollSpeed": 2.2,
    "strumLines": [
        {"type": 0, "position": "dad", "notes": [{"time": 0, "id": 0}, {"time": 10, "id": 1}]},
        {
            "type": 1,
            "position": "boyfriend",
            "notes": [
                {"time": 0, "id": 0},
                {"time": 10, "id": 2},
                {"time": 20, "id": 2},
                {"time": 30, "id": 3},
                {"time": 40, "id": 5},
            ],
        },
        {"type": 2, "position": "girlfriend", "notes": [{"time": 0, "id": 1}]},
    ],
    "events": [
        {"time": 0, "name": "BPM Change", "params": [150]},
        {"time": 1000, "name": "BPM Change", "params": [170]},
        {"time": 2000, "name": "Scroll Speed Change", "params": [True, 2.6, 4, "linear"]},
    ],
}

SAMPLE_CODENAME_META: Dict[str, Any] = {
    "name": "bopeebo",
    "displayName": "Bopeebo",
    "bpm": 150,
    "difficulties": ["easy", "normal", "hard"],
}


# ---------------------------------------------------------------------------
# Fixtures — fresh copies so tests can't leak mutations into each other
# ---------------------------------------------------------------------------


@pytest.fixture
def psych_v1_chart() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_PSYCH_V1_CHART)


@pytest.fixture
def psych_v1_events() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_PSYCH_V1_EVENTS)


@pytest.fixture
def psych_legacy_chart() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_PSYCH_LEGACY_CHART)


@pytest.fixture
def psych_legacy_events() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_PSYCH_LEGACY_EVENTS)


@pytest.fixture
def vslice_chart() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_VSLICE_CHART)


@pytest.fixture
def vslice_metadata() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_VSLICE_METADATA)


@pytest.fixture
def codename_chart() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_CODENAME_CHART)


@pytest.fixture
def codename_meta() -> Dict[str, Any]:
    return copy.deepcopy(SAMPLE_CODENAME_META)


# ---------------------------------------------------------------------------
# File helpers
# ---------------------------------------------------------------------------


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as JSON to *path* and return the path."""
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# API client
# ---------------------------------------------------------------------------


@pytest.fixture
def client():
    """A TestClient against the app, with the API session reset around each test."""
    import src.routes.api as api
    from src.main import app
    from src.services.chart_session import reset_session

    api.set_session(reset_session())
    with TestClient(app) as c:
        yield c
    api.set_session(reset_session())
