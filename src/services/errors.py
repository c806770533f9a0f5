"""
FNF Chart Info - Error Types

Every problem the chart pipeline reports is a :class:`ChartInfoError`
subclass.  All of them are recoverable: the caller shows the message and
stays ready for the next upload.  The ``code`` attribute is stable and is
what the API returns to clients.
"""

from typing import Any, Dict, Optional


class ChartInfoError(Exception):
    """Base class for all user-facing chart processing errors."""

    code = "CHART_INFO_ERROR"

    def __init__(self, message: str, filename: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.filename = filename

    def __str__(self) -> str:
        loc = f" ({self.filename})" if self.filename else ""
        return f"[{self.code}]{loc} {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, filename={self.filename!r})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "filename": self.filename,
        }


class UnrecognizedFormat(ChartInfoError):
    """No known chart, event or metadata layout matched the input."""

    code = "UNRECOGNIZED_FORMAT"


class EngineMismatch(ChartInfoError):
    """A metadata/event file was supplied for a different engine's chart."""

    code = "ENGINE_MISMATCH"

    def __init__(
        self, message: str, expected_engine: str, filename: Optional[str] = None
    ):
        super().__init__(message, filename)
        self.expected_engine = expected_engine

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["expected_engine"] = self.expected_engine
        return d


class MissingPrerequisite(ChartInfoError):
    """A metadata/event file arrived before any chart was loaded."""

    code = "MISSING_PREREQUISITE"


class MalformedInput(ChartInfoError):
    """The file is not JSON, or could not be decoded."""

    code = "MALFORMED_INPUT"


class StructuralGap(ChartInfoError):
    """The chart was recognised but lacks a substructure needed to read it."""

    code = "STRUCTURAL_GAP"


class InvalidFileCount(ChartInfoError):
    code = "INVALID_FILE_COUNT"


class InvalidMultiplier(ChartInfoError):
    code = "INVALID_MULTIPLIER"


class InvalidKeyCount(ChartInfoError):
    code = "INVALID_KEY_COUNT"
