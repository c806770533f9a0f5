"""
FNF Chart Info - Shared Utilities

Common helpers used across the services, the API and the CLI.
"""

import json
import math
from typing import Any

from src.services.errors import MalformedInput


def is_truthy(value: Any) -> bool:
    """
    Truthiness as chart authors' tools see it.

    Chart files come out of JavaScript and Haxe tooling where empty arrays
    and objects are *truthy*.  Only ``None``, ``False``, ``0``, ``NaN`` and
    the empty string count as missing.
    """
    if value is None or value is False:
        return False
    if isinstance(value, (int, float)):
        return value != 0 and not (isinstance(value, float) and math.isnan(value))
    if isinstance(value, str):
        return value != ""
    return True


def is_number(value: Any) -> bool:
    """True for real JSON numbers (bools excluded)."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and not math.isnan(value)


def format_number(value: Any) -> str:
    """
    Render a number the way it appears in the chart file.

    Whole floats drop their ``.0`` so ``150.0`` reads as ``150``.  Non-numbers
    are passed through ``str()``.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def decode_json_text(raw: bytes | str, filename: str) -> Any:
    """
    Decode a JSON document, tolerating a UTF-8 BOM.

    Raises
    ------
    MalformedInput
        If the bytes are not UTF-8 or the text is not valid JSON.
    """
    try:
        text = raw.decode("utf-8-sig") if isinstance(raw, bytes) else raw
        return json.loads(text.lstrip("\ufeff"))
    except UnicodeDecodeError as e:
        raise MalformedInput(
            f"Error reading file {filename}: not UTF-8 text ({e.reason})",
            filename=filename,
        ) from e
    except json.JSONDecodeError as e:
        raise MalformedInput(
            f"Error parsing JSON in file {filename}: {e.msg} "
            f"(line {e.lineno}, column {e.colno})",
            filename=filename,
        ) from e
