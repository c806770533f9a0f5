#!/usr/bin/env python3
"""
chart_info.py - Summarise Friday Night Funkin' chart files

Detects whether a chart was made for Psych Engine (including legacy/Kade
charts), V-Slice or Codename Engine and prints its song info, BPM, scroll
speed, per-lane note counts, max combo and max score.

Usage:
    python scripts/chart_info.py bopeebo-hard.json
    python scripts/chart_info.py bopeebo-chart.json bopeebo-metadata.json
    python scripts/chart_info.py --multiplier 400 --wiki chart.json events.json

Flags:
    --multiplier N  Score per note (default: the engine's own default)
    --keys {4,8}    Count 4-key or 8-key lanes
    --wiki          Also print the Funkipedia SongInfo template
    --json          Output the summary as JSON
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, List, Tuple

import aiofiles

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.config import ALLOWED_FILE_EXTENSIONS, DEFAULT_KEY_COUNT  # noqa: E402
from src.services.chart_render import (  # noqa: E402
    build_display_model,
    render_text,
    render_wiki_template,
)
from src.services.chart_session import (  # noqa: E402
    SessionUpdate,
    load_files,
    reset_session,
    update_multiplier,
)
from src.services.errors import ChartInfoError, MalformedInput  # noqa: E402
from src.utils import decode_json_text  # noqa: E402


async def read_json_file(path: Path) -> Tuple[str, Any]:
    """Read and decode one chart/metadata file."""
    if path.suffix.lower() not in ALLOWED_FILE_EXTENSIONS:
        raise MalformedInput(f"Invalid file type for {path.name}", filename=path.name)
    try:
        async with aiofiles.open(path, "rb") as f:
            raw = await f.read()
    except OSError as e:
        raise MalformedInput(
            f"Error reading file {path.name}: {e.strerror}", filename=path.name
        ) from e
    return path.name, decode_json_text(raw, path.name)


async def read_json_files(paths: List[Path]) -> List[Tuple[str, Any]]:
    """Read all files concurrently; any failure fails the whole batch."""
    return list(await asyncio.gather(*(read_json_file(p) for p in paths)))


def process(
    paths: List[Path], multiplier: Any = None, key_count: int = DEFAULT_KEY_COUNT
) -> SessionUpdate:
    """Load *paths* into a fresh session and apply an optional multiplier."""
    decoded = asyncio.run(read_json_files(paths))
    update = load_files(reset_session(key_count), decoded)
    if multiplier is not None:
        update = update_multiplier(update.session, multiplier)
    return update


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


def main(argv: List[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Summarise Friday Night Funkin' chart files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "path", nargs="+", help="Chart file, optionally followed by its metadata/event file"
    )
    parser.add_argument("--multiplier", "-m", help="Score per note")
    parser.add_argument(
        "--keys", type=int, choices=(4, 8), default=DEFAULT_KEY_COUNT, help="Key count"
    )
    parser.add_argument("--wiki", action="store_true", help="Print the wiki template")
    parser.add_argument("--json", action="store_true", help="Output results as JSON")

    args = parser.parse_args(argv)

    try:
        update = process([Path(p) for p in args.path], args.multiplier, args.keys)
    except ChartInfoError as e:
        print(f"❌ {e.message}")
        return 1

    summary = update.summary
    if summary is None:
        print(f"ℹ️ {update.message}")
        return 0

    if args.json:
        output = {
            "session": update.session.to_dict(),
            "summary": summary.to_dict(),
            "wiki": render_wiki_template(summary),
        }
        print(json.dumps(output, indent=2))
        return 0

    print(render_text(build_display_model(summary)))
    if args.wiki:
        print()
        print(render_wiki_template(summary))
    return 0


if __name__ == "__main__":
    sys.exit(main())
