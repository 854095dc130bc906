"""
Plain-text rendering of markers for the CLI.
"""

from __future__ import annotations

from typing import Any

from .state import Status
from .timecodes import seconds_to_time, video_url

URL_DISPLAY_LIMIT = 50


def short_url(url: str, limit: int = URL_DISPLAY_LIMIT) -> str:
    return url if len(url) <= limit else url[:limit] + "..."


def created_date(marker: dict[str, Any]) -> str:
    created = marker.get("created")
    return str(created)[:10] if created else ""


def marker_lines(marker: dict[str, Any]) -> list[str]:
    seconds = int(marker.get("seconds") or 0)
    url = str(marker.get("url") or "")
    lines = [
        f"[{seconds_to_time(seconds)}] {marker.get('title') or 'Untitled'}  ({created_date(marker)})",
        f"    id:   {marker.get('id')}",
        f"    url:  {short_url(url)}",
        f"    link: {video_url(url, seconds)}",
    ]
    if marker.get("note"):
        lines.append(f"    note: {marker['note']}")
    return lines


def list_lines(markers: tuple[dict[str, Any], ...] | list[dict[str, Any]]) -> list[str]:
    if not markers:
        return ["No markers saved yet"]
    lines: list[str] = []
    for marker in markers:
        lines.extend(marker_lines(marker))
    return lines


def status_line(status: Status | None) -> str | None:
    if status is None:
        return None
    return f"{status.kind.upper()}: {status.text}"
