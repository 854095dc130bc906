"""
Time and URL helpers shared by the client.
"""

from __future__ import annotations

import re
import secrets
import string
import time

VIDEO_HOSTS = ("youtube.com", "youtu.be")

_INT_RE = re.compile(r"^[+-]?\d+$")
_LEADING_INT_RE = re.compile(r"^\s*([+-]?\d+)")
_ID_ALPHABET = string.digits + string.ascii_lowercase


def _leading_int(text: str) -> int:
    # Best effort: "12abc" -> 12, "abc" -> 0.
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else 0


def time_to_seconds(text: str | None) -> int:
    """
    Parse `hh:mm:ss`, `mm:ss` or a bare number of seconds.

    Unparseable components count as zero; this is a soft parse, callers
    validate the result (e.g. reject negatives).
    """
    text = (text or "").strip()
    if not text:
        return 0
    if _INT_RE.match(text):
        return int(text)

    parts = [_leading_int(p) for p in text.split(":")]
    if len(parts) == 3:
        return parts[0] * 3600 + parts[1] * 60 + parts[2]
    if len(parts) == 2:
        return parts[0] * 60 + parts[1]
    return _leading_int(text)


def seconds_to_time(seconds: int) -> str:
    hours, rest = divmod(int(seconds), 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def is_video_host(url: str) -> bool:
    return any(host in url for host in VIDEO_HOSTS)


def video_url(url: str, seconds: int) -> str:
    """
    Append `t=<seconds>s` for known video-sharing URLs; others pass through.
    """
    if not is_video_host(url):
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}t={int(seconds)}s"


def generate_marker_id() -> str:
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"marker_{int(time.time() * 1000)}_{suffix}"
