"""
Browser UI shipped with the API.

`public/` is served at `/` and `assets/` at `/assets` (see `api/main.py`).
Both directories are package data so they install alongside the code.
"""

from __future__ import annotations

from pathlib import Path

WEB_DIR = Path(__file__).resolve().parent
PUBLIC_DIR = WEB_DIR / "public"
ASSETS_DIR = WEB_DIR / "assets"
