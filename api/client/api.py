"""
HTTP client for the markers API.

Endpoints used:
- GET    /markers        -> [Marker, ...]
- POST   /markers        -> {"message": ..., "id": ...}
- PUT    /markers/{id}   -> {"message": ..., "id": ...}
- DELETE /markers/{id}   -> {"message": ..., "id": ...}
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

DEFAULT_BASE_URL = "http://localhost:3011"


# Transport/parse failures are explicit and separable from other runtime errors.
class ClientRequestError(RuntimeError):
    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


def _error_text(resp: httpx.Response) -> str:
    try:
        data = resp.json()
    except ValueError:
        return resp.text[:300]
    if isinstance(data, dict):
        for key in ("error", "detail", "message"):
            if data.get(key):
                return str(data[key])[:300]
    return resp.text[:300]


def _marker_path(marker_id: str) -> str:
    return f"/markers/{quote(marker_id, safe='')}"


class MarkersApi:
    def __init__(self, http: httpx.Client) -> None:
        self._http = http

    @classmethod
    def from_base_url(cls, base_url: str = DEFAULT_BASE_URL, *, timeout_s: float = 30.0) -> "MarkersApi":
        base_url = (base_url or "").strip().rstrip("/") or DEFAULT_BASE_URL
        return cls(httpx.Client(base_url=base_url, timeout=timeout_s))

    def close(self) -> None:
        self._http.close()

    def _request(self, method: str, path: str, *, json: dict[str, Any] | None = None) -> Any:
        try:
            resp = self._http.request(method, path, json=json)
        except httpx.HTTPError as exc:
            raise ClientRequestError(f"{method} {path} failed: {exc}") from exc

        if not resp.is_success:
            raise ClientRequestError(
                f"{method} {path} failed with status {resp.status_code}: {_error_text(resp)}",
                status_code=resp.status_code,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise ClientRequestError(f"{method} {path} returned invalid JSON.") from exc

    def list_markers(self) -> list[dict[str, Any]]:
        data = self._request("GET", "/markers")
        if not isinstance(data, list):
            raise ClientRequestError("GET /markers did not return a list.")
        return data

    def create_marker(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/markers", json=payload)

    def update_marker(self, marker_id: str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", _marker_path(marker_id), json=payload)

    def delete_marker(self, marker_id: str) -> dict[str, Any]:
        return self._request("DELETE", _marker_path(marker_id))
