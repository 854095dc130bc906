"""
Client state and action handlers.

Every handler is a pure function: it takes the current `AppState` (plus the
event data) and returns a `Transition` holding the next state and a tuple of
effects to run. Effects are plain descriptions; `controller.MarkersController`
is the only place that performs them.

Handlers that set a status message take `now` (epoch seconds) so expiry stays
deterministic under test.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, replace
from datetime import date
from typing import Any, Callable, NamedTuple

from .timecodes import seconds_to_time, time_to_seconds, video_url

STATUS_TTL_S = 3.0


@dataclass(frozen=True)
class Status:
    text: str
    kind: str = "info"  # info | ok | warn | err
    expires_at: float = 0.0


@dataclass(frozen=True)
class FormData:
    title: str = ""
    url: str = ""
    time: str = ""
    note: str = ""


@dataclass(frozen=True)
class AppState:
    markers: tuple[dict[str, Any], ...] = ()
    editing_id: str | None = None
    form: FormData = field(default_factory=FormData)
    status: Status | None = None


# Effects.


@dataclass(frozen=True)
class LoadMarkers:
    pass


@dataclass(frozen=True)
class CreateMarker:
    payload: dict[str, Any]


@dataclass(frozen=True)
class UpdateMarker:
    marker_id: str
    payload: dict[str, Any]


@dataclass(frozen=True)
class DeleteMarker:
    marker_id: str


@dataclass(frozen=True)
class Confirm:
    prompt: str
    then: tuple[Any, ...]


@dataclass(frozen=True)
class BulkCreate:
    payloads: tuple[dict[str, Any], ...]


@dataclass(frozen=True)
class BulkDelete:
    marker_ids: tuple[str, ...]


@dataclass(frozen=True)
class Download:
    filename: str
    content: str


@dataclass(frozen=True)
class OpenUrl:
    url: str


class Transition(NamedTuple):
    state: AppState
    effects: tuple[Any, ...] = ()


def _with_status(state: AppState, text: str, kind: str, now: float) -> AppState:
    return replace(state, status=Status(text=text, kind=kind, expires_at=now + STATUS_TTL_S))


def _none_if_blank(value: Any) -> Any:
    if isinstance(value, str) and not value.strip():
        return None
    return value


def find_marker(state: AppState, marker_id: str) -> dict[str, Any] | None:
    for marker in state.markers:
        if marker.get("id") == marker_id:
            return marker
    return None


def expire_status(state: AppState, *, now: float) -> Transition:
    if state.status is not None and now >= state.status.expires_at:
        return Transition(replace(state, status=None))
    return Transition(state)


# Loading.


def markers_loaded(state: AppState, markers: list[dict[str, Any]]) -> Transition:
    return Transition(replace(state, markers=tuple(markers)))


def load_failed(state: AppState, error: str, *, now: float) -> Transition:
    # Previously loaded markers stay on screen.
    return Transition(_with_status(state, "Could not load markers", "err", now))


# Create / update.


def submit_form(
    state: AppState,
    form: FormData,
    *,
    now: float,
    make_id: Callable[[], str],
) -> Transition:
    state = replace(state, form=form)
    url = form.url.strip()
    time_text = form.time.strip()
    if not url or not time_text:
        return Transition(_with_status(state, "URL and time are required", "warn", now))

    seconds = time_to_seconds(time_text)
    if seconds < 0:
        return Transition(_with_status(state, "Invalid time format", "warn", now))

    payload = {
        "id": state.editing_id or make_id(),
        "title": _none_if_blank(form.title.strip()),
        "url": url,
        "seconds": seconds,
        "note": _none_if_blank(form.note.strip()),
    }
    if state.editing_id:
        return Transition(state, (UpdateMarker(state.editing_id, payload),))
    return Transition(state, (CreateMarker(payload),))


def save_succeeded(state: AppState, *, now: float) -> Transition:
    text = "Marker updated" if state.editing_id else "Marker saved"
    state = replace(state, form=FormData(), editing_id=None)
    return Transition(_with_status(state, text, "ok", now), (LoadMarkers(),))


def save_failed(state: AppState, error: str, *, now: float) -> Transition:
    return Transition(_with_status(state, "Could not save marker", "err", now))


# Edit.


def edit_marker(state: AppState, marker_id: str, *, now: float) -> Transition:
    marker = find_marker(state, marker_id)
    if marker is None:
        return Transition(state)

    form = FormData(
        title=marker.get("title") or "",
        url=marker.get("url") or "",
        time=seconds_to_time(int(marker.get("seconds") or 0)),
        note=marker.get("note") or "",
    )
    state = replace(state, form=form, editing_id=marker_id)
    return Transition(_with_status(state, "Editing marker...", "warn", now))


def cancel_edit(state: AppState) -> Transition:
    return Transition(replace(state, form=FormData(), editing_id=None))


# Delete.


def delete_marker(state: AppState, marker_id: str) -> Transition:
    return Transition(
        state,
        (Confirm("Delete this marker?", then=(DeleteMarker(marker_id),)),),
    )


def delete_succeeded(state: AppState, marker_id: str, *, now: float) -> Transition:
    if state.editing_id == marker_id:
        state = replace(state, form=FormData(), editing_id=None)
    return Transition(_with_status(state, "Marker deleted", "ok", now), (LoadMarkers(),))


def delete_failed(state: AppState, error: str, *, now: float) -> Transition:
    return Transition(_with_status(state, "Could not delete marker", "err", now))


# Preview.


def preview_link(state: AppState, form: FormData, *, now: float) -> Transition:
    url = form.url.strip()
    if not url:
        return Transition(_with_status(state, "Enter a URL first", "warn", now))
    return Transition(state, (OpenUrl(video_url(url, time_to_seconds(form.time))),))


# Bulk export / import / clear.


def export_filename(today: date) -> str:
    return f"video-markers-{today.isoformat()}.json"


def export_markers(state: AppState, *, today: date, now: float) -> Transition:
    if not state.markers:
        return Transition(_with_status(state, "No markers to export", "warn", now))

    content = json.dumps(list(state.markers), indent=2, ensure_ascii=False, default=str)
    return Transition(
        _with_status(state, "Markers exported", "ok", now),
        (Download(export_filename(today), content),),
    )


def import_file(
    state: AppState,
    data: str | bytes,
    *,
    make_id: Callable[[], str],
    now: float,
) -> Transition:
    """
    Queue one create per entry of a JSON array. Ids in the file are ignored
    and replaced with fresh ones so re-imports never collide.

    `data` may be the raw file bytes; undecodable input is reported the same
    way as malformed JSON.
    """
    try:
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        entries = json.loads(data)
    except ValueError:
        return Transition(_with_status(state, "Could not import file", "err", now))

    if not isinstance(entries, list) or not all(isinstance(e, dict) for e in entries):
        return Transition(
            _with_status(state, "Invalid file format: expected a JSON array of markers", "err", now)
        )

    payloads = tuple(
        {
            "id": make_id(),
            "title": entry.get("title"),
            "url": entry.get("url"),
            "seconds": entry.get("seconds"),
            "note": entry.get("note"),
        }
        for entry in entries
    )
    return Transition(state, (BulkCreate(payloads),))


def import_finished(state: AppState, imported: int, failed: int, *, now: float) -> Transition:
    if failed:
        state = _with_status(state, f"{imported} markers imported, {failed} failed", "warn", now)
    else:
        state = _with_status(state, f"{imported} markers imported", "ok", now)
    return Transition(state, (LoadMarkers(),))


def clear_markers(state: AppState, *, now: float) -> Transition:
    if not state.markers:
        return Transition(_with_status(state, "No markers to delete", "warn", now))

    ids = tuple(str(marker["id"]) for marker in state.markers)
    return Transition(
        state,
        (Confirm("Delete ALL markers? This cannot be undone.", then=(BulkDelete(ids),)),),
    )


def clear_finished(state: AppState, deleted: int, failed: int, *, now: float) -> Transition:
    state = replace(state, form=FormData(), editing_id=None)
    if failed:
        state = _with_status(state, f"{deleted} markers deleted, {failed} failed", "warn", now)
    else:
        state = _with_status(state, "All markers deleted", "ok", now)
    return Transition(state, (LoadMarkers(),))
