"""
Effect runner for the client state machine.

`MarkersController` keeps the current `AppState`, applies transitions from
`state` handlers and performs their effects one at a time, in order. Every
request failure is caught here, logged, and turned into a status message; the
controller itself never raises `ClientRequestError`.
"""

from __future__ import annotations

import logging
import time
import webbrowser
from datetime import date
from pathlib import Path
from typing import Any, Callable

from . import state as st
from .api import ClientRequestError, MarkersApi
from .timecodes import generate_marker_id

logger = logging.getLogger(__name__)


def _never_confirm(_: str) -> bool:
    return False


def _write_to_cwd(filename: str, content: str) -> None:
    Path(filename).write_text(content, encoding="utf-8")


def _open_in_browser(url: str) -> None:
    webbrowser.open(url)


class MarkersController:
    def __init__(
        self,
        api: MarkersApi,
        *,
        confirm: Callable[[str], bool] = _never_confirm,
        download: Callable[[str, str], None] = _write_to_cwd,
        open_url: Callable[[str], None] = _open_in_browser,
        clock: Callable[[], float] = time.time,
        today: Callable[[], date] = date.today,
        make_id: Callable[[], str] = generate_marker_id,
    ) -> None:
        self.api = api
        self.state = st.AppState()
        self._confirm = confirm
        self._download = download
        self._open_url = open_url
        self._clock = clock
        self._today = today
        self._make_id = make_id
        self._runners: dict[type, Callable[[Any], None]] = {
            st.LoadMarkers: self._run_load,
            st.CreateMarker: self._run_create,
            st.UpdateMarker: self._run_update,
            st.DeleteMarker: self._run_delete,
            st.Confirm: self._run_confirm,
            st.BulkCreate: self._run_bulk_create,
            st.BulkDelete: self._run_bulk_delete,
            st.Download: self._run_download,
            st.OpenUrl: self._run_open_url,
        }

    # Actions.

    def refresh(self) -> None:
        self.apply(st.Transition(self.state, (st.LoadMarkers(),)))

    def submit(self, form: st.FormData) -> None:
        self.apply(st.submit_form(self.state, form, now=self._clock(), make_id=self._make_id))

    def edit(self, marker_id: str) -> None:
        self.apply(st.edit_marker(self.state, marker_id, now=self._clock()))

    def cancel_edit(self) -> None:
        self.apply(st.cancel_edit(self.state))

    def delete(self, marker_id: str) -> None:
        self.apply(st.delete_marker(self.state, marker_id))

    def preview(self, form: st.FormData) -> None:
        self.apply(st.preview_link(self.state, form, now=self._clock()))

    def export(self) -> None:
        self.apply(st.export_markers(self.state, today=self._today(), now=self._clock()))

    def import_data(self, data: str | bytes) -> None:
        transition = st.import_file(self.state, data, make_id=self._make_id, now=self._clock())
        if not transition.effects:
            logger.warning("markers_import_rejected status=%s", transition.state.status)
        self.apply(transition)

    def clear(self) -> None:
        self.apply(st.clear_markers(self.state, now=self._clock()))

    def tick(self) -> None:
        self.apply(st.expire_status(self.state, now=self._clock()))

    # Effects.

    def apply(self, transition: st.Transition) -> None:
        self.state = transition.state
        for effect in transition.effects:
            self._run(effect)

    def _run(self, effect: Any) -> None:
        runner = self._runners.get(type(effect))
        if runner is None:
            raise TypeError(f"Unknown effect: {effect!r}")
        runner(effect)

    def _run_load(self, _: st.LoadMarkers) -> None:
        try:
            markers = self.api.list_markers()
        except ClientRequestError as exc:
            logger.warning("markers_load_failed error=%s", exc)
            self.apply(st.load_failed(self.state, str(exc), now=self._clock()))
            return
        self.apply(st.markers_loaded(self.state, markers))

    def _run_create(self, effect: st.CreateMarker) -> None:
        try:
            self.api.create_marker(effect.payload)
        except ClientRequestError as exc:
            logger.warning("marker_save_failed id=%s error=%s", effect.payload.get("id"), exc)
            self.apply(st.save_failed(self.state, str(exc), now=self._clock()))
            return
        self.apply(st.save_succeeded(self.state, now=self._clock()))

    def _run_update(self, effect: st.UpdateMarker) -> None:
        try:
            self.api.update_marker(effect.marker_id, effect.payload)
        except ClientRequestError as exc:
            logger.warning("marker_save_failed id=%s error=%s", effect.marker_id, exc)
            self.apply(st.save_failed(self.state, str(exc), now=self._clock()))
            return
        self.apply(st.save_succeeded(self.state, now=self._clock()))

    def _run_delete(self, effect: st.DeleteMarker) -> None:
        try:
            self.api.delete_marker(effect.marker_id)
        except ClientRequestError as exc:
            logger.warning("marker_delete_failed id=%s error=%s", effect.marker_id, exc)
            self.apply(st.delete_failed(self.state, str(exc), now=self._clock()))
            return
        self.apply(st.delete_succeeded(self.state, effect.marker_id, now=self._clock()))

    def _run_confirm(self, effect: st.Confirm) -> None:
        if not self._confirm(effect.prompt):
            return
        for then in effect.then:
            self._run(then)

    def _run_bulk_create(self, effect: st.BulkCreate) -> None:
        # Sequential; one failed entry does not stop the rest.
        imported = failed = 0
        for payload in effect.payloads:
            try:
                self.api.create_marker(payload)
            except ClientRequestError as exc:
                failed += 1
                logger.warning("marker_import_failed id=%s error=%s", payload.get("id"), exc)
                continue
            imported += 1
        self.apply(st.import_finished(self.state, imported, failed, now=self._clock()))

    def _run_bulk_delete(self, effect: st.BulkDelete) -> None:
        deleted = failed = 0
        for marker_id in effect.marker_ids:
            try:
                self.api.delete_marker(marker_id)
            except ClientRequestError as exc:
                failed += 1
                logger.warning("marker_delete_failed id=%s error=%s", marker_id, exc)
                continue
            deleted += 1
        self.apply(st.clear_finished(self.state, deleted, failed, now=self._clock()))

    def _run_download(self, effect: st.Download) -> None:
        self._download(effect.filename, effect.content)

    def _run_open_url(self, effect: st.OpenUrl) -> None:
        self._open_url(effect.url)
