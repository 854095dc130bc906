import json
from datetime import date, datetime, timezone

import httpx
import pytest

from client.api import ClientRequestError, MarkersApi
from client.controller import MarkersController
from client.state import FormData
from markers.repository import StoreError


class Recorder:
    def __init__(self, answer=True):
        self.answer = answer
        self.prompts = []
        self.downloads = []
        self.opened = []

    def confirm(self, prompt):
        self.prompts.append(prompt)
        return self.answer

    def download(self, filename, content):
        self.downloads.append((filename, content))

    def open_url(self, url):
        self.opened.append(url)


def counter(prefix="id"):
    state = {"n": 0}

    def make_id():
        state["n"] += 1
        return f"{prefix}{state['n']}"

    return make_id


@pytest.fixture
def recorder():
    return Recorder()


@pytest.fixture
def controller(client, recorder):
    return MarkersController(
        MarkersApi(client),
        confirm=recorder.confirm,
        download=recorder.download,
        open_url=recorder.open_url,
        clock=lambda: 1000.0,
        today=lambda: date(2024, 5, 17),
        make_id=counter(),
    )


def test_add_edit_delete(controller, store):
    controller.submit(FormData(title="Intro", url="https://youtu.be/x", time="1:15"))
    assert [m["id"] for m in controller.state.markers] == ["id1"]
    assert controller.state.markers[0]["seconds"] == 75
    assert controller.state.status.text == "Marker saved"

    controller.edit("id1")
    controller.submit(FormData(title="Intro", url="https://youtu.be/x", time="1:30"))
    assert store.rows["id1"]["seconds"] == 90
    assert controller.state.editing_id is None
    assert controller.state.markers[0]["seconds"] == 90

    controller.delete("id1")
    assert store.rows == {}
    assert controller.state.markers == ()


def test_declined_confirmation_sends_nothing(controller, recorder, store):
    controller.submit(FormData(url="https://e.com", time="5"))
    recorder.answer = False

    controller.delete("id1")
    controller.clear()

    assert "id1" in store.rows
    assert len(recorder.prompts) == 2


def test_export_then_import_round_trip(controller, recorder, store):
    controller.submit(FormData(title="A", url="https://youtu.be/a", time="10", note="first"))
    controller.submit(FormData(title="B", url="https://vimeo.com/b", time="1:00:00"))
    controller.export()
    ((filename, content),) = recorder.downloads
    assert filename == "video-markers-2024-05-17.json"

    controller.clear()
    assert store.rows == {}

    controller.import_data(content)
    assert controller.state.status.text == "2 markers imported"

    def fields(markers):
        return sorted((m["title"], m["url"], m["seconds"], m["note"]) for m in markers)

    assert fields(controller.state.markers) == fields(json.loads(content))
    assert not set(store.rows) & {m["id"] for m in json.loads(content)}


def test_bulk_import_continues_after_a_failed_item(controller, store):
    # The second generated id collides with an existing row.
    store.rows["id2"] = {
        "id": "id2",
        "title": None,
        "url": "https://e.com/0",
        "seconds": 0,
        "note": None,
        "created": datetime(2020, 1, 1, tzinfo=timezone.utc),
    }
    text = json.dumps(
        [
            {"url": "https://e.com/1", "seconds": 1},
            {"url": "https://e.com/2", "seconds": 2},
            {"url": "https://e.com/3", "seconds": 3},
        ]
    )

    controller.import_data(text)

    assert controller.state.status.kind == "warn"
    assert controller.state.status.text == "2 markers imported, 1 failed"
    assert {"id1", "id3"} <= set(store.rows)
    assert len(controller.state.markers) == 3


def test_server_errors_become_status_messages(controller, store):
    controller.submit(FormData(url="https://e.com", time="5"))
    store.fail_with = StoreError("db down")

    controller.refresh()
    assert controller.state.status.text == "Could not load markers"
    assert len(controller.state.markers) == 1

    controller.submit(FormData(url="https://e.com", time="6"))
    assert controller.state.status.text == "Could not save marker"


def test_preview_opens_augmented_url(controller, recorder):
    controller.preview(FormData(url="https://youtu.be/x", time="2:00"))
    assert recorder.opened == ["https://youtu.be/x?t=120s"]


def test_transport_errors_raise_client_request_error():
    def boom(request):
        raise httpx.ConnectError("refused", request=request)

    api = MarkersApi(httpx.Client(base_url="http://markers.test", transport=httpx.MockTransport(boom)))
    with pytest.raises(ClientRequestError):
        api.list_markers()


def test_non_json_responses_raise_client_request_error():
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="<html>"))
    api = MarkersApi(httpx.Client(base_url="http://markers.test", transport=transport))
    with pytest.raises(ClientRequestError):
        api.list_markers()


def test_error_status_carries_server_diagnostic():
    transport = httpx.MockTransport(
        lambda request: httpx.Response(500, json={"message": "Error deleting marker", "error": "db down"})
    )
    api = MarkersApi(httpx.Client(base_url="http://markers.test", transport=transport))
    with pytest.raises(ClientRequestError) as excinfo:
        api.delete_marker("m/1")
    assert excinfo.value.status_code == 500
    assert "db down" in str(excinfo.value)


def test_tick_clears_expired_status(client):
    now = {"t": 1000.0}
    controller = MarkersController(MarkersApi(client), clock=lambda: now["t"])
    controller.submit(FormData(url="", time=""))
    assert controller.state.status.text == "URL and time are required"

    now["t"] += 1
    controller.tick()
    assert controller.state.status is not None

    now["t"] += 5
    controller.tick()
    assert controller.state.status is None


def test_cancel_edit_turns_next_submit_into_create(controller, store):
    controller.submit(FormData(url="https://e.com", time="5"))
    controller.edit("id1")
    controller.cancel_edit()
    assert controller.state.editing_id is None

    controller.submit(FormData(url="https://e.com", time="6"))
    assert set(store.rows) == {"id1", "id2"}


def test_import_of_undecodable_bytes_reports_status(controller, store):
    controller.import_data(b'[{"url": "https://e.com", "seconds": 1, "title": "\xff"}]')
    assert controller.state.status.kind == "err"
    assert controller.state.status.text == "Could not import file"
    assert store.rows == {}
