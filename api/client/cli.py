"""
Command line front end for the markers API.
"""

from __future__ import annotations

import logging
import webbrowser
from pathlib import Path
from typing import Optional

import typer

from core.log import configure_logging

from . import render
from .api import DEFAULT_BASE_URL, MarkersApi
from .controller import MarkersController
from .state import FormData

app = typer.Typer(add_completion=False, help="Record and manage timestamped video markers.")


def _controller(
    ctx: typer.Context,
    *,
    assume_yes: bool = False,
    output_dir: Path | None = None,
    open_browser: bool = False,
) -> MarkersController:
    api: MarkersApi = ctx.obj["api"]

    def confirm(prompt: str) -> bool:
        return assume_yes or typer.confirm(prompt, default=False)

    def download(filename: str, content: str) -> None:
        target = (output_dir or Path.cwd()) / filename
        target.write_text(content, encoding="utf-8")
        typer.echo(f"Wrote {target}")

    open_url = webbrowser.open if open_browser else typer.echo
    return MarkersController(api, confirm=confirm, download=download, open_url=open_url)


def _finish(controller: MarkersController) -> None:
    line = render.status_line(controller.state.status)
    if line:
        typer.echo(line, err=controller.state.status.kind == "err")
    if controller.state.status is not None and controller.state.status.kind == "err":
        raise typer.Exit(code=1)


def _load_or_exit(controller: MarkersController) -> None:
    # Bulk actions must not run on top of a failed load.
    controller.refresh()
    if controller.state.status is not None and controller.state.status.kind == "err":
        _finish(controller)


@app.callback()
def main(
    ctx: typer.Context,
    server: str = typer.Option(DEFAULT_BASE_URL, "--server", envvar="VIDEO_MARKERS_URL", help="API base URL"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and failures"),
) -> None:
    configure_logging(logging.INFO if verbose else logging.WARNING)
    api = MarkersApi.from_base_url(server)
    ctx.obj = {"api": api}
    ctx.call_on_close(api.close)


@app.command("list")
def list_markers(ctx: typer.Context) -> None:
    """List markers, newest first."""
    controller = _controller(ctx)
    controller.refresh()
    for line in render.list_lines(controller.state.markers):
        typer.echo(line)
    _finish(controller)


@app.command("add")
def add_marker(
    ctx: typer.Context,
    url: str = typer.Option(..., "--url", help="Video URL"),
    time: str = typer.Option(..., "--time", help="hh:mm:ss, mm:ss or seconds"),
    title: str = typer.Option("", "--title"),
    note: str = typer.Option("", "--note"),
) -> None:
    controller = _controller(ctx)
    controller.submit(FormData(title=title, url=url, time=time, note=note))
    _finish(controller)


@app.command("edit")
def edit_marker(
    ctx: typer.Context,
    marker_id: str,
    url: Optional[str] = typer.Option(None, "--url"),
    time: Optional[str] = typer.Option(None, "--time"),
    title: Optional[str] = typer.Option(None, "--title"),
    note: Optional[str] = typer.Option(None, "--note"),
) -> None:
    """Replace fields of an existing marker; omitted options keep their value."""
    controller = _controller(ctx)
    controller.refresh()
    controller.edit(marker_id)
    if controller.state.editing_id != marker_id:
        _finish(controller)
        typer.echo(f"Marker {marker_id} not found", err=True)
        raise typer.Exit(code=1)

    current = controller.state.form
    controller.submit(
        FormData(
            title=current.title if title is None else title,
            url=current.url if url is None else url,
            time=current.time if time is None else time,
            note=current.note if note is None else note,
        )
    )
    _finish(controller)


@app.command("delete")
def delete_marker(
    ctx: typer.Context,
    marker_id: str,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    controller = _controller(ctx, assume_yes=yes)
    controller.delete(marker_id)
    _finish(controller)


@app.command("export")
def export_markers(
    ctx: typer.Context,
    output_dir: Path = typer.Option(Path("."), "--output-dir", "-o", file_okay=False, dir_okay=True),
) -> None:
    """Write all markers to video-markers-<date>.json."""
    controller = _controller(ctx, output_dir=output_dir)
    _load_or_exit(controller)
    controller.export()
    _finish(controller)


@app.command("import")
def import_markers(
    ctx: typer.Context,
    file: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
) -> None:
    """Create one marker per entry of an exported JSON file (with fresh ids)."""
    controller = _controller(ctx)
    try:
        data = file.read_bytes()
    except OSError as exc:
        typer.echo(f"ERR: Could not read {file}: {exc}", err=True)
        raise typer.Exit(code=1)
    controller.import_data(data)
    _finish(controller)


@app.command("clear")
def clear_markers(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete every marker."""
    controller = _controller(ctx, assume_yes=yes)
    _load_or_exit(controller)
    controller.clear()
    _finish(controller)


@app.command("link")
def link(
    ctx: typer.Context,
    url: str,
    time: str = typer.Argument("0"),
    open_browser: bool = typer.Option(False, "--open", help="Open the link in a browser"),
) -> None:
    """Print (or open) the video URL with its timestamp parameter."""
    controller = _controller(ctx, open_browser=open_browser)
    controller.preview(FormData(url=url, time=time))
    _finish(controller)


if __name__ == "__main__":
    app()
