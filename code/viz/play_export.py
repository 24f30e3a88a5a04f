#!/usr/bin/env python3
"""
viz/play_export.py

Headless play → video export.

Drives a real PlaybackController through a full recording with a
ManualScheduler, so an exported file is produced by exactly the same
state machine the interactive viewer uses (start on frame 0, auto-stop
on the final frame).

Public API:
    - save_play_video(play, out_dir, ...) → Path
    - export_plays(plays, out_dir, ...) → list[Path]
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Optional

from playback.controller import PlaybackController
from playback.scheduler import ManualScheduler
from playback.state import DEFAULT_PERIOD_MS
from utils.play_catalog import PlayCatalog
from utils.play_models import Play
from viz.field_renderer import FieldRenderer
from viz.video_export import CaptureFailure, GifExportSink, write_export


def save_play_video(
    play: Play,
    out_dir: str | Path,
    *,
    period_ms: int = DEFAULT_PERIOD_MS,
    hold_last_ms: int = 0,
    renderer: Optional[FieldRenderer] = None,
    verbose: bool = True,
) -> Path:
    """
    Record one full play (first frame → last frame) into a GIF under `out_dir`.

    Args:
        play: Reconstructed play to export.
        out_dir: Folder for the GIF (created if needed).
        period_ms: Per-frame duration in the exported animation.
        hold_last_ms: Extra time to hold the final frame.
        renderer: Optional renderer to reuse across exports.
        verbose: Print recording status lines.

    Returns:
        Path of the written GIF.

    Raises:
        CaptureFailure if the recording could not be produced.
    """
    written: list[Path] = []
    scheduler = ManualScheduler()
    controller = PlaybackController(
        PlayCatalog([play]),
        renderer=renderer or FieldRenderer(),
        scheduler=scheduler,
        sink=GifExportSink(hold_last_ms=hold_last_ms),
        on_export=lambda name, blob: written.append(write_export(out_dir, name, blob)),
        period_ms=period_ms,
        verbose=verbose,
    )

    controller.start_recording()
    scheduler.run_until_stopped()

    if controller.capture_error:
        raise CaptureFailure(controller.capture_error)
    if not written:
        raise CaptureFailure(f"Recording of {play.key} did not finish")
    return written[0]


def export_plays(
    plays: Iterable[Play],
    out_dir: str | Path,
    *,
    period_ms: int = DEFAULT_PERIOD_MS,
    hold_last_ms: int = 0,
    verbose: bool = True,
) -> list[Path]:
    """
    Export several plays, sharing one renderer. A play that fails to export
    is reported and skipped; the rest still get written.
    """
    renderer = FieldRenderer()
    paths: list[Path] = []
    for play in plays:
        try:
            paths.append(save_play_video(
                play,
                out_dir,
                period_ms=period_ms,
                hold_last_ms=hold_last_ms,
                renderer=renderer,
                verbose=verbose,
            ))
        except CaptureFailure as exc:
            print(f"[warn] skipped export of game={play.game_id}, play={play.play_id}: {exc}")
    return paths
