#!/usr/bin/env python3
"""
viz/video_export.py

Video export sink for recorded plays.

A recording session collects every rendered frame (PNG bytes straight off
the field renderer's canvas) and, when finalized, encodes them into an
animated GIF with Pillow (same writer as the other play animations, no
ffmpeg needed).

    sink = GifExportSink()
    session = sink.arm(play, frame_duration_ms=100)
    session.on_chunk(png_bytes)      # once per rendered frame
    blob = session.finalize()        # encoded GIF bytes
    Path(session.filename).write_bytes(blob)

Only one session can be armed at a time. Any failure to start, feed, or
encode a session is raised as CaptureFailure.
"""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

from PIL import Image

from utils.play_models import Play


class CaptureFailure(RuntimeError):
    """The export sink could not start or finish a recording."""


# ---------------------------------------------------------------------------
# Helper: safe file naming
# ---------------------------------------------------------------------------

def _safe_slug(text: str) -> str:
    """
    Convert an arbitrary string into a filesystem-safe slug.

    Keeps only [A–Z, a–z, 0–9, '_', '-'] and replaces spaces with underscores.
    """
    text = (text or "").strip().replace(" ", "_")
    allowed = set(
        "abcdefghijklmnopqrstuvwxyz"
        "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
        "0123456789_-"
    )
    return "".join(c for c in text if c in allowed) or "play"


def export_filename(game_id: str, play_id: str, description: str, suffix: str = ".gif") -> str:
    """
    Example:
        play_2023090700_101_SLANT.gif
    """
    return f"play_{_safe_slug(str(game_id))}_{_safe_slug(str(play_id))}_{_safe_slug(description)}{suffix}"


# ---------------------------------------------------------------------------
# Capture session
# ---------------------------------------------------------------------------

class CaptureSession:
    """Frames captured for a single play recording."""

    def __init__(self, sink: "GifExportSink", filename: str, frame_duration_ms: int):
        self._sink = sink
        self.filename = filename
        self.frame_duration_ms = int(frame_duration_ms)
        self._chunks: list[bytes] = []
        self.closed = False

    @property
    def n_chunks(self) -> int:
        return len(self._chunks)

    def on_chunk(self, data: bytes) -> None:
        if self.closed:
            raise CaptureFailure(f"Capture for {self.filename} is already finalized")
        if data:
            self._chunks.append(bytes(data))

    def _encode(self) -> bytes:
        if not self._chunks:
            raise CaptureFailure(f"No frames were captured for {self.filename}")
        try:
            images = [Image.open(io.BytesIO(c)).convert("RGB") for c in self._chunks]
            durations = [self.frame_duration_ms] * len(images)
            if self._sink.hold_last_ms > 0:
                durations[-1] += self._sink.hold_last_ms

            buf = io.BytesIO()
            images[0].save(
                buf,
                format="GIF",
                save_all=True,
                append_images=images[1:],
                duration=durations,
                loop=0,
            )
        except (OSError, ValueError) as exc:
            raise CaptureFailure(f"Could not encode {self.filename}: {exc}") from exc
        return buf.getvalue()

    def finalize(self) -> bytes:
        """Encode the captured frames and release the sink."""
        if self.closed:
            raise CaptureFailure(f"Capture for {self.filename} is already finalized")
        self.closed = True
        try:
            return self._encode()
        finally:
            self._sink._release(self)

    def abort(self) -> None:
        """Drop captured frames without encoding."""
        self.closed = True
        self._chunks.clear()
        self._sink._release(self)


# ---------------------------------------------------------------------------
# Sink
# ---------------------------------------------------------------------------

class GifExportSink:
    """
    Exclusive capture resource: arm → feed frames → finalize.

    Args:
        hold_last_ms: Extra time to hold on the final frame of the GIF.
    """

    def __init__(self, hold_last_ms: int = 0):
        self.hold_last_ms = int(hold_last_ms)
        self._active: Optional[CaptureSession] = None

    @property
    def active(self) -> bool:
        return self._active is not None

    def arm(self, play: Play, frame_duration_ms: int = 100) -> CaptureSession:
        if self._active is not None:
            raise CaptureFailure(
                f"A recording is already in progress ({self._active.filename})"
            )
        filename = export_filename(play.game_id, play.play_id, play.description)
        self._active = CaptureSession(self, filename, frame_duration_ms)
        return self._active

    def _release(self, session: CaptureSession) -> None:
        if self._active is session:
            self._active = None


def write_export(out_dir: str | Path, filename: str, blob: bytes) -> Path:
    """Write an encoded recording under `out_dir`, creating it if needed."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    out_path = out_dir / filename
    out_path.write_bytes(blob)
    print(f"🎬 Saved play video → {out_path}")
    return out_path
