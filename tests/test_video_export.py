"""Tests for the GIF export sink and the headless play exporter."""
from __future__ import annotations

import io

import pytest
from PIL import Image

from viz.field_renderer import FieldRenderer
from viz.play_export import export_plays, save_play_video
from viz.video_export import CaptureFailure, GifExportSink, export_filename, write_export


def _png(color) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (16, 9), color).save(buf, format="PNG")
    return buf.getvalue()


def test_export_filename_is_filesystem_safe():
    assert export_filename("2023090700", "101", "SLANT") == "play_2023090700_101_SLANT.gif"
    assert export_filename("1", "2", "deep out / corner?") == "play_1_2_deep_out__corner.gif"
    assert export_filename("1", "2", "") == "play_1_2_play.gif"


def test_session_encodes_one_gif_frame_per_chunk(make_play):
    sink = GifExportSink()
    session = sink.arm(make_play(), frame_duration_ms=150)
    for color in ("red", "green", "blue"):
        session.on_chunk(_png(color))

    blob = session.finalize()

    gif = Image.open(io.BytesIO(blob))
    assert gif.format == "GIF"
    assert gif.n_frames == 3
    assert gif.info["duration"] == 150
    assert session.filename == "play_1_10_Play_10.gif"
    assert not sink.active


def test_only_one_session_at_a_time(make_play):
    sink = GifExportSink()
    first = sink.arm(make_play())

    with pytest.raises(CaptureFailure):
        sink.arm(make_play(play_id="11"))

    first.abort()
    assert not sink.active
    sink.arm(make_play(play_id="11"))


def test_empty_capture_fails_and_releases_sink(make_play):
    sink = GifExportSink()
    session = sink.arm(make_play())

    with pytest.raises(CaptureFailure):
        session.finalize()
    assert not sink.active
    with pytest.raises(CaptureFailure):
        session.on_chunk(_png("red"))


def test_write_export_creates_directory(tmp_path):
    out = write_export(tmp_path / "nested" / "dir", "clip.gif", b"GIF89a")

    assert out.read_bytes() == b"GIF89a"


def test_save_play_video_records_every_frame(make_play, tmp_path):
    play = make_play(n_frames=4)

    path = save_play_video(play, tmp_path, period_ms=50, verbose=False)

    assert path.name == "play_1_10_Play_10.gif"
    gif = Image.open(path)
    assert gif.n_frames == 4
    assert gif.size == (800, 450)


def test_export_plays_shares_renderer_across_plays(make_play, tmp_path):
    plays = [make_play(play_id="10", n_frames=2), make_play(play_id="20", n_frames=3)]

    paths = export_plays(plays, tmp_path, verbose=False)

    assert [p.name for p in paths] == ["play_1_10_Play_10.gif", "play_1_20_Play_20.gif"]
    assert [Image.open(p).n_frames for p in paths] == [2, 3]


def test_renderer_skips_out_of_range_frames(make_play):
    play = make_play(n_frames=2)
    renderer = FieldRenderer()

    renderer.draw(play, play.frames[0], 0)
    renderer.draw(play, play.frames[1], 5)

    assert renderer.frames_drawn == 1
    assert renderer.snapshot().startswith(b"\x89PNG")


def test_single_frame_play_exports_one_frame_gif(make_play, tmp_path):
    path = save_play_video(make_play(n_frames=1), tmp_path, verbose=False)

    assert Image.open(path).n_frames == 1
