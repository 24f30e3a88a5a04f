"""Tests for the controller that runs playback side effects."""
from __future__ import annotations

import pytest

from playback.controller import PlaybackController
from playback.scheduler import ManualScheduler
from playback.state import MAX_PERIOD_MS, PlaybackStatus
from utils.play_catalog import PlayCatalog
from viz.video_export import CaptureFailure


class FakeRenderer:
    def __init__(self):
        self.drawn = []

    def draw(self, play, frame, frame_index):
        self.drawn.append((play.key, frame_index))

    def snapshot(self):
        return f"frame-{self.drawn[-1][1]}".encode()


class FakeSession:
    def __init__(self, filename, fail_on_finalize=False):
        self.filename = filename
        self.chunks = []
        self.fail_on_finalize = fail_on_finalize
        self.aborted = False

    @property
    def n_chunks(self):
        return len(self.chunks)

    def on_chunk(self, data):
        self.chunks.append(data)

    def finalize(self):
        if self.fail_on_finalize:
            raise CaptureFailure("encoder exploded")
        return b"|".join(self.chunks)

    def abort(self):
        self.aborted = True


class FakeSink:
    def __init__(self, fail_on_arm=False, fail_on_finalize=False):
        self.fail_on_arm = fail_on_arm
        self.fail_on_finalize = fail_on_finalize
        self.sessions = []

    def arm(self, play, frame_duration_ms=100):
        if self.fail_on_arm:
            raise CaptureFailure("sink busy")
        session = FakeSession(f"play_{play.game_id}_{play.play_id}.gif", self.fail_on_finalize)
        self.sessions.append(session)
        return session


@pytest.fixture
def catalog(make_play):
    return PlayCatalog([
        make_play("1", "10", n_frames=4),
        make_play("1", "20", n_frames=3),
        make_play("2", "5", n_frames=2),
    ])


@pytest.fixture
def rig(catalog):
    renderer, scheduler, sink, exports = FakeRenderer(), ManualScheduler(), FakeSink(), []
    controller = PlaybackController(
        catalog,
        renderer=renderer,
        scheduler=scheduler,
        sink=sink,
        on_export=lambda name, blob: exports.append((name, blob)),
        verbose=False,
    )
    return controller, renderer, scheduler, sink, exports


def test_starts_on_first_game_first_frame(rig):
    controller, renderer, scheduler, _, _ = rig

    assert controller.state.game_id == "1"
    assert controller.current_play.play_id == "10"
    assert controller.current_frame.frame_id == 1.0
    assert renderer.drawn == [(("1", "10"), 0)]
    assert not scheduler.running


def test_play_runs_timer_and_stops_on_last_frame(rig):
    controller, renderer, scheduler, _, _ = rig

    controller.play()
    assert scheduler.running
    assert scheduler.interval_ms == 100

    fired = scheduler.run_until_stopped()

    assert fired == 3
    assert controller.state.frame_index == 3
    assert controller.state.status is PlaybackStatus.PAUSED
    assert not scheduler.running
    assert [i for _, i in renderer.drawn] == [0, 1, 2, 3]


def test_pause_stops_timer(rig):
    controller, _, scheduler, _, _ = rig

    controller.play()
    scheduler.advance(1)
    controller.pause()

    assert not scheduler.running
    assert scheduler.advance(5) == 0
    assert controller.state.frame_index == 1


def test_speed_change_applies_to_running_timer(rig):
    controller, _, scheduler, _, _ = rig

    controller.play()
    controller.set_speed(200)
    assert scheduler.interval_ms == 200

    controller.set_speed(10_000)
    assert controller.state.period_ms == MAX_PERIOD_MS
    assert scheduler.interval_ms == MAX_PERIOD_MS


def test_seek_renders_clamped_frame(rig):
    controller, renderer, _, _, _ = rig

    controller.seek(99)

    assert controller.state.frame_index == 3
    assert renderer.drawn[-1] == (("1", "10"), 3)


def test_next_and_previous_play_land_on_frame_zero(rig):
    controller, renderer, _, _, _ = rig

    controller.seek(2)
    controller.next_play()
    assert controller.current_play.play_id == "20"
    assert controller.state.frame_index == 0

    controller.next_play()  # already on the last play of game 1
    assert controller.current_play.play_id == "20"

    controller.previous_play()
    assert controller.current_play.play_id == "10"
    assert renderer.drawn[-1] == (("1", "10"), 0)


def test_select_game_switches_plays(rig):
    controller, renderer, scheduler, _, _ = rig

    controller.play()
    controller.select_game("2")

    assert controller.state.game_id == "2"
    assert [p.play_id for p in controller.state.plays] == ["5"]
    assert controller.state.frame_index == 0
    assert not scheduler.running
    assert renderer.drawn[-1] == (("2", "5"), 0)


def test_recording_captures_every_frame_and_exports_once(rig):
    controller, renderer, scheduler, sink, exports = rig
    controller.seek(2)

    controller.start_recording()
    assert controller.is_recording
    assert controller.state.frame_index == 0

    fired = scheduler.run_until_stopped()

    assert fired == 3  # k - 1 ticks for k = 4 frames
    assert not controller.is_recording
    assert controller.state.status is PlaybackStatus.PAUSED
    session = sink.sessions[0]
    assert session.chunks == [b"frame-0", b"frame-1", b"frame-2", b"frame-3"]
    assert exports == [("play_1_10.gif", b"frame-0|frame-1|frame-2|frame-3")]
    assert controller.last_export == exports[0]


def test_controls_are_locked_while_recording(rig):
    controller, _, scheduler, _, _ = rig

    controller.start_recording()
    scheduler.advance(1)
    for command in (controller.pause, controller.toggle, controller.reset,
                    controller.next_play, controller.previous_play):
        command()
    controller.seek(0)
    controller.set_speed(300)
    controller.select_game("2")

    assert controller.is_recording
    assert controller.state.frame_index == 1
    assert controller.state.period_ms == 100
    assert controller.state.game_id == "1"
    assert scheduler.running


def test_stop_recording_finalizes_partial_capture(rig):
    controller, _, scheduler, sink, exports = rig

    controller.start_recording()
    scheduler.advance(1)
    controller.stop_recording()
    controller.stop_recording()

    assert not scheduler.running
    assert len(sink.sessions) == 1
    assert exports == [("play_1_10.gif", b"frame-0|frame-1")]


def test_single_frame_play_records_and_stops_immediately(make_play):
    sink, exports, scheduler = FakeSink(), [], ManualScheduler()
    controller = PlaybackController(
        PlayCatalog([make_play(n_frames=1)]),
        renderer=FakeRenderer(),
        scheduler=scheduler,
        sink=sink,
        on_export=lambda name, blob: exports.append(name),
        verbose=False,
    )

    controller.start_recording()

    assert not controller.is_recording
    assert controller.state.status is PlaybackStatus.PAUSED
    assert not scheduler.running
    assert scheduler.run_until_stopped() == 0
    assert sink.sessions[0].chunks == [b"frame-0"]
    assert exports == ["play_1_10.gif"]


def test_single_frame_arm_failure_exports_nothing(make_play):
    exports = []
    controller = PlaybackController(
        PlayCatalog([make_play(n_frames=1)]),
        renderer=FakeRenderer(),
        scheduler=ManualScheduler(),
        sink=FakeSink(fail_on_arm=True),
        on_export=lambda name, blob: exports.append(name),
        verbose=False,
    )

    controller.start_recording()

    assert exports == []
    assert controller.capture_error == "sink busy"
    assert not controller.is_recording


def test_arm_failure_rolls_back_to_paused(catalog):
    scheduler = ManualScheduler()
    controller = PlaybackController(
        catalog,
        renderer=FakeRenderer(),
        scheduler=scheduler,
        sink=FakeSink(fail_on_arm=True),
        verbose=False,
    )
    controller.seek(2)

    controller.start_recording()

    assert not controller.is_recording
    assert controller.state.status is PlaybackStatus.PAUSED
    assert controller.state.frame_index == 2
    assert controller.capture_error == "sink busy"
    assert not scheduler.running


def test_missing_sink_refuses_recording(catalog):
    controller = PlaybackController(catalog, scheduler=ManualScheduler(), verbose=False)

    controller.start_recording()

    assert not controller.is_recording
    assert controller.capture_error


def test_finalize_failure_is_reported_not_raised(catalog):
    exports = []
    scheduler = ManualScheduler()
    controller = PlaybackController(
        catalog,
        renderer=FakeRenderer(),
        scheduler=scheduler,
        sink=FakeSink(fail_on_finalize=True),
        on_export=lambda name, blob: exports.append(name),
        verbose=False,
    )

    controller.start_recording()
    scheduler.run_until_stopped()

    assert exports == []
    assert controller.capture_error == "encoder exploded"
    assert not controller.is_recording


def test_listeners_see_every_state(rig):
    controller, _, scheduler, _, _ = rig
    seen = []
    controller.subscribe(seen.append)

    controller.play()
    scheduler.run_until_stopped()

    assert [s.frame_index for s in seen] == [0, 1, 2, 3]
    assert seen[-1].status is PlaybackStatus.PAUSED


def test_empty_catalog_is_inert():
    renderer = FakeRenderer()
    controller = PlaybackController(PlayCatalog([]), renderer=renderer,
                                    scheduler=ManualScheduler(), verbose=False)

    controller.play()
    controller.start_recording()

    assert controller.current_play is None
    assert controller.current_frame is None
    assert renderer.drawn == []
