#!/usr/bin/env python3
# playback/controller.py
"""
Playback controller: runs the pure state machine and its side effects.

`PlaybackController.dispatch(event)` computes the next PlaybackState with
`playback.state.transition` and then reconciles the outside world with the
change:

    - timer:     started when entering PLAYING, stopped when leaving it,
                 re-periodised when the speed changes (next tick onwards)
    - render:    the renderer is called whenever the visible (play, frame)
                 changes; out-of-range frames are skipped
    - recording: StartRecording arms the export sink, every render while
                 recording is piped into the capture, and the capture is
                 finalized the moment `recording` clears (auto-stop on the
                 final frame, or an explicit StopRecording); a one-frame
                 play is captured and finalized within StartRecording

A CaptureFailure from the sink never escapes: playback rolls back to PAUSED
with recording cleared and the message is kept in `capture_error`.

Typical wiring:

    controller = PlaybackController(catalog, renderer=FieldRenderer(),
                                    scheduler=ManualScheduler(),
                                    sink=GifExportSink(),
                                    on_export=lambda name, blob: ...)
    controller.play()
"""

from __future__ import annotations

from dataclasses import replace
from typing import Callable, Optional, Protocol

from playback.state import (
    DEFAULT_PERIOD_MS,
    Event,
    NextPlay,
    Pause,
    PlaybackState,
    PlaybackStatus,
    PreviousPlay,
    Reset,
    Seek,
    SelectGame,
    SetSpeed,
    StartPlayback,
    StartRecording,
    StopRecording,
    Tick,
    TogglePlay,
    can_start_recording,
    transition,
)
from utils.play_catalog import PlayCatalog
from utils.play_models import Frame, Play
from viz.video_export import CaptureFailure, CaptureSession


class Renderer(Protocol):
    def draw(self, play: Play, frame: Frame, frame_index: int) -> None: ...

    def snapshot(self) -> bytes: ...


class Scheduler(Protocol):
    running: bool

    def start(self, interval_ms: int, callback: Callable[[], None]) -> None: ...

    def stop(self) -> None: ...

    def set_interval(self, interval_ms: int) -> None: ...


class ExportSink(Protocol):
    def arm(self, play: Play, frame_duration_ms: int = ...) -> CaptureSession: ...


ExportCallback = Callable[[str, bytes], None]
StateListener = Callable[[PlaybackState], None]


class PlaybackController:
    """
    Single owner of playback state for one viewer session.

    Args:
        catalog: Loaded PlayCatalog.
        renderer: Paints (play, frame, index); may be None for headless use.
        scheduler: Repeating timer driving Tick events.
        sink: Video export sink used by start_recording(); optional.
        on_export: Called with (filename, blob) when a recording finishes.
        period_ms: Initial playback period per frame.
        verbose: Print recording status lines.
    """

    def __init__(
        self,
        catalog: PlayCatalog,
        *,
        renderer: Optional[Renderer] = None,
        scheduler: Scheduler,
        sink: Optional[ExportSink] = None,
        on_export: Optional[ExportCallback] = None,
        period_ms: int = DEFAULT_PERIOD_MS,
        verbose: bool = True,
    ):
        self.catalog = catalog
        self.renderer = renderer
        self.scheduler = scheduler
        self.sink = sink
        self.on_export = on_export
        self.verbose = verbose

        self.capture_error: Optional[str] = None
        self.last_export: Optional[tuple[str, bytes]] = None
        self._capture: Optional[CaptureSession] = None
        self._listeners: list[StateListener] = []

        self.state = transition(PlaybackState(), SetSpeed(period_ms))
        games = catalog.get_games()
        if games:
            self.select_game(games[0])

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> None:
        """Call `listener(state)` after every dispatched event."""
        self._listeners.append(listener)

    @property
    def current_play(self) -> Optional[Play]:
        return self.state.current_play

    @property
    def current_frame(self) -> Optional[Frame]:
        play = self.state.current_play
        if play is None or not 0 <= self.state.frame_index < len(play.frames):
            return None
        return play.frames[self.state.frame_index]

    @property
    def is_recording(self) -> bool:
        return self.state.recording

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def play(self) -> None:
        self.dispatch(StartPlayback())

    def pause(self) -> None:
        self.dispatch(Pause())

    def toggle(self) -> None:
        self.dispatch(TogglePlay())

    def reset(self) -> None:
        self.dispatch(Reset())

    def seek(self, frame_index: int) -> None:
        self.dispatch(Seek(frame_index))

    def next_play(self) -> None:
        self.dispatch(NextPlay())

    def previous_play(self) -> None:
        self.dispatch(PreviousPlay())

    def set_speed(self, period_ms: int) -> None:
        self.dispatch(SetSpeed(period_ms))

    def select_game(self, game_id: str) -> None:
        plays = tuple(self.catalog.get_plays_for_game(game_id))
        self.dispatch(SelectGame(game_id, plays))

    def start_recording(self) -> None:
        self.dispatch(StartRecording())

    def stop_recording(self) -> None:
        self.dispatch(StopRecording())

    def tick(self) -> None:
        self.dispatch(Tick())

    # ------------------------------------------------------------------
    # Core loop
    # ------------------------------------------------------------------

    def dispatch(self, event: Event) -> PlaybackState:
        prev = self.state
        nxt = transition(prev, event)

        starting = isinstance(event, StartRecording) and can_start_recording(prev)
        if starting:
            nxt = self._arm_capture(prev, nxt)

        self.state = nxt
        self._sync_timer(prev, nxt)

        view_changed = (
            prev.plays is not nxt.plays
            or prev.play_index != nxt.play_index
            or prev.frame_index != nxt.frame_index
        )
        if view_changed or (starting and self._capture is not None):
            self.render()

        # one-frame plays finish in the same dispatch that armed them
        if self._capture is not None and not self.state.recording:
            self._finish_capture()

        for listener in self._listeners:
            listener(self.state)
        return self.state

    def render(self) -> None:
        """Paint the current frame; pipe it into the capture while recording."""
        play, frame = self.current_play, self.current_frame
        if self.renderer is None or play is None or frame is None:
            return
        self.renderer.draw(play, frame, self.state.frame_index)

        # the capture outlives the recording flag by one render so the
        # final frame lands in the export before it is finalized
        if self._capture is not None:
            try:
                self._capture.on_chunk(self.renderer.snapshot())
            except CaptureFailure as exc:
                self._rollback_capture(exc)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _sync_timer(self, prev: PlaybackState, nxt: PlaybackState) -> None:
        if nxt.is_playing and not self.scheduler.running:
            self.scheduler.start(nxt.period_ms, self.tick)
        elif not nxt.is_playing and self.scheduler.running:
            self.scheduler.stop()
        elif nxt.is_playing and prev.period_ms != nxt.period_ms:
            self.scheduler.set_interval(nxt.period_ms)

    def _arm_capture(self, prev: PlaybackState, nxt: PlaybackState) -> PlaybackState:
        if self.sink is None:
            self._report_capture_error("No export sink configured")
            return replace(prev, status=PlaybackStatus.PAUSED, recording=False)
        try:
            self._capture = self.sink.arm(nxt.current_play, frame_duration_ms=nxt.period_ms)
        except CaptureFailure as exc:
            self._capture = None
            self._report_capture_error(str(exc))
            return replace(prev, status=PlaybackStatus.PAUSED, recording=False)

        self.capture_error = None
        if self.verbose:
            play = nxt.current_play
            print(f"⏺️  Recording game={play.game_id}, play={play.play_id}...")
        return nxt

    def _finish_capture(self) -> None:
        capture, self._capture = self._capture, None
        if capture is None:
            return
        try:
            blob = capture.finalize()
        except CaptureFailure as exc:
            self._report_capture_error(str(exc))
            return

        self.last_export = (capture.filename, blob)
        if self.verbose:
            print(f"  ✓ Captured {capture.n_chunks} frame(s) → {capture.filename}")
        if self.on_export is not None:
            self.on_export(capture.filename, blob)

    def _rollback_capture(self, exc: CaptureFailure) -> None:
        capture, self._capture = self._capture, None
        if capture is not None:
            capture.abort()
        self._report_capture_error(str(exc))
        self.state = replace(self.state, status=PlaybackStatus.PAUSED, recording=False)
        if self.scheduler.running:
            self.scheduler.stop()

    def _report_capture_error(self, message: str) -> None:
        self.capture_error = message
        print(f"[warn] recording failed: {message}")
