#!/usr/bin/env python3
# playback/state.py
"""
Playback state machine for the play viewer.

All viewer-visible playback state (selected game, play index, frame index,
speed, recording flag) lives in one immutable PlaybackState. Every control
is an event, and `transition(state, event)` returns the next state without
side effects, so the whole machine can be exercised with no figure, timer,
or video sink attached.

States:
    IDLE     nothing loaded yet / never started
    PLAYING  frame index advances on each Tick
    PAUSED   frame index frozen

`recording` is a flag layered on PLAYING. While it is set, only Tick and
StopRecording are honoured. A recording stops on the tick that reaches the
last frame, so a one-frame play never sets the flag at all. Scrubbing (Seek) is instantaneous: it moves the
frame index and leaves the status alone.

Invariant: 0 <= frame_index <= len(frames) - 1 for the current play, and any
change of play or game lands on frame 0.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple, Union

from utils.play_models import Play


DEFAULT_PERIOD_MS = 100
MIN_PERIOD_MS = 50
MAX_PERIOD_MS = 300


class PlaybackStatus(Enum):
    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"


# ---------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class StartPlayback:
    """Start advancing frames."""


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class TogglePlay:
    pass


@dataclass(frozen=True)
class Reset:
    """Back to frame 0, paused."""


@dataclass(frozen=True)
class Seek:
    frame_index: int


@dataclass(frozen=True)
class SelectGame:
    game_id: str
    plays: Tuple[Play, ...]


@dataclass(frozen=True)
class NextPlay:
    pass


@dataclass(frozen=True)
class PreviousPlay:
    pass


@dataclass(frozen=True)
class SetSpeed:
    period_ms: int


@dataclass(frozen=True)
class StartRecording:
    pass


@dataclass(frozen=True)
class StopRecording:
    pass


@dataclass(frozen=True)
class Tick:
    """One timer period elapsed."""


Event = Union[
    StartPlayback, Pause, TogglePlay, Reset, Seek, SelectGame, NextPlay,
    PreviousPlay, SetSpeed, StartRecording, StopRecording, Tick,
]

# honoured while a recording is in progress
_RECORDING_EVENTS = (Tick, StopRecording)


# ---------------------------------------------------------------------
# State
# ---------------------------------------------------------------------

@dataclass(frozen=True)
class PlaybackState:
    game_id: Optional[str] = None
    plays: Tuple[Play, ...] = field(default_factory=tuple)
    play_index: int = 0
    frame_index: int = 0
    status: PlaybackStatus = PlaybackStatus.IDLE
    period_ms: int = DEFAULT_PERIOD_MS
    recording: bool = False

    @property
    def current_play(self) -> Optional[Play]:
        if 0 <= self.play_index < len(self.plays):
            return self.plays[self.play_index]
        return None

    @property
    def last_frame_index(self) -> int:
        play = self.current_play
        return play.last_frame_index if play is not None else 0

    @property
    def at_end(self) -> bool:
        return self.frame_index >= self.last_frame_index

    @property
    def is_playing(self) -> bool:
        return self.status is PlaybackStatus.PLAYING

    @property
    def playback_rate(self) -> float:
        """Speed multiplier shown to the viewer (100 ms per frame = 10x)."""
        return 1000.0 / self.period_ms


def clamp_period(period_ms: int) -> int:
    return max(MIN_PERIOD_MS, min(MAX_PERIOD_MS, int(period_ms)))


# ---------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------

def can_start_recording(state: PlaybackState) -> bool:
    """A recording may start from IDLE / PAUSED once a play is loaded."""
    return not state.is_playing and not state.recording and state.current_play is not None


def _paused_at_start(state: PlaybackState, **changes) -> PlaybackState:
    return replace(state, frame_index=0, status=PlaybackStatus.PAUSED, **changes)


def _tick(state: PlaybackState) -> PlaybackState:
    if not state.is_playing or state.current_play is None:
        return state
    nxt = min(state.frame_index + 1, state.last_frame_index)
    if nxt >= state.last_frame_index:
        # auto-stop at the final frame (never wraps); ends a recording too
        return replace(state, frame_index=nxt, status=PlaybackStatus.PAUSED, recording=False)
    return replace(state, frame_index=nxt)


def _play(state: PlaybackState) -> PlaybackState:
    if state.is_playing or state.current_play is None or state.at_end:
        return state
    return replace(state, status=PlaybackStatus.PLAYING)


def _pause(state: PlaybackState) -> PlaybackState:
    if not state.is_playing:
        return state
    return replace(state, status=PlaybackStatus.PAUSED)


def transition(state: PlaybackState, event: Event) -> PlaybackState:
    """
    Apply one event to a playback state and return the next state.

    Invalid or disabled events return `state` unchanged rather than raising;
    only an unknown event type is an error.
    """
    if state.recording and not isinstance(event, _RECORDING_EVENTS):
        return state

    if isinstance(event, Tick):
        return _tick(state)

    if isinstance(event, StartPlayback):
        return _play(state)

    if isinstance(event, Pause):
        return _pause(state)

    if isinstance(event, TogglePlay):
        return _pause(state) if state.is_playing else _play(state)

    if isinstance(event, Reset):
        return _paused_at_start(state)

    if isinstance(event, Seek):
        if state.current_play is None:
            return state
        idx = max(0, min(int(event.frame_index), state.last_frame_index))
        return replace(state, frame_index=idx)

    if isinstance(event, SelectGame):
        return _paused_at_start(
            state,
            game_id=event.game_id,
            plays=tuple(event.plays),
            play_index=0,
        )

    if isinstance(event, NextPlay):
        if state.play_index >= len(state.plays) - 1:
            return state
        return _paused_at_start(state, play_index=state.play_index + 1)

    if isinstance(event, PreviousPlay):
        if state.play_index <= 0:
            return state
        return _paused_at_start(state, play_index=state.play_index - 1)

    if isinstance(event, SetSpeed):
        return replace(state, period_ms=clamp_period(event.period_ms))

    if isinstance(event, StartRecording):
        if not can_start_recording(state):
            return state
        if state.last_frame_index == 0:
            # a one-frame play is already on its last frame: capture it and stop
            return _paused_at_start(state, recording=False)
        return replace(
            state,
            frame_index=0,
            status=PlaybackStatus.PLAYING,
            recording=True,
        )

    if isinstance(event, StopRecording):
        if not state.recording:
            return state
        return replace(state, status=PlaybackStatus.PAUSED, recording=False)

    raise TypeError(f"Unknown playback event: {event!r}")
