#!/usr/bin/env python3
# utils/play_models.py
"""
Immutable play / frame containers for the separation viewer.

A reconstructed play looks like:

    Play (game_id, play_id, metadata...)
      └── frames: tuple[Frame, ...]           sorted by frame_id
            ├── players: tuple[PlayerSnapshot, ...]
            ├── ball: BallPosition | None
            └── separation: float             WR → nearest coverage defender

Everything here is built once at load time by the play assembler and is
never mutated afterwards. Playback position lives in the playback state,
not on these objects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional, Tuple


FIELD_LENGTH = 120.0   # yards, end line to end line
FIELD_WIDTH = 53.3     # yards, sideline to sideline
FRAMES_PER_SECOND = 10.0

BALL_TOKEN = "football"
BALL_ID_TOKEN = "ball"

PASS_RESULT_LABELS = {
    "C": "COMPLETE",
    "I": "INCOMPLETE",
    "IN": "INTERCEPTION",
}


class PlayerRole(Enum):
    """Closed set of roles a tracked player can carry on a pass play."""

    TARGETED_RECEIVER = "Targeted Receiver"
    PASSER = "Passer"
    DEFENSIVE_COVERAGE = "Defensive Coverage"
    OTHER_OFFENSE = "Other Offense"
    OTHER_DEFENSE = "Other Defense"

    @classmethod
    def from_label(cls, label: str, side: str = "") -> "PlayerRole":
        """
        Map a raw `player_role` label onto a role.

        Unrecognised labels (e.g. "Other Route Runner", "other") fall back on
        the player's side: "Defense" → OTHER_DEFENSE, anything else →
        OTHER_OFFENSE.
        """
        role = _ROLE_ALIASES.get((label or "").strip())
        if role is not None:
            return role
        if (side or "").strip().lower() == "defense":
            return cls.OTHER_DEFENSE
        return cls.OTHER_OFFENSE


_ROLE_ALIASES = {
    "Targeted Receiver": PlayerRole.TARGETED_RECEIVER,
    "TargetedReceiver": PlayerRole.TARGETED_RECEIVER,
    "Passer": PlayerRole.PASSER,
    "Defensive Coverage": PlayerRole.DEFENSIVE_COVERAGE,
}


class PlayKey(NamedTuple):
    """Composite identifier naming one play across all three sources."""

    game_id: str
    play_id: str


class BallPosition(NamedTuple):
    x: float
    y: float


@dataclass(frozen=True)
class PlayerSnapshot:
    """One player's instantaneous state within a frame."""

    x: float
    y: float
    role: PlayerRole
    role_label: str = "other"
    side: str = ""
    name: str = ""
    jersey: str = ""
    position: str = ""
    nfl_id: str = ""
    speed: float = 0.0
    acceleration: float = 0.0
    direction: float = 0.0
    orientation: float = 0.0


@dataclass(frozen=True)
class Frame:
    """One discrete timestep of a play (frame_id is tenths of a second)."""

    frame_id: float
    players: Tuple[PlayerSnapshot, ...] = field(default_factory=tuple)
    ball: Optional[BallPosition] = None
    separation: float = 0.0

    @property
    def time_seconds(self) -> float:
        return self.frame_id / FRAMES_PER_SECOND

    @property
    def targeted_receiver(self) -> Optional[PlayerSnapshot]:
        # first match wins when the data carries duplicates
        return next(
            (p for p in self.players if p.role is PlayerRole.TARGETED_RECEIVER),
            None,
        )

    @property
    def passer(self) -> Optional[PlayerSnapshot]:
        return next((p for p in self.players if p.role is PlayerRole.PASSER), None)

    @property
    def defenders(self) -> Tuple[PlayerSnapshot, ...]:
        return tuple(p for p in self.players if p.role is PlayerRole.DEFENSIVE_COVERAGE)


@dataclass(frozen=True)
class Play:
    """A reconstructed play: denormalised context + its ordered frames."""

    key: PlayKey
    description: str
    pass_result: str = "N/A"
    down: str = ""
    quarter: str = ""
    yards_to_go: str = ""
    yards_gained: str = ""
    pass_length: str = ""
    targeted_yard_line: str = ""
    wr_name: str = "Unknown"
    wr_jersey: str = ""
    wr_position: str = "WR"
    qb_name: str = "Unknown"
    qb_jersey: str = ""
    frames: Tuple[Frame, ...] = field(default_factory=tuple)

    @property
    def game_id(self) -> str:
        return self.key.game_id

    @property
    def play_id(self) -> str:
        return self.key.play_id

    @property
    def last_frame_index(self) -> int:
        return len(self.frames) - 1

    @property
    def pass_result_label(self) -> str:
        return PASS_RESULT_LABELS.get(self.pass_result, self.pass_result)

    @property
    def down_and_distance(self) -> str:
        if self.down and self.yards_to_go:
            return f"{self.down} & {self.yards_to_go}"
        return ""
