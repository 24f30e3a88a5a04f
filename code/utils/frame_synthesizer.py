#!/usr/bin/env python3
# utils/frame_synthesizer.py
"""
Turn one play's merged tracking rows into an ordered list of Frames.

For each distinct frame_id (exact float equality, no snapping):

    - every row is classified as either the ball or a player snapshot,
    - player snapshots keep their row order,
    - the frame's separation is computed from that frame's own snapshots.

Row classification (first match wins):
    1. display_name == "football"   → ball
    2. nfl_id == "ball"             → ball
    3. blank / missing player_role  → ball
    4. otherwise                    → PlayerSnapshot (role verbatim, "other" if blank)

A frame holds at most one ball position; when several rows of the same
frame classify as the ball, the last one wins.

Public API:
    - is_ball_row(row)
    - build_snapshot(row)
    - synthesize_frames(rows)
"""

from __future__ import annotations

from typing import Any, Mapping

import pandas as pd

from metrics.separation_metric import frame_separation
from utils.play_models import (
    BALL_ID_TOKEN,
    BALL_TOKEN,
    BallPosition,
    Frame,
    PlayerRole,
    PlayerSnapshot,
)


def _text(row: Mapping[str, Any], col: str) -> str:
    val = row.get(col, "")
    if val is None or (isinstance(val, float) and pd.isna(val)):
        return ""
    return str(val).strip()


def _num(row: Mapping[str, Any], col: str) -> float:
    try:
        val = float(row.get(col, 0.0))
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if pd.isna(val) else val


def is_ball_row(row: Mapping[str, Any]) -> bool:
    """True when a tracking row describes the football rather than a player."""
    return (
        _text(row, "display_name") == BALL_TOKEN
        or _text(row, "nfl_id") == BALL_ID_TOKEN
        or not _text(row, "player_role")
    )


def build_snapshot(row: Mapping[str, Any]) -> PlayerSnapshot:
    """Build a PlayerSnapshot from one (cleaned) player row."""
    label = _text(row, "player_role") or "other"
    side = _text(row, "player_side")
    return PlayerSnapshot(
        x=_num(row, "x"),
        y=_num(row, "y"),
        role=PlayerRole.from_label(label, side),
        role_label=label,
        side=side,
        name=_text(row, "player_name") or _text(row, "display_name"),
        jersey=_text(row, "jersey_number") or _text(row, "jersey"),
        position=_text(row, "player_position"),
        nfl_id=_text(row, "nfl_id"),
        speed=_num(row, "s"),
        acceleration=_num(row, "a"),
        direction=_num(row, "dir"),
        orientation=_num(row, "o"),
    )


def synthesize_frames(rows: pd.DataFrame) -> list[Frame]:
    """
    Group a play's rows into Frames sorted ascending by frame_id.

    Args:
        rows: Merged input + output rows of a single play. Must carry a
            numeric `frame_id` column (see data_preprocessor.basic_clean).

    Returns:
        Frames in ascending frame_id order. Empty list for an empty play.
    """
    if rows is None or rows.empty:
        return []

    frames: list[Frame] = []
    for frame_id, df_f in rows.groupby("frame_id", sort=True):
        players: list[PlayerSnapshot] = []
        ball = None

        for row in df_f.to_dict("records"):
            if is_ball_row(row):
                ball = BallPosition(_num(row, "x"), _num(row, "y"))
            else:
                players.append(build_snapshot(row))

        frames.append(
            Frame(
                frame_id=float(frame_id),
                players=tuple(players),
                ball=ball,
                separation=frame_separation(players),
            )
        )

    return frames
