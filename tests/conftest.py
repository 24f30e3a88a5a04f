"""Shared fixtures for the separation viewer test suite."""
from __future__ import annotations

import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from utils.play_models import Frame, Play, PlayerRole, PlayerSnapshot, PlayKey


def _as_text_table(records: list[dict]) -> pd.DataFrame:
    """Mimic data_loader output: every field is a string."""
    df = pd.DataFrame(records)
    return df.astype(object).fillna("").astype(str)


@pytest.fixture
def make_table():
    """Build an all-text tracking table from a list of dict rows."""
    return _as_text_table


@pytest.fixture
def empty_table() -> pd.DataFrame:
    return pd.DataFrame()


@pytest.fixture
def make_play():
    """Build a Play with `n_frames` simple frames (WR at x=i, defender 3 yd away)."""

    def _make(game_id: str = "1", play_id: str = "10", n_frames: int = 5) -> Play:
        frames = []
        for i in range(n_frames):
            wr = PlayerSnapshot(x=10.0 + i, y=20.0, role=PlayerRole.TARGETED_RECEIVER,
                                role_label="Targeted Receiver", name="Test Receiver", jersey="11")
            db = PlayerSnapshot(x=10.0 + i, y=23.0, role=PlayerRole.DEFENSIVE_COVERAGE,
                                role_label="Defensive Coverage", side="Defense")
            frames.append(Frame(frame_id=float(i + 1), players=(wr, db), separation=3.0))
        return Play(
            key=PlayKey(game_id, play_id),
            description=f"Play {play_id}",
            wr_name="Test Receiver",
            wr_jersey="11",
            frames=tuple(frames),
        )

    return _make


@pytest.fixture
def sample_input(make_table) -> pd.DataFrame:
    """Two plays in game 1 and one in game 2, with WR / defenders / passer / ball."""
    rows = []
    for game_id, play_id in [("1", "10"), ("1", "20"), ("2", "5")]:
        for frame_id in (1, 2, 3):
            rows += [
                dict(game_id=game_id, play_id=play_id, frame_id=frame_id, nfl_id="100",
                     player_name="Wide Out", player_role="Targeted Receiver",
                     player_side="Offense", player_position="WR", jersey_number="81",
                     x=50 + frame_id, y=20, s=5.5, a=1.0, dir=90, o=90),
                dict(game_id=game_id, play_id=play_id, frame_id=frame_id, nfl_id="200",
                     player_name="Cover Corner", player_role="Defensive Coverage",
                     player_side="Defense", player_position="CB", jersey_number="24",
                     x=50 + frame_id, y=25, s=5.0, a=1.0, dir=90, o=270),
                dict(game_id=game_id, play_id=play_id, frame_id=frame_id, nfl_id="300",
                     player_name="Quarter Back", player_role="Passer",
                     player_side="Offense", player_position="QB", jersey_number="12",
                     x=40, y=26, s=0.5, a=0.1, dir=0, o=90),
                dict(game_id=game_id, play_id=play_id, frame_id=frame_id, nfl_id="ball",
                     display_name="football", x=45, y=26),
            ]
    return make_table(rows)


@pytest.fixture
def sample_supp(make_table) -> pd.DataFrame:
    return make_table([
        dict(game_id="1", play_id="10", route_of_targeted_receiver="SLANT", pass_result="C",
             down="3", quarter="2", yards_to_go="7", yards_gained="12", pass_length="9",
             targeted_yard_line="35"),
        dict(game_id="1", play_id="20", route_of_targeted_receiver="GO", pass_result="I",
             down="1", quarter="1", yards_to_go="10", yards_gained="0", pass_length="40",
             targeted_yard_line="80"),
    ])
