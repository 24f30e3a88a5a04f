# metrics/separation_metric.py
"""
Separation Metric

Per-frame separation between the targeted receiver and the nearest player
in defensive coverage, plus a few play-level summaries built on top of it.

Pipeline overview:
    1. `frame_separation`:
        - WR = first "Targeted Receiver" snapshot of the frame
        - defenders = every "Defensive Coverage" snapshot of the frame
        - separation = min Euclidean distance WR → defender (yards), else 0
    2. `closest_defender`:
        - which defender that distance is measured to (for the viewer's
          dashed separation line)
    3. `separation_gain`:
        - separation at a frame relative to the play's first frame
    4. `play_separation_summary`:
        - one row per play (initial / final / max / min / gain) and an
          optional CSV write
"""

from __future__ import annotations
from pathlib import Path
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from utils.play_models import Frame, Play, PlayerRole, PlayerSnapshot


# ---------- per-frame computation ----------

def _receiver_and_defenders(
    players: Sequence[PlayerSnapshot],
) -> Tuple[Optional[PlayerSnapshot], list[PlayerSnapshot]]:
    wr = next((p for p in players if p.role is PlayerRole.TARGETED_RECEIVER), None)
    defenders = [p for p in players if p.role is PlayerRole.DEFENSIVE_COVERAGE]
    return wr, defenders


def _distances(wr: PlayerSnapshot, defenders: Sequence[PlayerSnapshot]) -> np.ndarray:
    dx = np.fromiter((d.x for d in defenders), dtype=float, count=len(defenders)) - wr.x
    dy = np.fromiter((d.y for d in defenders), dtype=float, count=len(defenders)) - wr.y
    return np.hypot(dx, dy)


def frame_separation(players: Sequence[PlayerSnapshot]) -> float:
    """
    Distance (yards) from the targeted receiver to the closest coverage defender.

    Returns 0.0 when the frame has no targeted receiver or no defender in
    coverage. Duplicate targeted receivers: the first one is used.
    """
    wr, defenders = _receiver_and_defenders(players)
    if wr is None or not defenders:
        return 0.0
    return float(_distances(wr, defenders).min())


def closest_defender(frame: Frame) -> Tuple[Optional[PlayerSnapshot], float]:
    """
    Return (defender, distance) for the coverage defender nearest the target.

    (None, 0.0) when the separation is undefined for this frame.
    """
    wr, defenders = _receiver_and_defenders(frame.players)
    if wr is None or not defenders:
        return None, 0.0
    dists = _distances(wr, defenders)
    i = int(np.argmin(dists))
    return defenders[i], float(dists[i])


# ---------- play-level helpers ----------

def separation_gain(play: Play, frame_index: int) -> float:
    """Separation at `frame_index` minus separation at the first frame."""
    if not play.frames or not 0 <= frame_index < len(play.frames):
        return 0.0
    return play.frames[frame_index].separation - play.frames[0].separation


def play_separation_summary(
    plays: Iterable[Play],
    out_csv: str | Path | None = None,
) -> pd.DataFrame:
    """
    Build a play-level separation table (one row per play).

    Columns:
        game_id, play_id, description, pass_result, wr_name, n_frames,
        initial_sep, final_sep, max_sep, min_sep, sep_gain

    Args:
        plays: Reconstructed plays (e.g. a PlayCatalog).
        out_csv: If given, the table is also written there.

    Returns:
        DataFrame in play order.
    """
    rows = []
    for play in plays:
        seps = np.array([f.separation for f in play.frames], dtype=float)
        rows.append({
            "game_id": play.game_id,
            "play_id": play.play_id,
            "description": play.description,
            "pass_result": play.pass_result,
            "wr_name": play.wr_name,
            "n_frames": len(play.frames),
            "initial_sep": float(seps[0]) if seps.size else 0.0,
            "final_sep": float(seps[-1]) if seps.size else 0.0,
            "max_sep": float(seps.max()) if seps.size else 0.0,
            "min_sep": float(seps.min()) if seps.size else 0.0,
            "sep_gain": float(seps[-1] - seps[0]) if seps.size else 0.0,
        })

    cols = [
        "game_id", "play_id", "description", "pass_result", "wr_name",
        "n_frames", "initial_sep", "final_sep", "max_sep", "min_sep", "sep_gain",
    ]
    summary = pd.DataFrame(rows, columns=cols)

    if out_csv is not None:
        out_path = Path(out_csv)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        summary.to_csv(out_path, index=False)
        print(f"💾 Saved separation summary → {out_path}")

    return summary
