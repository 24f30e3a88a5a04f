#!/usr/bin/env python3
"""
utils/play_assembler.py

Join the input / output / supplementary tables into reconstructed plays.

Responsibilities:
    - Clean all three tables (see data_preprocessor.basic_clean).
    - Group INPUT rows by (game_id, play_id); input defines which plays exist.
    - Attach OUTPUT rows of known plays (additive, never required).
    - Attach one SUPPLEMENTARY row per known play (orphans are dropped).
    - Merge input + output rows per play, stable-sorted by frame_id
      (input before output on ties), and hand them to the frame synthesizer.
    - Resolve targeted-receiver / passer metadata from the first frame.

Public API:
    - AssemblyResult
    - assemble_plays(...)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import pandas as pd

from utils.data_preprocessor import (
    KEY_COLS,
    NUMERIC_COLS,
    attach_player_attributes,
    basic_clean,
    drop_keyless,
)
from utils.frame_synthesizer import synthesize_frames
from utils.play_models import Frame, Play, PlayKey


# supplementary column → Play field (free-form / coded strings, "" if absent)
PLAY_CONTEXT_COLS = {
    "down": "down",
    "quarter": "quarter",
    "yards_to_go": "yards_to_go",
    "yards_gained": "yards_gained",
    "pass_length": "pass_length",
    "targeted_yard_line": "targeted_yard_line",
}


@dataclass
class AssemblyResult:
    plays: List[Play] = field(default_factory=list)
    games: List[str] = field(default_factory=list)
    summary: Dict[str, int] = field(default_factory=dict)


# ---------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------

def _key_mask(df: pd.DataFrame, keys: pd.MultiIndex) -> pd.Series:
    """Boolean mask of rows whose (game_id, play_id) is in `keys`."""
    if df.empty:
        return pd.Series(False, index=df.index)
    return pd.Series(
        pd.MultiIndex.from_frame(df[KEY_COLS]).isin(keys),
        index=df.index,
    )


def _play_context(supp: pd.DataFrame, keys: pd.MultiIndex) -> Dict[Tuple[str, str], Mapping[str, Any]]:
    """
    One context row per known play. When a play has several supplementary
    rows the last one wins.
    """
    if supp.empty:
        return {}
    known = supp.loc[_key_mask(supp, keys)]
    known = known.drop_duplicates(subset=KEY_COLS, keep="last")
    return {
        (row["game_id"], row["play_id"]): row
        for row in known.to_dict("records")
    }


def _merge_rows(inp: pd.DataFrame, out: pd.DataFrame) -> pd.DataFrame:
    """Stack input over output; blank-fill text columns only one side has."""
    merged = pd.concat([inp, out], ignore_index=True, sort=False)
    text_cols = [c for c in merged.columns if c not in NUMERIC_COLS]
    merged[text_cols] = merged[text_cols].fillna("")
    return merged


def _build_play(key: PlayKey, frames: List[Frame], info: Optional[Mapping[str, Any]]) -> Play:
    """Denormalise play context and first-frame WR / QB identity onto a Play."""
    info = info or {}
    first = frames[0]
    wr = first.targeted_receiver
    qb = first.passer

    context = {
        attr: str(info.get(col, "") or "")
        for col, attr in PLAY_CONTEXT_COLS.items()
    }
    return Play(
        key=key,
        description=info.get("route_of_targeted_receiver") or f"Play {key.play_id}",
        pass_result=info.get("pass_result") or "N/A",
        wr_name=(wr.name if wr else "") or "Unknown",
        wr_jersey=wr.jersey if wr else "",
        wr_position=(wr.position if wr else "") or "WR",
        qb_name=(qb.name if qb else "") or "Unknown",
        qb_jersey=qb.jersey if qb else "",
        frames=tuple(frames),
        **context,
    )


# ---------------------------------------------------------------------
# Top-level assembly
# ---------------------------------------------------------------------

def assemble_plays(
    inp: pd.DataFrame,
    out: pd.DataFrame,
    supp: pd.DataFrame,
    *,
    attach_attributes: bool = False,
    verbose: bool = True,
) -> AssemblyResult:
    """
    Reconstruct every play that appears in the INPUT table.

        1) Clean tables and drop rows without game_id / play_id.
        2) Keep output + supplementary rows only for plays seen in input.
        3) Merge rows per play, stable-sort by frame_id, synthesize frames.
        4) Drop plays with no frames; resolve metadata from frame 0.

    Args:
        inp:  Raw INPUT tracking table (text columns).
        out:  Raw OUTPUT tracking table (text columns).
        supp: Supplementary play-level table (text columns).
        attach_attributes: Copy player name / role / side from input onto
            output rows before classification.
        verbose: Print assembly counts.

    Returns:
        AssemblyResult(plays, games, summary)
    """
    inp, out, supp = basic_clean(inp, out, supp)
    inp, out, supp = drop_keyless(inp), drop_keyless(out), drop_keyless(supp)

    if attach_attributes:
        out = attach_player_attributes(inp, out)

    keys = pd.MultiIndex.from_frame(inp[KEY_COLS].drop_duplicates())
    out = out.loc[_key_mask(out, keys)]
    context = _play_context(supp, keys)

    games = list(dict.fromkeys(inp["game_id"]))
    merged = _merge_rows(inp, out)

    plays: List[Play] = []
    empty_plays = 0
    if not merged.empty:
        for (game_id, play_id), rows in merged.groupby(KEY_COLS, sort=False):
            rows = rows.sort_values("frame_id", kind="mergesort")
            frames = synthesize_frames(rows)
            if not frames:
                empty_plays += 1
                continue
            key = PlayKey(game_id, play_id)
            plays.append(_build_play(key, frames, context.get((game_id, play_id))))

    summary = {
        "input_rows": len(inp),
        "output_rows": len(out),
        "plays_with_context": len(context),
        "plays": len(plays),
        "empty_plays": empty_plays,
        "games": len(games),
    }

    if verbose:
        print("\n🔧 Assembling plays (input + output + supplementary)...")
        print(f"  Plays: {summary['plays']:,} across {summary['games']:,} game(s)")
        print(f"  With supplementary context: {summary['plays_with_context']:,}")
        if empty_plays:
            print(f"  [warn] dropped {empty_plays:,} play(s) with no frames")

    return AssemblyResult(plays=plays, games=games, summary=summary)
