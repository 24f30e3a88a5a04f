#!/usr/bin/env python3
"""
utils/data_preprocessor.py

Clean and lightly enrich raw tracking records before play assembly.

Responsibilities:
    - Strip whitespace from every text field (ids stay opaque strings).
    - Coerce numeric tracking fields, defaulting malformed values to 0.
    - Tag each row with its source table (input / output / supplementary).
    - Optionally copy player attributes from INPUT onto OUTPUT rows.

Row- and field-level anomalies never raise here: a bad number becomes 0,
a missing text field becomes "". Only whole-source failures (handled in
data_loader) stop the pipeline.

Public API:
    - basic_clean(...)
    - attach_player_attributes(...)
"""

from __future__ import annotations

from typing import Any, Tuple

import numpy as np
import pandas as pd


# ---------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------

KEY_COLS = ["game_id", "play_id"]

# Tracking fields parsed as floats (malformed → 0.0)
NUMERIC_COLS = [
    "frame_id",
    "x",
    "y",
    "s",
    "a",
    "dir",
    "o",
]

# Player attributes only the INPUT table reliably carries
PLAYER_ATTR_COLS = [
    "player_name",
    "display_name",
    "player_position",
    "player_side",
    "player_role",
    "jersey_number",
]

SOURCE_INPUT = "input"
SOURCE_OUTPUT = "output"
SOURCE_SUPP = "supplementary"


# ---------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------

def to_number(series: pd.Series) -> pd.Series:
    """Parse a text column to float, mapping blanks / junk / inf to 0.0."""
    vals = pd.to_numeric(series, errors="coerce").astype(float)
    return vals.where(np.isfinite(vals), 0.0)


def _normalize_dtypes(df: pd.DataFrame, source: str) -> pd.DataFrame:
    """
    Strip text fields, parse numeric tracking fields, add the source tag.

    Safe to apply to input, output, and supplementary tables; columns that
    aren't present are simply skipped.
    """
    d = df.copy()

    for c in d.columns:
        d[c] = d[c].fillna("").astype(str).str.strip()

    for c in KEY_COLS:
        if c not in d.columns:
            d[c] = ""

    if source != SOURCE_SUPP:
        for c in NUMERIC_COLS:
            if c in d.columns:
                d[c] = to_number(d[c])
            else:
                d[c] = 0.0

    d["source"] = source
    return d


def basic_clean(
    inp: pd.DataFrame,
    out: pd.DataFrame,
    supp: pd.DataFrame,
) -> Tuple[pd.DataFrame, pd.DataFrame, pd.DataFrame]:
    """
    Apply light dtype / string normalization to the three core tables.

    Returns:
        (inp_clean, out_clean, supp_clean)
    """
    return (
        _normalize_dtypes(inp, SOURCE_INPUT),
        _normalize_dtypes(out, SOURCE_OUTPUT),
        _normalize_dtypes(supp, SOURCE_SUPP),
    )


def drop_keyless(df: pd.DataFrame) -> pd.DataFrame:
    """Drop rows whose game_id or play_id is blank (they can't be joined)."""
    mask = df["game_id"].ne("") & df["play_id"].ne("")
    return df.loc[mask]


def _first_nonblank(series: pd.Series) -> Any:
    """
    Aggregate helper: return the mode of the non-blank values, else "".

    Used for player attributes when collapsing from many frames → one row
    per (game_id, play_id, nfl_id).
    """
    s = series[series.astype(str).ne("")]
    if s.empty:
        return ""
    m = s.mode()
    return m.iloc[0] if not m.empty else s.iloc[0]


# ---------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------

def attach_player_attributes(inp: pd.DataFrame, out: pd.DataFrame) -> pd.DataFrame:
    """
    Copy player attributes from INPUT onto OUTPUT rows.

    Output files usually only carry ids + x/y, so without this every output
    row classifies as the ball. Attributes are matched on
    (game_id, play_id, nfl_id); values already present on an output row win.

    Args:
        inp: Cleaned input tracking table.
        out: Cleaned output tracking table.

    Returns:
        A copy of `out` with PLAYER_ATTR_COLS filled where possible.
    """
    key_cols = KEY_COLS + ["nfl_id"]
    attr_cols = [c for c in PLAYER_ATTR_COLS if c in inp.columns]
    if out.empty or not attr_cols or "nfl_id" not in inp.columns or "nfl_id" not in out.columns:
        return out

    attrs = (
        inp[key_cols + attr_cols]
        .groupby(key_cols, as_index=False, sort=False)
        .agg({c: _first_nonblank for c in attr_cols})
    )

    enriched = out.merge(attrs, on=key_cols, how="left", suffixes=("", "_inp"))
    for c in attr_cols:
        inherited = enriched.pop(f"{c}_inp") if f"{c}_inp" in enriched.columns else None
        if inherited is None:
            # column only existed on the input side
            enriched[c] = enriched[c].fillna("")
            continue
        inherited = inherited.fillna("")
        enriched[c] = enriched[c].where(enriched[c].ne(""), inherited)

    enriched.index = out.index
    return enriched
