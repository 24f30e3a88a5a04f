#!/usr/bin/env python3
# utils/data_loader.py
"""
Data loading utilities for the play separation viewer.

Responsibilities:
    - Define canonical data locations (input / output / supplementary).
    - Read each source from a local path, a URL, or a list of weekly files.
    - Handle both comma- and tab-separated CSVs via a small "sniffer".
    - Provide a simple, in-terminal progress bar while reading lots of files.
    - Fail loudly (LoadFailure) when any source can't be read: a half-loaded
      catalog is never handed to the viewer.

Every field is read as text. Identifiers (game_id, play_id, nfl_id) stay
opaque strings and numeric coercion is left to the preprocessor, which
knows which columns are numeric and what their defaults are.

Public API:
    - read_table(source) → DataFrame
    - load_sources(input_src, output_src, supp_src) → (input_df, output_df, supp_df)
"""

from __future__ import annotations

import sys
import shutil
from pathlib import Path
from typing import Sequence, Union

import pandas as pd

# ----------------------------------------------------------------------
# Default locations (relative to code/, same layout as the other scripts)
# ----------------------------------------------------------------------

DATA_DIR = Path("../data")
INPUT_PATH = DATA_DIR / "input_all.csv"
OUTPUT_PATH = DATA_DIR / "output_all.csv"
SUPP_PATH = DATA_DIR / "supplementary_data.csv"

Source = Union[str, Path, Sequence[Union[str, Path]]]


class LoadFailure(RuntimeError):
    """A tracking source could not be fetched or parsed as a table."""


# ----------------------------------------------------------------------
# Small I/O helpers
# ----------------------------------------------------------------------

def _is_url(source: Union[str, Path]) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


def _sniff_sep(path: Path, nbytes: int = 1024) -> str:
    """
    Detect whether a CSV is comma- or tab-separated by inspecting a small sample.

    Returns:
        "," or "\\t"
    """
    with open(path, "rb") as f:
        sample = f.read(nbytes)
    text = sample.decode("utf-8", errors="ignore")
    return "\t" if text.count("\t") > text.count(",") else ","


def read_table(source: Union[str, Path]) -> pd.DataFrame:
    """
    Read one delimited table as all-text columns.

    Local files get their delimiter sniffed; URLs are assumed comma-separated.
    A python-engine retry is made once for "weird" CSVs.

    Raises:
        LoadFailure if the source is missing, empty, or not parseable.
    """
    if _is_url(source):
        target, sep = source, ","
    else:
        target = Path(source)
        if not target.exists():
            raise LoadFailure(f"Tracking source not found: {target}")
        try:
            sep = _sniff_sep(target)
        except OSError as exc:
            raise LoadFailure(f"Could not read {target}: {exc}") from exc

    read_kwargs = dict(sep=sep, dtype=str, keep_default_na=False)
    try:
        try:
            df = pd.read_csv(target, low_memory=False, **read_kwargs)
        except pd.errors.ParserError:
            # Fallback to python engine for "weird" CSVs
            df = pd.read_csv(target, engine="python", **read_kwargs)
    except pd.errors.EmptyDataError as exc:
        raise LoadFailure(f"Tracking source is empty: {source}") from exc
    except (pd.errors.ParserError, UnicodeDecodeError, OSError, ValueError) as exc:
        raise LoadFailure(f"Failed to parse {source} as a table: {exc}") from exc

    df.columns = [str(c).strip() for c in df.columns]
    return df


# ----------------------------------------------------------------------
# Progress bar (simple in-place terminal bar)
# ----------------------------------------------------------------------

def _term_width(default: int = 80) -> int:
    """Best-effort terminal width detection (for nicer progress bars)."""
    try:
        return shutil.get_terminal_size().columns
    except (AttributeError, ValueError, OSError):
        return default


def _progress_bar(idx: int, total: int, *, prefix: str = "", tail: str = "") -> None:
    """
    Print an in-place progress bar of the form:

        Loading input: [====......] 3/18 input_2023_w03.csv

    Call before and after each step to update.
    """
    width = max(10, _term_width() - len(prefix) - len(tail) - 12)  # padding
    frac = 0 if total <= 0 else idx / total
    fill = int(round(width * frac))
    bar = f"[{'=' * fill}{'.' * (width - fill)}]"
    msg = f"\r{prefix} {bar} {idx}/{total} {tail}"
    sys.stdout.write(msg)
    sys.stdout.flush()
    if idx == total:
        sys.stdout.write("\n")
        sys.stdout.flush()


def _read_many(sources: Sequence[Union[str, Path]], label: str, verbose: bool) -> list[pd.DataFrame]:
    """
    Read a list of tables with a progress bar, returning list of DataFrames.
    """
    dfs: list[pd.DataFrame] = []
    total = len(sources)
    for i, src in enumerate(sources, 1):
        if verbose:
            _progress_bar(i - 1, total, prefix=label + ":")
        dfs.append(read_table(src))
        if verbose:
            _progress_bar(i, total, prefix=label + ":", tail=Path(str(src)).name)
    return dfs


def _load_source(source: Source, label: str, verbose: bool) -> pd.DataFrame:
    """
    Load a single source, which may be one table or a list of weekly tables.
    """
    if isinstance(source, (str, Path)):
        if verbose:
            print(f"{label}: {source}")
        return read_table(source)

    sources = list(source)
    if not sources:
        raise LoadFailure(f"{label}: no files given")
    dfs = _read_many(sources, label=label, verbose=verbose)
    return pd.concat(dfs, ignore_index=True)


# ----------------------------------------------------------------------
# Public API
# ----------------------------------------------------------------------

def load_sources(
    input_src: Source = INPUT_PATH,
    output_src: Source = OUTPUT_PATH,
    supp_src: Source = SUPP_PATH,
    *,
    verbose: bool = True,
):
    """
    Load the three tracking sources the viewer is built from.

    Args:
        input_src:  pre-throw tracking (path, URL, or list of weekly files)
        output_src: post-throw predicted tracking (same forms)
        supp_src:   one-row-per-play context table (same forms)
        verbose:    print progress / row counts

    Returns:
        (input_df, output_df, supp_df), all columns as text.

    Raises:
        LoadFailure if any of the three sources can't be read. Nothing is
        returned in that case; the session has no catalog.
    """
    input_df = _load_source(input_src, "Loading input", verbose)
    output_df = _load_source(output_src, "Loading output", verbose)
    supp_df = _load_source(supp_src, "Loading supplementary", verbose)

    if verbose:
        print(
            f"✅ Files loaded:\n"
            f"  Input tracking:  {len(input_df):,} rows\n"
            f"  Output tracking: {len(output_df):,} rows\n"
            f"  Supplementary:   {len(supp_df):,} rows"
        )
    return input_df, output_df, supp_df
