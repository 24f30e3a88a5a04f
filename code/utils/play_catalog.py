#!/usr/bin/env python3
# utils/play_catalog.py
"""
Read-only catalog of reconstructed plays.

The catalog is built once from an AssemblyResult and never mutated; any
change to the underlying data means reloading and reassembling the sources.

Public API:
    - PlayCatalog
    - build_catalog(...)
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Optional

import pandas as pd

from metrics.separation_metric import play_separation_summary
from utils.data_loader import INPUT_PATH, OUTPUT_PATH, SUPP_PATH, Source, load_sources
from utils.play_assembler import assemble_plays
from utils.play_models import Play, PlayKey


class PlayCatalog:
    """Ordered plays (assembly order) plus the games they belong to."""

    def __init__(self, plays: Iterable[Play], games: Optional[Iterable[str]] = None):
        self._plays: tuple[Play, ...] = tuple(plays)
        self._by_key: dict[PlayKey, Play] = {}
        for play in self._plays:
            if play.key in self._by_key:
                raise ValueError(f"Duplicate play key in catalog: {play.key}")
            self._by_key[play.key] = play

        if games is None:
            games = (p.game_id for p in self._plays)
        self._games: tuple[str, ...] = tuple(dict.fromkeys(games))

    def __len__(self) -> int:
        return len(self._plays)

    def __iter__(self) -> Iterator[Play]:
        return iter(self._plays)

    def get_games(self) -> list[str]:
        return list(self._games)

    def get_plays_for_game(self, game_id: str) -> list[Play]:
        return [p for p in self._plays if p.game_id == game_id]

    def get_play(self, key: PlayKey) -> Optional[Play]:
        return self._by_key.get(PlayKey(*key))

    def summary(self, out_csv: str | Path | None = None) -> pd.DataFrame:
        """Per-play separation summary (see metrics.separation_metric)."""
        return play_separation_summary(self._plays, out_csv=out_csv)


def build_catalog(
    input_src: Source = INPUT_PATH,
    output_src: Source = OUTPUT_PATH,
    supp_src: Source = SUPP_PATH,
    *,
    attach_attributes: bool = False,
    verbose: bool = True,
) -> PlayCatalog:
    """
    Load the three sources and assemble them into a PlayCatalog.

    Raises:
        LoadFailure if any source can't be loaded (no partial catalog).
    """
    inp, out, supp = load_sources(input_src, output_src, supp_src, verbose=verbose)
    result = assemble_plays(
        inp,
        out,
        supp,
        attach_attributes=attach_attributes,
        verbose=verbose,
    )
    return PlayCatalog(result.plays, result.games)
