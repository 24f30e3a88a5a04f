#!/usr/bin/env python3
"""
Play separation viewer entrypoint.

This script runs the full viewer workflow:

1. Load the input / output / supplementary tracking tables.
2. Join them into reconstructed plays (frames + per-frame separation).
3. Build the read-only play catalog, optionally writing a separation summary.
4. Either export selected plays as GIFs head-less, or open the interactive
   viewer (play / pause / scrub / record).

Run this file from the `code/` directory once the `data/` folder has been
populated with `input_all.csv`, `output_all.csv` and
`supplementary_data.csv`, or point the flags at other files / URLs.

When installed, launch it through the `separation-viewer` console script
rather than importing the top-level `main` / `utils` modules directly.
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from playback.state import DEFAULT_PERIOD_MS, clamp_period
from utils.data_loader import INPUT_PATH, OUTPUT_PATH, SUPP_PATH, LoadFailure
from utils.play_catalog import PlayCatalog, build_catalog
from utils.play_models import Play


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="separation-viewer",
        description="Reconstruct NFL pass plays and replay receiver separation frame by frame.",
    )
    parser.add_argument("--input", nargs="+", default=[str(INPUT_PATH)],
                        help="input tracking CSV(s) or URL (several files are concatenated)")
    parser.add_argument("--output", nargs="+", default=[str(OUTPUT_PATH)],
                        help="output (post-throw) tracking CSV(s) or URL")
    parser.add_argument("--supp", default=str(SUPP_PATH),
                        help="supplementary play context CSV or URL")
    parser.add_argument("--game", help="game_id to open / export (default: first game)")
    parser.add_argument("--play", help="play_id to export (default: every play of --game)")
    parser.add_argument("--export-dir", help="export the selected play(s) as GIFs here and exit")
    parser.add_argument("--summary-csv", help="write the per-play separation summary to this CSV")
    parser.add_argument("--speed", type=int, default=DEFAULT_PERIOD_MS,
                        help="milliseconds per frame (50–300)")
    parser.add_argument("--attach-player-attributes", action="store_true",
                        help="copy player name / role / side from input onto output rows")
    parser.add_argument("--no-viewer", action="store_true", help="don't open the interactive viewer")
    parser.add_argument("--quiet", action="store_true", help="less console output")
    return parser


def _single(sources: List[str]):
    return sources[0] if len(sources) == 1 else sources


def _select_plays(catalog: PlayCatalog, game_id: Optional[str], play_id: Optional[str]) -> List[Play]:
    games = catalog.get_games()
    if not games:
        return []
    plays = catalog.get_plays_for_game(game_id or games[0])
    if play_id is not None:
        plays = [p for p in plays if p.play_id == play_id]
    return plays


def main(argv: Optional[List[str]] = None) -> int:
    """Run the viewer pipeline. Returns the process exit status."""
    args = _build_parser().parse_args(argv)
    verbose = not args.quiet
    period_ms = clamp_period(args.speed)

    # 1–3. Load, assemble, catalog. A load failure is fatal: no partial catalog.
    try:
        catalog = build_catalog(
            _single(args.input),
            _single(args.output),
            args.supp,
            attach_attributes=args.attach_player_attributes,
            verbose=verbose,
        )
    except LoadFailure as exc:
        print(f"❌ Error loading data: {exc}", file=sys.stderr)
        print(
            "Make sure the CSV files exist, e.g.\n"
            f"  {INPUT_PATH}\n  {OUTPUT_PATH}\n  {SUPP_PATH}",
            file=sys.stderr,
        )
        return 1

    if len(catalog) == 0:
        print("No plays found")
        return 0

    if args.summary_csv:
        catalog.summary(out_csv=args.summary_csv)

    # 4a. Head-less export
    if args.export_dir:
        from viz.play_export import export_plays

        plays = _select_plays(catalog, args.game, args.play)
        if not plays:
            print(f"[warn] no plays match game={args.game}, play={args.play}")
            return 1
        print(f"🎬 Exporting {len(plays)} play(s) → {args.export_dir}")
        export_plays(plays, args.export_dir, period_ms=period_ms, verbose=verbose)
        return 0

    # 4b. Interactive viewer
    if not args.no_viewer:
        from viz.play_viewer import launch_viewer

        launch_viewer(catalog, period_ms=period_ms, game_id=args.game)
    return 0


if __name__ == "__main__":
    sys.exit(main())
