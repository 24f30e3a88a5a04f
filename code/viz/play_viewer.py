#!/usr/bin/env python3
"""
viz/play_viewer.py

Interactive matplotlib viewer on top of the PlaybackController.

Controls:
    buttons   ⏮ reset · ▶/⏸ play-pause · ⏺ record · ◀ prev play · ▶ next play
    sliders   frame (scrub) · speed (ms per frame, 50–300)
    keys      space play/pause · r reset · v record · ← / → prev / next play
              g / G next / previous game

The viewer only translates widget events into controller commands and
mirrors controller state back into the widgets; every rule (bounds,
auto-stop, recording lockout) lives in the state machine.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.widgets import Button, Slider

from playback.controller import PlaybackController
from playback.scheduler import FigureTimerScheduler
from playback.state import DEFAULT_PERIOD_MS, MAX_PERIOD_MS, MIN_PERIOD_MS, PlaybackState
from utils.play_catalog import PlayCatalog
from viz.field_renderer import FieldRenderer
from viz.video_export import GifExportSink, write_export


class PlayViewer:
    """
    Window with the field on top and playback controls underneath.

    Args:
        catalog: Loaded PlayCatalog.
        export_dir: Where recordings are written.
        period_ms: Initial ms per frame.
    """

    def __init__(
        self,
        catalog: PlayCatalog,
        export_dir: str | Path = "../visuals/plays",
        period_ms: int = DEFAULT_PERIOD_MS,
    ):
        self.catalog = catalog
        self.export_dir = Path(export_dir)
        self._syncing = False

        self.fig = plt.figure(figsize=(8, 6.2), facecolor="#111827")
        field_ax = self.fig.add_axes([0.0, 0.26, 1.0, 0.66])
        self.renderer = FieldRenderer(self.fig, field_ax)

        self.title = self.fig.text(
            0.5, 0.965, "", ha="center", va="center", color="white",
            fontsize=10, fontweight="bold",
        )

        # --- buttons ---
        def _button(rect, label):
            b = Button(self.fig.add_axes(rect), label, color="#374151", hovercolor="#4b5563")
            b.label.set_color("white")
            return b

        self.btn_reset = _button([0.02, 0.15, 0.09, 0.06], "Reset")
        self.btn_play = _button([0.12, 0.15, 0.09, 0.06], "Play")
        self.btn_record = _button([0.22, 0.15, 0.11, 0.06], "Record")
        self.btn_prev = _button([0.76, 0.15, 0.10, 0.06], "◀ Play")
        self.btn_next = _button([0.87, 0.15, 0.10, 0.06], "Play ▶")

        # --- sliders ---
        self.frame_slider = Slider(
            self.fig.add_axes([0.12, 0.08, 0.70, 0.03]),
            "Frame", 0, 1, valinit=0, valstep=1, color="#3b82f6",
        )
        self.speed_slider = Slider(
            self.fig.add_axes([0.12, 0.03, 0.70, 0.03]),
            "ms/frame", MIN_PERIOD_MS, MAX_PERIOD_MS, valinit=period_ms, valstep=50,
            color="#6b7280",
        )
        for s in (self.frame_slider, self.speed_slider):
            s.label.set_color("white")
            s.valtext.set_color("white")

        self.controller = PlaybackController(
            catalog,
            renderer=self.renderer,
            scheduler=FigureTimerScheduler(self.fig),
            sink=GifExportSink(),
            on_export=lambda name, blob: write_export(self.export_dir, name, blob),
            period_ms=period_ms,
        )
        self.controller.subscribe(self._on_state)

        self.btn_reset.on_clicked(lambda _e: self.controller.reset())
        self.btn_play.on_clicked(lambda _e: self.controller.toggle())
        self.btn_record.on_clicked(lambda _e: self._toggle_recording())
        self.btn_prev.on_clicked(lambda _e: self.controller.previous_play())
        self.btn_next.on_clicked(lambda _e: self.controller.next_play())
        self.frame_slider.on_changed(self._on_frame_slider)
        self.speed_slider.on_changed(self._on_speed_slider)
        self.fig.canvas.mpl_connect("key_press_event", self._on_key)

        self._on_state(self.controller.state)

    # ------------------------------------------------------------------
    # Widget → controller
    # ------------------------------------------------------------------

    def _toggle_recording(self) -> None:
        if self.controller.is_recording:
            self.controller.stop_recording()
        else:
            self.controller.start_recording()

    def _on_frame_slider(self, val) -> None:
        if not self._syncing:
            self.controller.seek(int(val))

    def _on_speed_slider(self, val) -> None:
        if not self._syncing:
            self.controller.set_speed(int(val))

    def _cycle_game(self, step: int) -> None:
        games = self.catalog.get_games()
        if not games or self.controller.is_recording:
            return
        current = self.controller.state.game_id
        i = games.index(current) if current in games else -step
        self.controller.select_game(games[(i + step) % len(games)])

    def _on_key(self, event) -> None:
        actions = {
            " ": self.controller.toggle,
            "r": self.controller.reset,
            "v": self._toggle_recording,
            "left": self.controller.previous_play,
            "right": self.controller.next_play,
            "g": lambda: self._cycle_game(1),
            "G": lambda: self._cycle_game(-1),
        }
        action = actions.get(event.key)
        if action is not None:
            action()

    # ------------------------------------------------------------------
    # Controller → widgets
    # ------------------------------------------------------------------

    def _on_state(self, state: PlaybackState) -> None:
        self._syncing = True
        try:
            play = state.current_play
            last = max(state.last_frame_index, 1)
            self.frame_slider.valmax = last
            self.frame_slider.ax.set_xlim(0, last)
            self.frame_slider.set_val(state.frame_index)
            self.speed_slider.set_val(state.period_ms)
        finally:
            self._syncing = False

        self.btn_play.label.set_text("Pause" if state.is_playing and not state.recording else "Play")
        self.btn_record.label.set_text("Recording..." if state.recording else "Record")

        if play is None:
            self.title.set_text("No plays found")
        else:
            self.title.set_text(
                f"Game {play.game_id} • Play {state.play_index + 1} of {len(state.plays)} • "
                f"{play.description} • {play.wr_name} • Result: {play.pass_result}"
                + ("   ⏺ auto-stops at the last frame" if state.recording else "")
            )
        self.fig.canvas.draw_idle()

    def show(self) -> None:
        plt.show()


def launch_viewer(
    catalog: PlayCatalog,
    export_dir: str | Path = "../visuals/plays",
    period_ms: int = DEFAULT_PERIOD_MS,
    game_id: Optional[str] = None,
) -> PlayViewer:
    """Open the interactive viewer (blocks until the window is closed)."""
    viewer = PlayViewer(catalog, export_dir=export_dir, period_ms=period_ms)
    if game_id is not None:
        viewer.controller.select_game(game_id)
    viewer.show()
    return viewer
