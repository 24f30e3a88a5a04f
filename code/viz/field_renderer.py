#!/usr/bin/env python3
"""
viz/field_renderer.py

Paint a single Frame of a reconstructed play onto a matplotlib figure.

    • Green field with NFL dimensions (x ∈ [0,120], y ∈ [0, 53.3])
    • End zones shaded (0–10, 110–120), yard lines, hash marks
    • Targeted WR in blue, passer light blue, coverage defenders red,
      other offense / defense smaller
    • Dashed yellow separation line WR → nearest coverage defender
    • Info panels: play info, separation, target, timeline + progress bar

The renderer owns no playback state: every call to `draw()` gets the play,
the frame, and its index. `snapshot()` returns the current canvas as PNG
bytes for the video export sink.
"""

from __future__ import annotations

import io
from typing import Optional

from matplotlib.backends.backend_agg import FigureCanvasAgg
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle
import numpy as np

from metrics.separation_metric import closest_defender, separation_gain
from utils.play_models import FIELD_LENGTH, FIELD_WIDTH, Frame, Play, PlayerRole


CANVAS_PX = (800, 450)
DPI = 100

FIELD_COLOR = "#1a472a"
PANEL_BOX = dict(boxstyle="round,pad=0.4", facecolor="black", alpha=0.85, edgecolor="#3b82f6")

# role → (fill, edge, marker size)
ROLE_STYLE = {
    PlayerRole.TARGETED_RECEIVER: ("#3b82f6", "#60a5fa", 170),
    PlayerRole.PASSER: ("#60a5fa", "#93c5fd", 140),
    PlayerRole.DEFENSIVE_COVERAGE: ("#ef4444", "#f87171", 120),
    PlayerRole.OTHER_OFFENSE: ("#60a5fa", "#93c5fd", 60),
    PlayerRole.OTHER_DEFENSE: ("#f87171", "#fca5a5", 60),
}

# roles that get a jersey number + last-name label
KEY_ROLES = {
    PlayerRole.TARGETED_RECEIVER: "WR",
    PlayerRole.PASSER: "QB",
    PlayerRole.DEFENSIVE_COVERAGE: "DEF",
}


def _last_name(name: str, fallback: str) -> str:
    return name.split(" ")[-1] if name else fallback


class FieldRenderer:
    """
    Matplotlib field painter.

    Args:
        fig: Existing figure to draw into (the interactive viewer passes its
            own). When omitted an off-screen 800×450 Agg figure is created.
        ax:  Axes inside `fig` to use for the field.
    """

    def __init__(self, fig: Optional[Figure] = None, ax=None):
        if fig is None:
            fig = Figure(figsize=(CANVAS_PX[0] / DPI, CANVAS_PX[1] / DPI), dpi=DPI)
            FigureCanvasAgg(fig)
        self.fig = fig
        self.ax = ax if ax is not None else fig.add_axes([0, 0, 1, 1])
        self.frames_drawn = 0

        self._draw_field()

        # Live scatters, one per role (offsets updated in place)
        self._scatters = {}
        for role, (fill, edge, size) in ROLE_STYLE.items():
            self._scatters[role] = self.ax.scatter(
                [], [], s=size, c=fill, edgecolors=edge, linewidths=1.5, zorder=4,
            )
        self._ball = self.ax.scatter([], [], s=40, c="#8b4513", edgecolors="white", zorder=5)

        self._sep_line, = self.ax.plot(
            [], [], color="yellow", alpha=0.7, linewidth=2.0, linestyle=(0, (4, 4)), zorder=3,
        )
        self._sep_label = self.ax.text(
            0, 0, "", ha="center", va="center", color="#fbbf24", fontsize=8,
            fontweight="bold", zorder=6, visible=False,
            bbox=dict(facecolor="black", alpha=0.8, edgecolor="none", pad=1.5),
        )

        panel = dict(transform=self.ax.transAxes, color="white", fontsize=8, zorder=7, bbox=PANEL_BOX)
        self._info_panel = self.ax.text(0.015, 0.975, "", ha="left", va="top", **panel)
        self._sep_panel = self.ax.text(0.985, 0.975, "", ha="right", va="top", **panel)
        self._target_panel = self.ax.text(0.015, 0.05, "", ha="left", va="bottom", **panel)
        self._time_panel = self.ax.text(0.985, 0.05, "", ha="right", va="bottom", **panel)

        self._progress = Rectangle(
            (0.0125, 0.005), 0.0, 0.012, transform=self.ax.transAxes,
            facecolor="#3b82f6", zorder=7,
        )
        self.ax.add_patch(self._progress)

        # per-frame labels (jerseys / names) are rebuilt every draw
        self._labels = []

    # ------------------------------------------------------------------
    # Static field
    # ------------------------------------------------------------------

    def _draw_field(self) -> None:
        ax = self.ax
        ax.set_xlim(0, FIELD_LENGTH)
        ax.set_ylim(0, FIELD_WIDTH)
        ax.set_facecolor(FIELD_COLOR)
        ax.set_xticks([])
        ax.set_yticks([])

        # End zones (0–10 and 110–120)
        ax.axvspan(0, 10, color="#14532d", alpha=0.9, zorder=0)
        ax.axvspan(110, 120, color="#14532d", alpha=0.9, zorder=0)

        # Yard lines every 10 yards
        for x in range(10, 120, 10):
            ax.axvline(x, color="white", linewidth=0.8, alpha=0.15, zorder=1)

        # Hash marks
        for y in (FIELD_WIDTH * 0.4, FIELD_WIDTH * 0.6):
            ax.axhline(y, color="white", linewidth=0.8, alpha=0.1, zorder=1)

    # ------------------------------------------------------------------
    # Per-frame paint
    # ------------------------------------------------------------------

    def _clear_labels(self) -> None:
        for artist in self._labels:
            artist.remove()
        self._labels = []

    def _draw_players(self, frame: Frame) -> None:
        for role, scatter in self._scatters.items():
            pts = [(p.x, p.y) for p in frame.players if p.role is role]
            scatter.set_offsets(np.array(pts, dtype=float) if pts else np.empty((0, 2)))

        if frame.ball is not None:
            self._ball.set_offsets(np.array([[frame.ball.x, frame.ball.y]], dtype=float))
        else:
            self._ball.set_offsets(np.empty((0, 2)))

        for p in frame.players:
            fallback = KEY_ROLES.get(p.role)
            if fallback is None:
                continue
            if p.jersey:
                self._labels.append(self.ax.text(
                    p.x, p.y, p.jersey, ha="center", va="center",
                    color="white", fontsize=5, fontweight="bold", zorder=6,
                ))
            self._labels.append(self.ax.text(
                p.x, p.y + 1.6, _last_name(p.name, fallback), ha="center", va="bottom",
                color="#fbbf24" if p.role is PlayerRole.TARGETED_RECEIVER else "#fca5a5",
                fontsize=6, fontweight="bold", zorder=6,
            ))
            if p.role is PlayerRole.TARGETED_RECEIVER and p.speed > 0:
                self._labels.append(self.ax.text(
                    p.x, p.y - 1.6, f"{p.speed:.1f} mph", ha="center", va="top",
                    color="#10b981", fontsize=5, zorder=6,
                ))

    def _draw_separation(self, frame: Frame) -> None:
        wr = frame.targeted_receiver
        defender, dist = closest_defender(frame)
        if wr is None or defender is None:
            self._sep_line.set_data([], [])
            self._sep_label.set_visible(False)
            return
        self._sep_line.set_data([wr.x, defender.x], [wr.y, defender.y])
        self._sep_label.set_position(((wr.x + defender.x) / 2, (wr.y + defender.y) / 2))
        self._sep_label.set_text(f"{dist:.1f}yd")
        self._sep_label.set_visible(True)

    def _draw_panels(self, play: Play, frame: Frame, frame_index: int) -> None:
        info = [
            "PLAY INFO",
            f"Game: {play.game_id}",
            f"Play: {play.play_id}",
            f"Route: {play.description}",
            f"Result: {play.pass_result_label}",
        ]
        if play.down_and_distance:
            info.append(play.down_and_distance)
        self._info_panel.set_text("\n".join(info))

        gain = separation_gain(play, frame_index)
        self._sep_panel.set_text(
            f"SEPARATION\n{frame.separation:.1f} YDS\n"
            f"{'+' if gain >= 0 else ''}{gain:.1f} from snap\n"
            f"Initial: {play.frames[0].separation:.1f} yds"
        )

        target = ["TARGET", play.wr_name]
        if play.wr_jersey:
            target.append(f"#{play.wr_jersey} • {play.wr_position}")
        wr = frame.targeted_receiver
        if wr is not None and wr.speed > 0:
            target.append(f"Speed: {wr.speed:.1f} mph")
        if play.qb_name and play.qb_name != "Unknown":
            target.append(f"QB: {play.qb_name}")
        self._target_panel.set_text("\n".join(target))

        n = len(play.frames)
        self._time_panel.set_text(
            f"TIMELINE\n{frame.time_seconds:.1f}s\nFrame {frame_index + 1} / {n}"
        )
        self._progress.set_width(0.975 * (frame_index + 1) / n)

    def draw(self, play: Play, frame: Frame, frame_index: int) -> None:
        """Paint `frame` (index `frame_index` of `play`). Incomplete input is skipped."""
        if play is None or frame is None or not 0 <= frame_index < len(play.frames):
            return
        self._clear_labels()
        self._draw_players(frame)
        self._draw_separation(frame)
        self._draw_panels(play, frame, frame_index)
        self.fig.canvas.draw_idle()
        self.frames_drawn += 1

    def snapshot(self) -> bytes:
        """Current canvas as PNG bytes."""
        buf = io.BytesIO()
        self.fig.savefig(buf, format="png", dpi=self.fig.dpi, facecolor=FIELD_COLOR)
        return buf.getvalue()
