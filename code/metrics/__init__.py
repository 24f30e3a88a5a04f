"""Per-frame and per-play separation metrics."""
