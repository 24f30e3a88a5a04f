"""Field rendering, interactive viewer and video export."""
