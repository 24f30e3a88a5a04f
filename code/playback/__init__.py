"""Playback state machine, controller and tick schedulers."""
