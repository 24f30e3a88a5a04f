"""Tracking-data loading, cleaning and play reconstruction."""
