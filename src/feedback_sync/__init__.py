"""Feedback Sync - mirrors feedback items into external work trackers."""

__version__ = "0.1.0"
