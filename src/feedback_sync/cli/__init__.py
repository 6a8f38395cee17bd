"""Command line interface for Feedback Sync."""
