"""Command-line interface for pushnotify."""
