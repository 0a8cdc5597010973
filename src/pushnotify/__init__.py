"""pushnotify: scheduled, repeating push reminders."""

__version__ = "0.3.0"
