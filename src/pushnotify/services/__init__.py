"""Background services for pushnotify."""

from pushnotify.services.scheduler import SchedulerEngine

__all__ = ["SchedulerEngine"]
