"""check-store subcommand: load the store file and report on it."""

from __future__ import annotations

import logging
import sys

log = logging.getLogger(__name__)


def run_check_store(config, args) -> int:
    """Load the configured store and print a summary.

    Exits non-zero when the file is unreadable or corrupt, which is
    exactly the condition that would stop ``serve`` from starting.
    """
    from pushnotify.core.errors import CorruptStoreError, PersistenceError  # noqa: PLC0415
    from pushnotify.storage.json_store import JsonStore  # noqa: PLC0415

    store = JsonStore(config.settings.storage.file_path)
    try:
        store.load()
    except (CorruptStoreError, PersistenceError) as exc:
        if args.debug:
            raise
        sys.stderr.write(f"pushnotify: error: {exc}\n")
        return 1

    snapshot = store.snapshot()
    pending = sum(1 for n in snapshot.notifications if not n.is_done)
    lines = [
        f"store:         {store.file_path}",
        f"notifications: {len(snapshot.notifications)} ({pending} pending)",
        f"credentials:   {'configured' if snapshot.settings.has_credentials else 'missing'}",
        f"defaults:      {snapshot.settings.repeat_times} x {snapshot.settings.repeat_interval}",
    ]
    sys.stdout.write("\n".join(lines) + "\n")
    return 0
