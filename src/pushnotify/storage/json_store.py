"""JSON file store for the :class:`~pushnotify.models.AppSchema`.

The whole document lives in memory, guarded by a reader/writer lock,
and is rewritten in full on every mutation.  Notifications are kept in
an insertion-ordered arena keyed by id; records are immutable and are
only ever replaced by id.

External edits (another process, a text editor) are picked up lazily:
every accessor first compares the file's ``(mtime_ns, size)`` with the
signature recorded at the last load/save and reloads when it differs.
The file has last-writer-wins semantics and no file locking.

Usage::

    store = JsonStore("data/notifications.json")
    store.load()                      # fatal at startup if it raises
    store.add_notification(notification)
    pending = store.get_pending()
"""

from __future__ import annotations

import json
import logging
import os
import threading
from dataclasses import replace
from pathlib import Path
from typing import TYPE_CHECKING

from pushnotify.core.durations import DEFAULT_REPEAT_INTERVAL, DEFAULT_REPEAT_TIMES
from pushnotify.core.errors import (
    CorruptStoreError,
    NotFoundError,
    PersistenceError,
    PushNotifyError,
)
from pushnotify.models import AppSchema, Notification, Settings
from pushnotify.storage.rwlock import ReadWriteLock
from pushnotify.storage.serializers import decode_legacy, decode_schema, encode_schema

if TYPE_CHECKING:
    from collections.abc import Iterable

log = logging.getLogger(__name__)

_Signature = tuple[int, int]


def apply_defaults(schema: AppSchema) -> AppSchema:
    """Backfill zero/empty repeat policies from the effective defaults.

    Settings fall back to the built-in defaults; notifications fall
    back to the (already backfilled) settings.  Run once per load.
    """
    settings = schema.settings
    if settings.repeat_times <= 0:
        settings = replace(settings, repeat_times=DEFAULT_REPEAT_TIMES)
    if not settings.repeat_interval:
        settings = replace(settings, repeat_interval=DEFAULT_REPEAT_INTERVAL)

    notifications = []
    for n in schema.notifications:
        if n.repeat_times <= 0 or not n.repeat_interval:
            n = replace(
                n,
                repeat_times=n.repeat_times if n.repeat_times > 0 else settings.repeat_times,
                repeat_interval=n.repeat_interval or settings.repeat_interval,
            )
        notifications.append(n)

    return AppSchema(settings=settings, notifications=tuple(notifications))


class JsonStore:
    """Thread-safe JSON-file repository of settings and notifications.

    Parameters
    ----------
    file_path:
        Path of the backing JSON document.  Parent directories are
        created on first save.

    """

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._lock = ReadWriteLock()
        self._io_lock = threading.Lock()
        self._settings = Settings()
        self._notifications: dict[str, Notification] = {}
        self._signature: _Signature | None = None

    @property
    def file_path(self) -> Path:
        return self._path

    # -- load / save -------------------------------------------------------

    def load(self) -> None:
        """(Re)load the document from disk, replacing in-memory state.

        A missing or empty file yields an empty document with default
        settings.  A bare JSON list is read as the legacy layout.

        Raises
        ------
        CorruptStoreError
            The content is neither the current nor the legacy layout.
        PersistenceError
            The file exists but could not be read.

        """
        with self._io_lock:
            self._load_locked()

    def _load_locked(self) -> None:
        signature = self._stat_signature()
        schema = apply_defaults(self._read_schema())

        arena: dict[str, Notification] = {}
        for n in schema.notifications:
            if n.id in arena:
                log.warning("Duplicate notification id %s in %s, keeping last", n.id, self._path)
            arena[n.id] = n

        with self._lock.write():
            self._settings = schema.settings
            self._notifications = arena
        self._signature = signature

        log.info(
            "Loaded store %s (%d notifications)",
            self._path,
            len(arena),
        )

    def _read_schema(self) -> AppSchema:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            log.info("Store file %s does not exist, starting empty", self._path)
            return AppSchema(settings=Settings(repeat_times=0, repeat_interval=""))
        except OSError as exc:
            msg = f"failed to read {self._path}: {exc}"
            raise PersistenceError(msg) from exc

        if not raw.strip():
            return AppSchema(settings=Settings(repeat_times=0, repeat_interval=""))

        try:
            data = json.loads(raw)
        except ValueError as exc:
            raise CorruptStoreError(str(self._path), str(exc)) from exc

        try:
            if isinstance(data, dict):
                return decode_schema(data)
            if isinstance(data, list):
                log.warning(
                    "Store file %s uses the legacy list layout, migrating",
                    self._path,
                )
                return decode_legacy(data)
        except (KeyError, TypeError, ValueError) as exc:
            raise CorruptStoreError(str(self._path), str(exc)) from exc

        raise CorruptStoreError(
            str(self._path),
            f"unexpected top-level JSON {type(data).__name__}",
        )

    def save(self) -> None:
        """Write the full document to disk.

        Writes to a temporary sibling file and renames it over the
        target, then records the new file signature so the write is
        not mistaken for an external change.

        Raises :class:`PersistenceError` on I/O failure.  In-memory
        state is never rolled back.
        """
        with self._io_lock:
            with self._lock.read():
                payload = encode_schema(self._snapshot_locked())
            text = json.dumps(payload, indent=2, ensure_ascii=False) + "\n"

            tmp_path = self._path.with_name(f".{self._path.name}.tmp")
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                tmp_path.write_text(text, encoding="utf-8")
                os.replace(tmp_path, self._path)
            except OSError as exc:
                msg = f"failed to write {self._path}: {exc}"
                raise PersistenceError(msg) from exc

            self._signature = self._stat_signature()

    # -- external change detection ------------------------------------------

    def check_for_external_change(self) -> bool:
        """Reload if the file changed since the last load or save.

        Returns True when a reload was attempted.  A reload that fails
        is logged and the current in-memory state is kept; the bad
        file's signature is remembered so the failure is not repeated
        on every read.
        """
        current = self._stat_signature()
        if current is None or current == self._signature:
            return False

        with self._io_lock:
            # A concurrent save may have recorded the signature meanwhile.
            current = self._stat_signature()
            if current is None or current == self._signature:
                return False
            log.info("Store file %s changed on disk, reloading", self._path)
            try:
                self._load_locked()
            except PushNotifyError:
                log.exception(
                    "Reload of %s failed, keeping in-memory state",
                    self._path,
                )
                self._signature = current
        return True

    def _stat_signature(self) -> _Signature | None:
        try:
            st = self._path.stat()
        except OSError:
            return None
        return (st.st_mtime_ns, st.st_size)

    # -- accessors -----------------------------------------------------------

    def snapshot(self) -> AppSchema:
        """Return the whole document as an immutable value."""
        self.check_for_external_change()
        with self._lock.read():
            return self._snapshot_locked()

    def _snapshot_locked(self) -> AppSchema:
        return AppSchema(
            settings=self._settings,
            notifications=tuple(self._notifications.values()),
        )

    def get_settings(self) -> Settings:
        self.check_for_external_change()
        with self._lock.read():
            return self._settings

    def get_all_notifications(self) -> list[Notification]:
        self.check_for_external_change()
        with self._lock.read():
            return list(self._notifications.values())

    def get_pending(self) -> list[Notification]:
        """Return notifications that are not Done, in insertion order."""
        self.check_for_external_change()
        with self._lock.read():
            return [n for n in self._notifications.values() if not n.is_done]

    def get_notification(self, notification_id: str) -> Notification:
        self.check_for_external_change()
        with self._lock.read():
            try:
                return self._notifications[notification_id]
            except KeyError:
                raise NotFoundError(notification_id) from None

    # -- mutators ------------------------------------------------------------

    def add_notification(self, notification: Notification) -> None:
        """Append *notification* and save.

        Raises :class:`ValueError` if the id is already taken.
        """
        self.check_for_external_change()
        with self._lock.write():
            if notification.id in self._notifications:
                msg = f"notification id already exists: {notification.id}"
                raise ValueError(msg)
            self._notifications[notification.id] = notification
        self.save()

    def update_settings(self, settings: Settings) -> None:
        self.check_for_external_change()
        with self._lock.write():
            self._settings = settings
        self.save()

    def update_notification(self, notification: Notification) -> None:
        """Replace the record with the same id and save."""
        self.check_for_external_change()
        with self._lock.write():
            if notification.id not in self._notifications:
                raise NotFoundError(notification.id)
            self._notifications[notification.id] = notification
        self.save()

    def delete_notification(self, notification_id: str) -> None:
        self.check_for_external_change()
        with self._lock.write():
            if self._notifications.pop(notification_id, None) is None:
                raise NotFoundError(notification_id)
        self.save()

    def commit_progress(
        self,
        changes: Iterable[tuple[Notification, Notification]],
    ) -> list[Notification]:
        """Apply a batch of ``(before, after)`` replacements and save once.

        A change is applied only while the stored record still equals
        *before*; records deleted or edited since they were read are
        left alone.  Returns the applied records.  Nothing is written
        when no change applies.
        """
        applied: list[Notification] = []
        with self._lock.write():
            for before, after in changes:
                current = self._notifications.get(before.id)
                if current is None:
                    log.info("Notification %s was deleted during dispatch", before.id)
                    continue
                if current != before:
                    log.info(
                        "Notification %s was modified during dispatch, keeping the edit",
                        before.id,
                    )
                    continue
                self._notifications[before.id] = after
                applied.append(after)

        if applied:
            self.save()
        return applied
