"""
Client-side autosave: a debounced local cache write plus a slightly later
server sync of the same payload.

Server sync only happens once the content is known to the server (a blog id
being edited or a draft id from an earlier sync), so brand new content is
kept locally until the author saves it explicitly.
"""

import json
import logging
import os
import tempfile
import threading
import time
from functools import partial
from pathlib import Path

from blog.validators import has_meaningful_content

logger = logging.getLogger(__name__)

DEFAULT_KEY = "ii_hub_local_draft_v1"
DEFAULT_DEBOUNCE = 1.5
DEFAULT_SERVER_OFFSET = 0.2

CONTENT_FIELDS = ("title", "description", "image", "category", "status")

STATUS_IDLE = "idle"
STATUS_PENDING = "pending"
STATUS_SYNCING = "syncing"
STATUS_SYNCED = "synced"
STATUS_ERROR = "error"


class MemoryCache:
    def __init__(self):
        self._data = {}

    def get(self, key):
        value = self._data.get(key)
        return json.loads(value) if value is not None else None

    def set(self, key, value):
        self._data[key] = json.dumps(value)

    def delete(self, key):
        self._data.pop(key, None)


class JSONFileCache:
    """Key/value store kept in a single JSON file, replaced atomically on write."""

    def __init__(self, path):
        self.path = Path(path)

    def _read(self):
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        return data if isinstance(data, dict) else {}

    def _write(self, data):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f)
            os.replace(tmp_path, self.path)
        except BaseException:
            os.unlink(tmp_path)
            raise

    def get(self, key):
        return self._read().get(key)

    def set(self, key, value):
        data = self._read()
        data[key] = value
        self._write(data)

    def delete(self, key):
        data = self._read()
        if data.pop(key, None) is not None:
            self._write(data)


class ThreadingScheduler:
    def call_later(self, delay, callback):
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class AutosaveCoordinator:
    """
    Debounced dual write of editor content.

    Each schedule_autosave() call cancels the pending timers and stamps the
    payload with a new local revision. The local write fires after
    `debounce` seconds, the server sync `server_offset` seconds later, so the
    cache always holds the content before the network is involved.

    Failures of either write are logged and reflected in `status`; they are
    never raised to the caller.
    """

    def __init__(
        self,
        cache,
        client,
        key=DEFAULT_KEY,
        debounce=DEFAULT_DEBOUNCE,
        server_offset=DEFAULT_SERVER_OFFSET,
        scheduler=None,
        on_status=None,
    ):
        if server_offset <= 0:
            raise ValueError("server_offset must be positive so the local write happens first")

        self.cache = cache
        self.client = client
        self.key = key
        self.debounce = debounce
        self.server_offset = server_offset
        self.scheduler = scheduler or ThreadingScheduler()
        self.on_status = on_status

        self.current_draft_id = None
        self.server_revision = None
        self.status = STATUS_IDLE

        self._revision = 0
        self._synced_revision = 0
        self._generation = 0
        self._local_timer = None
        self._server_timer = None
        self._closed = False
        self._lock = threading.RLock()
        self._sync_lock = threading.Lock()

    @property
    def is_syncing(self):
        return self.status == STATUS_SYNCING

    def _set_status(self, status):
        self.status = status
        if self.on_status is not None:
            try:
                self.on_status(status)
            except Exception:
                logger.warning("Autosave status callback failed", exc_info=True)

    def _cancel_timers(self):
        for timer in (self._local_timer, self._server_timer):
            if timer is not None:
                timer.cancel()
        self._local_timer = None
        self._server_timer = None

    def schedule_autosave(self, payload):
        """Record an edit. Never raises."""
        try:
            self._schedule(payload)
        except Exception:
            logger.error("Failed to schedule autosave", exc_info=True)

    def _schedule(self, payload):
        with self._lock:
            if self._closed:
                return

            self._revision += 1
            entry = {name: payload.get(name) or "" for name in CONTENT_FIELDS}
            entry["blog_id"] = payload.get("blog_id") or None
            entry["draft_id"] = payload.get("draft_id") or self.current_draft_id
            entry["revision"] = self._revision

            self._cancel_timers()
            self._local_timer = self.scheduler.call_later(self.debounce, partial(self._write_local, entry))

            if entry["blog_id"] or entry["draft_id"]:
                self._server_timer = self.scheduler.call_later(
                    self.debounce + self.server_offset, partial(self._sync, entry)
                )
            self._set_status(STATUS_PENDING)

    def _write_local(self, entry):
        with self._lock:
            if self._closed:
                return
            self._local_timer = None
            stored = {
                **entry,
                "draft_id": entry["draft_id"] or self.current_draft_id,
                "server_revision": self.server_revision,
                "updated_at": int(time.time() * 1000),
            }
            try:
                self.cache.set(self.key, stored)
            except Exception:
                logger.warning("Could not write local draft", exc_info=True)
                self._set_status(STATUS_ERROR)
                return
            if self._server_timer is None and self.status == STATUS_PENDING:
                self._set_status(STATUS_IDLE)

    def _sync(self, entry):
        with self._sync_lock:
            with self._lock:
                if self._closed or entry["revision"] < self._synced_revision:
                    return
                self._server_timer = None
                draft_id = entry["draft_id"] or self.current_draft_id
                base_revision = self.server_revision
                generation = self._generation

            self._set_status(STATUS_SYNCING)
            fields = {name: entry[name] for name in CONTENT_FIELDS}
            fields["status"] = fields["status"] or "draft"
            try:
                result = self.client.save_draft(
                    fields,
                    draft_id=draft_id,
                    blog_id=None if draft_id else entry["blog_id"],
                    revision=base_revision,
                )
            except Exception:
                logger.error("Draft sync raised", exc_info=True)
                if generation == self._generation:
                    self._set_status(STATUS_ERROR)
                return

            with self._lock:
                if generation != self._generation:
                    # Cleared or closed while the request was in flight
                    logger.info("Discarding draft sync response for cleared editor state")
                    return

            if not result.get("ok"):
                logger.warning(f"Draft sync failed: {result.get('message')}")
                self._set_status(STATUS_ERROR)
                return

            value = result.get("value") or {}
            draft = value.get("draft") or {}
            if value.get("conflict"):
                logger.warning(f"Server draft {draft.get('id')} changed elsewhere; local edits overwrote it")

            with self._lock:
                if generation != self._generation:
                    return
                self._synced_revision = entry["revision"]
                if draft.get("id"):
                    self.current_draft_id = draft["id"]
                    self.server_revision = draft.get("revision")
                    self._persist_draft_link()
            self._set_status(STATUS_SYNCED)

    def _persist_draft_link(self):
        try:
            stored = self.cache.get(self.key) or {}
            stored["draft_id"] = self.current_draft_id
            stored["server_revision"] = self.server_revision
            self.cache.set(self.key, stored)
        except Exception:
            logger.warning("Could not persist draft id locally", exc_info=True)

    def load_local_draft(self):
        """Return the cached entry, adopting its draft id so syncing resumes the same draft."""
        try:
            stored = self.cache.get(self.key)
        except Exception:
            logger.warning("Could not read local draft", exc_info=True)
            return None
        if not isinstance(stored, dict):
            return None

        with self._lock:
            if stored.get("draft_id"):
                self.current_draft_id = stored["draft_id"]
            if stored.get("server_revision") is not None:
                self.server_revision = stored["server_revision"]
            self._revision = max(self._revision, stored.get("revision") or 0)
        return stored

    def has_restorable_draft(self):
        stored = self.load_local_draft()
        if stored is None:
            return False
        return has_meaningful_content(stored.get("title"), stored.get("description"), stored.get("image"))

    def restore_into(self, form):
        """Copy cached content into a dict or an object with matching attributes; the cache is kept."""
        stored = self.load_local_draft()
        if stored is None:
            return None
        restored = {name: stored.get(name) or "" for name in CONTENT_FIELDS}
        restored["blog_id"] = stored.get("blog_id")
        restored["draft_id"] = stored.get("draft_id")
        if isinstance(form, dict):
            form.update(restored)
        else:
            for name, value in restored.items():
                setattr(form, name, value)
        return restored

    def clear_local_draft(self):
        """Forget local content after an explicit save or publish."""
        with self._lock:
            self._generation += 1
            self._cancel_timers()
            self.current_draft_id = None
            self.server_revision = None
            try:
                self.cache.delete(self.key)
            except Exception:
                logger.warning("Could not clear local draft", exc_info=True)
            self._set_status(STATUS_IDLE)

    def close(self):
        """Cancel pending timers; a sync already in flight is allowed to finish."""
        with self._lock:
            self._closed = True
            self._generation += 1
            self._cancel_timers()
