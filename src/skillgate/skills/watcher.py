"""Live reload of skills on filesystem changes.

``SkillWatcher`` puts a recursive watchdog watch on every skills root and
calls its reload callback once per burst of relevant changes:

- a created/modified/deleted/moved event whose file name is ``SKILL.md``
  (case-insensitive), or
- a directory created/deleted/moved event (a skill folder may have appeared
  or vanished).

Events are debounced with a ``threading.Timer``. Reloads never overlap and
``stop()`` guarantees that no reload runs after it returns. State lives on
the instance, so independent watchers can coexist.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from skillgate.skills.config import SKILL_FILE_NAME
from skillgate.skills.errors import ConfigurationError

if TYPE_CHECKING:
    from skillgate.skills.manager import SkillManager

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0

_CHANGE_EVENTS = frozenset(
    {EVENT_TYPE_CREATED, EVENT_TYPE_MODIFIED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED}
)
_DIRECTORY_EVENTS = frozenset({EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED})


class WatcherState(str, Enum):
    """Lifecycle state of a ``SkillWatcher``."""

    IDLE = "idle"
    WATCHING = "watching"


def _basename(path: str | bytes) -> str:
    return os.path.basename(os.fsdecode(path))


def is_relevant_event(event: FileSystemEvent) -> bool:
    """Return ``True`` if ``event`` may change the discovered skill set.

    Opened/closed events are ignored; discovery itself reads SKILL.md files,
    so reacting to them would reload forever.
    """
    if event.event_type not in _CHANGE_EVENTS:
        return False

    paths = [event.src_path]
    dest_path = getattr(event, "dest_path", "")
    if dest_path:
        paths.append(dest_path)

    if any(_basename(path).lower() == SKILL_FILE_NAME.lower() for path in paths):
        return True

    return event.is_directory and event.event_type in _DIRECTORY_EVENTS


class _SkillEventHandler(FileSystemEventHandler):
    """Forwards relevant watchdog events to the owning watcher."""

    def __init__(self, watcher: SkillWatcher) -> None:
        super().__init__()
        self._watcher = watcher

    def on_any_event(self, event: FileSystemEvent) -> None:
        if is_relevant_event(event):
            logger.debug("Skill change detected: %s %s", event.event_type, event.src_path)
            self._watcher.notify_change()


class SkillWatcher:
    """Debounced filesystem watcher that triggers skill reloads.

    Args:
        watch_dirs: Skill roots to watch recursively. Missing directories
            are skipped when the watcher starts.
        on_reload: Callback invoked once per debounce window.
        debounce_seconds: Quiet period before a reload fires.
        observer_factory: Factory for the watchdog observer.

    Raises:
        ConfigurationError: If ``debounce_seconds`` is negative.
    """

    def __init__(
        self,
        watch_dirs: Sequence[Path],
        on_reload: Callable[[], Any],
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        observer_factory: Callable[[], Any] = Observer,
    ) -> None:
        if debounce_seconds < 0:
            raise ConfigurationError("watch.debounce_seconds", "must be >= 0")

        self.watch_dirs = [Path(d) for d in watch_dirs]
        self.debounce_seconds = debounce_seconds
        self._on_reload = on_reload
        self._observer_factory = observer_factory
        self._handler = _SkillEventHandler(self)

        self._lock = threading.Lock()
        self._reload_lock = threading.RLock()
        self._observer: Any = None
        self._timer: threading.Timer | None = None
        self._state = WatcherState.IDLE
        self._pending = False
        self._last_change_time: float | None = None
        self._last_reload_time: float | None = None
        self._reload_count = 0

    @property
    def state(self) -> WatcherState:
        return self._state

    @property
    def is_watching(self) -> bool:
        return self._state is WatcherState.WATCHING

    @property
    def last_change_time(self) -> float | None:
        """Epoch seconds of the last relevant event, if any."""
        return self._last_change_time

    @property
    def last_reload_time(self) -> float | None:
        """Epoch seconds of the last completed reload, if any."""
        return self._last_reload_time

    @property
    def reload_count(self) -> int:
        return self._reload_count

    @property
    def watched_dirs(self) -> list[Path]:
        """Configured directories that currently exist."""
        return [d for d in self.watch_dirs if d.is_dir()]

    def start(self) -> None:
        """Start watching. Calling ``start()`` on a running watcher is a no-op."""
        with self._lock:
            if self._state is WatcherState.WATCHING:
                return

            observer = self._observer_factory()
            scheduled = 0
            for directory in self.watch_dirs:
                if not directory.is_dir():
                    logger.debug("Skills directory does not exist, not watching: %s", directory)
                    continue
                observer.schedule(self._handler, str(directory), recursive=True)
                scheduled += 1

            observer.start()
            self._observer = observer
            self._pending = False
            self._state = WatcherState.WATCHING

        logger.info(
            "Watching %d skill director%s (debounce %.2fs)",
            scheduled,
            "y" if scheduled == 1 else "ies",
            self.debounce_seconds,
        )

    def stop(self) -> None:
        """Stop watching and wait for an in-flight reload to finish.

        Idempotent and safe mid-debounce: no reload runs after this returns.
        """
        with self._lock:
            if self._state is WatcherState.IDLE:
                return
            self._state = WatcherState.IDLE
            self._pending = False
            timer, self._timer = self._timer, None
            observer, self._observer = self._observer, None

        if timer is not None:
            timer.cancel()

        if observer is not None:
            observer.stop()
            if observer is not threading.current_thread():
                observer.join(timeout=5)

        # Blocks until a reload that already passed its state check completes.
        with self._reload_lock:
            pass

        logger.info("Stopped watching skill directories")

    def notify_change(self) -> None:
        """Record a relevant change and arm the debounce timer if needed."""
        with self._lock:
            if self._state is not WatcherState.WATCHING:
                return
            self._pending = True
            self._last_change_time = time.time()
            if self._timer is None:
                timer = threading.Timer(self.debounce_seconds, self._fire)
                timer.daemon = True
                self._timer = timer
                timer.start()

    def _fire(self) -> None:
        with self._lock:
            self._timer = None
            if self._state is not WatcherState.WATCHING or not self._pending:
                return
            self._pending = False

        with self._reload_lock:
            with self._lock:
                if self._state is not WatcherState.WATCHING:
                    return
            self._run_reload()

    def _run_reload(self) -> None:
        logger.info("Reloading skills after filesystem change")
        try:
            self._on_reload()
        except Exception:
            logger.exception("Skill reload failed")
        finally:
            self._last_reload_time = time.time()
            self._reload_count += 1

    def __enter__(self) -> SkillWatcher:
        self.start()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.stop()


def create_watcher_for_manager(
    manager: SkillManager,
    debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    observer_factory: Callable[[], Any] = Observer,
) -> SkillWatcher | None:
    """Build a watcher that reloads ``manager`` on change.

    Returns:
        The watcher (not started), or ``None`` if no configured root exists.
    """
    watch_dirs = [root.dir for root in manager.config.roots() if root.dir.is_dir()]
    if not watch_dirs:
        logger.debug("No existing skill directories to watch")
        return None

    return SkillWatcher(
        watch_dirs,
        on_reload=manager.reload,
        debounce_seconds=debounce_seconds,
        observer_factory=observer_factory,
    )
