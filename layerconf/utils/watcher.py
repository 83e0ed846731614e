"""File watching for configuration hot reload."""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Optional

from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEvent,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

from ..errors import WatchSetupError
from ..models.schemas import WatchState

logger = logging.getLogger(__name__)

RELEVANT_EVENTS = frozenset(
    {EVENT_TYPE_MODIFIED, EVENT_TYPE_CREATED, EVENT_TYPE_DELETED, EVENT_TYPE_MOVED}
)

OBSERVER_JOIN_TIMEOUT = 5.0


class ConfigFileHandler(FileSystemEventHandler):
    """Forwards events concerning one file name to its LayerWatch."""

    def __init__(self, watch: "LayerWatch"):
        self.watch = watch

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in RELEVANT_EVENTS:
            return

        paths = [event.src_path, getattr(event, "dest_path", "")]
        if any(self.watch.matches(path) for path in paths if path):
            self.watch.notify(event.event_type)


class LayerWatch:
    """Live file watch bound to a single configuration layer.

    Watches the containing directory (non-recursively) and reacts to
    modification, creation, deletion and rename of the file. Each
    notification restarts a debounce timer; when it expires ``on_change`` is
    called once on the timer thread. After :meth:`close` returns, no further
    ``on_change`` calls start.

    State machine: UNWATCHED -> WATCHING -> RELOADING -> WATCHING, with
    STOPPED reached only through :meth:`close`.
    """

    def __init__(
        self,
        file_path: Path,
        on_change: Callable[[], None],
        debounce_delay: float = 0.05,
    ):
        """Initialize the watch.

        Args:
            file_path: Absolute path of the watched file
            on_change: Called after a debounced burst of events
            debounce_delay: Delay in seconds to coalesce rapid changes
        """
        self.file_path = Path(file_path)
        self._on_change = on_change
        self._debounce_delay = debounce_delay
        self._lock = threading.Lock()
        self._state = WatchState.UNWATCHED
        self._observer: Optional[Observer] = None
        self._timer: Optional[threading.Timer] = None
        self._events_seen = 0
        self._targets = {
            os.path.normcase(os.path.abspath(self.file_path)),
            os.path.normcase(os.path.realpath(self.file_path)),
        }

    @property
    def state(self) -> WatchState:
        with self._lock:
            return self._state

    @property
    def events_seen(self) -> int:
        with self._lock:
            return self._events_seen

    def matches(self, path: str) -> bool:
        """Check whether an event path names the watched file."""
        decoded = os.fsdecode(path)
        if os.path.basename(decoded) != self.file_path.name:
            return False
        return os.path.normcase(os.path.realpath(decoded)) in self._targets or (
            os.path.normcase(os.path.abspath(decoded)) in self._targets
        )

    def start(self) -> None:
        """Start monitoring the file.

        Raises:
            WatchSetupError: If the platform watch cannot be established
        """
        with self._lock:
            if self._state is not WatchState.UNWATCHED:
                raise WatchSetupError(str(self.file_path), f"watch is {self._state.value}")

        directory = self.file_path.parent
        observer = Observer()
        try:
            observer.schedule(ConfigFileHandler(self), str(directory), recursive=False)
            observer.daemon = True
            observer.start()
        except Exception as e:
            self._stop_observer(observer)
            raise WatchSetupError(str(self.file_path), str(e)) from e

        with self._lock:
            self._observer = observer
            self._state = WatchState.WATCHING
        logger.info(f"Watching configuration file {self.file_path}")

    def notify(self, event_type: str = EVENT_TYPE_MODIFIED) -> None:
        """Record a change notification and (re)arm the debounce timer."""
        with self._lock:
            if self._state in (WatchState.STOPPED, WatchState.UNWATCHED):
                return
            self._events_seen += 1
            if self._timer is not None:
                self._timer.cancel()
            timer = threading.Timer(self._debounce_delay, self._fire)
            timer.daemon = True
            self._timer = timer
            timer.start()
        logger.debug(f"{event_type} event for {self.file_path}, reload scheduled")

    def _fire(self) -> None:
        with self._lock:
            if self._state is WatchState.STOPPED:
                return
            self._timer = None
            self._state = WatchState.RELOADING

        try:
            self._on_change()
        except Exception as e:
            logger.error(f"Reload callback for {self.file_path} failed: {e}")
        finally:
            with self._lock:
                if self._state is WatchState.RELOADING:
                    self._state = WatchState.WATCHING

    def close(self) -> None:
        """Release the watch; safe to call more than once."""
        with self._lock:
            if self._state is WatchState.STOPPED:
                return
            self._state = WatchState.STOPPED
            timer, self._timer = self._timer, None
            observer, self._observer = self._observer, None

        if timer is not None:
            timer.cancel()
        if observer is not None:
            self._stop_observer(observer)
        logger.info(f"Stopped watching configuration file {self.file_path}")

    @staticmethod
    def _stop_observer(observer: Observer) -> None:
        observer.stop()
        if observer.is_alive() and observer is not threading.current_thread():
            observer.join(timeout=OBSERVER_JOIN_TIMEOUT)

    def __repr__(self) -> str:
        return f"LayerWatch({str(self.file_path)!r}, state={self.state.value})"
