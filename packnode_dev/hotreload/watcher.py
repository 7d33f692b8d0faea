import time
import logging
from pathlib import Path
from typing import Callable, Dict, Iterable, Set

from watchdog.observers import Observer
from watchdog.events import FileSystemEvent, FileSystemEventHandler

log = logging.getLogger(__name__)

IGNORED_DIR_NAMES = {"node_modules", ".git"}


class UIChangeHandler(FileSystemEventHandler):
    """A watchdog event handler that reports changes to watched UI files."""

    def __init__(self, on_change: Callable[[Path], None], watched_files: Set[Path], watched_dirs: Set[Path], debounce_interval: float):
        super().__init__()
        self.on_change = on_change
        self.watched_files = watched_files
        self.watched_dirs = watched_dirs
        self.debounce_interval = debounce_interval
        self.debounce_cache: Dict[Path, float] = {}

    def is_relevant(self, path: Path) -> bool:
        """True if `path` is a watched file or lies inside a watched directory."""
        if IGNORED_DIR_NAMES.intersection(path.parts):
            return False
        if path in self.watched_files:
            return True
        return any(directory in path.parents for directory in self.watched_dirs)

    def _should_process_event(self, path: Path) -> bool:
        """Check if the event should be processed or skipped due to debouncing."""
        now = time.monotonic()
        if self.debounce_cache.get(path, float("-inf")) > now - self.debounce_interval:
            return False
        self.debounce_cache[path] = now
        return True

    def on_any_event(self, event: FileSystemEvent) -> None:
        if event.is_directory or event.event_type not in ("modified", "created", "moved"):
            return
        raw_path = getattr(event, "dest_path", "") if event.event_type == "moved" else event.src_path
        if not raw_path:
            return
        path = Path(raw_path).resolve()
        if not self.is_relevant(path) or not self._should_process_event(path):
            return
        log.info(f"File changed: {path}")
        self.on_change(path)


def start_observer(paths: Iterable[Path], on_change: Callable[[Path], None], debounce_interval: float = 0.5) -> Observer:
    """
    Starts a watchdog observer for the given files and directories.

    Files are watched through their parent directory; directories are watched
    recursively. Paths that do not exist are skipped with a warning.

    :param paths: Files and directories to watch.
    :param on_change: Called from the observer thread with the changed path.
    :param debounce_interval: Minimum seconds between two reports for the same path.
    :return: The running observer. The caller stops and joins it.
    """
    watched_files: Set[Path] = set()
    watched_dirs: Set[Path] = set()
    schedules: Dict[Path, bool] = {}
    for raw_path in paths:
        path = Path(raw_path).resolve()
        if path.is_dir():
            watched_dirs.add(path)
            schedules[path] = True
        elif path.parent.is_dir():
            watched_files.add(path)
            schedules.setdefault(path.parent, False)
        else:
            log.warning(f"Cannot watch '{path}': directory does not exist.")

    handler = UIChangeHandler(on_change, watched_files, watched_dirs, debounce_interval)
    observer = Observer()
    for directory, recursive in schedules.items():
        observer.schedule(handler, str(directory), recursive=recursive)
    observer.start()
    log.info(f"Watching {len(watched_files)} file(s) and {len(watched_dirs)} director(ies) for changes.")
    return observer
