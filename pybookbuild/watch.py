"""Rebuild on file changes and serve the output directory for preview."""

import logging
import threading
import time
from fnmatch import fnmatchcase
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path, PurePosixPath

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from .errors import ConfigError

logger = logging.getLogger(__name__)

_GLOB_CHARS = set("*?[")


def relative_path(config, path):
    """Return ``path`` as a project-relative POSIX string, or None."""
    try:
        rel = Path(path).resolve().relative_to(config.root)
    except ValueError:
        return None
    return rel.as_posix()


def watch_directories(config):
    """Return (directory, recursive) pairs covering every watch rule."""
    found = {}
    for rule in config.watch_rules:
        parts = []
        for part in PurePosixPath(rule.pattern).parts:
            if _GLOB_CHARS & set(part):
                break
            parts.append(part)
        has_glob = len(parts) < len(PurePosixPath(rule.pattern).parts)
        if not has_glob:
            # a literal file: watch its directory only
            parts = parts[:-1]
        directory = config.root.joinpath(*parts)
        # fnmatch lets "*" cross "/", so a glob at the root needs a deep watch
        recursive = bool(parts) or has_glob
        found[directory] = found.get(directory, False) or recursive
    result = []
    for directory, recursive in found.items():
        if directory.is_dir():
            result.append((directory, recursive))
        else:
            logger.warning("not watching %s: no such directory", directory)
    return result


class WatchDriver:
    """Coalesce change notifications and run the matching tasks serially.

    Every notification restarts a debounce timer; when it fires, the pending
    tasks run once each, in the order their rules are declared. A single
    build lock keeps two rebuilds from writing the same outputs at once.
    """

    def __init__(self, config, registry, timer_factory=threading.Timer):
        unknown = [r.task for r in config.watch_rules if r.task not in registry]
        if unknown:
            raise ConfigError(
                f"Watch rules name unknown tasks: {', '.join(unknown)}"
            )
        self.config = config
        self.registry = registry
        self.timer_factory = timer_factory
        self._pending = {}
        self._pending_lock = threading.Lock()
        self._build_lock = threading.Lock()
        self._timer = None

    def _matches(self, path):
        """(rule index, task) for the first matching rule of each task."""
        rel = relative_path(self.config, path)
        if rel is None:
            return []
        found = {}
        for index, rule in enumerate(self.config.watch_rules):
            if fnmatchcase(rel, rule.pattern):
                found.setdefault(rule.task, index)
        return [(index, task) for task, index in found.items()]

    def match(self, path):
        """Tasks triggered by ``path``, in rule declaration order."""
        return [task for _, task in self._matches(path)]

    def notify(self, path):
        matches = self._matches(path)
        if not matches:
            return []
        logger.info("change detected: %s", relative_path(self.config, path))
        with self._pending_lock:
            for index, name in matches:
                self._pending[name] = min(index, self._pending.get(name, index))
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self.timer_factory(self.config.debounce, self.flush)
            self._timer.daemon = True
            self._timer.start()
        return [task for _, task in matches]

    def pending(self):
        with self._pending_lock:
            return sorted(self._pending, key=self._pending.__getitem__)

    def flush(self):
        """Run every pending task now; returns (task, succeeded) pairs."""
        with self._build_lock:
            with self._pending_lock:
                names = sorted(self._pending, key=self._pending.__getitem__)
                self._pending.clear()
                self._timer = None
            results = []
            for name in names:
                results.append((name, self.registry.run(name)))
            return results

    def cancel(self):
        with self._pending_lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending.clear()


class ChangeHandler(FileSystemEventHandler):
    def __init__(self, driver):
        self.driver = driver
        config = driver.config
        output = relative_path(config, config.path(config.output_dir))
        self.output_dir = None if output is None else output + "/"

    def handle(self, path, is_directory):
        if is_directory:
            return
        rel = relative_path(self.driver.config, path)
        if rel is None or (
            self.output_dir is not None
            and (rel + "/").startswith(self.output_dir)
        ):
            return
        self.driver.notify(path)

    def on_modified(self, event):
        self.handle(event.src_path, event.is_directory)

    def on_created(self, event):
        self.handle(event.src_path, event.is_directory)

    def on_moved(self, event):
        self.handle(event.dest_path, event.is_directory)


class PreviewHandler(SimpleHTTPRequestHandler):
    def log_message(self, format, *args):
        logger.debug("%s - %s", self.address_string(), format % args)


def start_server(config, server_factory=ThreadingHTTPServer):
    """Serve ``config.output_dir`` on localhost from a daemon thread."""
    output = config.path(config.output_dir)
    output.mkdir(parents=True, exist_ok=True)
    handler = partial(PreviewHandler, directory=str(output))
    try:
        httpd = server_factory(("127.0.0.1", config.port), handler)
    except OSError as exc:
        raise ConfigError(
            f"Could not start preview server on port {config.port}: {exc}"
        ) from exc
    threading.Thread(target=httpd.serve_forever, daemon=True).start()
    logger.info(
        "serving %s at http://localhost:%d/%s.html",
        config.output_dir,
        config.port,
        config.name,
    )
    return httpd


def serve_and_watch(
    config,
    registry,
    observer_factory=Observer,
    server_factory=ThreadingHTTPServer,
):
    """Serve the output directory and rebuild until interrupted."""
    driver = WatchDriver(config, registry)
    httpd = start_server(config, server_factory)
    observer = observer_factory()
    handler = ChangeHandler(driver)
    for directory, recursive in watch_directories(config):
        logger.info("watching %s", directory)
        observer.schedule(handler, str(directory), recursive=recursive)
    observer.start()
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        logger.info("stopping preview")
    finally:
        observer.stop()
        observer.join()
        driver.cancel()
        httpd.shutdown()
        httpd.server_close()
