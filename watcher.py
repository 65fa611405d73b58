"""
watcher.py - Turn filesystem activity under the served root into reloads.

watchdog delivers raw events on its observer thread. They are classified
there, handed to the IOLoop, and a pump coroutine coalesces each burst into
a single reload signal: the window restarts on every event and the signal
goes out once the tree has been quiet for `delay` seconds.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum

from tornado import gen
from tornado.ioloop import IOLoop
from tornado.queues import Queue
from watchdog.events import (
    EVENT_TYPE_CREATED,
    EVENT_TYPE_DELETED,
    EVENT_TYPE_MODIFIED,
    EVENT_TYPE_MOVED,
    FileSystemEventHandler,
)
from watchdog.observers import Observer

logger = logging.getLogger(__name__)


DEBOUNCE_DELAY = 0.1


class WatcherStartFailure(RuntimeError):
    pass


class ChangeKind(Enum):
    CREATED = 'CREATE'
    MODIFIED = 'UPDATE'
    REMOVED = 'REMOVE'
    RENAMED = 'RENAME'


@dataclass(frozen=True)
class ChangeEvent:
    kind: ChangeKind
    paths: tuple
    time: float = field(default_factory=time.time)


def classify_event(event):
    """
    ChangeEvent for a watchdog event, or None when it is not worth a reload.

    Directory mtime updates and open/close notifications are noise: the
    change that caused them is reported on its own.
    """
    event_type = event.event_type
    src = os.fsdecode(event.src_path)

    if event_type == EVENT_TYPE_CREATED:
        return ChangeEvent(ChangeKind.CREATED, (src,))
    if event_type == EVENT_TYPE_MODIFIED:
        if event.is_directory:
            return None
        return ChangeEvent(ChangeKind.MODIFIED, (src,))
    if event_type == EVENT_TYPE_DELETED:
        return ChangeEvent(ChangeKind.REMOVED, (src,))
    if event_type == EVENT_TYPE_MOVED:
        return ChangeEvent(ChangeKind.RENAMED, (src, os.fsdecode(event.dest_path)))
    return None


class _EventForwarder(FileSystemEventHandler):
    """Runs on the observer thread; only talks to the IOLoop via add_callback."""

    def __init__(self, loop, queue):
        super().__init__()
        self.loop = loop
        self.queue = queue

    def on_any_event(self, event):
        try:
            change = classify_event(event)
        except Exception:
            logger.exception('Skipping unreadable watcher event %r', event)
            return
        if change is not None:
            self.loop.add_callback(self.queue.put_nowait, change)


class ChangeWatcher:

    def __init__(self, root, hub, delay=DEBOUNCE_DELAY):
        self.root = root
        self.hub = hub
        self.delay = delay
        self.events = Queue()
        self.observer = None

    def start(self):
        """Subscribe to the root and start the pump on the current IOLoop."""
        loop = IOLoop.current()
        observer = Observer()
        try:
            observer.schedule(_EventForwarder(loop, self.events), self.root, recursive=True)
            observer.start()
        except OSError as exc:
            raise WatcherStartFailure(f'Cannot watch {self.root}: {exc}') from exc

        self.observer = observer
        loop.spawn_callback(self.run)
        logger.info('Watching %s for changes', self.root)

    def stop(self):
        if self.observer is not None:
            self.observer.stop()
            self.observer.join()
            self.observer = None

    async def next_batch(self):
        """Wait for an event, then collect until `delay` passes without one."""
        batch = [await self.events.get()]
        while True:
            try:
                change = await self.events.get(timeout=timedelta(seconds=self.delay))
            except gen.TimeoutError:
                return batch
            batch.append(change)

    async def run(self):
        while True:
            batch = await self.next_batch()
            try:
                for change in batch:
                    logger.debug('[%s] %s', change.kind.value, ' -> '.join(self._relative(p) for p in change.paths))
                delivered = self.hub.publish()
                logger.info('%d change(s) detected, reloading %d client(s)', len(batch), delivered)
            except Exception:
                logger.exception('Failed to broadcast reload for %d change(s)', len(batch))

    def _relative(self, path):
        try:
            return os.path.relpath(path, self.root)
        except ValueError:
            return path
