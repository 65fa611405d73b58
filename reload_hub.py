"""
reload_hub.py - Fan reload signals out to every connected browser.

ReloadHub is a small publish/subscribe primitive: each browser connection
holds a Subscription with its own bounded queue, publish() drops one signal
into every queue without waiting on any socket, and a per-connection task
does the actual network send. Signals are never replayed to late subscribers.

All queue operations happen on the IOLoop thread. The registry itself is
guarded by a lock so subscribe/unsubscribe/snapshot stay consistent.
"""

import logging
import threading
import uuid

from tornado.ioloop import IOLoop
from tornado.queues import Queue, QueueFull
from tornado.websocket import WebSocketClosedError, WebSocketHandler

logger = logging.getLogger(__name__)


class ReloadSignal:
    """Zero-payload reload notification."""

    def __repr__(self):
        return '<ReloadSignal>'


SIGNAL = ReloadSignal()
_CLOSED = object()


class Subscription:

    def __init__(self, backlog):
        self.id = uuid.uuid4().hex
        self.closed = False
        self._queue = Queue(maxsize=backlog)

    def offer(self, signal):
        """Queue `signal` without blocking. False if closed or lagging."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(signal)
        except QueueFull:
            return False
        return True

    async def get(self):
        """Next signal, or None once the subscription is closed."""
        if self.closed and self._queue.empty():
            return None
        item = await self._queue.get()
        if item is _CLOSED:
            return None
        return item

    def close(self):
        if self.closed:
            return
        self.closed = True
        try:
            self._queue.put_nowait(_CLOSED)
        except QueueFull:
            # Nobody is waiting on a full queue; the next get() sees `closed`
            pass


class ReloadHub:

    def __init__(self, backlog=16):
        self.backlog = backlog
        self._lock = threading.Lock()
        self._subscribers = {}

    def __len__(self):
        with self._lock:
            return len(self._subscribers)

    def subscribe(self):
        subscription = Subscription(self.backlog)
        with self._lock:
            # uuid4 collisions are not expected, but keys must stay unique
            while subscription.id in self._subscribers:
                subscription.id = uuid.uuid4().hex
            self._subscribers[subscription.id] = subscription
        return subscription

    def unsubscribe(self, subscription):
        with self._lock:
            self._subscribers.pop(subscription.id, None)
        subscription.close()

    def publish(self, signal=SIGNAL):
        """
        Offer one signal to every current subscriber.

        Returns the number of subscribers that accepted it. With no
        subscribers the signal is simply dropped.
        """
        with self._lock:
            subscribers = list(self._subscribers.values())

        delivered = 0
        for subscription in subscribers:
            if subscription.offer(signal):
                delivered += 1
            elif not subscription.closed:
                logger.warning('Client %s is lagging, reload signal dropped', subscription.id)
        logger.debug('Reload signal offered to %d of %d clients', delivered, len(subscribers))
        return delivered


class ReloadSocketHandler(WebSocketHandler):
    """The /live-server-ws endpoint. Pushes an empty message per reload."""

    def initialize(self, hub):
        self.hub = hub
        self.subscription = None

    def check_origin(self, origin):
        # Pages are opened as localhost, 127.0.0.1 or a LAN address alike
        return True

    def open(self):
        self.subscription = self.hub.subscribe()
        logger.debug('Client %s connected', self.subscription.id)
        IOLoop.current().spawn_callback(self._forward, self.subscription)

    async def _forward(self, subscription):
        while True:
            signal = await subscription.get()
            if signal is None:
                return
            try:
                await self.write_message('')
            except WebSocketClosedError:
                # on_close takes care of the registry
                logger.warning('Failed to send reload to client %s', subscription.id)
                return

    def on_message(self, message):
        pass

    def on_close(self):
        if self.subscription is not None:
            self.hub.unsubscribe(self.subscription)
            logger.debug('Client %s disconnected', self.subscription.id)
