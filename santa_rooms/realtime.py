"""Realtime room subscriptions over Socket.IO.

The server groups sockets by room join code.  A consumer asks to be put in a
room with ``groups:join``, receives ``group:event`` messages while it is
there, and leaves with ``groups:leave``:

- outbound ``groups:join``  ``{"code": "<JOIN_CODE>"}``
- outbound ``groups:leave`` ``{"code": "<JOIN_CODE>"}``
- inbound  ``group:event``  ``{"event": "<name>", ...}``

``group:deleted`` is the only event name with a fixed meaning; every other
name just means "something changed, fetch the room again".
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional

import socketio

from .codes import normalize_code

logger = logging.getLogger('santa.realtime')

JOIN_EVENT = 'groups:join'
LEAVE_EVENT = 'groups:leave'
GROUP_EVENT = 'group:event'
GROUP_DELETED = 'group:deleted'

STATE_IDLE = 'idle'
STATE_JOINED = 'joined'

EventHandler = Callable[[Dict[str, Any]], None]


class RealtimeGateway:
    """One Socket.IO connection shared by every room subscription.

    A single ``group:event`` handler is registered on the client; it fans
    each message out to the listeners currently attached.
    """

    def __init__(self, url: Optional[str] = None,
                 client: Optional[socketio.Client] = None) -> None:
        self._url = url
        self._sio = client if client is not None else socketio.Client(
            logger=False,
            engineio_logger=False,
        )
        self._listeners: List[EventHandler] = []
        self._listeners_lock = threading.Lock()
        self._sio.on(GROUP_EVENT, self._dispatch)

    @property
    def connected(self) -> bool:
        return bool(getattr(self._sio, 'connected', False))

    def connect(self) -> None:
        if self.connected:
            return
        if not self._url:
            raise ValueError("No Socket.IO URL configured")
        logger.info("Connecting to realtime gateway at %s", self._url)
        self._sio.connect(self._url)

    def disconnect(self) -> None:
        if self.connected:
            self._sio.disconnect()

    def wait(self) -> None:
        """Block until the connection is closed."""
        self._sio.wait()

    def emit(self, event: str, payload: Dict[str, Any]) -> None:
        # A closed connection has already dropped the server-side room.
        if not self.connected:
            logger.debug("Not connected; dropping %s %s", event, payload)
            return
        logger.debug("emit %s %s", event, payload)
        self._sio.emit(event, payload)

    def add_listener(self, listener: EventHandler) -> None:
        with self._listeners_lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: EventHandler) -> None:
        with self._listeners_lock:
            try:
                self._listeners.remove(listener)
            except ValueError:
                pass

    def _dispatch(self, message: Any) -> None:
        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(message)
            except Exception:
                logger.exception("Realtime listener failed for %r", message)


class GroupSubscription:
    """Keeps one consumer in at most one realtime room at a time.

    ``idle`` → :meth:`acquire` → ``joined`` → :meth:`release` → ``idle``.
    Acquiring a different code releases the current room first.  The handler
    is detached before ``groups:leave`` is sent, so nothing is delivered once
    the subscription is idle.

    Messages are forwarded verbatim, except those tagged with another room's
    ``code``/``joinCode``: subscriptions share one gateway connection, and a
    ``group:deleted`` for another room must not purge this one.

    Usable as a context manager; leaving the ``with`` block releases the room
    on every exit path.
    """

    def __init__(self, gateway: RealtimeGateway, on_event: EventHandler) -> None:
        self._gateway = gateway
        self._on_event = on_event
        self.code: Optional[str] = None

    @property
    def state(self) -> str:
        return STATE_JOINED if self.code else STATE_IDLE

    def acquire(self, code) -> None:
        normalized = normalize_code(code)
        if normalized == self.code:
            return
        self.release()
        if not normalized:
            return
        self._gateway.emit(JOIN_EVENT, {'code': normalized})
        self.code = normalized
        self._gateway.add_listener(self._forward)
        logger.info("Joined realtime room %s", normalized)

    def release(self) -> None:
        code = self.code
        if not code:
            return
        self.code = None
        self._gateway.remove_listener(self._forward)
        try:
            self._gateway.emit(LEAVE_EVENT, {'code': code})
        finally:
            logger.info("Left realtime room %s", code)

    def _forward(self, message: Any) -> None:
        if not self.code or not isinstance(message, dict) or not message.get('event'):
            return
        # Messages tagged for another room belong to another subscription.
        target = message.get('code') or message.get('joinCode')
        if target and normalize_code(target) != self.code:
            return
        self._on_event(message)

    def __enter__(self) -> 'GroupSubscription':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.release()


@contextmanager
def subscribe(gateway: RealtimeGateway, code, on_event: EventHandler) -> Iterator[GroupSubscription]:
    """Join *code*'s realtime room for the duration of the ``with`` block."""
    subscription = GroupSubscription(gateway, on_event)
    try:
        subscription.acquire(code)
        yield subscription
    finally:
        subscription.release()
