"""
ZeroMQ transport for CCNPing.

The ping server binds a ROUTER socket at the forwarder endpoint and clients
connect DEALER sockets to it. Interests and Data travel as JSON objects::

    {"type": "interest", "name": "ccnx:/a/ping/7", "answer_origin_new": true, "lifetime": 4.0}
    {"type": "data", "name": "ccnx:/a/ping/7", "content": "ping ack", "freshness": 1}

Both sides keep their own pending-Interest table: clients to time out
unanswered Interests, servers to remember which peer asked for a name.
"""

import json
import logging
import time
from typing import Callable, Dict, List, Optional, Tuple

import zmq

from ..core.config import DEFAULT_ENDPOINT, DEFAULT_LIFETIME
from ..core.errors import ConfigurationError, TransportConnectionError
from ..core.name import Name
from .base import ReplyCallback, ReplyKind, RequestCallback, Response, Transport


class ZmqTransport(Transport):
    """Transport over a single ZeroMQ socket."""

    def __init__(self, endpoint: str = DEFAULT_ENDPOINT, bind: bool = False,
                 default_lifetime: float = DEFAULT_LIFETIME,
                 clock: Callable[[], float] = time.monotonic,
                 context: Optional[zmq.Context] = None):
        self.endpoint = endpoint
        self.bind = bind
        self.default_lifetime = default_lifetime
        self.clock = clock
        self.logger = logging.getLogger(__name__)

        self._context = context
        self._own_context = context is None
        self._socket = None
        self._poller = None

        # client side: Interest name -> [(callback, deadline)]
        self._pending: Dict[Name, List[Tuple[ReplyCallback, float]]] = {}
        # server side: Interest name -> [(peer identity, deadline)]
        self._requesters: Dict[Name, List[Tuple[bytes, float]]] = {}
        self._responders: List[Tuple[Name, RequestCallback]] = []

    def connect(self) -> None:
        """Bind or connect the socket."""
        if self._socket is not None:
            return
        try:
            if self._context is None:
                self._context = zmq.Context()
            self._socket = self._context.socket(zmq.ROUTER if self.bind else zmq.DEALER)
            self._socket.setsockopt(zmq.LINGER, 0)
            if self.bind:
                self._socket.bind(self.endpoint)
            else:
                self._socket.connect(self.endpoint)
        except zmq.ZMQError as e:
            self.close()
            raise TransportConnectionError(
                f"Could not {'bind' if self.bind else 'connect'} to {self.endpoint}: {e}"
            )

        self._poller = zmq.Poller()
        self._poller.register(self._socket, zmq.POLLIN)
        self.logger.info(f"{'Listening on' if self.bind else 'Connected to'} {self.endpoint}")

    def express_request(self, name: Name, callback: ReplyCallback,
                        answer_origin_new: bool = False,
                        lifetime: Optional[float] = None) -> int:
        if self._socket is None or self.bind:
            return -1
        lifetime = lifetime or self.default_lifetime
        message = {
            "type": "interest",
            "name": name.to_uri(),
            "answer_origin_new": answer_origin_new,
            "lifetime": lifetime,
        }
        try:
            self._socket.send(json.dumps(message).encode("utf-8"), zmq.NOBLOCK)
        except zmq.ZMQError as e:
            self.logger.debug(f"Failed to send Interest {name}: {e}")
            return -1

        self._pending.setdefault(name, []).append((callback, self.clock() + lifetime))
        return 0

    def register_responder(self, prefix: Name, callback: RequestCallback) -> int:
        if self._socket is None or not self.bind:
            return -1
        self._responders.append((prefix, callback))
        return 0

    def publish_response(self, response: Response) -> int:
        if self._socket is None:
            return -1
        message = {
            "type": "data",
            "name": response.name.to_uri(),
            "content": response.content.decode("utf-8", errors="replace"),
            "freshness": response.freshness,
        }
        payload = json.dumps(message).encode("utf-8")

        try:
            for identity, _ in self._requesters.pop(response.name, []):
                self._socket.send_multipart([identity, payload], zmq.NOBLOCK)
        except zmq.ZMQError as e:
            self.logger.error(f"Failed to send Data {response.name}: {e}")
            return -1
        return 0

    def run_loop_step(self, timeout_ms: int) -> int:
        if self._socket is None:
            return -1
        try:
            events = dict(self._poller.poll(timeout_ms))
            if self._socket in events:
                self._drain()
        except zmq.ZMQError as e:
            self.logger.error(f"Transport failure: {e}")
            return -1

        self._expire(self.clock())
        return 0

    def _drain(self) -> None:
        while True:
            try:
                frames = self._socket.recv_multipart(zmq.NOBLOCK)
            except zmq.Again:
                return
            identity = frames[0] if self.bind else None
            try:
                message = json.loads(frames[-1].decode("utf-8"))
                name = Name.from_uri(message["name"])
            except (ValueError, KeyError, TypeError, ConfigurationError) as e:
                self.logger.warning(f"Discarding malformed message: {e}")
                continue

            kind = message.get("type")
            if kind == "interest" and self.bind:
                self._on_interest(identity, name, message)
            elif kind == "data" and not self.bind:
                self._on_data(name, message)
            else:
                self.logger.debug(f"Ignoring unexpected {kind!r} message for {name}")

    def _on_interest(self, identity: bytes, name: Name, message: dict) -> None:
        matches = [cb for prefix, cb in self._responders if prefix.is_prefix_of(name)]
        if not matches:
            return
        lifetime = message.get("lifetime") or self.default_lifetime
        self._requesters.setdefault(name, []).append((identity, self.clock() + lifetime))
        for callback in matches:
            callback(name)

    def _on_data(self, name: Name, message: dict) -> None:
        entries = self._pending.pop(name, None)
        if not entries:
            self.logger.debug(f"Unsolicited Data {name}")
            return
        response = Response(
            name=name,
            content=str(message.get("content", "")).encode("utf-8"),
            freshness=message.get("freshness"),
        )
        for callback, _ in entries:
            callback(ReplyKind.CONTENT, name, response)

    def _expire(self, now: float) -> None:
        for name in list(self._requesters):
            alive = [(i, d) for i, d in self._requesters[name] if d > now]
            if alive:
                self._requesters[name] = alive
            else:
                del self._requesters[name]

        for name in list(self._pending):
            entries = self._pending[name]
            expired = [cb for cb, d in entries if d <= now]
            if not expired:
                continue
            alive = [(cb, d) for cb, d in entries if d > now]
            if alive:
                self._pending[name] = alive
            else:
                del self._pending[name]
            for callback in expired:
                callback(ReplyKind.TIMEOUT, name, None)

    def close(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None
        if self._own_context and self._context is not None:
            self._context.term()
            self._context = None
