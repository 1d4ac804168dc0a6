"""
In-process transport for CCNPing.

A :class:`LoopbackForwarder` plays the role of the local forwarder for any
number of :class:`LoopbackTransport` faces living in the same process. It can
run on the real clock or on a :class:`VirtualClock`, in which case waiting
inside ``run_loop_step`` advances virtual time instead of sleeping.
"""

import heapq
import itertools
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ..core.config import DEFAULT_LIFETIME
from ..core.name import Name
from .base import ReplyCallback, ReplyKind, RequestCallback, Response, Transport


class VirtualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.advance(seconds)

    def advance(self, seconds: float) -> None:
        if seconds > 0:
            self.now += seconds


@dataclass
class _PendingInterest:
    callback: ReplyCallback
    deadline: float


class LoopbackForwarder:
    """Routes Interests to registered responders and Data back to requesters.

    ``delay`` is the one-way latency in seconds. ``drop`` decides, per
    Interest name, whether the Interest is lost on the way to the responder;
    a dropped Interest stays pending and eventually times out.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic,
                 sleep: Optional[Callable[[float], None]] = None,
                 delay: float = 0.0,
                 drop: Optional[Callable[[Name], bool]] = None):
        self.clock = clock
        self.sleep = sleep or getattr(clock, "sleep", time.sleep)
        self.delay = delay
        self.drop = drop
        self.logger = logging.getLogger(__name__)

        self._seq = itertools.count()
        self._events: List[Tuple[float, int, Callable[[], None]]] = []
        self._pit: Dict[Name, List[_PendingInterest]] = {}
        self._responders: List[Tuple[Name, RequestCallback]] = []

    def schedule(self, delay: float, action: Callable[[], None]) -> None:
        heapq.heappush(self._events, (self.clock() + delay, next(self._seq), action))

    def next_due(self) -> Optional[float]:
        candidates = [entry.deadline for entries in self._pit.values() for entry in entries]
        if self._events:
            candidates.append(self._events[0][0])
        return min(candidates) if candidates else None

    def add_responder(self, prefix: Name, callback: RequestCallback) -> None:
        self._responders.append((prefix, callback))

    def forward_interest(self, name: Name, callback: ReplyCallback,
                         lifetime: float) -> None:
        entry = _PendingInterest(callback, self.clock() + lifetime)
        self._pit.setdefault(name, []).append(entry)

        if self.drop is not None and self.drop(name):
            self.logger.debug(f"Dropping Interest {name}")
            return
        self.schedule(self.delay, lambda: self._deliver_interest(name))

    def forward_data(self, response: Response) -> None:
        self.schedule(self.delay, lambda: self._deliver_data(response))

    def _deliver_interest(self, name: Name) -> None:
        if name not in self._pit:
            return
        for prefix, callback in list(self._responders):
            if prefix.is_prefix_of(name):
                callback(name)

    def _deliver_data(self, response: Response) -> None:
        entries = self._pit.pop(response.name, [])
        if not entries:
            self.logger.debug(f"Unsolicited Data {response.name}")
        for entry in entries:
            entry.callback(ReplyKind.CONTENT, response.name, response)

    def _expire(self, now: float) -> None:
        for name in list(self._pit):
            entries = self._pit[name]
            expired = [e for e in entries if e.deadline <= now]
            if not expired:
                continue
            remaining = [e for e in entries if e.deadline > now]
            if remaining:
                self._pit[name] = remaining
            else:
                del self._pit[name]
            for entry in expired:
                entry.callback(ReplyKind.TIMEOUT, name, None)

    def process(self) -> None:
        """Dispatch every event and expiry that is due."""
        now = self.clock()
        while self._events and self._events[0][0] <= now:
            _, _, action = heapq.heappop(self._events)
            action()
        self._expire(now)


class LoopbackTransport(Transport):
    """A face on a :class:`LoopbackForwarder`.

    Every expressed Interest is remembered in ``expressed`` together with its
    answer-origin-new flag; the loopback forwarder has no content store, so
    the flag has no effect on delivery.
    """

    def __init__(self, forwarder: LoopbackForwarder,
                 default_lifetime: float = DEFAULT_LIFETIME):
        self.forwarder = forwarder
        self.default_lifetime = default_lifetime
        self.expressed: List[Tuple[Name, bool]] = []
        self.published: List[Response] = []
        self._closed = False

    def express_request(self, name: Name, callback: ReplyCallback,
                        answer_origin_new: bool = False,
                        lifetime: Optional[float] = None) -> int:
        if self._closed:
            return -1
        self.expressed.append((name, answer_origin_new))
        self.forwarder.forward_interest(name, callback, lifetime or self.default_lifetime)
        return 0

    def register_responder(self, prefix: Name, callback: RequestCallback) -> int:
        if self._closed:
            return -1
        self.forwarder.add_responder(prefix, callback)
        return 0

    def publish_response(self, response: Response) -> int:
        if self._closed:
            return -1
        self.published.append(response)
        self.forwarder.forward_data(response)
        return 0

    def run_loop_step(self, timeout_ms: int) -> int:
        if self._closed:
            return -1
        self.forwarder.process()

        wait = max(timeout_ms, 0) / 1000.0
        due = self.forwarder.next_due()
        if due is not None:
            wait = min(wait, max(due - self.forwarder.clock(), 0.0))
        self.forwarder.sleep(wait)

        self.forwarder.process()
        return 0

    def close(self) -> None:
        self._closed = True
