"""
Periodic probe emission for the ping client.
"""

import logging
import math
import random
import time
from typing import Callable, Optional

from ..core.config import SessionConfig
from ..core.errors import TransportError
from ..core.name import Name
from ..transport.base import ReplyCallback, Transport
from .correlation import CorrelationTable
from .statistics import Statistics

# Upper bound of random probe numbers, matching random(3).
RANDOM_NUMBER_LIMIT = 2 ** 31


class PeriodicTask:
    """A task that re-arms itself with the delay its callback returns.

    The callback returns the delay until the next run in microseconds, or
    ``None``/``0`` to stop. Due times advance from the previous due time, so
    the cadence does not drift with callback latency; slots that were missed
    entirely are skipped rather than fired back to back.
    """

    def __init__(self, callback: Callable[[], Optional[int]],
                 clock: Callable[[], float] = time.monotonic, delay: float = 0.0):
        self.callback = callback
        self.clock = clock
        self._due: Optional[float] = clock() + delay

    @property
    def active(self) -> bool:
        return self._due is not None

    def cancel(self) -> None:
        self._due = None

    def seconds_until_due(self) -> Optional[float]:
        if self._due is None:
            return None
        return max(self._due - self.clock(), 0.0)

    def run_pending(self) -> bool:
        """Run the callback if it is due. Returns True if it ran."""
        if self._due is None or self.clock() < self._due:
            return False

        delay_us = self.callback()
        if not delay_us or self._due is None:
            self._due = None
            return True

        step = delay_us / 1_000_000
        now = self.clock()
        slots = math.floor((now - self._due) / step) + 1
        self._due += max(slots, 1) * step
        return True


class ProbeScheduler:
    """Emits one probe per invocation until the configured count is reached."""

    def __init__(self, config: SessionConfig, transport: Transport,
                 table: CorrelationTable, statistics: Statistics,
                 reply_callback: ReplyCallback,
                 clock: Callable[[], float] = time.monotonic,
                 rng: Optional[random.Random] = None,
                 echo: Optional[Callable[[str], None]] = None,
                 lifetime: Optional[float] = None):
        self.config = config
        self.transport = transport
        self.table = table
        self.statistics = statistics
        self.reply_callback = reply_callback
        self.clock = clock
        self.rng = rng or random.Random()
        self.echo = echo
        self.lifetime = lifetime
        self.logger = logging.getLogger(__name__)

        self.prefix: Name = config.ping_prefix
        self.sent = 0
        self._next_number = config.start_number

    @property
    def exhausted(self) -> bool:
        return self.config.total is not None and self.sent >= self.config.total

    def next_number(self) -> int:
        if self._next_number is not None:
            number = self._next_number
            self._next_number += 1
            return number

        # A random number may repeat one still in flight; draw again.
        while True:
            number = self.rng.randrange(RANDOM_NUMBER_LIMIT)
            if self.prefix.append(str(number)) not in self.table:
                return number

    def fire(self) -> Optional[int]:
        """Send the next probe; returns the delay in microseconds or None when done."""
        if self.exhausted:
            return None

        number = self.next_number()
        name = self.prefix.append(str(number))
        self.table.record(name, number, self.clock())

        try:
            res = self.transport.express_request(
                name, self.reply_callback,
                answer_origin_new=not self.config.allow_caching,
                lifetime=self.lifetime,
            )
        except TransportError as e:
            self.logger.debug(f"express_request raised: {e}")
            res = -1

        self.sent += 1
        self.statistics.on_sent()

        if res < 0:
            # Nothing will ever answer or time out this probe.
            self.table.resolve(name)
            message = f"failed to express Interest to {self.config.prefix}: number = {number}"
            self.logger.warning(message)
            if self.echo is not None:
                self.echo(message)
        else:
            self.logger.debug(f"Sent Interest {name}")

        return int(self.config.interval * 1_000_000)
