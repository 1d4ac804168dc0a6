"""
Ping session driver.

Connects the probe scheduler, the correlation table and the statistics to a
transport, and runs the loop until every probe has been answered or has
timed out.
"""

import logging
import math
import time
from typing import Callable, Optional

import click

from ..core.config import SessionConfig
from ..core.errors import ProbeNotFoundError, TransportError
from ..core.name import Name
from ..transport.base import ReplyKind, Response, Transport
from .correlation import CorrelationTable
from .scheduler import PeriodicTask, ProbeScheduler
from .statistics import Statistics, Summary, format_summary

LOOP_STEP_MS = 10


class PingSession:
    """One ping run against one prefix."""

    def __init__(self, config: SessionConfig, transport: Transport,
                 clock: Callable[[], float] = time.monotonic,
                 wall_clock: Callable[[], float] = time.time,
                 out: Callable[[str], None] = click.echo,
                 sink=None, rng=None, lifetime: Optional[float] = None):
        self.config = config
        self.transport = transport
        self.clock = clock
        self.wall_clock = wall_clock
        self.out = out
        self.sink = sink
        self.logger = logging.getLogger(__name__)

        self.table = CorrelationTable()
        self.statistics = Statistics(config.prefix, clock())
        self.scheduler = ProbeScheduler(
            config, transport, self.table, self.statistics, self.on_reply,
            clock=clock, rng=rng, echo=self.echo, lifetime=lifetime,
        )
        self.task = PeriodicTask(self.scheduler.fire, clock)

    def echo(self, message: str) -> None:
        if self.config.print_timestamp:
            now = self.wall_clock()
            seconds = int(now)
            message = f"{seconds}.{int((now - seconds) * 1_000_000):06d}: {message}"
        self.out(message)

    @property
    def finished(self) -> bool:
        return self.scheduler.exhausted and self.table.pending_count() == 0

    def on_reply(self, kind: ReplyKind, name: Name, response: Optional[Response]) -> None:
        now = self.clock()
        try:
            record = self.table.resolve(name)
        except ProbeNotFoundError:
            self.logger.warning(f"Ignoring {kind.value} for unknown probe {name}")
            return

        if kind is ReplyKind.CONTENT:
            rtt = (now - record.sent_at) * 1000
            self.statistics.on_reply(rtt)
            self.echo(f"content from {self.config.prefix}: number = {record.identifier}"
                      f"\trtt = {rtt:.3f} ms")
        else:
            rtt = None
            self.statistics.on_timeout()
            self.echo(f"timeout from {self.config.prefix}: number = {record.identifier}")

        if self.sink is not None:
            self.sink.write_probe(self.config.prefix, record.identifier, kind.value, rtt)

    def summary(self) -> Summary:
        return self.statistics.summary(self.clock())

    def report(self) -> Summary:
        summary = self.summary()
        self.out(format_summary(summary))
        if self.sink is not None:
            self.sink.write_summary(summary)
        return summary

    def run(self) -> Summary:
        """Ping until done; an unbounded session only ends on interrupt."""
        self.statistics.start = self.clock()
        self.echo(f"CCNPING {self.config.prefix}")

        res = 0
        while res >= 0 and not self.finished:
            timeout_ms = LOOP_STEP_MS
            if not self.scheduler.exhausted:
                self.task.run_pending()
                due = self.task.seconds_until_due()
                if due is not None:
                    timeout_ms = min(timeout_ms, math.ceil(due * 1000))
            res = self.transport.run_loop_step(timeout_ms)

        summary = self.report()
        if res < 0:
            raise TransportError("Lost connection to the forwarder")
        return summary

    def interrupt(self) -> Summary:
        """Stop probing and print the statistics gathered so far."""
        self.task.cancel()
        return self.report()
