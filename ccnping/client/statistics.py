"""
Round-trip statistics for a ping session.
"""

import math
import threading
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Summary:
    """Snapshot of a session's statistics."""
    prefix: str
    sent: int
    received: int
    elapsed_ms: int
    loss_percent: Optional[float] = None
    min_rtt: Optional[float] = None
    avg_rtt: Optional[float] = None
    max_rtt: Optional[float] = None
    mdev: Optional[float] = None

    @property
    def lost(self) -> int:
        return self.sent - self.received


class Statistics:
    """Running RTT aggregates, in milliseconds.

    Only sums, extremes and counts are kept, so the result does not depend on
    the order in which samples arrive.
    """

    def __init__(self, prefix: str, start: float):
        self.prefix = prefix
        self.start = start
        self.sent = 0
        self.received = 0
        self.min_rtt = math.inf
        self.max_rtt = 0.0
        self.rtt_sum = 0.0
        self.rtt_sum_squares = 0.0
        self._lock = threading.RLock()

    def on_sent(self) -> None:
        with self._lock:
            self.sent += 1

    def on_reply(self, rtt: float) -> None:
        with self._lock:
            self.received += 1
            if rtt < self.min_rtt:
                self.min_rtt = rtt
            if rtt > self.max_rtt:
                self.max_rtt = rtt
            self.rtt_sum += rtt
            self.rtt_sum_squares += rtt * rtt

    def on_timeout(self) -> None:
        """Timeouts carry no RTT; they only show up as missing replies."""

    def summary(self, now: float) -> Summary:
        with self._lock:
            sent, received = self.sent, self.received
            min_rtt, max_rtt = self.min_rtt, self.max_rtt
            rtt_sum, rtt_sum_squares = self.rtt_sum, self.rtt_sum_squares

        elapsed_ms = int((now - self.start) * 1000)
        if sent == 0:
            return Summary(self.prefix, sent, received, elapsed_ms)

        loss = (sent - received) * 100.0 / sent
        if received == 0:
            return Summary(self.prefix, sent, received, elapsed_ms, loss_percent=loss)

        avg = rtt_sum / received
        # rounding can leave a tiny negative variance for identical samples
        mdev = math.sqrt(max(rtt_sum_squares / received - avg * avg, 0.0))
        return Summary(self.prefix, sent, received, elapsed_ms, loss_percent=loss,
                       min_rtt=min_rtt, avg_rtt=avg, max_rtt=max_rtt, mdev=mdev)


def format_summary(summary: Summary) -> str:
    """Render a summary the way ping(8) does."""
    lines = [f"\n--- {summary.prefix} ccnping statistics ---"]
    if summary.sent > 0:
        lines.append(
            f"{summary.sent} Interests transmitted, {summary.received} Data received, "
            f"{summary.loss_percent:.1f}% packet loss, time {summary.elapsed_ms} ms"
        )
    if summary.received > 0:
        lines.append(
            f"rtt min/avg/max/mdev = {summary.min_rtt:.3f}/{summary.avg_rtt:.3f}/"
            f"{summary.max_rtt:.3f}/{summary.mdev:.3f} ms"
        )
    return "\n".join(lines)
