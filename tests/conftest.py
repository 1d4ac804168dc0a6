import pytest

from ccnping.core.config import ServerConfig, SessionConfig
from ccnping.client.session import PingSession
from ccnping.server.server import PingServer
from ccnping.transport.loopback import LoopbackForwarder, LoopbackTransport, VirtualClock

PREFIX = "ccnx:/example/site"


class RecordingSink:
    """Stands in for the InfluxDB sink."""

    def __init__(self):
        self.probes = []
        self.summaries = []
        self.served = []

    def write_probe(self, prefix, number, status, rtt_ms):
        self.probes.append((prefix, number, status, rtt_ms))

    def write_summary(self, summary):
        self.summaries.append(summary)

    def write_served(self, prefix, served):
        self.served.append((prefix, served))


@pytest.fixture
def clock():
    return VirtualClock(start=1000.0)


@pytest.fixture
def forwarder(clock):
    return LoopbackForwarder(clock=clock, delay=0.001)


@pytest.fixture
def server(forwarder):
    ping_server = PingServer(ServerConfig(PREFIX), LoopbackTransport(forwarder))
    ping_server.start()
    return ping_server


@pytest.fixture
def make_session(forwarder, clock):
    """Build a session on a fresh client face; returns (session, face, output lines)."""

    def _make(sink=None, rng=None, face=None, **options):
        face = face or LoopbackTransport(forwarder)
        lines = []
        session = PingSession(
            SessionConfig(PREFIX, **options), face,
            clock=clock, wall_clock=lambda: 1318000000.25,
            out=lines.append, sink=sink, rng=rng,
        )
        return session, face, lines

    return _make
