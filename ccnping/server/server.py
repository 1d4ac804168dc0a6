"""
Ping server for CCNPing.
Answers Interests named ``<prefix>/ping/<number>`` with a ping ack.
"""

import logging

from ..core.config import ServerConfig
from ..core.errors import TransportError
from ..core.name import Name
from ..transport.base import Transport
from .responder import build_ack
from .validator import is_valid_probe

SERVE_STEP_MS = 100


class PingServer:
    """Registers the ping prefix and answers probes under it."""

    def __init__(self, config: ServerConfig, transport: Transport, sink=None):
        self.config = config
        self.transport = transport
        self.sink = sink
        self.logger = logging.getLogger(__name__)

        self.prefix: Name = config.ping_prefix
        self.served_count = 0
        self._running = False

    def start(self) -> None:
        """Register the ping prefix with the forwarder."""
        res = self.transport.register_responder(self.prefix, self.on_request)
        if res < 0:
            raise TransportError(f"Failed to register prefix {self.prefix} (res == {res})")
        self._running = True
        self.logger.info(f"Serving ping Interests under {self.prefix}")

    def stop(self) -> None:
        self._running = False
        self.logger.info(f"Ping server stopped after serving {self.served_count} Interests")
        if self.sink is not None:
            self.sink.write_served(self.config.prefix, self.served_count)

    def on_request(self, name: Name) -> None:
        if not is_valid_probe(name, self.prefix):
            self.logger.debug(f"Ignoring Interest {name}")
            return

        res = self.transport.publish_response(build_ack(name, self.config.freshness))
        self.served_count += 1
        if res < 0:
            self.logger.warning(f"Failed to answer Interest {name}")

    def serve_forever(self) -> None:
        """Run until :meth:`stop` is called or the transport fails."""
        if not self._running:
            self.start()
        while self._running:
            if self.transport.run_loop_step(SERVE_STEP_MS) < 0:
                self._running = False
                raise TransportError("Lost connection to the forwarder")
