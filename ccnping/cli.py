"""
Command line entry points: ``ccnping`` and ``ccnpingserver``.
"""

import logging
import os
import signal
import sys
from pathlib import Path
from typing import Optional

import click

from .client.session import PingSession
from .core.config import (PING_MIN_INTERVAL, Config, ServerConfig, SessionConfig,
                          is_valid_identifier)
from .core.errors import CCNPingError, ConfigurationError
from .core.logger import get_logger, setup_logging
from .metrics.influx import InfluxSink
from .server.server import PingServer
from .transport.zmq_transport import ZmqTransport

log = get_logger("cli")


def load_config(path: Optional[str], verbose: bool) -> Config:
    """Read the optional configuration file and set up logging from it."""
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError(f"Configuration file {path} not found")
        cfg = Config.from_file(config_path)
    else:
        cfg = Config()
    cfg.validate()

    level = logging.DEBUG if verbose else getattr(logging, cfg.logging.level.upper())
    setup_logging(cfg.logging, level)
    if path:
        log.info(f"Configuration loaded from {path}")
    return cfg


def make_sink(cfg: Config):
    if not cfg.influxdb.enabled:
        return None
    return InfluxSink(cfg.influxdb)


def pick(value, defaults: dict, key: str, fallback=None):
    """Command line value, else configuration file value, else ``fallback``."""
    if value is not None:
        return value
    return defaults.get(key, fallback)


def daemonize() -> None:
    """Detach from the controlling terminal."""
    if os.fork() > 0:
        os._exit(0)
    os.setsid()
    if os.fork() > 0:
        os._exit(0)

    os.chdir("/")
    os.umask(0o027)

    devnull = os.open(os.devnull, os.O_RDWR)
    for fd in (0, 1, 2):
        os.dup2(devnull, fd)
    if devnull > 2:
        os.close(devnull)


class CCNCommand(click.Command):
    """A click command that exits with status 1 on bad usage, like the C tools."""

    def make_context(self, info_name, args, parent=None, **extra):
        try:
            return super().make_context(info_name, args, parent=parent, **extra)
        except click.UsageError as e:
            e.exit_code = 1
            raise


def raise_interrupt(signum, frame):
    log.info(f"Received signal {signum}, shutting down...")
    raise KeyboardInterrupt


def open_server(server_config: ServerConfig, cfg: Config, endpoint: Optional[str], sink=None):
    """Bind the server socket and register the ping prefix."""
    transport = ZmqTransport(endpoint or cfg.transport.endpoint, bind=True,
                             default_lifetime=cfg.transport.lifetime)
    try:
        transport.connect()
        ping_server = PingServer(server_config, transport, sink=sink)
        ping_server.start()
    except CCNPingError:
        transport.close()
        raise
    return transport, ping_server


@click.command(cls=CCNCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.argument('name')
@click.option('--interval', '-i', type=float, default=None,
              help=f'Ping interval in seconds (minimum {PING_MIN_INTERVAL:.2f} second)')
@click.option('--count', '-c', type=int, default=None, help='Total number of pings')
@click.option('--number', '-n', type=int, default=None,
              help='Starting number, incremented by 1 after each Interest')
@click.option('--identifier', '-p', default=None,
              help='Add identifier to the Interest names before the numbers to avoid conflict')
@click.option('--allow-caching', '-a', is_flag=True, default=None,
              help='Allow routers to return ping Data from cache')
@click.option('--timestamp', '-t', is_flag=True, default=None, help='Print timestamp')
@click.option('--endpoint', default=None, help='Forwarder endpoint')
@click.option('--lifetime', type=float, default=None, help='Interest lifetime in seconds')
@click.option('--config', '-C', 'config_file', default=None, help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def ping(name, interval, count, number, identifier, allow_caching, timestamp,
         endpoint, lifetime, config_file, verbose):
    """Ping a CCN name prefix using Interests named NAME/ping/number.

    The numbers in the Interests are randomly generated unless specified.
    """
    try:
        cfg = load_config(config_file, verbose)
        defaults = cfg.client

        interval = pick(interval, defaults, 'interval', 1.0)
        if interval < PING_MIN_INTERVAL:
            raise ConfigurationError(
                f"Ping interval must be at least {PING_MIN_INTERVAL:.2f} second"
            )
        identifier = pick(identifier, defaults, 'identifier')
        if identifier is not None and not is_valid_identifier(identifier):
            raise ConfigurationError(f"Invalid identifier {identifier!r}: letters only")

        session_config = SessionConfig(
            prefix=name,
            interval=interval,
            total=pick(count, defaults, 'count'),
            start_number=pick(number, defaults, 'number'),
            identifier=identifier,
            allow_caching=bool(pick(allow_caching, defaults, 'allow_caching', False)),
            print_timestamp=bool(pick(timestamp, defaults, 'print_timestamp', False)),
        )
        session_config.validate()
        if lifetime is not None and lifetime <= 0:
            raise ConfigurationError("Interest lifetime must be positive")

        transport = ZmqTransport(
            endpoint or cfg.transport.endpoint,
            default_lifetime=lifetime or cfg.transport.lifetime,
        )
        transport.connect()
    except CCNPingError as e:
        click.echo(f"ccnping: {e}", err=True)
        sys.exit(1)

    sink = make_sink(cfg)
    session = PingSession(session_config, transport, sink=sink)

    # The handler only unwinds the loop; the summary is printed once no
    # session code is running.
    signal.signal(signal.SIGINT, raise_interrupt)
    signal.signal(signal.SIGTERM, raise_interrupt)

    try:
        session.run()
    except KeyboardInterrupt:
        session.interrupt()
    except CCNPingError as e:
        log.error(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        transport.close()
        if sink is not None:
            sink.close()


@click.command(cls=CCNCommand, context_settings={"help_option_names": ["-h", "--help"]})
@click.argument('name')
@click.option('--freshness', '-x', type=int, default=None, help='Set FreshnessSeconds')
@click.option('--daemon', '-d', is_flag=True, default=None, help='Run server in daemon mode')
@click.option('--endpoint', default=None, help='Endpoint to listen on')
@click.option('--config', '-C', 'config_file', default=None, help='Configuration file path')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def server(name, freshness, daemon, endpoint, config_file, verbose):
    """Start a CCN ping server answering Interests named NAME/ping/number."""
    sink = None
    try:
        cfg = load_config(config_file, verbose)
        defaults = cfg.server

        freshness = pick(freshness, defaults, 'freshness', 1)
        if freshness <= 0:
            raise ConfigurationError("FreshnessSeconds must be positive")

        server_config = ServerConfig(
            prefix=name,
            freshness=freshness,
            daemon=bool(pick(daemon, defaults, 'daemon', False)),
        )
        server_config.validate()

        if server_config.daemon:
            # Bind and register in the foreground so failures reach the
            # caller. ZeroMQ contexts do not survive fork, so the sockets are
            # closed and opened again in the detached child.
            transport, _ = open_server(server_config, cfg, endpoint)
            transport.close()
            daemonize()
        sink = make_sink(cfg)
        transport, ping_server = open_server(server_config, cfg, endpoint, sink=sink)
    except CCNPingError as e:
        click.echo(f"ccnpingserver: {e}", err=True)
        if sink is not None:
            sink.close()
        sys.exit(1)

    def handle_shutdown(signum, frame):
        log.info(f"Received signal {signum}, shutting down...")
        ping_server.stop()

    signal.signal(signal.SIGINT, handle_shutdown)
    signal.signal(signal.SIGTERM, handle_shutdown)

    try:
        ping_server.serve_forever()
    except CCNPingError as e:
        log.error(f"Fatal error: {e}")
        sys.exit(1)
    finally:
        transport.close()
        if sink is not None:
            sink.close()


if __name__ == '__main__':
    ping()
