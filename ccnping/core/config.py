"""
Configuration management for CCNPing.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import toml

from .errors import ConfigurationError
from .name import Name

PING_COMPONENT = "ping"
PING_MIN_INTERVAL = 0.1
DEFAULT_ENDPOINT = "tcp://127.0.0.1:9695"
DEFAULT_LIFETIME = 4.0

logger = logging.getLogger(__name__)


def is_valid_identifier(identifier: str) -> bool:
    """Identifier tags are non-empty and purely ASCII letters."""
    return bool(identifier) and all(
        "A" <= ch <= "Z" or "a" <= ch <= "z" for ch in identifier
    )


@dataclass(frozen=True)
class SessionConfig:
    """Ping client settings, fixed for the lifetime of a session."""
    prefix: str
    interval: float = 1.0
    total: Optional[int] = None
    start_number: Optional[int] = None
    identifier: Optional[str] = None
    allow_caching: bool = False
    print_timestamp: bool = False

    def __post_init__(self):
        if self.interval < PING_MIN_INTERVAL:
            logger.warning(
                f"Ping interval {self.interval}s below minimum, using {PING_MIN_INTERVAL}s"
            )
            object.__setattr__(self, "interval", PING_MIN_INTERVAL)

    @property
    def name(self) -> Name:
        return Name.from_uri(self.prefix)

    @property
    def ping_prefix(self) -> Name:
        """Name prefix of every probe: ``<prefix>/ping[/<identifier>]``."""
        name = self.name.append(PING_COMPONENT)
        if self.identifier:
            name = name.append(self.identifier)
        return name

    def validate(self) -> bool:
        """Validate configuration values."""
        Name.from_uri(self.prefix)
        if self.total is not None and self.total <= 0:
            raise ConfigurationError("Ping count must be positive")
        if self.start_number is not None and self.start_number < 0:
            raise ConfigurationError("Starting number must not be negative")
        if self.identifier is not None and not is_valid_identifier(self.identifier):
            raise ConfigurationError(
                f"Identifier {self.identifier!r} must consist of letters only"
            )
        return True


@dataclass(frozen=True)
class ServerConfig:
    """Ping server settings."""
    prefix: str
    freshness: int = 1
    daemon: bool = False

    @property
    def ping_prefix(self) -> Name:
        return Name.from_uri(self.prefix).append(PING_COMPONENT)

    def validate(self) -> bool:
        Name.from_uri(self.prefix)
        return True


@dataclass
class TransportConfig:
    """Transport configuration settings."""
    endpoint: str = DEFAULT_ENDPOINT
    lifetime: float = DEFAULT_LIFETIME


@dataclass
class LoggingConfig:
    """Logging configuration settings."""
    level: str = "WARNING"
    file: str = ""
    max_size: int = 10
    backup_count: int = 3


@dataclass
class InfluxDBConfig:
    """InfluxDB configuration settings."""
    enabled: bool = False
    url: str = "http://localhost:8086"
    bucket: str = "ccnping"
    organization: str = ""
    token: str = ""


@dataclass
class Config:
    """Main configuration class.

    ``client`` and ``server`` hold option defaults read from the file; the
    command line supplies the prefix and may override any of them.
    """
    client: dict = field(default_factory=dict)
    server: dict = field(default_factory=dict)
    transport: TransportConfig = field(default_factory=TransportConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    influxdb: InfluxDBConfig = field(default_factory=InfluxDBConfig)

    @classmethod
    def from_file(cls, config_path: Path) -> 'Config':
        """Load configuration from TOML file."""
        try:
            config_data = toml.load(config_path)
        except (OSError, toml.TomlDecodeError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}")

        try:
            transport = TransportConfig(**config_data.get('transport', {}))
            logging_config = LoggingConfig(**config_data.get('logging', {}))
            influxdb = InfluxDBConfig(**config_data.get('influxdb', {}))
        except TypeError as e:
            raise ConfigurationError(f"Unknown configuration key: {e}")

        return cls(
            client=dict(config_data.get('client', {})),
            server=dict(config_data.get('server', {})),
            transport=transport,
            logging=logging_config,
            influxdb=influxdb
        )

    def validate(self) -> bool:
        """Validate configuration values."""
        if self.transport.lifetime <= 0:
            raise ConfigurationError("Interest lifetime must be positive")

        if not self.transport.endpoint:
            raise ConfigurationError("Transport endpoint must not be empty")

        if not isinstance(logging.getLevelName(self.logging.level.upper()), int):
            raise ConfigurationError(f"Unknown log level {self.logging.level!r}")

        if self.influxdb.enabled and not self.influxdb.url:
            raise ConfigurationError("InfluxDB export enabled without a URL")

        return True
