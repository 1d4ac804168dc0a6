# tests/test_config.py
import pytest

from ccnping.core.config import (PING_MIN_INTERVAL, Config, ServerConfig, SessionConfig,
                                 is_valid_identifier)
from ccnping.core.errors import ConfigurationError
from ccnping.core.name import Name

CONFIG_TOML = """
[client]
interval = 0.5
count = 3

[transport]
endpoint = "tcp://10.0.0.1:9695"
lifetime = 2.0

[logging]
level = "DEBUG"

[influxdb]
enabled = true
url = "http://influx:8086"
bucket = "pings"
"""


def test_from_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(CONFIG_TOML)

    cfg = Config.from_file(path)

    assert cfg.client == {"interval": 0.5, "count": 3}
    assert cfg.server == {}
    assert cfg.transport.endpoint == "tcp://10.0.0.1:9695"
    assert cfg.transport.lifetime == 2.0
    assert cfg.logging.level == "DEBUG"
    assert cfg.logging.backup_count == 3
    assert cfg.influxdb.enabled
    assert cfg.influxdb.bucket == "pings"
    assert cfg.validate()


def test_unknown_key(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[transport]\nport = 9695\n")

    with pytest.raises(ConfigurationError):
        Config.from_file(path)


def test_unreadable_file(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[transport\n")

    with pytest.raises(ConfigurationError):
        Config.from_file(path)
    with pytest.raises(ConfigurationError):
        Config.from_file(tmp_path / "missing.toml")


def test_validate_rejects_bad_values():
    cfg = Config()
    cfg.transport.lifetime = 0
    with pytest.raises(ConfigurationError):
        cfg.validate()

    cfg = Config()
    cfg.logging.level = "LOUD"
    with pytest.raises(ConfigurationError):
        cfg.validate()


def test_interval_is_clamped():
    assert SessionConfig("ccnx:/a", interval=0.01).interval == PING_MIN_INTERVAL
    assert SessionConfig("ccnx:/a", interval=2.5).interval == 2.5


def test_ping_prefix():
    assert SessionConfig("ccnx:/a").ping_prefix == Name(["a", "ping"])
    assert SessionConfig("ccnx:/a", identifier="lab").ping_prefix == Name(["a", "ping", "lab"])
    assert ServerConfig("ccnx:/a").ping_prefix == Name(["a", "ping"])


@pytest.mark.parametrize("options", [
    {"total": 0},
    {"start_number": -1},
    {"identifier": "lab1"},
    {"identifier": ""},
])
def test_session_validate(options):
    with pytest.raises(ConfigurationError):
        SessionConfig("ccnx:/a", **options).validate()


def test_bad_prefix():
    with pytest.raises(ConfigurationError):
        SessionConfig("not a uri").validate()
    with pytest.raises(ConfigurationError):
        ServerConfig("not a uri").validate()


def test_is_valid_identifier():
    assert is_valid_identifier("abcXYZ")
    assert not is_valid_identifier("")
    assert not is_valid_identifier("a-b")
    assert not is_valid_identifier("é")
