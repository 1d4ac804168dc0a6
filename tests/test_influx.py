# tests/test_influx.py
import pytest

from ccnping.client.statistics import Statistics
from ccnping.core.config import InfluxDBConfig
from ccnping.metrics import influx


class FakeWriteAPI:
    def __init__(self):
        self.records = []

    def write(self, bucket, record):
        self.records.append((bucket, record.to_line_protocol()))


class FakeClient:
    fail_ping = False

    def __init__(self, url, token, org):
        self.write_api_instance = FakeWriteAPI()
        self.closed = False

    def ping(self):
        if self.fail_ping:
            raise ConnectionError("refused")
        return True

    def write_api(self, write_options=None):
        return self.write_api_instance

    def close(self):
        self.closed = True


@pytest.fixture
def sink(monkeypatch):
    monkeypatch.setattr(influx, "InfluxDBClient", FakeClient)
    return influx.InfluxSink(InfluxDBConfig(enabled=True, bucket="pings"), host_name="lab1")


def test_probe_point(sink):
    sink.write_probe("ccnx:/example", 7, "content", 2.5)
    sink.write_probe("ccnx:/example", 8, "timeout", None)

    records = sink._write_api.records
    assert records[0][0] == "pings"
    assert records[0][1].startswith("ccnping_probe,")
    assert "status=content" in records[0][1]
    assert "rtt_ms=2.5" in records[0][1]
    assert "rtt_ms" not in records[1][1]


def test_summary_point(sink):
    stats = Statistics("ccnx:/example", 0.0)
    stats.on_sent()
    stats.on_reply(4.0)

    sink.write_summary(stats.summary(now=1.0))

    line = sink._write_api.records[0][1]
    assert line.startswith("ccnping_session,")
    assert "loss_percent=0" in line
    assert "rtt_avg_ms=4" in line


def test_served_point(sink):
    sink.write_served("ccnx:/example", 12)

    assert "served=12i" in sink._write_api.records[0][1]


def test_unreachable_influxdb_is_not_fatal(monkeypatch):
    class Unreachable(FakeClient):
        fail_ping = True

    monkeypatch.setattr(influx, "InfluxDBClient", Unreachable)
    sink = influx.InfluxSink(InfluxDBConfig(enabled=True), host_name="lab1")

    assert not sink.connected
    sink.write_probe("ccnx:/example", 1, "content", 1.0)
