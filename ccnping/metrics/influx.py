"""
InfluxDB export for CCNPing.
Writes per-probe results, session summaries and server counters.
"""

import logging
import socket
from typing import Optional

from influxdb_client import InfluxDBClient, Point
from influxdb_client.client.write_api import SYNCHRONOUS

from ..client.statistics import Summary
from ..core.config import InfluxDBConfig


class InfluxSink:
    """Sends measurements to InfluxDB; failures are logged and dropped."""

    def __init__(self, config: InfluxDBConfig, host_name: Optional[str] = None):
        self.config = config
        self.host_name = host_name or socket.gethostname()
        self.logger = logging.getLogger(__name__)

        self._influx_client = None
        self._write_api = None

        self._init_influxdb()

    def _init_influxdb(self) -> None:
        """Initialize InfluxDB connection."""
        try:
            self._influx_client = InfluxDBClient(
                url=self.config.url,
                token=self.config.token,
                org=self.config.organization
            )

            # Test connection
            self._influx_client.ping()

            self._write_api = self._influx_client.write_api(write_options=SYNCHRONOUS)

            self.logger.info("InfluxDB connection established")

        except Exception as e:
            self.logger.error(f"Failed to connect to InfluxDB: {e}")
            self.close()

    @property
    def connected(self) -> bool:
        return self._write_api is not None

    def _write(self, point: Point) -> None:
        if not self._write_api:
            return

        try:
            self._write_api.write(bucket=self.config.bucket, record=point)
        except Exception as e:
            self.logger.error(f"Failed to send data to InfluxDB: {e}")

    def write_probe(self, prefix: str, number: int, status: str,
                    rtt_ms: Optional[float]) -> None:
        point = Point("ccnping_probe") \
            .tag("prefix", prefix) \
            .tag("host", self.host_name) \
            .tag("status", status) \
            .field("number", number)
        if rtt_ms is not None:
            point = point.field("rtt_ms", rtt_ms)
        self._write(point)

    def write_summary(self, summary: Summary) -> None:
        point = Point("ccnping_session") \
            .tag("prefix", summary.prefix) \
            .tag("host", self.host_name) \
            .field("sent", summary.sent) \
            .field("received", summary.received) \
            .field("elapsed_ms", summary.elapsed_ms)
        if summary.loss_percent is not None:
            point = point.field("loss_percent", summary.loss_percent)
        if summary.received > 0:
            point = point.field("rtt_min_ms", summary.min_rtt) \
                .field("rtt_avg_ms", summary.avg_rtt) \
                .field("rtt_max_ms", summary.max_rtt) \
                .field("rtt_mdev_ms", summary.mdev)
        self._write(point)

    def write_served(self, prefix: str, served: int) -> None:
        point = Point("ccnping_served") \
            .tag("prefix", prefix) \
            .tag("host", self.host_name) \
            .field("served", served)
        self._write(point)

    def close(self) -> None:
        if self._influx_client:
            self._influx_client.close()
        self._influx_client = None
        self._write_api = None
