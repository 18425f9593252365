import logging
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import requests

from dew_point_fan.models import SensorReading

logger = logging.getLogger(__name__)


class TelemetrySink:
    """Interface: one point per accepted cycle."""

    def publish(self, timestamp: datetime, tags: Mapping[str, str], fields: Mapping[str, Any]) -> bool:
        raise NotImplementedError


class NullTelemetry(TelemetrySink):
    def publish(self, timestamp: datetime, tags: Mapping[str, str], fields: Mapping[str, Any]) -> bool:
        return False


def _escape(value: str) -> str:
    return value.replace(",", r"\,").replace(" ", r"\ ").replace("=", r"\=")


def _field_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    return '"' + str(value).replace("\\", "\\\\").replace('"', r'\"') + '"'


def line_protocol(measurement: str, tags: Mapping[str, str], fields: Mapping[str, Any], timestamp: datetime) -> str:
    """Format one InfluxDB line protocol record with a timestamp in seconds."""
    head = _escape(measurement)
    for key in sorted(tags):
        head += f",{_escape(key)}={_escape(str(tags[key]))}"
    body = ",".join(f"{_escape(key)}={_field_value(value)}" for key, value in fields.items())
    return f"{head} {body} {int(timestamp.timestamp())}"


class InfluxTelemetry(TelemetrySink):
    def __init__(
        self,
        url: str,
        token: str,
        org: str = "privat",
        bucket: str = "dew-point",
        measurement: str = "dp",
        timeout: int = 10,
        session: Optional[requests.Session] = None,
    ):
        """
        Write points to an InfluxDB 2 server over its HTTP API

        Args:
            url: Base URL of the InfluxDB server
            token: API token with write access to the bucket
        """
        self.url = url.rstrip('/')
        self.token = token
        self.org = org
        self.bucket = bucket
        self.measurement = measurement
        self.timeout = timeout
        self.session = session or requests.Session()

    def publish(self, timestamp: datetime, tags: Mapping[str, str], fields: Mapping[str, Any]) -> bool:
        """
        Send one point. Failures are logged and the point is dropped.

        Returns:
            True if the server accepted the point, False otherwise
        """
        data = line_protocol(self.measurement, tags, fields, timestamp)
        try:
            response = self.session.post(
                f"{self.url}/api/v2/write",
                params={"org": self.org, "bucket": self.bucket, "precision": "s"},
                headers={
                    "Authorization": f"Token {self.token}",
                    "Content-Type": "text/plain; charset=utf-8",
                },
                data=data.encode("utf-8"),
                timeout=self.timeout,
            )
            response.raise_for_status()
            return True
        except requests.RequestException as e:
            logger.error(f"Telemetry: Error writing point: {e}")
            return False


def cycle_fields(inside: SensorReading, outside: SensorReading, venting: bool) -> Dict[str, Any]:
    """Fields of the 'dp' measurement for one accepted cycle."""
    return {
        "temp_i": inside.temperature,
        "temp_o": outside.temperature,
        "dewpoint_i": inside.dew_point,
        "dewpoint_o": outside.dew_point,
        "hum_i": inside.humidity,
        "hum_o": outside.humidity,
        "retry_i": inside.retries,
        "retry_o": outside.retries,
        "vent_val": 1 if venting else 0,
    }


def mask_token(token: str) -> str:
    if len(token) <= 4:
        return "*" * len(token)
    return token[:4] + "*" * (len(token) - 4)


def create_telemetry(url: str, token: str, org: str, bucket: str) -> TelemetrySink:
    """InfluxTelemetry if a server URL is configured, NullTelemetry otherwise."""
    logger.info(f"InfluxDB token: {mask_token(token)}")
    logger.info(f"Influx srv url: {url}")
    if not url:
        logger.warning("Telemetry: INFLUX_SRV_URL not set, points are not written")
        return NullTelemetry()
    return InfluxTelemetry(url, token, org=org, bucket=bucket)
