import logging
import threading
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI
from fastapi.responses import PlainTextResponse

from dew_point_fan.models import SensorReading, StatusSnapshot
from dew_point_fan.override import OverrideSource
from dew_point_fan.schemas import InfoResponse, RemoteControl, SensorInfo

logger = logging.getLogger(__name__)


class StatusBoard:
    """Latest cycle result, written by the control loop and read by the HTTP worker."""

    def __init__(self, snapshot: Optional[StatusSnapshot] = None):
        self._lock = threading.Lock()
        self._snapshot = snapshot or StatusSnapshot()

    def publish(self, snapshot: StatusSnapshot) -> None:
        with self._lock:
            self._snapshot = snapshot

    def snapshot(self) -> StatusSnapshot:
        with self._lock:
            return self._snapshot


def _dew_point(reading: SensorReading) -> float:
    return reading.dew_point if reading.dew_point is not None else 0.0


def render_text(snapshot: StatusSnapshot) -> str:
    """Plain text status page."""
    inside, outside = snapshot.inside, snapshot.outside
    return (
        f"Dew Point Fan                     {snapshot.update}\n"
        "-----------------------------------------------------\n"
        f"Inside:  DP: {_dew_point(inside):6.1f}, Temp: {inside.temperature:5.1f}°C, Humidity: {inside.humidity:5.1f}%\n"
        f"Outside: DP: {_dew_point(outside):6.1f}, Temp: {outside.temperature:5.1f}°C, Humidity: {outside.humidity:5.1f}%\n"
        f"Fan should be {'on' if snapshot.venting else 'off'}                         "
        f"Fan is {'ON ' if snapshot.fan_running else 'OFF'}"
    )


def build_info(snapshot: StatusSnapshot) -> InfoResponse:
    t = snapshot.thresholds
    return InfoResponse(
        update=snapshot.update,
        sensors=[
            SensorInfo(
                name=reading.location.label,
                temperature=reading.temperature,
                humidity=reading.humidity,
                dew_point=_dew_point(reading),
            )
            for reading in (snapshot.inside, snapshot.outside)
        ],
        venting=snapshot.venting,
        override=snapshot.override_active,
        remote_override=int(snapshot.remote_override),
        diff_min=t.diff_min,
        hysteresis=t.hysteresis,
        hum_inside_min=t.hum_inside_min,
        temp_inside_min=t.temp_inside_min,
        temp_outside_min=t.temp_outside_min,
    )


def create_router(board: StatusBoard, overrides: OverrideSource) -> APIRouter:
    router = APIRouter()

    @router.get("/", response_class=PlainTextResponse, tags=["status"])
    async def status_page() -> str:
        return render_text(board.snapshot())

    @router.get("/info", response_model=InfoResponse, tags=["status"])
    async def info() -> InfoResponse:
        return build_info(board.snapshot())

    @router.post("/override", response_model=RemoteControl, tags=["control"])
    async def set_override(remote: RemoteControl) -> RemoteControl:
        """
        Set the remote override: 0 = not set, 1 = force fan ON, 2 = force fan OFF.
        Takes effect in the next control cycle.
        """
        logger.info(f"POST API called: remote override {remote.override}")
        overrides.set(remote.override)
        return remote

    return router


def create_app(board: StatusBoard, overrides: OverrideSource) -> FastAPI:
    app = FastAPI(title="Dew Point Fan")
    app.include_router(create_router(board, overrides))
    return app


class StatusServer:
    """Runs the status app with uvicorn on a daemon thread."""

    def __init__(self, app: FastAPI, host: str = "0.0.0.0", port: int = 8080):
        config = uvicorn.Config(app, host=host, port=port, log_config=None, access_log=False)
        self.server = uvicorn.Server(config)
        self.thread = threading.Thread(target=self.server.run, name="status-http", daemon=True)

    def start(self):
        logger.info(f"Status server listening on {self.server.config.host}:{self.server.config.port}")
        self.thread.start()

    def stop(self):
        self.server.should_exit = True
        if self.thread.is_alive():
            self.thread.join(timeout=5.0)
