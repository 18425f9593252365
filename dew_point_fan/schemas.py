from typing import List

from pydantic import BaseModel, Field


class SensorInfo(BaseModel):
    name: str
    temperature: float
    humidity: float
    dew_point: float


class InfoResponse(BaseModel):
    update: str
    sensors: List[SensorInfo]
    venting: bool
    override: bool
    remote_override: int
    diff_min: float
    hysteresis: float
    hum_inside_min: float
    temp_inside_min: float
    temp_outside_min: float


class RemoteControl(BaseModel):
    """0 = not set, 1 = force ON, 2 = force OFF"""
    override: int = Field(ge=0, le=2)
