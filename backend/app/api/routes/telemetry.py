"""
Inbound telemetry: sensor samples, GPS fixes and field breakage reports.

Every payload is keyed by the on-board unit's device number, which is
resolved to a car before anything car-specific is stored.
"""
from typing import Any

from fastapi import APIRouter

from app.api.deps import SessionDep
from app.models import (
    BreakagePublic,
    CurrentPositionPublic,
    FieldReport,
    Point,
    PositionCreate,
    SensorDataCreate,
    SensorDataPublic,
)
from app.services.breakages import BreakageCorrelator
from app.services.device_resolver import DeviceResolver
from app.services.positions import PositionTracker
from app.services.telemetry import TelemetryIngest

router_telemetry = APIRouter(prefix="/telemetry", tags=["telemetry"])


@router_telemetry.post("/sensors", response_model=SensorDataPublic)
def create_sensor_data(*, session: SessionDep, sample_in: SensorDataCreate) -> Any:
    return TelemetryIngest(session).record_sample(sample_in)


@router_telemetry.post("/positions", response_model=CurrentPositionPublic)
def create_position(*, session: SessionDep, position_in: PositionCreate) -> Any:
    """
    Record a GPS fix and move the car's current position.
    """
    point = Point(latitude=position_in.latitude, longitude=position_in.longitude)
    return PositionTracker(session).track_fix(
        position_in.device_number, point, position_in.created_at
    )


@router_telemetry.post("/breakages", response_model=BreakagePublic)
def create_breakage(*, session: SessionDep, report_in: FieldReport) -> Any:
    """
    Store a field breakage report and notify the owning company.
    """
    return BreakageCorrelator(session).create_from_field_report(report_in)


@router_telemetry.get("/devices/{device_number}/driver")
def read_driver_exists(device_number: str, session: SessionDep) -> dict[str, bool]:
    return {"exists": DeviceResolver(session).driver_exists(device_number)}
