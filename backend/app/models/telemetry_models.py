import uuid
from datetime import datetime
from typing import Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from app.core.timeutils import as_naive_utc


# ============= GEO =============
class Point(SQLModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


# ============= SENSOR DATA =============
class SensorDataBase(SQLModel):
    device_number: str = Field(max_length=64, index=True)
    sensor_number: str = Field(max_length=64, index=True)
    pressure: float
    temperature: float


class SensorDataCreate(SensorDataBase):
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v)


class SensorData(SensorDataBase, table=True):
    __tablename__ = "sensors_data"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)


class SensorDataPublic(SensorDataBase):
    id: uuid.UUID
    created_at: datetime


class WheelSample(SQLModel):
    """Latest reading of the sensor mounted at one wheel position."""

    wheel_id: uuid.UUID
    wheel_position: int
    sensor_number: str
    pressure: float
    temperature: float
    created_at: datetime


class WheelHistoryPoint(SQLModel):
    pressure: float
    temperature: float
    created_at: datetime


# ============= REPORT =============
class WheelReportRow(SQLModel):
    wheel_id: uuid.UUID
    state_number: str
    wheel_position: int
    tire_brand: Optional[str] = None
    mileage: float
    temperature_out_of_bounds: int
    pressure_out_of_bounds: int


# ============= POSITIONS =============
class PositionBase(SQLModel):
    device_number: str = Field(max_length=64, index=True)
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class PositionCreate(PositionBase):
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v)


class Position(PositionBase, table=True):
    __tablename__ = "position_data"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)


class PositionPublic(PositionBase):
    id: uuid.UUID
    created_at: datetime


class CurrentPosition(SQLModel, table=True):
    """Last known fix of a car; one row per car, overwritten on every fix."""

    __tablename__ = "cars_positions"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)
    car_id: uuid.UUID = Field(foreign_key="cars.id", nullable=False, unique=True)
    latitude: float
    longitude: float
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CurrentPositionPublic(SQLModel):
    id: uuid.UUID
    company_id: uuid.UUID
    car_id: uuid.UUID
    latitude: float
    longitude: float
    updated_at: datetime


class CurrentPositionRow(SQLModel):
    car_id: uuid.UUID
    state_number: str
    device_number: str
    unicum_id: Optional[str] = None
    latitude: float
    longitude: float
    updated_at: datetime
