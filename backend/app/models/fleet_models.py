import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import field_validator
from sqlalchemy import UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


# ============= COMPANY MODELS =============
class CompanyBase(SQLModel):
    name: str = Field(max_length=255, index=True)
    inn: str = Field(max_length=12, unique=True, index=True, description="Taxpayer number")
    timezone: str = Field(default="UTC", max_length=64)

    @field_validator("inn")
    @classmethod
    def validate_inn(cls, v: str) -> str:
        if not v.isdigit():
            raise ValueError("INN must contain digits only")
        if len(v) not in (10, 12):
            raise ValueError("INN must contain 10 or 12 digits")
        return v


class CompanyCreate(CompanyBase):
    pass


class Company(CompanyBase, table=True):
    __tablename__ = "companies"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    cars: list["Car"] = Relationship(back_populates="company", cascade_delete=True)


class CompanyPublic(CompanyBase):
    id: uuid.UUID
    created_at: datetime


# ============= CAR MODELS =============
class CarBase(SQLModel):
    state_number: str = Field(max_length=20, index=True)
    brand: Optional[str] = Field(default=None, max_length=100)
    device_number: str = Field(max_length=64, unique=True, index=True)
    unicum_id: Optional[str] = Field(default=None, max_length=64)
    axle_count: int = Field(default=2, ge=1, le=10)
    car_type: Optional[str] = Field(default=None, max_length=50)


class CarCreate(CarBase):
    company_id: uuid.UUID


class Car(CarBase, table=True):
    __tablename__ = "cars"
    __table_args__ = (
        UniqueConstraint("company_id", "state_number", name="uq_cars_company_state_number"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)

    company: Company = Relationship(back_populates="cars")
    wheels: list["Wheel"] = Relationship(back_populates="car", cascade_delete=True)


class CarPublic(CarBase):
    id: uuid.UUID
    company_id: uuid.UUID


class CarsPublic(SQLModel):
    data: list[CarPublic]
    count: int


# ============= WHEEL MODELS =============
class WheelBase(SQLModel):
    axle_number: int = Field(ge=1)
    position: int = Field(ge=1)
    sensor_number: str = Field(max_length=64, unique=True, index=True)
    size: Optional[float] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    brand: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    mileage: float = Field(default=0, ge=0)
    min_temperature: float
    max_temperature: float
    min_pressure: float
    max_pressure: float
    ngp: Optional[float] = None
    tkvh: Optional[float] = None


class WheelCreate(WheelBase):
    car_id: uuid.UUID


class WheelUpdate(SQLModel):
    """Wheel fields editable in place; the wheel is addressed by (car_id, position)."""

    car_id: uuid.UUID
    position: int = Field(ge=1)
    axle_number: Optional[int] = Field(default=None, ge=1)
    size: Optional[float] = Field(default=None, ge=0)
    cost: Optional[float] = Field(default=None, ge=0)
    brand: Optional[str] = Field(default=None, max_length=100)
    model: Optional[str] = Field(default=None, max_length=100)
    mileage: Optional[float] = Field(default=None, ge=0)
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None
    min_pressure: Optional[float] = None
    max_pressure: Optional[float] = None
    ngp: Optional[float] = None
    tkvh: Optional[float] = None


class Wheel(WheelBase, table=True):
    __tablename__ = "wheels"
    __table_args__ = (
        UniqueConstraint("car_id", "position", name="uq_wheels_car_position"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)

    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)
    car_id: uuid.UUID = Field(foreign_key="cars.id", nullable=False, index=True)

    car: Car = Relationship(back_populates="wheels")


class WheelPublic(WheelBase):
    id: uuid.UUID
    company_id: uuid.UUID
    car_id: uuid.UUID


class WheelsPublic(SQLModel):
    data: list[WheelPublic]
    count: int


class CarWithWheels(CarPublic):
    wheels: list[WheelPublic] = []


# ============= DRIVER MODELS =============
class DriverBase(SQLModel):
    name: str = Field(max_length=100)
    surname: str = Field(max_length=100)
    middle_name: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=20)
    birthday: Optional[date] = None
    rating: float = Field(default=0, ge=0, le=5)


class DriverCreate(DriverBase):
    car_id: uuid.UUID


class Driver(DriverBase, table=True):
    __tablename__ = "drivers"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    company_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)
    car_id: uuid.UUID = Field(foreign_key="cars.id", nullable=False, index=True)

    worked_time: int = Field(default=0, ge=0, description="Accumulated seconds behind the wheel")
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.name, self.surname, self.middle_name) if part)


class DriverPublic(DriverBase):
    id: uuid.UUID
    company_id: uuid.UUID
    car_id: uuid.UUID
    worked_time: int
    is_active: bool
    created_at: datetime


class DriverStatistics(SQLModel):
    driver_id: uuid.UUID
    full_name: str
    worked_time: int
    rating: float
    breakages_count: int
    created_at: datetime


class DriversPublic(SQLModel):
    data: list[DriverStatistics]
    count: int


class WorkedTimeUpdate(SQLModel):
    device_number: str
    seconds: int = Field(gt=0)
