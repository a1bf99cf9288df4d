"""
API Routes for Company, Car, Wheel and Driver registration

Request Lifecycle Example for POST /cars/:
1. Request hits FastAPI router, body is validated into CarCreate
2. Dependency injection: SessionDep provides the DB session
3. Business logic layer: FleetRegistry checks natural keys and stores the car
4. Response serialization: Returns CarPublic model
5. Errors raised by the registry are mapped to status codes by app.main
"""
import uuid
from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter

from app.api.deps import CompanyFromQuery, LimitDep, SessionDep, SkipDep
from app.core.config import settings
from app.core.errors import NoContentError
from app.models import (
    BreakageInfo,
    CarCreate,
    CarPublic,
    CarsPublic,
    CarWithWheels,
    CompanyCreate,
    CompanyPublic,
    DriverCreate,
    DriverPublic,
    DriversPublic,
    PositionPublic,
    WheelCreate,
    WheelHistoryPoint,
    WheelPublic,
    WheelSample,
    WheelsPublic,
    WheelUpdate,
    WorkedTimeUpdate,
)
from app.services.breakages import BreakageCorrelator
from app.services.fleet import FleetRegistry
from app.services.positions import PositionTracker
from app.services.telemetry import TelemetryIngest

# ============= COMPANY ROUTES =============
router_companies = APIRouter(prefix="/companies", tags=["companies"])


@router_companies.post("/", response_model=CompanyPublic)
def create_company(*, session: SessionDep, company_in: CompanyCreate) -> Any:
    """
    Register a company.

    Fails with 409 when the INN is already registered.
    """
    return FleetRegistry(session).register_company(company_in)


@router_companies.get("/{company_id}", response_model=CompanyPublic)
def read_company(company_id: uuid.UUID, session: SessionDep) -> Any:
    return FleetRegistry(session).get_company(company_id)


# ============= CAR ROUTES =============
router_cars = APIRouter(prefix="/cars", tags=["cars"])


@router_cars.get("/", response_model=CarsPublic)
def read_cars(
    session: SessionDep,
    company: CompanyFromQuery,
    skip: SkipDep = 0,
    limit: LimitDep = settings.DEFAULT_PAGE_LIMIT,
) -> Any:
    """
    Retrieve the company's cars, ordered by state number.
    """
    cars, count = FleetRegistry(session).list_cars(company.id, limit=limit, offset=skip)
    return CarsPublic(data=[CarPublic.model_validate(car) for car in cars], count=count)


@router_cars.post("/", response_model=CarPublic)
def create_car(*, session: SessionDep, car_in: CarCreate) -> Any:
    """
    Register a car.

    Lifecycle:
    1. Verify the owning company exists
    2. Check device number and state number uniqueness
    3. Create car record
    """
    return FleetRegistry(session).register_car(car_in)


@router_cars.get("/{car_id}", response_model=CarWithWheels)
def read_car(car_id: uuid.UUID, session: SessionDep) -> Any:
    """
    Get a car together with its mounted wheels.
    """
    car = FleetRegistry(session).get_car(car_id)
    return CarWithWheels(
        **CarPublic.model_validate(car).model_dump(),
        wheels=[WheelPublic.model_validate(wheel) for wheel in sorted(car.wheels, key=lambda w: w.position)],
    )


@router_cars.get("/{car_id}/breakages", response_model=list[BreakageInfo])
def read_car_breakages(car_id: uuid.UUID, session: SessionDep) -> Any:
    FleetRegistry(session).get_car(car_id)
    return BreakageCorrelator(session).list_by_car_id(car_id)


@router_cars.get("/{car_id}/sensors/latest", response_model=list[WheelSample])
def read_latest_samples(car_id: uuid.UUID, session: SessionDep) -> Any:
    """
    Latest pressure/temperature sample for each wheel position of the car.
    """
    FleetRegistry(session).get_car(car_id)
    return TelemetryIngest(session).latest_per_wheel(car_id)


@router_cars.get("/{car_id}/route", response_model=list[PositionPublic])
def read_car_route(
    car_id: uuid.UUID,
    session: SessionDep,
    start: datetime,
    end: datetime,
) -> Any:
    """
    GPS fixes of the car between ``start`` and ``end`` (inclusive), oldest first.
    """
    positions = PositionTracker(session).get_route(car_id, start, end)
    if not positions:
        raise NoContentError(f"no positions for car {car_id}")
    return positions


# ============= WHEEL ROUTES =============
router_wheels = APIRouter(prefix="/wheels", tags=["wheels"])


@router_wheels.get("/", response_model=WheelsPublic)
def read_wheels(session: SessionDep, company: CompanyFromQuery, state_number: str) -> Any:
    """
    Wheels of the company's car with the given state number.
    """
    wheels = FleetRegistry(session).list_wheels_by_state_number(company.id, state_number)
    return WheelsPublic(data=[WheelPublic.model_validate(w) for w in wheels], count=len(wheels))


@router_wheels.post("/", response_model=WheelPublic)
def create_wheel(*, session: SessionDep, wheel_in: WheelCreate) -> Any:
    return FleetRegistry(session).register_wheel(wheel_in)


@router_wheels.put("/", response_model=WheelPublic)
def update_wheel(*, session: SessionDep, wheel_in: WheelUpdate) -> Any:
    """
    Update the wheel mounted at (car_id, position).
    """
    return FleetRegistry(session).update_wheel(wheel_in)


@router_wheels.get("/{wheel_id}", response_model=WheelPublic)
def read_wheel(wheel_id: uuid.UUID, session: SessionDep) -> Any:
    return FleetRegistry(session).get_wheel(wheel_id)


@router_wheels.get("/{wheel_id}/history", response_model=list[WheelHistoryPoint])
def read_wheel_history(
    wheel_id: uuid.UUID,
    session: SessionDep,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
) -> Any:
    return TelemetryIngest(session).wheel_history(wheel_id, start, end)


# ============= DRIVER ROUTES =============
router_drivers = APIRouter(prefix="/drivers", tags=["drivers"])


@router_drivers.get("/", response_model=DriversPublic)
def read_drivers(
    session: SessionDep,
    company: CompanyFromQuery,
    skip: SkipDep = 0,
    limit: LimitDep = settings.DEFAULT_PAGE_LIMIT,
) -> Any:
    """
    Drivers of the company with their breakage counts, newest first.
    """
    drivers, count = FleetRegistry(session).list_drivers(company.id, limit=limit, offset=skip)
    return DriversPublic(data=drivers, count=count)


@router_drivers.post("/", response_model=DriverPublic)
def create_driver(*, session: SessionDep, driver_in: DriverCreate) -> Any:
    """
    Register a driver; they replace the car's previous active driver.
    """
    return FleetRegistry(session).register_driver(driver_in)


@router_drivers.post("/worked-time", response_model=DriverPublic)
def add_worked_time(*, session: SessionDep, update_in: WorkedTimeUpdate) -> Any:
    return FleetRegistry(session).add_worked_time(update_in.device_number, update_in.seconds)


@router_drivers.get("/{driver_id}", response_model=DriverPublic)
def read_driver(driver_id: uuid.UUID, session: SessionDep) -> Any:
    return FleetRegistry(session).get_driver(driver_id)
