"""
Registration and lookup of companies, cars, wheels and drivers.

Natural keys (INN, device number, state number, sensor number, wheel
position) are checked before insert so duplicates surface as
AlreadyExistsError instead of an opaque store failure.
"""
import logging
import uuid

from sqlmodel import Session

from app import crud
from app.core.errors import (
    AlreadyExistsError,
    InvalidInputError,
    NoContentError,
    NotFoundError,
)
from app.models.fleet_models import (
    Car,
    CarCreate,
    Company,
    CompanyCreate,
    Driver,
    DriverCreate,
    DriverStatistics,
    Wheel,
    WheelCreate,
    WheelUpdate,
)
from app.services.device_resolver import DeviceResolver

logger = logging.getLogger(__name__)


class FleetRegistry:
    def __init__(self, session: Session):
        self.session = session

    # ============= COMPANIES =============
    def register_company(self, company_in: CompanyCreate) -> Company:
        if crud.get_company_by_inn(session=self.session, inn=company_in.inn):
            raise AlreadyExistsError(f"company with INN {company_in.inn} already exists")
        company = crud.create_company(session=self.session, company_create=company_in)
        logger.info(f"Company registered: {company.id}")
        return company

    def get_company(self, company_id: uuid.UUID) -> Company:
        company = crud.get_company(session=self.session, company_id=company_id)
        if not company:
            raise NotFoundError(f"company {company_id} not found")
        return company

    # ============= CARS =============
    def register_car(self, car_in: CarCreate) -> Car:
        self.get_company(car_in.company_id)
        if crud.get_car_by_device_number(session=self.session, device_number=car_in.device_number):
            raise AlreadyExistsError(f"car with device number {car_in.device_number} already exists")
        if crud.get_car_by_state_number(
            session=self.session, company_id=car_in.company_id, state_number=car_in.state_number
        ):
            raise AlreadyExistsError(f"car with state number {car_in.state_number} already exists")
        car = crud.create_car(session=self.session, car_create=car_in)
        logger.info(f"Car registered: {car.id} ({car.state_number})")
        return car

    def get_car(self, car_id: uuid.UUID) -> Car:
        car = crud.get_car(session=self.session, car_id=car_id)
        if not car:
            raise NotFoundError(f"car {car_id} not found")
        return car

    def list_cars(self, company_id: uuid.UUID, limit: int, offset: int) -> tuple[list[Car], int]:
        cars, count = crud.get_cars_by_company(
            session=self.session, company_id=company_id, skip=offset, limit=limit
        )
        if not cars:
            raise NoContentError(f"no cars for company {company_id}")
        return cars, count

    # ============= WHEELS =============
    def register_wheel(self, wheel_in: WheelCreate) -> Wheel:
        car = self.get_car(wheel_in.car_id)
        if wheel_in.min_temperature > wheel_in.max_temperature:
            raise InvalidInputError("min_temperature must not exceed max_temperature")
        if wheel_in.min_pressure > wheel_in.max_pressure:
            raise InvalidInputError("min_pressure must not exceed max_pressure")
        if crud.get_wheel_by_sensor_number(session=self.session, sensor_number=wheel_in.sensor_number):
            raise AlreadyExistsError(f"wheel with sensor {wheel_in.sensor_number} already exists")
        if crud.get_wheel_by_position(
            session=self.session, car_id=car.id, position=wheel_in.position
        ):
            raise AlreadyExistsError(f"position {wheel_in.position} of car {car.id} is occupied")
        return crud.create_wheel(session=self.session, wheel_create=wheel_in, company_id=car.company_id)

    def update_wheel(self, wheel_in: WheelUpdate) -> Wheel:
        wheel = crud.get_wheel_by_position(
            session=self.session, car_id=wheel_in.car_id, position=wheel_in.position
        )
        if not wheel:
            raise NotFoundError(f"no wheel at position {wheel_in.position} of car {wheel_in.car_id}")
        min_temperature = wheel_in.min_temperature if wheel_in.min_temperature is not None else wheel.min_temperature
        max_temperature = wheel_in.max_temperature if wheel_in.max_temperature is not None else wheel.max_temperature
        min_pressure = wheel_in.min_pressure if wheel_in.min_pressure is not None else wheel.min_pressure
        max_pressure = wheel_in.max_pressure if wheel_in.max_pressure is not None else wheel.max_pressure
        if min_temperature > max_temperature or min_pressure > max_pressure:
            raise InvalidInputError("wheel bounds are inverted")
        return crud.update_wheel(session=self.session, db_wheel=wheel, wheel_update=wheel_in)

    def get_wheel(self, wheel_id: uuid.UUID) -> Wheel:
        wheel = crud.get_wheel(session=self.session, wheel_id=wheel_id)
        if not wheel:
            raise NotFoundError(f"wheel {wheel_id} not found")
        return wheel

    def list_wheels_by_state_number(self, company_id: uuid.UUID, state_number: str) -> list[Wheel]:
        wheels = crud.get_wheels_by_state_number(
            session=self.session, company_id=company_id, state_number=state_number
        )
        if not wheels:
            raise NoContentError(f"no wheels for car {state_number}")
        return wheels

    # ============= DRIVERS =============
    def register_driver(self, driver_in: DriverCreate) -> Driver:
        car = self.get_car(driver_in.car_id)
        driver = crud.create_driver(session=self.session, driver_create=driver_in, company_id=car.company_id)
        logger.info(f"Driver {driver.id} is now the active driver of car {car.id}")
        return driver

    def get_driver(self, driver_id: uuid.UUID) -> Driver:
        driver = crud.get_driver(session=self.session, driver_id=driver_id)
        if not driver:
            raise NotFoundError(f"driver {driver_id} not found")
        return driver

    def list_drivers(
        self, company_id: uuid.UUID, limit: int, offset: int
    ) -> tuple[list[DriverStatistics], int]:
        return crud.get_driver_statistics(
            session=self.session, company_id=company_id, skip=offset, limit=limit
        )

    def add_worked_time(self, device_number: str, seconds: int) -> Driver:
        resolver = DeviceResolver(self.session)
        car = resolver.resolve_car(device_number)
        driver = resolver.resolve_current_driver(car.id)
        return crud.add_driver_worked_time(session=self.session, driver=driver, seconds=seconds)
