import logging
import uuid

from sqlmodel import Session

from app import crud
from app.core.errors import NotFoundError
from app.models.fleet_models import Car, Driver

logger = logging.getLogger(__name__)


class DeviceResolver:
    """Maps a telemetry unit's device number to its car and current driver."""

    def __init__(self, session: Session):
        self.session = session

    def resolve_car(self, device_number: str) -> Car:
        car = crud.get_car_by_device_number(session=self.session, device_number=device_number)
        if not car:
            logger.debug(f"No car registered for device {device_number!r}")
            raise NotFoundError(f"car with device number {device_number} not found")
        return car

    def resolve_current_driver(self, car_id: uuid.UUID) -> Driver:
        driver = crud.get_active_driver(session=self.session, car_id=car_id)
        if not driver:
            raise NotFoundError(f"car {car_id} has no driver")
        return driver

    def driver_exists(self, device_number: str) -> bool:
        car = crud.get_car_by_device_number(session=self.session, device_number=device_number)
        if not car:
            return False
        return crud.get_active_driver(session=self.session, car_id=car.id) is not None
