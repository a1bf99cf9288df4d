import uuid

import pytest
from sqlmodel import Session

from app.core.errors import NotFoundError
from app.services.device_resolver import DeviceResolver
from tests.utils.fleet import create_driver, create_random_car


class TestResolveCar:
    def test_resolves_registered_device(self, db: Session) -> None:
        car = create_random_car(db, device_number="DEV1")
        create_random_car(db, device_number="DEV2")

        resolved = DeviceResolver(db).resolve_car("DEV1")

        assert resolved.id == car.id
        assert resolved.company_id == car.company_id

    def test_unknown_device_is_not_found(self, db: Session) -> None:
        create_random_car(db, device_number="DEV1")

        with pytest.raises(NotFoundError):
            DeviceResolver(db).resolve_car("UNKNOWN")


class TestResolveCurrentDriver:
    def test_latest_registered_driver_is_current(self, db: Session) -> None:
        car = create_random_car(db)
        first = create_driver(db, car, name="Ivan")
        second = create_driver(db, car, name="Oleg")

        current = DeviceResolver(db).resolve_current_driver(car.id)

        assert current.id == second.id
        db.refresh(first)
        assert first.is_active is False

    def test_car_without_driver_is_not_found(self, db: Session) -> None:
        car = create_random_car(db)

        with pytest.raises(NotFoundError):
            DeviceResolver(db).resolve_current_driver(car.id)

    def test_unknown_car_is_not_found(self, db: Session) -> None:
        with pytest.raises(NotFoundError):
            DeviceResolver(db).resolve_current_driver(uuid.uuid4())


class TestDriverExists:
    def test_true_when_car_has_driver(self, db: Session) -> None:
        car = create_random_car(db, device_number="DEV1")
        create_driver(db, car)

        assert DeviceResolver(db).driver_exists("DEV1") is True

    def test_false_when_car_has_no_driver(self, db: Session) -> None:
        create_random_car(db, device_number="DEV1")

        assert DeviceResolver(db).driver_exists("DEV1") is False

    def test_false_for_unknown_device(self, db: Session) -> None:
        assert DeviceResolver(db).driver_exists("NOPE") is False
