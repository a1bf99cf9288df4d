import uuid
from datetime import datetime, timedelta

import pytest
from sqlmodel import Session

from app.core.errors import InvalidInputError, NoContentError
from app.models import Car, FieldReport, NotificationStatus
from app.services.breakages import BreakageCorrelator
from app.services.notifications import NotificationStore, parse_status
from tests.utils.fleet import create_driver, create_random_car

BASE_TIME = datetime(2024, 5, 1, 12, 0)


def report_breakage(db: Session, car: Car, breakage_type: str, minutes: int = 0) -> uuid.UUID:
    """Report a breakage for the car and return the id of its notification."""
    report = FieldReport(
        device_number=car.device_number,
        point=[55.75, 37.61],
        breakage_type=breakage_type,
        description=breakage_type,
        created_at=BASE_TIME + timedelta(minutes=minutes),
    )
    BreakageCorrelator(db).create_from_field_report(report)
    items, _ = NotificationStore(db).list_for_user(car.company_id, limit=1)
    return items[0].id


class TestParseStatus:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("new", NotificationStatus.NEW),
            ("Acknowledged", NotificationStatus.ACKNOWLEDGED),
            (" resolved ", NotificationStatus.RESOLVED),
            (NotificationStatus.NEW, NotificationStatus.NEW),
        ],
    )
    def test_known_values(self, value, expected) -> None:
        assert parse_status(value) == expected

    def test_unknown_value(self) -> None:
        with pytest.raises(InvalidInputError):
            parse_status("archived")


class TestUpdateStatus:
    def test_status_is_changed(self, db: Session) -> None:
        car = create_random_car(db)
        notification_id = report_breakage(db, car, "flat")
        store = NotificationStore(db)

        store.update_status(notification_id, "acknowledged")

        assert store.get_info(notification_id).status == NotificationStatus.ACKNOWLEDGED

    def test_unknown_notification(self, db: Session) -> None:
        with pytest.raises(NoContentError):
            NotificationStore(db).update_status(uuid.uuid4(), NotificationStatus.RESOLVED)

    def test_unknown_status_is_rejected(self, db: Session) -> None:
        car = create_random_car(db)
        notification_id = report_breakage(db, car, "flat")
        store = NotificationStore(db)

        with pytest.raises(InvalidInputError):
            store.update_status(notification_id, "done")

        assert store.get_info(notification_id).status == NotificationStatus.NEW


class TestUpdateAllStatusForUser:
    def test_every_notification_of_user_is_updated(self, db: Session) -> None:
        car = create_random_car(db)
        other = create_random_car(db)
        report_breakage(db, car, "flat", minutes=0)
        report_breakage(db, car, "puncture", minutes=1)
        report_breakage(db, other, "flat", minutes=2)
        store = NotificationStore(db)

        updated = store.update_all_status_for_user(car.company_id, "resolved")

        assert updated == 2
        resolved, count = store.list_for_user(car.company_id, status="resolved")
        assert count == 2
        untouched, _ = store.list_for_user(other.company_id, status=NotificationStatus.NEW)
        assert len(untouched) == 1

    def test_user_without_notifications(self, db: Session) -> None:
        with pytest.raises(NoContentError):
            NotificationStore(db).update_all_status_for_user(uuid.uuid4(), "resolved")


class TestGetInfo:
    def test_info_joins_breakage_and_driver(self, db: Session) -> None:
        car = create_random_car(db)
        create_driver(db, car, name="Oleg")
        notification_id = report_breakage(db, car, "flat")

        info = NotificationStore(db).get_info(notification_id)

        assert info.id == notification_id
        assert info.driver_name == "Oleg Petrov Sergeevich"
        assert (info.latitude, info.longitude) == (55.75, 37.61)
        assert info.note.endswith("flat")
        assert info.status == NotificationStatus.NEW

    def test_info_without_driver(self, db: Session) -> None:
        car = create_random_car(db)
        notification_id = report_breakage(db, car, "flat")

        assert NotificationStore(db).get_info(notification_id).driver_name is None

    def test_missing_notification(self, db: Session) -> None:
        with pytest.raises(NoContentError):
            NotificationStore(db).get_info(uuid.uuid4())


class TestListForUser:
    def test_newest_first_with_car_details(self, db: Session) -> None:
        car = create_random_car(db, state_number="A100AA")
        for minutes, kind in enumerate(("flat", "puncture", "overheat")):
            report_breakage(db, car, kind, minutes=minutes)

        items, count = NotificationStore(db).list_for_user(car.company_id)

        assert count == 3
        assert [i.breakage_type for i in items] == ["overheat", "puncture", "flat"]
        assert all(i.state_number == "A100AA" and i.brand == "KAMAZ" for i in items)

    def test_status_filter(self, db: Session) -> None:
        car = create_random_car(db)
        first = report_breakage(db, car, "flat", minutes=0)
        report_breakage(db, car, "puncture", minutes=1)
        store = NotificationStore(db)
        store.update_status(first, "acknowledged")

        items, count = store.list_for_user(car.company_id, status="acknowledged")

        assert count == 1
        assert [i.id for i in items] == [first]

    def test_pagination_keeps_total(self, db: Session) -> None:
        car = create_random_car(db)
        for minutes in range(5):
            report_breakage(db, car, f"kind-{minutes}", minutes=minutes)
        store = NotificationStore(db)

        page, count = store.list_for_user(car.company_id, limit=2, offset=2)

        assert count == 5
        assert [i.breakage_type for i in page] == ["kind-2", "kind-1"]

    @pytest.mark.parametrize("limit, offset", [(0, 0), (-1, 0), (10, -1)])
    def test_invalid_paging(self, db: Session, limit: int, offset: int) -> None:
        with pytest.raises(InvalidInputError):
            NotificationStore(db).list_for_user(uuid.uuid4(), limit=limit, offset=offset)

    def test_unknown_status_filter(self, db: Session) -> None:
        with pytest.raises(InvalidInputError):
            NotificationStore(db).list_for_user(uuid.uuid4(), status="archived")
