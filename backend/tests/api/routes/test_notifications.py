import uuid
from datetime import datetime, timedelta

from fastapi.testclient import TestClient
from sqlmodel import Session

from app.core.config import settings
from app.models import Car, FieldReport
from app.services.breakages import BreakageCorrelator
from tests.utils.fleet import create_random_car

BASE_TIME = datetime(2024, 5, 1, 12, 0)


def report_breakages(db: Session, car: Car, count: int) -> None:
    correlator = BreakageCorrelator(db)
    for i in range(count):
        correlator.create_from_field_report(
            FieldReport(
                device_number=car.device_number,
                point=[10, 20],
                breakage_type=f"kind-{i}",
                created_at=BASE_TIME + timedelta(minutes=i),
            )
        )


class TestNotificationRoutes:
    """Tests for listing and updating a company's notifications"""

    def test_listing_is_paginated_newest_first(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db)
        report_breakages(db, car, 3)

        response = client.get(
            f"{settings.API_V1_STR}/notifications/",
            params={"user_id": str(car.company_id), "skip": 1, "limit": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 3
        assert [i["breakage_type"] for i in body["data"]] == ["kind-1"]

    def test_unknown_status_filter(self, client: TestClient) -> None:
        response = client.get(
            f"{settings.API_V1_STR}/notifications/",
            params={"user_id": str(uuid.uuid4()), "status": "archived"},
        )

        assert response.status_code == 400

    def test_update_all_for_user(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db)
        report_breakages(db, car, 2)

        response = client.patch(
            f"{settings.API_V1_STR}/notifications/",
            params={"user_id": str(car.company_id)},
            json={"status": "resolved"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "2 notifications updated"
        resolved = client.get(
            f"{settings.API_V1_STR}/notifications/",
            params={"user_id": str(car.company_id), "status": "resolved"},
        )
        assert resolved.json()["count"] == 2

    def test_update_all_without_notifications(self, client: TestClient) -> None:
        response = client.patch(
            f"{settings.API_V1_STR}/notifications/",
            params={"user_id": str(uuid.uuid4())},
            json={"status": "resolved"},
        )

        assert response.status_code == 204

    def test_update_unknown_notification(self, client: TestClient) -> None:
        response = client.patch(
            f"{settings.API_V1_STR}/notifications/{uuid.uuid4()}",
            json={"status": "resolved"},
        )

        assert response.status_code == 204

    def test_update_with_unknown_status(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db)
        report_breakages(db, car, 1)
        listing = client.get(
            f"{settings.API_V1_STR}/notifications/",
            params={"user_id": str(car.company_id)},
        ).json()

        response = client.patch(
            f"{settings.API_V1_STR}/notifications/{listing['data'][0]['id']}",
            json={"status": "done"},
        )

        assert response.status_code == 400

    def test_missing_notification_info(self, client: TestClient) -> None:
        response = client.get(f"{settings.API_V1_STR}/notifications/{uuid.uuid4()}")

        assert response.status_code == 204
