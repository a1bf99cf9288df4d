import uuid

from fastapi.testclient import TestClient
from sqlmodel import Session, select

from app.core.config import settings
from app.models import Driver
from tests.utils.fleet import create_driver, create_random_car, create_random_company, create_wheel
from tests.utils.utils import random_digits, random_lower_string


class TestFleetRegistration:
    """Integration tests for fleet setup: company -> car -> wheels -> driver"""

    def test_fleet_registration_complete_flow(self, client: TestClient, db: Session) -> None:
        """
        Complete workflow:
        1. Register company
        2. Register car
        3. Mount two wheels
        4. Register driver
        5. Read the car back with its wheels
        """
        # Step 1: Register company
        company_payload = {"name": "Tyre Logistics", "inn": random_digits(10)}
        company_response = client.post(f"{settings.API_V1_STR}/companies/", json=company_payload)
        assert company_response.status_code == 200
        company_id = company_response.json()["id"]

        # Step 2: Register car
        car_payload = {
            "company_id": company_id,
            "state_number": "A100AA",
            "brand": "KAMAZ",
            "device_number": "DEV-" + random_lower_string(8),
            "axle_count": 2,
        }
        car_response = client.post(f"{settings.API_V1_STR}/cars/", json=car_payload)
        assert car_response.status_code == 200
        car = car_response.json()
        assert car["company_id"] == company_id

        # Step 3: Mount wheels
        for position in (2, 1):
            wheel_payload = {
                "car_id": car["id"],
                "axle_number": 1,
                "position": position,
                "sensor_number": random_lower_string(10),
                "min_temperature": -20,
                "max_temperature": 80,
                "min_pressure": 30,
                "max_pressure": 35,
            }
            wheel_response = client.post(f"{settings.API_V1_STR}/wheels/", json=wheel_payload)
            assert wheel_response.status_code == 200
            assert wheel_response.json()["company_id"] == company_id

        # Step 4: Register driver
        driver_payload = {"car_id": car["id"], "name": "Ivan", "surname": "Petrov"}
        driver_response = client.post(f"{settings.API_V1_STR}/drivers/", json=driver_payload)
        assert driver_response.status_code == 200
        assert driver_response.json()["is_active"] is True

        # Step 5: Car with wheels
        read_response = client.get(f"{settings.API_V1_STR}/cars/{car['id']}")
        assert read_response.status_code == 200
        assert [w["position"] for w in read_response.json()["wheels"]] == [1, 2]

    def test_duplicate_inn_conflicts(self, client: TestClient, db: Session) -> None:
        company = create_random_company(db)

        response = client.post(
            f"{settings.API_V1_STR}/companies/",
            json={"name": "Copy", "inn": company.inn},
        )

        assert response.status_code == 409
        assert response.json()["kind"] == "already_exists"

    def test_invalid_inn_is_unprocessable(self, client: TestClient) -> None:
        response = client.post(
            f"{settings.API_V1_STR}/companies/",
            json={"name": "Short", "inn": "123"},
        )

        assert response.status_code == 422

    def test_unknown_car_is_not_found(self, client: TestClient) -> None:
        response = client.get(f"{settings.API_V1_STR}/cars/{uuid.uuid4()}")

        assert response.status_code == 404
        assert response.json()["kind"] == "not_found"


class TestCarListing:
    """Tests for listing a company's cars"""

    def test_list_cars(self, client: TestClient, db: Session) -> None:
        company = create_random_company(db)
        for state_number in ("B200BB", "A100AA"):
            create_random_car(db, company, state_number=state_number)

        response = client.get(
            f"{settings.API_V1_STR}/cars/",
            params={"company_id": str(company.id), "limit": 1},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 2
        assert [c["state_number"] for c in body["data"]] == ["A100AA"]

    def test_company_without_cars(self, client: TestClient, db: Session) -> None:
        company = create_random_company(db)

        response = client.get(f"{settings.API_V1_STR}/cars/", params={"company_id": str(company.id)})

        assert response.status_code == 204
        assert response.content == b""

    def test_unknown_company(self, client: TestClient) -> None:
        response = client.get(f"{settings.API_V1_STR}/cars/", params={"company_id": str(uuid.uuid4())})

        assert response.status_code == 404

    def test_limit_above_maximum(self, client: TestClient, db: Session) -> None:
        company = create_random_company(db)

        response = client.get(
            f"{settings.API_V1_STR}/cars/",
            params={"company_id": str(company.id), "limit": settings.MAX_PAGE_LIMIT + 1},
        )

        assert response.status_code == 422


class TestWheelRoutes:
    """Tests for wheel lookup and in-place updates"""

    def test_update_wheel_by_position(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db)
        wheel = create_wheel(db, car, 1)

        response = client.put(
            f"{settings.API_V1_STR}/wheels/",
            json={"car_id": str(car.id), "position": 1, "brand": "Nokian", "mileage": 2500},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == str(wheel.id)
        assert body["brand"] == "Nokian"
        assert body["mileage"] == 2500

    def test_inverted_bounds_are_rejected(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db)
        create_wheel(db, car, 1)

        response = client.put(
            f"{settings.API_V1_STR}/wheels/",
            json={"car_id": str(car.id), "position": 1, "min_temperature": 100},
        )

        assert response.status_code == 400

    def test_wheels_by_state_number(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db, state_number="A100AA")
        create_wheel(db, car, 1)

        response = client.get(
            f"{settings.API_V1_STR}/wheels/",
            params={"company_id": str(car.company_id), "state_number": "A100AA"},
        )

        assert response.status_code == 200
        assert response.json()["count"] == 1


class TestDriverRoutes:
    """Tests for driver replacement and worked time"""

    def test_new_driver_deactivates_previous(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db)
        previous = create_driver(db, car)

        response = client.post(
            f"{settings.API_V1_STR}/drivers/",
            json={"car_id": str(car.id), "name": "Oleg", "surname": "Sidorov"},
        )

        assert response.status_code == 200
        active = db.exec(select(Driver).where(Driver.car_id == car.id, Driver.is_active == True)).all()  # noqa: E712
        assert [d.id for d in active] == [uuid.UUID(response.json()["id"])]
        assert previous.id not in {d.id for d in active}

    def test_add_worked_time(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db, device_number="DEV1")
        create_driver(db, car)

        response = client.post(
            f"{settings.API_V1_STR}/drivers/worked-time",
            json={"device_number": "DEV1", "seconds": 900},
        )

        assert response.status_code == 200
        assert response.json()["worked_time"] == 900

    def test_list_drivers(self, client: TestClient, db: Session) -> None:
        car = create_random_car(db)
        create_driver(db, car, name="Ivan")

        response = client.get(
            f"{settings.API_V1_STR}/drivers/",
            params={"company_id": str(car.company_id)},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["full_name"] == "Ivan Petrov Sergeevich"
        assert body["data"][0]["breakages_count"] == 0
