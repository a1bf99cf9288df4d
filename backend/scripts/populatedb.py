"""
scripts/populatedb.py
Demo fleet population script - uses existing app configuration
"""

import os
import random
import sys
from datetime import datetime, timedelta
from typing import List, TypedDict

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from sqlalchemy import delete
from sqlmodel import Session

from app.core.db import engine, init_db
from app.models import (
    Breakage,
    Car,
    Company,
    CurrentPosition,
    Driver,
    FieldReport,
    Notification,
    Point,
    Position,
    SensorData,
    Wheel,
)
from app.services.breakages import BreakageCorrelator
from app.services.positions import PositionTracker


class City(TypedDict):
    name: str
    lat: float
    lng: float


CITIES: list[City] = [
    {"name": "Moscow", "lat": 55.7558, "lng": 37.6173},
    {"name": "Kazan", "lat": 55.7963, "lng": 49.1088},
    {"name": "Nizhny Novgorod", "lat": 56.2965, "lng": 43.9361},
    {"name": "Yekaterinburg", "lat": 56.8389, "lng": 60.6057},
]

CAR_BRANDS = ["KAMAZ", "MAZ", "Volvo", "Scania", "MAN"]
TIRE_BRANDS = ["Michelin", "Bridgestone", "Cordiant", "Nokian"]
BREAKAGE_TYPES = ["flat", "puncture", "overheat", "sidewall cut"]
DRIVER_NAMES = [("Ivan", "Petrov"), ("Oleg", "Sidorov"), ("Anna", "Smirnova"), ("Pavel", "Orlov")]


class DatabasePopulator:
    def __init__(self):
        """Initialize with database engine from app settings."""
        self.engine = engine

        self.companies: List[Company] = []
        self.cars: List[Car] = []
        self.wheels: List[Wheel] = []
        self.drivers: List[Driver] = []
        self.samples = 0
        self.fixes = 0
        self.breakages = 0

    def clear_existing_data(self):
        """Clear existing data (optional - for fresh start)"""
        print("Clearing existing data...")
        with Session(self.engine) as session:
            # Delete in FK-safe order
            session.execute(delete(Notification))
            session.execute(delete(Breakage))
            session.execute(delete(CurrentPosition))
            session.execute(delete(Position))
            session.execute(delete(SensorData))
            session.execute(delete(Driver))
            session.execute(delete(Wheel))
            session.execute(delete(Car))
            session.execute(delete(Company))
            session.commit()
        print("Existing data cleared")

    def create_companies(self, session: Session, count: int = 3):
        print(f"🏢 Creating {count} companies...")

        for i in range(count):
            company = Company(
                name=f"Demo Fleet {i}",
                inn=f"{random.randint(10**9, 10**10 - 1)}",
                timezone="Europe/Moscow",
            )
            session.add(company)
            self.companies.append(company)

        session.commit()
        print(f"✅ Created {len(self.companies)} companies")

    def create_cars(self, session: Session):
        """Create cars with a full set of wheels for every axle"""
        print("🚚 Creating cars and wheels...")

        for company in self.companies:
            for _ in range(random.randint(2, 5)):
                axle_count = random.choice([2, 3])
                car = Car(
                    company_id=company.id,
                    state_number=f"A{random.randint(100, 999)}AA{random.randint(10, 199)}",
                    brand=random.choice(CAR_BRANDS),
                    device_number=f"DEV{random.randint(10**7, 10**8 - 1)}",
                    unicum_id=f"{random.randint(100000, 999999)}",
                    axle_count=axle_count,
                    car_type="truck",
                )
                session.add(car)
                self.cars.append(car)

                for position in range(1, axle_count * 2 + 1):
                    wheel = Wheel(
                        company_id=company.id,
                        car_id=car.id,
                        axle_number=(position + 1) // 2,
                        position=position,
                        sensor_number=f"S{random.randint(10**8, 10**9 - 1)}",
                        brand=random.choice(TIRE_BRANDS),
                        model="Demo",
                        mileage=round(random.uniform(1000, 80000), 1),
                        min_temperature=-30,
                        max_temperature=90,
                        min_pressure=7.5,
                        max_pressure=9.5,
                    )
                    session.add(wheel)
                    self.wheels.append(wheel)

        session.commit()
        print(f"✅ Created {len(self.cars)} cars with {len(self.wheels)} wheels")

    def create_drivers(self, session: Session):
        print("🧑 Creating drivers...")

        for car in self.cars:
            name, surname = random.choice(DRIVER_NAMES)
            driver = Driver(
                company_id=car.company_id,
                car_id=car.id,
                name=name,
                surname=surname,
                rating=round(random.uniform(3, 5), 1),
                worked_time=random.randint(0, 200) * 3600,
            )
            session.add(driver)
            self.drivers.append(driver)

        session.commit()
        print(f"✅ Created {len(self.drivers)} drivers")

    def create_telemetry(self, session: Session, hours: int = 6):
        """Sensor samples every 10 minutes, occasionally out of bounds"""
        print(f"📈 Creating {hours}h of sensor samples...")

        start = datetime.utcnow() - timedelta(hours=hours)
        wheels_by_car: dict = {}
        for wheel in self.wheels:
            wheels_by_car.setdefault(wheel.car_id, []).append(wheel)

        for car in self.cars:
            for step in range(hours * 6):
                created_at = start + timedelta(minutes=10 * step)
                for wheel in wheels_by_car.get(car.id, []):
                    session.add(
                        SensorData(
                            device_number=car.device_number,
                            sensor_number=wheel.sensor_number,
                            pressure=round(random.gauss(8.5, 0.6), 2),
                            temperature=round(random.gauss(45, 25), 1),
                            created_at=created_at,
                        )
                    )
                    self.samples += 1

        session.commit()
        print(f"✅ Created {self.samples} sensor samples")

    def create_routes(self, session: Session, fixes_per_car: int = 24):
        """Drive every car away from a random city and keep its current position"""
        print("🗺️  Creating routes...")

        tracker = PositionTracker(session)
        start = datetime.utcnow() - timedelta(hours=fixes_per_car // 4)
        for car in self.cars:
            city = random.choice(CITIES)
            lat, lng = city["lat"], city["lng"]
            for step in range(fixes_per_car):
                lat += random.uniform(-0.01, 0.01)
                lng += random.uniform(-0.01, 0.02)
                tracker.track_fix(
                    car.device_number,
                    Point(latitude=lat, longitude=lng),
                    start + timedelta(minutes=15 * step),
                )
                self.fixes += 1

        print(f"✅ Created {self.fixes} GPS fixes")

    def create_breakages(self, session: Session, count: int = 10):
        print(f"🔧 Reporting {count} breakages...")

        correlator = BreakageCorrelator(session)
        for _ in range(count):
            car = random.choice(self.cars)
            city = random.choice(CITIES)
            correlator.create_from_field_report(
                FieldReport(
                    device_number=car.device_number,
                    point=[city["lat"], city["lng"]],
                    breakage_type=random.choice(BREAKAGE_TYPES),
                    description="Reported by demo population script",
                )
            )
            self.breakages += 1

        print(f"✅ Created {self.breakages} breakages with notifications")

    def run(self, clear_existing: bool = False):
        """Main entry point"""
        print("=" * 50)
        print("🚀 Fleet Telemetry - Database Populator")
        print("=" * 50)

        with Session(self.engine) as session:
            init_db(session)

        if clear_existing:
            self.clear_existing_data()

        # Create all data in a single session to avoid detached/expired instances
        with Session(self.engine, expire_on_commit=False) as session:
            self.create_companies(session)
            self.create_cars(session)
            self.create_drivers(session)
            self.create_telemetry(session)
            self.create_routes(session)
            self.create_breakages(session)

        print("\n" + "=" * 50)
        print("✅ DATABASE POPULATION COMPLETE!")
        print("=" * 50)
        print("Total created:")
        print(f"  🏢 Companies: {len(self.companies)}")
        print(f"  🚚 Cars: {len(self.cars)}")
        print(f"  🛞 Wheels: {len(self.wheels)}")
        print(f"  🧑 Drivers: {len(self.drivers)}")
        print(f"  📈 Sensor samples: {self.samples}")
        print(f"  🗺️  GPS fixes: {self.fixes}")
        print(f"  🔧 Breakages: {self.breakages}")
        if self.companies:
            print(f"\nQuery with company_id={self.companies[0].id}")


def main():
    """Command-line entry point"""
    import argparse

    parser = argparse.ArgumentParser(description="Populate database with demo fleet data")
    parser.add_argument(
        "--clear",
        action="store_true",
        help="Clear existing data before populating"
    )

    args = parser.parse_args()

    populator = DatabasePopulator()
    populator.run(clear_existing=args.clear)


if __name__ == "__main__":
    main()
