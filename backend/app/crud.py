import logging
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Optional

from sqlalchemy import and_, case, or_, update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, func, select

from app.core.errors import QueryFailedError
from app.models.breakage_models import (
    Breakage,
    BreakageInfo,
    Notification,
    NotificationInfo,
    NotificationListItem,
    NotificationStatus,
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
from app.models.telemetry_models import (
    CurrentPosition,
    CurrentPositionRow,
    Position,
    SensorData,
    WheelHistoryPoint,
    WheelReportRow,
    WheelSample,
)

logger = logging.getLogger(__name__)


@contextmanager
def store_errors(session: Session, action: str) -> Iterator[None]:
    """Roll back and re-raise any driver error as QueryFailedError."""
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(f"Failed to {action}: {exc}")
        raise QueryFailedError(f"failed to {action}") from exc


def _driver_full_name(
    name: Optional[str], surname: Optional[str], middle_name: Optional[str]
) -> Optional[str]:
    parts = [part for part in (name, surname, middle_name) if part]
    return " ".join(parts) if parts else None


# ============= COMPANY CRUD =============
def create_company(*, session: Session, company_create: CompanyCreate) -> Company:
    db_company = Company.model_validate(company_create)
    with store_errors(session, "create company"):
        session.add(db_company)
        session.commit()
        session.refresh(db_company)
    return db_company


def get_company(*, session: Session, company_id: uuid.UUID) -> Optional[Company]:
    with store_errors(session, "get company"):
        return session.get(Company, company_id)


def get_company_by_inn(*, session: Session, inn: str) -> Optional[Company]:
    with store_errors(session, "get company by inn"):
        return session.exec(select(Company).where(Company.inn == inn)).first()


# ============= CAR CRUD =============
def create_car(*, session: Session, car_create: CarCreate) -> Car:
    db_car = Car.model_validate(car_create)
    with store_errors(session, "create car"):
        session.add(db_car)
        session.commit()
        session.refresh(db_car)
    return db_car


def get_car(*, session: Session, car_id: uuid.UUID) -> Optional[Car]:
    with store_errors(session, "get car"):
        return session.get(Car, car_id)


def get_car_by_device_number(*, session: Session, device_number: str) -> Optional[Car]:
    logger.debug(f"Looking up car by device number {device_number!r}")
    statement = select(Car).where(Car.device_number == device_number)
    with store_errors(session, "get car by device number"):
        return session.exec(statement).first()


def get_car_by_state_number(
    *, session: Session, company_id: uuid.UUID, state_number: str
) -> Optional[Car]:
    statement = select(Car).where(
        Car.company_id == company_id, Car.state_number == state_number
    )
    with store_errors(session, "get car by state number"):
        return session.exec(statement).first()


def get_cars_by_company(
    *, session: Session, company_id: uuid.UUID, skip: int = 0, limit: int = 100
) -> tuple[list[Car], int]:
    statement = (
        select(Car)
        .where(Car.company_id == company_id)
        .order_by(Car.state_number)
        .offset(skip)
        .limit(limit)
    )
    count_statement = select(func.count()).select_from(Car).where(Car.company_id == company_id)
    with store_errors(session, "list cars"):
        cars = session.exec(statement).all()
        count = session.exec(count_statement).one()
    return list(cars), count


# ============= WHEEL CRUD =============
def create_wheel(*, session: Session, wheel_create: WheelCreate, company_id: uuid.UUID) -> Wheel:
    db_wheel = Wheel.model_validate(wheel_create, update={"company_id": company_id})
    with store_errors(session, "create wheel"):
        session.add(db_wheel)
        session.commit()
        session.refresh(db_wheel)
    return db_wheel


def get_wheel(*, session: Session, wheel_id: uuid.UUID) -> Optional[Wheel]:
    with store_errors(session, "get wheel"):
        return session.get(Wheel, wheel_id)


def get_wheel_by_position(
    *, session: Session, car_id: uuid.UUID, position: int
) -> Optional[Wheel]:
    statement = select(Wheel).where(Wheel.car_id == car_id, Wheel.position == position)
    with store_errors(session, "get wheel by position"):
        return session.exec(statement).first()


def get_wheel_by_sensor_number(*, session: Session, sensor_number: str) -> Optional[Wheel]:
    statement = select(Wheel).where(Wheel.sensor_number == sensor_number)
    with store_errors(session, "get wheel by sensor number"):
        return session.exec(statement).first()


def get_wheels_by_state_number(
    *, session: Session, company_id: uuid.UUID, state_number: str
) -> list[Wheel]:
    statement = (
        select(Wheel)
        .join(Car, Wheel.car_id == Car.id)
        .where(Car.company_id == company_id, Car.state_number == state_number)
        .order_by(Wheel.position)
    )
    with store_errors(session, "list wheels by state number"):
        return list(session.exec(statement).all())


def update_wheel(*, session: Session, db_wheel: Wheel, wheel_update: WheelUpdate) -> Wheel:
    wheel_data = wheel_update.model_dump(exclude_unset=True, exclude={"car_id", "position"})
    db_wheel.sqlmodel_update(wheel_data)
    with store_errors(session, "update wheel"):
        session.add(db_wheel)
        session.commit()
        session.refresh(db_wheel)
    return db_wheel


# ============= DRIVER CRUD =============
def create_driver(*, session: Session, driver_create: DriverCreate, company_id: uuid.UUID) -> Driver:
    """Insert a driver as the car's only active driver."""
    db_driver = Driver.model_validate(
        driver_create, update={"company_id": company_id, "is_active": True}
    )
    deactivate = (
        update(Driver)
        .where(Driver.car_id == driver_create.car_id, Driver.is_active == True)  # noqa: E712
        .values(is_active=False)
    )
    with store_errors(session, "create driver"):
        session.execute(deactivate)
        session.add(db_driver)
        session.commit()
        session.refresh(db_driver)
    return db_driver


def get_driver(*, session: Session, driver_id: uuid.UUID) -> Optional[Driver]:
    with store_errors(session, "get driver"):
        return session.get(Driver, driver_id)


def get_active_driver(*, session: Session, car_id: uuid.UUID) -> Optional[Driver]:
    statement = (
        select(Driver)
        .where(Driver.car_id == car_id, Driver.is_active == True)  # noqa: E712
        .order_by(Driver.created_at.desc(), Driver.id.desc())
        .limit(1)
    )
    with store_errors(session, "get active driver"):
        return session.exec(statement).first()


def get_driver_statistics(
    *, session: Session, company_id: uuid.UUID, skip: int = 0, limit: int = 100
) -> tuple[list[DriverStatistics], int]:
    breakages_count = func.count(Breakage.id).label("breakages_count")
    statement = (
        select(Driver, breakages_count)
        .outerjoin(Breakage, Breakage.driver_id == Driver.id)
        .where(Driver.company_id == company_id)
        .group_by(Driver.id)
        .order_by(Driver.created_at.desc())
        .offset(skip)
        .limit(limit)
    )
    count_statement = (
        select(func.count()).select_from(Driver).where(Driver.company_id == company_id)
    )
    with store_errors(session, "list drivers"):
        rows = session.exec(statement).all()
        count = session.exec(count_statement).one()
    data = [
        DriverStatistics(
            driver_id=driver.id,
            full_name=driver.full_name,
            worked_time=driver.worked_time,
            rating=driver.rating,
            breakages_count=breakages,
            created_at=driver.created_at,
        )
        for driver, breakages in rows
    ]
    return data, count


def add_driver_worked_time(*, session: Session, driver: Driver, seconds: int) -> Driver:
    driver.worked_time += seconds
    with store_errors(session, "update driver worked time"):
        session.add(driver)
        session.commit()
        session.refresh(driver)
    return driver


# ============= SENSOR DATA CRUD =============
def create_sensor_data(*, session: Session, sensor_data: SensorData) -> SensorData:
    with store_errors(session, "create sensor data"):
        session.add(sensor_data)
        session.commit()
        session.refresh(sensor_data)
    return sensor_data


def get_latest_samples_by_car(*, session: Session, car_id: uuid.UUID) -> list[WheelSample]:
    """Newest sample per wheel position of a car (rank 1 by created_at)."""
    rank = (
        func.row_number()
        .over(
            partition_by=Wheel.position,
            order_by=(SensorData.created_at.desc(), SensorData.id.desc()),
        )
        .label("rn")
    )
    ranked = (
        select(
            Wheel.id.label("wheel_id"),
            Wheel.position.label("wheel_position"),
            SensorData.sensor_number,
            SensorData.pressure,
            SensorData.temperature,
            SensorData.created_at,
            rank,
        )
        .select_from(SensorData)
        .join(Car, SensorData.device_number == Car.device_number)
        .join(Wheel, and_(SensorData.sensor_number == Wheel.sensor_number, Wheel.car_id == Car.id))
        .where(Car.id == car_id)
        .subquery()
    )
    statement = (
        select(
            ranked.c.wheel_id,
            ranked.c.wheel_position,
            ranked.c.sensor_number,
            ranked.c.pressure,
            ranked.c.temperature,
            ranked.c.created_at,
        )
        .where(ranked.c.rn == 1)
        .order_by(ranked.c.wheel_position)
    )
    with store_errors(session, "get latest sensor data"):
        rows = session.exec(statement).all()
    logger.debug(f"Fetched {len(rows)} latest samples for car {car_id}")
    return [WheelSample.model_validate(dict(row._mapping)) for row in rows]


def get_wheel_history(
    *, session: Session, wheel: Wheel, start: datetime, end: datetime
) -> list[WheelHistoryPoint]:
    statement = (
        select(SensorData.pressure, SensorData.temperature, SensorData.created_at)
        .where(
            SensorData.sensor_number == wheel.sensor_number,
            SensorData.created_at >= start,
            SensorData.created_at <= end,
        )
        .order_by(SensorData.created_at)
    )
    with store_errors(session, "get wheel history"):
        rows = session.exec(statement).all()
    return [WheelHistoryPoint.model_validate(dict(row._mapping)) for row in rows]


# ============= REPORT =============
def get_report_data(*, session: Session, company_id: uuid.UUID) -> list[WheelReportRow]:
    """Per wheel, count samples outside its temperature and pressure bounds."""
    temperature_out = func.count(
        case(
            (
                or_(
                    SensorData.temperature < Wheel.min_temperature,
                    SensorData.temperature > Wheel.max_temperature,
                ),
                1,
            )
        )
    ).label("temperature_out_of_bounds")
    pressure_out = func.count(
        case(
            (
                or_(
                    SensorData.pressure < Wheel.min_pressure,
                    SensorData.pressure > Wheel.max_pressure,
                ),
                1,
            )
        )
    ).label("pressure_out_of_bounds")
    statement = (
        select(
            Wheel.id.label("wheel_id"),
            Car.state_number,
            Wheel.position.label("wheel_position"),
            Wheel.brand.label("tire_brand"),
            Wheel.mileage,
            temperature_out,
            pressure_out,
        )
        .select_from(Wheel)
        .join(Car, Wheel.car_id == Car.id)
        .outerjoin(
            SensorData,
            and_(
                SensorData.device_number == Car.device_number,
                SensorData.sensor_number == Wheel.sensor_number,
            ),
        )
        .where(Car.company_id == company_id)
        .group_by(Wheel.id, Car.state_number, Wheel.position, Wheel.brand, Wheel.mileage)
        .order_by(Car.state_number, Wheel.position)
    )
    with store_errors(session, "build report"):
        rows = session.exec(statement).all()
    logger.debug(f"Report for company {company_id}: {len(rows)} wheels")
    return [WheelReportRow.model_validate(dict(row._mapping)) for row in rows]


# ============= POSITION CRUD =============
def create_position(*, session: Session, position: Position) -> Position:
    with store_errors(session, "create position"):
        session.add(position)
        session.commit()
        session.refresh(position)
    return position


def upsert_current_position(
    *,
    session: Session,
    company_id: uuid.UUID,
    car_id: uuid.UUID,
    latitude: float,
    longitude: float,
    updated_at: datetime,
) -> CurrentPosition:
    """Single INSERT ... ON CONFLICT (car_id) DO UPDATE; last write wins."""
    dialect = session.get_bind().dialect.name
    insert = postgresql_insert if dialect == "postgresql" else sqlite_insert
    statement = insert(CurrentPosition).values(
        id=uuid.uuid4(),
        company_id=company_id,
        car_id=car_id,
        latitude=latitude,
        longitude=longitude,
        updated_at=updated_at,
    )
    statement = statement.on_conflict_do_update(
        index_elements=["car_id"],
        set_={
            "company_id": statement.excluded.company_id,
            "latitude": statement.excluded.latitude,
            "longitude": statement.excluded.longitude,
            "updated_at": statement.excluded.updated_at,
        },
    )
    fetch = (
        select(CurrentPosition)
        .where(CurrentPosition.car_id == car_id)
        .execution_options(populate_existing=True)
    )
    with store_errors(session, "upsert current position"):
        session.execute(statement)
        session.commit()
        return session.exec(fetch).one()


def get_route_positions(
    *, session: Session, device_number: str, start: datetime, end: datetime
) -> list[Position]:
    statement = (
        select(Position)
        .where(
            Position.device_number == device_number,
            Position.created_at >= start,
            Position.created_at <= end,
        )
        .order_by(Position.created_at, Position.id)
    )
    with store_errors(session, "get route positions"):
        return list(session.exec(statement).all())


def _current_position_rows(session: Session, *criteria: Any) -> list[CurrentPositionRow]:
    statement = (
        select(
            Car.id.label("car_id"),
            Car.state_number,
            Car.device_number,
            Car.unicum_id,
            CurrentPosition.latitude,
            CurrentPosition.longitude,
            CurrentPosition.updated_at,
        )
        .select_from(CurrentPosition)
        .join(Car, CurrentPosition.car_id == Car.id)
        .where(*criteria)
        .order_by(Car.state_number)
    )
    with store_errors(session, "get current positions"):
        rows = session.exec(statement).all()
    return [CurrentPositionRow.model_validate(dict(row._mapping)) for row in rows]


def get_current_positions_by_company(
    *, session: Session, company_id: uuid.UUID
) -> list[CurrentPositionRow]:
    return _current_position_rows(session, Car.company_id == company_id)


def get_current_positions_in_box(
    *,
    session: Session,
    min_latitude: float,
    max_latitude: float,
    min_longitude: float,
    max_longitude: float,
    company_id: Optional[uuid.UUID] = None,
) -> list[CurrentPositionRow]:
    criteria = [
        CurrentPosition.latitude.between(min_latitude, max_latitude),
        CurrentPosition.longitude.between(min_longitude, max_longitude),
    ]
    if company_id:
        criteria.append(Car.company_id == company_id)
    return _current_position_rows(session, *criteria)


# ============= BREAKAGE CRUD =============
def create_breakage_with_notification(
    *, session: Session, breakage: Breakage, notification: Notification
) -> tuple[Breakage, Notification]:
    """Store a breakage and its notification in one commit."""
    with store_errors(session, "create breakage"):
        session.add(breakage)
        session.flush()
        notification.breakage_id = breakage.id
        session.add(notification)
        session.commit()
        session.refresh(breakage)
        session.refresh(notification)
    return breakage, notification


def get_breakages_by_car(*, session: Session, car_id: uuid.UUID) -> list[BreakageInfo]:
    statement = (
        select(
            Breakage.id,
            Driver.name,
            Driver.surname,
            Driver.middle_name,
            Car.state_number,
            Breakage.breakage_type,
            Breakage.description,
            Breakage.created_at,
        )
        .select_from(Breakage)
        .join(Car, Breakage.car_id == Car.id)
        .outerjoin(Driver, Breakage.driver_id == Driver.id)
        .where(Breakage.car_id == car_id)
        .order_by(Breakage.created_at, Breakage.id)
    )
    with store_errors(session, "list breakages"):
        rows = session.exec(statement).all()
    return [
        BreakageInfo(
            id=row.id,
            driver_name=_driver_full_name(row.name, row.surname, row.middle_name),
            state_number=row.state_number,
            breakage_type=row.breakage_type,
            description=row.description,
            created_at=row.created_at,
        )
        for row in rows
    ]


# ============= NOTIFICATION CRUD =============
def update_notification_status(
    *, session: Session, notification_id: uuid.UUID, status: NotificationStatus
) -> int:
    statement = update(Notification).where(Notification.id == notification_id).values(status=status)
    with store_errors(session, "update notification status"):
        result = session.execute(statement)
        session.commit()
    return result.rowcount


def update_notifications_status_for_user(
    *, session: Session, user_id: uuid.UUID, status: NotificationStatus
) -> int:
    statement = update(Notification).where(Notification.user_id == user_id).values(status=status)
    with store_errors(session, "update notifications status"):
        result = session.execute(statement)
        session.commit()
    return result.rowcount


def get_notification_info(
    *, session: Session, notification_id: uuid.UUID
) -> Optional[NotificationInfo]:
    statement = (
        select(Notification, Breakage, Driver)
        .join(Breakage, Notification.breakage_id == Breakage.id)
        .outerjoin(Driver, Breakage.driver_id == Driver.id)
        .where(Notification.id == notification_id)
    )
    with store_errors(session, "get notification info"):
        row = session.exec(statement).first()
    if row is None:
        return None
    notification, breakage, driver = row
    return NotificationInfo(
        id=notification.id,
        note=notification.note,
        status=notification.status,
        driver_name=driver.full_name if driver else None,
        latitude=breakage.latitude,
        longitude=breakage.longitude,
        created_at=notification.created_at,
    )


def get_notifications_by_user(
    *,
    session: Session,
    user_id: uuid.UUID,
    status: Optional[NotificationStatus] = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[list[NotificationListItem], int]:
    criteria = [Notification.user_id == user_id]
    if status:
        criteria.append(Notification.status == status)

    statement = (
        select(
            Notification.id,
            Car.state_number,
            Car.brand,
            Breakage.breakage_type,
            Notification.status,
            Notification.created_at,
        )
        .select_from(Notification)
        .join(Breakage, Notification.breakage_id == Breakage.id)
        .join(Car, Breakage.car_id == Car.id)
        .where(*criteria)
        .order_by(Notification.created_at.desc(), Notification.id)
        .offset(skip)
        .limit(limit)
    )
    count_statement = select(func.count()).select_from(Notification).where(*criteria)
    with store_errors(session, "list notifications"):
        rows = session.exec(statement).all()
        count = session.exec(count_statement).one()
    logger.debug(f"Fetched {len(rows)} notifications for user {user_id} (status={status})")
    return [NotificationListItem.model_validate(dict(row._mapping)) for row in rows], count
