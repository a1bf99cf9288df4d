import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from app import crud
from app.core.errors import InvalidInputError, NoContentError, NotFoundError
from app.core.timeutils import as_naive_utc
from app.models.telemetry_models import (
    CurrentPosition,
    CurrentPositionRow,
    Point,
    Position,
)
from app.services.device_resolver import DeviceResolver

logger = logging.getLogger(__name__)


def normalize_box(point_a: Point, point_b: Point) -> tuple[Point, Point]:
    """Return (south-west, north-east) corners of the rectangle spanned by two points."""
    south_west = Point(
        latitude=min(point_a.latitude, point_b.latitude),
        longitude=min(point_a.longitude, point_b.longitude),
    )
    north_east = Point(
        latitude=max(point_a.latitude, point_b.latitude),
        longitude=max(point_a.longitude, point_b.longitude),
    )
    return south_west, north_east


class PositionTracker:
    def __init__(self, session: Session, resolver: Optional[DeviceResolver] = None):
        self.session = session
        self.resolver = resolver or DeviceResolver(session)

    def record_position(
        self, device_number: str, point: Point, created_at: Optional[datetime] = None
    ) -> Position:
        position = Position(
            device_number=device_number,
            latitude=point.latitude,
            longitude=point.longitude,
            created_at=as_naive_utc(created_at) or datetime.utcnow(),
        )
        return crud.create_position(session=self.session, position=position)

    def upsert_current_position(
        self,
        company_id: uuid.UUID,
        car_id: uuid.UUID,
        point: Point,
        updated_at: Optional[datetime] = None,
    ) -> CurrentPosition:
        return crud.upsert_current_position(
            session=self.session,
            company_id=company_id,
            car_id=car_id,
            latitude=point.latitude,
            longitude=point.longitude,
            updated_at=as_naive_utc(updated_at) or datetime.utcnow(),
        )

    def track_fix(
        self, device_number: str, point: Point, created_at: Optional[datetime] = None
    ) -> CurrentPosition:
        """Append the fix to the device's route and move the car's current position."""
        created_at = as_naive_utc(created_at) or datetime.utcnow()
        car = self.resolver.resolve_car(device_number)
        self.record_position(device_number, point, created_at)
        current = self.upsert_current_position(car.company_id, car.id, point, created_at)
        logger.debug(f"Car {car.id} now at ({point.latitude}, {point.longitude})")
        return current

    def get_route(self, car_id: uuid.UUID, start: datetime, end: datetime) -> list[Position]:
        start, end = as_naive_utc(start), as_naive_utc(end)
        if start > end:
            raise InvalidInputError("route start must not be after its end")
        car = crud.get_car(session=self.session, car_id=car_id)
        if not car:
            raise NotFoundError(f"car {car_id} not found")
        positions = crud.get_route_positions(
            session=self.session, device_number=car.device_number, start=start, end=end
        )
        logger.debug(f"Found {len(positions)} positions for car {car_id}")
        return positions

    def get_current_positions(self, company_id: uuid.UUID) -> list[CurrentPositionRow]:
        rows = crud.get_current_positions_by_company(session=self.session, company_id=company_id)
        if not rows:
            raise NoContentError(f"no car positions for company {company_id}")
        return rows

    def get_positions_in_box(
        self,
        point_a: Point,
        point_b: Point,
        company_id: Optional[uuid.UUID] = None,
    ) -> list[CurrentPositionRow]:
        south_west, north_east = normalize_box(point_a, point_b)
        return crud.get_current_positions_in_box(
            session=self.session,
            min_latitude=south_west.latitude,
            max_latitude=north_east.latitude,
            min_longitude=south_west.longitude,
            max_longitude=north_east.longitude,
            company_id=company_id,
        )
