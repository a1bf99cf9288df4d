import logging
import uuid
from datetime import datetime

from sqlmodel import Session

from app import crud
from app.core.config import settings
from app.core.errors import InvalidInputError, NotFoundError
from app.core.timeutils import as_naive_utc
from app.models.breakage_models import (
    Breakage,
    BreakageInfo,
    FieldReport,
    Notification,
    NotificationStatus,
)
from app.models.telemetry_models import Point
from app.services.device_resolver import DeviceResolver

logger = logging.getLogger(__name__)


class BreakageCorrelator:
    """
    Turns field breakage reports into stored breakages plus notifications.

    Lifecycle of a report:
    1. Validate the coordinate pair
    2. Resolve device number -> car (required)
    3. Resolve car -> current driver (optional, stored as null when absent)
    4. Store the breakage and a "new" notification for the car's company
       in a single commit
    """

    def __init__(self, session: Session, resolver: DeviceResolver | None = None):
        self.session = session
        self.resolver = resolver or DeviceResolver(session)

    def create_from_field_report(self, report: FieldReport) -> Breakage:
        if len(report.point) != 2:
            raise InvalidInputError("invalid point format, must contain exactly two coordinates")
        try:
            point = Point(latitude=report.point[0], longitude=report.point[1])
        except ValueError as exc:
            raise InvalidInputError(f"invalid point: {report.point}") from exc

        car = self.resolver.resolve_car(report.device_number)

        driver_id = None
        try:
            driver_id = self.resolver.resolve_current_driver(car.id).id
        except NotFoundError:
            logger.info(f"No driver for car {car.id}; breakage stored without driver")

        breakage = Breakage(
            car_id=car.id,
            driver_id=driver_id,
            latitude=point.latitude,
            longitude=point.longitude,
            breakage_type=report.breakage_type,
            description=report.description,
            created_at=as_naive_utc(report.created_at) or datetime.utcnow(),
        )
        notification = Notification(
            user_id=car.company_id,
            breakage_id=breakage.id,
            note=f"{settings.BREAKAGE_NOTE_PREFIX}{report.description}",
            status=NotificationStatus.NEW,
            created_at=breakage.created_at,
        )
        breakage, _ = crud.create_breakage_with_notification(
            session=self.session, breakage=breakage, notification=notification
        )
        logger.info(f"Breakage {breakage.id} created for car {car.id}, notified {car.company_id}")
        return breakage

    def list_by_car_id(self, car_id: uuid.UUID) -> list[BreakageInfo]:
        return crud.get_breakages_by_car(session=self.session, car_id=car_id)
