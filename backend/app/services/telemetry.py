import logging
import uuid
from datetime import datetime
from typing import Optional

from sqlmodel import Session

from app import crud
from app.core.errors import InvalidInputError, NotFoundError
from app.core.timeutils import as_naive_utc
from app.models.telemetry_models import (
    SensorData,
    SensorDataCreate,
    WheelHistoryPoint,
    WheelSample,
)

logger = logging.getLogger(__name__)


class TelemetryIngest:
    def __init__(self, session: Session):
        self.session = session

    def record_sample(self, sample: SensorDataCreate) -> SensorData:
        """
        Store one pressure/temperature reading.

        Values are stored as received; range checks only happen in the report.
        """
        data = sample.model_dump(exclude_none=True)
        db_sample = SensorData.model_validate(data)
        db_sample = crud.create_sensor_data(session=self.session, sensor_data=db_sample)
        logger.debug(
            f"Sample stored: device={db_sample.device_number} sensor={db_sample.sensor_number}"
        )
        return db_sample

    def latest_per_wheel(self, car_id: uuid.UUID) -> list[WheelSample]:
        return crud.get_latest_samples_by_car(session=self.session, car_id=car_id)

    def wheel_history(
        self,
        wheel_id: uuid.UUID,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> list[WheelHistoryPoint]:
        wheel = crud.get_wheel(session=self.session, wheel_id=wheel_id)
        if not wheel:
            raise NotFoundError(f"wheel {wheel_id} not found")

        start = as_naive_utc(start) or datetime.min
        end = as_naive_utc(end) or datetime.utcnow()
        if start > end:
            raise InvalidInputError("history window start must not be after its end")
        return crud.get_wheel_history(session=self.session, wheel=wheel, start=start, end=end)
