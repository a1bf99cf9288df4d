import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from app.core.timeutils import as_naive_utc


# ============= BREAKAGE MODELS =============
class BreakageBase(SQLModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    breakage_type: str = Field(max_length=100)
    description: str = Field(default="", max_length=1000)


class Breakage(BreakageBase, table=True):
    __tablename__ = "breakages"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    car_id: uuid.UUID = Field(foreign_key="cars.id", nullable=False, index=True)
    driver_id: Optional[uuid.UUID] = Field(default=None, foreign_key="drivers.id", nullable=True)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class BreakagePublic(BreakageBase):
    id: uuid.UUID
    car_id: uuid.UUID
    driver_id: Optional[uuid.UUID]
    created_at: datetime


class FieldReport(SQLModel):
    """Breakage as reported by the on-board unit: device number, not car id."""

    device_number: str = Field(min_length=1, max_length=64)
    point: list[float]
    breakage_type: str = Field(max_length=100)
    description: str = Field(default="", max_length=1000)
    created_at: Optional[datetime] = None

    @field_validator("created_at")
    @classmethod
    def normalize_created_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        return as_naive_utc(v)


class BreakageInfo(SQLModel):
    id: uuid.UUID
    driver_name: Optional[str] = None
    state_number: str
    breakage_type: str
    description: str
    created_at: datetime


# ============= NOTIFICATION MODELS =============
class NotificationStatus(str, Enum):
    NEW = "new"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"


class Notification(SQLModel, table=True):
    __tablename__ = "notifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="companies.id", nullable=False, index=True)
    breakage_id: uuid.UUID = Field(foreign_key="breakages.id", nullable=False, unique=True)
    note: str = Field(default="", max_length=1100)
    status: NotificationStatus = NotificationStatus.NEW
    created_at: datetime = Field(default_factory=datetime.utcnow, index=True)


class NotificationPublic(SQLModel):
    id: uuid.UUID
    user_id: uuid.UUID
    breakage_id: uuid.UUID
    note: str
    status: NotificationStatus
    created_at: datetime


class NotificationStatusUpdate(SQLModel):
    status: str


class NotificationInfo(SQLModel):
    id: uuid.UUID
    note: str
    status: NotificationStatus
    driver_name: Optional[str] = None
    latitude: float
    longitude: float
    created_at: datetime


class NotificationListItem(SQLModel):
    id: uuid.UUID
    state_number: str
    brand: Optional[str] = None
    breakage_type: str
    status: NotificationStatus
    created_at: datetime


class NotificationsPublic(SQLModel):
    data: list[NotificationListItem]
    count: int


