"""Model shortcuts for the FastAPI app."""

from .common_models import Message  # noqa: F401
from .fleet_models import (  # noqa: F401
    Company,
    CompanyCreate,
    CompanyPublic,
    Car,
    CarCreate,
    CarPublic,
    CarsPublic,
    CarWithWheels,
    Wheel,
    WheelCreate,
    WheelUpdate,
    WheelPublic,
    WheelsPublic,
    Driver,
    DriverCreate,
    DriverPublic,
    DriverStatistics,
    DriversPublic,
    WorkedTimeUpdate,
)
from .telemetry_models import (  # noqa: F401
    Point,
    SensorData,
    SensorDataCreate,
    SensorDataPublic,
    WheelSample,
    WheelHistoryPoint,
    WheelReportRow,
    Position,
    PositionCreate,
    PositionPublic,
    CurrentPosition,
    CurrentPositionPublic,
    CurrentPositionRow,
)
from .breakage_models import (  # noqa: F401
    Breakage,
    BreakagePublic,
    BreakageInfo,
    FieldReport,
    Notification,
    NotificationStatus,
    NotificationPublic,
    NotificationStatusUpdate,
    NotificationInfo,
    NotificationListItem,
    NotificationsPublic,
)
