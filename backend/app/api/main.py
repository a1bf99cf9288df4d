from fastapi import APIRouter

from app.api.routes import fleet, notifications, positions, reports, telemetry

api_router = APIRouter()
api_router.include_router(fleet.router_companies)
api_router.include_router(fleet.router_cars)
api_router.include_router(fleet.router_wheels)
api_router.include_router(fleet.router_drivers)
api_router.include_router(telemetry.router_telemetry)
api_router.include_router(reports.router_reports)
api_router.include_router(positions.router_positions)
api_router.include_router(notifications.router_notifications)


# Add health check endpoint
@api_router.get("/health")
def health_check():
    return {"status": "healthy", "service": "tire-telemetry"}
