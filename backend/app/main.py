import logging

import sentry_sdk
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.routing import APIRoute
from pydantic import ValidationError
from starlette.middleware.cors import CORSMiddleware

from app.api.main import api_router
from app.core.config import settings
from app.core.errors import TelemetryError

logger = logging.getLogger(__name__)

ERROR_STATUS_CODES = {
    "not_found": status.HTTP_404_NOT_FOUND,
    "no_content": status.HTTP_204_NO_CONTENT,
    "invalid_input": status.HTTP_400_BAD_REQUEST,
    "already_exists": status.HTTP_409_CONFLICT,
    "query_failed": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def custom_generate_unique_id(route: APIRoute) -> str:
    return f"{route.tags[0]}-{route.name}" if route.tags else route.name


def format_validation_error(error: ValidationError | RequestValidationError) -> dict:
    """Flatten Pydantic validation errors into one readable message per field"""
    errors = []

    field_names = {
        "device_number": "Device number",
        "sensor_number": "Sensor number",
        "state_number": "State number",
        "point": "Coordinates",
        "latitude": "Latitude",
        "longitude": "Longitude",
        "inn": "INN",
    }

    for err in error.errors():
        field = err.get("loc", [""])[-1]  # Get last element of location path
        field_display = field_names.get(field, field)
        error_type = err.get("type", "")

        if "missing" in error_type:
            msg = f"{field_display}: Field required"
        elif "string_too_short" in error_type:
            msg = f"{field_display}: Too short (minimum {err.get('ctx', {}).get('min_length', '')} characters)"
        elif "string_too_long" in error_type:
            msg = f"{field_display}: Too long (maximum {err.get('ctx', {}).get('max_length', '')} characters)"
        elif "greater_than" in error_type or "less_than" in error_type:
            msg = f"{field_display}: Out of range"
        else:
            msg = f"{field_display}: {err.get('msg', 'Validation error')}"

        errors.append(msg)

    return {
        "detail": " | ".join(errors) if errors else "Validation error",
        "errors": errors,
    }


logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

if settings.SENTRY_DSN and settings.ENVIRONMENT != "local":
    sentry_sdk.init(dsn=str(settings.SENTRY_DSN), enable_tracing=True)

app = FastAPI(
    title=settings.PROJECT_NAME,
    openapi_url=f"{settings.API_V1_STR}/openapi.json",
    generate_unique_id_function=custom_generate_unique_id,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Handle validation errors with readable messages"""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=format_validation_error(exc),
    )


@app.exception_handler(TelemetryError)
async def telemetry_exception_handler(request: Request, exc: TelemetryError):
    """Map service error kinds to HTTP status codes"""
    status_code = ERROR_STATUS_CODES.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code == status.HTTP_204_NO_CONTENT:
        return Response(status_code=status_code)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "kind": exc.kind},
    )


# Set all CORS enabled origins
if settings.all_cors_origins:
    allow_origins = settings.all_cors_origins
    allow_credentials = True

    if settings.ENVIRONMENT == "local":
        allow_origins = ["*"]
        allow_credentials = False

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allow_origins,
        allow_credentials=allow_credentials,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(api_router, prefix=settings.API_V1_STR)
