"""
Error vocabulary shared by the repository, service and API layers.

Services raise one of the subclasses below; the API layer turns the
``kind`` into a status code in a single exception handler.
"""


class TelemetryError(Exception):
    kind: str = "error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


class NotFoundError(TelemetryError):
    """No matching car, driver, wheel or notification."""

    kind = "not_found"


class NoContentError(TelemetryError):
    """The query ran but the result set is empty."""

    kind = "no_content"


class InvalidInputError(TelemetryError):
    kind = "invalid_input"


class AlreadyExistsError(TelemetryError):
    kind = "already_exists"


class QueryFailedError(TelemetryError):
    """Opaque store failure; the driver exception is chained as __cause__."""

    kind = "query_failed"
