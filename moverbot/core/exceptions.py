"""Custom exceptions and centralized exception handlers."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse


class AppException(Exception):
    """Base application exception with structured error response."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    error_code: str = "INTERNAL_ERROR"
    message: str = "An unexpected error occurred"

    def __init__(
        self,
        message: str | None = None,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message or self.message
        self.error_code = error_code or self.error_code
        self.status_code = status_code or self.status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert to RFC 7807 problem+json style response."""
        return {
            "error": self.error_code,
            "message": self.message,
            "status": self.status_code,
            **({"details": self.details} if self.details else {}),
        }


class FeedUnavailableError(AppException):
    """Market feed could not be fetched (network, HTTP or document failure)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "FEED_UNAVAILABLE"
    message = "Market data is unavailable right now."


class RecordParseError(AppException):
    """A single raw feed record could not be converted into a quote."""

    status_code = status.HTTP_422_UNPROCESSABLE_CONTENT
    error_code = "RECORD_INVALID"
    message = "Feed record is invalid"


class InstrumentNotFoundError(AppException):
    """Requested ticker is not present in the feed."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "INSTRUMENT_NOT_FOUND"
    message = "Ticker not found"

    def __init__(self, symbol: str, **kwargs: Any):
        self.symbol = symbol
        super().__init__(
            message=f"Ticker {symbol} not found.",
            details={"symbol": symbol},
            **kwargs,
        )


class AdvisoryUnavailableError(AppException):
    """Advisory service failed (timeout, quota, malformed output, not configured)."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    error_code = "ADVISORY_UNAVAILABLE"
    message = "Advice unavailable right now."


class DestinationNotFoundError(AppException):
    """Destination id could not be resolved by the messaging gateway."""

    status_code = status.HTTP_404_NOT_FOUND
    error_code = "DESTINATION_NOT_FOUND"
    message = "Destination not found"


class DeliveryFailedError(AppException):
    """Messaging gateway rejected or failed a send."""

    status_code = status.HTTP_502_BAD_GATEWAY
    error_code = "DELIVERY_FAILED"
    message = "Message delivery failed"


class CommandUsageError(AppException):
    """Inbound command was called with the wrong arguments."""

    status_code = status.HTTP_400_BAD_REQUEST
    error_code = "COMMAND_USAGE"
    message = "Invalid command usage"


def register_exception_handlers(app: FastAPI) -> None:
    """Register centralized exception handlers."""

    @app.exception_handler(AppException)
    async def app_exception_handler(
        request: Request, exc: AppException
    ) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(Exception)
    async def generic_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        import logging

        logger = logging.getLogger("moverbot.error")
        logger.exception(
            "Unhandled exception",
            extra={"path": request.url.path, "method": request.method},
        )

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_ERROR",
                "message": "An unexpected error occurred",
                "status": 500,
            },
        )
