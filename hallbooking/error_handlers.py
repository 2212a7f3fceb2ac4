"""Translate booking engine errors into HTTP responses."""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .errors import BookingConflict, BookingError
from .timeutils import format_date

logger = logging.getLogger(__name__)


def booking_error_handler(_: Request, exc: BookingError) -> JSONResponse:
    content = {"detail": exc.message, "code": exc.code}
    if isinstance(exc, BookingConflict):
        content["date"] = format_date(exc.day)
        content["conflicting_id"] = exc.conflicting_id
    logger.info("Rejected booking request: %s (%s)", exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=content)


def apply_booking_error_handler(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
