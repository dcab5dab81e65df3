# trailer_booking/main.py

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from trailer_booking.config import ALLOWED_ORIGINS
from trailer_booking.errors import BookingError
from trailer_booking.logging_config import setup_logging
from trailer_booking.middleware import RequestIDMiddleware
from trailer_booking.routes.admin import router as admin_router
from trailer_booking.routes.bookings import router as bookings_router
from trailer_booking.routes.health import router as health_router

# Initialize structured logging
setup_logging()
logger = structlog.get_logger(__name__)

app = FastAPI(
    title="Trailer Booking API",
    description="Booking requests, staff lifecycle actions and calendar import for trailer rentals",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS if "*" not in ALLOWED_ORIGINS else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestIDMiddleware)

app.include_router(health_router, tags=["Health"])
app.include_router(bookings_router, tags=["Bookings"])
app.include_router(admin_router, prefix="/admin", tags=["Admin"])


@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    """Render domain errors as {"ok": false, "error": ...} with their HTTP status."""
    logger.info(
        "request_rejected",
        path=request.url.path,
        error_type=type(exc).__name__,
        status_code=exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
