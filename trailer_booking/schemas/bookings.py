from datetime import date, time
from typing import Literal, Optional

from pydantic import BaseModel, Field


class BookingCreatePayload(BaseModel):
    """
    Schema for a public booking request.
    """

    trailer_id: str = Field(..., description="Trailer to reserve")
    start_date: date = Field(..., description="First rental day")
    end_date: date = Field(..., description="Last rental day (inclusive)")
    first_name: str = Field(..., description="Customer first name")
    last_name: str = Field(..., description="Customer last name")
    email: str = Field(..., description="Customer email; identifies the client record")
    phone: str = Field(..., description="Customer phone number")
    towing_vehicle: Optional[str] = Field(None, description="Vehicle that will tow the trailer")
    comments: Optional[str] = Field(None, description="Free-text notes from the customer")
    pickup_time: Optional[time] = Field(None, description="Pickup time of day")
    return_time: Optional[time] = Field(None, description="Return time of day")
    delivery_requested: bool = Field(False, description="Customer asked for delivery")


class BookingLookupPayload(BaseModel):
    """
    Schema for customer self-service lookup.
    """

    rental_id: str = Field(..., description="Rental ID, e.g. JLA-123456")
    access_key: str = Field(..., description="Six-digit access key issued at booking")


class ApprovePayload(BaseModel):
    payment_link: str = Field(..., description="https URL where the customer pays")


class ClosePayload(BaseModel):
    outcome: Literal["completed", "cancelled"] = Field(..., description="How the rental ended")
    reason: Optional[str] = Field(None, description="Staff note stored with the booking")
    notify: bool = Field(True, description="Email the customer about the closure")


class ReschedulePayload(BaseModel):
    start_date: date = Field(..., description="New first rental day")
    end_date: date = Field(..., description="New last rental day (inclusive)")


class RejectPayload(BaseModel):
    reason: Optional[str] = Field(None, description="Why the request was declined")


class AvailabilityPayload(BaseModel):
    """
    Schema for an availability check. Set exclude_booking_id when checking
    new dates for an existing booking.
    """

    trailer_id: str = Field(..., description="Trailer to check")
    start_date: date = Field(..., description="First day of the range")
    end_date: date = Field(..., description="Last day of the range (inclusive)")
    exclude_booking_id: Optional[str] = Field(None, description="Booking to leave out of the check")


class CalendarImportPayload(BaseModel):
    """
    Schema for a manual calendar sync. Omitted fields fall back to configuration.
    """

    days_back: Optional[int] = Field(None, ge=0, le=365, description="Days before now to include")
    days_forward: Optional[int] = Field(None, ge=0, le=365, description="Days after now to include")
    dry_run: Optional[bool] = Field(None, description="Override DRY_RUN setting")
