"""Request models for the booking endpoints (pydantic v2)."""

from __future__ import annotations

import re
from datetime import date

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hotelbooking.domain.models import MAX_GUESTS, ClientInfo
from hotelbooking.domain.reservations import BookingRequest, ReservationChanges
from hotelbooking.infra.time import utc_today

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_PHONE_RE = re.compile(r"^[+]?[0-9\s\-()]{7,20}$")


class ClientInfoIn(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., max_length=255)
    phone: str | None = Field(None, max_length=50)

    @field_validator("email")
    @classmethod
    def _email_format(cls, v: str) -> str:
        if not _EMAIL_RE.match(v):
            raise ValueError("invalid email address")
        return v

    @field_validator("phone")
    @classmethod
    def _phone_format(cls, v: str | None) -> str | None:
        if v and not _PHONE_RE.match(v):
            raise ValueError("invalid phone number")
        return v or None

    def to_domain(self) -> ClientInfo:
        return ClientInfo(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
        )


class CreateBookingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    client_info: ClientInfoIn
    room_id: int = Field(..., gt=0)
    check_in_date: date
    check_out_date: date
    guest_count: int = Field(1, ge=1, le=MAX_GUESTS)
    special_requests: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def _validate_dates(self) -> "CreateBookingIn":
        if self.check_in_date <= utc_today():
            raise ValueError("check_in_date must be in the future")
        if self.check_out_date <= self.check_in_date:
            raise ValueError("check_out_date must be after check_in_date")
        return self

    def to_domain(self) -> BookingRequest:
        return BookingRequest(
            client_info=self.client_info.to_domain(),
            room_id=self.room_id,
            check_in_date=self.check_in_date,
            check_out_date=self.check_out_date,
            guest_count=self.guest_count,
            special_requests=self.special_requests,
        )


class UpdateBookingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    check_in_date: date | None = None
    check_out_date: date | None = None
    guest_count: int | None = Field(None, ge=1, le=MAX_GUESTS)
    special_requests: str | None = Field(None, max_length=1000)

    @model_validator(mode="after")
    def _validate(self) -> "UpdateBookingIn":
        if not self.model_fields_set:
            raise ValueError("at least one field must be provided")
        if self.check_in_date is not None and self.check_in_date <= utc_today():
            raise ValueError("check_in_date must be in the future")
        if (
            self.check_in_date is not None
            and self.check_out_date is not None
            and self.check_out_date <= self.check_in_date
        ):
            raise ValueError("check_out_date must be after check_in_date")
        return self

    def to_domain(self) -> ReservationChanges:
        return ReservationChanges(
            check_in_date=self.check_in_date,
            check_out_date=self.check_out_date,
            guest_count=self.guest_count,
            special_requests=self.special_requests,
        )


class CancelBookingIn(BaseModel):
    model_config = ConfigDict(extra="forbid")

    reason: str | None = Field(None, max_length=500)
