import datetime as dt
from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from happytrails.core.errors import AuthError, ValidationError
from happytrails.models.db_models import ServiceKind

MIN_DURATION_MINS = 20
MAX_DURATION_MINS = 240
MIN_PETS = 1
MAX_PETS = 6

MISSING_DATE_TIME = "Please choose a date and time."

FIELD_LABELS = {
    "service": "Service",
    "date": "Date",
    "time": "Time",
    "duration_mins": "Duration (mins)",
    "pets": "# of pets",
    "notes": "Notes",
    "email": "Email",
    "password": "Password",
    "name": "Name",
}


# --- Booking form ---

class BookingForm(BaseModel):
    service: ServiceKind = ServiceKind.WALK
    date: Optional[dt.date] = None
    time: Optional[dt.time] = None
    duration_mins: int = Field(30, ge=MIN_DURATION_MINS, le=MAX_DURATION_MINS)
    pets: int = Field(1, ge=MIN_PETS, le=MAX_PETS)
    notes: Optional[str] = Field(None, max_length=2000)

    @field_validator("date", "time", "notes", mode="before")
    @classmethod
    def blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


def _first_error(exc: PydanticValidationError) -> str:
    err = exc.errors()[0]
    field = err["loc"][0] if err.get("loc") else ""
    label = FIELD_LABELS.get(field, str(field))
    return f"{label}: {err['msg']}" if label else err["msg"]


def parse_booking_form(data: Dict[str, Any]) -> BookingForm:
    """
    Turns raw form/JSON input into a BookingForm.
    Raises ValidationError before anything touches the store.
    """
    try:
        form = BookingForm.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(_first_error(e)) from e

    if form.date is None or form.time is None:
        raise ValidationError(MISSING_DATE_TIME)
    return form


# --- Credentials ---

class SignInCredentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignUpCredentials(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)
    name: Optional[str] = Field(None, max_length=80)

    @field_validator("name", mode="before")
    @classmethod
    def blank_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v


def parse_credentials(email: str, password: str, name: Optional[str] = None, signup: bool = False):
    try:
        if signup:
            return SignUpCredentials(email=(email or "").strip(), password=password or "", name=name)
        return SignInCredentials(email=(email or "").strip(), password=password or "")
    except PydanticValidationError as e:
        raise AuthError(_first_error(e)) from e
