import datetime as dt
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ServiceKind(str, Enum):
    WALK = "Walk"
    DROP_IN = "Drop-in"
    OVERNIGHT = "Overnight"


class Identity(BaseModel):
    id: str
    name: str
    email: str


class Booking(BaseModel):
    """One row of the `bookings` table (or one entry of the local bookings list)."""
    id: str
    user_id: str
    service: ServiceKind
    date: dt.date
    time: dt.time
    duration_mins: int
    pets: int
    notes: Optional[str] = None
    created_at: dt.datetime

    @property
    def time_label(self) -> str:
        return self.time.strftime("%H:%M")

    @property
    def pets_label(self) -> str:
        return "1 pet" if self.pets == 1 else f"{self.pets} pets"

    def to_row(self) -> dict:
        return self.model_dump(mode="json")
