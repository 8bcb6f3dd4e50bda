from typing import List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from happytrails.core.security import get_bookings, require_api_user
from happytrails.models.db_models import Booking, Identity
from happytrails.services.booking_service import BookingService, BookingStore

router = APIRouter()


class CreateBookingRequest(BaseModel):
    service: Optional[str] = "Walk"
    date: Optional[str] = None
    time: Optional[str] = None
    duration_mins: Optional[int] = 30
    pets: Optional[int] = 1
    notes: Optional[str] = None


@router.get("/me")
async def me(user: Identity = Depends(require_api_user)) -> Identity:
    return user

@router.get("/bookings")
async def list_bookings(
    user: Identity = Depends(require_api_user),
    store: BookingStore = Depends(get_bookings),
) -> List[Booking]:
    return await BookingService(store).list_for(user)

@router.post("/bookings", status_code=201)
async def create_booking(
    req: CreateBookingRequest,
    user: Identity = Depends(require_api_user),
    store: BookingStore = Depends(get_bookings),
) -> Booking:
    # ValidationError/StoreError are mapped to 422/502 by the app-level handlers
    return await BookingService(store).book(user, req.model_dump(exclude_none=True))
