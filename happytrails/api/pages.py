from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from happytrails.api.rendering import render, site_config
from happytrails.core.config_loader import get_pricing, get_services, get_testimonials
from happytrails.core.errors import StoreError, ValidationError
from happytrails.core.logger import logger
from happytrails.core.security import get_bookings, get_visitor, require_user
from happytrails.models.db_models import Identity, ServiceKind
from happytrails.models.forms import MAX_DURATION_MINS, MAX_PETS, MIN_DURATION_MINS, MIN_PETS
from happytrails.services.booking_service import BookingService, BookingStore

# Every page shows the visitor in the nav
router = APIRouter(dependencies=[Depends(get_visitor)])

BOOKING_FIELDS = ("service", "date", "time", "duration_mins", "pets", "notes")


@router.get("/")
async def home(request: Request):
    return render(request, "home.html")

@router.get("/services")
async def services(request: Request):
    return render(request, "services.html", services=get_services(site_config()))

@router.get("/pricing")
async def pricing(request: Request):
    return render(request, "pricing.html", rows=get_pricing(site_config()))

@router.get("/testimonials")
async def testimonials(request: Request):
    return render(request, "testimonials.html", items=get_testimonials(site_config()))


def _book_page(request: Request, values: dict, alert: Optional[str] = None,
               error: Optional[str] = None, status_code: int = 200):
    return render(
        request,
        "book.html",
        status_code=status_code,
        values=values,
        alert=alert,
        error=error,
        service_kinds=[s.value for s in ServiceKind],
        limits={
            "min_duration": MIN_DURATION_MINS,
            "max_duration": MAX_DURATION_MINS,
            "min_pets": MIN_PETS,
            "max_pets": MAX_PETS,
        },
    )

@router.get("/book")
async def book_form(request: Request, user: Identity = Depends(require_user)):
    defaults = {"service": ServiceKind.WALK.value, "date": "", "time": "",
                "duration_mins": 30, "pets": 1, "notes": ""}
    return _book_page(request, defaults)

@router.post("/book")
async def book_submit(
    request: Request,
    user: Identity = Depends(require_user),
    store: BookingStore = Depends(get_bookings),
):
    form = await request.form()
    values = {field: form.get(field, "") for field in BOOKING_FIELDS}

    try:
        booking = await BookingService(store).book(user, values)
    except ValidationError as e:
        return _book_page(request, values, alert=e.message, status_code=400)
    except StoreError as e:
        return _book_page(request, values, error=e.message, status_code=502)

    return RedirectResponse(f"/profile?booked={booking.id}", status_code=303)

@router.get("/profile")
async def profile(
    request: Request,
    booked: Optional[str] = None,
    user: Identity = Depends(require_user),
    store: BookingStore = Depends(get_bookings),
):
    bookings = []
    error = None
    try:
        bookings = await BookingService(store).list_for(user)
    except StoreError as e:
        logger.warning(f"⚠️ Profile for {user.id} rendered without bookings: {e.message}")
        error = e.message

    confirmation = None
    if booked:
        match = next((b for b in bookings if b.id == booked), None)
        if match:
            confirmation = BookingService.confirmation_message(match)

    return render(
        request,
        "profile.html",
        bookings=bookings,
        error=error,
        confirmation=confirmation,
    )
