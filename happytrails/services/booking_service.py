import datetime as dt
import uuid
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from happytrails.core.errors import StoreError, ValidationError
from happytrails.core.logger import logger
from happytrails.models.db_models import Booking, Identity, ServiceKind
from happytrails.models.forms import (
    MAX_DURATION_MINS,
    MAX_PETS,
    MIN_DURATION_MINS,
    MIN_PETS,
    MISSING_DATE_TIME,
    parse_booking_form,
)
from happytrails.services.db_service import SupabaseService
from happytrails.services.local_storage import BOOKINGS_KEY, LocalStorage


class BookingStore(ABC):
    """
    Create and list bookings for one owner. There is no update or delete.

    `ordering` tells callers what `list_by_owner` returns: "insertion" (oldest
    first) or "recency" (newest first).
    """

    ordering: str = "insertion"

    def scoped(self, client: Any = None) -> "BookingStore":
        """The store as seen by one visitor. Local stores have nothing to scope."""
        return self

    async def create(
        self,
        owner_id: str,
        service: ServiceKind,
        date: Optional[dt.date],
        time: Optional[dt.time],
        duration_mins: int,
        pets: int,
        notes: Optional[str] = None,
    ) -> Booking:
        if not owner_id:
            raise ValidationError("You need to be signed in to book.")
        if date is None or time is None:
            raise ValidationError(MISSING_DATE_TIME)
        try:
            service = ServiceKind(service)
        except ValueError as e:
            raise ValidationError(f"Unknown service: {service}") from e
        if not MIN_DURATION_MINS <= duration_mins <= MAX_DURATION_MINS:
            raise ValidationError(f"Duration must be between {MIN_DURATION_MINS} and {MAX_DURATION_MINS} minutes.")
        if not MIN_PETS <= pets <= MAX_PETS:
            raise ValidationError(f"# of pets must be between {MIN_PETS} and {MAX_PETS}.")

        row = {
            "user_id": owner_id,
            "service": service.value,
            "date": date.isoformat(),
            "time": time.replace(microsecond=0).isoformat(),
            "duration_mins": duration_mins,
            "pets": pets,
            "notes": notes or None,
        }
        booking = await self._insert(row)
        logger.info(f"📅 Booking {booking.id} created for {owner_id}: {booking.service.value} {booking.date} {booking.time_label}")
        return booking

    @abstractmethod
    async def _insert(self, row: Dict[str, Any]) -> Booking:
        ...

    @abstractmethod
    async def list_by_owner(self, owner_id: str) -> List[Booking]:
        ...


class LocalBookingStore(BookingStore):
    ordering = "insertion"

    def __init__(self, storage: LocalStorage):
        self.storage = storage

    def _load(self) -> List[Dict[str, Any]]:
        rows = self.storage.get_item(BOOKINGS_KEY) or []
        if not isinstance(rows, list):
            raise StoreError("Stored bookings are corrupt.")
        return rows

    async def _insert(self, row: Dict[str, Any]) -> Booking:
        booking = Booking(
            id=str(uuid.uuid4()),
            created_at=dt.datetime.now(dt.timezone.utc),
            **row,
        )
        rows = self._load()
        rows.append(booking.to_row())
        self.storage.set_item(BOOKINGS_KEY, rows)
        return booking

    async def list_by_owner(self, owner_id: str) -> List[Booking]:
        try:
            return [Booking.model_validate(r) for r in self._load() if r.get("user_id") == owner_id]
        except (AttributeError, ValueError) as e:
            logger.error(f"❌ Stored bookings unreadable: {e}")
            raise StoreError("Stored bookings are corrupt.") from e


class SupabaseBookingStore(BookingStore):
    ordering = "recency"

    def __init__(self, db: SupabaseService, client: Any = None):
        self.db = db
        self.client = client

    def scoped(self, client: Any = None) -> "SupabaseBookingStore":
        if client is None:
            return self
        return SupabaseBookingStore(self.db, client)

    async def _get_client(self):
        # Without a visitor client, fall back to the shared anon one
        if self.client is not None:
            return self.client
        return await self.db.get_client()

    async def _insert(self, row: Dict[str, Any]) -> Booking:
        client = await self._get_client()
        try:
            response = await client.table('bookings').insert(row).execute()
        except Exception as e:
            logger.error(f"❌ DB Error (create booking): {e}")
            raise StoreError(str(e) or "Error creating booking") from e

        if not response.data:
            logger.error("❌ DB Error (create booking): insert returned no row")
            raise StoreError("Error creating booking")
        return Booking.model_validate(response.data[0])

    async def list_by_owner(self, owner_id: str) -> List[Booking]:
        client = await self._get_client()
        try:
            response = await client.table('bookings')\
                .select("*")\
                .eq('user_id', owner_id)\
                .order('created_at', desc=True)\
                .execute()
        except Exception as e:
            logger.error(f"❌ DB Error (list bookings): {e}")
            raise StoreError("Could not load your bookings.") from e

        return [Booking.model_validate(r) for r in (response.data or [])]


class BookingService:
    """The booking-creation flow: validate the form, then hand it to the store."""

    def __init__(self, store: BookingStore):
        self.store = store

    async def book(self, owner: Identity, data: Dict[str, Any]) -> Booking:
        form = parse_booking_form(data)
        logger.info(f"📥 Booking Request - {form.service.value} on {form.date} at {form.time} for {owner.id}")
        return await self.store.create(
            owner.id,
            form.service,
            form.date,
            form.time,
            form.duration_mins,
            form.pets,
            form.notes,
        )

    async def list_for(self, owner: Identity) -> List[Booking]:
        return await self.store.list_by_owner(owner.id)

    @staticmethod
    def confirmation_message(booking: Booking) -> str:
        return f"Booking confirmed for {booking.date.isoformat()} at {booking.time_label}."
