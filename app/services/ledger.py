import re
import threading
import time
import uuid
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Set

from app.core.exceptions import BookingValidationError, SlotConflictError
from app.core.logger import logger
from app.models.domain import Booking, BookingDetails, BookingStatus, Resource, Service, TimeSlot

# (date, resource_id, hour) -> True when the hour is taken by something outside the ledger
OccupancyPredicate = Callable[[str, str, int], bool]

DATE_FORMAT = "%Y-%m-%d"
SLOT_PATTERN = re.compile(r"(\d{2}):00", re.ASCII)
DEFAULT_START_HOUR = 9
DEFAULT_END_HOUR = 17


def pseudo_random_occupancy(date: str, resource_id: str, hour: int) -> bool:
    """Deterministic stand-in for real-world occupancy, keyed on the last character of the date."""
    return (ord(date[-1]) + hour) % 7 == 0


def never_occupied(date: str, resource_id: str, hour: int) -> bool:
    return False


def format_slot(hour: int) -> str:
    return f"{hour:02d}:00"


def validate_date(date: str) -> str:
    """Accepts only canonical YYYY-MM-DD dates. Returns the date unchanged."""
    try:
        parsed = datetime.strptime(date, DATE_FORMAT).date()
    except (TypeError, ValueError):
        raise BookingValidationError(f"Invalid date '{date}'. Expected YYYY-MM-DD.")
    if parsed.isoformat() != date:
        raise BookingValidationError(f"Invalid date '{date}'. Expected YYYY-MM-DD.")
    return date


def parse_slot(time_slot: str) -> int:
    """'14:00' -> 14. Only whole-hour labels are valid slots."""
    match = SLOT_PATTERN.fullmatch(time_slot) if isinstance(time_slot, str) else None
    hour = int(match.group(1)) if match else -1
    # Stored labels are compared as strings, so only the canonical form is accepted
    if not 0 <= hour <= 23 or time_slot != format_slot(hour):
        raise BookingValidationError(f"Invalid time slot '{time_slot}'. Expected HH:00.")
    return hour


def join_bookings(
    bookings: Iterable[Booking],
    services: Iterable[Service],
    resources_by_id: Dict[str, Resource],
) -> List[BookingDetails]:
    """
    Attach service and resource records to each booking.
    Unresolvable ids give None rather than an error. Newest first.
    """
    services_by_id = {s.id: s for s in services}
    details = [
        BookingDetails(
            **b.model_dump(),
            service=services_by_id.get(b.service_id),
            resource=resources_by_id.get(b.resource_id),
        )
        for b in bookings
    ]
    details.sort(key=lambda d: d.created_at, reverse=True)
    return details


class BookingLedger:
    """
    In-memory booking store for one process.

    A confirmed booking occupies its (resource, date, slot); cancelled ones do not.
    All reads and writes of the booking list go through one lock, so a
    check-then-append in create_booking cannot interleave with another creation.
    """

    def __init__(
        self,
        occupancy: OccupancyPredicate = pseudo_random_occupancy,
        start_hour: int = DEFAULT_START_HOUR,
        end_hour: int = DEFAULT_END_HOUR,
        reject_conflicts: bool = True,
        clock: Callable[[], float] = time.time,
    ):
        if not 0 <= start_hour < end_hour <= 24:
            raise ValueError(f"Invalid slot window [{start_hour}, {end_hour})")
        self.occupancy = occupancy
        self.start_hour = start_hour
        self.end_hour = end_hour
        self.reject_conflicts = reject_conflicts
        self._clock = clock
        self._bookings: List[Booking] = []
        self._lock = threading.Lock()
        self._last_created_at = 0

    @property
    def slot_hours(self) -> range:
        return range(self.start_hour, self.end_hour)

    def _taken_slots(self, date: str, resource_id: str) -> Set[str]:
        # Caller holds the lock
        return {
            b.time_slot for b in self._bookings
            if b.date == date and b.resource_id == resource_id and b.is_confirmed
        }

    def _next_created_at(self) -> int:
        # Strictly increasing even when the clock does not move between calls
        now_ms = int(self._clock() * 1000)
        self._last_created_at = max(now_ms, self._last_created_at + 1)
        return self._last_created_at

    def check_slot(self, time_slot: str) -> int:
        """Canonical HH:00 label inside the opening window. Returns the hour."""
        hour = parse_slot(time_slot)
        if hour not in self.slot_hours:
            raise BookingValidationError(
                f"Time slot '{time_slot}' is outside opening hours "
                f"{format_slot(self.start_hour)}-{format_slot(self.end_hour)}."
            )
        return hour

    def compute_available_slots(self, date: str, resource_id: str) -> List[TimeSlot]:
        """One slot per hour of the window, ascending. Does not touch stored state."""
        validate_date(date)
        with self._lock:
            taken = self._taken_slots(date, resource_id)

        slots = []
        for hour in self.slot_hours:
            label = format_slot(hour)
            available = label not in taken and not self.occupancy(date, resource_id, hour)
            slots.append(TimeSlot(time=label, available=available))
        return slots

    def create_booking(
        self,
        service_id: str,
        resource_id: str,
        date: str,
        time_slot: str,
        customer_name: str,
        user_id: Optional[str] = None,
    ) -> Booking:
        """
        Append a confirmed booking.
        Service and resource ids are not checked against reference data.
        Raises SlotConflictError when reject_conflicts is on and the slot is taken.
        """
        validate_date(date)
        hour = self.check_slot(time_slot)

        with self._lock:
            if self.reject_conflicts:
                if time_slot in self._taken_slots(date, resource_id) or self.occupancy(date, resource_id, hour):
                    logger.warning(f"⛔ Slot conflict: {resource_id} {date} {time_slot}")
                    raise SlotConflictError(resource_id, date, time_slot)

            booking = Booking(
                id=f"b_{uuid.uuid4().hex[:12]}",
                service_id=service_id,
                resource_id=resource_id,
                date=date,
                time_slot=time_slot,
                status=BookingStatus.CONFIRMED,
                customer_name=customer_name,
                user_id=user_id,
                created_at=self._next_created_at(),
            )
            self._bookings.append(booking)

        logger.info(f"✅ Booking {booking.id} created: {service_id} with {resource_id} on {date} {time_slot}")
        return booking.model_copy()

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        with self._lock:
            for b in self._bookings:
                if b.id == booking_id:
                    return b.model_copy()
        return None

    def list_bookings(self, user_id: Optional[str] = None) -> List[Booking]:
        """Bookings of one user (or all when user_id is None), newest first."""
        with self._lock:
            bookings = [
                b.model_copy() for b in self._bookings
                if user_id is None or b.user_id == user_id
            ]
        bookings.sort(key=lambda b: b.created_at, reverse=True)
        return bookings

    def list_booking_details(
        self,
        services: Iterable[Service],
        resources_by_id: Dict[str, Resource],
        user_id: Optional[str] = None,
    ) -> List[BookingDetails]:
        return join_bookings(self.list_bookings(user_id), services, resources_by_id)

    def cancel_booking(self, booking_id: str) -> bool:
        """
        confirmed -> cancelled. Unknown or already cancelled ids are a no-op.
        Returns True only when the status actually changed.
        """
        with self._lock:
            for index, b in enumerate(self._bookings):
                if b.id != booking_id:
                    continue
                if not b.is_confirmed:
                    return False
                self._bookings[index] = b.model_copy(update={"status": BookingStatus.CANCELLED})
                logger.info(f"🗑️ Booking {booking_id} cancelled")
                return True

        logger.debug(f"Cancel ignored, no booking '{booking_id}'")
        return False

    def seed_demo_booking(self, date: str, user_id: Optional[str] = None) -> Booking:
        """Confirmed 'Demo User' booking for s1/r1 at 14:00, bypassing the conflict check."""
        with self._lock:
            booking = Booking(
                id="b_init_1",
                service_id="s1",
                resource_id="r1",
                date=validate_date(date),
                time_slot="14:00",
                status=BookingStatus.CONFIRMED,
                customer_name="Demo User",
                user_id=user_id,
                created_at=self._next_created_at(),
            )
            self._bookings.append(booking)
        logger.info(f"🌱 Seeded demo booking for {date} 14:00")
        return booking.model_copy()

    def __len__(self) -> int:
        with self._lock:
            return len(self._bookings)
