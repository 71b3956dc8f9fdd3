import asyncio
from datetime import date as date_type
from functools import partial
from typing import Callable, Dict, List, Optional, TypeVar

from app.core.config import Settings
from app.core.exceptions import BookingValidationError, ServiceNotFoundError, SlotConflictError
from app.core.logger import logger
from app.models.api_models import NewBooking
from app.models.domain import Booking, BookingDetails, Resource, Service, ServiceType, TimeSlot
from app.services.catalog_service import Catalog
from app.services.ledger import BookingLedger, join_bookings, pseudo_random_occupancy, validate_date
from app.services.remote_client import RemoteBookingClient, SourceResult

T = TypeVar("T")


class BookingService:
    """
    Two-tier access to booking data.

    The remote client (when configured) is tried first; a failed SourceResult
    switches to the local catalog and ledger. Upstream outages are logged,
    never raised. Domain errors (validation, conflict) always propagate.
    """

    def __init__(
        self,
        catalog: Catalog,
        ledger: BookingLedger,
        remote: Optional[RemoteBookingClient] = None,
        user_id: str = "USER-001",
        latency_ms: int = 0,
        remote_deadline: Optional[float] = None,
    ):
        self.catalog = catalog
        self.ledger = ledger
        self.remote = remote
        self.user_id = user_id
        self.latency_ms = latency_ms
        # Outer deadline on top of the requests timeout (connect + read can exceed it)
        self.remote_deadline = remote_deadline or (remote.timeout * 2 if remote else None)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BookingService":
        catalog = Catalog.from_file(settings.CATALOG_PATH)
        ledger = BookingLedger(
            occupancy=pseudo_random_occupancy,
            start_hour=settings.SLOT_START_HOUR,
            end_hour=settings.SLOT_END_HOUR,
            reject_conflicts=settings.REJECT_CONFLICTS,
        )
        if settings.SEED_DEMO_BOOKING:
            ledger.seed_demo_booking(date_type.today().isoformat(), user_id=settings.USER_ID)

        remote = None
        if settings.REMOTE_API_URL:
            remote = RemoteBookingClient(settings.REMOTE_API_URL, timeout=settings.REMOTE_TIMEOUT_SECONDS)
            logger.info(f"🌐 Upstream booking API enabled: {settings.REMOTE_API_URL}")
        else:
            logger.info("💾 No upstream booking API configured, serving local data only")

        return cls(
            catalog,
            ledger,
            remote=remote,
            user_id=settings.USER_ID,
            latency_ms=settings.SIMULATED_LATENCY_MS,
        )

    # --- tiers ---

    async def _call_remote(self, operation: str, call: Callable[[], SourceResult[T]]) -> SourceResult[T]:
        try:
            return await asyncio.wait_for(asyncio.to_thread(call), timeout=self.remote_deadline)
        except asyncio.TimeoutError:
            return SourceResult.failure(f"{operation} exceeded {self.remote_deadline}s deadline")

    async def _call_local(self, call: Callable[[], T]) -> T:
        if self.latency_ms:
            await asyncio.sleep(self.latency_ms / 1000)
        return call()

    @staticmethod
    def _raise_domain_error(result: SourceResult, new_booking: Optional[NewBooking] = None):
        # Upstream rejections are answers, not outages
        if result.status_code == 409 and new_booking is not None:
            raise SlotConflictError(new_booking.resource_id, new_booking.date, new_booking.time_slot)
        if result.status_code == 422:
            raise BookingValidationError(result.error or "Rejected by upstream booking API")

    async def _with_fallback(
        self,
        operation: str,
        remote_call: Callable[[], SourceResult[T]],
        local_call: Callable[[], T],
        new_booking: Optional[NewBooking] = None,
    ) -> T:
        if self.remote is not None:
            result = await self._call_remote(operation, remote_call)
            if result.ok:
                return result.value
            self._raise_domain_error(result, new_booking)
            logger.warning(f"⚠️ Upstream unavailable for {operation} ({result.error}), using local data.")
        return await self._call_local(local_call)

    # --- operations ---

    async def list_services(self) -> List[Service]:
        return await self._with_fallback(
            "list services",
            lambda: self.remote.list_services(),
            self.catalog.list_services,
        )

    async def get_service(self, service_id: str) -> Optional[Service]:
        return await self._with_fallback(
            "get service",
            partial(self._find_remote_service, service_id),
            partial(self.catalog.get_service, service_id),
        )

    def _find_remote_service(self, service_id: str) -> SourceResult[Optional[Service]]:
        # Upstream has no single-service route, look it up in the full list
        result = self.remote.list_services()
        if not result.ok:
            return result
        return SourceResult.success(next((s for s in result.value if s.id == service_id), None))

    async def require_service(self, service_id: str) -> Service:
        service = await self.get_service(service_id)
        if service is None:
            raise ServiceNotFoundError(service_id)
        return service

    async def list_resources(self, service_type: ServiceType) -> List[Resource]:
        return await self._with_fallback(
            "list resources",
            lambda: self.remote.list_resources(service_type),
            partial(self.catalog.list_resources, service_type),
        )

    async def compute_available_slots(self, date: str, resource_id: str) -> List[TimeSlot]:
        validate_date(date)
        return await self._with_fallback(
            "compute slots",
            lambda: self.remote.get_available_slots(date, resource_id),
            partial(self.ledger.compute_available_slots, date, resource_id),
        )

    async def create_booking(
        self,
        service_id: str,
        resource_id: str,
        date: str,
        time_slot: str,
        customer_name: str = "Demo User",
        user_id: Optional[str] = None,
    ) -> Booking:
        validate_date(date)
        # Window check happens here too, so out-of-hours requests never reach upstream
        self.ledger.check_slot(time_slot)
        new_booking = NewBooking(
            service_id=service_id,
            resource_id=resource_id,
            date=date,
            time_slot=time_slot,
            customer_name=customer_name,
            user_id=user_id or self.user_id,
        )
        logger.info(f"📥 Booking request: {service_id}/{resource_id} on {date} {time_slot} for {customer_name}")
        return await self._with_fallback(
            "create booking",
            lambda: self.remote.create_booking(new_booking),
            partial(
                self.ledger.create_booking,
                service_id, resource_id, date, time_slot, customer_name, new_booking.user_id,
            ),
            new_booking=new_booking,
        )

    async def list_my_bookings(self, user_id: Optional[str] = None) -> List[BookingDetails]:
        """Bookings of the current user joined with service and resource, newest first."""
        user_id = user_id or self.user_id

        if self.remote is not None:
            result = await self._call_remote("list bookings", lambda: self.remote.list_bookings(user_id))
            if result.ok:
                return await self._join_remote(result.value)
            logger.warning(f"⚠️ Upstream unavailable for list bookings ({result.error}), using local data.")

        return await self._call_local(partial(
            self.ledger.list_booking_details,
            self.catalog.list_services(),
            self.catalog.resources_by_id,
            user_id,
        ))

    async def _join_remote(self, bookings: List[Booking]) -> List[BookingDetails]:
        if not bookings:
            return []

        services = await self.list_services()
        services_by_id = {s.id: s for s in services}

        # Only fetch resources for the service types actually booked
        relevant_types = list({
            services_by_id[b.service_id].type for b in bookings if b.service_id in services_by_id
        })
        resources_by_id: Dict[str, Resource] = {}
        results = await asyncio.gather(
            *(self.list_resources(t) for t in relevant_types), return_exceptions=True
        )
        for service_type, resources in zip(relevant_types, results):
            if isinstance(resources, Exception):
                logger.warning(f"⚠️ Skipping resources for {service_type.value}: {resources}")
                continue
            resources_by_id.update({r.id: r for r in resources})

        return join_bookings(bookings, services, resources_by_id)

    async def cancel_booking(self, booking_id: str) -> None:
        """Idempotent: unknown or already cancelled ids are a silent no-op."""
        await self._with_fallback(
            "cancel booking",
            lambda: self.remote.cancel_booking(booking_id),
            partial(self.ledger.cancel_booking, booking_id),
        )
