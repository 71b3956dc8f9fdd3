"""Domain errors raised by the ledger and booking service.

The HTTP layer maps them to status codes in app.main.
"""


class BookingError(Exception):
    """Base class for booking domain errors."""
    status_code = 400


class NotFoundError(BookingError):
    status_code = 404


class ServiceNotFoundError(NotFoundError):
    def __init__(self, service_id: str):
        self.service_id = service_id
        super().__init__(f"Service '{service_id}' not found")


class BookingValidationError(BookingError):
    """Malformed date or time slot."""
    status_code = 422


class SlotConflictError(BookingError):
    """Requested slot is no longer available at commit time."""
    status_code = 409

    def __init__(self, resource_id: str, date: str, time_slot: str):
        self.resource_id = resource_id
        self.date = date
        self.time_slot = time_slot
        super().__init__(f"Slot {date} {time_slot} is already taken for resource '{resource_id}'")

