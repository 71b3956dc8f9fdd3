from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# JSON records use camelCase (durationMinutes, timeSlot, ...), Python uses snake_case.
CAMEL_CONFIG = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ServiceType(str, Enum):
    GROOMING = "GROOMING"
    WELLNESS = "WELLNESS"
    SPORTS = "SPORTS"


class BookingStatus(str, Enum):
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"


class Service(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    description: str = ""
    duration_minutes: int = Field(gt=0)
    price: float = Field(ge=0)
    type: ServiceType
    image_url: str = ""


class Resource(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    name: str
    role: str = ""  # e.g. "Senior Stylist", "Hard Court"
    service_types: List[ServiceType] = Field(min_length=1)
    image_url: Optional[str] = None

    def supports(self, service_type: ServiceType) -> bool:
        return service_type in self.service_types


class Booking(BaseModel):
    model_config = CAMEL_CONFIG

    id: str
    service_id: str
    resource_id: str
    date: str  # YYYY-MM-DD
    time_slot: str  # HH:00
    status: BookingStatus = BookingStatus.CONFIRMED
    customer_name: str
    user_id: Optional[str] = None
    created_at: int  # ms since epoch, sort key

    @property
    def is_confirmed(self) -> bool:
        return self.status == BookingStatus.CONFIRMED


class TimeSlot(BaseModel):
    time: str
    available: bool


class BookingDetails(Booking):
    """Booking joined with its service and resource (None when the id no longer resolves)."""
    service: Optional[Service] = None
    resource: Optional[Resource] = None
