from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from typing import Optional

# --- Incoming Request Models ---

class NewBooking(BaseModel):
    """Body of POST /api/bookings. Id, status and createdAt are assigned by the ledger."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    service_id: str
    resource_id: str
    date: str
    time_slot: str
    customer_name: str = "Demo User"
    user_id: Optional[str] = None


# --- Outgoing Response Models ---

class ErrorResponse(BaseModel):
    message: str
    detail: Optional[str] = None

class HealthResponse(BaseModel):
    status: str
    environment: str
    timestamp: str
    remote_enabled: bool = False
