from typing import Optional
from fastapi import Header, Query, Request
from app.core.config import settings
from app.services.booking_service import BookingService

def get_booking_service(request: Request) -> BookingService:
    """The BookingService built in the app lifespan (see app.main)."""
    return request.app.state.booking_service

async def get_user_id(
    user_id: Optional[str] = Query(None, alias="userId"),
    x_user_id: Optional[str] = Header(None),
) -> str:
    """
    Current user context. There is no authentication: the id comes from the
    `userId` query parameter, then the X-User-Id header, then settings.USER_ID.
    """
    return user_id or x_user_id or settings.USER_ID
