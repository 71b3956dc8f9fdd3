from typing import List
from fastapi import APIRouter, Depends, Query, Response, status
from app.api.dependencies import get_booking_service, get_user_id
from app.models.api_models import NewBooking
from app.models.domain import Booking, BookingDetails, Resource, Service, ServiceType, TimeSlot
from app.services.booking_service import BookingService

router = APIRouter()

@router.get("/services", response_model=List[Service])
async def list_services(service: BookingService = Depends(get_booking_service)):
    return await service.list_services()

@router.get("/services/{service_id}", response_model=Service)
async def get_service(service_id: str, service: BookingService = Depends(get_booking_service)):
    # ServiceNotFoundError -> 404 via the handler in app.main
    return await service.require_service(service_id)

@router.get("/resources", response_model=List[Resource])
async def list_resources(
    service_type: ServiceType = Query(..., alias="serviceTypeId"),
    service: BookingService = Depends(get_booking_service),
):
    return await service.list_resources(service_type)

@router.get("/timeslots", response_model=List[TimeSlot])
async def list_timeslots(
    resource_id: str = Query(..., alias="resourceId"),
    date: str = Query(...),
    service: BookingService = Depends(get_booking_service),
):
    return await service.compute_available_slots(date, resource_id)

@router.post("/bookings", response_model=Booking, status_code=status.HTTP_201_CREATED)
async def create_booking(
    req: NewBooking,
    user_id: str = Depends(get_user_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.create_booking(
        req.service_id,
        req.resource_id,
        req.date,
        req.time_slot,
        customer_name=req.customer_name,
        user_id=req.user_id or user_id,
    )

@router.get("/bookings", response_model=List[BookingDetails])
async def list_my_bookings(
    user_id: str = Depends(get_user_id),
    service: BookingService = Depends(get_booking_service),
):
    return await service.list_my_bookings(user_id)

@router.delete("/bookings/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def cancel_booking(booking_id: str, service: BookingService = Depends(get_booking_service)):
    # Unknown and already-cancelled ids are a no-op
    await service.cancel_booking(booking_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
