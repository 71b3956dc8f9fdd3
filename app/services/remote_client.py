"""HTTP client for an upstream booking API.

Every call returns a SourceResult instead of raising, so the booking
service can pick the fallback branch explicitly.
"""
from dataclasses import dataclass
from typing import Any, Dict, Generic, List, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from app.core.logger import logger
from app.models.api_models import NewBooking
from app.models.domain import Booking, Resource, Service, ServiceType, TimeSlot

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass
class SourceResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    error: Optional[str] = None
    status_code: Optional[int] = None

    @classmethod
    def success(cls, value: T) -> "SourceResult[T]":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str, status_code: Optional[int] = None) -> "SourceResult[T]":
        return cls(ok=False, error=error, status_code=status_code)


def create_http_session(max_retries: int = 1, backoff_factor: float = 0.2) -> requests.Session:
    """
    Session with connection pooling and a short retry on gateway errors.
    Kept short on purpose: callers fall back to local data on failure.
    """
    session = requests.Session()
    retry_strategy = Retry(
        total=max_retries,
        backoff_factor=backoff_factor,
        status_forcelist=[502, 503, 504],
        allowed_methods=["GET", "DELETE"],
    )
    adapter = HTTPAdapter(max_retries=retry_strategy, pool_connections=10, pool_maxsize=10)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    session.headers.update({"Content-Type": "application/json"})
    return session


class RemoteBookingClient:
    def __init__(self, base_url: str, timeout: float = 3.0, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or create_http_session()

    def _request(self, method: str, path: str, **kwargs) -> SourceResult[Any]:
        url = f"{self.base_url}{path}"
        kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.session.request(method, url, **kwargs)
            response.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            logger.debug(f"Upstream {method} {path} answered {status}")
            return SourceResult.failure(f"HTTP {status} from {method} {path}", status_code=status)
        except requests.RequestException as e:
            logger.debug(f"Upstream {method} {path} unreachable: {e}")
            return SourceResult.failure(f"{type(e).__name__}: {e}")

        if not response.content:
            return SourceResult.success(None)
        try:
            return SourceResult.success(response.json())
        except ValueError as e:
            return SourceResult.failure(f"Invalid JSON from {method} {path}: {e}")

    @staticmethod
    def _parse_many(result: SourceResult[Any], model: Type[M]) -> SourceResult[List[M]]:
        if not result.ok:
            return result
        try:
            return SourceResult.success(TypeAdapter(List[model]).validate_python(result.value or []))
        except ValidationError as e:
            return SourceResult.failure(f"Unexpected {model.__name__} payload: {e.error_count()} errors")

    @staticmethod
    def _parse_one(result: SourceResult[Any], model: Type[M]) -> SourceResult[M]:
        if not result.ok:
            return result
        try:
            return SourceResult.success(model.model_validate(result.value))
        except ValidationError as e:
            return SourceResult.failure(f"Unexpected {model.__name__} payload: {e.error_count()} errors")

    def list_services(self) -> SourceResult[List[Service]]:
        return self._parse_many(self._request("GET", "/services"), Service)

    def list_resources(self, service_type: ServiceType) -> SourceResult[List[Resource]]:
        params = {"serviceTypeId": service_type.value}
        return self._parse_many(self._request("GET", "/resources", params=params), Resource)

    def get_available_slots(self, date: str, resource_id: str) -> SourceResult[List[TimeSlot]]:
        params = {"resourceId": resource_id, "date": date}
        return self._parse_many(self._request("GET", "/timeslots", params=params), TimeSlot)

    def create_booking(self, new_booking: NewBooking) -> SourceResult[Booking]:
        payload: Dict[str, Any] = new_booking.model_dump(by_alias=True)
        return self._parse_one(self._request("POST", "/bookings", json=payload), Booking)

    def list_bookings(self, user_id: str) -> SourceResult[List[Booking]]:
        params = {"userId": user_id}
        return self._parse_many(self._request("GET", "/bookings", params=params), Booking)

    def cancel_booking(self, booking_id: str) -> SourceResult[None]:
        result = self._request("DELETE", f"/bookings/{booking_id}")
        if not result.ok:
            return result
        return SourceResult.success(None)
