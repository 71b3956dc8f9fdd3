from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from app.core.config import settings
from app.core.exceptions import BookingError
from app.models.api_models import ErrorResponse, HealthResponse
from app.api import bookings
from app.core.logger import setup_logging, logger
from app.services.booking_service import BookingService
from contextlib import asynccontextmanager
from datetime import datetime

setup_logging(settings.LOG_LEVEL, settings.ERROR_LOG_PATH, settings.ENVIRONMENT)

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup: one ledger per process, tests may install their own beforehand
    if getattr(app.state, "booking_service", None) is None:
        app.state.booking_service = BookingService.from_settings(settings)
    logger.info("🚀 Starting Booking Ledger backend")
    yield
    # Shutdown
    logger.info("🛑 Shutting down backend")

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="0.1.0",
    lifespan=lifespan
)

# Domain errors carry their own status code (404, 409, 422)
@app.exception_handler(BookingError)
async def booking_error_handler(request: Request, exc: BookingError):
    logger.info(f"↩️ {request.method} {request.url.path} -> {exc.status_code}: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(message=type(exc).__name__, detail=str(exc)).model_dump()
    )

# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.opt(exception=exc).error(f"🔥 UNHANDLED ERROR: {str(exc)}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            message="Internal Server Error",
            detail="An unexpected error occurred. Please contact support."
        ).model_dump()
    )

# Include routers
app.include_router(bookings.router, prefix=settings.API_V1_STR, tags=["Bookings"])

@app.get("/")
async def health_check():
    return {'status': 'active', 'time': datetime.now().isoformat()}

@app.get("/health", response_model=HealthResponse)
async def health_check_std(request: Request):
    booking_service = getattr(request.app.state, "booking_service", None)
    return {
        "status": "ok",
        "environment": settings.ENVIRONMENT,
        "timestamp": datetime.now().isoformat(),
        "remote_enabled": bool(booking_service and booking_service.remote),
    }

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT, reload=True)
