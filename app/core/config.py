from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    PROJECT_NAME: str = "Booking Ledger"
    API_V1_STR: str = "/api"

    # Server
    PORT: int = 8080
    ENVIRONMENT: str = "development"

    # Logging
    LOG_LEVEL: str = "INFO"
    ERROR_LOG_PATH: str = "logs/errors.log"

    # Reference data
    CATALOG_PATH: str = "data/catalog.json"

    # Current user context (no auth)
    USER_ID: str = "USER-001"

    # Upstream booking API. Empty means local data only.
    REMOTE_API_URL: str = ""
    REMOTE_TIMEOUT_SECONDS: float = 3.0

    # Local mock behaviour
    SIMULATED_LATENCY_MS: int = 0
    SLOT_START_HOUR: int = 9
    SLOT_END_HOUR: int = 17
    REJECT_CONFLICTS: bool = True
    SEED_DEMO_BOOKING: bool = True

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
