# presence_gateway/config.py
import os
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()  # Load environment variables from .env file


def _csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseModel):
    # General app settings
    APP_NAME: str = os.getenv("APP_NAME", "Presence Gateway")
    env: str = os.getenv("ENV", "dev")

    # Host & Port settings
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8000"))

    # CORS origins for frontend
    CORS_ORIGINS: list[str] = _csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:3000,http://127.0.0.1:3000",
        )
    )

    # Heartbeat settings (milliseconds)
    # Timeout and sweep interval are independent; timeout should stay larger than the interval
    heartbeat_timeout_ms: int = int(os.getenv("HEARTBEAT_TIMEOUT_MS", "120000"))
    sweep_interval_ms: int = int(os.getenv("SWEEP_INTERVAL_MS", "10000"))

    # Upper bound for a single account store call made by the status synchronizer
    status_sync_timeout_ms: int = int(os.getenv("STATUS_SYNC_TIMEOUT_MS", "5000"))

    # Account store backend: "database" (Tortoise users table) or "memory"
    account_store: str = os.getenv("ACCOUNT_STORE", "database").lower()

    @property
    def heartbeat_timeout(self) -> float:
        """Heartbeat timeout in seconds."""
        return self.heartbeat_timeout_ms / 1000.0

    @property
    def sweep_interval(self) -> float:
        """Sweep tick interval in seconds."""
        return self.sweep_interval_ms / 1000.0

    @property
    def status_sync_timeout(self) -> float:
        return self.status_sync_timeout_ms / 1000.0


settings = Settings()  # Instantiate configuration
