# storefront/config.py
import os
from typing import List, Optional

from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [part.strip() for part in raw.split(",") if part.strip()]


class Settings(BaseModel):
    """Per-deployment configuration, built once at process start."""

    backend: str = Field("rest", pattern="^(rest|memory)$")
    baas_url: str = ""
    baas_service_key: str = ""
    baas_timeout: Optional[float] = None
    storage_bucket: str = "images"

    webhook_secret: Optional[str] = None
    session_key: Optional[str] = None
    session_algorithms: List[str] = ["RS256"]

    cache_stale_seconds: float = 30.0
    compensate_orders: bool = True
    seed: bool = False

    log_level: str = "INFO"
    cors_origins: List[str] = ["*"]
    host: str = "0.0.0.0"
    port: int = 8085

    @classmethod
    def from_env(cls) -> "Settings":
        timeout = os.getenv("BAAS_TIMEOUT")
        return cls(
            backend=os.getenv("STOREFRONT_BACKEND", "rest"),
            baas_url=os.getenv("BAAS_URL", "").rstrip("/"),
            baas_service_key=os.getenv("BAAS_SERVICE_KEY", ""),
            baas_timeout=float(timeout) if timeout else None,
            storage_bucket=os.getenv("STORAGE_BUCKET", "images"),
            webhook_secret=os.getenv("CLERK_WEBHOOK_SECRET") or None,
            session_key=os.getenv("SESSION_KEY") or None,
            session_algorithms=_env_list("SESSION_ALGORITHMS", "RS256"),
            cache_stale_seconds=float(os.getenv("CACHE_STALE_SECONDS", "30")),
            compensate_orders=_env_bool("STOREFRONT_COMPENSATE_ORDERS", True),
            seed=_env_bool("STOREFRONT_SEED", False),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8085")),
        )
