# File: civic_dispatch/core/config.py
# Project: civic-dispatch

from typing import List, Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    .env file may contain (all optional, defaults shown):

    - DATABASE_URL=sqlite:///./civic_dispatch.db
    - JWT_SECRET=change-me-in-production
    - BACKEND_CORS_ORIGINS=http://localhost:3000,http://127.0.0.1:3000
    - COLLECTION_KEY=civic_issues
    - REWARDS_KEY=citizen_rewards
    - STRICT_WRITES=false (true rejects writes based on a stale snapshot)
    - DISPATCH_POLICY=category (or least_workload)
    - ROUTING_TABLE_PATH=/path/to/routing.json (replaces the built-in table)
    - CLUSTER_PRECISION=3 (decimal places kept when clustering coordinates)
    - ALERT_TTL_SECONDS=5
    - VIEWER_IDLE_SECONDS=600 (dashboard views not opened for this long are dropped)
    - MAX_VIEWERS=500
    - REWARD_POINTS_PER_REPORT=50
    - REDEEM_MIN_POINTS=500 (smallest balance that can be redeemed)
    - USE_FALLBACK_LOCATION=true
    - FALLBACK_LAT=28.6139
    - FALLBACK_LNG=77.2090
    """
    database_url: str = Field(default="sqlite:///./civic_dispatch.db", alias="DATABASE_URL")
    jwt_secret: str = Field(default="change-me-in-production-civic-dispatch", alias="JWT_SECRET")
    backend_cors_origins: str = Field(
        default="http://localhost:3000,http://127.0.0.1:3000",
        alias="BACKEND_CORS_ORIGINS",
    )

    collection_key: str = Field(default="civic_issues", alias="COLLECTION_KEY")
    rewards_key: str = Field(default="citizen_rewards", alias="REWARDS_KEY")
    strict_writes: bool = Field(default=False, alias="STRICT_WRITES")

    dispatch_policy: str = Field(default="category", alias="DISPATCH_POLICY")
    routing_table_path: Optional[str] = Field(default=None, alias="ROUTING_TABLE_PATH")

    cluster_precision: int = Field(default=3, ge=0, le=8, alias="CLUSTER_PRECISION")
    alert_ttl_seconds: float = Field(default=5.0, gt=0, alias="ALERT_TTL_SECONDS")
    viewer_idle_seconds: float = Field(default=600.0, gt=0, alias="VIEWER_IDLE_SECONDS")
    max_viewers: int = Field(default=500, ge=1, alias="MAX_VIEWERS")
    reward_points_per_report: int = Field(default=50, ge=0, alias="REWARD_POINTS_PER_REPORT")
    redeem_min_points: int = Field(default=500, ge=0, alias="REDEEM_MIN_POINTS")

    use_fallback_location: bool = Field(default=True, alias="USE_FALLBACK_LOCATION")
    fallback_lat: float = Field(default=28.6139, alias="FALLBACK_LAT")
    fallback_lng: float = Field(default=77.2090, alias="FALLBACK_LNG")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

def cors_origins_list() -> List[str]:
    raw = settings.backend_cors_origins or ""
    return [x.strip().rstrip("/") for x in raw.split(",") if x.strip()]

settings = Settings()
