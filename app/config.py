from pathlib import Path
from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PATH = Path(__file__).resolve().parent.parent / ".env.local"


class Settings(BaseSettings):
    # Environment settings
    environment: str = "development"
    debug: bool = False

    # Supabase settings
    SUPABASE_URL: str
    SUPABASE_JWKS_URL: str | None = None
    SUPABASE_DB_URL: str
    SUPABASE_JWT_AUDIENCE: str = "authenticated"

    # Redis settings (optional, used for venue search caching)
    UPSTASH_REDIS_REST_URL: str | None = None
    UPSTASH_REDIS_REST_TOKEN: str | None = None
    VENUE_CACHE_TTL_SECONDS: int = 6 * 60 * 60

    # Yelp Fusion settings
    YELP_API_KEY: str | None = None
    YELP_API_BASE_URL: str = "https://api.yelp.com/v3"
    YELP_MIN_RATING: float = 4.0

    # =================================================================
    # PLAN GENERATION SETTINGS
    # =================================================================
    PLAN_BATCH_SIZE: int = 5
    PLAN_RECENT_WINDOW_DAYS: int = 14
    PLAN_MAX_RECENT_PLANS: int = 2
    PLAN_MIN_OVERLAP_MINUTES: int = 60
    PLAN_AVAILABILITY_MATCH_BONUS: float = 0.2
    PLAN_COMMIT_RULE_HOURS: int = 24
    PLAN_COMMIT_MIN_ACCEPTANCES: int = 2
    PLAN_MIN_LOCAL_FRIENDS: int = 3
    PLAN_RECOMMENDED_LOCAL_FRIENDS: int = 5
    PLAN_VENUE_SEARCH_LIMIT: int = 10
    PLAN_VENUE_HISTORY_DAYS: int = 30
    PLAN_SLOT_COLLISION_POLICY: str = "strict"  # "strict" or "next_best"
    PLAN_ALLOW_PLACEHOLDER_VENUES: bool = True

    # Request context
    TRUST_X_FORWARDED_FOR: bool = False
    TRUSTED_PROXY_IPS: list[str] = []

    # =================================================================
    # DATABASE POOL SETTINGS - Simple and configurable
    # =================================================================
    DB_POOL_MIN_SIZE: int = 3
    DB_POOL_MAX_SIZE: int = 12
    DB_POOL_TIMEOUT: float = 30.0
    DB_POOL_MAX_IDLE: float = 600.0  # 10 minutes
    DB_POOL_MAX_LIFETIME: float = 3600.0  # 1 hour

    model_config = SettingsConfigDict(
        env_file=str(ENV_PATH),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @field_validator("PLAN_SLOT_COLLISION_POLICY")
    @classmethod
    def validate_slot_collision_policy(cls, v: str) -> str:
        value = v.strip().lower()
        if value not in {"strict", "next_best"}:
            raise ValueError("PLAN_SLOT_COLLISION_POLICY must be 'strict' or 'next_best'")
        return value

    # derive sensible defaults if not provided
    def jwks_url(self) -> str:
        if self.SUPABASE_JWKS_URL:
            return self.SUPABASE_JWKS_URL
        base = self.SUPABASE_URL.rstrip("/")
        return f"{base}/auth/v1/.well-known/jwks.json"

    def project_ref(self) -> str | None:
        """
        Extract the Supabase project ref from SUPABASE_URL host, e.g.
        https://ykvceus...supabase.co -> ykvceus...
        """
        try:
            host = urlparse(self.SUPABASE_URL).hostname or ""
            return host.split(".")[0]
        except Exception:
            return None

    def redis_enabled(self) -> bool:
        """Redis is optional; venue caching is skipped when it is not configured."""
        return bool(self.UPSTASH_REDIS_REST_URL and self.UPSTASH_REDIS_REST_TOKEN)

    def get_db_pool_config(self) -> dict:
        """
        Get database pool configuration.
        Adjust environment-specific settings based on self.environment.
        """
        config = {
            "min_size": self.DB_POOL_MIN_SIZE,
            "max_size": self.DB_POOL_MAX_SIZE,
            "timeout": self.DB_POOL_TIMEOUT,
            "max_idle": self.DB_POOL_MAX_IDLE,
            "max_lifetime": self.DB_POOL_MAX_LIFETIME,
        }

        if self.environment == "development":
            # More conservative for local development
            config.update(
                {
                    "min_size": min(self.DB_POOL_MIN_SIZE, 2),
                    "max_size": min(self.DB_POOL_MAX_SIZE, 6),
                    "timeout": 15.0,
                }
            )

        return config


settings = Settings()
