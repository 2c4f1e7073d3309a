"""Configuration management for the tokenscope service."""

import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, model_validator

from .log import get_logger
from .types import Environment

logger = get_logger(__name__)

DEFAULT_TIMEZONE = "UTC"


class Settings(BaseModel):
    """Application settings."""

    # Environment
    version: str = Field(default="0.1.0", description="Application version")
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development/production/testing)",
    )

    # API Settings
    api_title: str = Field(default="TokenScope API", description="API title")
    api_version: str = Field(default="1.0.0", description="API version")

    # CORS Settings
    cors_allow_origins: list[str] = Field(
        default=["*"], description="Allowed CORS origins"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    # Database
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy database URL; overrides the per-environment SQLite file",
    )
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="IANA timezone used for calendar-day boundaries",
    )

    # Records Settings
    records_default_limit: int = Field(
        default=50, ge=1, description="Page size when no limit is requested"
    )
    records_max_limit: int = Field(
        default=200, ge=1, description="Largest page size a client may request"
    )
    filter_values_limit: int = Field(
        default=200, ge=1, description="Maximum distinct values per filter list"
    )

    # Explore Settings
    explore_cache_ttl_seconds: float = Field(
        default=30.0, gt=0, description="Lifetime of cached explore results"
    )
    explore_cache_max_entries: int = Field(
        default=100, ge=1, description="Maximum number of cached explore results"
    )
    explore_default_days: int = Field(
        default=14, ge=1, description="Trailing window when no days are requested"
    )
    explore_max_days: int = Field(
        default=90, ge=1, description="Longest trailing window a client may request"
    )
    explore_default_max_points: int = Field(
        default=20_000, ge=1, description="Point budget when none is requested"
    )
    explore_min_max_points: int = Field(
        default=1, ge=1, description="Smallest point budget a client may request"
    )
    explore_max_max_points: int = Field(
        default=100_000, ge=1, description="Largest point budget a client may request"
    )

    # Overview Settings
    overview_cache_ttl_seconds: float = Field(
        default=30.0, gt=0, description="Lifetime of cached overview results"
    )
    overview_cache_max_entries: int = Field(
        default=100, ge=1, description="Maximum number of cached overview results"
    )
    overview_default_days: int = Field(
        default=14, ge=1, description="Trailing window when no days are requested"
    )
    overview_max_days: int = Field(
        default=90, ge=1, description="Longest trailing window a client may request"
    )
    overview_default_page_size: int = Field(
        default=10, ge=1, description="Models per overview page when none is requested"
    )
    overview_min_page_size: int = Field(
        default=5, ge=1, description="Smallest models page a client may request"
    )
    overview_max_page_size: int = Field(
        default=500, ge=1, description="Largest models page a client may request"
    )

    @model_validator(mode="after")
    def validate_bounds(self) -> "Settings":
        """Ensure every default lies inside its bounds."""
        if self.records_default_limit > self.records_max_limit:
            raise ValueError("records_default_limit must not exceed records_max_limit")
        if self.explore_default_days > self.explore_max_days:
            raise ValueError("explore_default_days must not exceed explore_max_days")
        if not (
            self.explore_min_max_points
            <= self.explore_default_max_points
            <= self.explore_max_max_points
        ):
            raise ValueError(
                "explore_default_max_points must lie between "
                "explore_min_max_points and explore_max_max_points"
            )
        if self.overview_default_days > self.overview_max_days:
            raise ValueError("overview_default_days must not exceed overview_max_days")
        if not (
            self.overview_min_page_size
            <= self.overview_default_page_size
            <= self.overview_max_page_size
        ):
            raise ValueError(
                "overview_default_page_size must lie between "
                "overview_min_page_size and overview_max_page_size"
            )
        return self

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_testing(self) -> bool:
        """Check if running in testing mode."""
        return self.environment == Environment.TESTING

    @property
    def tzinfo(self) -> ZoneInfo:
        """Get the configured timezone."""
        return ZoneInfo(self.timezone)


def normalize_timezone(raw: str | None) -> str:
    """Return a valid IANA timezone name, falling back to UTC."""
    value = (raw or "").strip()
    if not value:
        return DEFAULT_TIMEZONE
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(
            f'TOKENSCOPE_TIMEZONE "{value}" is not a valid IANA timezone. '
            f"Falling back to {DEFAULT_TIMEZONE}."
        )
        return DEFAULT_TIMEZONE
    return value


def load_settings() -> Settings:
    """Load settings from environment variables."""

    # Load .env file if it exists
    load_dotenv()

    # Parse CORS origins from comma-separated string
    cors_origins_str = os.getenv("TOKENSCOPE_CORS_ORIGINS", "*")
    if cors_origins_str == "*":
        cors_origins = ["*"]
    else:
        cors_origins = [origin.strip() for origin in cors_origins_str.split(",")]

    database_url = os.getenv("TOKENSCOPE_DATABASE_URL") or None

    return Settings(
        environment=Environment(os.getenv("TOKENSCOPE_ENV", "development")),
        api_title=os.getenv("TOKENSCOPE_API_TITLE", "TokenScope API"),
        api_version=os.getenv("TOKENSCOPE_API_VERSION", "1.0.0"),
        cors_allow_origins=cors_origins,
        log_level=os.getenv("TOKENSCOPE_LOG_LEVEL", "INFO").upper(),
        database_url=database_url,
        timezone=normalize_timezone(os.getenv("TOKENSCOPE_TIMEZONE")),
        records_default_limit=int(os.getenv("TOKENSCOPE_RECORDS_DEFAULT_LIMIT", "50")),
        records_max_limit=int(os.getenv("TOKENSCOPE_RECORDS_MAX_LIMIT", "200")),
        filter_values_limit=int(os.getenv("TOKENSCOPE_FILTER_VALUES_LIMIT", "200")),
        explore_cache_ttl_seconds=float(
            os.getenv("TOKENSCOPE_EXPLORE_CACHE_TTL_SECONDS", "30")
        ),
        explore_cache_max_entries=int(
            os.getenv("TOKENSCOPE_EXPLORE_CACHE_MAX_ENTRIES", "100")
        ),
        explore_default_days=int(os.getenv("TOKENSCOPE_EXPLORE_DEFAULT_DAYS", "14")),
        explore_max_days=int(os.getenv("TOKENSCOPE_EXPLORE_MAX_DAYS", "90")),
        explore_default_max_points=int(
            os.getenv("TOKENSCOPE_EXPLORE_DEFAULT_MAX_POINTS", "20000")
        ),
        explore_min_max_points=int(
            os.getenv("TOKENSCOPE_EXPLORE_MIN_MAX_POINTS", "1")
        ),
        explore_max_max_points=int(
            os.getenv("TOKENSCOPE_EXPLORE_MAX_MAX_POINTS", "100000")
        ),
        overview_cache_ttl_seconds=float(
            os.getenv("TOKENSCOPE_OVERVIEW_CACHE_TTL_SECONDS", "30")
        ),
        overview_cache_max_entries=int(
            os.getenv("TOKENSCOPE_OVERVIEW_CACHE_MAX_ENTRIES", "100")
        ),
        overview_default_days=int(os.getenv("TOKENSCOPE_OVERVIEW_DEFAULT_DAYS", "14")),
        overview_max_days=int(os.getenv("TOKENSCOPE_OVERVIEW_MAX_DAYS", "90")),
        overview_default_page_size=int(
            os.getenv("TOKENSCOPE_OVERVIEW_DEFAULT_PAGE_SIZE", "10")
        ),
        overview_min_page_size=int(
            os.getenv("TOKENSCOPE_OVERVIEW_MIN_PAGE_SIZE", "5")
        ),
        overview_max_page_size=int(
            os.getenv("TOKENSCOPE_OVERVIEW_MAX_PAGE_SIZE", "500")
        ),
    )
