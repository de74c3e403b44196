"""
Global configuration for the calendar backend.

All values are read from environment variables (prefixed CALENDAR_).
Defaults are safe for local development; override in production via .env.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CALENDAR_", env_file=".env")

    # ── Holiday window ────────────────────────────────────────────────────
    holiday_years_back: int = 1        # include last year's holidays
    holiday_years_ahead: int = 2       # always have next year's loaded

    # ── Calendar view ─────────────────────────────────────────────────────
    default_visible_categories_raw: str = "Birthday,Health,Holiday"
    default_time_zone: str = "local"   # "local", "UTC" or an IANA name

    # ── Auth ──────────────────────────────────────────────────────────────
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"

    # ── Server ────────────────────────────────────────────────────────────
    cors_origins_raw: str = "*"
    port: int = 3001
    log_level: str = "INFO"

    @property
    def default_visible_categories(self) -> list[str]:
        return [c.strip() for c in self.default_visible_categories_raw.split(",") if c.strip()]

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.cors_origins_raw.split(",") if o.strip()] or ["*"]


settings = Settings()
