# jobdispatch/config.py
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application
    app_env: Literal["dev", "staging", "prod"] = "dev"
    log_level: str = "INFO"
    local_timezone: str = "Europe/London"  # Used to decide day/night for weather fallback

    # Database
    notification_store: Literal["postgres", "memory"] = "postgres"
    database_url: str | None = None
    pghost: str = "localhost"
    pgport: int = 5432
    pguser: str = "postgres"
    pgpassword: str = ""
    pgdatabase: str = "postgres"
    pg_pool_min: int = 2
    pg_pool_max: int = 20
    pg_connect_timeout: int = 5
    run_migrations_on_startup: bool = True

    # Enrichment providers
    # Each provider gets its own budget; the three calls run in parallel,
    # so the dispatch path waits at most max(timeouts), never their sum.
    weather_api_url: str | None = None    # e.g. https://weather.internal/api/weather/forecast
    traffic_api_url: str | None = None    # e.g. https://traffic.internal/api/traffic/route
    route_api_url: str | None = None      # e.g. https://routes.internal/api/routes/optimize
    provider_api_key: str | None = None
    weather_timeout_seconds: float = 2.5
    traffic_timeout_seconds: float = 2.5
    route_timeout_seconds: float = 3.0

    # Notification store write budget (single insert)
    store_timeout_seconds: float = 2.0

    # Realtime push (Pusher-style HTTP trigger gateway)
    realtime_enabled: bool = True
    realtime_push_url: str | None = None  # e.g. https://push.example.com/events
    realtime_push_key: str | None = None
    realtime_timeout_seconds: float = 5.0

    # Monitoring & Metrics
    enable_metrics: bool = True
    metrics_token: str | None = None

    @field_validator("local_timezone")
    @classmethod
    def _known_timezone(cls, v: str) -> str:
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"unknown timezone: {v!r}") from None
        return v

    @property
    def is_production(self) -> bool:
        return self.app_env == "prod"

    @property
    def database_dsn(self) -> str:
        if self.database_url:
            return self.database_url

        return (
            f"postgresql://{self.pguser}:{self.pgpassword}"
            f"@{self.pghost}:{self.pgport}/{self.pgdatabase}"
        )

    @property
    def realtime_configured(self) -> bool:
        """Check if the realtime push gateway is configured"""
        return bool(self.realtime_push_url and self.realtime_push_key)

    def validate_required_for_production(self) -> list[str]:
        """Validate that required settings exist for production"""
        if not self.is_production:
            return []

        missing = []

        required_fields = [
            ("weather_api_url", self.weather_api_url),
            ("traffic_api_url", self.traffic_api_url),
            ("route_api_url", self.route_api_url),
        ]

        if self.notification_store == "postgres":
            required_fields.append(
                ("database_url or pghost", self.database_url or self.pghost),
            )

        if self.realtime_enabled:
            required_fields.extend([
                ("realtime_push_url", self.realtime_push_url),
                ("realtime_push_key", self.realtime_push_key),
            ])

        for field_name, value in required_fields:
            if not value:
                missing.append(field_name)

        return missing


def warn_on_risky_config(s: "Settings") -> list[str]:
    warnings: list[str] = []

    # --- Providers ---
    for name, url in (
        ("weather", s.weather_api_url),
        ("traffic", s.traffic_api_url),
        ("route", s.route_api_url),
    ):
        if not url:
            warnings.append(f"{name}_api_url is not set (every {name} lookup will use fallback data).")

    for name, timeout in (
        ("weather", s.weather_timeout_seconds),
        ("traffic", s.traffic_timeout_seconds),
        ("route", s.route_timeout_seconds),
    ):
        if timeout > 5:
            warnings.append(
                f"{name}_timeout_seconds={timeout} is high: a slow provider will delay booking completion."
            )

    # --- Storage ---
    if s.notification_store == "memory":
        warnings.append("notification_store=memory: notifications are lost on restart.")

    # --- Realtime ---
    if s.realtime_enabled and not s.realtime_configured:
        warnings.append("realtime_enabled=True but realtime_push_url/realtime_push_key are missing (push disabled).")

    # --- Metrics exposure ---
    if s.enable_metrics and not s.metrics_token:
        warnings.append("enable_metrics=True but metrics_token is not set: /metrics is unauthenticated.")

    return warnings


def validate_or_warn(s: "Settings") -> None:
    """
    In prod: enforce required settings (hard fail).
    In non-prod: warn only.
    """
    missing = s.validate_required_for_production()

    if missing:
        raise RuntimeError(f"Missing required settings for production: {', '.join(missing)}")

    for msg in warn_on_risky_config(s):
        print(f"[WARN][config] {msg}")

settings = Settings()
validate_or_warn(settings)
