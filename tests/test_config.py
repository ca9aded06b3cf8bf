# tests/test_config.py
import pytest
from pydantic import ValidationError

from jobdispatch.config import Settings, validate_or_warn, warn_on_risky_config


def _settings(**kwargs) -> Settings:
    return Settings(_env_file=None, **kwargs)


class TestSettings:

    def test_dsn_prefers_database_url(self):
        assert _settings(database_url="postgresql://u:p@db/x").database_dsn == "postgresql://u:p@db/x"
        assert _settings(pghost="db", pguser="u", pgpassword="p", pgdatabase="x").database_dsn == (
            "postgresql://u:p@db:5432/x"
        )

    def test_prod_requires_provider_and_realtime_config(self):
        s = _settings(app_env="prod", realtime_push_url=None, weather_api_url=None)
        missing = s.validate_required_for_production()
        assert "weather_api_url" in missing
        assert "realtime_push_key" in missing

        with pytest.raises(RuntimeError):
            validate_or_warn(s)

    def test_dev_never_requires(self):
        assert _settings(app_env="dev").validate_required_for_production() == []

    def test_risky_config_warnings(self):
        warnings = warn_on_risky_config(_settings(
            notification_store="memory",
            weather_api_url=None,
            traffic_timeout_seconds=8,
            enable_metrics=True,
            metrics_token=None,
        ))
        text = "\n".join(warnings)
        assert "weather_api_url is not set" in text
        assert "traffic_timeout_seconds=8" in text
        assert "notifications are lost on restart" in text
        assert "/metrics is unauthenticated" in text

    def test_unknown_timezone_rejected_at_load(self):
        with pytest.raises(ValidationError):
            _settings(local_timezone="Europe/Londn")

    def test_known_timezone_accepted(self):
        assert _settings(local_timezone="America/New_York").local_timezone == "America/New_York"
