from __future__ import annotations

from datetime import timezone

import pytest

from flowforge import config
from flowforge.config import Settings, _read_bool, _read_choice, _read_int, resolve_timezone


_ENV_NAMES = (
    "LOG_LEVEL",
    "FLOWFORGE_DB_PATH",
    "RUN_HISTORY_LIMIT",
    "DEFAULT_TONE",
    "DEFAULT_RISK_LEVEL",
    "MASK_PII_IN_LOGS",
    "REPORT_TIMEZONE",
    "SEED_DEMO_DATA",
)


@pytest.fixture
def clean_env(monkeypatch):
    for name in _ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(config, "load_dotenv", lambda **_: False)
    return monkeypatch


def test_load_settings_defaults(clean_env) -> None:
    settings = config.load_settings()
    assert settings == Settings()
    assert settings.run_history_limit == 500
    assert settings.state_db_path == "data/flowforge.db"


def test_load_settings_reads_environment(clean_env) -> None:
    clean_env.setenv("LOG_LEVEL", "debug")
    clean_env.setenv("FLOWFORGE_DB_PATH", "/tmp/ff.db")
    clean_env.setenv("RUN_HISTORY_LIMIT", "25")
    clean_env.setenv("DEFAULT_TONE", "Friendly")
    clean_env.setenv("DEFAULT_RISK_LEVEL", "high")
    clean_env.setenv("MASK_PII_IN_LOGS", "yes")
    clean_env.setenv("SEED_DEMO_DATA", "off")

    settings = config.load_settings()

    assert settings.log_level == "DEBUG"
    assert settings.state_db_path == "/tmp/ff.db"
    assert settings.run_history_limit == 25
    assert settings.default_tone == "friendly"
    assert settings.default_risk_level == "high"
    assert settings.mask_pii_in_logs is True
    assert settings.seed_demo_data is False

    defaults = settings.user_defaults()
    assert defaults.tone == "friendly"
    assert defaults.risk_level == "high"
    assert defaults.mask_pii_in_logs is True


def test_read_int_rejects_garbage_and_small_values(monkeypatch) -> None:
    monkeypatch.setenv("RUN_HISTORY_LIMIT", "many")
    with pytest.raises(ValueError, match="RUN_HISTORY_LIMIT"):
        _read_int("RUN_HISTORY_LIMIT", 500, minimum=1)
    monkeypatch.setenv("RUN_HISTORY_LIMIT", "0")
    with pytest.raises(ValueError, match=">= 1"):
        _read_int("RUN_HISTORY_LIMIT", 500, minimum=1)


def test_read_choice_rejects_unknown_value(monkeypatch) -> None:
    monkeypatch.setenv("DEFAULT_TONE", "sarcastic")
    with pytest.raises(ValueError, match="DEFAULT_TONE"):
        _read_choice("DEFAULT_TONE", "professional", {"professional", "direct"})


def test_read_bool_rejects_unrecognized_value(monkeypatch) -> None:
    monkeypatch.setenv("MASK_PII_IN_LOGS", "maybe")
    with pytest.raises(ValueError, match="MASK_PII_IN_LOGS"):
        _read_bool("MASK_PII_IN_LOGS", True)
    monkeypatch.setenv("MASK_PII_IN_LOGS", "")
    assert _read_bool("MASK_PII_IN_LOGS", True) is True
    monkeypatch.setenv("MASK_PII_IN_LOGS", "0")
    assert _read_bool("MASK_PII_IN_LOGS", True) is False


def test_resolve_timezone_falls_back_to_utc() -> None:
    assert resolve_timezone("Not/AZone") == timezone.utc
    assert str(resolve_timezone("UTC")) == "UTC"


def test_resolve_timezone_without_tz_database_is_utc(monkeypatch) -> None:
    def missing_zone(name: str):
        raise config.ZoneInfoNotFoundError(name)

    monkeypatch.setattr(config, "ZoneInfo", missing_zone)
    assert resolve_timezone("America/Sao_Paulo") == timezone.utc
