from __future__ import annotations

from dataclasses import dataclass
from datetime import timezone, tzinfo
import os
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from flowforge.engine.models import RiskLevel, Tone, UserSettings


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    state_db_path: str = "data/flowforge.db"
    run_history_limit: int = 500
    default_tone: str = Tone.PROFESSIONAL.value
    default_risk_level: str = RiskLevel.LOW.value
    mask_pii_in_logs: bool = False
    report_timezone: str = "UTC"
    seed_demo_data: bool = True

    def user_defaults(self) -> UserSettings:
        return UserSettings(
            tone=self.default_tone,
            risk_level=self.default_risk_level,
            mask_pii_in_logs=self.mask_pii_in_logs,
        )

    def report_tzinfo(self) -> tzinfo:
        return resolve_timezone(self.report_timezone)


def _read_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {name}: expected an integer, got '{raw}'.") from exc
    if minimum is not None and value < minimum:
        raise ValueError(f"Invalid {name}: must be >= {minimum}.")
    return value


def _read_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "y", "on"}:
        return True
    if raw in {"0", "false", "no", "n", "off"}:
        return False
    raise ValueError(f"Invalid {name}: expected a boolean, got '{raw}'.")


def _read_choice(name: str, default: str, choices: set[str]) -> str:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw not in choices:
        allowed = ", ".join(sorted(choices))
        raise ValueError(f"Invalid {name}: expected one of {allowed}.")
    return raw


def resolve_timezone(timezone_name: str) -> tzinfo:
    try:
        return ZoneInfo(timezone_name)
    except (ZoneInfoNotFoundError, ValueError):
        return timezone.utc


def load_settings() -> Settings:
    # .env wins over the shell environment.
    load_dotenv(override=True)

    return Settings(
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
        state_db_path=os.getenv("FLOWFORGE_DB_PATH", "data/flowforge.db").strip()
        or "data/flowforge.db",
        run_history_limit=_read_int("RUN_HISTORY_LIMIT", 500, minimum=1),
        default_tone=_read_choice(
            "DEFAULT_TONE", Tone.PROFESSIONAL.value, {t.value for t in Tone}
        ),
        default_risk_level=_read_choice(
            "DEFAULT_RISK_LEVEL", RiskLevel.LOW.value, {r.value for r in RiskLevel}
        ),
        mask_pii_in_logs=_read_bool("MASK_PII_IN_LOGS", False),
        report_timezone=os.getenv("REPORT_TIMEZONE", "UTC").strip() or "UTC",
        seed_demo_data=_read_bool("SEED_DEMO_DATA", True),
    )
