import os
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from server.errors import ConfigError

TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    db_path: str = "thrips.db"
    report_tz: str = "UTC"
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            db_path=os.environ.get("DB_PATH", "thrips.db"),
            report_tz=os.environ.get("REPORT_TZ", "UTC"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
            log_json=os.environ.get("LOG_JSON", "").lower() in TRUTHY,
        )

    @property
    def tz(self) -> ZoneInfo:
        # Bucket boundaries (midnight, Monday, first of month) are drawn in this zone
        try:
            return ZoneInfo(self.report_tz)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigError(f"unknown timezone {self.report_tz!r}") from exc
