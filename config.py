import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        default_user_id: int,
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.default_user_id = default_user_id
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("TRACKER_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "tracker.db"
    database_url = os.getenv("TRACKER_DATABASE_URL", f"sqlite:///{default_db}")
    # Reference calendar for expense windows (today / week / month).
    timezone = os.getenv("TRACKER_TIMEZONE", "UTC")
    default_user_id = int(os.getenv("TRACKER_DEFAULT_USER_ID", "1"))
    log_level = os.getenv("TRACKER_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        default_user_id=default_user_id,
        log_level=log_level,
    )
