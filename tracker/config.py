# tracker/config.py
import os
from pathlib import Path


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    """
    Very simple settings holder.

    Reads everything from environment variables, falling back to a local
    sqlite file for the remote store and ./tracker-data for the local mirror.
    An empty DATABASE_URL disables the remote store entirely.
    """

    def __init__(self) -> None:
        self.database_url: str = os.getenv("DATABASE_URL", "sqlite:///./tracker.db")
        self.local_data_dir: Path = Path(os.getenv("LOCAL_DATA_DIR", "./tracker-data"))
        self.app_storage_key: str = os.getenv("APP_STORAGE_KEY", "asepsData")
        self.shipment_vocabulary: str = os.getenv("SHIPMENT_VOCABULARY", "freight")
        self.sync_prune_remote: bool = _env_flag("SYNC_PRUNE_REMOTE", "true")
        self.write_through: bool = _env_flag("WRITE_THROUGH", "true")
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    @property
    def remote_enabled(self) -> bool:
        return bool(self.database_url)


settings = Settings()
