import logging
import os
from functools import lru_cache
from pathlib import Path

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class Settings:
    def __init__(self) -> None:
        self.data_dir = Path(os.environ.get("ACCESS_DATA_DIR", "./data"))
        self.db_path = os.environ.get("ACCESS_DB_PATH", str(self.data_dir / "access.db"))
        rules_path = os.environ.get("ACCESS_RULES_PATH")
        self.rules_path = Path(rules_path) if rules_path else None
        self.log_level = os.environ.get("ACCESS_LOG_LEVEL", "INFO").upper()
        self.required_env = [
            name.strip()
            for name in os.environ.get("ACCESS_REQUIRED_ENV", "").split(",")
            if name.strip()
        ]


@lru_cache
def get_settings() -> Settings:
    return Settings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)


def validate_environment(settings: Settings) -> None:
    """
    Validate operational requirements before startup.

    Raises RuntimeError naming every missing variable.
    """
    missing = [name for name in settings.required_env if name not in os.environ]
    if missing:
        raise RuntimeError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    settings.data_dir.mkdir(parents=True, exist_ok=True)
