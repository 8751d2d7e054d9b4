import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        storage_prefix: str,
        session_secret: str,
        session_hours: int,
        advisor_api_key: str,
        advisor_model: str,
        advisor_url: str,
        advisor_timeout_secs: float,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.storage_prefix = storage_prefix
        self.session_secret = session_secret
        self.session_hours = session_hours
        self.advisor_api_key = advisor_api_key
        self.advisor_model = advisor_model
        self.advisor_url = advisor_url
        self.advisor_timeout_secs = advisor_timeout_secs


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANZA_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finanza.db"
    database_url = os.getenv("FINANZA_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANZA_TIMEZONE", "America/Sao_Paulo")
    storage_prefix = os.getenv("FINANZA_STORAGE_PREFIX", "finanza_v8")
    session_secret = os.getenv(
        "FINANZA_SESSION_SECRET",
        "5d0c2f6be1a94a7f8e3b9c41d7a26f0e8b13c95d2e7a4f60b18c3d9e2a5f7b14",
    )
    session_hours = int(os.getenv("FINANZA_SESSION_HOURS", "12"))
    advisor_api_key = os.getenv("FINANZA_ADVISOR_API_KEY", "")
    advisor_model = os.getenv("FINANZA_ADVISOR_MODEL", "gemini-2.0-flash")
    advisor_url = os.getenv(
        "FINANZA_ADVISOR_URL",
        "https://generativelanguage.googleapis.com/v1beta/models",
    )
    advisor_timeout_secs = float(os.getenv("FINANZA_ADVISOR_TIMEOUT_SECS", "10"))
    return Settings(
        database_url=database_url,
        timezone=timezone,
        storage_prefix=storage_prefix,
        session_secret=session_secret,
        session_hours=session_hours,
        advisor_api_key=advisor_api_key,
        advisor_model=advisor_model,
        advisor_url=advisor_url,
        advisor_timeout_secs=advisor_timeout_secs,
    )
