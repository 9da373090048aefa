"""Configuration from environment variables (.env)."""

import os
from pathlib import Path
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    return int(raw) if raw else default


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    return float(raw) if raw else default


@dataclass
class Config:
    project_root: Path
    logs_dir: Path
    telegram_api_id: int
    telegram_api_hash: str
    telegram_phone: str
    telegram_session: str
    telegram_connection_retries: int
    global_rps: float
    per_source_rps: float
    breaker_failure_threshold: int
    breaker_reset_seconds: float
    discovery_page_size: int

    @classmethod
    def load(cls) -> "Config":
        project_root = Path(__file__).parent.parent.parent
        logs_dir = os.getenv("TGSEARCH_LOGS_DIR", "").strip()
        return cls(
            project_root=project_root,
            logs_dir=Path(logs_dir) if logs_dir else project_root / "logs",
            telegram_api_id=_int_env("TELEGRAM_API_ID", 0),
            telegram_api_hash=os.getenv("TELEGRAM_API_HASH", ""),
            telegram_phone=os.getenv("TELEGRAM_PHONE", ""),
            telegram_session=os.getenv("TELEGRAM_SESSION", ""),
            telegram_connection_retries=_int_env("TGSEARCH_CONNECTION_RETRIES", 5),
            global_rps=_float_env("TGSEARCH_GLOBAL_RPS", 30.0),
            per_source_rps=_float_env("TGSEARCH_PER_SOURCE_RPS", 1.0),
            breaker_failure_threshold=_int_env("TGSEARCH_BREAKER_THRESHOLD", 5),
            breaker_reset_seconds=_float_env("TGSEARCH_BREAKER_RESET_SECONDS", 60.0),
            discovery_page_size=_int_env("TGSEARCH_DISCOVERY_PAGE_SIZE", 100),
        )

    def validate(self) -> list[str]:
        errors = []
        if not self.telegram_api_id:
            errors.append("TELEGRAM_API_ID is not set")
        if not self.telegram_api_hash:
            errors.append("TELEGRAM_API_HASH is not set")
        if not self.telegram_phone:
            errors.append("TELEGRAM_PHONE is not set")
        return errors


config = Config.load()
