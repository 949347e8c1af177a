from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

API_V1_ENDPOINT = "https://api.puppet-master.io/api/v1"


def _load_dotenv() -> None:
    if os.getenv("PUPPET_MASTER_SKIP_DOTENV") == "1":
        return

    env_path = Path.cwd() / ".env"
    if not env_path.exists():
        return

    from dotenv import load_dotenv

    load_dotenv(env_path, override=False)


def _parse_non_negative_int(value: str | None, default: int = 0) -> int:
    if value is None:
        return default
    raw = value.strip()
    if not raw:
        return default
    try:
        return max(0, int(raw))
    except ValueError:
        return default


def _parse_retry_limit(value: str | None, default: int | None = 5) -> int | None:
    """Negative values mean "retry forever", represented as ``None``."""
    if value is None or not value.strip():
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return None if parsed < 0 else parsed


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


@dataclass(frozen=True)
class Settings:
    endpoint: str
    api_token: str
    team: str | None
    debug: bool
    poll_interval_ms: int
    http_timeout_seconds: int
    transient_retries: int | None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    _load_dotenv()

    endpoint = os.getenv("PUPPET_MASTER_ENDPOINT", "").strip() or API_V1_ENDPOINT
    poll_interval_ms = _parse_non_negative_int(os.getenv("PUPPET_MASTER_POLL_INTERVAL_MS"), default=500)
    http_timeout_seconds = _parse_non_negative_int(os.getenv("PUPPET_MASTER_TIMEOUT_SECONDS"), default=30) or 30

    return Settings(
        endpoint=endpoint,
        api_token=os.getenv("PUPPET_MASTER_API_TOKEN", ""),
        team=os.getenv("PUPPET_MASTER_TEAM", "").strip() or None,
        debug=_parse_bool(os.getenv("PUPPET_MASTER_DEBUG"), default=False),
        poll_interval_ms=poll_interval_ms,
        http_timeout_seconds=http_timeout_seconds,
        transient_retries=_parse_retry_limit(os.getenv("PUPPET_MASTER_TRANSIENT_RETRIES"), default=5),
    )
