"""Runtime settings read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

from oh_my_skills.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_RETRY_BACKOFF,
    GITHUB_API_URL,
    SEARCH_API_URL,
)

ENV_PREFIX = "OH_MY_SKILLS_"


def _float_env(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class EngineSettings:
    home: Path = field(default_factory=Path.home)
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    retry_backoff: float = DEFAULT_RETRY_BACKOFF
    github_api_url: str = GITHUB_API_URL
    github_token: str | None = None
    search_url: str = SEARCH_API_URL
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "EngineSettings":
        env = os.environ if env is None else env
        home_raw = env.get(f"{ENV_PREFIX}HOME")
        home = Path(home_raw).expanduser() if home_raw else Path.home()
        return cls(
            home=home,
            http_timeout=_float_env(
                env, f"{ENV_PREFIX}HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT
            ),
            retry_backoff=_float_env(
                env, f"{ENV_PREFIX}RETRY_BACKOFF", DEFAULT_RETRY_BACKOFF
            ),
            github_api_url=env.get(f"{ENV_PREFIX}GITHUB_API_URL") or GITHUB_API_URL,
            github_token=env.get("GITHUB_TOKEN") or None,
            search_url=env.get(f"{ENV_PREFIX}SEARCH_URL") or SEARCH_API_URL,
            log_level=(env.get(f"{ENV_PREFIX}LOG_LEVEL") or "WARNING").upper(),
        )
