from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from tzlocal import get_localzone_name

load_dotenv()

GOOGLE_CALENDAR_SCOPES = (
    "https://www.googleapis.com/auth/calendar.readonly",
    "https://www.googleapis.com/auth/calendar.events",
)


@dataclass(frozen=True)
class LlmSettings:
    api_key: Optional[str]
    model: str
    base_url: Optional[str]
    organization: Optional[str]
    project: Optional[str]

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.model)

    @property
    def missing_env_vars(self) -> list[str]:
        missing = []
        if not self.api_key:
            missing.append("OPENAI_API_KEY")
        if not self.model:
            missing.append("OPENAI_MODEL")
        return missing


@dataclass(frozen=True)
class GoogleSettings:
    credentials_path: Path
    token_path: Path
    scopes: tuple[str, ...] = GOOGLE_CALENDAR_SCOPES


@dataclass(frozen=True)
class AgentSettings:
    shell_timeout: float
    contacts_path: Path
    timezone: str
    default_calendar_id: str = "primary"
    default_max_results: int = 10
    send_updates: str = "all"


@dataclass(frozen=True)
class AppSettings:
    llm: LlmSettings
    google: GoogleSettings
    agent: AgentSettings


def _float_from_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


def _int_from_env(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _path_from_env(name: str, default_name: str) -> Path:
    raw = os.getenv(name)
    return Path(raw) if raw else Path.cwd() / default_name


def load_settings() -> AppSettings:
    """Build settings from the current environment without caching."""

    llm = LlmSettings(
        api_key=os.getenv("OPENAI_API_KEY") or os.getenv("ECHO_API_KEY"),
        model=os.getenv("OPENAI_MODEL", "gpt-4o"),
        base_url=os.getenv("OPENAI_BASE_URL"),
        organization=os.getenv("OPENAI_ORG"),
        project=os.getenv("OPENAI_PROJECT"),
    )

    google = GoogleSettings(
        credentials_path=_path_from_env("GOOGLE_CREDENTIALS_PATH", "credentials.json"),
        token_path=_path_from_env("GOOGLE_TOKEN_PATH", "token.json"),
    )

    agent = AgentSettings(
        shell_timeout=_float_from_env("CALBOT_SHELL_TIMEOUT_SECONDS", 10.0),
        contacts_path=_path_from_env("CALBOT_CONTACTS_PATH", "coworker_config.json"),
        timezone=os.getenv("CALBOT_TIMEZONE") or get_localzone_name() or "UTC",
        default_calendar_id=os.getenv("CALBOT_DEFAULT_CALENDAR", "primary"),
        default_max_results=_int_from_env("CALBOT_DEFAULT_MAX_RESULTS", 10),
        send_updates=os.getenv("CALBOT_SEND_UPDATES", "all"),
    )

    return AppSettings(llm=llm, google=google, agent=agent)


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()
