"""Configuration models and helpers."""

from __future__ import annotations

from .settings import AgentSettings, AppSettings, GoogleSettings, LlmSettings, get_settings, load_settings

__all__ = ["AgentSettings", "AppSettings", "GoogleSettings", "LlmSettings", "get_settings", "load_settings"]
