from __future__ import annotations

from openai import AsyncOpenAI

from ..config import LlmSettings


def build_completion_client(settings: LlmSettings) -> AsyncOpenAI:
    if not settings.is_configured:
        missing = ", ".join(settings.missing_env_vars)
        raise RuntimeError(f"The completion service is not configured. Missing: {missing}")
    return AsyncOpenAI(
        api_key=settings.api_key,
        base_url=settings.base_url,
        organization=settings.organization,
        project=settings.project,
    )
