"""Completion-service client construction."""

from __future__ import annotations

from .client import build_completion_client

__all__ = ["build_completion_client"]
