"""Calbot: a streaming tool-use calendar agent."""

from __future__ import annotations

from .cli import main as main

__all__ = ["main"]
