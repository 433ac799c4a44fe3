"""Conversation driving: streamed turns, tool dispatch and the interactive loop."""

from __future__ import annotations

from .console import Console
from .context import build_context_block, build_system_prompt, load_contacts
from .dispatcher import ToolDispatcher
from .loop import AgentLoop
from .session import ConversationSession
from .streaming import AggregatedTurn, SlotState, StreamAggregator

__all__ = [
    "AgentLoop",
    "AggregatedTurn",
    "Console",
    "ConversationSession",
    "SlotState",
    "StreamAggregator",
    "ToolDispatcher",
    "build_context_block",
    "build_system_prompt",
    "load_contacts",
]
