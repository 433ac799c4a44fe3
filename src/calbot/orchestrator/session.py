from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..api import ToolRegistry
from ..domain import (
    AssistantMessage,
    ConversationStateError,
    Message,
    SystemMessage,
    ToolResultMessage,
    UserMessage,
)
from .streaming import AggregatedTurn, StreamAggregator, TextSink

logger = logging.getLogger(__name__)


class ConversationSession:
    """Append-only conversation history driven one streamed turn at a time.

    The system prompt is fixed at construction; every request sends it followed
    by the whole history.
    """

    def __init__(
        self,
        client: Any,
        *,
        model: str,
        registry: ToolRegistry,
        system_prompt: str,
        on_text: Optional[TextSink] = None,
    ) -> None:
        self._client = client
        self.model = model
        self.registry = registry
        self.system_message = SystemMessage(content=system_prompt)
        self._on_text = on_text
        self._history: List[Message] = []
        self._pending_call_ids: set[str] = set()

    @property
    def history(self) -> List[Message]:
        return list(self._history)

    @property
    def pending_call_ids(self) -> set[str]:
        return set(self._pending_call_ids)

    def request_messages(self) -> List[Dict[str, Any]]:
        return [self.system_message.to_param(), *(message.to_param() for message in self._history)]

    def append(self, messages: Sequence[Message]) -> None:
        for message in messages:
            if isinstance(message, UserMessage) and self._pending_call_ids:
                raise ConversationStateError(
                    f"Unanswered tool calls must be resolved first: {', '.join(sorted(self._pending_call_ids))}"
                )
            if isinstance(message, ToolResultMessage):
                if message.tool_call_id not in self._pending_call_ids:
                    raise ConversationStateError(f"No pending tool call with id {message.tool_call_id!r}")
                self._pending_call_ids.discard(message.tool_call_id)
            self._history.append(message)

    async def turn(self, messages: Sequence[Message]) -> AggregatedTurn:
        """Send ``messages`` plus history, stream the reply, and record it in history."""

        self.append(messages)
        stream = await self._client.chat.completions.create(
            model=self.model,
            messages=self.request_messages(),
            tools=self.registry.as_tools(),
            tool_choice="auto",
            stream=True,
        )
        result = await StreamAggregator(on_text=self._on_text).consume(stream)

        self._history.append(AssistantMessage(content=result.text or None, tool_calls=result.tool_calls))
        self._pending_call_ids.update(call.id for call in result.tool_calls)
        logger.info(
            "Turn finished (%s): %d chars of text, %d tool calls, %d dropped",
            result.finish_reason,
            len(result.text),
            len(result.tool_calls),
            len(result.errors),
        )
        return result
