from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from ..domain import Message, ToolCallRequest, ToolResultMessage, UserMessage
from .console import Console
from .dispatcher import ToolDispatcher
from .session import ConversationSession

logger = logging.getLogger(__name__)

EXIT_COMMANDS = frozenset({"exit", "quit"})


class AgentLoop:
    """Alternates user input, streamed model turns and concurrent tool dispatch.

    A turn that requests tools is followed immediately by another turn carrying
    their results; only a turn without tool calls hands control back to the user.
    """

    def __init__(
        self,
        session: ConversationSession,
        dispatcher: ToolDispatcher,
        *,
        console: Console,
        read_line: Callable[[str], str] = input,
    ) -> None:
        self.session = session
        self.dispatcher = dispatcher
        self.console = console
        self._read_line = read_line

    def read_user_message(self) -> Optional[UserMessage]:
        """Prompt until a non-blank line arrives; ``None`` means the user is leaving."""

        while True:
            self.console.user_prompt()
            try:
                line = self._read_line("")
            except EOFError:
                self.console.stream_complete()
                return None
            text = line.strip()
            if text.lower() in EXIT_COMMANDS:
                return None
            if text:
                return UserMessage(content=line)

    async def run(self) -> None:
        while True:
            message = self.read_user_message()
            if message is None:
                self.console.info("Exiting agent loop. Goodbye!")
                return
            await self.run_exchange([message])

    async def run_exchange(self, messages: Sequence[Message]) -> None:
        """Drive turns from one user message until the model stops asking for tools.

        Completion-service failures propagate and end the session.
        """

        pending: Sequence[Message] = messages
        while pending:
            self.console.agent_label()
            try:
                result = await self.session.turn(pending)
            finally:
                self.console.stream_complete()
            for error in result.errors:
                self.console.error(f"Failed to parse tool call arguments: {error.detail}")
            pending = await self.run_tools(result.tool_calls) if result.has_tool_calls else []

    async def run_tools(self, calls: List[ToolCallRequest]) -> List[ToolResultMessage]:
        logger.info("Running %d tool calls: %s", len(calls), ", ".join(call.name for call in calls))
        self.console.stream_complete()
        for call in calls:
            self.console.tool_start(call.name)
        results = await self.dispatcher.dispatch_all(calls)
        for call, result in zip(calls, results):
            self.console.tool_result(call.name, result.content)
        return results
