"""Reassembly of tool calls from a streamed chat completion.

The completion service streams tool calls as fragments tagged with a slot
``index``: the first fragment of a slot usually carries the call id and function
name, later ones carry slices of the JSON argument text. Each slot moves through
``empty -> accumulating -> finalized``; a slot is finalized (its argument text
parsed) when the stream moves on to another index or ends.

A slot whose text does not parse yet when the stream moves on stays open, since a
later fragment with the same index may still complete it. If a fragment arrives
for a slot that was already finalized, the slot is reopened and parsed again
later. Only at stream end does an unparseable slot become a
:class:`StreamParseError`; that call is dropped and the rest of the turn is kept.

Calls that arrive without an id, or repeat one, get an id derived from their
slot index so every tool result can be matched to its call.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, AsyncIterable, Callable, Dict, List, Optional

from ..domain import StreamParseError, ToolCallRequest

logger = logging.getLogger(__name__)

TERMINAL_FINISH_REASONS = frozenset({"stop", "tool_calls"})

TextSink = Callable[[str], None]


class SlotState(str, Enum):
    EMPTY = "empty"
    ACCUMULATING = "accumulating"
    FINALIZED = "finalized"


@dataclass
class ToolCallSlot:
    index: int
    id: str = ""
    name: str = ""
    arguments: str = ""
    state: SlotState = SlotState.EMPTY
    parsed: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    def append(self, *, call_id: Optional[str], name: Optional[str], arguments: Optional[str]) -> None:
        if call_id:
            self.id += call_id
        if name:
            self.name += name
        if arguments:
            self.arguments += arguments
        self.state = SlotState.ACCUMULATING
        self.parsed = None
        self.error = None

    def try_finalize(self) -> bool:
        """Parse the accumulated argument text; on failure the slot stays accumulating."""

        text = self.arguments.strip()
        try:
            value = json.loads(text) if text else {}
        except json.JSONDecodeError as exc:
            self.error = str(exc)
            return False
        if not isinstance(value, dict):
            self.error = f"expected a JSON object, got {type(value).__name__}"
            return False
        self.parsed = value
        self.state = SlotState.FINALIZED
        return True

    def to_request(self) -> ToolCallRequest:
        return ToolCallRequest(id=self.id, name=self.name, input=self.parsed or {})


@dataclass
class AggregatedTurn:
    text: str = ""
    tool_calls: List[ToolCallRequest] = field(default_factory=list)
    errors: List[StreamParseError] = field(default_factory=list)
    finish_reason: Optional[str] = None

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class StreamAggregator:
    def __init__(self, on_text: Optional[TextSink] = None) -> None:
        self._on_text = on_text
        self._text_parts: list[str] = []
        self._slots: Dict[int, ToolCallSlot] = {}
        self._order: list[int] = []
        self.current_index: Optional[int] = None
        self.finish_reason: Optional[str] = None

    @property
    def text(self) -> str:
        return "".join(self._text_parts)

    def slot(self, index: int) -> Optional[ToolCallSlot]:
        return self._slots.get(index)

    # ------------------------------------------------------------------ events

    def feed(self, chunk: Any) -> bool:
        """Apply one streamed chunk. Returns True once the stream signalled completion."""

        choices = getattr(chunk, "choices", None) or []
        if not choices:
            return False
        choice = choices[0]
        delta = getattr(choice, "delta", None)
        if delta is not None:
            if delta.content:
                self.add_text(delta.content)
            for fragment in delta.tool_calls or []:
                function = getattr(fragment, "function", None)
                self.add_tool_fragment(
                    fragment.index,
                    call_id=getattr(fragment, "id", None),
                    name=getattr(function, "name", None),
                    arguments=getattr(function, "arguments", None),
                )
        if choice.finish_reason:
            self.finish_reason = choice.finish_reason
        return choice.finish_reason in TERMINAL_FINISH_REASONS

    def add_text(self, fragment: str) -> None:
        self._text_parts.append(fragment)
        if self._on_text is not None:
            self._on_text(fragment)

    def add_tool_fragment(
        self,
        index: Optional[int],
        *,
        call_id: Optional[str] = None,
        name: Optional[str] = None,
        arguments: Optional[str] = None,
    ) -> None:
        if index is None:
            return
        if index != self.current_index:
            self._leave_current_slot()
            self.current_index = index
        slot = self._slots.get(index)
        if slot is None:
            slot = ToolCallSlot(index=index)
            self._slots[index] = slot
            self._order.append(index)
        elif slot.state is SlotState.FINALIZED:
            logger.debug("Reopening finalized tool call slot %s", index)
        slot.append(call_id=call_id, name=name, arguments=arguments)

    def _leave_current_slot(self) -> None:
        if self.current_index is None:
            return
        slot = self._slots[self.current_index]
        if slot.state is SlotState.ACCUMULATING and not slot.try_finalize():
            logger.debug("Slot %s incomplete when stream moved on: %s", slot.index, slot.error)

    # ------------------------------------------------------------------ completion

    def finish(self) -> AggregatedTurn:
        self._leave_current_slot()
        self.current_index = None
        turn = AggregatedTurn(text=self.text, finish_reason=self.finish_reason)
        seen_ids: set[str] = set()
        for index in self._order:
            slot = self._slots[index]
            if slot.state is SlotState.FINALIZED or slot.try_finalize():
                slot.id = _unique_call_id(slot, seen_ids)
                seen_ids.add(slot.id)
                turn.tool_calls.append(slot.to_request())
                continue
            error = StreamParseError(slot.index, slot.name, slot.arguments, slot.error or "unparseable arguments")
            logger.error("%s; raw arguments: %r", error, slot.arguments)
            turn.errors.append(error)
        return turn

    async def consume(self, stream: AsyncIterable[Any]) -> AggregatedTurn:
        async for chunk in stream:
            if self.feed(chunk):
                break
        return self.finish()


def _unique_call_id(slot: ToolCallSlot, seen: set[str]) -> str:
    """Tool results are matched by id, so every call in a turn needs its own."""

    call_id = slot.id or f"call_{slot.index}"
    if call_id in seen:
        logger.warning("Tool call id %r repeated in slot %s", call_id, slot.index)
        call_id = f"{call_id}_{slot.index}"
    while call_id in seen:
        call_id += "_"
    return call_id
