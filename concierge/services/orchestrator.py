"""
Conversation orchestrator: one model turn, at most one tool round-trip.

    START -> AWAITING_MODEL_RESPONSE -> DONE
                                     -> TOOL_REQUESTED -> AWAITING_TOOL_RESULT
                                        -> AWAITING_FINAL_RESPONSE -> DONE

Only the first tool call of a reply is executed; the follow-up request is
sent with tool_choice "none" so the final reply is always text.
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from concierge.core.config import Settings
from concierge.schemas.chat import ChatTurn
from concierge.services.llm import LLMService, ModelReply
from concierge.services.tool_system.tools import ToolCall, ToolRegistry, ToolResult
from concierge.utils.exceptions import UnknownToolError, ValidationError

# Index of the tool call honoured when a reply carries several.
FIRST_TOOL_CALL_ONLY = 0


class ConversationState(str, Enum):
    """Orchestrator states for a single request."""
    START = "start"
    AWAITING_MODEL_RESPONSE = "awaiting_model_response"
    TOOL_REQUESTED = "tool_requested"
    AWAITING_TOOL_RESULT = "awaiting_tool_result"
    AWAITING_FINAL_RESPONSE = "awaiting_final_response"
    DONE = "done"


@dataclass
class ConversationResult:
    """Outcome of one orchestrated request."""
    text: str
    tool_call: Optional[ToolCall] = None
    tool_result: Optional[ToolResult] = None
    states: List[ConversationState] = field(default_factory=list)


def history_to_messages(history: Sequence[ChatTurn]) -> List[Dict[str, Any]]:
    """Convert caller-held turns into OpenAI-style messages.

    A structured call is only kept when the next turn carries its result.
    Unanswered calls and orphan results are dropped, since providers reject
    a tool call without its matching tool message.
    """
    messages: List[Dict[str, Any]] = []
    turns = list(history)
    index = 0
    while index < len(turns):
        turn = turns[index]
        next_turn = turns[index + 1] if index + 1 < len(turns) else None

        if turn.role == "user":
            messages.append({"role": "user", "content": _as_text(turn.content)})
        elif turn.role == "model" and turn.is_tool_call and next_turn is not None and next_turn.role == "tool":
            call_id = f"call_history_{index}"
            messages.append({
                "role": "assistant",
                "content": None,
                "tool_calls": [{
                    "id": call_id,
                    "type": "function",
                    "function": {
                        "name": turn.content["name"],
                        "arguments": json.dumps(turn.content.get("arguments") or {}, ensure_ascii=False),
                    }
                }]
            })
            messages.append({
                "role": "tool",
                "tool_call_id": call_id,
                "content": _as_text(_result_payload(next_turn.content)),
            })
            index += 1
        elif turn.role == "model":
            if not turn.is_tool_call:
                messages.append({"role": "assistant", "content": _as_text(turn.content)})
        else:
            logger.warning("Dropping tool result turn without a preceding tool call")
        index += 1
    return messages


def _result_payload(content: Any) -> Any:
    if isinstance(content, dict) and "payload" in content:
        return content["payload"]
    return content


def _as_text(content: Any) -> str:
    if content is None:
        return ""
    if isinstance(content, str):
        return content
    return json.dumps(content, ensure_ascii=False, default=str)


class ConversationOrchestrator:
    """Drives a single request through the tool-calling round-trip."""

    def __init__(self, llm: LLMService, registry: ToolRegistry, system_instruction: str):
        self.llm = llm
        self.registry = registry
        self.system_instruction = system_instruction

    @classmethod
    def from_settings(cls, settings: Settings, llm: LLMService, registry: ToolRegistry) -> "ConversationOrchestrator":
        return cls(llm=llm, registry=registry, system_instruction=settings.SYSTEM_INSTRUCTION)

    async def respond(self, message: Optional[str], history: Optional[Sequence[ChatTurn]] = None) -> ConversationResult:
        """
        Answer a shopper message.

        Args:
            message: The new user message
            history: Prior turns supplied by the caller

        Returns:
            ConversationResult with the final text

        Raises:
            ValidationError: if message is missing or blank
            LLMError: if the model service fails
        """
        states = [ConversationState.START]
        if message is None or not message.strip():
            raise ValidationError("message is required", field="message")

        messages: List[Dict[str, Any]] = [{"role": "system", "content": self.system_instruction}]
        messages.extend(history_to_messages(history or []))
        messages.append({"role": "user", "content": message})
        tools_schema = self.registry.to_openai_schema()

        states.append(ConversationState.AWAITING_MODEL_RESPONSE)
        reply = await self.llm.complete(messages, tools=tools_schema or None, tool_choice="auto")

        if not reply.has_tool_calls:
            states.append(ConversationState.DONE)
            logger.debug(f"Conversation states: {[s.value for s in states]}")
            return ConversationResult(text=reply.text or "", states=states)

        states.append(ConversationState.TOOL_REQUESTED)
        if len(reply.tool_calls) > 1:
            ignored = [c.name for c in reply.tool_calls[FIRST_TOOL_CALL_ONLY + 1:]]
            logger.warning(f"Model requested {len(reply.tool_calls)} tool calls, ignoring {ignored}")
        tool_call = reply.tool_calls[FIRST_TOOL_CALL_ONLY]

        try:
            tool_result = await self._execute(tool_call)
        except UnknownToolError as e:
            logger.warning(f"{e.message}; answering with the model's own text")
            states.append(ConversationState.DONE)
            return ConversationResult(text=reply.text or "", tool_call=tool_call, states=states)
        states.append(ConversationState.AWAITING_TOOL_RESULT)

        messages.append(self._assistant_call_message(reply, tool_call))
        messages.append({
            "role": "tool",
            "tool_call_id": tool_call.id,
            "name": tool_call.name,
            "content": json.dumps(tool_result.to_content(), ensure_ascii=False, default=str),
        })

        states.append(ConversationState.AWAITING_FINAL_RESPONSE)
        final = await self.llm.complete(messages, tools=tools_schema or None, tool_choice="none")
        if final.has_tool_calls:
            logger.warning("Model requested another tool call after the tool result; ignoring it")

        states.append(ConversationState.DONE)
        logger.debug(f"Conversation states: {[s.value for s in states]}")
        return ConversationResult(
            text=final.text or "",
            tool_call=tool_call,
            tool_result=tool_result,
            states=states
        )

    async def _execute(self, tool_call: ToolCall) -> ToolResult:
        tool = self.registry.get(tool_call.name)
        if tool is None:
            raise UnknownToolError(tool_call.name)

        is_valid, error = self.registry.validate_tool_call(tool_call)
        if not is_valid:
            logger.warning(f"Invalid tool call {tool_call.name}: {error}")
            return ToolResult(name=tool_call.name, success=False, error=error)

        logger.info(f"Executing tool {tool_call.name} with arguments {tool_call.arguments}")
        try:
            return await tool.execute(tool_call.arguments)
        except Exception as e:
            logger.exception(f"Error executing tool {tool_call.name}: {e}")
            return ToolResult(name=tool_call.name, success=False, error=f"Failed to execute {tool_call.name}")

    @staticmethod
    def _assistant_call_message(reply: ModelReply, tool_call: ToolCall) -> Dict[str, Any]:
        """The assistant turn echoed back, trimmed to the honoured call."""
        if not tool_call.id:
            tool_call.id = "call_0"
        return {
            "role": "assistant",
            "content": reply.text,
            "tool_calls": [{
                "id": tool_call.id,
                "type": "function",
                "function": {
                    "name": tool_call.name,
                    "arguments": json.dumps(tool_call.arguments, ensure_ascii=False),
                }
            }]
        }
