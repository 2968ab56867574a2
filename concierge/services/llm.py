"""
LLM service for OpenRouter chat completions with tool calling.
"""

import json
from typing import Any, Dict, List, Optional, Union

import httpx
from loguru import logger
from pydantic import BaseModel, Field

from concierge.core.config import Settings
from concierge.services.tool_system.tools import ToolCall
from concierge.utils.exceptions import ConfigurationError, LLMError


class ModelReply(BaseModel):
    """One assistant turn returned by the model service."""
    text: Optional[str] = None
    tool_calls: List[ToolCall] = Field(default_factory=list)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)


class LLMService:
    """Service for chat completions through an OpenAI-compatible API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str = "https://openrouter.ai/api/v1",
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        if not api_key:
            raise ConfigurationError("OPENROUTER_API_KEY is required", missing=["OPENROUTER_API_KEY"])

        self.api_key = api_key
        self.base_url = base_url
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client = http_client

    @classmethod
    def from_settings(cls, settings: Settings) -> "LLMService":
        return cls(
            api_key=settings.OPENROUTER_API_KEY,
            model=settings.DEFAULT_LLM_MODEL,
            base_url=settings.OPENROUTER_BASE_URL,
            temperature=settings.LLM_TEMPERATURE,
            max_tokens=settings.LLM_MAX_TOKENS,
            timeout=settings.LLM_TIMEOUT,
        )

    @property
    def client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                    "X-Title": "Shop Concierge",
                }
            )
        return self._client

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self):
        if self._client is not None:
            await self._client.aclose()

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
        tool_choice: Optional[Union[str, Dict[str, Any]]] = None,
    ) -> ModelReply:
        """
        Send a conversation to the model.

        Args:
            messages: OpenAI-style messages, system instruction first
            tools: Tool declarations in OpenAI function calling format
            tool_choice: "auto", "none" or a specific function

        Returns:
            The parsed assistant reply

        Raises:
            LLMError: on transport failure, non-200 status or a malformed body
        """
        request_data: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": self.temperature,
        }
        if self.max_tokens:
            request_data["max_tokens"] = self.max_tokens
        if tools:
            request_data["tools"] = tools
            if tool_choice:
                request_data["tool_choice"] = tool_choice

        logger.info(f"Requesting completion from {self.model} ({len(messages)} messages, {len(tools or [])} tools)")
        try:
            response = await self.client.post("/chat/completions", json=request_data)
        except httpx.TimeoutException as e:
            logger.error(f"Timeout with model {self.model}: {e}")
            raise LLMError("Model request timed out", model_name=self.model)
        except httpx.RequestError as e:
            logger.error(f"Request error with model {self.model}: {e}")
            raise LLMError("Model service unreachable", model_name=self.model)

        if response.status_code != 200:
            logger.error(f"LLM API error with {self.model}: {response.status_code} - {response.text[:500]}")
            raise LLMError(
                f"Model service returned status {response.status_code}",
                model_name=self.model,
                details={"status_code": response.status_code}
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"Invalid JSON from model service: {e}")
            raise LLMError("Model service returned invalid JSON", model_name=self.model)

        return self.parse_reply(data)

    def parse_reply(self, data: Any) -> ModelReply:
        """Extract text and tool calls from a chat completion body."""
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            error = data.get("error") if isinstance(data, dict) else None
            logger.error(f"Model response without choices: {error or data}")
            raise LLMError("Model service returned no choices", model_name=self.model)

        message = choices[0].get("message") or {}
        text = self._extract_text(message.get("content"))

        tool_calls = []
        for raw_call in message.get("tool_calls") or []:
            function = raw_call.get("function") or {}
            if not function.get("name"):
                continue
            tool_calls.append(ToolCall(
                id=raw_call.get("id"),
                name=function["name"],
                arguments=self._decode_arguments(function.get("arguments")),
            ))

        # Older models answer with the deprecated single function_call shape
        legacy_call = message.get("function_call")
        if not tool_calls and legacy_call and legacy_call.get("name"):
            tool_calls.append(ToolCall(
                name=legacy_call["name"],
                arguments=self._decode_arguments(legacy_call.get("arguments")),
            ))

        return ModelReply(text=text, tool_calls=tool_calls)

    @staticmethod
    def _extract_text(content: Any) -> Optional[str]:
        if content is None:
            return None
        if isinstance(content, str):
            return content
        if isinstance(content, list):
            parts = [p.get("text", "") for p in content if isinstance(p, dict) and p.get("type", "text") == "text"]
            return "".join(parts)
        return str(content)

    @staticmethod
    def _decode_arguments(arguments: Any) -> Dict[str, Any]:
        if not arguments:
            return {}
        if isinstance(arguments, dict):
            return arguments
        try:
            decoded = json.loads(arguments)
        except (TypeError, ValueError):
            logger.warning(f"Could not decode tool arguments: {arguments!r}")
            return {}
        return decoded if isinstance(decoded, dict) else {}
