"""
Chat request and response schemas.
"""

from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, Field, field_validator, model_validator


class ChatTurn(BaseModel):
    """One prior turn of a conversation, supplied by the caller."""
    role: Literal["user", "model", "tool"] = Field(..., description="Turn author")
    content: Union[str, Dict[str, Any], None] = Field(
        None,
        description="Text, a structured call {name, arguments} or a structured result {name, payload}"
    )

    @model_validator(mode="before")
    @classmethod
    def normalize_turn(cls, data: Any) -> Any:
        """Accept the Gemini `parts` history shape and the `assistant` role alias."""
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if data.get("role") == "assistant":
            data["role"] = "model"
        if data.get("role") == "function":
            data["role"] = "tool"

        parts = data.pop("parts", None)
        if data.get("content") is None and isinstance(parts, list):
            texts = []
            for part in parts:
                if not isinstance(part, dict):
                    continue
                if "functionCall" in part:
                    call = part["functionCall"] or {}
                    data["content"] = {"name": call.get("name"), "arguments": call.get("args") or {}}
                    break
                if "functionResponse" in part:
                    result = part["functionResponse"] or {}
                    data["content"] = {"name": result.get("name"), "payload": result.get("response")}
                    break
                if part.get("text"):
                    texts.append(part["text"])
            else:
                data["content"] = "".join(texts)
        return data

    @property
    def is_tool_call(self) -> bool:
        return isinstance(self.content, dict) and "arguments" in self.content and bool(self.content.get("name"))


class ChatRequest(BaseModel):
    """Inbound chat request."""
    message: Optional[str] = Field(None, description="The shopper's new message")
    history: List[ChatTurn] = Field(default_factory=list, description="Prior turns, oldest first")

    @field_validator("history", mode="before")
    @classmethod
    def default_history(cls, v: Any) -> Any:
        return [] if v is None else v


class ChatResponse(BaseModel):
    """Successful chat response."""
    text: str = Field(..., description="The assistant's reply")


class ErrorResponse(BaseModel):
    """Error body returned to the client."""
    error: str = Field(..., description="Generic error message")
