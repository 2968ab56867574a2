"""
Tool definitions and the registry exposed to the model.

A tool pairs a declaration (what the model sees) with an async execute
method (what runs when the model asks for it). New tools subclass Tool and
get registered; the orchestrator only ever talks to the registry.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Tuple

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from concierge.integrations.shopify.service import CatalogService


class ToolParameter(BaseModel):
    """Tool parameter definition."""
    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    description: str
    required: bool = False
    enum: Optional[List[str]] = None


class ToolDefinition(BaseModel):
    """Tool declaration handed to the model."""
    model_config = ConfigDict(frozen=True)

    name: str
    description: str
    parameters: Tuple[ToolParameter, ...] = ()

    def to_openai_schema(self) -> Dict[str, Any]:
        """Render in OpenAI function calling format."""
        parameters: Dict[str, Any] = {
            "type": "object",
            "properties": {},
            "required": []
        }

        for param in self.parameters:
            param_schema: Dict[str, Any] = {
                "type": param.type,
                "description": param.description
            }
            if param.enum:
                param_schema["enum"] = list(param.enum)

            parameters["properties"][param.name] = param_schema
            if param.required:
                parameters["required"].append(param.name)

        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": parameters
            }
        }


class ToolCall(BaseModel):
    """Tool invocation requested by the model."""
    id: Optional[str] = None
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Tool execution result fed back to the model."""
    name: str
    payload: Any = None
    success: bool = True
    error: Optional[str] = None

    def to_content(self) -> Dict[str, Any]:
        """Body of the synthetic tool turn."""
        if self.success:
            return self.payload if isinstance(self.payload, dict) else {"result": self.payload}
        return {"error": self.error}


class Tool(ABC):
    """A callable capability the model may invoke."""

    declaration: ToolDefinition

    @property
    def name(self) -> str:
        return self.declaration.name

    @abstractmethod
    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        """Run the tool with model-supplied arguments."""


class CatalogSearchTool(Tool):
    """Product lookup against the store catalog."""

    declaration = ToolDefinition(
        name="search_products",
        description=(
            "Cerca prodotti nel catalogo del negozio e restituisce nome, link, disponibilità, prezzo e immagine. "
            "Usalo quando l'utente chiede un prodotto, un consiglio su cosa comprare o i best seller. "
            "Senza keyword restituisce i prodotti più popolari."
        ),
        parameters=(
            ToolParameter(
                name="keyword",
                type="string",
                description="Parola chiave al singolare che descrive il prodotto cercato (es. 'accendino'). Vuota per i best seller.",
                required=False
            ),
        )
    )

    def __init__(self, catalog: CatalogService):
        self.catalog = catalog

    async def execute(self, arguments: Dict[str, Any]) -> ToolResult:
        keyword = arguments.get("keyword")
        if keyword is not None and not isinstance(keyword, str):
            keyword = str(keyword)
        records = await self.catalog.search(keyword)
        return ToolResult(
            name=self.name,
            payload={"products": [record.to_payload() for record in records]}
        )


class ToolRegistry:
    """Registry mapping tool names to tools."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self.tools: Dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        if tool.name in self.tools:
            raise ValueError(f"Tool '{tool.name}' is already registered")
        self.tools[tool.name] = tool
        logger.debug(f"Registered tool: {tool.name}")

    def get(self, tool_name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self.tools.get(tool_name)

    def names(self) -> List[str]:
        return list(self.tools)

    def declarations(self) -> List[ToolDefinition]:
        return [tool.declaration for tool in self.tools.values()]

    def to_openai_schema(self) -> List[Dict[str, Any]]:
        """All declarations in OpenAI function calling format."""
        return [declaration.to_openai_schema() for declaration in self.declarations()]

    def validate_tool_call(self, tool_call: ToolCall) -> Tuple[bool, Optional[str]]:
        """Validate a tool call against its declaration."""
        tool = self.get(tool_call.name)
        if not tool:
            return False, f"Tool '{tool_call.name}' not found"

        for param in tool.declaration.parameters:
            if param.required and param.name not in tool_call.arguments:
                return False, f"Required parameter '{param.name}' missing"
            if param.enum and param.name in tool_call.arguments:
                if tool_call.arguments[param.name] not in param.enum:
                    return False, f"Parameter '{param.name}' must be one of: {param.enum}"

        return True, None

    def __contains__(self, tool_name: str) -> bool:
        return tool_name in self.tools

    def __len__(self) -> int:
        return len(self.tools)


def build_tool_registry(catalog: CatalogService) -> ToolRegistry:
    """The tools available to the shopping assistant."""
    return ToolRegistry([CatalogSearchTool(catalog)])
