"""
Service layer for the model conversation and its tools.
"""

from .llm import LLMService, ModelReply
from .orchestrator import ConversationOrchestrator, ConversationResult, ConversationState

__all__ = [
    "LLMService",
    "ModelReply",
    "ConversationOrchestrator",
    "ConversationResult",
    "ConversationState",
]
