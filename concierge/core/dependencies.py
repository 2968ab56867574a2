"""
FastAPI dependency functions.
"""

from fastapi import Request

from concierge.services.orchestrator import ConversationOrchestrator
from concierge.utils.exceptions import ConfigurationError


def get_orchestrator(request: Request) -> ConversationOrchestrator:
    """
    Dependency to get the conversation orchestrator.

    The orchestrator is built once in the application lifespan from explicit
    settings; handlers never construct services themselves.
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise ConfigurationError("Conversation orchestrator is not initialised")
    return orchestrator
