"""AI domain services and provider abstractions."""

from app.domain.ai.factory import build_completion_client
from app.domain.ai.service import CompletionClient

__all__ = ["CompletionClient", "build_completion_client"]
