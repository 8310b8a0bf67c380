"""AI providers."""

from app.domain.ai.providers.groq import GroqProvider

__all__ = ["GroqProvider"]
