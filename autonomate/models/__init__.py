"""
Model transports and the shared retry/fallback protocol.
"""

from autonomate.models.iterator import ModelIterator

__all__ = ["ModelIterator", "create_transport"]


def create_transport(settings):
    """Build the transport selected by ``settings.ai_provider``."""
    if settings.ai_provider == "gemini":
        from autonomate.models.gemini_client import GeminiTransport

        return GeminiTransport(settings)

    from autonomate.models.openai_client import OpenAIChatTransport

    return OpenAIChatTransport(settings)
