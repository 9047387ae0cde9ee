"""
Google Gemini transport for the decision oracle.
"""

import logging
import re
from typing import Any, Optional

from google import genai
from google.genai import errors, types

from autonomate.config.settings import Settings, get_settings
from autonomate.core.interfaces import ModelTransport
from autonomate.core.types import ModelRequest, ModelResponse, TokenUsage
from autonomate.error_handling.exceptions import (
    ConfigurationError,
    RateLimitedError,
    TransportError,
)
from autonomate.models.openai_client import parse_retry_after

_RETRY_DELAY_PATTERN = re.compile(r"['\"]retryDelay['\"]\s*:\s*['\"](\d+(?:\.\d+)?)s['\"]")


def _retry_after_from_error(error: errors.APIError) -> Optional[float]:
    """Read the advised delay from response headers or the RetryInfo detail."""
    response = getattr(error, "response", None)
    delay = parse_retry_after(getattr(response, "headers", None))
    if delay is not None:
        return delay
    match = _RETRY_DELAY_PATTERN.search(str(getattr(error, "details", "") or ""))
    return float(match.group(1)) if match else None


class GeminiTransport(ModelTransport):
    """Sends one request to a Gemini model via Google AI Studio or Vertex AI."""

    provider_name = "Gemini"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Initialize the transport.

        An API key selects Google AI Studio; without one, Vertex AI is used
        with the configured project and location.

        Args:
            settings: Settings instance (defaults to cached settings)
            client: Pre-built ``genai.Client``, mainly for tests
        """
        self.settings = settings or get_settings()
        self.logger = logging.getLogger("gemini_client")
        self.client = client or self._build_client()

    def _build_client(self) -> genai.Client:
        if self.settings.gemini_api_key:
            return genai.Client(api_key=self.settings.gemini_api_key)

        if self.settings.vertex_project_id and self.settings.vertex_location:
            self.logger.info(
                "Using Vertex AI for Gemini",
                extra={
                    "project": self.settings.vertex_project_id,
                    "location": self.settings.vertex_location,
                },
            )
            return genai.Client(
                vertexai=True,
                project=self.settings.vertex_project_id,
                location=self.settings.vertex_location,
            )

        raise ConfigurationError(
            "AI configuration is missing. Set GEMINI_API_KEY or VERTEX_PROJECT_ID and VERTEX_LOCATION.",
            setting="gemini_api_key",
        )

    async def send(self, request: ModelRequest) -> ModelResponse:
        config = types.GenerateContentConfig(
            system_instruction=request.system_instruction,
            temperature=request.temperature,
            max_output_tokens=request.max_output_tokens,
            response_mime_type="application/json" if request.json_mode else None,
        )

        self.logger.debug(
            f"Gemini API call: model={request.model}, json_mode={request.json_mode}"
        )

        try:
            response = await self.client.aio.models.generate_content(
                model=request.model,
                contents=request.user_content,
                config=config,
            )
        except errors.APIError as e:
            if e.code == 429:
                raise RateLimitedError(
                    f"{request.model} returned 429",
                    model=request.model,
                    retry_after=_retry_after_from_error(e),
                    body=str(e.message or ""),
                    cause=e,
                ) from e
            raise TransportError(
                f"{e.code} - {e.message}",
                model=request.model,
                status_code=e.code,
                cause=e,
            ) from e

        text = response.text or ""
        if not text:
            raise TransportError("Response contained no text", model=request.model)

        usage = None
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            usage = TokenUsage(
                prompt_tokens=metadata.prompt_token_count or 0,
                completion_tokens=metadata.candidates_token_count or 0,
            )

        return ModelResponse(model=request.model, text=text, usage=usage)
