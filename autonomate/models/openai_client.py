"""OpenAI chat-completions transport for the decision oracle."""

import logging
from typing import Any, Dict, Optional

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from autonomate.config.settings import Settings, get_settings
from autonomate.core.interfaces import ModelTransport
from autonomate.core.types import ModelRequest, ModelResponse, TokenUsage
from autonomate.error_handling.exceptions import (
    ConfigurationError,
    RateLimitedError,
    TransportError,
)
from autonomate.security.sanitizer import mask_sensitive_data

_CHAT_COMPLETIONS_SUFFIX = "/chat/completions"


def parse_retry_after(headers: Any) -> Optional[float]:
    """
    Read a Retry-After delay in seconds from response headers.

    Supports ``retry-after-ms`` and the numeric form of ``retry-after``;
    HTTP-date values are ignored.
    """
    if headers is None:
        return None
    retry_ms = headers.get("retry-after-ms")
    if retry_ms:
        try:
            return float(retry_ms) / 1000.0
        except (TypeError, ValueError):
            pass
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except (TypeError, ValueError):
            return None
    return None


class OpenAIChatTransport(ModelTransport):
    """Sends one chat-completions request to an OpenAI-compatible endpoint."""

    provider_name = "OpenAI"

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[Any] = None,
    ) -> None:
        """
        Initialize the transport.

        Args:
            settings: Settings instance (defaults to cached settings)
            client: Pre-built async client, mainly for tests
        """
        self.settings = settings or get_settings()
        self.logger = logging.getLogger("openai_client")
        self.max_tokens = self.settings.openai_max_tokens
        self.request_timeout = float(self.settings.openai_request_timeout_seconds)
        self.client = client or self._build_client()

    def _build_client(self) -> Any:
        api_key = self.settings.openai_api_key
        if not api_key:
            raise ConfigurationError(
                "OpenAI API key not provided. Set OPENAI_API_KEY environment variable.",
                setting="openai_api_key",
            )

        # SDK retries are disabled; ModelIterator owns retry and fallback.
        if self.settings.openai_azure_base_url:
            self.logger.info(
                "Using Azure OpenAI endpoint",
                extra={"api_key": mask_sensitive_data(api_key, 3, 2)},
            )
            return AsyncAzureOpenAI(
                api_key=api_key,
                azure_endpoint=self.settings.openai_azure_base_url,
                api_version=self.settings.openai_api_version,
                max_retries=0,
            )

        base_url = self.settings.openai_api_endpoint
        if base_url and base_url.rstrip("/").endswith(_CHAT_COMPLETIONS_SUFFIX):
            base_url = base_url.rstrip("/")[: -len(_CHAT_COMPLETIONS_SUFFIX)]
        return AsyncOpenAI(api_key=api_key, base_url=base_url or None, max_retries=0)

    async def send(self, request: ModelRequest) -> ModelResponse:
        kwargs: Dict[str, Any] = {
            "model": request.model,
            "messages": [
                {"role": "system", "content": request.system_instruction},
                {"role": "user", "content": request.user_content},
            ],
            "temperature": request.temperature,
            "max_tokens": request.max_output_tokens or self.max_tokens,
        }
        if request.json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        self.logger.debug(
            f"OpenAI API call: model={request.model}, json_mode={request.json_mode}"
        )

        try:
            response = await self.client.chat.completions.create(
                timeout=self.request_timeout,
                **kwargs,
            )
        except openai.RateLimitError as e:
            raise RateLimitedError(
                f"{request.model} returned 429",
                model=request.model,
                retry_after=parse_retry_after(getattr(e.response, "headers", None)),
                body=str(e.body or e.message),
                cause=e,
            ) from e
        except openai.APIStatusError as e:
            raise TransportError(
                f"{e.status_code} - {e.message}",
                model=request.model,
                status_code=e.status_code,
                cause=e,
            ) from e
        except openai.APIError as e:
            raise TransportError(str(e), model=request.model, cause=e) from e

        if not response.choices:
            raise TransportError("Response contained no choices", model=request.model)

        content = response.choices[0].message.content or ""
        usage = None
        if response.usage is not None:
            usage = TokenUsage(
                prompt_tokens=response.usage.prompt_tokens or 0,
                completion_tokens=response.usage.completion_tokens or 0,
            )

        return ModelResponse(model=request.model, text=content, usage=usage)
