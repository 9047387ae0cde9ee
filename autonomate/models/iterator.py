"""
Ordered multi-model fallback with rate-limit backoff.
"""

import asyncio
import time
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from autonomate.core.cancellation import CancellationToken, check_cancelled
from autonomate.core.interfaces import ModelTransport, TokenSink
from autonomate.core.types import ModelRequest, ModelResponse
from autonomate.error_handling.exceptions import (
    ConfigurationError,
    ModelsExhaustedError,
    RateLimitedError,
    TransportError,
)
from autonomate.monitoring.logger import get_logger, log_performance_metric

SleepFunc = Callable[[float], Awaitable[None]]

# Added to a server-advised Retry-After delay.
RETRY_AFTER_BUFFER_SECONDS = 1.0


class ModelIterator:
    """
    Sends a request to an ordered list of models until one answers.

    Each model gets up to ``max_retries + 1`` attempts. A rate-limited answer
    is retried against the same model after the server-advised delay (plus a
    one second buffer) or an exponential backoff. Any other failure moves on
    to the next model immediately. When every model fails, the aggregated
    errors are raised as ``ModelsExhaustedError``.
    """

    def __init__(
        self,
        transport: ModelTransport,
        max_retries: int = 3,
        initial_backoff_seconds: float = 2.0,
        token_sink: Optional[TokenSink] = None,
        sleep: Optional[SleepFunc] = None,
    ) -> None:
        """
        Initialize the iterator.

        Args:
            transport: Sends one request to one model
            max_retries: Retries per model after a rate-limited answer
            initial_backoff_seconds: First backoff delay, doubled per retry
            token_sink: Receives usage reported by successful calls
            sleep: Awaitable sleep, injectable for tests
        """
        self.transport = transport
        self.max_retries = max_retries
        self.initial_backoff_seconds = initial_backoff_seconds
        self.token_sink = token_sink
        self._sleep = sleep or asyncio.sleep
        self.logger = get_logger("model_iterator", component=transport.provider_name)

    async def run(
        self,
        models: Sequence[str],
        request: ModelRequest,
        cancel_token: Optional[CancellationToken] = None,
    ) -> ModelResponse:
        """
        Send ``request`` to each model in order until one succeeds.

        Args:
            models: Ordered model ids
            request: Request template; its ``model`` field is replaced per model
            cancel_token: Checked before every attempt

        Returns:
            The first successful response

        Raises:
            ConfigurationError: No models were supplied
            ModelsExhaustedError: Every model failed
        """
        if not models:
            raise ConfigurationError(
                f"No {self.transport.provider_name} models configured for this capability"
            )

        errors: List[str] = []
        for model in models:
            response, error = await self._try_model(model, request, cancel_token)
            if response is not None:
                return response
            errors.append(error)

        self.logger.error(
            f"All {self.transport.provider_name} models failed",
            extra={"models": list(models)},
        )
        raise ModelsExhaustedError(self.transport.provider_name, errors)

    async def _try_model(
        self,
        model: str,
        template: ModelRequest,
        cancel_token: Optional[CancellationToken],
    ) -> Tuple[Optional[ModelResponse], str]:
        """Return the response, or None and the failure recorded for ``model``."""
        request = template.model_copy(update={"model": model})
        delay = self.initial_backoff_seconds
        attempt = 0

        while True:
            check_cancelled(cancel_token)
            start_time = time.perf_counter()
            try:
                response = await self.transport.send(request)
            except RateLimitedError as e:
                if attempt >= self.max_retries:
                    self.logger.warning(
                        f"{model} rate limit exhausted. Moving to next model.",
                        extra={"model": model},
                    )
                    return None, (
                        f"Model {model} rate limit exceeded after {self.max_retries} retries: "
                        f"{e.body or e.message}"
                    )

                wait = (
                    e.retry_after + RETRY_AFTER_BUFFER_SECONDS
                    if e.retry_after is not None
                    else delay
                )
                attempt += 1
                self.logger.warning(
                    f"{model} hit 429 (rate limit). Waiting {wait:.1f}s before retry "
                    f"{attempt}/{self.max_retries}",
                    extra={"model": model},
                )
                await self._sleep(wait)
                delay *= 2
                continue
            except TransportError as e:
                self.logger.warning(
                    f"{model} failed: {e.message}",
                    extra={"model": model, "status_code": e.status_code},
                )
                return None, f"Model {model} failed: {e.message}"
            except Exception as e:
                self.logger.warning(f"{model} raised {type(e).__name__}: {e}", extra={"model": model})
                return None, f"Model {model} exception: {e}"

            log_performance_metric(
                "model_call_duration",
                (time.perf_counter() - start_time) * 1000,
                context={"model": model},
            )
            if response.usage and self.token_sink is not None:
                if response.usage.prompt_tokens or response.usage.completion_tokens:
                    self.token_sink.add_usage(response.usage)
            return response, ""
