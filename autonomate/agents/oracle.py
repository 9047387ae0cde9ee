"""
Model-backed decision oracle.

Builds the action, verification and step-synthesis prompts, sends them
through the shared ``ModelIterator`` and parses the answers into typed
decisions. Oracle failures are returned as failed ``DecisionResult`` values
rather than raised, so callers handle them as ordinary step outcomes.
"""

import json
import re
from typing import Any, Callable, Dict, List, Optional, Sequence, TypeVar

from autonomate.config.agent_prompts import (
    ACTION_SYSTEM_PROMPT,
    STEP_SYNTHESIS_SYSTEM_PROMPT,
    VERIFY_SYSTEM_PROMPT,
    PromptTemplates,
)
from autonomate.config.settings import Settings, get_settings
from autonomate.core.interfaces import DecisionOracle
from autonomate.core.types import (
    ActionDecision,
    DecisionResult,
    ModelCapability,
    ModelRequest,
    VerificationDecision,
)
from autonomate.error_handling.exceptions import (
    MalformedResponseError,
    ModelsExhaustedError,
)
from autonomate.models.iterator import ModelIterator
from autonomate.monitoring.logger import get_logger

T = TypeVar("T")

_CODE_FENCE = re.compile(r"```(?:json)?", re.IGNORECASE)
_GHERKIN_LABEL = "gherkin step:"


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """
    Parse the outermost JSON object in a model answer.

    Markdown code fences are removed and everything outside the first ``{``
    and the last ``}`` is ignored.

    Raises:
        MalformedResponseError: No braces, invalid JSON, or not an object
    """
    if not text or not text.strip():
        raise MalformedResponseError("AI response text is empty")

    cleaned = _CODE_FENCE.sub("", text).strip()
    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start < 0 or end < start:
        raise MalformedResponseError(
            "AI response does not contain a JSON object", raw_response=text
        )

    try:
        payload = json.loads(cleaned[start:end + 1])
    except json.JSONDecodeError as e:
        raise MalformedResponseError(
            f"AI response is not valid JSON: {e.msg}", raw_response=text, cause=e
        ) from e

    if not isinstance(payload, dict):
        raise MalformedResponseError("AI response is not a JSON object", raw_response=text)
    return payload


def clean_gherkin_step(text: str) -> str:
    """Strip a leading ``Gherkin Step:`` label and surrounding whitespace."""
    result = text.strip()
    if result.lower().startswith(_GHERKIN_LABEL):
        result = result[len(_GHERKIN_LABEL):].strip()
    return result


class ModelBackedOracle(DecisionOracle):
    """Decision oracle that asks an ordered list of models per capability."""

    def __init__(
        self,
        iterator: ModelIterator,
        settings: Optional[Settings] = None,
        model_lists: Optional[Dict[ModelCapability, Sequence[str]]] = None,
    ) -> None:
        """
        Initialize the oracle.

        Args:
            iterator: Shared retry/fallback protocol bound to one transport
            settings: Settings instance (defaults to cached settings)
            model_lists: Per-capability model ids overriding the settings
        """
        self.iterator = iterator
        self.settings = settings or get_settings()
        self._model_lists = dict(model_lists or {})
        self.logger = get_logger("agents.oracle")

    def models_for(self, capability: ModelCapability) -> List[str]:
        """Ordered model ids configured for ``capability``."""
        if capability in self._model_lists:
            return list(self._model_lists[capability])
        return self.settings.get_model_list(capability)

    async def resolve_action(
        self, step: str, snapshot: str
    ) -> DecisionResult[ActionDecision]:
        return await self._decide(
            ModelCapability.ACTION,
            ACTION_SYSTEM_PROMPT,
            PromptTemplates.action_request(step, snapshot),
            ActionDecision.from_wire,
        )

    async def verify(
        self, step: str, snapshot: str
    ) -> DecisionResult[VerificationDecision]:
        return await self._decide(
            ModelCapability.VERIFY,
            VERIFY_SYSTEM_PROMPT,
            PromptTemplates.verify_request(step, snapshot),
            VerificationDecision.from_wire,
        )

    async def synthesize_step(
        self,
        action_kind: str,
        selector_hint: str,
        value: Optional[str],
        snapshot: str,
    ) -> str:
        request = ModelRequest(
            model="",
            system_instruction=STEP_SYNTHESIS_SYSTEM_PROMPT,
            user_content=PromptTemplates.step_synthesis_request(
                action_kind, selector_hint, value, snapshot
            ),
            json_mode=False,
        )
        try:
            response = await self.iterator.run(
                self.models_for(ModelCapability.STEP_SYNTHESIS), request
            )
        except Exception as e:
            self.logger.warning(f"Step synthesis failed: {e}")
            safe_error = str(e).replace("\r", " ").replace("\n", " ")
            return f"# AI Error: {safe_error}\n    And I {action_kind} on '{selector_hint}'"

        return clean_gherkin_step(response.text)

    async def _decide(
        self,
        capability: ModelCapability,
        system_instruction: str,
        user_content: str,
        parse: Callable[[Dict[str, Any]], T],
    ) -> DecisionResult[T]:
        request = ModelRequest(
            model="",
            system_instruction=system_instruction,
            user_content=user_content,
            json_mode=True,
        )

        try:
            response = await self.iterator.run(self.models_for(capability), request)
        except ModelsExhaustedError as e:
            return DecisionResult.failed(
                e.message, error_type=e.error_code, model_errors=e.errors
            )

        try:
            decision = parse(extract_json_object(response.text))
        except MalformedResponseError as e:
            self.logger.warning(
                f"Failed to parse {capability.value} response from {response.model}: {e.message}",
                extra={"model": response.model},
            )
            return DecisionResult.failed(
                f"Failed to parse {capability.value} response: {e.message}",
                error_type=e.error_code,
            )

        self.logger.debug(
            f"{capability.value} decision from {response.model}",
            extra={"model": response.model},
        )
        return DecisionResult.success(decision)
