"""
Core data models and types for the AutonomateQA step runner.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Tuple, TypeVar
from uuid import uuid4

from pydantic import BaseModel, Field

from autonomate.error_handling.exceptions import (
    InvalidTransitionError,
    MalformedResponseError,
)


T = TypeVar("T")


class RunStatus(str, Enum):
    """Status of a scenario run."""

    PENDING = "pending"
    RUNNING = "running"
    PASSED = "passed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.PASSED, RunStatus.FAILED)


_ALLOWED_TRANSITIONS: Dict[RunStatus, Tuple[RunStatus, ...]] = {
    RunStatus.PENDING: (RunStatus.RUNNING,),
    RunStatus.RUNNING: (RunStatus.PASSED, RunStatus.FAILED),
    RunStatus.PASSED: (),
    RunStatus.FAILED: (),
}


class ActionKind(str, Enum):
    """Browser operations a decision can ask for."""

    CLICK = "click"
    FILL = "fill"
    CHECK = "check"
    UNCHECK = "uncheck"
    NAVIGATE = "navigate"
    HOVER = "hover"
    UNRECOGNIZED = "unrecognized"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ActionKind":
        """Map a model-supplied action name onto a known kind."""
        key = (raw or "").strip().lower()
        aliases = {
            "type": cls.FILL,
            "input": cls.FILL,
            "goto": cls.NAVIGATE,
        }
        if key in aliases:
            return aliases[key]
        try:
            kind = cls(key)
        except ValueError:
            return cls.UNRECOGNIZED
        return kind


# Playwright's accepted ARIA roles for get_by_role().
ARIA_ROLES = frozenset(
    {
        "alert", "alertdialog", "application", "article", "banner",
        "blockquote", "button", "caption", "cell", "checkbox", "code",
        "columnheader", "combobox", "complementary", "contentinfo",
        "definition", "deletion", "dialog", "directory", "document",
        "emphasis", "feed", "figure", "form", "generic", "grid", "gridcell",
        "group", "heading", "img", "insertion", "link", "list", "listbox",
        "listitem", "log", "main", "marquee", "math", "meter", "menu",
        "menubar", "menuitem", "menuitemcheckbox", "menuitemradio",
        "navigation", "none", "note", "option", "paragraph", "presentation",
        "progressbar", "radio", "radiogroup", "region", "row", "rowgroup",
        "rowheader", "scrollbar", "search", "searchbox", "separator",
        "slider", "spinbutton", "status", "strong", "subscript",
        "superscript", "switch", "tab", "table", "tablist", "tabpanel",
        "term", "textbox", "time", "timer", "toolbar", "tooltip", "tree",
        "treegrid", "treeitem",
    }
)

# Roles whose accessible names often carry counts or badges.
SUBSTRING_NAME_ROLES = frozenset({"link", "menuitem"})


class SelectorKind(str, Enum):
    """How a decision identifies its target element."""

    ROLE = "role"
    TEXT = "text"
    LABEL = "label"
    PLACEHOLDER = "placeholder"
    CSS = "css"
    RAW = "raw"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Tuple["SelectorKind", Optional[str]]:
        """Return the selector kind and, for role kinds, the ARIA role."""
        key = (raw or "").strip().lower()
        if key in ARIA_ROLES:
            return cls.ROLE, key
        if key in (cls.TEXT.value, cls.LABEL.value, cls.PLACEHOLDER.value, cls.CSS.value):
            return cls(key), None
        return cls.RAW, None


class StepKind(str, Enum):
    """Whether a scenario line drives the page or asserts its state."""

    ACTION = "action"
    VERIFICATION = "verification"


class ClassifiedStep(BaseModel):
    """A scenario line that survived classification."""

    number: int = Field(..., description="1-based index among executable steps")
    line_number: int = Field(..., description="1-based line in the script")
    text: str = Field(..., description="Step text with known secrets masked")
    kind: StepKind

    @property
    def is_verification(self) -> bool:
        return self.kind == StepKind.VERIFICATION


def _lower_keys(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {str(key).lower(): value for key, value in payload.items()}


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


class ActionDecision(BaseModel):
    """What the oracle wants done for an action step."""

    action_kind: ActionKind
    selector_kind: SelectorKind
    selector_value: str = ""
    role: Optional[str] = Field(None, description="ARIA role when selector_kind is ROLE")
    input_data: Optional[str] = None
    reasoning: str = ""
    raw_action: str = Field("", description="Action name exactly as the model sent it")
    raw_selector: str = Field("", description="Selector kind exactly as the model sent it")

    @classmethod
    def from_wire(cls, payload: Dict[str, Any]) -> "ActionDecision":
        """
        Build a decision from the wire payload.

        Keys are matched case-insensitively; ``ActionType``/``SelectorType``
        are accepted as aliases of ``ActionKind``/``SelectorKind``.
        """
        data = _lower_keys(payload)
        raw_action = data.get("actionkind", data.get("actiontype"))
        if raw_action is None or not str(raw_action).strip():
            raise MalformedResponseError(
                "Action response is missing ActionKind", raw_response=str(payload)
            )
        raw_selector = _as_text(data.get("selectorkind", data.get("selectortype")))
        selector_kind, role = SelectorKind.parse(raw_selector)
        input_data = data.get("inputdata")
        return cls(
            action_kind=ActionKind.parse(str(raw_action)),
            selector_kind=selector_kind,
            selector_value=_as_text(data.get("selectorvalue")),
            role=role,
            input_data=None if input_data is None else str(input_data),
            reasoning=_as_text(data.get("reasoning")),
            raw_action=str(raw_action),
            raw_selector=raw_selector,
        )


class VerificationDecision(BaseModel):
    """Pass/fail judgment for a verification step."""

    passed: bool
    reasoning: str = ""

    @classmethod
    def from_wire(cls, payload: Dict[str, Any]) -> "VerificationDecision":
        """Build a judgment from the wire payload (case-insensitive keys)."""
        data = _lower_keys(payload)
        if "passed" not in data:
            raise MalformedResponseError(
                "Verification response is missing Passed", raw_response=str(payload)
            )
        passed = data["passed"]
        if isinstance(passed, str):
            lowered = passed.strip().lower()
            if lowered not in ("true", "false"):
                raise MalformedResponseError(
                    f"Passed is not a boolean: {passed}", raw_response=str(payload)
                )
            passed = lowered == "true"
        elif not isinstance(passed, bool):
            raise MalformedResponseError(
                f"Passed is not a boolean: {passed!r}", raw_response=str(payload)
            )
        return cls(passed=passed, reasoning=_as_text(data.get("reasoning")))


class DecisionFailure(BaseModel):
    """Why a decision could not be produced."""

    reason: str
    error_type: str = "DecisionError"
    model_errors: List[str] = Field(default_factory=list)


class DecisionResult(BaseModel, Generic[T]):
    """Explicit success-or-failure result of an oracle call."""

    value: Optional[T] = None
    failure: Optional[DecisionFailure] = None

    @property
    def ok(self) -> bool:
        return self.failure is None and self.value is not None

    @classmethod
    def success(cls, value: T) -> "DecisionResult[T]":
        return cls(value=value)

    @classmethod
    def failed(
        cls,
        reason: str,
        error_type: str = "DecisionError",
        model_errors: Optional[List[str]] = None,
    ) -> "DecisionResult[T]":
        return cls(
            failure=DecisionFailure(
                reason=reason,
                error_type=error_type,
                model_errors=list(model_errors or []),
            )
        )


class TokenUsage(BaseModel):
    """Prompt/completion token counts reported by a model."""

    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


class ModelCapability(str, Enum):
    """Decision capabilities, each with its own configured model list."""

    ACTION = "action"
    VERIFY = "verify"
    STEP_SYNTHESIS = "step_synthesis"


class ModelRequest(BaseModel):
    """A single request to one model."""

    model: str
    system_instruction: str
    user_content: str
    json_mode: bool = True
    max_output_tokens: Optional[int] = None
    temperature: float = 0.0


class ModelResponse(BaseModel):
    """Text returned by one model plus its optional usage report."""

    model: str
    text: str
    usage: Optional[TokenUsage] = None


class ExecutionOutcome(BaseModel):
    """Result of a successfully executed browser action."""

    action_kind: ActionKind
    target: str
    execution_time_ms: float


class ExecutionResult(BaseModel):
    """Explicit success-or-failure result of executing one action decision."""

    outcome: Optional[ExecutionOutcome] = None
    error: Optional[str] = None
    screenshot_path: Optional[str] = Field(None, description="Failure screenshot, if one was saved")

    @property
    def ok(self) -> bool:
        return self.error is None and self.outcome is not None

    @classmethod
    def success(cls, outcome: ExecutionOutcome) -> "ExecutionResult":
        return cls(outcome=outcome)

    @classmethod
    def failed(cls, error: str, screenshot_path: Optional[str] = None) -> "ExecutionResult":
        return cls(error=error, screenshot_path=screenshot_path)


class RunRecord(BaseModel):
    """One execution of a scenario against a URL."""

    run_id: str = Field(default_factory=lambda: uuid4().hex)
    url: str
    script: Optional[str] = None
    test_data_ref: Optional[str] = None
    status: RunStatus = RunStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    started_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    error_message: Optional[str] = None
    screenshot_path: Optional[str] = None
    video_path: Optional[str] = None
    reasoning_log: Optional[str] = None
    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None
    cancelled: bool = False

    def transition_to(self, status: RunStatus) -> None:
        """Move to ``status``; only pending→running→passed|failed is allowed."""
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status.value, status.value)
        self.status = status
        if status == RunStatus.RUNNING:
            self.started_at = datetime.now(timezone.utc)

    def record_usage(self, usage: TokenUsage) -> None:
        """Store token totals; zero counts are stored as missing."""
        self.prompt_tokens = usage.prompt_tokens or None
        self.completion_tokens = usage.completion_tokens or None
        self.total_tokens = usage.total_tokens or None

    def rerun(self) -> "RunRecord":
        """Create a fresh pending record for the same scenario."""
        return RunRecord(
            url=self.url,
            script=self.script,
            test_data_ref=self.test_data_ref,
        )
