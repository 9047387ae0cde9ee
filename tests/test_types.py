"""
Tests for core data types.
"""

import pytest

from autonomate.core.types import (
    ActionDecision,
    ActionKind,
    DecisionResult,
    RunRecord,
    RunStatus,
    SelectorKind,
    TokenUsage,
    VerificationDecision,
)
from autonomate.error_handling.exceptions import (
    InvalidTransitionError,
    MalformedResponseError,
)


class TestActionKind:
    """Action name parsing."""

    @pytest.mark.parametrize(
        "raw, expected",
        [
            ("Click", ActionKind.CLICK),
            ("FILL", ActionKind.FILL),
            ("type", ActionKind.FILL),
            ("Navigate", ActionKind.NAVIGATE),
            ("hover", ActionKind.HOVER),
            ("DoubleClick", ActionKind.UNRECOGNIZED),
            (None, ActionKind.UNRECOGNIZED),
        ],
    )
    def test_parse(self, raw, expected):
        assert ActionKind.parse(raw) == expected


class TestSelectorKind:
    """Selector kind parsing."""

    def test_aria_role(self):
        assert SelectorKind.parse("Button") == (SelectorKind.ROLE, "button")

    def test_named_kinds(self):
        assert SelectorKind.parse("Placeholder") == (SelectorKind.PLACEHOLDER, None)
        assert SelectorKind.parse("CSS") == (SelectorKind.CSS, None)

    def test_unknown_is_raw(self):
        assert SelectorKind.parse("xpath") == (SelectorKind.RAW, None)
        assert SelectorKind.parse(None) == (SelectorKind.RAW, None)


class TestDecisions:
    """Wire payload parsing."""

    def test_action_keys_case_insensitive(self):
        decision = ActionDecision.from_wire(
            {"actionkind": "click", "SELECTORKIND": "link", "selectorValue": "Cart (3)"}
        )
        assert decision.action_kind == ActionKind.CLICK
        assert decision.role == "link"
        assert decision.selector_value == "Cart (3)"
        assert decision.input_data is None

    def test_action_missing_kind(self):
        with pytest.raises(MalformedResponseError):
            ActionDecision.from_wire({"SelectorKind": "button"})

    def test_verification_bool(self):
        assert VerificationDecision.from_wire({"passed": False}).passed is False

    def test_verification_missing_passed(self):
        with pytest.raises(MalformedResponseError):
            VerificationDecision.from_wire({"Reasoning": "?"})

    def test_verification_numeric_passed_rejected(self):
        with pytest.raises(MalformedResponseError):
            VerificationDecision.from_wire({"Passed": 1})


class TestDecisionResult:
    """Success-or-failure results."""

    def test_success(self):
        result = DecisionResult.success(VerificationDecision(passed=True))
        assert result.ok
        assert result.failure is None

    def test_failed(self):
        result = DecisionResult.failed("no models", model_errors=["a"])
        assert not result.ok
        assert result.failure.reason == "no models"
        assert result.failure.model_errors == ["a"]


class TestRunRecord:
    """Status transitions and usage capture."""

    def test_happy_path(self):
        record = RunRecord(url="https://example.com")
        assert record.status == RunStatus.PENDING

        record.transition_to(RunStatus.RUNNING)
        assert record.started_at is not None
        record.transition_to(RunStatus.PASSED)
        assert record.status.is_terminal

    @pytest.mark.parametrize(
        "path",
        [
            [RunStatus.PASSED],
            [RunStatus.RUNNING, RunStatus.PENDING],
            [RunStatus.RUNNING, RunStatus.FAILED, RunStatus.RUNNING],
            [RunStatus.RUNNING, RunStatus.PASSED, RunStatus.FAILED],
        ],
    )
    def test_invalid_transitions(self, path):
        record = RunRecord(url="https://example.com")
        with pytest.raises(InvalidTransitionError):
            for status in path:
                record.transition_to(status)

    def test_zero_usage_stored_as_missing(self):
        record = RunRecord(url="https://example.com")
        record.record_usage(TokenUsage())
        assert record.total_tokens is None

        record.record_usage(TokenUsage(prompt_tokens=10, completion_tokens=2))
        assert (record.prompt_tokens, record.completion_tokens, record.total_tokens) == (10, 2, 12)

    def test_rerun_creates_fresh_pending_record(self):
        record = RunRecord(url="https://example.com", script="When I click Go", test_data_ref="u.csv")
        record.transition_to(RunStatus.RUNNING)
        record.transition_to(RunStatus.FAILED)

        fresh = record.rerun()

        assert fresh.run_id != record.run_id
        assert fresh.status == RunStatus.PENDING
        assert fresh.script == record.script
        assert fresh.test_data_ref == "u.csv"
