"""
Tests for the command line entry point.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from autonomate.core.types import RunRecord, RunStatus
from autonomate.main import create_parser, main, read_script


class TestParser:
    """Argument parsing."""

    def test_run_command(self):
        args = create_parser().parse_args(
            ["run", "https://example.com", "--script", "When I click Go", "--headed",
             "--test-data", "users.csv"]
        )

        assert args.command == "run"
        assert args.url == "https://example.com"
        assert args.headed is True
        assert args.test_data == "users.csv"

    def test_script_options_exclusive(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(
                ["run", "https://example.com", "--script", "x", "--script-file", "f.feature"]
            )

    def test_synthesize_command(self):
        args = create_parser().parse_args(["synthesize", "fill", "#email", "bob@example.com"])

        assert args.action == "fill"
        assert args.selector == "#email"
        assert args.value == "bob@example.com"


class TestReadScript:
    """Scenario text sources."""

    def test_inline(self):
        args = create_parser().parse_args(["run", "https://e.com", "--script", "When I go"])
        assert read_script(args) == "When I go"

    def test_file(self, tmp_path):
        feature = tmp_path / "login.feature"
        feature.write_text("Then I see it", encoding="utf-8")
        args = create_parser().parse_args(["run", "https://e.com", "-f", str(feature)])

        assert read_script(args) == "Then I see it"

    def test_missing_file(self, tmp_path):
        args = create_parser().parse_args(["run", "https://e.com", "-f", str(tmp_path / "x")])
        with pytest.raises(FileNotFoundError):
            read_script(args)

    def test_none(self):
        args = create_parser().parse_args(["run", "https://e.com"])
        assert read_script(args) is None


def test_version():
    assert main(["--version"]) == 0


def test_no_command_prints_help():
    assert main([]) == 1


def test_run_exit_code_follows_status(settings):
    finished = RunRecord(url="https://example.com")
    finished.transition_to(RunStatus.RUNNING)
    finished.transition_to(RunStatus.PASSED)

    lifecycle = MagicMock()
    lifecycle.execute = AsyncMock(return_value=finished)

    with patch("autonomate.main.get_settings", return_value=settings), \
            patch("autonomate.main.setup_logging"), \
            patch("autonomate.main.build_oracle"), \
            patch("autonomate.main.RunLifecycle", return_value=lifecycle):
        exit_code = main(["run", "https://example.com", "--script", "When I click Go"])

    assert exit_code == 0
    kwargs = lifecycle.execute.await_args.kwargs
    assert kwargs["script"] == "When I click Go"
    assert kwargs["headed"] is False
