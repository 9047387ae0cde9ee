"""
Tests for CSV/JSON test data loading.
"""

import json

from autonomate.security.data_source import (
    CsvTestDataSource,
    load_static_secrets,
    parse_key_value_rows,
)


class TestParseRows:
    """Both accepted CSV shapes."""

    def test_key_value_shape(self):
        rows = [["Key", "Value"], ["Username", " bob "], ["Password", "pw"], [""]]
        assert parse_key_value_rows(rows) == {"Username": "bob", "Password": "pw"}

    def test_header_row_shape(self):
        rows = [["Username", "Password"], ["bob", "pw"]]
        assert parse_key_value_rows(rows) == {"Username": "bob", "Password": "pw"}

    def test_header_only(self):
        assert parse_key_value_rows([["Username", "Password"]]) == {}

    def test_empty(self):
        assert parse_key_value_rows([]) == {}


class TestCsvTestDataSource:
    """File based test data source."""

    def test_load_relative_path(self, tmp_path):
        (tmp_path / "users.csv").write_text("Key,Value\nUsername,bob\n", encoding="utf-8")
        source = CsvTestDataSource(tmp_path)

        assert source.load("users.csv") == {"Username": "bob"}

    def test_load_with_bom(self, tmp_path):
        (tmp_path / "bom.csv").write_text("\ufeffKey,Value\nA,1\n", encoding="utf-8")
        assert CsvTestDataSource(tmp_path).load("bom.csv") == {"A": "1"}

    def test_missing_file_returns_none(self, tmp_path):
        assert CsvTestDataSource(tmp_path).load("nope.csv") is None

    def test_empty_file_returns_empty_dict(self, tmp_path):
        (tmp_path / "empty.csv").write_text("", encoding="utf-8")
        assert CsvTestDataSource(tmp_path).load("empty.csv") == {}


class TestLoadStaticSecrets:
    """Process-wide secret table."""

    def test_inline_wins_over_file(self, tmp_path):
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text(json.dumps({"A": "file"}), encoding="utf-8")

        result = load_static_secrets({"A": "inline"}, secrets_file)

        assert result == {"A": "inline"}

    def test_file_used_without_inline(self, tmp_path):
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text(json.dumps({"A": "file"}), encoding="utf-8")

        assert load_static_secrets({}, secrets_file) == {"A": "file"}

    def test_non_object_file_ignored(self, tmp_path):
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text("[1, 2]", encoding="utf-8")

        assert load_static_secrets(None, secrets_file) == {}

    def test_invalid_json_ignored(self, tmp_path):
        secrets_file = tmp_path / "secrets.json"
        secrets_file.write_text("{not json", encoding="utf-8")

        assert load_static_secrets(None, secrets_file) == {}

    def test_csv_merged_on_top(self, tmp_path):
        csv_path = tmp_path / "extra.csv"
        csv_path.write_text("A,B\nfrom-csv,2\n", encoding="utf-8")

        result = load_static_secrets({"A": "inline", "C": "3"}, None, csv_path)

        assert result == {"A": "from-csv", "B": "2", "C": "3"}
