"""
Unit tests for data sanitization.
"""

import logging
import re

from autonomate.security.sanitizer import (
    DataSanitizer,
    RedactionMethod,
    SensitiveDataPattern,
    mask_sensitive_data,
    redact_pii,
)


class TestSensitiveDataPattern:
    """Test sensitive data pattern redaction."""

    def test_mask_method(self):
        pattern = SensitiveDataPattern(
            name="ssn",
            pattern=re.compile(r"\b\d{3}-\d{2}-\d{4}\b"),
        )
        assert pattern.redact("SSN 123-45-6789") == "SSN ***********"

    def test_placeholder_method(self):
        pattern = SensitiveDataPattern(
            name="token",
            pattern=re.compile(r"tok_\w+"),
            redaction_method=RedactionMethod.PLACEHOLDER,
            placeholder="[TOKEN]",
        )
        assert pattern.redact("use tok_abc123 now") == "use [TOKEN] now"

    def test_partial_method(self):
        pattern = SensitiveDataPattern(
            name="digits",
            pattern=re.compile(r"\d{12}"),
            redaction_method=RedactionMethod.PARTIAL,
        )
        assert pattern.redact("123456789012") == "1234****9012"

    def test_hash_method_is_stable(self):
        pattern = SensitiveDataPattern(
            name="word",
            pattern=re.compile(r"secret"),
            redaction_method=RedactionMethod.HASH,
        )
        first = pattern.redact("secret")
        assert first.startswith("[HASH:")
        assert first == pattern.redact("secret")

    def test_disabled_pattern(self):
        pattern = SensitiveDataPattern(
            name="test",
            pattern=re.compile(r"test"),
            enabled=False,
        )
        assert pattern.redact("This is a test") == "This is a test"


class TestRedactPii:
    """Test snapshot PII redaction."""

    def test_redacts_email(self):
        assert redact_pii("mail jane@example.com") == "mail [REDACTED_EMAIL]"

    def test_redacts_ip(self):
        assert redact_pii("host 192.168.1.20 up") == "host [REDACTED_IP] up"

    def test_redacts_phone(self):
        assert "[REDACTED_PHONE]" in redact_pii("call 555-123-4567 today")

    def test_card_redacted_before_phone(self):
        result = redact_pii("card 4111 1111 1111 1111")
        assert result == "card [REDACTED_CC]"

    def test_empty_text(self):
        assert redact_pii("") == ""

    def test_plain_text_untouched(self):
        text = '- button "Sign in"\n- link "Forgot password?"'
        assert redact_pii(text) == text


class TestDataSanitizer:
    """Test log sanitizer functionality."""

    def test_default_patterns(self):
        sanitizer = DataSanitizer()
        names = [p.name for p in sanitizer.patterns]

        assert "openai_key" in names
        assert "google_api_key" in names
        assert "credit_card" in names
        assert "email" in names

    def test_sanitize_api_keys(self):
        sanitizer = DataSanitizer()
        text = "key sk-abcdefghijklmnopqrstuvwx used"

        result = sanitizer.sanitize_string(text)

        assert "sk-abcdefghijklmnopqrstuvwx" not in result
        assert result.startswith("key sk-")

    def test_sanitize_password_assignment(self):
        sanitizer = DataSanitizer()
        assert sanitizer.sanitize_string("password=hunter2") == "[PASSWORD]"

    def test_sanitize_bearer(self):
        sanitizer = DataSanitizer()
        result = sanitizer.sanitize_string("Authorization: Bearer abc.def.ghi")
        assert "abc.def.ghi" not in result

    def test_sanitize_dict_nested(self):
        sanitizer = DataSanitizer()
        data = {
            "outer": {"note": "password: secret1"},
            "items": ["api_key=xyz123", 5],
        }

        result = sanitizer.sanitize_dict(data)

        assert result["outer"]["note"] == "[PASSWORD]"
        assert result["items"] == ["[API_KEY]", 5]
        assert data["outer"]["note"] == "password: secret1"

    def test_sanitize_value_keeps_container_types(self):
        sanitizer = DataSanitizer()

        result = sanitizer.sanitize_value({"args": ("pwd=abc", 3)})

        assert result == {"args": ("[PASSWORD]", 3)}

    def test_add_pattern(self):
        sanitizer = DataSanitizer()
        sanitizer.add_pattern(
            SensitiveDataPattern(
                name="order",
                pattern=re.compile(r"ORD-\d+"),
                redaction_method=RedactionMethod.PLACEHOLDER,
                placeholder="[ORDER]",
            )
        )
        assert sanitizer.sanitize_string("ref ORD-991") == "ref [ORDER]"

    def test_sanitize_log_record(self):
        sanitizer = DataSanitizer()
        record = logging.LogRecord(
            name="test",
            level=logging.INFO,
            pathname="",
            lineno=0,
            msg="login with password=%s",
            args=("token=abc",),
            exc_info=None,
        )
        record.args = ("password=abc",)

        sanitizer.sanitize_log_record(record)

        assert record.args == ("[PASSWORD]",)


def test_mask_sensitive_data():
    assert mask_sensitive_data("1234567890123456") == "1234********3456"
    assert mask_sensitive_data("short") == "*****"
