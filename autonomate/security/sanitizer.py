"""
Data sanitization for sensitive information protection.

Provides patterns and methods to detect and redact sensitive data in log
output and in page snapshots before they are sent to a model.
"""

import hashlib
import logging
import re
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Pattern

logger = logging.getLogger(__name__)


class RedactionMethod(Enum):
    """Methods for redacting sensitive data."""
    MASK = auto()          # Replace with asterisks
    HASH = auto()          # Replace with hash
    PARTIAL = auto()       # Show first/last few chars
    PLACEHOLDER = auto()   # Replace with placeholder text


@dataclass
class SensitiveDataPattern:
    """Pattern for identifying sensitive data."""

    name: str
    pattern: Pattern[str]
    redaction_method: RedactionMethod = RedactionMethod.MASK
    placeholder: str = "[REDACTED]"
    partial_chars: int = 4
    description: str = ""
    enabled: bool = True

    def redact(self, text: str) -> str:
        """Replace every match of this pattern in ``text``."""
        if not self.enabled or not text:
            return text
        return self.pattern.sub(self._replacement, text)

    def _replacement(self, match: "re.Match[str]") -> str:
        matched_text = match.group()

        if self.redaction_method == RedactionMethod.PLACEHOLDER:
            return self.placeholder

        if self.redaction_method == RedactionMethod.HASH:
            hash_val = hashlib.sha256(matched_text.encode()).hexdigest()[:8]
            return f"[HASH:{hash_val}]"

        if self.redaction_method == RedactionMethod.PARTIAL:
            if len(matched_text) > self.partial_chars * 2:
                return (
                    matched_text[:self.partial_chars]
                    + "*" * (len(matched_text) - self.partial_chars * 2)
                    + matched_text[-self.partial_chars:]
                )
            return "*" * len(matched_text)

        return "*" * len(matched_text)


# Applied in order to every accessibility snapshot. Card numbers run before
# phone numbers so a 16-digit group is not split into a partial phone match.
SNAPSHOT_PII_PATTERNS: List[SensitiveDataPattern] = [
    SensitiveDataPattern(
        name="credit_card",
        pattern=re.compile(r"\b(?:\d{4}[- ]?){3}\d{4}\b"),
        redaction_method=RedactionMethod.PLACEHOLDER,
        placeholder="[REDACTED_CC]",
        description="Card-like groups of 16 digits",
    ),
    SensitiveDataPattern(
        name="ip_address",
        pattern=re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"),
        redaction_method=RedactionMethod.PLACEHOLDER,
        placeholder="[REDACTED_IP]",
        description="IPv4 addresses",
    ),
    SensitiveDataPattern(
        name="email",
        pattern=re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
        redaction_method=RedactionMethod.PLACEHOLDER,
        placeholder="[REDACTED_EMAIL]",
        description="Email addresses",
    ),
    SensitiveDataPattern(
        name="phone",
        pattern=re.compile(
            r"\b(?:\+?(\d{1,3}))?[-. (]*(\d{3})[-. )]*(\d{3})[-. ]*(\d{4})\b"
        ),
        redaction_method=RedactionMethod.PLACEHOLDER,
        placeholder="[REDACTED_PHONE]",
        description="Phone numbers",
    ),
]


def redact_pii(text: str) -> str:
    """
    Redact IPs, emails, phone numbers and card numbers from snapshot text.

    Args:
        text: Raw accessibility snapshot

    Returns:
        Snapshot with each match replaced by its ``[REDACTED_*]`` placeholder
    """
    if not text:
        return text
    for pattern in SNAPSHOT_PII_PATTERNS:
        text = pattern.redact(text)
    return text


class DataSanitizer:
    """Sanitizer applied to log records before they are emitted."""

    def __init__(self):
        """Initialize with default patterns."""
        self.patterns: List[SensitiveDataPattern] = []
        self._setup_default_patterns()

    def _setup_default_patterns(self) -> None:
        """Set up default sensitive data patterns."""
        # Credentials
        self.patterns.extend([
            SensitiveDataPattern(
                name="openai_key",
                pattern=re.compile(r"\bsk-[A-Za-z0-9_-]{16,}\b"),
                redaction_method=RedactionMethod.PARTIAL,
                partial_chars=3,
                description="OpenAI-style secret keys",
            ),
            SensitiveDataPattern(
                name="google_api_key",
                pattern=re.compile(r"\bAIza[0-9A-Za-z_-]{35}\b"),
                redaction_method=RedactionMethod.PARTIAL,
                partial_chars=4,
                description="Google API keys",
            ),
            SensitiveDataPattern(
                name="api_key_prefix",
                pattern=re.compile(
                    r"(api[_-]?key|apikey|api_secret|access[_-]?token)\s*[:=]\s*[\"']?([^\"'\s]+)[\"']?",
                    re.IGNORECASE,
                ),
                redaction_method=RedactionMethod.PLACEHOLDER,
                placeholder="[API_KEY]",
                description="API key assignments",
            ),
            SensitiveDataPattern(
                name="bearer_token",
                pattern=re.compile(r"Bearer\s+[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE),
                description="Bearer authentication tokens",
            ),
            SensitiveDataPattern(
                name="password_field",
                pattern=re.compile(
                    r"(password|passwd|pwd)\s*[:=]\s*[\"']?([^\"'\s]+)[\"']?",
                    re.IGNORECASE,
                ),
                redaction_method=RedactionMethod.PLACEHOLDER,
                placeholder="[PASSWORD]",
                description="Password assignments",
            ),
            SensitiveDataPattern(
                name="jwt_token",
                pattern=re.compile(r"eyJ[A-Za-z0-9_-]+\.eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+"),
                redaction_method=RedactionMethod.HASH,
                description="JWT tokens",
            ),
        ])

        # Personal information
        self.patterns.extend([
            SensitiveDataPattern(
                name="credit_card",
                pattern=re.compile(r"\b(?:\d{4}[- ]?){3}\d{4}\b"),
                redaction_method=RedactionMethod.PARTIAL,
                description="Card-like digit groups",
            ),
            SensitiveDataPattern(
                name="email",
                pattern=re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"),
                redaction_method=RedactionMethod.PARTIAL,
                partial_chars=3,
                description="Email addresses",
            ),
        ])

    def add_pattern(self, pattern: SensitiveDataPattern) -> None:
        self.patterns.append(pattern)

    def sanitize_string(
        self, text: str, patterns: Optional[List[SensitiveDataPattern]] = None
    ) -> str:
        """Apply ``patterns`` (all configured patterns by default) to ``text``."""
        if not text:
            return text
        for pattern in patterns or self.patterns:
            text = pattern.redact(text)
        return text

    def sanitize_value(self, value: Any, max_depth: int = 10) -> Any:
        """Sanitize strings inside nested dicts, lists and tuples."""
        if isinstance(value, str):
            return self.sanitize_string(value)
        if max_depth <= 0:
            logger.warning("Max nesting depth reached while sanitizing log payload")
            return value
        if isinstance(value, dict):
            return {key: self.sanitize_value(item, max_depth - 1) for key, item in value.items()}
        if isinstance(value, (list, tuple)):
            return type(value)(self.sanitize_value(item, max_depth - 1) for item in value)
        return value

    def sanitize_dict(self, data: Dict[str, Any], max_depth: int = 10) -> Dict[str, Any]:
        """Return a sanitized copy of ``data``."""
        return self.sanitize_value(data, max_depth)

    def sanitize_log_record(self, record: logging.LogRecord) -> logging.LogRecord:
        """Sanitize ``record.msg`` and its format args in place."""
        record.msg = self.sanitize_string(str(record.msg))
        if record.args:
            record.args = self.sanitize_value(record.args)
        return record


def mask_sensitive_data(text: str, start_chars: int = 4, end_chars: int = 4) -> str:
    """Keep the first and last few characters of ``text`` and star out the rest."""
    hidden = len(text) - start_chars - end_chars
    if hidden <= 0:
        return "*" * len(text)
    return text[:start_chars] + "*" * hidden + text[len(text) - end_chars:]
