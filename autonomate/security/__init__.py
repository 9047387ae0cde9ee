"""
Security components for AutonomateQA.

This module provides the secret store used for placeholder substitution and
masking, test data loading, and sanitization of logs and page snapshots.
"""

from .data_source import CsvTestDataSource, load_static_secrets, parse_key_value_rows
from .sanitizer import (
    SNAPSHOT_PII_PATTERNS,
    DataSanitizer,
    RedactionMethod,
    SensitiveDataPattern,
    mask_sensitive_data,
    redact_pii,
)
from .secrets import PLACEHOLDER_PATTERN, SecretStore

__all__ = [
    # Secrets
    "SecretStore",
    "PLACEHOLDER_PATTERN",

    # Test data
    "CsvTestDataSource",
    "load_static_secrets",
    "parse_key_value_rows",

    # Data sanitization
    "DataSanitizer",
    "SensitiveDataPattern",
    "RedactionMethod",
    "SNAPSHOT_PII_PATTERNS",
    "redact_pii",
    "mask_sensitive_data",
]
