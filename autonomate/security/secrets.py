"""
Two-tier secret store used for placeholder substitution and literal masking.
"""

import logging
import re
from types import MappingProxyType
from typing import TYPE_CHECKING, Dict, Mapping, Optional

from autonomate.core.interfaces import TestDataSource
from autonomate.security.data_source import load_static_secrets

if TYPE_CHECKING:
    from autonomate.config.settings import Settings

logger = logging.getLogger(__name__)

PLACEHOLDER_PATTERN = re.compile(r"\{\{(.*?)\}\}")


class SecretStore:
    """
    Key/value secrets in two scopes.

    Static secrets are fixed at construction and shared by every run. Scoped
    secrets belong to the current run, override static values for the same
    key, and are discarded by ``clear_scoped``. When a run asked for scoped
    data that could not be found, static values are refused until the scope
    is cleared.
    """

    def __init__(self, static_secrets: Optional[Mapping[str, str]] = None) -> None:
        self._static: Mapping[str, str] = MappingProxyType(dict(static_secrets or {}))
        self._scoped: Dict[str, str] = {}
        self._refuse_static = False

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SecretStore":
        """Build the process-wide store from configuration."""
        return cls(
            load_static_secrets(
                inline_secrets=settings.test_secrets,
                secrets_file=settings.test_secrets_file,
                csv_path=settings.test_data_csv_path,
            )
        )

    def for_run(self) -> "SecretStore":
        """Return a store sharing the static tier with an empty scoped tier."""
        return SecretStore(self._static)

    @property
    def static_refused(self) -> bool:
        return self._refuse_static

    def load_scoped(self, source: TestDataSource, reference: Optional[str]) -> bool:
        """
        Load per-run data from ``source``.

        Args:
            source: Test data source
            reference: Source-specific reference, e.g. a CSV path

        Returns:
            True when data was loaded; False when the reference was not found
            and static data is now refused for this run
        """
        self._refuse_static = False
        if not reference or not reference.strip():
            return True

        data = source.load(reference)
        if data is None:
            logger.warning(
                "Test data for run not found; default credentials will not be used for this run",
                extra={"test_data_ref": reference},
            )
            self.refuse_static()
            return False

        self._scoped.clear()
        self._scoped.update(data)
        logger.info(f"Using {len(data)} scoped test data entries for this run")
        return True

    def refuse_static(self) -> None:
        """Stop serving static values until the scope is cleared."""
        self._refuse_static = True

    def add_secret(self, key: str, value: str) -> None:
        """Add or replace a scoped secret."""
        self._scoped[key] = value

    def clear_scoped(self) -> None:
        """Discard scoped secrets and lift any static refusal."""
        self._scoped.clear()
        self._refuse_static = False

    def lookup(self, key: str) -> Optional[str]:
        """Return the value for ``key``, or None when it is unknown."""
        if key in self._scoped:
            return self._scoped[key]
        if not self._refuse_static and key in self._static:
            return self._static[key]
        return None

    def get_value(self, key: str) -> str:
        """Return the value for ``key``, or the key itself when unknown."""
        value = self.lookup(key)
        return key if value is None else value

    def replace_placeholders(self, text: Optional[str]) -> Optional[str]:
        """Substitute ``{{Key}}`` placeholders; unknown ones are left as-is."""
        if not text:
            return text

        def _substitute(match: "re.Match[str]") -> str:
            value = self.lookup(match.group(1))
            return match.group(0) if value is None else value

        return PLACEHOLDER_PATTERN.sub(_substitute, text)

    def mask_literals(self, text: Optional[str]) -> Optional[str]:
        """
        Replace known secret values with their ``{{Key}}`` placeholders.

        Matching is case-insensitive. A scoped value wins over a static value
        for the same key, and longer values are masked first so a secret that
        contains another one is replaced whole. Text already inside a
        placeholder is never rewritten, so masking masked text is a no-op.
        """
        if not text:
            return text

        known = list(self._scoped.items()) + [
            (key, value) for key, value in self._static.items() if key not in self._scoped
        ]
        # Stable sort keeps scoped entries ahead of static ones of equal length
        for key, value in sorted(known, key=lambda item: len(item[1]), reverse=True):
            if value:
                text = _mask_outside_placeholders(text, key, value)
        return text


def _mask_outside_placeholders(text: str, key: str, value: str) -> str:
    literal = re.compile(re.escape(value), re.IGNORECASE)
    replacement = "{{" + key + "}}"
    parts = []
    last = 0
    for placeholder in PLACEHOLDER_PATTERN.finditer(text):
        parts.append(literal.sub(lambda _: replacement, text[last:placeholder.start()]))
        parts.append(placeholder.group(0))
        last = placeholder.end()
    parts.append(literal.sub(lambda _: replacement, text[last:]))
    return "".join(parts)
