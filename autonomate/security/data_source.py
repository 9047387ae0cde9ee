"""
Loading of key/value test data from CSV and JSON files.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from autonomate.core.interfaces import TestDataSource

logger = logging.getLogger(__name__)


def parse_key_value_rows(rows: List[List[str]]) -> Dict[str, str]:
    """
    Turn CSV rows into key/value pairs.

    Two shapes are accepted: a ``Key,Value`` header followed by one row per
    key, or a header of key names followed by a single row of values.

    Args:
        rows: Parsed CSV rows

    Returns:
        Key/value pairs with surrounding whitespace stripped
    """
    if not rows:
        return {}

    header = [cell.strip() for cell in rows[0]]
    data: Dict[str, str] = {}

    if len(header) >= 2 and header[0].lower() == "key" and header[1].lower() == "value":
        for row in rows[1:]:
            if len(row) >= 2 and row[0].strip():
                data[row[0].strip()] = row[1].strip()
        return data

    if len(rows) >= 2:
        for key, value in zip(header, rows[1]):
            if key:
                data[key] = value.strip()
    return data


class CsvTestDataSource(TestDataSource):
    """Reads per-run test data from CSV files relative to a base directory."""

    def __init__(self, base_dir: Optional[Union[str, Path]] = None) -> None:
        self.base_dir = Path(base_dir) if base_dir else Path.cwd()

    def resolve(self, reference: str) -> Path:
        """Resolve a reference to an absolute path."""
        path = Path(reference.strip())
        if not path.is_absolute():
            path = self.base_dir / path
        return path

    def load(self, reference: str) -> Optional[Dict[str, str]]:
        path = self.resolve(reference)
        if not path.is_file():
            logger.warning(f"Test data CSV not found: {path}")
            return None

        with path.open(newline="", encoding="utf-8-sig") as handle:
            rows = [row for row in csv.reader(handle)]

        data = parse_key_value_rows(rows)
        logger.info(
            f"Loaded {len(data)} test data entries from {path.name}",
            extra={"path": str(path), "count": len(data)},
        )
        return data


def load_static_secrets(
    inline_secrets: Optional[Dict[str, str]] = None,
    secrets_file: Optional[Path] = None,
    csv_path: Optional[Path] = None,
) -> Dict[str, str]:
    """
    Build the process-wide secret table.

    Inline secrets (from the ``TEST_SECRETS`` environment variable) win; the
    JSON secrets file is read only when none are configured. An optional CSV
    is merged on top.

    Args:
        inline_secrets: Secrets supplied through configuration
        secrets_file: Fallback JSON file with a flat object of strings
        csv_path: Optional CSV in either key/value shape

    Returns:
        Merged key/value secrets
    """
    secrets = {key: value for key, value in (inline_secrets or {}).items() if value}
    if secrets:
        logger.info(f"Loaded {len(secrets)} secrets from configuration")
    elif secrets_file and secrets_file.is_file():
        try:
            loaded = json.loads(secrets_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.error(f"Failed to load test secrets from {secrets_file}: {e}")
        else:
            if isinstance(loaded, dict):
                secrets = {str(key): str(value) for key, value in loaded.items()}
                logger.info(f"Loaded {len(secrets)} secrets from {secrets_file.name}")
            else:
                logger.error(f"Test secrets file {secrets_file} is not a JSON object")
    else:
        logger.warning("No test secrets configured")

    if csv_path:
        csv_data = CsvTestDataSource().load(str(csv_path))
        if csv_data:
            secrets.update(csv_data)

    return secrets
