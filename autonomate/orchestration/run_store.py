"""Run record stores: in-memory and JSON files on disk."""

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import ValidationError

from autonomate.core.interfaces import RunRecordStore
from autonomate.core.types import RunRecord

logger = logging.getLogger(__name__)


class InMemoryRunStore(RunRecordStore):
    """Keeps run records in a dict; copies are stored and returned."""

    def __init__(self) -> None:
        self._records: Dict[str, RunRecord] = {}

    async def get(self, run_id: str) -> Optional[RunRecord]:
        record = self._records.get(run_id)
        return record.model_copy(deep=True) if record else None

    async def save(self, record: RunRecord) -> None:
        self._records[record.run_id] = record.model_copy(deep=True)

    async def list_runs(self) -> List[RunRecord]:
        """Return all records, newest first."""
        return sorted(
            (r.model_copy(deep=True) for r in self._records.values()),
            key=lambda r: r.created_at,
            reverse=True,
        )


class JsonFileRunStore(RunRecordStore):
    """Stores each run record as ``<run_id>.json`` under a directory."""

    def __init__(self, runs_dir: Path) -> None:
        self.runs_dir = Path(runs_dir)
        self.runs_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, run_id: str) -> Path:
        return self.runs_dir / f"{run_id}.json"

    def _read(self, path: Path) -> Optional[RunRecord]:
        try:
            return RunRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except (OSError, ValidationError) as e:
            logger.warning(f"Failed to read run record {path.name}: {e}")
            return None

    def _write(self, record: RunRecord) -> None:
        path = self._path(record.run_id)
        tmp_path = path.with_suffix(".json.tmp")
        tmp_path.write_text(record.model_dump_json(indent=2), encoding="utf-8")
        tmp_path.replace(path)

    async def get(self, run_id: str) -> Optional[RunRecord]:
        path = self._path(run_id)
        if not path.is_file():
            return None
        return await asyncio.to_thread(self._read, path)

    async def save(self, record: RunRecord) -> None:
        await asyncio.to_thread(self._write, record)

    async def list_runs(self) -> List[RunRecord]:
        """Return all readable records, newest first."""
        records = []
        for path in self.runs_dir.glob("*.json"):
            record = await asyncio.to_thread(self._read, path)
            if record is not None:
                records.append(record)
        return sorted(records, key=lambda r: r.created_at, reverse=True)
