"""
Filesystem Repository Adapter

Implements DatasetRepository port using one JSON document on local disk,
with a snapshot of the previous state kept beside it.
"""
import json
import logging
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..core.errors import StorageFailure
from .memory import InMemoryRepository, empty_state

logger = logging.getLogger(__name__)


class JsonFileRepository(InMemoryRepository):
    """Filesystem-based dataset repository"""

    def __init__(self, data_file: str | Path):
        super().__init__()
        self.data_file = Path(data_file)
        self.backup_file = self.data_file.with_name(self.data_file.name + ".bak")

    @staticmethod
    def _as_document(data: Any) -> dict[str, Any]:
        if not isinstance(data, dict) or not isinstance(data.get("datasets"), dict):
            raise ValueError("not a dataset document")
        data.setdefault("marks", {})
        return data

    def _read_state(self) -> dict[str, Any]:
        """Current state; falls back to the snapshot if the main file is corrupted"""
        if not self.data_file.exists():
            return empty_state()
        try:
            return self._as_document(json.loads(self.data_file.read_text(encoding='utf-8')))
        except (OSError, ValueError) as e:
            logger.warning(f"Data file {self.data_file} unreadable ({e}), loading snapshot")
            return self._read_snapshot()

    def _read_snapshot(self) -> dict[str, Any]:
        if not self.backup_file.exists():
            return empty_state()
        try:
            backup = json.loads(self.backup_file.read_text(encoding='utf-8'))
            if not isinstance(backup, dict):
                raise ValueError("snapshot is not an object")
            return self._as_document(backup.get("data"))
        except (OSError, ValueError) as e:
            logger.error(f"Snapshot {self.backup_file} also unreadable: {e}")
            return empty_state()

    def _write_snapshot(self) -> None:
        """Snapshot the state being replaced; failure here does not block the write"""
        previous = self._read_state()
        backup = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "data": previous
        }
        try:
            self.backup_file.write_text(json.dumps(backup), encoding='utf-8')
        except OSError as e:
            logger.warning(f"Failed to write snapshot {self.backup_file}: {e}")

    def _write_state(self, state: dict[str, Any]) -> None:
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageFailure(f"Cannot create data directory {self.data_file.parent}: {e}") from e

        self._write_snapshot()

        tmp = self.data_file.with_name(self.data_file.name + ".tmp")
        try:
            tmp.write_text(json.dumps(state, indent=2, default=str), encoding='utf-8')
            os.replace(tmp, self.data_file)  # atomic
        except OSError as e:
            raise StorageFailure(f"Failed to save data to {self.data_file}: {e}") from e
