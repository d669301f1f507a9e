"""
In-Memory Repository Adapter

Implements DatasetRepository port over a single state document:

    {"datasets": {user: {period: [row, ...]}},
     "marks":    {user: {period: timestamp}}}

Subclasses change where the document lives by overriding
_read_state() and _write_state().
"""
import copy
from typing import Any, Optional

from ..core.ports import DatasetRepository


def empty_state() -> dict[str, Any]:
    return {"datasets": {}, "marks": {}}


class InMemoryRepository(DatasetRepository):
    """Dataset repository held in process memory"""

    def __init__(self):
        self._state = empty_state()

    def _read_state(self) -> dict[str, Any]:
        return copy.deepcopy(self._state)

    def _write_state(self, state: dict[str, Any]) -> None:
        self._state = copy.deepcopy(state)

    def get(self, user: str, period: str) -> list[dict[str, Any]]:
        return self._read_state()["datasets"].get(user, {}).get(period, [])

    def put(self, user: str, period: str, rows: list[dict[str, Any]], mark: Optional[str] = None) -> None:
        state = self._read_state()
        state["datasets"].setdefault(user, {})[period] = rows
        if mark is not None:
            state["marks"].setdefault(user, {})[period] = mark
        self._write_state(state)

    def get_mark(self, user: str, period: str) -> Optional[str]:
        return self._read_state()["marks"].get(user, {}).get(period)

    def put_mark(self, user: str, period: str, timestamp: str) -> None:
        state = self._read_state()
        state["marks"].setdefault(user, {})[period] = timestamp
        self._write_state(state)

    def clear_marks(self) -> None:
        state = self._read_state()
        state["marks"] = {}
        self._write_state(state)

    def list_users(self) -> list[str]:
        return sorted(self._read_state()["datasets"])

    def list_periods(self, user: str) -> list[tuple[str, int]]:
        datasets = self._read_state()["datasets"].get(user, {})
        return [(period, len(rows)) for period, rows in datasets.items()]

    def dump(self) -> dict[str, Any]:
        return self._read_state()

    def restore(self, document: dict[str, Any]) -> None:
        state = empty_state()
        state["datasets"] = document.get("datasets") or {}
        state["marks"] = document.get("marks") or {}
        self._write_state(state)
