"""Persisted client state: the last selected organization id."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

SELECTION_KEY = "selectedOrganizationId"


class SelectionStore(Protocol):
    def get(self) -> str | None: ...

    def set(self, organization_id: str) -> None: ...

    def clear(self) -> None: ...


class MemorySelectionStore:
    """In-process store, for tests and embedding."""

    def __init__(self, organization_id: str | None = None) -> None:
        self._value = organization_id

    def get(self) -> str | None:
        return self._value

    def set(self, organization_id: str) -> None:
        self._value = organization_id

    def clear(self) -> None:
        self._value = None


class FileSelectionStore:
    """Stores the selection in a small JSON state file.

    Other keys in the file are preserved. A missing or unreadable file reads
    as "no selection".
    """

    def __init__(self, path: Path) -> None:
        self._path = path

    @property
    def path(self) -> Path:
        return self._path

    def get(self) -> str | None:
        value = self._read().get(SELECTION_KEY)
        return value if isinstance(value, str) and value else None

    def set(self, organization_id: str) -> None:
        state = self._read()
        state[SELECTION_KEY] = organization_id
        self._write(state)

    def clear(self) -> None:
        state = self._read()
        if state.pop(SELECTION_KEY, None) is not None:
            self._write(state)

    def _read(self) -> dict:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable state file %s: %s", self._path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring malformed state file %s", self._path)
            return {}
        return data

    def _write(self, state: dict) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp.write_text(json.dumps(state, indent=2), encoding="utf-8")
        tmp.replace(self._path)
