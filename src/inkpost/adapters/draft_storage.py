"""
Draft storage adapters.

Both implement the drafts component's DraftStoragePort.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class InMemoryDraftStorage:
    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}

    def load(self, key: str) -> dict[str, Any] | None:
        data = self._data.get(key)
        return copy.deepcopy(data) if data is not None else None

    def save(self, key: str, data: dict[str, Any]) -> None:
        self._data[key] = copy.deepcopy(data)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileDraftStorage:
    """One `<key>.json` file per draft under a directory."""

    def __init__(self, base_path: str | Path):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith("."):
            raise ValueError(f"Invalid draft key: {key}")
        return self.base_path / f"{key}.json"

    def load(self, key: str) -> dict[str, Any] | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.warning("Ignoring corrupt draft file %s: %s", path, e)
            return None
        return data if isinstance(data, dict) else None

    def save(self, key: str, data: dict[str, Any]) -> None:
        path = self._path(key)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, path)

    def delete(self, key: str) -> None:
        path = self._path(key)
        if path.exists():
            path.unlink()
