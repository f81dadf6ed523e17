"""
Draft component port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol


class DraftStoragePort(Protocol):
    """Key/value persistence for drafts (browser storage, a JSON file, ...)."""

    def load(self, key: str) -> dict[str, Any] | None:
        """Stored draft data, or None if nothing is stored under key."""
        ...

    def save(self, key: str, data: dict[str, Any]) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class ImageDeletePort(Protocol):
    """Removes an uploaded image object."""

    def delete(self, key: str) -> None:
        ...
