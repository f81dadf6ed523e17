import os
from pathlib import Path


class FileSystemImageStore:
    """Image objects as files under a base directory; keys are relative paths."""

    def __init__(self, base_path: str):
        self.base_path = Path(base_path).resolve()
        if not self.base_path.exists():
            os.makedirs(self.base_path, exist_ok=True)

    def _safe_path(self, key: str) -> Path:
        target = (self.base_path / key).resolve()
        if not target.is_relative_to(self.base_path) or target == self.base_path:
            raise ValueError(f"Path traversal attempt detected: {key}")
        return target

    def delete(self, key: str) -> None:
        """Deleting a missing key is not an error."""
        target = self._safe_path(key)
        if target.exists():
            os.remove(target)
