"""Single-slot string storage used to persist the gallery history."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Protocol


class StorageWriteFailed(Exception):
    """Raised when a slot refuses to persist a value."""


class StoragePort(Protocol):
    """A named slot holding one string value."""

    def read(self) -> Optional[str]:
        ...

    def write(self, data: str) -> None:
        ...


class MemorySlot:
    """In-memory slot; also carries a browser ``localStorage`` value through a callback."""

    def __init__(self, initial: Optional[str] = None, quota_bytes: Optional[int] = None) -> None:
        self.value = initial
        self.quota_bytes = quota_bytes

    def read(self) -> Optional[str]:
        return self.value

    def write(self, data: str) -> None:
        if self.quota_bytes is not None and len(data.encode("utf-8")) > self.quota_bytes:
            raise StorageWriteFailed(
                f"Quota exceeded: {len(data.encode('utf-8'))} > {self.quota_bytes} bytes"
            )
        self.value = data


class JsonFileSlot:
    """Slot backed by a JSON file on disk."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def read(self) -> Optional[str]:
        if not self.path.exists():
            return None
        return self.path.read_text(encoding="utf-8")

    def write(self, data: str) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(data, encoding="utf-8")
        except OSError as exc:
            raise StorageWriteFailed(f"Could not write {self.path}: {exc}") from exc
