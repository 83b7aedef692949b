"""Generation history tracking."""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from modules.services.storage_service import StoragePort, StorageWriteFailed

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class NewImage:
    """A successful generation that has not been stored yet."""

    image_url: str
    prompt: str
    width: int
    height: int
    negative_prompt: Optional[str] = None
    model: Optional[str] = None


@dataclass(slots=True, frozen=True)
class StoredImageRecord:
    """Metadata describing a persisted generation event."""

    id: str
    image_url: str
    prompt: str
    width: int
    height: int
    timestamp: int  # epoch milliseconds, ordering only
    negative_prompt: Optional[str] = None
    model: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "imageUrl": self.image_url,
            "prompt": self.prompt,
            "width": self.width,
            "height": self.height,
            "timestamp": self.timestamp,
        }
        if self.negative_prompt:
            data["negativePrompt"] = self.negative_prompt
        if self.model:
            data["model"] = self.model
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoredImageRecord":
        return cls(
            id=str(data["id"]),
            image_url=str(data["imageUrl"]),
            prompt=str(data["prompt"]),
            width=int(data["width"]),
            height=int(data["height"]),
            timestamp=int(data["timestamp"]),
            negative_prompt=data.get("negativePrompt") or None,
            model=data.get("model") or None,
        )


class GenerationHistoryService:
    """JSON-backed history store over a single storage slot.

    Every mutation rewrites the whole list, so concurrent writers (several
    browser tabs) can overwrite each other.
    """

    def __init__(
        self,
        slot: StoragePort,
        clock: Callable[[], float] = time.time,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        limit: Optional[int] = None,
    ) -> None:
        self.slot = slot
        self._clock = clock
        self._id_factory = id_factory
        self.limit = limit

    def list(self) -> List[StoredImageRecord]:
        """Return all records, newest first; empty when the slot is unreadable."""
        try:
            raw = self.slot.read()
            if not raw:
                return []
            entries = json.loads(raw)
            if not isinstance(entries, list):
                raise ValueError(f"expected a list, got {type(entries).__name__}")
            records = [StoredImageRecord.from_dict(entry) for entry in entries]
        except Exception as exc:  # noqa: BLE001
            logger.warning("Error retrieving images from history storage: %s", exc)
            return []
        return sorted(records, key=lambda record: record.timestamp, reverse=True)

    def get(self, record_id: str) -> Optional[StoredImageRecord]:
        for record in self.list():
            if record.id == record_id:
                return record
        return None

    def append(self, image: NewImage) -> Optional[StoredImageRecord]:
        """Store ``image`` with a fresh id and timestamp.

        Returns ``None`` when the slot refuses the write; the caller keeps
        showing the image either way.
        """
        records = self.list()
        record = StoredImageRecord(
            id=self._id_factory(),
            image_url=image.image_url,
            prompt=image.prompt,
            width=image.width,
            height=image.height,
            timestamp=int(self._clock() * 1000),
            negative_prompt=image.negative_prompt or None,
            model=image.model or None,
        )
        records.insert(0, record)
        if self.limit is not None and self.limit > 0:
            records = records[: self.limit]

        if not self._persist(records):
            return None
        return record

    def remove(self, record_id: str) -> None:
        """Drop the record with ``record_id``; unknown ids are ignored."""
        records = self.list()
        remaining = [record for record in records if record.id != record_id]
        if len(remaining) == len(records):
            return
        self._persist(remaining)

    def clear(self) -> None:
        """Truncate the whole collection."""
        self._persist([])

    def _persist(self, records: List[StoredImageRecord]) -> bool:
        payload = json.dumps([record.to_dict() for record in records], ensure_ascii=False)
        try:
            self.slot.write(payload)
        except StorageWriteFailed as exc:
            logger.warning("Error saving history: %s", exc)
            return False
        return True
