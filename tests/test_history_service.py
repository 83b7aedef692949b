"""GenerationHistoryService tests against in-memory and file slots."""

from __future__ import annotations

import json
import uuid

import pytest

from modules.services.history_service import GenerationHistoryService, NewImage, StoredImageRecord
from modules.services.storage_service import JsonFileSlot, MemorySlot, StorageWriteFailed


class FakeClock:
    """Clock advancing one second per call."""

    def __init__(self, start: float = 1_700_000_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        self.now += 1
        return self.now


class BrokenSlot:
    """Slot that accepts reads but rejects every write."""

    def __init__(self, initial=None) -> None:
        self.value = initial

    def read(self):
        return self.value

    def write(self, data: str) -> None:
        raise StorageWriteFailed("QuotaExceededError")


def make_image(prompt: str = "a red fox", url: str = "http://x/img.png") -> NewImage:
    return NewImage(image_url=url, prompt=prompt, width=512, height=512, negative_prompt="blurry", model="sdxl")


def test_append_then_list_round_trip():
    store = GenerationHistoryService(MemorySlot(), clock=FakeClock())
    record = store.append(make_image())

    assert record is not None
    first = store.list()[0]
    assert first == record
    assert first.image_url == "http://x/img.png"
    assert first.prompt == "a red fox"
    assert first.negative_prompt == "blurry"
    assert (first.width, first.height, first.model) == (512, 512, "sdxl")
    assert uuid.UUID(first.id)
    assert first.timestamp == 1_700_000_001_000


def test_list_is_newest_first():
    store = GenerationHistoryService(MemorySlot(), clock=FakeClock())
    t1 = store.append(make_image("one"))
    t2 = store.append(make_image("two"))
    t3 = store.append(make_image("three"))

    assert [record.id for record in store.list()] == [t3.id, t2.id, t1.id]


def test_list_sorts_stored_order_by_timestamp():
    entries = [
        {"id": "a", "imageUrl": "u1", "prompt": "p", "width": 1, "height": 1, "timestamp": 10},
        {"id": "b", "imageUrl": "u2", "prompt": "p", "width": 1, "height": 1, "timestamp": 30},
        {"id": "c", "imageUrl": "u3", "prompt": "p", "width": 1, "height": 1, "timestamp": 20},
    ]
    store = GenerationHistoryService(MemorySlot(json.dumps(entries)))

    assert [record.id for record in store.list()] == ["b", "c", "a"]


def test_ids_are_unique():
    store = GenerationHistoryService(MemorySlot())
    for _ in range(5):
        store.append(make_image())

    ids = [record.id for record in store.list()]
    assert len(set(ids)) == 5


def test_remove_is_idempotent():
    store = GenerationHistoryService(MemorySlot(), clock=FakeClock())
    keep = store.append(make_image("keep"))
    drop = store.append(make_image("drop"))

    store.remove(drop.id)
    once = store.list()
    store.remove(drop.id)
    store.remove("missing")

    assert store.list() == once == [keep]


def test_corrupted_slot_reads_as_empty():
    for raw in ("not json", '{"id": 1}', '[{"id": "x"}]', ""):
        store = GenerationHistoryService(MemorySlot(raw))
        assert store.list() == []


def test_write_failure_returns_none():
    slot = BrokenSlot()
    store = GenerationHistoryService(slot)

    assert store.append(make_image()) is None
    assert store.list() == []


def test_quota_exceeded_is_not_fatal():
    slot = MemorySlot(quota_bytes=10)
    store = GenerationHistoryService(slot)

    assert store.append(make_image()) is None
    assert slot.value is None


def test_limit_keeps_most_recent_records():
    store = GenerationHistoryService(MemorySlot(), clock=FakeClock(), limit=2)
    store.append(make_image("one"))
    second = store.append(make_image("two"))
    third = store.append(make_image("three"))

    assert store.list() == [third, second]


def test_clear_truncates_collection():
    slot = MemorySlot()
    store = GenerationHistoryService(slot)
    store.append(make_image())
    store.clear()

    assert store.list() == []
    assert slot.value == "[]"


def test_stored_layout_uses_camel_case_keys():
    slot = MemorySlot()
    store = GenerationHistoryService(slot, clock=FakeClock(), id_factory=lambda: "fixed-id")
    store.append(NewImage(image_url="http://x/img.png", prompt="cat", width=512, height=768))

    assert json.loads(slot.value) == [
        {
            "id": "fixed-id",
            "imageUrl": "http://x/img.png",
            "prompt": "cat",
            "width": 512,
            "height": 768,
            "timestamp": 1_700_000_001_000,
        }
    ]


def test_get_returns_record_by_id():
    store = GenerationHistoryService(MemorySlot())
    record = store.append(make_image())

    assert store.get(record.id) == record
    assert store.get("missing") is None


def test_json_file_slot_persists_between_instances(tmp_path):
    path = tmp_path / "history" / "gallery.json"
    first = GenerationHistoryService(JsonFileSlot(path))
    record = first.append(make_image())

    second = GenerationHistoryService(JsonFileSlot(path))
    assert second.list() == [record]
    assert StoredImageRecord.from_dict(json.loads(path.read_text(encoding="utf-8"))[0]) == record


def test_json_file_slot_write_failure_names_the_file(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    slot = JsonFileSlot(blocker / "gallery.json")

    with pytest.raises(StorageWriteFailed, match="Could not write .*gallery.json"):
        slot.write("[]")
