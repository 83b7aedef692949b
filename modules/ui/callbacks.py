"""Callback implementations for the Gradio interface."""

from __future__ import annotations

import logging
import math
import time
from datetime import timedelta
from typing import Any, Callable, List, Optional, Tuple

import humanize

from config.settings import AppConfig
from modules.pipelines.errors import GenerationError
from modules.pipelines.text2img import ImageResult, PromptRequest, Text2ImageService
from modules.services.history_service import GenerationHistoryService, NewImage, StoredImageRecord
from modules.services.storage_service import MemorySlot
from modules.utils.image_utils import parse_size

logger = logging.getLogger(__name__)

GalleryItem = Tuple[str, str]


def time_ago(timestamp_ms: int, now_ms: float) -> str:
    """Relative age of a record, e.g. ``"3 minutes ago"``."""
    elapsed = max(0.0, now_ms - timestamp_ms)
    return humanize.naturaltime(timedelta(milliseconds=elapsed))


def build_callbacks(
    config: AppConfig,
    text2img: Optional[Text2ImageService] = None,
    clock: Callable[[], float] = time.time,
) -> dict[str, Any]:
    """Return a dictionary of Gradio callback functions.

    ``history`` arguments carry the raw JSON string held in the browser's
    ``localStorage`` slot; callbacks that change it return the new string.
    Galleries hold one page of ``config.gallery_page_size`` records, and every
    callback except ``on_change_page`` shows the first page.
    """

    def _ensure_text_service() -> Text2ImageService:
        if text2img is None:
            raise RuntimeError("文生图服务未配置")
        return text2img

    def _open_history(history: Optional[str]) -> Tuple[MemorySlot, GenerationHistoryService]:
        slot = MemorySlot(initial=history, quota_bytes=config.history_quota_bytes)
        store = GenerationHistoryService(slot, clock=clock, limit=config.history_limit)
        return slot, store

    page_size = max(1, config.gallery_page_size)

    def _page_count(records: List[StoredImageRecord]) -> int:
        return max(1, math.ceil(len(records) / page_size))

    def _clamp_page(page: Any, records: List[StoredImageRecord]) -> int:
        try:
            number = int(page)
        except (TypeError, ValueError):
            number = 1
        return min(max(number, 1), _page_count(records))

    def _caption(record: StoredImageRecord, now_ms: float) -> str:
        return " · ".join(
            [
                record.prompt,
                config.model_label(record.model),
                f"{record.width}×{record.height}",
                time_ago(record.timestamp, now_ms),
            ]
        )

    def _gallery(records: List[StoredImageRecord], page: Any = 1) -> List[GalleryItem]:
        start = (_clamp_page(page, records) - 1) * page_size
        now_ms = clock() * 1000
        return [
            (record.image_url, _caption(record, now_ms))
            for record in records[start : start + page_size]
        ]

    def _normalize_resolution(resolution: str) -> Tuple[int, int]:
        try:
            return parse_size(resolution)
        except (TypeError, ValueError):
            return config.default_width, config.default_height

    def on_generate_text(
        prompt: str,
        negative_prompt: str,
        resolution: str,
        model_name: str,
        history: Optional[str],
    ) -> tuple[Optional[str], str, Optional[str], List[GalleryItem]]:
        slot, store = _open_history(history)
        width, height = _normalize_resolution(resolution)
        request = PromptRequest(
            prompt=prompt or "",
            negative_prompt=(negative_prompt or "").strip() or None,
            width=width,
            height=height,
            model=model_name or None,
        )
        try:
            result: ImageResult = _ensure_text_service().generate(request)
        except GenerationError as exc:
            return None, f"生成失败：{exc.message}", history, _gallery(store.list())
        except Exception as exc:  # noqa: BLE001
            logger.exception("Image generation failed")
            return None, f"生成失败：{exc}", history, _gallery(store.list())

        saved = store.append(
            NewImage(
                image_url=result.image_url,
                prompt=result.prompt,
                width=result.width,
                height=result.height,
                negative_prompt=result.negative_prompt,
                model=result.model,
            )
        )
        info = "生成成功"
        if result.size:
            info += f"（尺寸已匹配为 {result.size}）"
        if saved is None:
            info += "，但历史记录保存失败"
        return result.image_url, info, slot.value, _gallery(store.list())

    def on_load_history(history: Optional[str]) -> tuple[List[GalleryItem], str]:
        _, store = _open_history(history)
        records = store.list()
        if not records:
            return [], "暂无历史记录。"
        return _gallery(records), f"共 {len(records)} 条历史记录。"

    def on_select_image(index: Any, history: Optional[str], page: Any = 1) -> str:
        _, store = _open_history(history)
        records = store.list()
        try:
            offset = int(index)
        except (TypeError, ValueError):
            return ""
        if not 0 <= offset < page_size:
            return ""
        position = (_clamp_page(page, records) - 1) * page_size + offset
        if position < len(records):
            return records[position].id
        return ""

    def on_change_page(
        page: Any, step: Any, history: Optional[str]
    ) -> tuple[int, List[GalleryItem], str]:
        _, store = _open_history(history)
        records = store.list()
        try:
            delta = int(step)
        except (TypeError, ValueError):
            delta = 0
        current = _clamp_page(_clamp_page(page, records) + delta, records)
        status = f"第 {current}/{_page_count(records)} 页，共 {len(records)} 条历史记录。"
        return current, _gallery(records, current), status

    def on_remove_image(
        record_id: str, history: Optional[str]
    ) -> tuple[Optional[str], List[GalleryItem], str]:
        if not record_id:
            _, store = _open_history(history)
            return history, _gallery(store.list()), "请先在历史记录中选择一张图片。"
        slot, store = _open_history(history)
        store.remove(record_id)
        return slot.value, _gallery(store.list()), "已删除所选图片。"

    def on_clear_history(history: Optional[str]) -> tuple[Optional[str], List[GalleryItem], str]:
        slot, store = _open_history(history)
        store.clear()
        return slot.value, [], "历史记录已清空。"

    return {
        "on_generate_text": on_generate_text,
        "on_load_history": on_load_history,
        "on_select_image": on_select_image,
        "on_change_page": on_change_page,
        "on_remove_image": on_remove_image,
        "on_clear_history": on_clear_history,
    }
