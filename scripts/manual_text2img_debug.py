"""One-off script for debugging a real Replicate generation and the history file."""

from pathlib import Path

from config.settings import load_config
from modules.pipelines.text2img import Text2ImageService
from modules.services.history_service import GenerationHistoryService
from modules.services.storage_service import JsonFileSlot
from modules.ui.callbacks import build_callbacks
from modules.utils.logging import setup_logging


def main() -> None:
    # 1. 准备真实配置与服务对象（需要 .env 中的 REPLICATE_API_TOKEN）
    config = load_config()
    setup_logging(config)
    text_service = Text2ImageService(config)
    callbacks = build_callbacks(config, text2img=text_service)

    # 2. 历史记录写入本地 JSON 文件，模拟浏览器 localStorage
    history_path = Path(config.log_dir) / "history.json"
    slot = JsonFileSlot(history_path)

    prompt = "A photo of an astronaut riding a horse on the moon"
    for model_name in text_service.models():
        cb = callbacks["on_generate_text"]
        image_url, status, history, _ = cb(
            prompt,
            "blurry, low quality, text, watermark",
            "1920x1080",
            model_name,
            slot.read(),
        )
        print(f"[{model_name}] 状态:", status)
        print(f"[{model_name}] 图像地址:", image_url)
        if history is not None:
            slot.write(history)

    # 3. 查看历史记录
    for record in GenerationHistoryService(slot).list():
        print(record.timestamp, record.model, record.width, record.height, record.image_url)
    print("历史记录文件:", history_path.resolve())


if __name__ == "__main__":
    main()
