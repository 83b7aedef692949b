"""Gradio layout composition with a browser-persisted history gallery."""

from __future__ import annotations

from typing import Any, Optional, Sequence

try:
    import gradio as gr
except ImportError:  # pragma: no cover
    gr = None  # type: ignore

from config.settings import AppConfig
from modules.pipelines.text2img import Text2ImageService
from modules.ui.callbacks import build_callbacks


def _resolution_choices(config: AppConfig) -> Sequence[str]:
    default = f"{config.default_width}x{config.default_height}"
    choices = list(config.resolution_choices)
    if default not in choices:
        choices.insert(0, default)
    return choices


def build_app(config: AppConfig, text_service: Optional[Text2ImageService] = None) -> Any:
    """Compose and return the Gradio application."""
    if gr is None:
        raise RuntimeError("Gradio 未安装，请先执行依赖安装。")

    service = text_service or Text2ImageService(config=config)
    callbacks_map = build_callbacks(config, text2img=service)

    model_choices = service.models()
    resolution_choices = _resolution_choices(config)

    def _on_select(history: Optional[str], page: int, evt: gr.SelectData) -> str:
        return callbacks_map["on_select_image"](evt.index, history, page)

    def _on_prev(page: int, history: Optional[str]):
        return callbacks_map["on_change_page"](page, -1, history)

    def _on_next(page: int, history: Optional[str]):
        return callbacks_map["on_change_page"](page, 1, history)

    def _first_page():
        return 1, ""

    with gr.Blocks(title="AI Image Gallery") as demo:
        gr.Markdown("## AI 图像生成")

        history_state = gr.BrowserState(
            default_value="",
            storage_key=config.history_storage_key,
            secret=config.history_secret,
        )
        selected_id = gr.State("")
        page_state = gr.State(1)

        with gr.Row():
            with gr.Column():
                prompt = gr.Textbox(
                    label="提示词",
                    lines=3,
                    placeholder="e.g., A photo of an astronaut riding a horse on the moon",
                )
                negative = gr.Textbox(
                    label="反向提示词（可选）",
                    placeholder="e.g., blurry, low quality, text, watermark",
                )
                with gr.Row():
                    resolution = gr.Dropdown(
                        label="分辨率",
                        choices=resolution_choices,
                        value=resolution_choices[0],
                    )
                    model_select = gr.Dropdown(
                        label="模型",
                        choices=model_choices,
                        value=model_choices[0],
                    )
                generate_btn = gr.Button("生成图像", variant="primary")

            with gr.Column():
                output_image = gr.Image(label="生成结果", type="filepath")
                status = gr.Markdown("准备就绪。")

        # 历史记录
        with gr.Tab("历史记录"):
            gallery = gr.Gallery(label="已生成的图像", columns=4, allow_preview=True)
            with gr.Row():
                prev_btn = gr.Button("上一页")
                next_btn = gr.Button("下一页")
            with gr.Row():
                remove_btn = gr.Button("删除所选图片")
                clear_btn = gr.Button("清空历史记录", variant="stop")
            history_status = gr.Markdown("")

        demo.load(
            fn=callbacks_map["on_load_history"],
            inputs=[history_state],
            outputs=[gallery, history_status],
        ).then(fn=_first_page, outputs=[page_state, selected_id])

        generate_btn.click(
            fn=callbacks_map["on_generate_text"],
            inputs=[prompt, negative, resolution, model_select, history_state],
            outputs=[output_image, status, history_state, gallery],
        ).then(fn=_first_page, outputs=[page_state, selected_id])

        gallery.select(fn=_on_select, inputs=[history_state, page_state], outputs=[selected_id])

        prev_btn.click(
            fn=_on_prev,
            inputs=[page_state, history_state],
            outputs=[page_state, gallery, history_status],
        ).then(fn=lambda: "", outputs=[selected_id])

        next_btn.click(
            fn=_on_next,
            inputs=[page_state, history_state],
            outputs=[page_state, gallery, history_status],
        ).then(fn=lambda: "", outputs=[selected_id])

        remove_btn.click(
            fn=callbacks_map["on_remove_image"],
            inputs=[selected_id, history_state],
            outputs=[history_state, gallery, history_status],
        ).then(fn=_first_page, outputs=[page_state, selected_id])

        clear_btn.click(
            fn=callbacks_map["on_clear_history"],
            inputs=[history_state],
            outputs=[history_state, gallery, history_status],
        ).then(fn=_first_page, outputs=[page_state, selected_id])

    return demo
