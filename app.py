"""Application entry point for the AI Image Gallery project."""

from __future__ import annotations

from typing import Optional

import gradio as gr
import uvicorn

from config.settings import load_config
from modules.api.http_api import create_api
from modules.pipelines.text2img import Text2ImageService
from modules.ui.layout import build_app
from modules.utils.logging import setup_logging


def main(config_path: Optional[str] = None) -> None:
    """Load configuration, mount the Gradio UI on the API and serve both."""
    config = load_config(config_path)
    logger = setup_logging(config)

    service = Text2ImageService(config)
    if not config.replicate_api_token:
        logger.warning("REPLICATE_API_TOKEN is not set; generation requests will fail.")

    api = create_api(config, service=service)
    ui = build_app(config, text_service=service)
    ui.queue()
    server = gr.mount_gradio_app(api, ui, path="/")

    logger.info("Serving on http://%s:%s", config.host, config.port)
    uvicorn.run(server, host=config.host, port=config.port)


if __name__ == "__main__":
    main()
