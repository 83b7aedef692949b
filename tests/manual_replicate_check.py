"""Manual script to verify the Replicate token and the configured model references."""

from __future__ import annotations

import os

import requests
from config.settings import load_config

config = load_config()  # 会读取 .env 并写入 os.environ

BASE_URL = os.getenv("REPLICATE_BASE_URL", "https://api.replicate.com/v1")
API_TOKEN = config.replicate_api_token

if not API_TOKEN:
    print("[error] REPLICATE_API_TOKEN not set; check .env or environment variables.")
    raise SystemExit(1)

headers = {"Authorization": f"Bearer {API_TOKEN}", "Content-Type": "application/json"}

try:
    resp = requests.get(f"{BASE_URL}/account", headers=headers, timeout=30)
    print("Account status:", resp.status_code)
    if resp.ok:
        print("Username:", resp.json().get("username"))
    else:
        print(resp.text[:500])

    for spec in config.models:
        owner_name = spec.reference.split(":", 1)[0]
        model = requests.get(f"{BASE_URL}/models/{owner_name}", headers=headers, timeout=30)
        print(f"[{spec.name}] {owner_name} status:", model.status_code)
        if model.ok:
            latest = model.json().get("latest_version") or {}
            print(f"[{spec.name}] latest version:", latest.get("id"))
        else:
            print(model.text[:500])
except Exception as exc:  # noqa: BLE001
    print("[error]", exc)
    raise
