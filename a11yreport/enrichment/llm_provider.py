from __future__ import annotations

import os
from typing import Optional

from a11yreport.core.config import config


def openai_compatible_api_key() -> Optional[str]:
    for env_name in ("OPENAI_API_KEY", "GROQ_API_KEY"):
        value = str(os.getenv(env_name) or "").strip()
        if value:
            return value
    return None


def chat_completions_url() -> str:
    for env_name in ("A11Y_LLM_BASE_URL", "OPENAI_BASE_URL"):
        value = str(os.getenv(env_name) or "").strip()
        if value:
            return value.rstrip("/") + "/chat/completions"
    return config.llm.api_url


def openai_compatible_default_headers() -> dict[str, str]:
    headers: dict[str, str] = {}
    http_referer = str(os.getenv("A11Y_LLM_HTTP_REFERER") or "").strip()
    x_title = str(os.getenv("A11Y_LLM_APP_NAME") or "").strip()
    if http_referer:
        headers["HTTP-Referer"] = http_referer
    if x_title:
        headers["X-Title"] = x_title
    return headers


def openai_compatible_missing_reason() -> str:
    return "OPENAI_API_KEY / GROQ_API_KEY missing"


def request_headers(api_key: str) -> dict[str, str]:
    headers = {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
    }
    headers.update(openai_compatible_default_headers())
    return headers
