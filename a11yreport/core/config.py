# a11yreport/core/config.py

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel

GROQ_CHAT_COMPLETIONS_URL = "https://api.groq.com/openai/v1/chat/completions"


def _env(name: str, default: str) -> str:
    return os.getenv(name, default)


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class LLMConfig(BaseModel):
    """Конфигурация внешнего сервиса генерации текста."""
    model: str = "qwen/qwen3-32b"
    api_url: str = GROQ_CHAT_COMPLETIONS_URL
    translate_max_tokens: int = 1500
    batch_max_tokens: int = 2000
    summary_max_tokens: int = 2500
    timeout_s: float = 0.0

    @property
    def timeout(self) -> Optional[float]:
        # 0 disables the timeout: a hung call stalls only its own job.
        return self.timeout_s if self.timeout_s > 0 else None


class PipelineConfig(BaseModel):
    """Конфигурация конвейера обработки задач."""
    batch_size: int = 10
    store_shards: int = 32
    workers: int = 32


class A11yReportConfig(BaseModel):
    """Основная конфигурация сервиса."""
    llm: LLMConfig = LLMConfig()
    pipeline: PipelineConfig = PipelineConfig()
    api_host: str = "0.0.0.0"
    api_port: int = 3001
    debug: bool = False

    @classmethod
    def from_env(cls) -> "A11yReportConfig":
        """Загружает конфигурацию из переменных окружения."""
        port_default = _env_int("PORT", _env_int("SERVER_PORT", 3001))
        return cls(
            llm=LLMConfig(
                model=_env("A11Y_LLM_MODEL", "qwen/qwen3-32b"),
                api_url=_env("A11Y_LLM_API_URL", GROQ_CHAT_COMPLETIONS_URL),
                translate_max_tokens=_env_int("A11Y_TRANSLATE_MAX_TOKENS", 1500),
                batch_max_tokens=_env_int("A11Y_BATCH_MAX_TOKENS", 2000),
                summary_max_tokens=_env_int("A11Y_SUMMARY_MAX_TOKENS", 2500),
                timeout_s=_env_float("A11Y_LLM_TIMEOUT_S", 0.0),
            ),
            pipeline=PipelineConfig(
                batch_size=max(1, _env_int("A11Y_BATCH_SIZE", 10)),
                store_shards=max(1, _env_int("A11Y_STORE_SHARDS", 32)),
                workers=max(1, _env_int("A11Y_PIPELINE_WORKERS", 32)),
            ),
            api_host=_env("A11Y_API_HOST", "0.0.0.0"),
            api_port=_env_int("A11Y_API_PORT", port_default),
            debug=_env("A11Y_DEBUG", "false").lower() == "true",
        )

config = A11yReportConfig.from_env()
