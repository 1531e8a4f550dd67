from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from a11yreport.core.config import LLMConfig, config
from a11yreport.core.errors import EnrichmentError
from a11yreport.enrichment.llm_provider import chat_completions_url, openai_compatible_api_key, request_headers
from a11yreport.enrichment.parsing import parse_batch_response, strip_think_tags
from a11yreport.enrichment.prompts import (
    DEMO_SUMMARY,
    DEMO_TRANSLATION,
    SUMMARY_SYSTEM_PROMPT,
    TRANSLATOR_SYSTEM_PROMPT,
    batch_translation_prompt,
    single_translation_prompt,
    summary_prompt,
)

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:300]
    if isinstance(data, dict) and isinstance(data.get("error"), dict):
        return str(data["error"].get("message") or data["error"])
    return response.text[:300]


class TextEnrichmentClient:
    """Turns short finding prompts into Russian explanation/remediation text.

    Without an API key the client works offline and returns fixed demo text.
    With a key, every call is one OpenAI-compatible chat-completions request;
    any transport, status or body problem is raised as ``EnrichmentError``.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        api_url: Optional[str] = None,
        llm_config: Optional[LLMConfig] = None,
    ) -> None:
        # None resolves the key from the environment; "" forces offline mode.
        self.api_key = openai_compatible_api_key() if api_key is None else api_key.strip()
        self.api_url = api_url or chat_completions_url()
        self.llm = llm_config or config.llm

    @property
    def offline(self) -> bool:
        return not self.api_key

    def _chat(self, system_prompt: str, user_prompt: str, max_tokens: int) -> str:
        body: Dict[str, Any] = {
            "model": self.llm.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            "max_tokens": max_tokens,
        }
        try:
            response = httpx.post(
                self.api_url,
                json=body,
                headers=request_headers(self.api_key),
                timeout=self.llm.timeout,
            )
        except httpx.RequestError as exc:
            logger.warning("Text generation request failed (url=%s model=%s): %s", self.api_url, self.llm.model, exc)
            raise EnrichmentError(f"Failed to reach text generation service: {exc}") from exc

        if not 200 <= response.status_code < 300:
            detail = _error_detail(response)
            logger.warning("Text generation returned HTTP %s (model=%s): %s", response.status_code, self.llm.model, detail)
            raise EnrichmentError(f"Text generation service returned HTTP {response.status_code}: {detail}")

        try:
            data = response.json()
        except ValueError as exc:
            raise EnrichmentError("Text generation service returned malformed JSON") from exc
        if not isinstance(data, dict):
            raise EnrichmentError("Text generation service returned an unexpected body")

        error = data.get("error")
        if error:
            message = error.get("message") if isinstance(error, dict) else error
            logger.warning("Text generation API error (model=%s): %s", self.llm.model, message)
            raise EnrichmentError(f"Text generation API error: {message}")

        choices = data.get("choices")
        if not isinstance(choices, list) or not choices:
            logger.warning("No choices in text generation response (model=%s)", self.llm.model)
            raise EnrichmentError("No response from text generation service")

        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") if isinstance(first.get("message"), dict) else {}
        content = message.get("content")
        if not isinstance(content, str):
            raise EnrichmentError("Text generation response has no message content")

        logger.info("Received text generation response (model=%s chars=%s)", self.llm.model, len(content))
        return content

    def translate(self, prompt: str) -> str:
        if self.offline:
            return DEMO_TRANSLATION

        logger.info("Sending translation request (model=%s prompt_chars=%s)", self.llm.model, len(prompt))
        content = strip_think_tags(
            self._chat(TRANSLATOR_SYSTEM_PROMPT, single_translation_prompt(prompt), self.llm.translate_max_tokens)
        )
        if not content:
            raise EnrichmentError("Text generation service returned an empty reply")
        return content

    def translate_batch(self, prompts: Sequence[str]) -> List[str]:
        """Returns exactly ``len(prompts)`` texts, aligned with the input order."""
        if not prompts:
            return []
        if self.offline:
            return [DEMO_TRANSLATION for _ in prompts]

        logger.info("Sending batch translation request (model=%s items=%s)", self.llm.model, len(prompts))
        content = self._chat(TRANSLATOR_SYSTEM_PROMPT, batch_translation_prompt(prompts), self.llm.batch_max_tokens)
        results = parse_batch_response(content, len(prompts))
        logger.info("Parsed batch translation response (items=%s)", len(results))
        return results

    def generate_summary(self, report_json: str) -> str:
        if self.offline:
            return DEMO_SUMMARY

        logger.info("Generating report summary (model=%s report_chars=%s)", self.llm.model, len(report_json))
        content = strip_think_tags(
            self._chat(SUMMARY_SYSTEM_PROMPT, summary_prompt(report_json), self.llm.summary_max_tokens)
        )
        if not content:
            raise EnrichmentError("Text generation service returned an empty summary")
        return content
