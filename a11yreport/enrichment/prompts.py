# a11yreport/enrichment/prompts.py

from __future__ import annotations

from typing import Sequence

SOLUTION_DELIMITER = "Решение:"

DEMO_TRANSLATION = (
    "Это демо-режим. Для полноценной работы с AI установите OPENAI_API_KEY. "
    "Проблема требует внимания и исправления согласно стандартам WCAG 2.1."
)
DEMO_SUMMARY = "Это демо-режим. Для получения комплексных рекомендаций установите OPENAI_API_KEY."
MISSING_ITEM_PLACEHOLDER = "Требует внимания и исправления согласно стандартам WCAG 2.1."

TRANSLATOR_SYSTEM_PROMPT = (
    "Ты эксперт по веб-доступности. Переводи технические описания проблем доступности "
    "на русский язык и давай практические рекомендации по исправлению."
)
SUMMARY_SYSTEM_PROMPT = (
    "Ты эксперт по веб-доступности и стандартам WCAG. Ты анализируешь отчёты о доступности "
    "и даёшь комплексные практические рекомендации по улучшению сайтов."
)

PLAIN_TEXT_RULES = (
    "Ответ должен быть ЧИСТЫМ ТЕКСТОМ. НЕЛЬЗЯ использовать Markdown, звёздочки (* или **), "
    "подчёркивания (_), обратные кавычки, тильды (~), решётки (#) для заголовков или HTML-теги. "
    "Если нужно выделить, используй ПРОПИСНЫЕ БУКВЫ или метки в квадратных скобках, например [ВАЖНО]."
)


def single_translation_prompt(prompt: str) -> str:
    return (
        "Переведи и объясни проблему доступа. Ответ строго на русском языке. "
        "Формат ответа: краткий чистый текст. "
        f"{PLAIN_TEXT_RULES} "
        "Начинай ответ по делу и коротко.\n\n"
        f"{prompt}"
    )


def batch_translation_prompt(prompts: Sequence[str]) -> str:
    lines = [
        f"Переведи и объясни следующие {len(prompts)} проблем доступности веб-сайта.",
        "Требования к ответу:",
        "- Язык: русский.",
        "- Формат: пронумерованный список (1., 2., ...). Для каждой проблемы: сначала краткое "
        f'описание, затем строка "{SOLUTION_DELIMITER} <текст>".',
        f"- {PLAIN_TEXT_RULES}",
        "- Сохраняй нумерацию из списка проблем и не пропускай пункты.",
        f'Начинай каждый пункт как "1. <описание>\\n   {SOLUTION_DELIMITER} <текст>".',
        "Проблемы:",
    ]
    body = "\n".join(lines) + "\n"
    for index, item in enumerate(prompts, 1):
        body += f"\n{index}. {item}"
    return body


def summary_prompt(report_json: str) -> str:
    return (
        "Проанализируй следующий отчёт о доступности веб-сайта и составь комплексное резюме.\n\n"
        f"Отчёт:\n{report_json}\n\n"
        "Твоя задача:\n"
        "1. Проанализировать все проблемы доступности на сайте\n"
        "2. Выявить основные категории проблем\n"
        "3. Дать рекомендации по дальнейшему поддержанию доступности\n\n"
        "Формат ответа:\n"
        "- Общая оценка доступности сайта\n"
        "- Основные проблемы\n"
        "- Рекомендации по поддержке\n\n"
        "ТРЕБОВАНИЯ К ФОРМАТУ:\n"
        "- Ответ на русском языке, структурированный и практичный\n"
        f"- {PLAIN_TEXT_RULES}\n"
        "- Для заголовков используй метки в квадратных скобках, например [ПРИОРИТЕТ 1]\n"
        "- Используй простые списки с дефисами или нумерацией (1., 2., 3.)"
    )


def finding_prompt(rule_id: str, help_text: str) -> str:
    return f"Проблема: {rule_id} - {help_text}"
