"""
Narração da resposta final a partir do plano e do resultado executado.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional

from expohub.core.ai import TextGenerator
from expohub.services.plan_executor import ExecutionResult
from expohub.services.prompts import NARRATOR_INSTRUCTIONS, normalize_language

PLAN_MAX_CHARS = 2000
RESULT_MAX_CHARS = 3500
SAMPLE_ROWS = 30
TRUNCATION_MARKER = "…[truncated]"

_CHART_KEY = re.compile(r'\{\s*"chart"\s*:')


def clip_json(obj: Any, max_chars: int) -> str:
    """JSON compacto; acima de `max_chars` corta e acrescenta o marcador."""
    try:
        text = json.dumps(obj, ensure_ascii=False, separators=(",", ":"), default=str)
    except (TypeError, ValueError):
        text = str(obj)
    if len(text) > max_chars:
        return text[:max_chars] + TRUNCATION_MARKER
    return text


def narration_payload(plan: dict, result: ExecutionResult) -> str:
    sample = result.data[:SAMPLE_ROWS] if isinstance(result.data, list) else result.data
    safe_result = {
        "kind": result.kind or "unknown",
        "sample": sample,
        "params": result.params or {},
    }
    return (
        f"PLAN:\n{clip_json(plan, PLAN_MAX_CHARS)}\n\n"
        f"RESULT:\n{clip_json(safe_result, RESULT_MAX_CHARS)}"
    )


def build_narration_prompt(plan: dict, result: ExecutionResult, lang: str) -> str:
    return f"{NARRATOR_INSTRUCTIONS[normalize_language(lang)]}\n\n{narration_payload(plan, result)}"


def extract_chart_suggestion(reply: str) -> Optional[dict]:
    """
    Lê o último `{"chart": {...}}` do texto, se houver.
    Não verifica os campos do gráfico.
    """
    if not reply:
        return None
    decoder = json.JSONDecoder()
    for match in reversed(list(_CHART_KEY.finditer(reply))):
        try:
            obj, _ = decoder.raw_decode(reply, match.start())
        except json.JSONDecodeError:
            continue
        chart = obj.get("chart") if isinstance(obj, dict) else None
        if isinstance(chart, dict):
            return chart
    return None


class Narrator:
    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def narrate(self, plan: dict, result: ExecutionResult, lang: str = "es") -> str:
        """Erros do modelo sobem como `AIIntegrationError`."""
        return await self.generator.generate(build_narration_prompt(plan, result, lang))
