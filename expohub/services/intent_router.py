"""
Converte a pergunta do usuário em um `Plan`.

Caminho principal: Gemini devolve `{intent, filters, params}` em JSON.
Qualquer falha (chamada, JSON inválido, plano fora do contrato) usa as regras locais.
"""

from __future__ import annotations

import json
import re
from typing import Any, Optional, Sequence

from pydantic import ValidationError

from expohub.core.ai import TextGenerator
from expohub.core.logging import ai_logger
from expohub.domain.plans import (
    KpisPlan,
    KpisParams,
    Plan,
    SearchParams,
    SearchPlan,
    TimeseriesParams,
    TimeseriesPlan,
    TopsParams,
    TopsPlan,
    plan_adapter,
)
from expohub.services.prompts import ROUTER_INSTRUCTIONS, message, normalize_language

HISTORY_TURNS = 6

_FENCE = re.compile(r"^\s*```[a-zA-Z]*\s*|\s*```\s*$")
_REQUIRED_KEYS = ("intent", "filters", "params")

_COMPANY_PATTERNS = (
    re.compile(r"\b(allegria|foods|dole|chile|greenvic|garcés|verfrut|tuniche)\b", re.IGNORECASE),
    re.compile(r"\b(exportadora|empresa|compañía|company|exporter)\b", re.IGNORECASE),
)
_CAPITALIZED = re.compile(r"^(?:[A-Z][a-z]+|[A-Z]+$)")
_TOP_N = re.compile(r"\btop\s+(\d+)", re.IGNORECASE)
_BOXES = re.compile(r"\b(box|boxes|caja|cajas)\b", re.IGNORECASE)


# -----------------------------------------------------------------------------
# Decodificação da resposta do modelo
# -----------------------------------------------------------------------------


def strip_code_fences(text: str) -> str:
    return _FENCE.sub("", text).strip()


def decode_plan(text: str) -> Optional[Plan]:
    """
    Interpreta a resposta inteira como JSON e valida contra o union `Plan`.
    Devolve None quando algo não confere.
    """
    try:
        payload = json.loads(strip_code_fences(text))
    except (TypeError, json.JSONDecodeError):
        return None
    if not isinstance(payload, dict) or any(key not in payload for key in _REQUIRED_KEYS):
        return None
    if payload["filters"] is None or payload["params"] is None:
        return None
    try:
        return plan_adapter.validate_python(payload)
    except ValidationError as exc:
        ai_logger.debug("Router plan rejected", errors=exc.error_count())
        return None


# -----------------------------------------------------------------------------
# Regras locais
# -----------------------------------------------------------------------------


def _metric(question: str) -> str:
    return "boxes" if _BOXES.search(question) else "kilograms"


def fallback_plan(question: str) -> Plan:
    """Heurística por palavras-chave, aplicada na ordem: empresa, top, tendência, kpis."""
    lowered = question.lower()
    metric = _metric(question)

    if any(pattern.search(question) for pattern in _COMPANY_PATTERNS):
        term = next((w for w in question.split() if _CAPITALIZED.match(w)), "company")
        return SearchPlan(params=SearchParams(search_term=term, metric=metric))

    if "top" in lowered or "best" in lowered or "highest" in lowered:
        match = _TOP_N.search(question)
        top_n = min(max(int(match.group(1)), 1), 100) if match else 5
        return TopsPlan(
            params=TopsParams(
                metric=metric,
                top_type="markets" if "market" in lowered else "exporters",
                top_n=top_n,
            )
        )

    if any(k in lowered for k in ("trend", "over time", "weekly", "monthly")):
        granularity = "month" if "monthly" in lowered else "week"
        return TimeseriesPlan(params=TimeseriesParams(metric=metric, granularity=granularity))

    return KpisPlan(params=KpisParams(metric=metric))


# -----------------------------------------------------------------------------
# Prompt
# -----------------------------------------------------------------------------


def _history_lines(history: Optional[Sequence[Any]]) -> list[str]:
    lines = []
    for turn in list(history or [])[-HISTORY_TURNS:]:
        if isinstance(turn, dict):
            role, content = turn.get("role", "user"), turn.get("content", "")
        else:
            role, content = getattr(turn, "role", "user"), getattr(turn, "content", "")
        if content:
            lines.append(f"{role}: {content}")
    return lines


def build_router_prompt(question: str, lang: str, history: Optional[Sequence[Any]] = None) -> str:
    lang = normalize_language(lang)
    parts = [f"{message('question_label', lang)}: {question}"]
    lines = _history_lines(history)
    if lines:
        parts.append(f"{message('history_label', lang)}:\n" + "\n".join(lines))
    parts.append(ROUTER_INSTRUCTIONS[lang])
    return "\n\n".join(parts)


class IntentRouter:
    """Roteador de intenções; depende apenas de um `TextGenerator`."""

    def __init__(self, generator: TextGenerator):
        self.generator = generator

    async def route(self, question: str, lang: str = "es",
                    history: Optional[Sequence[Any]] = None) -> Plan:
        prompt = build_router_prompt(question, lang, history)
        try:
            raw = await self.generator.generate(prompt)
        except Exception as exc:
            ai_logger.warning("Router model unavailable, using keyword rules", exc=exc)
            return fallback_plan(question)

        plan = decode_plan(raw)
        if plan is None:
            ai_logger.warning("Router response is not a valid plan, using keyword rules",
                              response=raw[:200])
            return fallback_plan(question)
        return plan
