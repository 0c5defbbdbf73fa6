import asyncio

import pytest

from expohub.core.ai import AIIntegrationError
from expohub.domain.plans import KpisPlan, RankingsPlan, SearchPlan, TimeseriesPlan, TopsPlan
from expohub.services.intent_router import (
    IntentRouter,
    build_router_prompt,
    decode_plan,
    fallback_plan,
    strip_code_fences,
)
from tests.fakes import FakeTextGenerator


# -----------------------------------------------------------------------------
# Regras locais
# -----------------------------------------------------------------------------


def test_fallback_top_exporters():
    plan = fallback_plan("top 5 exporters by kilograms")

    assert isinstance(plan, TopsPlan)
    assert plan.params.top_type == "exporters"
    assert plan.params.top_n == 5
    assert plan.params.metric == "kilograms"


def test_fallback_top_markets_reads_the_number():
    plan = fallback_plan("What are the best 3 markets? show top 3")

    assert isinstance(plan, TopsPlan)
    assert plan.params.top_type == "markets"
    assert plan.params.top_n == 3


def test_fallback_company_search_takes_first_capitalized_word():
    plan = fallback_plan("datos de la exportadora Greenvic")

    assert isinstance(plan, SearchPlan)
    assert plan.params.search_term == "Greenvic"


def test_fallback_company_without_capitalized_word():
    plan = fallback_plan("how is dole doing")

    assert isinstance(plan, SearchPlan)
    assert plan.params.search_term == "company"


def test_fallback_company_rule_wins_over_top():
    assert isinstance(fallback_plan("top exporter this season"), SearchPlan)


def test_fallback_trend_granularity():
    monthly = fallback_plan("monthly trend of shipments")
    weekly = fallback_plan("how did volume evolve over time")

    assert isinstance(monthly, TimeseriesPlan) and monthly.params.granularity == "month"
    assert isinstance(weekly, TimeseriesPlan) and weekly.params.granularity == "week"


def test_fallback_defaults_to_kpis_and_detects_boxes():
    plan = fallback_plan("resumen general en cajas")

    assert isinstance(plan, KpisPlan)
    assert plan.params.metric == "boxes"


# -----------------------------------------------------------------------------
# Decodificação
# -----------------------------------------------------------------------------


def test_decode_plan_with_code_fences_and_snake_case_filters():
    raw = '```json\n{"intent":"tops","filters":{"season_ids":[1]},"params":{"metric":"boxes","topType":"markets","topN":3}}\n```'

    plan = decode_plan(raw)
    assert isinstance(plan, TopsPlan)
    assert plan.filters.season_ids == [1]
    assert plan.params.top_type == "markets"
    assert plan.params.metric == "boxes"
    assert plan.to_payload()["params"]["topN"] == 3


def test_decode_plan_rejects_prose_around_json():
    raw = 'Sure! {"intent":"kpis","filters":{},"params":{"metric":"kilograms"}}'

    assert decode_plan(raw) is None


@pytest.mark.parametrize(
    "raw",
    [
        "not json",
        '{"intent":"kpis","params":{}}',
        '{"intent":"forecast","filters":{},"params":{}}',
        '{"intent":"search","filters":{},"params":{"metric":"kilograms"}}',
        '{"intent":"tops","filters":{},"params":{"topType":"ports"}}',
        '[1, 2, 3]',
    ],
)
def test_decode_plan_invalid_inputs(raw):
    assert decode_plan(raw) is None


def test_strip_code_fences():
    assert strip_code_fences('```\n{"a": 1}\n```') == '{"a": 1}'
    assert strip_code_fences('{"a": 1}') == '{"a": 1}'


# -----------------------------------------------------------------------------
# IntentRouter
# -----------------------------------------------------------------------------


def test_router_uses_model_plan():
    generator = FakeTextGenerator('{"intent":"rankings","filters":{"seasonIds":[4]},"params":{"topN":3}}')

    plan = asyncio.run(IntentRouter(generator).route("ranking por temporada", "es"))

    assert isinstance(plan, RankingsPlan)
    assert plan.filters.season_ids == [4]
    assert plan.params.top_n == 3
    assert "PREGUNTA: ranking por temporada" in generator.prompts[0]


def test_router_falls_back_when_model_unavailable():
    generator = FakeTextGenerator(AIIntegrationError("GOOGLE_API_KEY not configured"))

    plan = asyncio.run(IntentRouter(generator).route("top 5 exporters by kilograms", "en"))

    assert isinstance(plan, TopsPlan)
    assert plan.params.top_type == "exporters"
    assert plan.params.top_n == 5


def test_router_falls_back_on_invalid_plan():
    generator = FakeTextGenerator('{"intent":"tops"}')

    plan = asyncio.run(IntentRouter(generator).route("weekly trend", "en"))

    assert isinstance(plan, TimeseriesPlan)


def test_prompt_includes_recent_history_in_language():
    history = [{"role": "user", "content": f"turn {i}"} for i in range(10)]

    prompt = build_router_prompt("and boxes?", "en", history)

    assert prompt.startswith("QUESTION: and boxes?")
    assert "PREVIOUS CONVERSATION" in prompt
    assert "turn 9" in prompt
    assert "turn 3" not in prompt
    assert "You are an intelligent router" in prompt
