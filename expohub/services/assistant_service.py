"""Assistant flow: route -> execute -> narrate."""

from __future__ import annotations

from typing import Any, Optional, Sequence

from expohub.core.ai import TextGenerator
from expohub.core.logging import ai_logger
from expohub.repositories.protocols import LookupRepositoryProtocol, ShipmentRepositoryProtocol
from expohub.services.intent_router import IntentRouter
from expohub.services.narrator import Narrator, extract_chart_suggestion
from expohub.services.plan_executor import PlanExecutor
from expohub.services.prompts import message, normalize_language


class AssistantService:
    """
    Orquestra uma pergunta do chat.

    A falha de narração (inclusive chave do Gemini ausente) sobe como
    `AIIntegrationError`; o router traduz para 500 com mensagem localizada.
    """

    def __init__(
        self,
        shipments: ShipmentRepositoryProtocol,
        lookups: LookupRepositoryProtocol,
        generator: TextGenerator,
    ):
        self.shipments = shipments
        self.lookups = lookups
        self.router = IntentRouter(generator)
        self.narrator = Narrator(generator)

    async def ask(
        self,
        question: str,
        lang: Optional[str] = "es",
        history: Optional[Sequence[Any]] = None,
    ) -> dict[str, Any]:
        lang = normalize_language(lang)
        plan = await self.router.route(question, lang, history)
        result = await PlanExecutor(self.shipments, self.lookups, lang).execute(plan)

        ai_logger.info(
            "Assistant plan executed",
            intent=plan.intent,
            result_kind=result.kind,
            rows=result.row_count,
        )

        if result.is_empty:
            return {"reply": result.message or message("no_data", lang)}

        payload = plan.to_payload()
        reply = await self.narrator.narrate(payload, result, lang)
        return {
            "reply": reply,
            "plan": payload,
            "resultKind": result.kind,
            "chart": extract_chart_suggestion(reply),
        }
