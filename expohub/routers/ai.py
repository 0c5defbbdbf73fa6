"""Assistant (chat) endpoints."""

from __future__ import annotations

import asyncio
from typing import Any, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from expohub.core.ai import AIIntegrationError
from expohub.core.config import settings
from expohub.core.logging import ai_logger
from expohub.domain.filters import ShipmentFilters
from expohub.repositories.protocols import LookupRepositoryProtocol, ShipmentRepositoryProtocol
from expohub.services.assistant_service import AssistantService
from expohub.services.dependencies import (
    database_configured,
    get_assistant_service,
    get_lookup_repository,
    get_shipment_repository,
)
from expohub.services.prompts import message


router = APIRouter(prefix="/api/ai", tags=["ai"])


class ChatTurn(BaseModel):
    role: str = "user"
    content: str = ""


class ChatIn(BaseModel):
    message: Optional[str] = None
    history: List[ChatTurn] = Field(default_factory=list)
    lang: Optional[str] = "es"


@router.post("")
async def ask_assistant(
    body: ChatIn,
    service: AssistantService = Depends(get_assistant_service),
    db_ready: bool = Depends(database_configured),
):
    """
    Pergunta em linguagem natural -> plano -> consulta -> resposta narrada.
    """
    lang = body.lang or "es"
    question = (body.message or "").strip()
    if not question:
        return JSONResponse(status_code=400, content={"error": "Message is required"})

    if not db_ready:
        return JSONResponse(
            status_code=503,
            content={"error": "Database not configured. Set DATABASE_URL to enable the assistant."},
        )

    try:
        return await service.ask(question, lang, body.history)
    except AIIntegrationError as exc:
        ai_logger.error("Error in AI API", exc=exc)
        return JSONResponse(status_code=500, content={"error": message("processing_error", lang)})


async def _probe(call, *args) -> dict[str, Any]:
    try:
        data = await asyncio.to_thread(call, *args)
    except SQLAlchemyError as exc:
        return {"error": str(exc)}
    if isinstance(data, dict):
        count = len(data.get("exporters") or [])
    else:
        count = len(data or [])
    return {"ok": True, "count": count}


@router.get("/health")
async def ai_health(
    shipments: ShipmentRepositoryProtocol = Depends(get_shipment_repository),
    lookups: LookupRepositoryProtocol = Depends(get_lookup_repository),
    db_ready: bool = Depends(database_configured),
):
    """Sinaliza configuração e testa a tabela `exporters` e as funções remotas principais."""
    configuration = {"database": db_ready, "gemini": settings.ai_configured}
    if not configuration["database"]:
        return JSONResponse(
            status_code=503,
            content={"ok": False, "configured": configuration, "error": "Database not configured"},
        )

    try:
        sample = await asyncio.to_thread(lookups.search_exporters, "", 3)
    except SQLAlchemyError as exc:
        return JSONResponse(
            status_code=500,
            content={"ok": False, "configured": configuration, "error": str(exc)},
        )

    filters = ShipmentFilters()
    kpis, tops, timeseries = await asyncio.gather(
        _probe(shipments.get_kpis, filters),
        _probe(shipments.get_tops, filters, "exporters"),
        _probe(shipments.get_timeseries, filters),
    )
    return {
        "ok": True,
        "configured": configuration,
        "sample": sample,
        "rpcTests": {
            "get_exporter_kpis": kpis,
            "get_exporter_tops": tops,
            "get_exporter_timeseries": timeseries,
        },
    }
