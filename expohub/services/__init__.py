"""
Serviços de domínio separados das rotas.

Inclui a análise de exportadores, o resumo do dashboard e o assistente (LangChain + Gemini).
"""

from .assistant_service import AssistantService  # noqa: F401
from .dashboard_service import DashboardService  # noqa: F401
from .exporter_service import ExporterAnalyticsService, ExporterNotFoundError  # noqa: F401
from .intent_router import IntentRouter  # noqa: F401
from .narrator import Narrator, clip_json, extract_chart_suggestion  # noqa: F401
from .plan_executor import ExecutionResult, PlanExecutor  # noqa: F401

__all__ = [
    "AssistantService",
    "clip_json",
    "DashboardService",
    "ExecutionResult",
    "ExporterAnalyticsService",
    "ExporterNotFoundError",
    "extract_chart_suggestion",
    "IntentRouter",
    "Narrator",
    "PlanExecutor",
]
