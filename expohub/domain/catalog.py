"""
Allow-lists and reference constants shared by services and routers.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Tuple

# -----------------------------------------------------------------------------
# 1) Tabelas e funções remotas
# -----------------------------------------------------------------------------

SHIPMENTS_TABLE = "unified_shipments"
SHIPMENTS_VIEW = "unified_shipments_mv"

RPC_KPIS = "get_exporter_kpis"
RPC_TIMESERIES = "get_exporter_timeseries"
RPC_TOPS = "get_exporter_tops"
RPC_RANKINGS = "get_exporter_rankings"
RPC_YOY = "get_exporter_yoy_growth"
RPC_RETENTION = "get_exporter_importer_retention"
RPC_FILTERED_TOTALS = "get_filtered_totals"

# Listas de opções dos filtros: chave da resposta -> tabela de lookup
OPTION_TABLES: Dict[str, str] = {
    "seasons": "seasons",
    "exporters": "exporters",
    "species": "species",
    "varieties": "varieties",
    "markets": "markets",
    "countries": "countries",
    "regions": "regions",
    "transportTypes": "transport_types",
    "arrivalPorts": "arrival_ports",
}

# -----------------------------------------------------------------------------
# 2) Categorias de top-N aceitas por get_exporter_tops
# -----------------------------------------------------------------------------

TOP_TYPES: Tuple[str, ...] = (
    "exporters",
    "importers",
    "markets",
    "countries",
    "varieties",
    "arrival_ports",
)

# Categorias exibidas nos gráficos: chave da resposta -> p_top_type
CHART_TOPS: Dict[str, str] = {
    "topImporters": "importers",
    "topMarkets": "markets",
    "topCountries": "countries",
    "topVarieties": "varieties",
    "arrivalPorts": "arrival_ports",
}

PROFILE_TOPS: Tuple[str, ...] = ("markets", "countries", "varieties", "importers", "arrival_ports")

PAGE_SIZE = 1000
TOP_LIMIT = 10

# -----------------------------------------------------------------------------
# 3) Snapshot usado quando nenhum total pode ser calculado
# -----------------------------------------------------------------------------


@dataclass(frozen=True)
class TotalsSnapshot:
    """Últimos totais conhecidos da base completa (sem filtros)."""

    kilograms: float = 35_549_711
    boxes: float = 70_799_042
    importers: int = 4_382
    varieties: int = 1_500
    countries: int = 107
    exporters: int = 1_224


SNAPSHOT = TotalsSnapshot()
