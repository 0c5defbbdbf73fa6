"""Executa um `Plan` contra o banco e devolve um `ExecutionResult` (nunca lança)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Optional

import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from expohub.core.logging import ai_logger
from expohub.domain.plans import KpisPlan, Plan, RankingsPlan, SearchPlan, TimeseriesPlan, TopsPlan
from expohub.repositories.protocols import LookupRepositoryProtocol, ShipmentRepositoryProtocol
from expohub.services.aggregation import share_items
from expohub.services.prompts import message

SEARCH_LIMIT = 5


@dataclass
class ExecutionResult:
    kind: str
    data: Any
    params: dict = field(default_factory=dict)
    message: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return isinstance(self.data, list) and not self.data

    @property
    def row_count(self) -> int:
        return len(self.data) if isinstance(self.data, list) else 0

    def to_dict(self) -> dict[str, Any]:
        out = {"kind": self.kind, "data": self.data, "params": self.params}
        if self.message is not None:
            out["message"] = self.message
        if self.error is not None:
            out["error"] = self.error
        return out


def _distinct_ids(series: pd.Series) -> list[int]:
    # colunas com nulos viram float no pandas
    return [int(v) for v in series.dropna().unique()]


def _label(value: Any, names: dict) -> str:
    if pd.isna(value):
        return "ID: null"
    return names.get(int(value)) or f"ID: {int(value)}"


def _group_by(frame: pd.DataFrame, column: str, names: dict) -> dict[str, dict[str, float]]:
    """Soma quilos e caixas por dimensão, com o nome resolvido (ou `ID: n`)."""
    labels = frame[column].map(lambda v: _label(v, names))
    grouped = frame.groupby(labels, sort=False)[["kilograms", "boxes"]].sum()
    return {
        str(label): {"kilograms": float(row["kilograms"]), "boxes": float(row["boxes"])}
        for label, row in grouped.iterrows()
    }


class PlanExecutor:
    """Despacha cada tipo de plano para a consulta correspondente."""

    def __init__(self, shipments: ShipmentRepositoryProtocol, lookups: LookupRepositoryProtocol,
                 lang: str = "es"):
        self.shipments = shipments
        self.lookups = lookups
        self.lang = lang

    async def execute(self, plan: Plan) -> ExecutionResult:
        params = plan.params.model_dump(by_alias=True)
        try:
            if isinstance(plan, KpisPlan):
                data = await asyncio.to_thread(self.shipments.get_kpis, plan.shipment_filters())
                return ExecutionResult("kpis", data or [], params)
            if isinstance(plan, TimeseriesPlan):
                data = await asyncio.to_thread(self.shipments.get_timeseries, plan.shipment_filters())
                return ExecutionResult("timeseries", data, params)
            if isinstance(plan, TopsPlan):
                return await self._tops(plan, params)
            if isinstance(plan, RankingsPlan):
                rows = await asyncio.to_thread(self.shipments.get_rankings, plan.shipment_filters())
                return ExecutionResult("rankings", rows[: plan.params.top_n], params)
            if isinstance(plan, SearchPlan):
                return await self._search(plan, params)
        except SQLAlchemyError as exc:
            ai_logger.warning("Plan execution failed", exc=exc, intent=plan.intent)
            return ExecutionResult("error", [], params, error=str(exc))

        return ExecutionResult("error", [], params, error="Unknown intent")

    async def _tops(self, plan: TopsPlan, params: dict) -> ExecutionResult:
        rows = await asyncio.to_thread(
            self.shipments.get_tops, plan.shipment_filters(), plan.params.top_type
        )
        items = share_items(rows, plan.params.top_n)
        return ExecutionResult("tops", [item.to_dict() for item in items], params)

    async def _search(self, plan: SearchPlan, params: dict) -> ExecutionResult:
        term = plan.params.search_term
        exporters = await asyncio.to_thread(self.lookups.search_exporters, term, SEARCH_LIMIT)
        if not exporters:
            return ExecutionResult(
                "search", [], params, message=message("exporter_not_found", self.lang, term=term)
            )

        rows = await asyncio.to_thread(
            self.shipments.get_exporter_shipments, [e["id"] for e in exporters]
        )
        if not rows:
            return ExecutionResult(
                "search", [], params, message=message("exporter_without_shipments", self.lang, term=term)
            )

        frame = pd.DataFrame(rows)
        frame[["kilograms", "boxes"]] = frame[["kilograms", "boxes"]].fillna(0)

        season_ids = _distinct_ids(frame["season_id"])
        market_ids = _distinct_ids(frame["market_id"])
        species_ids = _distinct_ids(frame["species_id"])
        season_names, market_names, species_names = await asyncio.gather(
            asyncio.to_thread(self.lookups.get_names, "seasons", season_ids),
            asyncio.to_thread(self.lookups.get_names, "markets", market_ids),
            asyncio.to_thread(self.lookups.get_names, "species", species_ids),
        )

        weeks = sorted(str(w) for w in frame["etd_week"].dropna().unique())
        result = {
            "exporter": exporters[0],
            "matches": exporters,
            "summary": {
                "total_kilograms": float(frame["kilograms"].sum()),
                "total_boxes": float(frame["boxes"].sum()),
                "seasons": [_label(s, season_names) for s in season_ids],
                "markets_count": len(market_ids),
                "species_count": len(species_ids),
                "weeks": weeks,
            },
            "by_species": _group_by(frame, "species_id", species_names),
            "by_market": _group_by(frame, "market_id", market_names),
            "shipments": rows,
        }
        return ExecutionResult("search", result, params)
