"""Resumo da página inicial: totais, top exportadores, tendência mensal e distribuição."""

from __future__ import annotations

import asyncio
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from expohub.core.logging import api_logger
from expohub.domain.catalog import SNAPSHOT
from expohub.domain.filters import ShipmentFilters
from expohub.repositories.protocols import ShipmentRepositoryProtocol
from expohub.services.aggregation import exporter_kpis_from_remote, share_items

TOP_EXPORTERS = 5
TREND_POINTS = 12
DISTRIBUTION_SIZE = 5


class DashboardService:
    """Seções independentes; uma seção que falha vira lista vazia ou snapshot."""

    def __init__(self, shipments: ShipmentRepositoryProtocol):
        self.shipments = shipments

    async def _section(self, label: str, call, *args):
        try:
            return await asyncio.to_thread(call, *args)
        except SQLAlchemyError as exc:
            api_logger.warning(f"Dashboard section '{label}' failed", exc=exc)
            return None

    async def get_summary(self) -> dict[str, Any]:
        filters = ShipmentFilters(granularity="month")
        document, timeseries, varieties, markets = await asyncio.gather(
            self._section("kpis", self.shipments.get_kpis, filters),
            self._section("trends", self.shipments.get_timeseries, filters),
            self._section("varieties", self.shipments.get_tops, filters, "varieties"),
            self._section("markets", self.shipments.get_tops, filters, "markets"),
        )

        document = document or {}
        exporters = exporter_kpis_from_remote(document.get("exporters") or [])
        remote_global = document.get("global") or {}

        is_fallback = False
        if remote_global:
            total_kg = float(remote_global.get("kilograms") or 0)
            total_boxes = float(remote_global.get("boxes") or 0)
        else:
            total_kg, total_boxes = SNAPSHOT.kilograms, SNAPSHOT.boxes
            is_fallback = True

        if exporters:
            total_exporters = len(exporters)
            average = round(total_kg / total_exporters)
        else:
            total_exporters = SNAPSHOT.exporters
            average = 0
            is_fallback = True

        trends = [
            {
                "period": str(row.get("period") or "Unknown"),
                "kilograms": float(row.get("kilograms") or 0),
                "boxes": float(row.get("boxes") or 0),
            }
            for row in (timeseries or [])[-TREND_POINTS:]
        ]

        def _distribution(rows) -> list[dict]:
            return [
                {"name": item.name, "value": item.kilograms}
                for item in share_items(rows or [], DISTRIBUTION_SIZE)
            ]

        return {
            "kpis": {
                "totalExporters": total_exporters,
                "totalKilograms": round(total_kg),
                "totalBoxes": round(total_boxes),
                "averagePerExporter": average,
            },
            "topExporters": [
                {"name": e.exporter_name, "kilograms": e.kilograms, "boxes": e.boxes}
                for e in exporters[:TOP_EXPORTERS]
            ],
            "trends": trends,
            "distribution": {
                "species": _distribution(varieties),
                "markets": _distribution(markets),
            },
            "isFallback": is_fallback,
        }
