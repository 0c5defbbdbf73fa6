"""Exporter analytics: KPIs, charts, filter options and per-exporter profile."""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from expohub.core.logging import api_logger
from expohub.domain.catalog import CHART_TOPS, OPTION_TABLES, PROFILE_TOPS, SNAPSHOT, TOP_LIMIT
from expohub.domain.filters import ShipmentFilters
from expohub.domain.models import (
    ExporterKpi,
    ExporterProfile,
    ExporterRanking,
    GlobalKpi,
    TimePoint,
)
from expohub.repositories.protocols import LookupRepositoryProtocol, ShipmentRepositoryProtocol
from expohub.services.aggregation import (
    aggregate_shipments,
    average_retention,
    exporter_kpis_from_remote,
    share_items,
    yoy_growth,
)

SCAN_COLUMNS = ("exporter_id", "kilograms", "boxes", "importer_id", "variety_id", "country_id")


class ExporterNotFoundError(LookupError):
    """Exportador inexistente na tabela `exporters`."""

    def __init__(self, exporter_id: int):
        super().__init__(f"Exporter {exporter_id} not found")
        self.exporter_id = exporter_id


def snapshot_global_kpi() -> GlobalKpi:
    return GlobalKpi(
        kilograms=SNAPSHOT.kilograms,
        boxes=SNAPSHOT.boxes,
        importers_active=SNAPSHOT.importers,
        varieties_active=SNAPSHOT.varieties,
        market_coverage=SNAPSHOT.countries,
        totals_source="snapshot",
    )


def _to_rankings(rows: list[dict]) -> list[ExporterRanking]:
    return [
        ExporterRanking(
            exporter_id=row.get("exporter_id"),
            exporter_name=row.get("exporter_name") or f"Exporter {row.get('exporter_id')}",
            season_id=row.get("season_id"),
            season_name=row.get("season_name"),
            kilograms=float(row.get("kilograms") or 0),
            boxes=float(row.get("boxes") or 0),
            rank=int(row.get("rank") or 0),
        )
        for row in rows
    ]


class ExporterAnalyticsService:
    """
    Orquestra as consultas do painel de exportadores.

    Os repositórios são síncronos (SQLAlchemy); cada chamada é levada para uma
    thread e as independentes rodam juntas com `asyncio.gather`.
    """

    def __init__(self, shipments: ShipmentRepositoryProtocol, lookups: LookupRepositoryProtocol):
        self.shipments = shipments
        self.lookups = lookups

    # ------------------------------------------------------------------
    # KPIs
    # ------------------------------------------------------------------

    async def _scanned_kpis(self, filters: ShipmentFilters) -> tuple[GlobalKpi, list[ExporterKpi]]:
        """Totais exatos por varredura; cai para o agregado remoto e depois para o snapshot."""
        try:
            rows = await asyncio.to_thread(self.shipments.scan_shipments, filters, SCAN_COLUMNS)
        except SQLAlchemyError as exc:
            api_logger.warning("Shipment scan failed, using remote totals", exc=exc)
            return await self._remote_totals(filters), []

        exporter_ids = {row.get("exporter_id") for row in rows}
        try:
            names = await asyncio.to_thread(self.lookups.get_names, "exporters", list(exporter_ids))
        except SQLAlchemyError as exc:
            api_logger.warning("Exporter name lookup failed", exc=exc)
            names = {}

        aggregate = aggregate_shipments(rows, names)
        api_logger.debug(
            "Shipment scan aggregated",
            rows=aggregate.rows,
            exporters=aggregate.unique_exporters,
            countries=aggregate.unique_countries,
        )
        return aggregate.global_kpi, aggregate.exporters

    async def _remote_totals(self, filters: ShipmentFilters) -> GlobalKpi:
        try:
            row = await asyncio.to_thread(self.shipments.get_filtered_totals, filters)
        except SQLAlchemyError as exc:
            api_logger.warning("get_filtered_totals failed, using snapshot", exc=exc)
            row = None
        if not row:
            return snapshot_global_kpi()
        return GlobalKpi(
            kilograms=float(row.get("total_kilograms") or 0),
            boxes=float(row.get("total_boxes") or 0),
            importers_active=int(row.get("unique_importers") or 0),
            varieties_active=int(row.get("unique_varieties") or 0),
            market_coverage=int(row.get("unique_countries") or 0),
            totals_source="remote",
        )

    async def _document_kpis(self, filters: ShipmentFilters) -> tuple[GlobalKpi, list[ExporterKpi]]:
        """KPIs sem filtros vindos do documento `{global, exporters}` de get_exporter_kpis."""
        document = await asyncio.to_thread(self.shipments.get_kpis, filters)
        if not document:
            return snapshot_global_kpi(), []

        exporters = exporter_kpis_from_remote(document.get("exporters") or [])
        remote = document.get("global") or {}
        if not remote:
            return snapshot_global_kpi(), exporters
        global_kpi = GlobalKpi(
            kilograms=float(remote.get("kilograms") or 0),
            boxes=float(remote.get("boxes") or 0),
            importers_active=int(remote.get("importersActive") or 0),
            varieties_active=int(remote.get("varietiesActive") or 0),
            market_coverage=int(remote.get("marketCoverage") or 0),
            totals_source="remote",
        )
        return global_kpi, exporters

    async def _season_comparison(self, filters: ShipmentFilters) -> tuple[list[dict], list[dict]]:
        """YoY e retenção entre a maior e a menor temporada selecionadas."""
        pair = filters.season_pair()
        if pair is None:
            return [], []
        current, previous = pair
        exporter_ids = filters.exporter_ids or None

        async def _safe(call, label: str) -> list[dict]:
            try:
                return await asyncio.to_thread(call, current, previous, exporter_ids)
            except SQLAlchemyError as exc:
                api_logger.warning(f"{label} unavailable", exc=exc, current=current, previous=previous)
                return []

        yoy_rows, retention_rows = await asyncio.gather(
            _safe(self.shipments.get_yoy_growth, "YoY growth"),
            _safe(self.shipments.get_importer_retention, "Importer retention"),
        )
        return yoy_rows, retention_rows

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    async def get_analytics(self, filters: ShipmentFilters) -> dict[str, Any]:
        """Resposta completa de `POST /api/exporters`."""
        if filters.has_restrictions():
            kpis_task = self._scanned_kpis(filters)
        else:
            kpis_task = self._document_kpis(filters)

        top_types = list(CHART_TOPS.values())
        (global_kpi, exporters), timeseries, rankings, comparison, *tops = await asyncio.gather(
            kpis_task,
            asyncio.to_thread(self.shipments.get_timeseries, filters),
            asyncio.to_thread(self.shipments.get_rankings, filters),
            self._season_comparison(filters),
            *[asyncio.to_thread(self.shipments.get_tops, filters, t) for t in top_types],
        )

        yoy_rows, retention_rows = comparison
        global_kpi.yoy_kg, global_kpi.yoy_boxes = yoy_growth(yoy_rows)
        global_kpi.importers_retention = average_retention(retention_rows)

        tops_by_type = {
            top_type: [item.to_dict() for item in share_items(rows)]
            for top_type, rows in zip(top_types, tops)
        }
        charts: dict[str, Any] = {
            "timeseries": [
                TimePoint(
                    period=str(row.get("period")),
                    kilograms=float(row.get("kilograms") or 0),
                    boxes=float(row.get("boxes") or 0),
                ).to_dict()
                for row in timeseries
            ],
        }
        for key, top_type in CHART_TOPS.items():
            charts[key] = tops_by_type[top_type]
        charts["transportSplit"] = tops_by_type["arrival_ports"]
        charts["rankings"] = [r.to_dict() for r in _to_rankings(rankings)]

        api_logger.info(
            "Exporter analytics served",
            filtered=filters.has_restrictions(),
            totals_source=global_kpi.totals_source,
            exporters=len(exporters),
        )
        return {
            "kpis": {
                "global": global_kpi.to_dict(),
                "exporters": [e.to_dict() for e in exporters],
            },
            "charts": charts,
        }

    async def get_filter_options(self) -> dict[str, list[dict]]:
        """As nove listas de opções, consultadas em paralelo."""
        keys = list(OPTION_TABLES)
        results = await asyncio.gather(
            *[asyncio.to_thread(self.lookups.get_options, OPTION_TABLES[k]) for k in keys]
        )
        return {key: rows or [] for key, rows in zip(keys, results)}

    async def get_profile(self, exporter_id: int, filters: Optional[ShipmentFilters] = None) -> ExporterProfile:
        exporter = await asyncio.to_thread(self.lookups.get_exporter, exporter_id)
        if exporter is None:
            raise ExporterNotFoundError(exporter_id)

        scoped = (filters or ShipmentFilters()).with_exporter(exporter_id)
        totals, *tops = await asyncio.gather(
            asyncio.to_thread(self.shipments.get_exporter_totals, scoped),
            *[asyncio.to_thread(self.shipments.get_tops, scoped, t) for t in PROFILE_TOPS],
        )
        totals = totals or {}
        return ExporterProfile(
            id=exporter["id"],
            name=exporter["name"],
            total_kilograms=float(totals.get("total_kilograms") or 0),
            total_boxes=float(totals.get("total_boxes") or 0),
            seasons_active=int(totals.get("seasons_active") or 0),
            tops={t: share_items(rows, TOP_LIMIT) for t, rows in zip(PROFILE_TOPS, tops)},
        )
