"""Folds shipment rows and remote aggregate rows into KPI objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Optional

from expohub.domain.models import ExporterKpi, GlobalKpi, TopItem, growth_pct


def _number(value: Any) -> float:
    try:
        return float(value or 0)
    except (TypeError, ValueError):
        return 0.0


@dataclass
class _ExporterAccumulator:
    kilograms: float = 0.0
    boxes: float = 0.0
    importers: set = field(default_factory=set)
    varieties: set = field(default_factory=set)


@dataclass
class ShipmentAggregate:
    exporters: list[ExporterKpi]
    global_kpi: GlobalKpi
    unique_exporters: int = 0
    unique_countries: int = 0
    rows: int = 0

    @property
    def empty(self) -> bool:
        return self.rows == 0


def aggregate_shipments(
    rows: Iterable[Mapping[str, Any]],
    exporter_names: Optional[Mapping[int, str]] = None,
) -> ShipmentAggregate:
    """
    Single pass over shipment rows.

    Per exporter: summed kilograms/boxes and distinct importer/variety ids.
    Globally: the same sums plus distinct importers, varieties, exporters and
    countries across every row. Null ids are never counted. Rows without an
    exporter are grouped under ``exporter_id=None`` so that the global totals
    always equal the sum of the per-exporter totals.
    """
    names = exporter_names or {}
    by_exporter: dict[Optional[int], _ExporterAccumulator] = {}
    importers: set = set()
    varieties: set = set()
    exporters: set = set()
    countries: set = set()
    total_kg = 0.0
    total_boxes = 0.0
    count = 0

    for row in rows:
        count += 1
        kilograms = _number(row.get("kilograms"))
        boxes = _number(row.get("boxes"))
        exporter_id = row.get("exporter_id")
        importer_id = row.get("importer_id")
        variety_id = row.get("variety_id")
        country_id = row.get("country_id")

        acc = by_exporter.setdefault(exporter_id, _ExporterAccumulator())
        acc.kilograms += kilograms
        acc.boxes += boxes
        if importer_id is not None:
            acc.importers.add(importer_id)
            importers.add(importer_id)
        if variety_id is not None:
            acc.varieties.add(variety_id)
            varieties.add(variety_id)
        if exporter_id is not None:
            exporters.add(exporter_id)
        if country_id is not None:
            countries.add(country_id)

        total_kg += kilograms
        total_boxes += boxes

    kpis = [
        ExporterKpi(
            exporter_id=exporter_id,
            exporter_name=names.get(exporter_id) or _default_name(exporter_id),
            kilograms=acc.kilograms,
            boxes=acc.boxes,
            importers_active=len(acc.importers),
            varieties_active=len(acc.varieties),
        )
        for exporter_id, acc in by_exporter.items()
    ]
    kpis.sort(key=lambda k: k.kilograms, reverse=True)

    global_kpi = GlobalKpi(
        kilograms=total_kg,
        boxes=total_boxes,
        importers_active=len(importers),
        varieties_active=len(varieties),
        market_coverage=len(countries),
        totals_source="scan",
    )
    return ShipmentAggregate(
        exporters=kpis,
        global_kpi=global_kpi,
        unique_exporters=len(exporters),
        unique_countries=len(countries),
        rows=count,
    )


def _default_name(exporter_id: Optional[int]) -> str:
    if exporter_id is None:
        return "Unknown"
    return f"Exporter {exporter_id}"


def share_items(rows: Iterable[Mapping[str, Any]], limit: Optional[int] = None) -> list[TopItem]:
    """
    TopItems ordered by kilograms; share is relative to the kilograms of the
    rows of this same call.
    """
    items = [
        TopItem(
            id=row.get("id"),
            name=row.get("name") or "Unknown",
            kilograms=_number(row.get("kilograms")),
            boxes=_number(row.get("boxes")),
        )
        for row in rows
    ]
    items.sort(key=lambda item: item.kilograms, reverse=True)
    total = sum(item.kilograms for item in items)
    for item in items:
        item.share_pct = (item.kilograms / total * 100) if total > 0 else 0.0
    return items[:limit] if limit is not None else items


def yoy_growth(rows: Iterable[Mapping[str, Any]]) -> tuple[Optional[float], Optional[float]]:
    """(kilogram growth %, box growth %) from `get_exporter_yoy_growth` rows."""
    rows = list(rows)
    if not rows:
        return None, None
    current_kg = sum(_number(r.get("current_kilograms")) for r in rows)
    previous_kg = sum(_number(r.get("previous_kilograms")) for r in rows)
    current_boxes = sum(_number(r.get("current_boxes")) for r in rows)
    previous_boxes = sum(_number(r.get("previous_boxes")) for r in rows)
    return growth_pct(current_kg, previous_kg), growth_pct(current_boxes, previous_boxes)


def average_retention(rows: Iterable[Mapping[str, Any]]) -> Optional[float]:
    rows = list(rows)
    if not rows:
        return None
    return sum(_number(r.get("retention_rate")) for r in rows) / len(rows)


def exporter_kpis_from_remote(rows: Iterable[Mapping[str, Any]]) -> list[ExporterKpi]:
    """Per-exporter KPIs as returned inside the `get_exporter_kpis` document."""
    kpis = []
    for row in rows:
        exporter_id = row.get("exporterId", row.get("exporter_id"))
        kpis.append(
            ExporterKpi(
                exporter_id=exporter_id,
                exporter_name=row.get("exporterName") or row.get("exporter_name") or _default_name(exporter_id),
                kilograms=_number(row.get("kilograms")),
                boxes=_number(row.get("boxes")),
                importers_active=int(_number(row.get("importersActive", row.get("importers_active")))),
                varieties_active=int(_number(row.get("varietiesActive", row.get("varieties_active")))),
            )
        )
    kpis.sort(key=lambda k: k.kilograms, reverse=True)
    return kpis
