"""
Modelos de domínio do painel de exportações.
Representam os conceitos de negócio independentes da infraestrutura.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


def kg_per_box(kilograms: float, boxes: float) -> Optional[float]:
    """Kilograms per box, None when there are no boxes."""
    if not boxes:
        return None
    return kilograms / boxes


def growth_pct(current: float, previous: float) -> Optional[float]:
    if not previous:
        return None
    return (current - previous) / previous * 100


@dataclass
class ExporterKpi:
    """KPIs de um exportador, recalculados a cada requisição."""

    exporter_id: Optional[int]
    exporter_name: str
    kilograms: float = 0.0
    boxes: float = 0.0
    importers_active: int = 0
    varieties_active: int = 0
    yoy_kg: Optional[float] = None
    yoy_boxes: Optional[float] = None
    importers_retention: Optional[float] = None

    @property
    def kg_per_box(self) -> Optional[float]:
        return kg_per_box(self.kilograms, self.boxes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "exporterId": self.exporter_id,
            "exporterName": self.exporter_name,
            "kilograms": self.kilograms,
            "boxes": self.boxes,
            "kgPerBox": self.kg_per_box,
            "yoyKg": self.yoy_kg,
            "yoyBoxes": self.yoy_boxes,
            "importersActive": self.importers_active,
            "importersRetention": self.importers_retention,
            "varietiesActive": self.varieties_active,
        }


@dataclass
class GlobalKpi:
    """Mesma forma do ExporterKpi, somada sobre todos os exportadores."""

    kilograms: float = 0.0
    boxes: float = 0.0
    importers_active: int = 0
    varieties_active: int = 0
    market_coverage: int = 0
    yoy_kg: Optional[float] = None
    yoy_boxes: Optional[float] = None
    importers_retention: Optional[float] = None
    totals_source: str = "scan"

    @property
    def kg_per_box(self) -> Optional[float]:
        return kg_per_box(self.kilograms, self.boxes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kilograms": self.kilograms,
            "boxes": self.boxes,
            "kgPerBox": self.kg_per_box,
            "yoyKg": self.yoy_kg,
            "yoyBoxes": self.yoy_boxes,
            "importersActive": self.importers_active,
            "importersRetention": self.importers_retention,
            "varietiesActive": self.varieties_active,
            "marketCoverage": self.market_coverage,
            "totalsSource": self.totals_source,
        }


@dataclass
class TimePoint:
    period: str
    kilograms: float
    boxes: float

    def to_dict(self) -> dict[str, Any]:
        return {"period": self.period, "kilograms": self.kilograms, "boxes": self.boxes}


@dataclass
class TopItem:
    """Item de um top-N; share_pct é relativo ao total de quilos da própria chamada."""

    id: Optional[int]
    name: str
    kilograms: float
    boxes: float
    share_pct: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "kilograms": self.kilograms,
            "boxes": self.boxes,
            "sharePct": self.share_pct,
        }


@dataclass
class ExporterRanking:
    exporter_id: int
    exporter_name: str
    season_id: Optional[int]
    season_name: Optional[str]
    kilograms: float
    boxes: float
    rank: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "exporterId": self.exporter_id,
            "exporterName": self.exporter_name,
            "seasonId": self.season_id,
            "seasonName": self.season_name,
            "kilograms": self.kilograms,
            "boxes": self.boxes,
            "rank": self.rank,
        }


@dataclass
class ExporterProfile:
    id: int
    name: str
    total_kilograms: float
    total_boxes: float
    seasons_active: int
    tops: dict[str, list[TopItem]] = field(default_factory=dict)

    @property
    def avg_kg_per_box(self) -> Optional[float]:
        return kg_per_box(self.total_kilograms, self.total_boxes)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "totalKilograms": self.total_kilograms,
            "totalBoxes": self.total_boxes,
            "avgKgPerBox": self.avg_kg_per_box,
            "seasonsActive": self.seasons_active,
            "topMarkets": [t.to_dict() for t in self.tops.get("markets", [])],
            "topCountries": [t.to_dict() for t in self.tops.get("countries", [])],
            "topVarieties": [t.to_dict() for t in self.tops.get("varieties", [])],
            "topImporters": [t.to_dict() for t in self.tops.get("importers", [])],
            "topArrivalPorts": [t.to_dict() for t in self.tops.get("arrival_ports", [])],
        }
