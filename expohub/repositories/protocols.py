"""Repository protocol definitions used by domain services."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence

from expohub.domain.filters import ShipmentFilters


class ShipmentRepositoryProtocol(Protocol):
    """Contract for shipment aggregates (remote functions) and row scans."""

    def get_kpis(self, filters: ShipmentFilters) -> Optional[dict]: ...

    def get_timeseries(self, filters: ShipmentFilters) -> list[dict]: ...

    def get_tops(self, filters: ShipmentFilters, top_type: str) -> list[dict]: ...

    def get_rankings(self, filters: ShipmentFilters) -> list[dict]: ...

    def get_yoy_growth(
        self, current_season_id: int, previous_season_id: int,
        exporter_ids: Optional[Sequence[int]] = None,
    ) -> list[dict]: ...

    def get_importer_retention(
        self, current_season_id: int, previous_season_id: int,
        exporter_ids: Optional[Sequence[int]] = None,
    ) -> list[dict]: ...

    def get_filtered_totals(self, filters: ShipmentFilters) -> Optional[dict]: ...

    def scan_shipments(self, filters: ShipmentFilters, columns: Sequence[str]) -> list[dict]: ...

    def get_exporter_shipments(self, exporter_ids: Sequence[int]) -> list[dict]: ...

    def get_exporter_totals(self, filters: ShipmentFilters) -> Optional[dict]: ...


class LookupRepositoryProtocol(Protocol):
    """Contract for the small reference tables (seasons, exporters, markets...)."""

    def get_options(self, table: str) -> list[dict]: ...

    def get_names(self, table: str, ids: Sequence[Any]) -> dict[int, str]: ...

    def search_exporters(self, term: str, limit: int = 5) -> list[dict]: ...

    def get_exporter(self, exporter_id: int) -> Optional[dict]: ...
