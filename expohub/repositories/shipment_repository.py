"""
Repositório de embarques.
Chamadas às funções de agregação remotas e varreduras paginadas de `unified_shipments`.
"""

from __future__ import annotations

import json
from functools import partial
from typing import Any, Optional, Sequence

from expohub.domain.catalog import (
    RPC_FILTERED_TOTALS,
    RPC_KPIS,
    RPC_RANKINGS,
    RPC_RETENTION,
    RPC_TIMESERIES,
    RPC_TOPS,
    RPC_YOY,
    SHIPMENTS_TABLE,
    SHIPMENTS_VIEW,
)
from expohub.domain.filters import Predicate, ShipmentFilters, render_predicates
from expohub.infra.db import call_function, call_scalar_function, fetch_all, fetch_one
from expohub.repositories.pagination import fetch_all_pages

SHIPMENT_COLUMNS = frozenset(
    [
        "id", "season_id", "etd_week", "region_id", "market_id", "country_id",
        "transport_type_id", "species_id", "variety_id", "importer_id",
        "exporter_id", "arrival_port_id", "boxes", "kilograms",
    ]
)


def _select_list(columns: Sequence[str]) -> str:
    unknown = [c for c in columns if c not in SHIPMENT_COLUMNS]
    if unknown:
        raise ValueError(f"Unknown shipment columns: {unknown}")
    return ", ".join(columns)


def _where(predicates: list[Predicate]) -> tuple[str, dict[str, Any]]:
    conditions, params = render_predicates(predicates)
    clause = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    return clause, params


class ShipmentRepository:
    """
    Repositório para acesso aos dados de embarques.
    As agregações vivem no banco (funções `get_exporter_*`); aqui só montamos os argumentos.
    """

    @staticmethod
    def get_kpis(filters: ShipmentFilters) -> Optional[dict]:
        """
        `get_exporter_kpis` devolve um documento JSON `{global, exporters}`.
        """
        payload = call_scalar_function(RPC_KPIS, filters.rpc_arguments())
        if isinstance(payload, str):
            payload = json.loads(payload)
        return payload or None

    @staticmethod
    def get_timeseries(filters: ShipmentFilters) -> list[dict]:
        args = {"p_granularity": filters.granularity, **filters.rpc_arguments()}
        return call_function(RPC_TIMESERIES, args)

    @staticmethod
    def get_tops(filters: ShipmentFilters, top_type: str) -> list[dict]:
        args = {"p_top_type": top_type, **filters.rpc_arguments()}
        return call_function(RPC_TOPS, args)

    @staticmethod
    def get_rankings(filters: ShipmentFilters) -> list[dict]:
        return call_function(RPC_RANKINGS, filters.rpc_arguments(include_exporters=False))

    @staticmethod
    def get_yoy_growth(
        current_season_id: int,
        previous_season_id: int,
        exporter_ids: Optional[Sequence[int]] = None,
    ) -> list[dict]:
        args = {
            "p_current_season_id": current_season_id,
            "p_previous_season_id": previous_season_id,
            "p_exporter_ids": list(exporter_ids) if exporter_ids else None,
        }
        return call_function(RPC_YOY, args)

    @staticmethod
    def get_importer_retention(
        current_season_id: int,
        previous_season_id: int,
        exporter_ids: Optional[Sequence[int]] = None,
    ) -> list[dict]:
        args = {
            "p_current_season_id": current_season_id,
            "p_previous_season_id": previous_season_id,
            "p_exporter_ids": list(exporter_ids) if exporter_ids else None,
        }
        return call_function(RPC_RETENTION, args)

    @staticmethod
    def get_filtered_totals(filters: ShipmentFilters) -> Optional[dict]:
        """Agregado remoto; dimensões sem restrição são omitidas (defaults da função)."""
        rows = call_function(RPC_FILTERED_TOTALS, filters.to_rpc_params())
        return rows[0] if rows else None

    # ------------------------------------------------------------------
    # Varreduras diretas
    # ------------------------------------------------------------------

    @staticmethod
    def fetch_shipment_page(
        predicates: list[Predicate],
        columns: Sequence[str],
        offset: int,
        limit: int,
        table: str = SHIPMENTS_TABLE,
    ) -> list[dict]:
        where, params = _where(predicates)
        sql = (
            f"SELECT {_select_list(columns)} FROM {table}{where}"
            " ORDER BY id LIMIT :limit OFFSET :offset"
        )
        params.update({"limit": limit, "offset": offset})
        return fetch_all(sql, params)

    @classmethod
    def scan_shipments(cls, filters: ShipmentFilters, columns: Sequence[str]) -> list[dict]:
        """
        Todas as linhas que casam com os filtros, 1000 por vez.
        Contornam o teto de linhas das funções remotas nas contagens distintas.
        """
        page = partial(cls.fetch_shipment_page, filters.to_predicates(), columns)
        return fetch_all_pages(page)

    @classmethod
    def get_exporter_shipments(cls, exporter_ids: Sequence[int]) -> list[dict]:
        predicates = [Predicate("exporter_id", "IN", list(exporter_ids))]
        columns = (
            "id", "season_id", "etd_week", "market_id", "species_id",
            "variety_id", "importer_id", "exporter_id", "boxes", "kilograms",
        )
        page = partial(cls.fetch_shipment_page, predicates, columns, table=SHIPMENTS_VIEW)
        return fetch_all_pages(page)

    @staticmethod
    def get_exporter_totals(filters: ShipmentFilters) -> Optional[dict]:
        where, params = _where(filters.to_predicates())
        sql = f"""
            SELECT
                COALESCE(SUM(kilograms), 0)::float AS total_kilograms,
                COALESCE(SUM(boxes), 0)::float AS total_boxes,
                COUNT(DISTINCT season_id)::int AS seasons_active,
                COUNT(*)::int AS shipments
            FROM {SHIPMENTS_TABLE}{where}
        """
        return fetch_one(sql, params)
