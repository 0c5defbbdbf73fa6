"""
Filtros do painel de exportadores.
Centraliza a tradução dos filtros para parâmetros das funções remotas
e para predicados da varredura paginada de `unified_shipments`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Literal, Mapping, NamedTuple, Optional

Granularity = Literal["week", "month", "season"]
Metric = Literal["kilograms", "boxes"]

GRANULARITIES = ("week", "month", "season")
METRICS = ("kilograms", "boxes")

# (atributo do filtro, coluna em unified_shipments, parâmetro RPC, parâmetro de URL)
DIMENSIONS: tuple[tuple[str, str, str, str], ...] = (
    ("season_ids", "season_id", "p_season_ids", "seasons"),
    ("exporter_ids", "exporter_id", "p_exporter_ids", "exporters"),
    ("species_ids", "species_id", "p_species_ids", "species"),
    ("variety_ids", "variety_id", "p_variety_ids", "varieties"),
    ("market_ids", "market_id", "p_market_ids", "markets"),
    ("country_ids", "country_id", "p_country_ids", "countries"),
    ("region_ids", "region_id", "p_region_ids", "regions"),
    ("transport_type_ids", "transport_type_id", "p_transport_type_ids", "transport"),
    ("arrival_port_ids", "arrival_port_id", "p_arrival_port_ids", "arrivalPorts"),
)

# A varredura direta nunca restringiu por porto de chegada.
SCAN_DIMENSIONS = tuple(d for d in DIMENSIONS if d[0] != "arrival_port_ids")

WEEK_COLUMN = "etd_week"


class Predicate(NamedTuple):
    column: str
    operator: Literal["IN", ">=", "<="]
    value: Any


def parse_id_list(raw: Optional[str]) -> list[int]:
    """'1, 2,x,3' -> [1, 2, 3]; pedaços não numéricos são ignorados."""
    if not raw:
        return []
    ids: list[int] = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        try:
            ids.append(int(chunk))
        except ValueError:
            continue
    return ids


@dataclass
class ShipmentFilters:
    """
    Filtros aplicáveis às consultas de embarques.
    Lista vazia ou ausente significa "sem restrição" naquela dimensão.
    """

    season_ids: list[int] = field(default_factory=list)
    exporter_ids: list[int] = field(default_factory=list)
    species_ids: list[int] = field(default_factory=list)
    variety_ids: list[int] = field(default_factory=list)
    market_ids: list[int] = field(default_factory=list)
    country_ids: list[int] = field(default_factory=list)
    region_ids: list[int] = field(default_factory=list)
    transport_type_ids: list[int] = field(default_factory=list)
    arrival_port_ids: list[int] = field(default_factory=list)
    week_from: Optional[str] = None
    week_to: Optional[str] = None
    granularity: Granularity = "week"
    metric: Metric = "kilograms"

    # ------------------------------------------------------------------
    # Parâmetros das funções remotas
    # ------------------------------------------------------------------

    def to_rpc_params(self) -> dict[str, Any]:
        """Somente as dimensões efetivamente restritas viram chaves."""
        params: dict[str, Any] = {}
        for attr, _, rpc_name, _ in DIMENSIONS:
            values = getattr(self, attr)
            if values:
                params[rpc_name] = list(values)
        if self.week_from:
            params["p_week_from"] = self.week_from
        if self.week_to:
            params["p_week_to"] = self.week_to
        return params

    def rpc_arguments(self, *, include_exporters: bool = True,
                      include_arrival_ports: bool = False) -> dict[str, Any]:
        """
        Conjunto completo de argumentos nomeados esperado pelas funções
        `get_exporter_*`, com None nas dimensões sem restrição.
        """
        params = self.to_rpc_params()
        args: dict[str, Any] = {}
        for attr, _, rpc_name, _ in DIMENSIONS:
            if attr == "exporter_ids" and not include_exporters:
                continue
            if attr == "arrival_port_ids" and not include_arrival_ports:
                continue
            args[rpc_name] = params.get(rpc_name)
        args["p_week_from"] = params.get("p_week_from")
        args["p_week_to"] = params.get("p_week_to")
        return args

    def has_restrictions(self) -> bool:
        return bool(self.to_rpc_params())

    def season_pair(self) -> Optional[tuple[int, int]]:
        """(temporada atual, temporada anterior) quando há 2+ temporadas selecionadas."""
        if len(self.season_ids) < 2:
            return None
        return max(self.season_ids), min(self.season_ids)

    # ------------------------------------------------------------------
    # Predicados da varredura direta
    # ------------------------------------------------------------------

    def to_predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        for attr, column, _, _ in SCAN_DIMENSIONS:
            values = getattr(self, attr)
            if values:
                predicates.append(Predicate(column, "IN", list(values)))
        if self.week_from:
            predicates.append(Predicate(WEEK_COLUMN, ">=", self.week_from))
        if self.week_to:
            predicates.append(Predicate(WEEK_COLUMN, "<=", self.week_to))
        return predicates

    # ------------------------------------------------------------------
    # Conversões
    # ------------------------------------------------------------------

    def with_exporter(self, exporter_id: int) -> "ShipmentFilters":
        return replace(self, exporter_ids=[exporter_id])

    @classmethod
    def from_query_params(cls, params: Mapping[str, str]) -> "ShipmentFilters":
        """Lê filtros no formato de URL (`seasons=1,2&weekFrom=2024-W01`)."""
        values: dict[str, Any] = {
            attr: parse_id_list(params.get(url_name))
            for attr, _, _, url_name in DIMENSIONS
        }
        granularity = params.get("granularity")
        metric = params.get("metric")
        return cls(
            **values,
            week_from=params.get("weekFrom") or None,
            week_to=params.get("weekTo") or None,
            granularity=granularity if granularity in GRANULARITIES else "week",
            metric=metric if metric in METRICS else "kilograms",
        )

    def to_query_params(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for attr, _, _, url_name in DIMENSIONS:
            values = getattr(self, attr)
            if values:
                out[url_name] = ",".join(str(v) for v in values)
        if self.week_from:
            out["weekFrom"] = self.week_from
        if self.week_to:
            out["weekTo"] = self.week_to
        if self.granularity != "week":
            out["granularity"] = self.granularity
        if self.metric != "kilograms":
            out["metric"] = self.metric
        return out


def render_predicates(predicates: list[Predicate]) -> tuple[list[str], dict[str, Any]]:
    """
    Converte predicados em condições SQL e parâmetros nomeados.

    Returns:
        Tupla contendo lista de condições WHERE e dicionário de parâmetros
    """
    conditions: list[str] = []
    params: dict[str, Any] = {}
    for index, predicate in enumerate(predicates):
        name = f"{predicate.column}_{index}"
        if predicate.operator == "IN":
            conditions.append(f"{predicate.column} = ANY(:{name})")
        else:
            conditions.append(f"{predicate.column} {predicate.operator} :{name}")
        params[name] = predicate.value
    return conditions, params
