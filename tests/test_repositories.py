import json

import pytest

from expohub.domain.filters import ShipmentFilters
from expohub.infra import db
from expohub.repositories import lookup_repository, shipment_repository
from expohub.repositories.lookup_repository import LookupRepository
from expohub.repositories.shipment_repository import ShipmentRepository


class RecordingDatabase:
    """Captures the SQL sent to the query helpers and answers with canned rows."""

    def __init__(self):
        self.queries: list[tuple[str, dict]] = []
        self.rows = lambda sql, params: []
        self.scalar = None

    def _record(self, sql: str, params) -> dict:
        params = dict(params or {})
        self.queries.append((" ".join(sql.split()), params))
        return params

    def fetch_all(self, sql, params=None, timeout_ms=None):
        params = self._record(sql, params)
        return self.rows(sql, params)

    def fetch_scalar(self, sql, params=None, timeout_ms=None):
        self._record(sql, params)
        return self.scalar


@pytest.fixture
def database(monkeypatch) -> RecordingDatabase:
    recorder = RecordingDatabase()
    monkeypatch.setattr(db, "fetch_all", recorder.fetch_all)
    monkeypatch.setattr(db, "fetch_scalar", recorder.fetch_scalar)
    monkeypatch.setattr(shipment_repository, "fetch_all", recorder.fetch_all)
    monkeypatch.setattr(lookup_repository, "fetch_all", recorder.fetch_all)
    return recorder


# -----------------------------------------------------------------------------
# Varredura paginada
# -----------------------------------------------------------------------------


def test_scan_renders_predicates_and_pages_through_rows(database):
    source = [{"exporter_id": i % 7, "kilograms": 1} for i in range(2500)]
    database.rows = lambda sql, params: source[params["offset"]:params["offset"] + params["limit"]]
    filters = ShipmentFilters(
        season_ids=[4], species_ids=[15], arrival_port_ids=[5], week_from="2024-W01"
    )

    rows = ShipmentRepository.scan_shipments(filters, ["exporter_id", "kilograms"])

    assert len(rows) == 2500
    assert [params["offset"] for _, params in database.queries] == [0, 1000, 2000]
    sql, params = database.queries[0]
    assert sql == (
        "SELECT exporter_id, kilograms FROM unified_shipments"
        " WHERE season_id = ANY(:season_id_0) AND species_id = ANY(:species_id_1)"
        " AND etd_week >= :etd_week_2"
        " ORDER BY id LIMIT :limit OFFSET :offset"
    )
    assert params == {
        "season_id_0": [4],
        "species_id_1": [15],
        "etd_week_2": "2024-W01",
        "limit": 1000,
        "offset": 0,
    }


def test_scan_without_filters_has_no_where_clause(database):
    ShipmentRepository.scan_shipments(ShipmentFilters(), ["kilograms"])

    sql, params = database.queries[0]
    assert sql == "SELECT kilograms FROM unified_shipments ORDER BY id LIMIT :limit OFFSET :offset"
    assert params == {"limit": 1000, "offset": 0}


def test_scan_rejects_unknown_columns(database):
    with pytest.raises(ValueError):
        ShipmentRepository.scan_shipments(ShipmentFilters(), ["kilograms", "password"])

    assert database.queries == []


def test_exporter_shipments_read_the_materialized_view(database):
    ShipmentRepository.get_exporter_shipments([1, 2])

    sql, params = database.queries[0]
    assert "FROM unified_shipments_mv WHERE exporter_id = ANY(:exporter_id_0)" in sql
    assert params["exporter_id_0"] == [1, 2]


# -----------------------------------------------------------------------------
# Funções remotas
# -----------------------------------------------------------------------------


def test_rankings_drop_the_exporter_restriction(database):
    filters = ShipmentFilters(season_ids=[4], exporter_ids=[1])

    ShipmentRepository.get_rankings(filters)

    sql, params = database.queries[0]
    assert sql.startswith(
        "SELECT * FROM get_exporter_rankings(p_season_ids => :p_season_ids, p_species_ids => :p_species_ids"
    )
    assert "p_exporter_ids" not in sql
    assert "p_exporter_ids" not in params
    assert params["p_season_ids"] == [4]
    assert params["p_species_ids"] is None


def test_filtered_totals_pass_only_restricted_dimensions(database):
    database.rows = lambda sql, params: [{"total_kilograms": 8209516, "total_boxes": 3584626}]
    filters = ShipmentFilters(season_ids=[3], species_ids=[15])

    totals = ShipmentRepository.get_filtered_totals(filters)

    assert totals == {"total_kilograms": 8209516, "total_boxes": 3584626}
    assert database.queries == [(
        "SELECT * FROM get_filtered_totals(p_season_ids => :p_season_ids, p_species_ids => :p_species_ids)",
        {"p_season_ids": [3], "p_species_ids": [15]},
    )]


def test_filtered_totals_without_rows(database):
    assert ShipmentRepository.get_filtered_totals(ShipmentFilters()) is None
    assert database.queries == [("SELECT * FROM get_filtered_totals()", {})]


def test_kpis_document_is_decoded_from_json_text(database):
    database.scalar = json.dumps({"global": {"kilograms": 10}, "exporters": []})

    payload = ShipmentRepository.get_kpis(ShipmentFilters(exporter_ids=[2]))

    assert payload == {"global": {"kilograms": 10}, "exporters": []}
    sql, params = database.queries[0]
    assert sql.startswith("SELECT get_exporter_kpis(p_season_ids => :p_season_ids, p_exporter_ids => :p_exporter_ids")
    assert params["p_exporter_ids"] == [2]


@pytest.mark.parametrize(
    "name, args",
    [
        ("get_exporter_tops; DROP TABLE exporters", {}),
        ("GetExporterTops", {}),
        ("get_exporter_tops", {"p_top_type) --": "markets"}),
    ],
)
def test_call_function_rejects_unsafe_identifiers(database, name, args):
    with pytest.raises(ValueError):
        db.call_function(name, args)

    assert database.queries == []


def test_call_function_uses_named_arguments(database):
    db.call_function("get_exporter_tops", {"p_top_type": "markets", "p_season_ids": None})

    assert database.queries == [(
        "SELECT * FROM get_exporter_tops(p_top_type => :p_top_type, p_season_ids => :p_season_ids)",
        {"p_top_type": "markets", "p_season_ids": None},
    )]


# -----------------------------------------------------------------------------
# Tabelas de referência
# -----------------------------------------------------------------------------


def test_search_exporters_escapes_like_wildcards(database):
    LookupRepository.search_exporters("50%_off\\", limit=3)

    sql, params = database.queries[0]
    assert "WHERE name ILIKE :pattern" in sql
    assert params == {"pattern": "%50\\%\\_off\\\\%", "limit": 3}


def test_search_exporters_is_a_substring_match(database):
    LookupRepository.search_exporters("greenvic")

    _, params = database.queries[0]
    assert params == {"pattern": "%greenvic%", "limit": 5}


def test_get_names_skips_nulls_and_deduplicates(database):
    database.rows = lambda sql, params: [{"id": 15, "name": "CHERRIES"}]

    assert LookupRepository.get_names("species", [None]) == {}
    assert database.queries == []

    names = LookupRepository.get_names("species", [16, None, 15, 16])

    assert names == {15: "CHERRIES"}
    assert database.queries[0][1] == {"ids": [15, 16]}


def test_lookup_tables_are_allow_listed(database):
    with pytest.raises(ValueError):
        LookupRepository.get_options("pg_user")

    LookupRepository.get_options("species")
    assert database.queries == [("SELECT id, name FROM species ORDER BY name", {})]
