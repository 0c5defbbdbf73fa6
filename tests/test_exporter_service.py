import asyncio

import pytest
from sqlalchemy.exc import SQLAlchemyError

from expohub.domain.catalog import SNAPSHOT
from expohub.domain.filters import ShipmentFilters
from expohub.services.dashboard_service import DashboardService
from expohub.services.exporter_service import ExporterAnalyticsService, ExporterNotFoundError
from tests.fakes import LOOKUP_TABLES, FakeLookupRepository, FakeShipmentRepository

SCAN_ROWS = [
    {"exporter_id": 1, "kilograms": 600, "boxes": 100, "importer_id": 20, "variety_id": 100, "country_id": 7},
    {"exporter_id": 2, "kilograms": 400, "boxes": 100, "importer_id": 21, "variety_id": 100, "country_id": 7},
]

TOPS = {
    "importers": [{"id": 20, "name": "IMPORTER A", "kilograms": 600, "boxes": 100}],
    "arrival_ports": [
        {"id": 5, "name": "SHANGHAI", "kilograms": 300, "boxes": 50},
        {"id": 6, "name": "HONG KONG", "kilograms": 100, "boxes": 20},
    ],
}


def _service(shipments, lookups=None):
    return ExporterAnalyticsService(shipments, lookups or FakeLookupRepository(LOOKUP_TABLES))


def test_filtered_request_uses_scan_totals():
    shipments = FakeShipmentRepository(scan_rows=SCAN_ROWS, tops=TOPS)
    filters = ShipmentFilters(species_ids=[15])

    response = asyncio.run(_service(shipments).get_analytics(filters))

    global_kpi = response["kpis"]["global"]
    assert global_kpi["kilograms"] == 1000
    assert global_kpi["kgPerBox"] == pytest.approx(5.0)
    assert global_kpi["totalsSource"] == "scan"
    assert global_kpi["yoyKg"] is None
    exporters = response["kpis"]["exporters"]
    assert [e["exporterName"] for e in exporters] == ["ALLEGRIA FOODS SPA", "DOLE-CHILE S.A."]
    assert sum(e["kilograms"] for e in exporters) == global_kpi["kilograms"]
    assert not shipments.called("get_kpis")
    assert not shipments.called("get_yoy_growth")


def test_charts_shape_and_transport_split_mirrors_ports():
    shipments = FakeShipmentRepository(scan_rows=SCAN_ROWS, tops=TOPS)

    charts = asyncio.run(_service(shipments).get_analytics(ShipmentFilters(season_ids=[4])))["charts"]

    assert set(charts) == {
        "timeseries", "topImporters", "topMarkets", "topCountries",
        "topVarieties", "transportSplit", "arrivalPorts", "rankings",
    }
    assert charts["transportSplit"] == charts["arrivalPorts"]
    assert charts["arrivalPorts"][0]["sharePct"] == pytest.approx(75.0)
    assert charts["topMarkets"] == []
    top_types = sorted(call[2] for call in shipments.called("get_tops"))
    assert top_types == ["arrival_ports", "countries", "importers", "markets", "varieties"]


def test_unfiltered_request_uses_kpis_document():
    shipments = FakeShipmentRepository(
        kpis={
            "global": {"kilograms": 900, "boxes": 300, "importersActive": 5, "varietiesActive": 2},
            "exporters": [{"exporterId": 3, "exporterName": "GREENVIC SPA", "kilograms": 900, "boxes": 300}],
        }
    )

    response = asyncio.run(_service(shipments).get_analytics(ShipmentFilters()))

    assert response["kpis"]["global"]["totalsSource"] == "remote"
    assert response["kpis"]["global"]["importersActive"] == 5
    assert response["kpis"]["exporters"][0]["exporterName"] == "GREENVIC SPA"
    assert not shipments.called("scan_shipments")


def test_scan_failure_falls_back_to_remote_then_snapshot():
    failing_scan = {"scan_shipments": SQLAlchemyError("statement timeout")}
    remote = FakeShipmentRepository(
        failures=failing_scan,
        filtered_totals={"total_kilograms": 8209516, "total_boxes": 3584626, "unique_importers": 12},
    )
    filters = ShipmentFilters(season_ids=[3], species_ids=[15])

    global_kpi = asyncio.run(_service(remote).get_analytics(filters))["kpis"]["global"]
    assert global_kpi["totalsSource"] == "remote"
    assert global_kpi["kilograms"] == 8209516
    assert global_kpi["importersActive"] == 12

    snapshot = FakeShipmentRepository(
        failures={**failing_scan, "get_filtered_totals": SQLAlchemyError("missing function")}
    )
    global_kpi = asyncio.run(_service(snapshot).get_analytics(filters))["kpis"]["global"]
    assert global_kpi["totalsSource"] == "snapshot"
    assert global_kpi["kilograms"] == SNAPSHOT.kilograms
    assert global_kpi["marketCoverage"] == SNAPSHOT.countries


def test_season_comparison_between_max_and_min_season():
    shipments = FakeShipmentRepository(
        scan_rows=SCAN_ROWS,
        yoy=[{"current_kilograms": 120, "previous_kilograms": 100, "current_boxes": 10, "previous_boxes": 10}],
        retention=[{"retention_rate": 0.4}, {"retention_rate": 0.6}],
    )
    filters = ShipmentFilters(season_ids=[2, 4, 3], exporter_ids=[1])

    global_kpi = asyncio.run(_service(shipments).get_analytics(filters))["kpis"]["global"]

    assert shipments.called("get_yoy_growth") == [("get_yoy_growth", 4, 2, [1])]
    assert global_kpi["yoyKg"] == pytest.approx(20.0)
    assert global_kpi["yoyBoxes"] == pytest.approx(0.0)
    assert global_kpi["importersRetention"] == pytest.approx(0.5)


def test_yoy_failure_degrades_to_none():
    shipments = FakeShipmentRepository(
        scan_rows=SCAN_ROWS,
        failures={"get_yoy_growth": SQLAlchemyError("boom")},
        retention=[{"retention_rate": 0.8}],
    )

    global_kpi = asyncio.run(
        _service(shipments).get_analytics(ShipmentFilters(season_ids=[3, 4]))
    )["kpis"]["global"]

    assert global_kpi["yoyKg"] is None
    assert global_kpi["importersRetention"] == pytest.approx(0.8)


def test_chart_failure_aborts_request():
    shipments = FakeShipmentRepository(failures={"get_rankings": SQLAlchemyError("down")})

    with pytest.raises(SQLAlchemyError):
        asyncio.run(_service(shipments).get_analytics(ShipmentFilters()))


def test_profile_and_unknown_exporter():
    shipments = FakeShipmentRepository(
        exporter_totals={"total_kilograms": 1000, "total_boxes": 0, "seasons_active": 2},
        tops=TOPS,
    )
    service = _service(shipments)

    profile = asyncio.run(service.get_profile(2, ShipmentFilters(season_ids=[4])))
    body = profile.to_dict()
    assert body["name"] == "DOLE-CHILE S.A."
    assert body["avgKgPerBox"] is None
    assert body["seasonsActive"] == 2
    assert body["topArrivalPorts"][0]["name"] == "SHANGHAI"
    scoped = shipments.called("get_exporter_totals")[0][1]
    assert scoped.exporter_ids == [2] and scoped.season_ids == [4]

    with pytest.raises(ExporterNotFoundError):
        asyncio.run(service.get_profile(999))


def test_filter_options_lists_every_table():
    options = asyncio.run(_service(FakeShipmentRepository()).get_filter_options())

    assert list(options) == [
        "seasons", "exporters", "species", "varieties", "markets",
        "countries", "regions", "transportTypes", "arrivalPorts",
    ]
    assert options["species"][0]["name"] == "APPLES"
    assert options["regions"] == []


def test_dashboard_without_data_is_flagged_as_fallback():
    summary = asyncio.run(DashboardService(FakeShipmentRepository()).get_summary())

    assert summary["isFallback"] is True
    assert summary["kpis"]["totalKilograms"] == round(SNAPSHOT.kilograms)
    assert summary["topExporters"] == []
    assert summary["trends"] == []


def test_dashboard_with_remote_data():
    shipments = FakeShipmentRepository(
        kpis={
            "global": {"kilograms": 1000, "boxes": 250},
            "exporters": [
                {"exporterId": i, "exporterName": f"EXP {i}", "kilograms": 100 * i, "boxes": 10}
                for i in range(1, 8)
            ],
        },
        timeseries=[{"period": f"2024-{m:02d}", "kilograms": m, "boxes": m} for m in range(1, 16)],
        tops={"varieties": [{"id": 100, "name": "LAPINS", "kilograms": 50, "boxes": 5}]},
        failures={"get_tops": SQLAlchemyError("varieties unavailable")},
    )

    summary = asyncio.run(DashboardService(shipments).get_summary())

    assert summary["isFallback"] is False
    assert summary["kpis"] == {
        "totalExporters": 7,
        "totalKilograms": 1000,
        "totalBoxes": 250,
        "averagePerExporter": 143,
    }
    assert [e["name"] for e in summary["topExporters"]] == ["EXP 7", "EXP 6", "EXP 5", "EXP 4", "EXP 3"]
    assert len(summary["trends"]) == 12
    assert summary["trends"][-1]["period"] == "2024-15"
    assert summary["distribution"] == {"species": [], "markets": []}
    timeseries_filters = shipments.called("get_timeseries")[0][1]
    assert timeseries_filters.granularity == "month"
