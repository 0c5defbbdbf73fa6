import random

import pytest

from expohub.services.aggregation import (
    aggregate_shipments,
    average_retention,
    exporter_kpis_from_remote,
    share_items,
    yoy_growth,
)

ROWS = [
    {"exporter_id": 1, "kilograms": 1000, "boxes": 200, "importer_id": 10, "variety_id": 100, "country_id": 7},
    {"exporter_id": 1, "kilograms": 500, "boxes": 100, "importer_id": 11, "variety_id": 100, "country_id": 8},
    {"exporter_id": 2, "kilograms": 300, "boxes": 0, "importer_id": 10, "variety_id": None, "country_id": 7},
    {"exporter_id": None, "kilograms": 50, "boxes": 10, "importer_id": None, "variety_id": 101, "country_id": None},
]


def test_global_kilograms_equal_sum_of_exporters():
    aggregate = aggregate_shipments(ROWS, {1: "ALLEGRIA FOODS SPA"})

    assert aggregate.global_kpi.kilograms == sum(e.kilograms for e in aggregate.exporters) == 1850
    assert aggregate.global_kpi.boxes == 310
    assert aggregate.rows == 4


def test_distinct_counts_ignore_null_ids():
    aggregate = aggregate_shipments(ROWS)

    assert aggregate.global_kpi.importers_active == 2
    assert aggregate.global_kpi.varieties_active == 2
    assert aggregate.global_kpi.market_coverage == 2
    assert aggregate.unique_exporters == 2
    assert aggregate.unique_countries == 2

    by_id = {e.exporter_id: e for e in aggregate.exporters}
    assert by_id[1].importers_active == 2
    assert by_id[1].varieties_active == 1
    assert by_id[2].varieties_active == 0
    assert by_id[None].exporter_name == "Unknown"


def test_exporters_sorted_and_named():
    aggregate = aggregate_shipments(ROWS, {1: "ALLEGRIA FOODS SPA"})

    assert [e.exporter_id for e in aggregate.exporters] == [1, 2, None]
    assert aggregate.exporters[0].exporter_name == "ALLEGRIA FOODS SPA"
    assert aggregate.exporters[1].exporter_name == "Exporter 2"


def test_kg_per_box_is_none_without_boxes():
    aggregate = aggregate_shipments(ROWS)
    by_id = {e.exporter_id: e for e in aggregate.exporters}

    assert by_id[2].kg_per_box is None
    assert by_id[2].to_dict()["kgPerBox"] is None
    assert by_id[1].kg_per_box == pytest.approx(5.0)

    zero = aggregate_shipments([{"exporter_id": 1, "kilograms": 10, "boxes": 0}])
    assert zero.global_kpi.kg_per_box is None


def test_order_independent():
    shuffled = list(ROWS)
    random.Random(7).shuffle(shuffled)

    first = aggregate_shipments(ROWS)
    second = aggregate_shipments(shuffled)
    assert first.global_kpi == second.global_kpi
    assert [e.to_dict() for e in first.exporters] == [e.to_dict() for e in second.exporters]


def test_no_rows_gives_zeroed_global():
    aggregate = aggregate_shipments([])

    assert aggregate.empty
    assert aggregate.exporters == []
    assert aggregate.global_kpi.kilograms == 0
    assert aggregate.global_kpi.kg_per_box is None


def test_share_items_relative_to_call_total():
    items = share_items(
        [
            {"id": 1, "name": "CHINA", "kilograms": 300, "boxes": 30},
            {"id": 2, "name": "USA", "kilograms": 100, "boxes": 10},
            {"id": 3, "name": "KOREA", "kilograms": 600, "boxes": 60},
        ],
        limit=2,
    )

    assert [i.name for i in items] == ["KOREA", "CHINA"]
    assert items[0].share_pct == pytest.approx(60.0)
    assert items[1].share_pct == pytest.approx(30.0)
    assert share_items([{"id": 1, "name": "X", "kilograms": 0, "boxes": 0}])[0].share_pct == 0.0


def test_yoy_growth_and_retention():
    rows = [
        {"current_kilograms": 150, "previous_kilograms": 100, "current_boxes": 20, "previous_boxes": 0},
        {"current_kilograms": 50, "previous_kilograms": 100, "current_boxes": 10, "previous_boxes": 0},
    ]

    assert yoy_growth(rows) == (pytest.approx(0.0), None)
    assert yoy_growth([]) == (None, None)
    assert average_retention([{"retention_rate": 0.5}, {"retention_rate": 0.7}]) == pytest.approx(0.6)
    assert average_retention([]) is None


def test_remote_exporter_rows():
    kpis = exporter_kpis_from_remote(
        [
            {"exporterId": 2, "exporterName": "DOLE-CHILE S.A.", "kilograms": 10, "boxes": 2},
            {"exporterId": 3, "kilograms": 30, "boxes": 3, "importersActive": 4},
        ]
    )

    assert [k.exporter_id for k in kpis] == [3, 2]
    assert kpis[0].exporter_name == "Exporter 3"
    assert kpis[0].importers_active == 4
