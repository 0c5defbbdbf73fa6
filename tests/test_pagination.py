import pytest

from expohub.repositories.pagination import fetch_all_pages


def _source(total: int):
    rows = [{"id": i} for i in range(total)]
    requests = []

    def fetch_page(offset: int, limit: int):
        requests.append((offset, limit))
        return rows[offset:offset + limit]

    return fetch_page, requests


def test_short_last_page_stops_fetching():
    fetch_page, requests = _source(2500)

    rows = fetch_all_pages(fetch_page, page_size=1000)

    assert len(rows) == 2500
    assert requests == [(0, 1000), (1000, 1000), (2000, 1000)]
    assert rows[-1] == {"id": 2499}


def test_exact_multiple_needs_one_empty_page():
    fetch_page, requests = _source(2000)

    rows = fetch_all_pages(fetch_page, page_size=1000)

    assert len(rows) == 2000
    assert len(requests) == 3


def test_no_rows():
    fetch_page, requests = _source(0)

    assert fetch_all_pages(fetch_page) == []
    assert requests == [(0, 1000)]


def test_errors_propagate():
    def broken(offset, limit):
        if offset:
            raise RuntimeError("connection lost")
        return [{"id": i} for i in range(limit)]

    with pytest.raises(RuntimeError):
        fetch_all_pages(broken, page_size=10)


def test_page_size_must_be_positive():
    with pytest.raises(ValueError):
        fetch_all_pages(lambda offset, limit: [], page_size=0)
