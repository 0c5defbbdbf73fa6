"""
Repositório das tabelas de referência (temporadas, exportadores, espécies, mercados...).
"""

from typing import Any, Optional, Sequence

from expohub.domain.catalog import OPTION_TABLES
from expohub.infra.db import fetch_all, fetch_one

_LOOKUP_TABLES = frozenset(OPTION_TABLES.values()) | {"importers"}


def _checked(table: str) -> str:
    if table not in _LOOKUP_TABLES:
        raise ValueError(f"Tabela de referência não permitida: {table}")
    return table


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class LookupRepository:
    """
    Repositório para as listas de opções dos filtros e resolução de nomes.
    """

    @staticmethod
    def get_options(table: str) -> list[dict]:
        """
        Lista `{id, name}` de uma tabela de referência, ordenada por nome.
        """
        query = f"SELECT id, name FROM {_checked(table)} ORDER BY name"
        return fetch_all(query)

    @staticmethod
    def get_names(table: str, ids: Sequence[Any]) -> dict[int, str]:
        """
        Resolve ids em nomes. Ids nulos são ignorados.
        """
        wanted = sorted({i for i in ids if i is not None})
        if not wanted:
            return {}
        query = f"SELECT id, name FROM {_checked(table)} WHERE id = ANY(:ids)"
        rows = fetch_all(query, {"ids": wanted})
        return {row["id"]: row["name"] for row in rows}

    @staticmethod
    def search_exporters(term: str, limit: int = 5) -> list[dict]:
        """
        Busca exportadores por substring do nome, sem diferenciar maiúsculas.
        """
        query = """
            SELECT id, name
            FROM exporters
            WHERE name ILIKE :pattern ESCAPE '\\'
            ORDER BY name
            LIMIT :limit
        """
        return fetch_all(query, {"pattern": f"%{_escape_like(term)}%", "limit": limit})

    @staticmethod
    def get_exporter(exporter_id: int) -> Optional[dict]:
        query = "SELECT id, name FROM exporters WHERE id = :exporter_id"
        return fetch_one(query, {"exporter_id": exporter_id})
