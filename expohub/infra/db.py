from __future__ import annotations
import re
from typing import Any, Dict, List, Mapping, Optional
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, Result
from expohub.core.config import settings

# -----------------------------------------------------------------------------
# 1) Engine (pool de conexões com o Postgres do Supabase)
# -----------------------------------------------------------------------------

_engine: Optional[Engine] = None

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]*$")


class DatabaseNotConfiguredError(RuntimeError):
    """DATABASE_URL ausente: as rotas respondem 503 em vez de quebrar."""


def is_configured() -> bool:
    return settings.database_configured


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        if not settings.database_configured:
            raise DatabaseNotConfiguredError(
                "Database not configured. Set DATABASE_URL to the Supabase Postgres connection string."
            )
        _engine = create_engine(
            settings.DATABASE_URL,
            pool_pre_ping=True,
            pool_size=10,
            max_overflow=20,
            future=True,
        )
    return _engine


def dispose_engine() -> None:
    global _engine
    if _engine is not None:
        _engine.dispose()
        _engine = None

# -----------------------------------------------------------------------------
# 2) Healthcheck (pronto para /readyz)
# -----------------------------------------------------------------------------

def health_check() -> Dict[str, Any]:
    eng = get_engine()
    with eng.connect() as conn:
        conn.execute(text("SELECT 1"))

        db = conn.execute(text("SELECT current_database()")).scalar()
        user = conn.execute(text("SELECT current_user")).scalar_one()
        version = conn.execute(text("SELECT version()")).scalar_one()
        return {
            "ok": True,
            "database": db,
            "user": user,
            "version": version,
        }

# -----------------------------------------------------------------------------
# 3) Helpers de consulta (SELECT)
# -----------------------------------------------------------------------------

def _timeout(timeout_ms: Optional[int]) -> Optional[int]:
    return timeout_ms if timeout_ms is not None else settings.DB_STATEMENT_TIMEOUT_MS


def fetch_all(sql: str, params: Optional[Dict[str, Any]] = None,
              timeout_ms: Optional[int] = None) -> List[Dict[str, Any]]:
    eng = get_engine()
    timeout_ms = _timeout(timeout_ms)
    with eng.connect() as conn:
        if timeout_ms:
            conn.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))
        result: Result = conn.execute(text(sql), params or {})
        rows = result.mappings().all()
        return [dict(r) for r in rows]


def fetch_one(sql: str, params: Optional[Dict[str, Any]] = None,
              timeout_ms: Optional[int] = None) -> Optional[Dict[str, Any]]:
    rows = fetch_all(sql, params=params, timeout_ms=timeout_ms)
    return rows[0] if rows else None


def fetch_scalar(sql: str, params: Optional[Dict[str, Any]] = None,
                 timeout_ms: Optional[int] = None) -> Any:
    eng = get_engine()
    timeout_ms = _timeout(timeout_ms)
    with eng.connect() as conn:
        if timeout_ms:
            conn.execute(text(f"SET LOCAL statement_timeout = {int(timeout_ms)}"))
        return conn.execute(text(sql), params or {}).scalar()

# -----------------------------------------------------------------------------
# 4) Funções remotas (RPC) com argumentos nomeados
# -----------------------------------------------------------------------------

def _call_expression(name: str, args: Mapping[str, Any]) -> str:
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid function name: {name}")
    for key in args:
        if not _IDENTIFIER.match(key):
            raise ValueError(f"Invalid argument name: {key}")
    named = ", ".join(f"{key} => :{key}" for key in args)
    return f"{name}({named})"


def call_function(name: str, args: Optional[Mapping[str, Any]] = None,
                  timeout_ms: Optional[int] = None) -> List[Dict[str, Any]]:
    """Run a set-returning database function: ``SELECT * FROM name(arg => :arg, ...)``."""
    args = dict(args or {})
    return fetch_all(f"SELECT * FROM {_call_expression(name, args)}", args, timeout_ms=timeout_ms)


def call_scalar_function(name: str, args: Optional[Mapping[str, Any]] = None,
                         timeout_ms: Optional[int] = None) -> Any:
    """Run a function returning a single (usually json) value."""
    args = dict(args or {})
    return fetch_scalar(f"SELECT {_call_expression(name, args)}", args, timeout_ms=timeout_ms)
