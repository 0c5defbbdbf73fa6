from __future__ import annotations
import hashlib
import json
from typing import Any, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response

from expohub.core.config import settings

# ---------------------------------------------------------------------------
# ETag das listas de referência (opções de filtro)
# ---------------------------------------------------------------------------

def etag_for(payload: Any) -> str:
    """ETag fraco-estável: md5 do JSON determinístico, entre aspas como manda o HTTP."""
    body = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), sort_keys=True, default=str)
    return f'"{hashlib.md5(body.encode("utf-8")).hexdigest()}"'


def _matches(if_none_match: Optional[str], etag: str) -> bool:
    if not if_none_match:
        return False
    candidates = {tag.strip() for tag in if_none_match.split(",")}
    return "*" in candidates or etag in candidates or etag.strip('"') in candidates


def cache_control(max_age: Optional[int] = None, swr: Optional[int] = None) -> str:
    max_age = settings.CACHE_MAX_AGE if max_age is None else max_age
    swr = settings.CACHE_SWR if swr is None else swr
    return f"public, max-age={int(max_age)}, stale-while-revalidate={int(swr)}"


def etag_json(
    request: Request,
    payload: Any,
    *,
    max_age: Optional[int] = None,
    swr: Optional[int] = None,
) -> Response:
    """JSON com ETag/Cache-Control; 304 quando o cliente já tem a mesma versão."""
    etag = etag_for(payload)
    headers = {"ETag": etag, "Cache-Control": cache_control(max_age, swr)}

    if _matches(request.headers.get("If-None-Match"), etag):
        return Response(status_code=304, headers=headers)

    return JSONResponse(content=payload, headers=headers)
