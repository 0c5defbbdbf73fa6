"""Exporters dashboard endpoints."""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.exc import SQLAlchemyError

from expohub.core.cache import etag_json
from expohub.core.logging import api_logger
from expohub.domain.filters import Granularity, Metric, ShipmentFilters
from expohub.services.dependencies import get_exporter_service, require_database
from expohub.services.exporter_service import ExporterAnalyticsService, ExporterNotFoundError


router = APIRouter(
    prefix="/api/exporters",
    tags=["exporters"],
    dependencies=[Depends(require_database)],
)


# -----------------------------------------------------------------------------
# Request Models
# -----------------------------------------------------------------------------


class FiltersIn(BaseModel):
    """Corpo de `POST /api/exporters`, no formato camelCase da UI."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    season_ids: Optional[List[int]] = Field(None, alias="seasonIds")
    exporter_ids: Optional[List[int]] = Field(None, alias="exporterIds")
    species_ids: Optional[List[int]] = Field(None, alias="speciesIds")
    variety_ids: Optional[List[int]] = Field(None, alias="varietyIds")
    market_ids: Optional[List[int]] = Field(None, alias="marketIds")
    country_ids: Optional[List[int]] = Field(None, alias="countryIds")
    region_ids: Optional[List[int]] = Field(None, alias="regionIds")
    transport_type_ids: Optional[List[int]] = Field(None, alias="transportTypeIds")
    arrival_port_ids: Optional[List[int]] = Field(None, alias="arrivalPortIds")
    week_from: Optional[str] = Field(None, alias="weekFrom")
    week_to: Optional[str] = Field(None, alias="weekTo")
    granularity: Granularity = "week"
    metric: Metric = "kilograms"

    def to_domain(self) -> ShipmentFilters:
        return ShipmentFilters(
            season_ids=self.season_ids or [],
            exporter_ids=self.exporter_ids or [],
            species_ids=self.species_ids or [],
            variety_ids=self.variety_ids or [],
            market_ids=self.market_ids or [],
            country_ids=self.country_ids or [],
            region_ids=self.region_ids or [],
            transport_type_ids=self.transport_type_ids or [],
            arrival_port_ids=self.arrival_port_ids or [],
            week_from=self.week_from or None,
            week_to=self.week_to or None,
            granularity=self.granularity,
            metric=self.metric,
        )


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


# -----------------------------------------------------------------------------
# Endpoints
# -----------------------------------------------------------------------------


@router.post("")
async def exporters_analytics(
    body: FiltersIn,
    service: ExporterAnalyticsService = Depends(get_exporter_service),
):
    """KPIs globais e por exportador, séries e tops para os filtros recebidos."""
    try:
        return await service.get_analytics(body.to_domain())
    except SQLAlchemyError as exc:
        api_logger.error("Error in exporters API", exc=exc)
        return _error(500, str(exc))


@router.get("/options")
async def exporters_options(
    request: Request,
    service: ExporterAnalyticsService = Depends(get_exporter_service),
):
    """Listas de opções dos filtros (com ETag)."""
    try:
        payload = await service.get_filter_options()
    except SQLAlchemyError as exc:
        api_logger.error("Error fetching filter options", exc=exc)
        return _error(500, str(exc))
    return etag_json(request, payload)


@router.get("/{exporter_id}/profile")
async def exporter_profile(
    exporter_id: int,
    request: Request,
    service: ExporterAnalyticsService = Depends(get_exporter_service),
):
    """Perfil de um exportador; filtros opcionais na query string (`seasons=1,2`)."""
    filters = ShipmentFilters.from_query_params(request.query_params)
    try:
        profile = await service.get_profile(exporter_id, filters)
    except ExporterNotFoundError as exc:
        return _error(404, str(exc))
    except SQLAlchemyError as exc:
        api_logger.error("Error building exporter profile", exc=exc, exporter_id=exporter_id)
        return _error(500, str(exc))
    return profile.to_dict()
