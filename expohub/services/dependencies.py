"""FastAPI dependency providers for service layer."""

from fastapi import Depends

from expohub.core.ai import TextGenerator, get_text_generator
from expohub.infra.db import DatabaseNotConfiguredError, is_configured
from expohub.repositories.lookup_repository import LookupRepository
from expohub.repositories.protocols import LookupRepositoryProtocol, ShipmentRepositoryProtocol
from expohub.repositories.shipment_repository import ShipmentRepository
from expohub.services.assistant_service import AssistantService
from expohub.services.dashboard_service import DashboardService
from expohub.services.exporter_service import ExporterAnalyticsService


def get_shipment_repository() -> ShipmentRepositoryProtocol:
    return ShipmentRepository()


def get_lookup_repository() -> LookupRepositoryProtocol:
    return LookupRepository()


def get_generator() -> TextGenerator:
    return get_text_generator()


def get_exporter_service(
    shipments: ShipmentRepositoryProtocol = Depends(get_shipment_repository),
    lookups: LookupRepositoryProtocol = Depends(get_lookup_repository),
) -> ExporterAnalyticsService:
    return ExporterAnalyticsService(shipments, lookups)


def get_dashboard_service(
    shipments: ShipmentRepositoryProtocol = Depends(get_shipment_repository),
) -> DashboardService:
    return DashboardService(shipments)


def get_assistant_service(
    shipments: ShipmentRepositoryProtocol = Depends(get_shipment_repository),
    lookups: LookupRepositoryProtocol = Depends(get_lookup_repository),
    generator: TextGenerator = Depends(get_generator),
) -> AssistantService:
    return AssistantService(shipments, lookups, generator)


def require_database() -> None:
    """Sem DATABASE_URL as rotas de dados respondem 503."""
    if not is_configured():
        raise DatabaseNotConfiguredError(
            "Database not configured. Set DATABASE_URL to the Supabase Postgres connection string."
        )


def database_configured() -> bool:
    return is_configured()
