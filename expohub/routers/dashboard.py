"""Home dashboard summary."""

from fastapi import APIRouter, Depends

from expohub.services.dashboard_service import DashboardService
from expohub.services.dependencies import get_dashboard_service, require_database


router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", dependencies=[Depends(require_database)])
async def dashboard_summary(service: DashboardService = Depends(get_dashboard_service)):
    """Totais, top 5 exportadores, últimos 12 meses e distribuição por espécie/mercado."""
    return await service.get_summary()
