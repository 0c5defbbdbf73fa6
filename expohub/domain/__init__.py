"""
Modelos de domínio e DTOs para a aplicação.
Camada de domínio independente de infraestrutura.
"""

from .filters import ShipmentFilters
from .models import (
    ExporterKpi,
    ExporterProfile,
    ExporterRanking,
    GlobalKpi,
    TimePoint,
    TopItem,
)
from .plans import Plan, plan_adapter

__all__ = [
    "ExporterKpi",
    "ExporterProfile",
    "ExporterRanking",
    "GlobalKpi",
    "Plan",
    "plan_adapter",
    "ShipmentFilters",
    "TimePoint",
    "TopItem",
]
