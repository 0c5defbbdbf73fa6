"""
Repositórios para acesso a dados.
Encapsulam o SQL e as chamadas às funções remotas do banco.
"""

from .lookup_repository import LookupRepository
from .shipment_repository import ShipmentRepository

__all__ = [
    "LookupRepository",
    "ShipmentRepository",
]
