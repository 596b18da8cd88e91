from .inventory_service import InventoryService
from .reporting_service import ReportingService

__all__ = [
    'InventoryService',
    'ReportingService'
]
