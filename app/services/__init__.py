"""Service layer - points ledger, inventory guard and redemption workflow."""

from app.services.access import Principal
from app.services.inventory import InventoryGuard
from app.services.ledger import LedgerService
from app.services.redemption import RedemptionWorkflow

__all__ = [
    "InventoryGuard",
    "LedgerService",
    "Principal",
    "RedemptionWorkflow",
]
