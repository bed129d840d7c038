"""ORM models package - exports all models and Base."""

from app.database import Base
from app.models.user import User, UserRole
from app.models.points_transaction import PointsTransaction, TransactionType
from app.models.store_item import StoreItem
from app.models.item_request import ItemRequest, RequestStatus

__all__ = [
    "Base",
    "User",
    "UserRole",
    "PointsTransaction",
    "TransactionType",
    "StoreItem",
    "ItemRequest",
    "RequestStatus",
]
