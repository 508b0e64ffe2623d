"""Models package - imports all models for the application"""
from ..extensions import db
from .catalog import CatalogItem, CatalogSale, ManufactureTemplate, ManufactureTemplateIngredient
from .order_state import (
    ALLOWED_TRANSITIONS,
    InvalidStateTransitionError,
    ManufactureOrderState,
    ManufactureType,
    OrderStatus,
)
from .manufacture_order import (
    AuditLogImmutableError,
    ManufactureOrder,
    ManufactureOrderAuditAction,
    ManufactureOrderAuditLog,
    ManufactureOrderNote,
    ManufactureOrderProduct,
    ManufactureOrderSemiProduct,
)

__all__ = [
    'db',
    'CatalogItem',
    'CatalogSale',
    'ManufactureTemplate',
    'ManufactureTemplateIngredient',
    'ALLOWED_TRANSITIONS',
    'InvalidStateTransitionError',
    'ManufactureOrderState',
    'ManufactureType',
    'OrderStatus',
    'AuditLogImmutableError',
    'ManufactureOrder',
    'ManufactureOrderAuditAction',
    'ManufactureOrderAuditLog',
    'ManufactureOrderNote',
    'ManufactureOrderProduct',
    'ManufactureOrderSemiProduct',
]
