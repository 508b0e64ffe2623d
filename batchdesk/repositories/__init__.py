"""
Repositories

Storage interfaces the services depend on, with the Flask-SQLAlchemy
implementations used by the application.
"""

from .catalog_repository import (
    CatalogRepository,
    ManufactureRepository,
    SqlCatalogRepository,
    SqlManufactureRepository,
)
from .manufacture_order_repository import (
    ManufactureOrderFilter,
    ManufactureOrderRepository,
    SqlManufactureOrderRepository,
)

__all__ = [
    'CatalogRepository',
    'ManufactureRepository',
    'SqlCatalogRepository',
    'SqlManufactureRepository',
    'ManufactureOrderFilter',
    'ManufactureOrderRepository',
    'SqlManufactureOrderRepository',
]
