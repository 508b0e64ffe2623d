from abc import ABC, abstractmethod
from datetime import date
from typing import List, Optional

from sqlalchemy import func

from ..extensions import db
from ..models import CatalogItem, CatalogSale, ManufactureTemplate, ManufactureTemplateIngredient


class CatalogRepository(ABC):
    @abstractmethod
    def get_by_code(self, product_code: str) -> Optional[CatalogItem]:
        ...

    @abstractmethod
    def get_total_sold(self, product_code: str, start: date, end: date) -> float:
        """Units sold between ``start`` and ``end``, both days inclusive."""


class ManufactureRepository(ABC):
    @abstractmethod
    def get_manufacture_template(self, product_code: str) -> Optional[ManufactureTemplate]:
        ...

    @abstractmethod
    def find_by_ingredient(self, ingredient_code: str) -> List[ManufactureTemplate]:
        """Templates of the products that consume ``ingredient_code``."""


class SqlCatalogRepository(CatalogRepository):
    def get_by_code(self, product_code: str) -> Optional[CatalogItem]:
        return CatalogItem.query.filter_by(product_code=product_code).first()

    def get_total_sold(self, product_code: str, start: date, end: date) -> float:
        total = (
            db.session.query(func.coalesce(func.sum(CatalogSale.quantity), 0))
            .filter(
                CatalogSale.product_code == product_code,
                CatalogSale.sold_on >= start,
                CatalogSale.sold_on <= end,
            )
            .scalar()
        )
        return float(total or 0)


class SqlManufactureRepository(ManufactureRepository):
    def get_manufacture_template(self, product_code: str) -> Optional[ManufactureTemplate]:
        return ManufactureTemplate.query.filter_by(product_code=product_code).first()

    def find_by_ingredient(self, ingredient_code: str) -> List[ManufactureTemplate]:
        return (
            ManufactureTemplate.query
            .join(ManufactureTemplateIngredient)
            .filter(ManufactureTemplateIngredient.product_code == ingredient_code)
            .filter(ManufactureTemplate.product_code != ingredient_code)
            .order_by(ManufactureTemplate.product_code)
            .distinct()
            .all()
        )
