from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from ..extensions import db
from ..models import (
    ManufactureOrder,
    ManufactureOrderProduct,
    ManufactureOrderSemiProduct,
)
from ..utils.code_generator import next_order_number


@dataclass
class ManufactureOrderFilter:
    state: Optional[str] = None
    manual_action_required: Optional[bool] = None
    product_code: Optional[str] = None
    responsible_person: Optional[str] = None
    order_number: Optional[str] = None
    created_from: Optional[date] = None
    created_to: Optional[date] = None
    planned_from: Optional[date] = None
    planned_to: Optional[date] = None


class ManufactureOrderRepository(ABC):
    @abstractmethod
    def get_order_by_id(self, order_id: int) -> Optional[ManufactureOrder]:
        ...

    @abstractmethod
    def add_order(self, order: ManufactureOrder) -> ManufactureOrder:
        ...

    @abstractmethod
    def update_order(self, order: ManufactureOrder) -> ManufactureOrder:
        ...

    @abstractmethod
    def generate_order_number(self, prefix: str, year: int) -> str:
        ...

    @abstractmethod
    def get_orders(self, filters: Optional[ManufactureOrderFilter] = None) -> List[ManufactureOrder]:
        ...

    @abstractmethod
    def lot_number_in_use(self, lot_number: str) -> bool:
        ...

    def rollback(self) -> None:
        """Discard pending changes after a failed operation."""


class SqlManufactureOrderRepository(ManufactureOrderRepository):
    """Flask-SQLAlchemy backed order store. ``add``/``update`` commit once."""

    def get_order_by_id(self, order_id: int) -> Optional[ManufactureOrder]:
        return (
            ManufactureOrder.query
            .options(
                selectinload(ManufactureOrder.products),
                selectinload(ManufactureOrder.notes),
                selectinload(ManufactureOrder.audit_logs),
            )
            .filter(ManufactureOrder.id == order_id)
            .first()
        )

    def add_order(self, order: ManufactureOrder) -> ManufactureOrder:
        db.session.add(order)
        db.session.commit()
        return order

    def update_order(self, order: ManufactureOrder) -> ManufactureOrder:
        db.session.add(order)
        db.session.commit()
        return order

    def generate_order_number(self, prefix: str, year: int) -> str:
        pattern = f"{prefix.upper()}-{year}-%"
        existing = (
            db.session.query(ManufactureOrder.order_number)
            .filter(ManufactureOrder.order_number.like(pattern))
            .all()
        )
        return next_order_number(prefix, year, (row[0] for row in existing))

    def get_orders(self, filters: Optional[ManufactureOrderFilter] = None) -> List[ManufactureOrder]:
        filters = filters or ManufactureOrderFilter()
        query = ManufactureOrder.query

        if filters.state:
            query = query.filter(ManufactureOrder.state == filters.state)
        if filters.manual_action_required is not None:
            query = query.filter(ManufactureOrder.manual_action_required.is_(filters.manual_action_required))
        if filters.responsible_person:
            query = query.filter(ManufactureOrder.responsible_person == filters.responsible_person)
        if filters.order_number:
            query = query.filter(ManufactureOrder.order_number.ilike(f"%{filters.order_number}%"))
        if filters.product_code:
            code = filters.product_code
            query = query.filter(or_(
                ManufactureOrder.semi_product.has(ManufactureOrderSemiProduct.product_code == code),
                ManufactureOrder.products.any(ManufactureOrderProduct.product_code == code),
            ))
        if filters.created_from:
            query = query.filter(ManufactureOrder.created_date >= datetime.combine(filters.created_from, time.min))
        if filters.created_to:
            end = datetime.combine(filters.created_to + timedelta(days=1), time.min)
            query = query.filter(ManufactureOrder.created_date < end)
        if filters.planned_from:
            query = query.filter(ManufactureOrder.semi_product_planned_date >= filters.planned_from)
        if filters.planned_to:
            query = query.filter(ManufactureOrder.semi_product_planned_date <= filters.planned_to)

        return query.order_by(ManufactureOrder.created_date.desc(), ManufactureOrder.id.desc()).all()

    def lot_number_in_use(self, lot_number: str) -> bool:
        semi_hit = db.session.query(ManufactureOrderSemiProduct.id).filter_by(lot_number=lot_number).first()
        return semi_hit is not None

    def rollback(self) -> None:
        db.session.rollback()
