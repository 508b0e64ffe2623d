"""Demo catalog: one semiproduct (SP001) filled into a 100 g and a 200 g size."""

import logging
from datetime import date, timedelta
from typing import Optional

from ..extensions import db
from ..models import CatalogItem, CatalogSale, ManufactureTemplate, ManufactureTemplateIngredient

logger = logging.getLogger(__name__)

DEMO_SEMIPRODUCT_CODE = 'SP001'

_SEMIPRODUCT = {
    'product_code': DEMO_SEMIPRODUCT_CODE,
    'product_name': 'Body cream base',
    'product_type': CatalogItem.TYPE_SEMIPRODUCT,
    'stock_total': 0,
    'minimal_manufacture_quantity': 1000,
    'expiration_months': 12,
    'allowed_residue_percentage': 5,
}

# (code, name, size, grams per unit, stock, units sold per day)
_SIZES = [
    ('S100', 'Body cream 100 g', '100', 100, 50, 5),
    ('S200', 'Body cream 200 g', '200', 200, 20, 2),
]

_BASE_INGREDIENTS = [
    ('ING-WATER', 'Aqua', 700, 0.01),
    ('ING-SHEA', 'Shea butter', 200, 0.45),
    ('ING-EMUL', 'Emulsifier', 100, 0.30),
]


def seed_demo_catalog(reference_date: Optional[date] = None, sales_days: int = 30) -> bool:
    """Load the demo catalog with a flat sales history ending at ``reference_date``.

    Returns False when the catalog already holds the demo semiproduct.
    """
    if CatalogItem.query.filter_by(product_code=DEMO_SEMIPRODUCT_CODE).first():
        logger.info(f"Demo catalog already present ({DEMO_SEMIPRODUCT_CODE})")
        return False

    end = reference_date or date.today()
    db.session.add(CatalogItem(**_SEMIPRODUCT))

    base = ManufactureTemplate(
        product_code=DEMO_SEMIPRODUCT_CODE,
        product_name=_SEMIPRODUCT['product_name'],
        batch_size=1000,
        original_amount=1000,
    )
    for code, name, amount, price in _BASE_INGREDIENTS:
        base.ingredients.append(ManufactureTemplateIngredient(
            product_code=code, product_name=name, amount=amount, price=price,
        ))
    db.session.add(base)

    for code, name, size, weight, stock, per_day in _SIZES:
        db.session.add(CatalogItem(
            product_code=code,
            product_name=name,
            product_type=CatalogItem.TYPE_PRODUCT,
            size_code=size,
            stock_total=stock,
            net_weight=weight,
            expiration_months=12,
        ))
        template = ManufactureTemplate(product_code=code, product_name=name, batch_size=weight, original_amount=weight)
        template.ingredients.append(ManufactureTemplateIngredient(
            product_code=DEMO_SEMIPRODUCT_CODE,
            product_name=_SEMIPRODUCT['product_name'],
            amount=weight,
        ))
        db.session.add(template)
        for offset in range(sales_days):
            db.session.add(CatalogSale(product_code=code, sold_on=end - timedelta(days=offset), quantity=per_day))

    db.session.commit()
    logger.info(f"Seeded demo catalog {DEMO_SEMIPRODUCT_CODE} with {len(_SIZES)} sizes")
    return True
