"""
Sales Velocity

Daily sales rate of a product size over a historical window.
"""

import logging
from datetime import date, timedelta
from typing import Optional, Tuple

from ...repositories import CatalogRepository

logger = logging.getLogger(__name__)


class SalesVelocityEstimator:
    def __init__(self, catalog_repository: CatalogRepository, default_window_days: int = 30):
        self.catalog_repository = catalog_repository
        self.default_window_days = max(1, int(default_window_days))

    def resolve_window(self, today: date, from_date: Optional[date] = None,
                       to_date: Optional[date] = None) -> Tuple[date, date]:
        """Fill in a missing end (today) and start (end minus the default window)."""
        end = to_date or today
        start = from_date or end - timedelta(days=self.default_window_days - 1)
        return start, end

    def daily_sales_rate(self, product_code: str, start: date, end: date, multiplier: float = 1.0) -> float:
        """Units per day between ``start`` and ``end`` inclusive, scaled by ``multiplier``."""
        days = (end - start).days + 1
        if days <= 0:
            return 0.0
        total_sold = self.catalog_repository.get_total_sold(product_code, start, end)
        rate = round(total_sold / days * (multiplier if multiplier is not None else 1.0), 2)
        logger.debug(f"Sales rate for {product_code}: {total_sold} sold over {days} days -> {rate}/day")
        return max(rate, 0.0)
