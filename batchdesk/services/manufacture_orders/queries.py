from typing import Optional

from ...repositories import ManufactureOrderFilter
from ..results import ServiceResult
from ._base import ManufactureOrderServiceBase


class ManufactureOrderQueryService(ManufactureOrderServiceBase):
    """Read-only access to orders for the order list and detail views."""

    def get_order(self, order_id: int) -> ServiceResult:
        def load():
            order, failure = self._load(order_id)
            return failure or ServiceResult.ok(order)
        return self.run_guarded('get_order', load)

    def list_orders(self, filters: Optional[ManufactureOrderFilter] = None) -> ServiceResult:
        return self.run_guarded('list_orders', lambda: ServiceResult.ok(self.order_repository.get_orders(filters)))
