"""
Production confirmations.

Single-phase orders are filled straight from the batch and are confirmed in
one step (Planned -> InProduction -> Completed). Multi-phase orders confirm
the semi-product stage and the product stage separately.

Every precondition and quantity is checked before the order is touched, so a
failed confirmation leaves the aggregate unchanged.
"""

import logging

from ...models import ManufactureOrderAuditAction, ManufactureOrderState, ManufactureType
from ..results import ServiceResult
from ._base import ManufactureOrderServiceBase
from .types import (
    ConfirmProductCompletionRequest,
    ConfirmSemiProductManufactureRequest,
    ConfirmSinglePhaseProductionRequest,
)

logger = logging.getLogger(__name__)

S = ManufactureOrderState


class ManufactureOrderConfirmationService(ManufactureOrderServiceBase):

    def confirm_single_phase_production(self, request: ConfirmSinglePhaseProductionRequest) -> ServiceResult:
        return self._guarded('confirm_single_phase_production', lambda: self._confirm_single_phase(request))

    def confirm_semi_product_manufacture(self, request: ConfirmSemiProductManufactureRequest) -> ServiceResult:
        return self._guarded('confirm_semi_product_manufacture', lambda: self._confirm_semi_product(request))

    def confirm_product_completion(self, request: ConfirmProductCompletionRequest) -> ServiceResult:
        return self._guarded('confirm_product_completion', lambda: self._confirm_products(request))

    # --- single phase ---------------------------------------------------

    def _confirm_single_phase(self, request: ConfirmSinglePhaseProductionRequest) -> ServiceResult:
        order, failure = self._load(request.order_id)
        if failure:
            return failure

        failure = (
            self._require_type(order, ManufactureType.SINGLE_PHASE)
            or self._require_state(order, S.PLANNED, S.IN_PRODUCTION)
            or self._validate_line_quantities(order, request.product_actual_quantities)
        )
        if failure:
            logger.warning(f"Single-phase confirmation of {order.order_number} rejected: {failure.message}")
            return failure

        user = self._user_name()
        now = self._now()
        today = self.clock.today()
        current_lot = order.semi_product.lot_number if order.semi_product else None
        lot_number = self._unique_lot_number(today, current=current_lot)

        for line in order.products:
            line.actual_quantity = request.product_actual_quantities.get(line.id, line.planned_quantity)
            self._assign_lot(line, lot_number, today)
        if order.semi_product is not None:
            self._assign_lot(order.semi_product, lot_number, today)

        reason = request.change_reason
        failure = (
            self._change_state(order, S.IN_PRODUCTION, user, now, reason)
            or self._change_state(order, S.COMPLETED, user, now, reason)
        )
        if failure:
            self.order_repository.rollback()
            return failure

        self.order_repository.update_order(order)
        self.log_operation('confirm_single_phase_production', {
            'order_number': order.order_number,
            'lot_number': lot_number,
        }, user)
        return ServiceResult.ok({'orderId': order.id, 'completedAt': now.isoformat()})

    # --- multi phase ----------------------------------------------------

    def _confirm_semi_product(self, request: ConfirmSemiProductManufactureRequest) -> ServiceResult:
        order, failure = self._load(request.order_id)
        if failure:
            return failure

        failure = (
            self._require_type(order, ManufactureType.MULTI_PHASE)
            or self._require_state(order, S.PLANNED, S.SEMI_PRODUCT_MANUFACTURED)
            or self._validate_quantity(request.actual_quantity, 'semi-product')
        )
        if failure:
            logger.warning(f"Semi-product confirmation of {order.order_number} rejected: {failure.message}")
            return failure

        user = self._user_name()
        now = self._now()
        semi = order.semi_product
        previous = semi.actual_quantity if semi.actual_quantity is not None else semi.planned_quantity
        semi.actual_quantity = request.actual_quantity
        order.add_audit_entry(
            ManufactureOrderAuditAction.QUANTITY_CHANGED,
            user,
            now,
            details=request.change_reason or f"Semi-product {semi.product_code} actual quantity confirmed",
            old_value=f"{previous:g}",
            new_value=f"{request.actual_quantity:g}",
        )

        failure = self._change_state(order, S.SEMI_PRODUCT_MANUFACTURED, user, now, request.change_reason)
        if failure:
            self.order_repository.rollback()
            return failure

        self.order_repository.update_order(order)
        self.log_operation('confirm_semi_product_manufacture', {
            'order_number': order.order_number,
            'actual_quantity': request.actual_quantity,
        }, user)
        return ServiceResult.ok({
            'orderId': order.id,
            'orderNumber': order.order_number,
            'state': order.state,
            'confirmedAt': now.isoformat(),
        })

    def _confirm_products(self, request: ConfirmProductCompletionRequest) -> ServiceResult:
        order, failure = self._load(request.order_id)
        if failure:
            return failure

        failure = (
            self._require_type(order, ManufactureType.MULTI_PHASE)
            or self._require_state(order, S.SEMI_PRODUCT_MANUFACTURED, S.COMPLETED)
            or self._validate_line_quantities(order, request.product_actual_quantities)
        )
        if failure:
            logger.warning(f"Product completion of {order.order_number} rejected: {failure.message}")
            return failure

        user = self._user_name()
        now = self._now()
        semi = order.semi_product
        changed = []
        for line in order.products:
            quantity = request.product_actual_quantities.get(line.id)
            if quantity is not None and quantity != line.actual_quantity:
                changed.append(f"{line.product_code}: {line.effective_quantity():g} -> {quantity:g}")
                line.actual_quantity = quantity
            elif line.actual_quantity is None:
                line.actual_quantity = line.planned_quantity
            # Products carry the lot of the semi-product they were filled from
            line.lot_number = semi.lot_number
            line.expiration_date = semi.expiration_date

        if changed:
            order.add_audit_entry(
                ManufactureOrderAuditAction.QUANTITY_CHANGED,
                user,
                now,
                details=request.change_reason or "Product actual quantities confirmed",
                new_value="; ".join(changed),
            )

        failure = self._change_state(order, S.COMPLETED, user, now, request.change_reason)
        if failure:
            self.order_repository.rollback()
            return failure

        self.order_repository.update_order(order)
        self.log_operation('confirm_product_completion', {
            'order_number': order.order_number,
            'changed_lines': len(changed),
        }, user)
        return ServiceResult.ok({
            'orderId': order.id,
            'orderNumber': order.order_number,
            'state': order.state,
            'completedAt': now.isoformat(),
        })
