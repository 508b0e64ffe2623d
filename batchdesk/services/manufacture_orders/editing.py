"""
Order editing.

Planners correct an order before it is produced: planned dates, the
responsible person, line quantities, the semi-product lot and expiration,
and the product lines themselves. Product lines are either patched by id or,
when any entry comes without an id, replaced as a whole. Product lines always
carry the lot and expiration of the semi-product they are filled from.

Rescheduling is a separate operation with stricter rules: it is refused for
cancelled and completed orders and never moves a date into the past.
"""

import logging
from typing import List, Optional, Tuple

from ...models import (
    ManufactureOrder,
    ManufactureOrderAuditAction,
    ManufactureOrderProduct,
    ManufactureOrderState,
)
from ...utils.error_messages import ErrorMessages as EM
from ..results import ErrorCode, ServiceResult
from ._base import ManufactureOrderServiceBase
from .types import UpdateManufactureOrderRequest, UpdateManufactureOrderScheduleRequest

logger = logging.getLogger(__name__)

S = ManufactureOrderState

SCHEDULE_UPDATED = "Schedule updated successfully"
SCHEDULE_UNCHANGED = "No changes were made to the schedule"

_SCHEDULE_LOCKED = {
    S.CANCELLED: (ErrorCode.CANNOT_UPDATE_CANCELLED_ORDER, EM.SCHEDULE_ORDER_CANCELLED),
    S.COMPLETED: (ErrorCode.CANNOT_UPDATE_COMPLETED_ORDER, EM.SCHEDULE_ORDER_COMPLETED),
}

Change = Tuple[str, object, object]


def _fmt(value) -> str:
    if value is None:
        return ''
    if isinstance(value, float):
        return f"{value:g}"
    if hasattr(value, 'isoformat'):
        return value.isoformat()
    return str(value)


def _lines_summary(lines) -> str:
    return ", ".join(f"{line.product_code} x{_fmt(line.planned_quantity)}" for line in lines)


class ManufactureOrderEditService(ManufactureOrderServiceBase):
    """Edit order details and reschedule orders."""

    def update_manufacture_order(self, request: UpdateManufactureOrderRequest) -> ServiceResult:
        return self._guarded('update_manufacture_order', lambda: self._update(request))

    def update_manufacture_order_schedule(self, request: UpdateManufactureOrderScheduleRequest) -> ServiceResult:
        return self._guarded('update_manufacture_order_schedule', lambda: self._reschedule(request))

    # --- details --------------------------------------------------------

    def _update(self, request: UpdateManufactureOrderRequest) -> ServiceResult:
        order, failure = self._load(request.order_id)
        if failure:
            return failure

        failure = self._validate_update(order, request)
        if failure:
            logger.warning(f"Update of {order.order_number} rejected: {failure.message}")
            return failure

        user = self._user_name()
        now = self._now()

        header_changes: List[Change] = []
        for attribute, label in (
            ('semi_product_planned_date', 'semi-product planned date'),
            ('product_planned_date', 'product planned date'),
            ('responsible_person', 'responsible person'),
        ):
            value = getattr(request, attribute)
            if value is not None and value != getattr(order, attribute):
                header_changes.append((label, getattr(order, attribute), value))
                setattr(order, attribute, value)
        self._audit_changes(order, ManufactureOrderAuditAction.ORDER_UPDATED, header_changes, user, now,
                            "Order details updated")

        semi = order.semi_product
        relabel_all = self._apply_semi_product(order, request, user, now) if semi is not None else False
        touched = self._apply_products(order, request, user, now)

        if semi is not None:
            for line in (order.products if relabel_all else touched):
                line.lot_number = semi.lot_number
                line.expiration_date = semi.expiration_date

        if request.new_note:
            order.add_note(request.new_note, user, now)
            order.add_audit_entry(ManufactureOrderAuditAction.NOTE_ADDED, user, now, details=request.new_note)

        self.order_repository.update_order(order)
        self.log_operation('update_manufacture_order', {
            'order_number': order.order_number,
            'header_changes': len(header_changes),
            'product_lines': len(touched),
        }, user)
        return ServiceResult.ok(order.to_dict(), message="Manufacture order updated")

    def _validate_update(self, order: ManufactureOrder,
                         request: UpdateManufactureOrderRequest) -> Optional[ServiceResult]:
        if order.status.state is S.CANCELLED:
            return ServiceResult.fail(
                ErrorCode.CANNOT_UPDATE_CANCELLED_ORDER,
                EM.ORDER_CANCELLED_NOT_EDITABLE.format(order_number=order.order_number),
                params={'id': order.id, 'state': order.state},
            )

        patch = request.semi_product
        if patch is not None:
            failure = (
                self._validate_quantity(patch.planned_quantity, "semi-product planned quantity")
                or self._validate_quantity(patch.actual_quantity, "semi-product actual quantity")
            )
            if failure:
                return failure
            semi = order.semi_product
            current_lot = semi.lot_number if semi is not None else None
            if (patch.lot_number and patch.lot_number != current_lot
                    and self.order_repository.lot_number_in_use(patch.lot_number)):
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR,
                    EM.LOT_NUMBER_IN_USE.format(lot_number=patch.lot_number),
                    params={'lotNumber': patch.lot_number},
                )

        known = {line.id for line in order.products}
        for line in request.products:
            if request.replaces_products:
                if not line.product_code or line.planned_quantity is None:
                    return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, EM.ORDER_PRODUCT_INCOMPLETE,
                                              params={'productCode': line.product_code or ''})
            elif line.id not in known:
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR,
                    EM.ORDER_UNKNOWN_PRODUCT_LINE.format(order_number=order.order_number, line_id=line.id),
                    params={'lineId': line.id},
                )
            target = f"product {line.product_code or line.id}"
            failure = (
                self._validate_quantity(line.planned_quantity, target)
                or self._validate_quantity(line.actual_quantity, target)
            )
            if failure:
                return failure
        return None

    def _apply_semi_product(self, order, request, user, now) -> bool:
        """Patch the semi-product line; True when its lot or expiration moved."""
        patch = request.semi_product
        if patch is None:
            return False
        semi = order.semi_product

        quantity_changes: List[Change] = []
        for attribute, label in (('planned_quantity', 'planned'), ('actual_quantity', 'actual')):
            value = getattr(patch, attribute)
            if value is not None and value != getattr(semi, attribute):
                quantity_changes.append((f"{semi.product_code} {label}", getattr(semi, attribute), value))
                setattr(semi, attribute, value)
        self._audit_changes(order, ManufactureOrderAuditAction.QUANTITY_CHANGED, quantity_changes, user, now,
                            "Semi-product quantities corrected")

        lot_changes: List[Change] = []
        if patch.lot_number and patch.lot_number != semi.lot_number:
            lot_changes.append(('lot number', semi.lot_number, patch.lot_number))
            semi.lot_number = patch.lot_number
        if patch.expiration_date and patch.expiration_date != semi.expiration_date:
            lot_changes.append(('expiration date', semi.expiration_date, patch.expiration_date))
            semi.expiration_date = patch.expiration_date
        self._audit_changes(order, ManufactureOrderAuditAction.LOT_NUMBER_ASSIGNED, lot_changes, user, now,
                            "Semi-product lot overridden")
        return bool(lot_changes)

    def _apply_products(self, order, request, user, now) -> List[ManufactureOrderProduct]:
        if not request.products:
            return []
        semi = order.semi_product

        if request.replaces_products:
            previous = _lines_summary(order.products)
            order.products.clear()
            for patch in request.products:
                actual = patch.actual_quantity if patch.actual_quantity is not None else patch.planned_quantity
                line = ManufactureOrderProduct(
                    semi_product_code=semi.product_code if semi is not None else patch.product_code,
                    product_code=patch.product_code,
                    product_name=patch.product_name or patch.product_code,
                    planned_quantity=patch.planned_quantity,
                    actual_quantity=actual,
                    batch_multiplier=semi.batch_multiplier if semi is not None else 1,
                    expiration_months=self._expiration_months(patch.product_code),
                )
                order.products.append(line)
            order.add_audit_entry(
                ManufactureOrderAuditAction.ORDER_UPDATED,
                user,
                now,
                details="Product lines replaced",
                old_value=previous,
                new_value=_lines_summary(order.products),
            )
            return list(order.products)

        touched = []
        changes: List[Change] = []
        for patch in request.products:
            line = order.find_product_line(patch.id)
            for attribute, label in (('planned_quantity', 'planned'), ('actual_quantity', 'actual')):
                value = getattr(patch, attribute)
                if value is not None and value != getattr(line, attribute):
                    changes.append((f"{line.product_code} {label}", getattr(line, attribute), value))
                    setattr(line, attribute, value)
            if patch.product_code and patch.product_code != line.product_code:
                changes.append((f"line {line.id} product", line.product_code, patch.product_code))
                line.product_code = patch.product_code
            if patch.product_name:
                line.product_name = patch.product_name
            touched.append(line)
        self._audit_changes(order, ManufactureOrderAuditAction.QUANTITY_CHANGED, changes, user, now,
                            "Product lines corrected")
        return touched

    @staticmethod
    def _audit_changes(order, action, changes: List[Change], user, now, summary: str) -> None:
        if not changes:
            return
        order.add_audit_entry(
            action,
            user,
            now,
            details=f"{summary}: {', '.join(label for label, _, _ in changes)}",
            old_value="; ".join(f"{label}={_fmt(old)}" for label, old, _ in changes),
            new_value="; ".join(f"{label}={_fmt(new)}" for label, _, new in changes),
        )

    # --- schedule -------------------------------------------------------

    def _reschedule(self, request: UpdateManufactureOrderScheduleRequest) -> ServiceResult:
        order, failure = self._load(request.order_id)
        if failure:
            return failure

        locked = _SCHEDULE_LOCKED.get(order.status.state)
        if locked is not None:
            code, template = locked
            logger.warning(f"Reschedule of {order.order_number} rejected in state {order.state}")
            return ServiceResult.fail(code, template.format(order_number=order.order_number),
                                      params={'id': order.id, 'state': order.state})

        today = self.clock.today()
        for key, planned in (
            ('semiProductPlannedDate', request.semi_product_planned_date),
            ('productPlannedDate', request.product_planned_date),
        ):
            if planned is not None and planned < today:
                return ServiceResult.fail(
                    ErrorCode.CANNOT_SCHEDULE_IN_PAST,
                    EM.SCHEDULE_IN_PAST.format(planned_date=planned.isoformat(), today=today.isoformat()),
                    params={key: planned.isoformat(), 'today': today.isoformat()},
                )

        changes: List[Change] = []
        for attribute, label in (
            ('semi_product_planned_date', 'semi-product planned date'),
            ('product_planned_date', 'product planned date'),
        ):
            value = getattr(request, attribute)
            if value is not None and value != getattr(order, attribute):
                changes.append((label, getattr(order, attribute), value))

        data = {
            'orderId': order.id,
            'changed': bool(changes),
            'semiProductPlannedDate': order.semi_product_planned_date.isoformat(),
            'productPlannedDate': order.product_planned_date.isoformat(),
        }
        if not changes:
            return ServiceResult.ok(data, message=SCHEDULE_UNCHANGED)

        user = self._user_name()
        now = self._now()
        if request.semi_product_planned_date is not None:
            order.semi_product_planned_date = request.semi_product_planned_date
        if request.product_planned_date is not None:
            order.product_planned_date = request.product_planned_date
        self._audit_changes(order, ManufactureOrderAuditAction.SCHEDULE_CHANGED, changes, user, now,
                            request.change_reason or "Order rescheduled")

        self.order_repository.update_order(order)
        self.log_operation('update_manufacture_order_schedule', {
            'order_number': order.order_number,
            'semi_product_planned_date': order.semi_product_planned_date.isoformat(),
            'product_planned_date': order.product_planned_date.isoformat(),
        }, user)
        data.update({
            'semiProductPlannedDate': order.semi_product_planned_date.isoformat(),
            'productPlannedDate': order.product_planned_date.isoformat(),
        })
        return ServiceResult.ok(data, message=SCHEDULE_UPDATED)
