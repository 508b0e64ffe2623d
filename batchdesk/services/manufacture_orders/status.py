import logging

from ...models import ManufactureOrderAuditAction
from ...models.order_state import parse_state
from ..results import ErrorCode, ServiceResult
from ._base import ManufactureOrderServiceBase
from .types import ResolveManualActionRequest, UpdateManufactureOrderStatusRequest

logger = logging.getLogger(__name__)

_ERP_FIELDS = (
    ('erp_order_number_semiproduct', 'ERP semi-product order'),
    ('erp_order_number_product', 'ERP product order'),
    ('erp_discard_residue_document_number', 'ERP residue discard document'),
)


class ManufactureOrderStatusService(ManufactureOrderServiceBase):
    """State changes requested by planners, and the manual-action escape hatch."""

    def update_order_status(self, request: UpdateManufactureOrderStatusRequest) -> ServiceResult:
        return self._guarded('update_order_status', lambda: self._update_status(request))

    def resolve_manual_action(self, request: ResolveManualActionRequest) -> ServiceResult:
        return self._guarded('resolve_manual_action', lambda: self._resolve(request))

    def flag_manual_action(self, order_id: int, reason: str) -> ServiceResult:
        return self._guarded('flag_manual_action', lambda: self._flag(order_id, reason))

    def _update_status(self, request: UpdateManufactureOrderStatusRequest) -> ServiceResult:
        try:
            new_state = parse_state(request.new_state)
        except ValueError as exc:
            return ServiceResult.fail(ErrorCode.VALIDATION_ERROR, str(exc), params={'newState': request.new_state})

        order, failure = self._load(request.order_id)
        if failure:
            return failure

        user = self._user_name()
        now = self._now()
        old_state = order.state
        failure = self._change_state(order, new_state, user, now, request.change_reason)
        if failure:
            logger.warning(f"Status change of {order.order_number} rejected: {failure.message}")
            return failure

        self._store_erp_numbers(order, request, user, now)
        if request.note:
            order.add_note(request.note, user, now)
            order.add_audit_entry(ManufactureOrderAuditAction.NOTE_ADDED, user, now, details=request.note)
        # The flag can be raised here; clearing it goes through resolve_manual_action
        if request.manual_action_required and not order.manual_action_required:
            self._flag_manual_action(
                order, request.change_reason or "Manual action requested on status change", user, now
            )

        self.order_repository.update_order(order)
        self.log_operation('update_order_status', {
            'order_number': order.order_number,
            'old_state': old_state,
            'new_state': order.state,
        }, user)
        return ServiceResult.ok({
            'orderId': order.id,
            'oldState': old_state,
            'newState': order.state,
            'stateChangedAt': now.isoformat(),
        })

    def _resolve(self, request: ResolveManualActionRequest) -> ServiceResult:
        order, failure = self._load(request.order_id)
        if failure:
            return failure

        user = self._user_name()
        now = self._now()
        self._store_erp_numbers(order, request, user, now)

        was_flagged = order.status.manual_action_required
        order.status = order.status.resolve_manual_action()
        if request.note:
            order.add_note(request.note, user, now)
        order.add_audit_entry(
            ManufactureOrderAuditAction.MANUAL_ACTION_RESOLVED,
            user,
            now,
            details=request.note or "Manual action resolved",
            old_value="true",
            new_value="false",
        )

        self.order_repository.update_order(order)
        self.log_operation('resolve_manual_action', {
            'order_number': order.order_number,
            'was_flagged': was_flagged,
        }, user)
        return ServiceResult.ok({'orderId': order.id, 'manualActionRequired': False})

    def _flag(self, order_id: int, reason: str) -> ServiceResult:
        order, failure = self._load(order_id)
        if failure:
            return failure
        user = self._user_name()
        self._flag_manual_action(order, reason, user, self._now())
        self.order_repository.update_order(order)
        logger.warning(f"Order {order.order_number} flagged for manual action: {reason}")
        return ServiceResult.ok({'orderId': order.id, 'manualActionRequired': True})

    @staticmethod
    def _store_erp_numbers(order, request, user, timestamp) -> None:
        for attribute, label in _ERP_FIELDS:
            value = getattr(request, attribute, None)
            if not value or value == getattr(order, attribute):
                continue
            previous = getattr(order, attribute)
            setattr(order, attribute, value)
            setattr(order, f"{attribute}_date", timestamp)
            order.add_audit_entry(
                ManufactureOrderAuditAction.ERP_ORDER_LINKED,
                user,
                timestamp,
                details=f"{label} linked",
                old_value=previous,
                new_value=value,
            )
