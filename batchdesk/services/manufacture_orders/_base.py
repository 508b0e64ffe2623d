"""Shared plumbing for the manufacture order services."""

from datetime import date, datetime
from typing import Callable, Optional, Tuple

from ...authz import CurrentUserService
from ...models import (
    ManufactureOrder,
    ManufactureOrderAuditAction,
    ManufactureOrderState,
    ManufactureType,
)
from ...repositories import (
    CatalogRepository,
    ManufactureOrderRepository,
    SqlCatalogRepository,
    SqlManufactureOrderRepository,
)
from ...utils.code_generator import calculate_expiration_date, generate_lot_number
from ...utils.error_messages import ErrorMessages as EM
from ...utils.timezone_utils import Clock
from ..base_service import BaseService
from ..results import ErrorCode, ServiceResult

DEFAULT_EXPIRATION_MONTHS = 12


class ManufactureOrderServiceBase(BaseService):
    def __init__(self, order_repository: Optional[ManufactureOrderRepository] = None,
                 catalog_repository: Optional[CatalogRepository] = None,
                 user_service: Optional[CurrentUserService] = None,
                 clock: Optional[Clock] = None):
        super().__init__(clock)
        self.order_repository = order_repository or SqlManufactureOrderRepository()
        self.catalog_repository = catalog_repository or SqlCatalogRepository()
        self.user_service = user_service or CurrentUserService()

    # --- plumbing -------------------------------------------------------

    def _guarded(self, operation: str, func: Callable[[], ServiceResult]) -> ServiceResult:
        return self.run_guarded(operation, func, rollback=self.order_repository.rollback)

    def _user_name(self) -> str:
        return self.user_service.get_current_user().name

    def _now(self) -> datetime:
        return self.clock.now()

    def _load(self, order_id: int) -> Tuple[Optional[ManufactureOrder], Optional[ServiceResult]]:
        order = self.order_repository.get_order_by_id(order_id)
        if order is None:
            self.logger.warning(f"Manufacture order {order_id} not found")
            return None, ServiceResult.fail(
                ErrorCode.ORDER_NOT_FOUND,
                EM.ORDER_NOT_FOUND.format(order_id=order_id),
                params={'id': order_id},
            )
        return order, None

    # --- guards ---------------------------------------------------------

    @staticmethod
    def _require_type(order: ManufactureOrder, expected: ManufactureType) -> Optional[ServiceResult]:
        if order.type is expected:
            return None
        return ServiceResult.fail(
            ErrorCode.WRONG_MANUFACTURE_TYPE,
            EM.WRONG_MANUFACTURE_TYPE.format(
                order_number=order.order_number, actual=order.manufacture_type, expected=expected.value
            ),
            params={'orderNumber': order.order_number, 'expected': expected.value, 'actual': order.manufacture_type},
        )

    @staticmethod
    def _require_state(order: ManufactureOrder, expected: ManufactureOrderState,
                       target: ManufactureOrderState) -> Optional[ServiceResult]:
        if order.status.state is expected:
            return None
        return ServiceResult.fail(
            ErrorCode.INVALID_STATE_TRANSITION,
            EM.WRONG_STATE.format(order_number=order.order_number, actual=order.state, expected=expected.value),
            params={'oldState': order.state, 'newState': target.value},
        )

    @staticmethod
    def _validate_quantity(quantity: Optional[float], target: str) -> Optional[ServiceResult]:
        if quantity is not None and quantity < 0:
            return ServiceResult.fail(
                ErrorCode.VALIDATION_ERROR,
                EM.ORDER_QUANTITY_NEGATIVE.format(target=target),
                params={'target': target},
            )
        return None

    def _validate_line_quantities(self, order: ManufactureOrder, quantities) -> Optional[ServiceResult]:
        known = {line.id for line in order.products}
        for line_id, quantity in quantities.items():
            if line_id not in known:
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR,
                    EM.ORDER_UNKNOWN_PRODUCT_LINE.format(order_number=order.order_number, line_id=line_id),
                    params={'lineId': line_id},
                )
            invalid = self._validate_quantity(quantity, f"product line {line_id}")
            if invalid is not None:
                return invalid
        return None

    # --- mutations ------------------------------------------------------

    def _change_state(self, order: ManufactureOrder, new_state: ManufactureOrderState, user: str,
                      timestamp: datetime, reason: Optional[str] = None) -> Optional[ServiceResult]:
        """Apply a validated transition and append its audit entry."""
        current = order.status
        if not current.can_transition_to(new_state):
            return ServiceResult.fail(
                ErrorCode.INVALID_STATE_TRANSITION,
                EM.INVALID_STATE_TRANSITION.format(old_state=current.state.value, new_state=new_state.value),
                params={'oldState': current.state.value, 'newState': new_state.value},
            )
        order.status = current.transition_to(new_state)
        order.state_changed_at = timestamp
        order.state_changed_by_user = user
        order.add_audit_entry(
            ManufactureOrderAuditAction.STATE_CHANGED,
            user,
            timestamp,
            details=reason or f"State changed from {current.state.value} to {new_state.value}",
            old_value=current.state.value,
            new_value=new_state.value,
        )
        return None

    def _flag_manual_action(self, order: ManufactureOrder, reason: str, user: str, timestamp: datetime) -> None:
        previous = order.status
        order.status = previous.flag_manual_action()
        order.add_note(reason, user, timestamp)
        order.add_audit_entry(
            ManufactureOrderAuditAction.MANUAL_ACTION_REQUIRED,
            user,
            timestamp,
            details=reason,
            old_value=str(previous.manual_action_required).lower(),
            new_value="true",
        )

    def _expiration_months(self, product_code: str) -> int:
        item = self.catalog_repository.get_by_code(product_code)
        months = getattr(item, 'expiration_months', None) if item is not None else None
        if months and months > 0:
            return int(months)
        return int(self.config_value('DEFAULT_EXPIRATION_MONTHS', DEFAULT_EXPIRATION_MONTHS))

    def _unique_lot_number(self, production_date: date, current: Optional[str] = None) -> str:
        """Week-based lot number, suffixed when another order already holds it."""
        base = generate_lot_number(production_date)
        candidate = base
        suffix = 1
        while candidate != current and self.order_repository.lot_number_in_use(candidate):
            suffix += 1
            candidate = f"{base}-{suffix:02d}"
        return candidate

    @staticmethod
    def _assign_lot(line, lot_number: str, production_date: date) -> None:
        line.lot_number = lot_number
        line.expiration_date = calculate_expiration_date(production_date, line.expiration_months)
