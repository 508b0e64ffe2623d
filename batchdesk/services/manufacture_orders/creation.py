import logging

from ...models import (
    ManufactureOrder,
    ManufactureOrderAuditAction,
    ManufactureOrderProduct,
    ManufactureOrderSemiProduct,
    ManufactureOrderState,
    ManufactureType,
)
from ...utils.error_messages import ErrorMessages as EM
from ..results import ErrorCode, ServiceResult
from ._base import ManufactureOrderServiceBase
from .types import CreateManufactureOrderRequest

logger = logging.getLogger(__name__)


class ManufactureOrderCreationService(ManufactureOrderServiceBase):
    """Create new orders from a batch plan or from an existing order."""

    def create_manufacture_order(self, request: CreateManufactureOrderRequest) -> ServiceResult:
        return self._guarded('create_manufacture_order', lambda: self._create(request))

    def duplicate_manufacture_order(self, order_id: int) -> ServiceResult:
        return self._guarded('duplicate_manufacture_order', lambda: self._duplicate(order_id))

    # --- create ---------------------------------------------------------

    def _create(self, request: CreateManufactureOrderRequest) -> ServiceResult:
        if request.new_batch_size is None or request.new_batch_size <= 0:
            return ServiceResult.fail(
                ErrorCode.INVALID_BATCH_SIZE,
                EM.BATCH_SIZE_NOT_POSITIVE,
                params={'newBatchSize': request.new_batch_size},
            )

        products = [product for product in request.products if product.planned_quantity > 0]
        if not products:
            return ServiceResult.fail(
                ErrorCode.VALIDATION_ERROR,
                EM.ORDER_NO_PRODUCTS,
                params={'productCode': request.product_code},
            )

        user = self._user_name()
        now = self._now()
        today = self.clock.today()
        semi_planned = request.planned_date or today
        product_planned = request.product_planned_date or semi_planned

        # A single-phase order fills its first product directly from the batch
        if request.manufacture_type is ManufactureType.SINGLE_PHASE:
            semi_code, semi_name = products[0].product_code, products[0].product_name
        else:
            semi_code, semi_name = request.product_code, request.product_name

        order = ManufactureOrder(
            order_number=self._next_order_number(now.year),
            created_date=now,
            created_by_user=user,
            responsible_person=request.responsible_person,
            semi_product_planned_date=semi_planned,
            product_planned_date=product_planned,
            manufacture_type=request.manufacture_type.value,
            state=ManufactureOrderState.DRAFT.value,
            state_changed_at=now,
            state_changed_by_user=user,
            manual_action_required=False,
        )

        lot_number = self._unique_lot_number(semi_planned)
        semi_line = ManufactureOrderSemiProduct(
            product_code=semi_code,
            product_name=semi_name or semi_code,
            planned_quantity=request.new_batch_size,
            actual_quantity=request.new_batch_size,
            batch_multiplier=request.scale_factor,
            expiration_months=self._expiration_months(semi_code),
        )
        self._assign_lot(semi_line, lot_number, semi_planned)
        order.semi_product = semi_line

        for product in products:
            line = ManufactureOrderProduct(
                semi_product_code=semi_code,
                product_code=product.product_code,
                product_name=product.product_name or product.product_code,
                planned_quantity=product.planned_quantity,
                actual_quantity=product.planned_quantity,
                batch_multiplier=request.scale_factor,
                expiration_months=self._expiration_months(product.product_code),
            )
            self._assign_lot(line, lot_number, product_planned)
            order.products.append(line)

        order.add_audit_entry(
            ManufactureOrderAuditAction.ORDER_CREATED,
            user,
            now,
            details=(
                f"Order created for {request.product_code} with batch size {request.new_batch_size:g} "
                f"(original {request.original_batch_size:g}, scale factor {request.scale_factor:g})"
            ),
            new_value=ManufactureOrderState.DRAFT.value,
        )

        self.order_repository.add_order(order)
        self.log_operation('create_manufacture_order', {
            'order_number': order.order_number,
            'type': order.manufacture_type,
            'products': len(products),
        }, user)
        return ServiceResult.ok({'id': order.id, 'orderNumber': order.order_number})

    # --- duplicate ------------------------------------------------------

    def _duplicate(self, order_id: int) -> ServiceResult:
        source, failure = self._load(order_id)
        if failure:
            return failure

        user = self._user_name()
        now = self._now()
        today = self.clock.today()
        # The source's lot is persisted, so this never hands it out again
        lot_number = self._unique_lot_number(today)

        duplicate = ManufactureOrder(
            order_number=self._next_order_number(now.year),
            created_date=now,
            created_by_user=user,
            responsible_person=source.responsible_person,
            semi_product_planned_date=today,
            product_planned_date=today,
            manufacture_type=source.manufacture_type,
            state=ManufactureOrderState.DRAFT.value,
            state_changed_at=now,
            state_changed_by_user=user,
            manual_action_required=False,
        )

        if source.semi_product is not None:
            semi = source.semi_product
            semi_line = ManufactureOrderSemiProduct(
                product_code=semi.product_code,
                product_name=semi.product_name,
                planned_quantity=semi.planned_quantity,
                actual_quantity=semi.planned_quantity,
                batch_multiplier=semi.batch_multiplier,
                expiration_months=semi.expiration_months,
            )
            self._assign_lot(semi_line, lot_number, today)
            duplicate.semi_product = semi_line

        for product in source.products:
            line = ManufactureOrderProduct(
                semi_product_code=product.semi_product_code,
                product_code=product.product_code,
                product_name=product.product_name,
                planned_quantity=product.planned_quantity,
                actual_quantity=product.planned_quantity,
                batch_multiplier=product.batch_multiplier,
                expiration_months=product.expiration_months,
            )
            self._assign_lot(line, lot_number, today)
            duplicate.products.append(line)

        duplicate.add_audit_entry(
            ManufactureOrderAuditAction.ORDER_CREATED,
            user,
            now,
            details=f"Duplicated from {source.order_number}",
            old_value=source.order_number,
            new_value=ManufactureOrderState.DRAFT.value,
        )

        self.order_repository.add_order(duplicate)
        self.log_operation('duplicate_manufacture_order', {
            'source': source.order_number,
            'order_number': duplicate.order_number,
        }, user)
        return ServiceResult.ok({'id': duplicate.id, 'orderNumber': duplicate.order_number})

    # --- helpers --------------------------------------------------------

    def _next_order_number(self, year: int) -> str:
        prefix = self.config_value('MANUFACTURE_ORDER_PREFIX', 'MO')
        return self.order_repository.generate_order_number(prefix, year)
