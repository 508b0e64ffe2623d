"""
ERP Workflow

Couples the multi-phase confirmations with the ERP:
- confirm the stage locally, then post its manufacture document
- after the product stage, write off the leftover semiproduct

A failed ERP call never undoes the local confirmation. The order is flagged
``manual_action_required`` with a note explaining what to redo by hand.
"""

import logging
from typing import Optional

from ...integrations import (
    DiscardResidualSemiProductRequest,
    ErpManufactureType,
    ManufactureClient,
    SubmitManufactureItem,
    SubmitManufactureRequest,
    build_manufacture_client,
)
from ...models import ManufactureOrder, ManufactureOrderAuditAction
from ...utils.error_messages import ErrorMessages as EM
from ..results import ErrorCode, ServiceResult
from ._base import ManufactureOrderServiceBase
from .confirmation import ManufactureOrderConfirmationService
from .types import ConfirmProductCompletionRequest, ConfirmSemiProductManufactureRequest

logger = logging.getLogger(__name__)


class ManufactureErpWorkflow(ManufactureOrderServiceBase):
    def __init__(self, order_repository=None, catalog_repository=None, user_service=None, clock=None,
                 manufacture_client: Optional[ManufactureClient] = None,
                 confirmation_service: Optional[ManufactureOrderConfirmationService] = None):
        super().__init__(order_repository, catalog_repository, user_service, clock)
        self.manufacture_client = manufacture_client or build_manufacture_client()
        self.confirmation_service = confirmation_service or ManufactureOrderConfirmationService(
            self.order_repository, self.catalog_repository, self.user_service, self.clock
        )

    def confirm_semi_product_with_erp(self, request: ConfirmSemiProductManufactureRequest) -> ServiceResult:
        result = self.confirmation_service.confirm_semi_product_manufacture(request)
        if not result.success:
            return result
        return self._guarded('confirm_semi_product_with_erp', lambda: self._submit_stage(
            request.order_id, ErpManufactureType.SEMI_PRODUCT, result
        ))

    def confirm_products_with_erp(self, request: ConfirmProductCompletionRequest) -> ServiceResult:
        result = self.confirmation_service.confirm_product_completion(request)
        if not result.success:
            return result

        def submit_and_discard():
            submitted = self._submit_stage(request.order_id, ErpManufactureType.PRODUCT, result)
            if not submitted.success:
                return submitted
            discard = self.discard_residual_semi_product(request.order_id)
            order, failure = self._load(request.order_id)
            if failure:
                return failure
            if not discard.success:
                reason = discard.params.get('ErrorMessage') or discard.message
                self._flag_manual_action(
                    order, EM.ERP_DISCARD_FAILED.format(reason=reason), self._user_name(), self._now()
                )
                self.order_repository.update_order(order)
            submitted.data['manualActionRequired'] = bool(order.manual_action_required)
            submitted.data['residueDiscard'] = discard.data.to_dict() if discard.success else None
            return submitted

        return self._guarded('confirm_products_with_erp', submit_and_discard)

    def discard_residual_semi_product(self, order_id: int) -> ServiceResult:
        return self._guarded('discard_residual_semi_product', lambda: self._discard(order_id))

    # --- internals ------------------------------------------------------

    def _submit_stage(self, order_id: int, stage: ErpManufactureType, confirmed: ServiceResult) -> ServiceResult:
        order, failure = self._load(order_id)
        if failure:
            return failure

        user = self._user_name()
        now = self._now()
        data = dict(confirmed.data or {})
        try:
            manufacture_id = self.manufacture_client.submit_manufacture(self._build_submission(order, stage, user))
        except Exception as exc:
            logger.error(f"ERP submission of {stage.value} for {order.order_number} failed: {exc}")
            self._flag_manual_action(order, EM.ERP_SUBMISSION_FAILED.format(reason=exc), user, now)
            self.order_repository.update_order(order)
            data.update({'manualActionRequired': True, 'erpError': str(exc)})
            return ServiceResult.ok(data)

        attribute = (
            'erp_order_number_semiproduct' if stage is ErpManufactureType.SEMI_PRODUCT
            else 'erp_order_number_product'
        )
        setattr(order, attribute, manufacture_id)
        setattr(order, f"{attribute}_date", now)
        order.add_audit_entry(
            ManufactureOrderAuditAction.ERP_ORDER_LINKED,
            user,
            now,
            details=f"ERP {stage.value} manufacture {manufacture_id} created",
            new_value=manufacture_id,
        )
        self.order_repository.update_order(order)
        logger.info(f"ERP {stage.value} manufacture {manufacture_id} linked to {order.order_number}")
        data.update({'manualActionRequired': order.manual_action_required, 'erpOrderNumber': manufacture_id})
        return ServiceResult.ok(data)

    def _build_submission(self, order: ManufactureOrder, stage: ErpManufactureType, user: str) -> SubmitManufactureRequest:
        semi = order.semi_product
        if stage is ErpManufactureType.SEMI_PRODUCT:
            items = [SubmitManufactureItem(semi.product_code, semi.product_name, semi.effective_quantity())]
        else:
            items = [
                SubmitManufactureItem(line.product_code, line.product_name, line.effective_quantity())
                for line in order.products
            ]
        return SubmitManufactureRequest(
            manufacture_order_number=order.order_number,
            manufacture_internal_number=order.order_number,
            manufacture_type=stage,
            date=self.clock.today(),
            created_by=user,
            items=items,
            lot_number=semi.lot_number,
            expiration_date=semi.expiration_date,
        )

    def _discard(self, order_id: int) -> ServiceResult:
        order, failure = self._load(order_id)
        if failure:
            return failure

        semi = order.semi_product
        item = self.catalog_repository.get_by_code(semi.product_code)
        allowed = float(getattr(item, 'allowed_residue_percentage', None) or 0.0) if item is not None else 0.0
        user = self._user_name()
        now = self._now()
        request = DiscardResidualSemiProductRequest(
            manufacture_order_number=order.order_number,
            product_code=semi.product_code,
            product_name=semi.product_name,
            completion_date=self.clock.today(),
            completed_by=user,
            allowed_residue_percentage=allowed,
        )
        try:
            outcome = self.manufacture_client.discard_residual_semi_product(request)
        except Exception as exc:
            logger.error(f"Discarding residual {semi.product_code} for {order.order_number} failed: {exc}")
            return ServiceResult.fail(
                ErrorCode.ERP_INTEGRATION_FAILED,
                EM.ERP_DISCARD_FAILED.format(reason=exc),
                params={'ErrorMessage': str(exc)},
            )

        if outcome.stock_movement_reference:
            order.erp_discard_residue_document_number = outcome.stock_movement_reference
            order.erp_discard_residue_document_number_date = now
        order.add_audit_entry(
            ManufactureOrderAuditAction.RESIDUE_DISCARDED,
            user,
            now,
            details=(
                f"Residual {semi.product_code}: found {outcome.quantity_found:g}, "
                f"discarded {outcome.quantity_discarded:g}"
            ),
            new_value=outcome.stock_movement_reference,
        )
        if outcome.requires_manual_approval or not outcome.success:
            reason = outcome.details or (
                f"Residual {semi.product_code} of {outcome.quantity_found:g} exceeds the allowed "
                f"{allowed:g}% and needs manual approval"
            )
            self._flag_manual_action(order, reason, user, now)
        self.order_repository.update_order(order)
        return ServiceResult.ok(outcome)
