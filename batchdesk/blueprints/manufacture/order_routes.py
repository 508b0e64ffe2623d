"""Manufacture order routes.

Synopsis:
JSON endpoints driving a manufacture order from creation through its
production confirmations, including the ERP hand-off and manual actions.

Glossary:
- Single-phase: Products are filled directly from the batch in one step.
- Multi-phase: Semi-product and products are confirmed separately.
- Manual action: Follow-up a person has to do, usually in the ERP.
"""

import logging

from flask import request
from flask_login import login_required

from ...services.manufacture_orders import (
    ConfirmProductCompletionRequest,
    ConfirmSemiProductManufactureRequest,
    ConfirmSinglePhaseProductionRequest,
    CreateManufactureOrderRequest,
    ManufactureErpWorkflow,
    ManufactureOrderConfirmationService,
    ManufactureOrderCreationService,
    ManufactureOrderEditService,
    ManufactureOrderQueryService,
    ManufactureOrderStatusService,
    ResolveManualActionRequest,
    UpdateManufactureOrderRequest,
    UpdateManufactureOrderScheduleRequest,
    UpdateManufactureOrderStatusRequest,
    filter_from_args,
)
from ...utils.api_responses import APIResponse
from ...utils.payloads import ValidationError
from . import manufacture_orders_bp

logger = logging.getLogger(__name__)


# =========================================================
# QUERIES
# =========================================================
# --- List orders ---
# Purpose: List orders for the planning board.
# Inputs: Query args state, manualActionRequired, productCode, responsiblePerson,
#         orderNumber, createdFrom/createdTo, plannedFrom/plannedTo.
# Outputs: Orders, newest first.
@manufacture_orders_bp.route('', methods=['GET'])
@login_required
def list_orders():
    try:
        filters = filter_from_args(request.args)
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    return APIResponse.from_result(ManufactureOrderQueryService().list_orders(filters))


# --- Order detail ---
# Purpose: Full order with lines, notes and audit log.
# Inputs: order_id path parameter.
# Outputs: Order payload or 404.
@manufacture_orders_bp.route('/<int:order_id>', methods=['GET'])
@login_required
def get_order(order_id):
    return APIResponse.from_result(ManufactureOrderQueryService().get_order(order_id))


# =========================================================
# CREATION
# =========================================================
# --- Create order ---
# Purpose: Create a Draft order from a scaled batch plan.
# Inputs: JSON body with productCode, batch sizes, scaleFactor, products,
#         plannedDate, responsiblePerson and manufactureType.
# Outputs: 201 with {id, orderNumber}.
@manufacture_orders_bp.route('', methods=['POST'])
@login_required
def create_order():
    try:
        create_request = CreateManufactureOrderRequest.from_payload(APIResponse.handle_request_content())
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    result = ManufactureOrderCreationService().create_manufacture_order(create_request)
    return APIResponse.from_result(result, success_status=201, message="Manufacture order created")


# --- Duplicate order ---
# Purpose: Start a new Draft order with the composition of an existing one.
# Inputs: order_id path parameter.
# Outputs: 201 with {id, orderNumber}.
@manufacture_orders_bp.route('/<int:order_id>/duplicate', methods=['POST'])
@login_required
def duplicate_order(order_id):
    result = ManufactureOrderCreationService().duplicate_manufacture_order(order_id)
    return APIResponse.from_result(result, success_status=201, message="Manufacture order duplicated")


# =========================================================
# EDITING
# =========================================================
# --- Update order ---
# Purpose: Correct planned dates, responsible person, line quantities and lots.
# Inputs: order_id path parameter; JSON body with semiProductPlannedDate,
#         productPlannedDate, responsiblePerson, semiProduct, products, newNote.
# Outputs: The updated order.
@manufacture_orders_bp.route('/<int:order_id>', methods=['PATCH'])
@login_required
def update_order(order_id):
    try:
        update_request = UpdateManufactureOrderRequest.from_payload(order_id, APIResponse.handle_request_content())
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    return APIResponse.from_result(ManufactureOrderEditService().update_manufacture_order(update_request))


# --- Reschedule order ---
# Purpose: Move the planned dates of an order that is not cancelled or completed.
# Inputs: order_id path parameter; JSON body with semiProductPlannedDate,
#         productPlannedDate and changeReason.
# Outputs: {orderId, changed, semiProductPlannedDate, productPlannedDate}.
@manufacture_orders_bp.route('/<int:order_id>/schedule', methods=['PATCH'])
@login_required
def update_schedule(order_id):
    try:
        schedule_request = UpdateManufactureOrderScheduleRequest.from_payload(
            order_id, APIResponse.handle_request_content()
        )
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    return APIResponse.from_result(ManufactureOrderEditService().update_manufacture_order_schedule(schedule_request))


# =========================================================
# STATE CHANGES
# =========================================================
# --- Update status ---
# Purpose: Planner-driven state change with optional note and ERP numbers.
# Inputs: order_id path parameter; JSON body with newState, changeReason, note,
#         ERP document numbers and manualActionRequired.
# Outputs: Old and new state.
@manufacture_orders_bp.route('/<int:order_id>/status', methods=['PATCH'])
@login_required
def update_status(order_id):
    try:
        status_request = UpdateManufactureOrderStatusRequest.from_payload(
            order_id, APIResponse.handle_request_content()
        )
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    return APIResponse.from_result(ManufactureOrderStatusService().update_order_status(status_request))


# --- Resolve manual action ---
# Purpose: Clear the manual-action flag once the follow-up is done.
# Inputs: order_id path parameter; JSON body with ERP order numbers and note.
# Outputs: {orderId, manualActionRequired: false}.
@manufacture_orders_bp.route('/<int:order_id>/resolve-manual-action', methods=['POST'])
@login_required
def resolve_manual_action(order_id):
    try:
        resolve_request = ResolveManualActionRequest.from_payload(order_id, APIResponse.handle_request_content())
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    return APIResponse.from_result(ManufactureOrderStatusService().resolve_manual_action(resolve_request))


# =========================================================
# CONFIRMATIONS
# =========================================================
# --- Confirm single-phase production ---
# Purpose: Complete a Planned single-phase order in one step.
# Inputs: order_id path parameter; JSON body with productActualQuantities.
# Outputs: {orderId, completedAt}.
@manufacture_orders_bp.route('/<int:order_id>/confirm-single-phase', methods=['POST'])
@login_required
def confirm_single_phase(order_id):
    try:
        confirm_request = ConfirmSinglePhaseProductionRequest.from_payload(
            order_id, APIResponse.handle_request_content()
        )
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    result = ManufactureOrderConfirmationService().confirm_single_phase_production(confirm_request)
    return APIResponse.from_result(result)


# --- Confirm semi-product ---
# Purpose: Record the semi-product stage and post it to the ERP.
# Inputs: order_id path parameter; JSON body with actualQuantity, changeReason.
# Outputs: New state, ERP order number or the manual-action flag.
@manufacture_orders_bp.route('/<int:order_id>/confirm-semi-product', methods=['POST'])
@login_required
def confirm_semi_product(order_id):
    try:
        confirm_request = ConfirmSemiProductManufactureRequest.from_payload(
            order_id, APIResponse.handle_request_content()
        )
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    return APIResponse.from_result(ManufactureErpWorkflow().confirm_semi_product_with_erp(confirm_request))


# --- Confirm products ---
# Purpose: Record the product stage, post it to the ERP, discard the residue.
# Inputs: order_id path parameter; JSON body with productActualQuantities.
# Outputs: New state, ERP order number, residue outcome, manual-action flag.
@manufacture_orders_bp.route('/<int:order_id>/confirm-products', methods=['POST'])
@login_required
def confirm_products(order_id):
    try:
        confirm_request = ConfirmProductCompletionRequest.from_payload(
            order_id, APIResponse.handle_request_content()
        )
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())
    return APIResponse.from_result(ManufactureErpWorkflow().confirm_products_with_erp(confirm_request))


# --- Discard residual semi-product ---
# Purpose: Retry the ERP write-off of leftover semi-product.
# Inputs: order_id path parameter.
# Outputs: Residue outcome, or 502 when the ERP call fails.
@manufacture_orders_bp.route('/<int:order_id>/discard-residual', methods=['POST'])
@login_required
def discard_residual(order_id):
    return APIResponse.from_result(ManufactureErpWorkflow().discard_residual_semi_product(order_id))
