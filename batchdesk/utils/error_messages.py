"""
Centralized Error Messages

Single source of truth for the user-facing messages returned by the
planning and manufacture order services.

Usage:
    from batchdesk.utils.error_messages import ErrorMessages as EM

    ServiceResult.fail(
        ErrorCode.ORDER_NOT_FOUND,
        EM.ORDER_NOT_FOUND.format(order_id=order_id),
        params={"id": str(order_id)},
    )
"""


class ErrorMessages:
    """User-facing error messages - never contain HTML or special characters"""

    # ==================== GENERAL ====================
    VALIDATION_FAILED = "Validation failed: {reason}"
    INTERNAL_ERROR = "An unexpected error occurred while processing {operation}."

    # ==================== BATCH PLANNING ====================
    SEMIPRODUCT_NOT_FOUND = "Semiproduct {code} has no manufacture template."
    TEMPLATE_NOT_FOUND = "Manufacture template for {code} not found."
    NO_PRODUCTS_FOR_SEMIPRODUCT = "No products found that use semiproduct {code}."
    FIXED_QUANTITY_REQUIRED = "Product {code} is fixed but no fixed quantity was supplied."
    FIXED_QUANTITY_NEGATIVE = "Fixed quantity for product {code} cannot be negative."
    CONTROL_PARAMETER_REQUIRED = "Control mode {mode} requires a positive {parameter}."
    INVALID_DATE_RANGE = "The sales window end date must not be before its start date."
    FIXED_PRODUCTS_EXCEED_VOLUME = (
        "Fixed products need {volume_used} but only {available} is available (deficit {deficit})."
    )
    BATCH_SIZE_NOT_POSITIVE = "Batch size must be greater than 0."
    TEMPLATE_BATCH_SIZE_NOT_POSITIVE = "Manufacture template for {code} has no positive batch size."
    INGREDIENT_AMOUNT_NEGATIVE = "Ingredient {code} has a negative amount."

    # ==================== MANUFACTURE ORDERS ====================
    ORDER_NOT_FOUND = "Manufacture order {order_id} not found."
    ORDER_NO_PRODUCTS = "A manufacture order needs at least one product with a positive quantity."
    ORDER_QUANTITY_NEGATIVE = "Quantity for {target} cannot be negative."
    ORDER_UNKNOWN_PRODUCT_LINE = "Order {order_number} has no product line {line_id}."
    INVALID_STATE_TRANSITION = "Cannot change order state from {old_state} to {new_state}."
    WRONG_MANUFACTURE_TYPE = "Order {order_number} is {actual}; this operation requires {expected}."
    WRONG_STATE = "Order {order_number} is {actual}; this operation requires {expected}."
    ORDER_CANCELLED_NOT_EDITABLE = "Order {order_number} is cancelled and cannot be updated."
    ORDER_PRODUCT_INCOMPLETE = "Replacement product lines need a product code and a planned quantity."
    LOT_NUMBER_IN_USE = "Lot number {lot_number} is already used by another order."
    SCHEDULE_ORDER_CANCELLED = "Cannot update schedule for cancelled orders ({order_number})."
    SCHEDULE_ORDER_COMPLETED = "Cannot update schedule for completed orders ({order_number})."
    SCHEDULE_IN_PAST = "Cannot schedule manufacturing in the past ({planned_date} is before {today})."
    ERP_SUBMISSION_FAILED = "ERP submission failed: {reason}"
    ERP_DISCARD_FAILED = "Discarding residual semiproduct failed: {reason}"
