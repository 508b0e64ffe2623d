"""Batch planning routes.

Synopsis:
JSON endpoints for planning how one semiproduct batch is split across the
product sizes filled from it, and for scaling a template to a batch size.

Glossary:
- Control mode: How the volume budget of a plan is decided.
- Scale factor: New batch size divided by the template batch size.
"""

import logging

from flask_login import login_required

from ...services.batch_planning import (
    BatchPlanningService,
    BatchScalingService,
    CalculateBatchPlanRequest,
)
from ...utils.api_responses import APIResponse
from ...utils.payloads import ValidationError, parse_float, parse_str, require
from . import batch_planning_bp

logger = logging.getLogger(__name__)


# =========================================================
# BATCH PLANNING
# =========================================================
# --- Calculate batch plan ---
# Purpose: Split a semiproduct batch across its product sizes.
# Inputs: JSON body with semiproductCode, controlMode, mode parameter, optional
#         sales window, salesMultiplier and productConstraints.
# Outputs: Plan with per-size items and summary, or an error envelope.
@batch_planning_bp.route('/batch-planning/calculate', methods=['POST'])
@login_required
def calculate_batch_plan():
    payload = APIResponse.handle_request_content()
    try:
        plan_request = CalculateBatchPlanRequest.from_payload(payload)
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())

    logger.info(f"Batch plan requested for {plan_request.semiproduct_code} ({plan_request.control_mode.name})")
    result = BatchPlanningService().calculate_batch_plan(plan_request)
    return APIResponse.from_result(result)


# --- Scale template by batch size ---
# Purpose: Scale a product's manufacture template to a new batch size.
# Inputs: JSON body with productCode and desiredBatchSize.
# Outputs: Scaled ingredient amounts with the applied scale factor.
@batch_planning_bp.route('/batch-calculator/by-size', methods=['POST'])
@login_required
def calculate_batch_by_size():
    payload = APIResponse.handle_request_content()
    try:
        product_code = require(parse_str(payload, 'productCode'), 'productCode')
        desired_size = require(parse_float(payload, 'desiredBatchSize'), 'desiredBatchSize')
    except ValidationError as exc:
        return APIResponse.validation_error(exc.to_errors())

    result = BatchScalingService().calculate_batch_by_size(product_code, desired_size)
    return APIResponse.from_result(result)
