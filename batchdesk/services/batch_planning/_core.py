"""
Batch Planning Core

Orchestrates one planning run for a semiproduct:
- Resolve the semiproduct and the product sizes made from it
- Estimate each size's daily sales rate
- Resolve the volume budget for the chosen control mode
- Allocate the budget and assemble the plan summary

The run has no persisted side effects and can be repeated freely.
"""

import logging
from typing import List, Optional

from ...repositories import (
    CatalogRepository,
    ManufactureRepository,
    SqlCatalogRepository,
    SqlManufactureRepository,
)
from ...utils.error_messages import ErrorMessages as EM
from ...utils.timezone_utils import Clock
from ..base_service import BaseService
from ..results import ErrorCode, ServiceResult
from ._allocation import AllocationOptimizer
from ._sales_velocity import SalesVelocityEstimator
from ._volume_budget import BudgetParameterError, VolumeBudget, VolumeBudgetResolver
from .types import (
    BatchPlanItem,
    BatchPlanSummary,
    CalculateBatchPlanRequest,
    CalculateBatchPlanResponse,
    ControlMode,
    SemiproductSummary,
)

logger = logging.getLogger(__name__)


def _average_coverage(items: List[BatchPlanItem]) -> float:
    finite = [item.future_days_coverage for item in items if item.daily_sales_rate > 0]
    return sum(finite) / len(finite) if finite else 0.0


class BatchPlanningService(BaseService):
    def __init__(self, catalog_repository: Optional[CatalogRepository] = None,
                 manufacture_repository: Optional[ManufactureRepository] = None,
                 clock: Optional[Clock] = None,
                 sales_window_days: Optional[int] = None):
        super().__init__(clock)
        self.catalog_repository = catalog_repository or SqlCatalogRepository()
        self.manufacture_repository = manufacture_repository or SqlManufactureRepository()
        window = sales_window_days or self.config_value('DEFAULT_SALES_WINDOW_DAYS', 30)
        self.sales_velocity = SalesVelocityEstimator(self.catalog_repository, window)
        self.optimizer = AllocationOptimizer()

    def calculate_batch_plan(self, request: CalculateBatchPlanRequest) -> ServiceResult:
        return self.run_guarded('calculate_batch_plan', lambda: self._calculate(request))

    def _validate(self, request: CalculateBatchPlanRequest) -> Optional[ServiceResult]:
        for constraint in request.product_constraints:
            if constraint.is_fixed and constraint.fixed_quantity is None:
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR,
                    EM.FIXED_QUANTITY_REQUIRED.format(code=constraint.product_code),
                    params={'productCode': constraint.product_code},
                )
            if constraint.fixed_quantity is not None and constraint.fixed_quantity < 0:
                return ServiceResult.fail(
                    ErrorCode.VALIDATION_ERROR,
                    EM.FIXED_QUANTITY_NEGATIVE.format(code=constraint.product_code),
                    params={'productCode': constraint.product_code},
                )
        if request.from_date and request.to_date and request.to_date < request.from_date:
            return ServiceResult.fail(
                ErrorCode.INVALID_DATE_RANGE,
                EM.INVALID_DATE_RANGE,
                params={'fromDate': request.from_date.isoformat(), 'toDate': request.to_date.isoformat()},
            )
        try:
            VolumeBudgetResolver.validate(request)
        except BudgetParameterError as exc:
            return ServiceResult.fail(
                ErrorCode.INVALID_BATCH_SIZE,
                EM.CONTROL_PARAMETER_REQUIRED.format(mode=exc.mode.name, parameter=exc.parameter),
                params={'controlMode': exc.mode.name, 'parameter': exc.parameter},
            )
        return None

    def _calculate(self, request: CalculateBatchPlanRequest) -> ServiceResult:
        invalid = self._validate(request)
        if invalid is not None:
            return invalid

        semiproduct = self.catalog_repository.get_by_code(request.semiproduct_code)
        if semiproduct is None:
            logger.warning(f"Batch plan requested for unknown semiproduct {request.semiproduct_code}")
            return ServiceResult.fail(
                ErrorCode.MANUFACTURE_TEMPLATE_NOT_FOUND,
                EM.SEMIPRODUCT_NOT_FOUND.format(code=request.semiproduct_code),
                params={'semiproductCode': request.semiproduct_code},
            )

        templates = self.manufacture_repository.find_by_ingredient(request.semiproduct_code)
        if not templates:
            return ServiceResult.fail(
                ErrorCode.NO_PRODUCTS_FOR_SEMIPRODUCT,
                EM.NO_PRODUCTS_FOR_SEMIPRODUCT.format(code=request.semiproduct_code),
                params={'semiproductCode': request.semiproduct_code},
            )

        logger.info(
            f"BATCH_PLANNING: {request.semiproduct_code} mode={request.control_mode.name} "
            f"sizes={len(templates)}"
        )
        items = self._build_items(request, templates)
        budget = VolumeBudgetResolver.resolve(request, semiproduct.minimal_manufacture_quantity, items)
        target = request.target_days_coverage if request.control_mode is ControlMode.TARGET_DAYS_COVERAGE else None
        self.optimizer.allocate(items, budget.total, target)

        response = self._build_response(request, semiproduct, items, budget)
        if budget.fixed_exceeds_budget:
            logger.warning(
                f"BATCH_PLANNING: fixed sizes of {request.semiproduct_code} need {budget.fixed_volume:.2f} "
                f"but only {budget.total:.2f} is available"
            )
            return ServiceResult.fail(
                ErrorCode.FIXED_PRODUCTS_EXCEED_AVAILABLE_VOLUME,
                EM.FIXED_PRODUCTS_EXCEED_VOLUME.format(
                    volume_used=f"{budget.fixed_volume:.2f}",
                    available=f"{budget.total:.2f}",
                    deficit=f"{budget.deficit:.2f}",
                ),
                params={
                    'volumeUsedByFixed': f"{budget.fixed_volume:.2f}",
                    'availableVolume': f"{budget.total:.2f}",
                    'deficit': f"{budget.deficit:.2f}",
                },
                data=response,
            )
        return ServiceResult.ok(response)

    def _build_items(self, request: CalculateBatchPlanRequest, templates) -> List[BatchPlanItem]:
        start, end = self.sales_velocity.resolve_window(self.clock.today(), request.from_date, request.to_date)
        items = []
        for template in templates:
            product = self.catalog_repository.get_by_code(template.product_code)
            if product is None:
                logger.warning(f"Product {template.product_code} found in template but not in catalog")
                continue
            constraint = request.constraint_for(template.product_code)
            items.append(BatchPlanItem(
                product_code=template.product_code,
                product_name=template.product_name,
                product_size=product.size_code or '',
                current_stock=float(product.stock_total or 0),
                daily_sales_rate=self.sales_velocity.daily_sales_rate(
                    template.product_code, start, end, request.sales_multiplier
                ),
                weight_per_unit=float(product.net_weight or 0),
                is_fixed=bool(constraint and constraint.is_fixed),
                user_fixed_quantity=constraint.fixed_quantity if constraint else None,
            ))
        return items

    def _build_response(self, request, semiproduct, items: List[BatchPlanItem],
                        budget: VolumeBudget) -> CalculateBatchPlanResponse:
        used = sum(item.total_volume_required for item in items)
        average = _average_coverage(items)
        summary = BatchPlanSummary(
            total_product_sizes=len(items),
            total_volume_used=used,
            total_volume_available=budget.total,
            volume_utilization_percentage=(used / budget.total * 100) if budget.total > 0 else 0.0,
            used_control_mode=request.control_mode,
            effective_mmq_multiplier=budget.effective_mmq_multiplier,
            actual_total_weight=used,
            achieved_average_coverage=average,
            fixed_products_count=sum(1 for item in items if item.is_fixed),
            optimized_products_count=sum(1 for item in items if not item.is_fixed),
        )
        return CalculateBatchPlanResponse(
            semiproduct=SemiproductSummary(
                product_code=semiproduct.product_code,
                product_name=semiproduct.product_name,
                available_stock=float(semiproduct.stock_total or 0),
                minimal_manufacture_quantity=float(semiproduct.minimal_manufacture_quantity or 0),
            ),
            product_sizes=items,
            summary=summary,
            target_days_coverage=request.target_days_coverage if request.target_days_coverage else average,
            total_volume_used=used,
            total_volume_available=budget.total,
        )
