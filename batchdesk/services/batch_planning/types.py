"""
Batch Planning Types

Request, item and response structures for batch planning. Items and plans
are recomputed on every call and never persisted.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ...utils.payloads import (
    ValidationError,
    parse_bool,
    parse_date,
    parse_float,
    parse_str,
    pick,
    require,
)


class ControlMode(Enum):
    """How the production volume budget is decided"""
    MMQ_MULTIPLIER = 1
    TOTAL_WEIGHT = 2
    TARGET_DAYS_COVERAGE = 3

    @classmethod
    def parse(cls, value) -> "ControlMode":
        if isinstance(value, ControlMode):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return cls(value)
        text = str(value).strip()
        if text.isdigit():
            return cls(int(text))
        normalized = text.replace('-', '_').replace(' ', '_')
        aliases = {
            'MMQ': 'MMQ_MULTIPLIER',
            'MMQMULTIPLIER': 'MMQ_MULTIPLIER',
            'TOTALWEIGHT': 'TOTAL_WEIGHT',
            'TARGETDAYSCOVERAGE': 'TARGET_DAYS_COVERAGE',
            'COVERAGE': 'TARGET_DAYS_COVERAGE',
        }
        key = normalized.upper()
        key = aliases.get(key.replace('_', ''), key)
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown control mode: {value!r}")


@dataclass
class ProductConstraint:
    product_code: str
    is_fixed: bool = False
    fixed_quantity: Optional[int] = None


@dataclass
class CalculateBatchPlanRequest:
    semiproduct_code: str
    control_mode: ControlMode = ControlMode.MMQ_MULTIPLIER
    from_date: Optional[date] = None
    to_date: Optional[date] = None
    sales_multiplier: float = 1.0
    mmq_multiplier: Optional[float] = None
    total_weight_to_use: Optional[float] = None
    target_days_coverage: Optional[float] = None
    product_constraints: List[ProductConstraint] = field(default_factory=list)

    def constraint_for(self, product_code: str) -> Optional[ProductConstraint]:
        for constraint in self.product_constraints:
            if constraint.product_code == product_code:
                return constraint
        return None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CalculateBatchPlanRequest":
        code = require(parse_str(payload, 'semiproductCode'), 'semiproductCode')
        raw_mode = pick(payload, 'controlMode', ControlMode.MMQ_MULTIPLIER)
        try:
            mode = ControlMode.parse(raw_mode)
        except ValueError as exc:
            raise ValidationError(str(exc), 'controlMode')

        constraints = []
        for raw in pick(payload, 'productConstraints') or []:
            if not isinstance(raw, Mapping):
                raise ValidationError("productConstraints entries must be objects.", 'productConstraints')
            fixed_quantity = parse_float(raw, 'fixedQuantity')
            if fixed_quantity is not None and not float(fixed_quantity).is_integer():
                raise ValidationError("fixedQuantity must be a whole number of units.", 'fixedQuantity')
            constraints.append(ProductConstraint(
                product_code=require(parse_str(raw, 'productCode'), 'productCode'),
                is_fixed=bool(parse_bool(raw, 'isFixed', False)),
                fixed_quantity=None if fixed_quantity is None else int(fixed_quantity),
            ))

        return cls(
            semiproduct_code=code,
            control_mode=mode,
            from_date=parse_date(payload, 'fromDate'),
            to_date=parse_date(payload, 'toDate'),
            sales_multiplier=parse_float(payload, 'salesMultiplier', 1.0),
            mmq_multiplier=parse_float(payload, 'mmqMultiplier'),
            total_weight_to_use=parse_float(payload, 'totalWeightToUse'),
            target_days_coverage=parse_float(payload, 'targetDaysCoverage'),
            product_constraints=constraints,
        )


def _coverage_or_none(value: float) -> Optional[float]:
    return None if math.isinf(value) else round(value, 2)


@dataclass
class SemiproductSummary:
    product_code: str
    product_name: str
    available_stock: float
    minimal_manufacture_quantity: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productCode': self.product_code,
            'productName': self.product_name,
            'availableStock': self.available_stock,
            'minimalManufactureQuantity': self.minimal_manufacture_quantity,
        }


@dataclass
class BatchPlanItem:
    """One product size sharing the semiproduct, with its recommendation."""
    product_code: str
    product_name: str
    product_size: str
    current_stock: float
    daily_sales_rate: float
    weight_per_unit: float
    is_fixed: bool = False
    user_fixed_quantity: Optional[int] = None
    recommended_units_to_produce: int = 0
    total_volume_required: float = 0.0
    was_optimized: bool = False
    optimization_note: str = ""

    @property
    def current_days_coverage(self) -> float:
        if self.daily_sales_rate <= 0:
            return math.inf
        return self.current_stock / self.daily_sales_rate

    @property
    def future_stock(self) -> float:
        return self.current_stock + self.recommended_units_to_produce

    @property
    def future_days_coverage(self) -> float:
        if self.daily_sales_rate <= 0:
            return math.inf
        return self.future_stock / self.daily_sales_rate

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productCode': self.product_code,
            'productName': self.product_name,
            'productSize': self.product_size,
            'currentStock': self.current_stock,
            'dailySalesRate': self.daily_sales_rate,
            'currentDaysCoverage': _coverage_or_none(self.current_days_coverage),
            'weightPerUnit': self.weight_per_unit,
            'isFixed': self.is_fixed,
            'userFixedQuantity': self.user_fixed_quantity,
            'recommendedUnitsToProduce': self.recommended_units_to_produce,
            'totalVolumeRequired': round(self.total_volume_required, 4),
            'futureStock': self.future_stock,
            'futureDaysCoverage': _coverage_or_none(self.future_days_coverage),
            'wasOptimized': self.was_optimized,
            'optimizationNote': self.optimization_note,
        }


@dataclass
class BatchPlanSummary:
    total_product_sizes: int
    total_volume_used: float
    total_volume_available: float
    volume_utilization_percentage: float
    used_control_mode: ControlMode
    effective_mmq_multiplier: float
    actual_total_weight: float
    achieved_average_coverage: float
    fixed_products_count: int
    optimized_products_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'totalProductSizes': self.total_product_sizes,
            'totalVolumeUsed': round(self.total_volume_used, 4),
            'totalVolumeAvailable': round(self.total_volume_available, 4),
            'volumeUtilizationPercentage': round(self.volume_utilization_percentage, 2),
            'usedControlMode': self.used_control_mode.name,
            'effectiveMmqMultiplier': self.effective_mmq_multiplier,
            'actualTotalWeight': round(self.actual_total_weight, 4),
            'achievedAverageCoverage': round(self.achieved_average_coverage, 2),
            'fixedProductsCount': self.fixed_products_count,
            'optimizedProductsCount': self.optimized_products_count,
        }


@dataclass
class CalculateBatchPlanResponse:
    semiproduct: SemiproductSummary
    product_sizes: List[BatchPlanItem]
    summary: BatchPlanSummary
    target_days_coverage: float
    total_volume_used: float
    total_volume_available: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'semiproduct': self.semiproduct.to_dict(),
            'productSizes': [item.to_dict() for item in self.product_sizes],
            'summary': self.summary.to_dict(),
            'targetDaysCoverage': round(self.target_days_coverage, 2),
            'totalVolumeUsed': round(self.total_volume_used, 4),
            'totalVolumeAvailable': round(self.total_volume_available, 4),
        }


@dataclass
class ScaledIngredient:
    product_code: str
    product_name: str
    original_amount: float
    calculated_amount: float
    price: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productCode': self.product_code,
            'productName': self.product_name,
            'originalAmount': self.original_amount,
            'calculatedAmount': self.calculated_amount,
            'price': self.price,
        }


@dataclass
class ScaledBatch:
    product_code: str
    product_name: str
    original_batch_size: float
    new_batch_size: float
    scale_factor: float
    ingredients: List[ScaledIngredient] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'productCode': self.product_code,
            'productName': self.product_name,
            'originalBatchSize': self.original_batch_size,
            'newBatchSize': self.new_batch_size,
            'scaleFactor': self.scale_factor,
            'ingredients': [ingredient.to_dict() for ingredient in self.ingredients],
        }
