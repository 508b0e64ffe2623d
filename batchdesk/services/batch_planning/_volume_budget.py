"""
Volume Budget

Turns the chosen control mode into one scalar budget (weight of semiproduct)
for the planning run.
"""

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from .types import BatchPlanItem, CalculateBatchPlanRequest, ControlMode


class BudgetParameterError(ValueError):
    def __init__(self, mode: ControlMode, parameter: str):
        super().__init__(f"{mode.name} requires a positive {parameter}")
        self.mode = mode
        self.parameter = parameter


@dataclass
class VolumeBudget:
    total: float
    fixed_volume: float
    mode: ControlMode
    effective_mmq_multiplier: float

    @property
    def remaining_after_fixed(self) -> float:
        return max(0.0, self.total - self.fixed_volume)

    @property
    def fixed_exceeds_budget(self) -> bool:
        return self.fixed_volume > self.total + 1e-9

    @property
    def deficit(self) -> float:
        return max(0.0, self.fixed_volume - self.total)


def _required_parameter(mode: ControlMode) -> str:
    return {
        ControlMode.MMQ_MULTIPLIER: 'mmqMultiplier',
        ControlMode.TOTAL_WEIGHT: 'totalWeightToUse',
        ControlMode.TARGET_DAYS_COVERAGE: 'targetDaysCoverage',
    }[mode]


def _positive(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value) and value > 0


class VolumeBudgetResolver:
    @staticmethod
    def validate(request: CalculateBatchPlanRequest) -> None:
        """Raise ``BudgetParameterError`` when the mode's parameter is missing or not positive."""
        mode = request.control_mode
        value = {
            ControlMode.MMQ_MULTIPLIER: request.mmq_multiplier,
            ControlMode.TOTAL_WEIGHT: request.total_weight_to_use,
            ControlMode.TARGET_DAYS_COVERAGE: request.target_days_coverage,
        }[mode]
        if not _positive(value):
            raise BudgetParameterError(mode, _required_parameter(mode))

    @staticmethod
    def fixed_volume(items: Iterable[BatchPlanItem]) -> float:
        return sum((item.user_fixed_quantity or 0) * item.weight_per_unit for item in items if item.is_fixed)

    @classmethod
    def resolve(cls, request: CalculateBatchPlanRequest, minimal_manufacture_quantity: float,
                items: Iterable[BatchPlanItem]) -> VolumeBudget:
        cls.validate(request)
        items = list(items)
        fixed = cls.fixed_volume(items)
        mode = request.control_mode

        if mode is ControlMode.MMQ_MULTIPLIER:
            total = float(minimal_manufacture_quantity or 0) * request.mmq_multiplier
        elif mode is ControlMode.TOTAL_WEIGHT:
            total = float(request.total_weight_to_use)
        else:
            target = request.target_days_coverage
            needed = 0.0
            for item in items:
                if item.is_fixed or item.daily_sales_rate <= 0:
                    continue
                shortfall = max(0.0, target * item.daily_sales_rate - item.current_stock)
                needed += shortfall * item.weight_per_unit
            total = needed + fixed

        return VolumeBudget(
            total=total,
            fixed_volume=fixed,
            mode=mode,
            effective_mmq_multiplier=request.mmq_multiplier if request.mmq_multiplier is not None else 1.0,
        )
