"""
Allocation

Distributes the volume budget across the product sizes of one semiproduct.

Fixed sizes are served first, exactly as requested. The rest is water-filled:
every optimized size is raised to one common days-coverage level, the highest
level (capped at the target coverage) whose whole units the budget can pay
for. The level is found by bisection, so the work depends on the number of
sizes and not on the number of units. Whatever is left is handed out one unit
at a time to the size with the lowest coverage; a size that can no longer be
afforded drops out and the others are levelled again.
Units are always rounded down and no fractional remainder is carried.
Ties go to the size with the smaller weight per unit, then the product code.
"""

import logging
import math
from typing import List, Optional

from .types import BatchPlanItem

logger = logging.getLogger(__name__)

_EPS = 1e-9
_LEVEL_ITERATIONS = 200

FIXED_NOTE = "Fixed by user constraint"
NO_SALES_NOTE = "No sales history"
NO_WEIGHT_NOTE = "No weight per unit configured"
TARGET_REACHED_NOTE = "Target coverage reached ({coverage:.1f} days)"
VOLUME_LIMITED_NOTE = "Limited by available volume ({coverage:.1f} days)"


def _affordable_units(remaining: float, weight: float) -> int:
    return int(math.floor((remaining + _EPS) / weight))


def _extra_units_at(item: BatchPlanItem, level: float) -> int:
    """Units to add so ``item`` reaches ``level`` days of coverage, rounded down."""
    wanted = int(math.floor(level * item.daily_sales_rate - item.current_stock + _EPS))
    return max(0, wanted - item.recommended_units_to_produce)


def _cost_at(items: List[BatchPlanItem], level: float) -> float:
    return sum(_extra_units_at(item, level) * item.weight_per_unit for item in items)


def _fill_level(items: List[BatchPlanItem], budget: float, target: Optional[float]) -> float:
    """Highest common coverage level whose extra units fit in ``budget``."""
    lo = min(item.future_days_coverage for item in items)
    if target is not None:
        if lo >= target or _cost_at(items, target) <= budget + _EPS:
            return max(lo, target)
        hi = target
    else:
        # At hi the cheapest size alone would already cost more than the budget
        hi = (
            max(item.future_days_coverage for item in items)
            + budget / min(item.daily_sales_rate * item.weight_per_unit for item in items)
            + max(1.0 / item.daily_sales_rate for item in items)
            + 1.0
        )
    for _ in range(_LEVEL_ITERATIONS):
        mid = (lo + hi) / 2
        if mid <= lo or mid >= hi:
            break
        if _cost_at(items, mid) <= budget + _EPS:
            lo = mid
        else:
            hi = mid
    return lo


def _neediest(items: List[BatchPlanItem]) -> BatchPlanItem:
    return min(items, key=lambda item: (item.future_days_coverage, item.weight_per_unit, item.product_code))


class AllocationOptimizer:
    def allocate(self, items: List[BatchPlanItem], available_volume: float,
                 target_days_coverage: Optional[float] = None) -> float:
        """Fill in recommendations on ``items`` in place and return the unused volume."""
        remaining = float(available_volume)

        for item in items:
            if item.is_fixed:
                units = int(item.user_fixed_quantity or 0)
                item.recommended_units_to_produce = units
                item.total_volume_required = units * item.weight_per_unit
                item.was_optimized = False
                item.optimization_note = FIXED_NOTE
                remaining -= item.total_volume_required
        remaining = max(0.0, remaining)

        candidates = []
        for item in items:
            if item.is_fixed:
                continue
            item.was_optimized = True
            item.recommended_units_to_produce = 0
            item.total_volume_required = 0.0
            if item.daily_sales_rate <= 0:
                item.optimization_note = NO_SALES_NOTE
                continue
            if item.weight_per_unit <= 0:
                item.optimization_note = NO_WEIGHT_NOTE
                continue
            candidates.append(item)

        active = list(candidates)
        while active:
            level = _fill_level(active, remaining, target_days_coverage)
            for item in active:
                extra = _extra_units_at(item, level)
                if extra:
                    item.recommended_units_to_produce += extra
                    remaining -= extra * item.weight_per_unit

            item = _neediest(active)
            reached = (
                target_days_coverage is not None
                and item.future_days_coverage >= target_days_coverage - _EPS
            )
            if reached or _affordable_units(remaining, item.weight_per_unit) <= 0:
                active.remove(item)
                continue
            item.recommended_units_to_produce += 1
            remaining -= item.weight_per_unit

        for item in candidates:
            item.total_volume_required = item.recommended_units_to_produce * item.weight_per_unit
            reached = (
                target_days_coverage is not None
                and item.future_days_coverage >= target_days_coverage - _EPS
            )
            template = TARGET_REACHED_NOTE if reached else VOLUME_LIMITED_NOTE
            item.optimization_note = template.format(coverage=item.future_days_coverage)

        logger.debug(
            f"Allocated {len(candidates)} sizes, {max(remaining, 0.0):.4f} of {available_volume:.4f} left unused"
        )
        return max(remaining, 0.0)
