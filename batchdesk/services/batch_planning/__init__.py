"""
Batch Planning Service Package

Decides how much of each product size to fill from one semiproduct batch:
- Sales velocity per size over a historical window
- Volume budget from the chosen control mode
- Greatest-need-first allocation of the budget across sizes
- Scaling a manufacture template to a new batch size
"""

from ._allocation import AllocationOptimizer
from ._core import BatchPlanningService
from ._sales_velocity import SalesVelocityEstimator
from ._volume_budget import BudgetParameterError, VolumeBudget, VolumeBudgetResolver
from .scaling import BatchScalingService
from .types import (
    BatchPlanItem,
    BatchPlanSummary,
    CalculateBatchPlanRequest,
    CalculateBatchPlanResponse,
    ControlMode,
    ProductConstraint,
    ScaledBatch,
    ScaledIngredient,
    SemiproductSummary,
)

__all__ = [
    'AllocationOptimizer',
    'BatchPlanningService',
    'SalesVelocityEstimator',
    'BudgetParameterError',
    'VolumeBudget',
    'VolumeBudgetResolver',
    'BatchScalingService',
    'BatchPlanItem',
    'BatchPlanSummary',
    'CalculateBatchPlanRequest',
    'CalculateBatchPlanResponse',
    'ControlMode',
    'ProductConstraint',
    'ScaledBatch',
    'ScaledIngredient',
    'SemiproductSummary',
]
