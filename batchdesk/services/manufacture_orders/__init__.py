"""
Manufacture Order Service Package

Lifecycle of a manufacture order:
- Creation from a batch plan, and duplication of an existing order
- Editing of order details and rescheduling
- Single-phase and multi-phase production confirmations
- Planner-driven status changes and manual-action resolution
- ERP submission of confirmed stages and residual write-off
"""

from ._base import ManufactureOrderServiceBase
from .confirmation import ManufactureOrderConfirmationService
from .creation import ManufactureOrderCreationService
from .editing import ManufactureOrderEditService
from .erp_workflow import ManufactureErpWorkflow
from .queries import ManufactureOrderQueryService
from .status import ManufactureOrderStatusService
from .types import (
    ConfirmProductCompletionRequest,
    ConfirmSemiProductManufactureRequest,
    ConfirmSinglePhaseProductionRequest,
    CreateManufactureOrderProduct,
    CreateManufactureOrderRequest,
    ResolveManualActionRequest,
    UpdateManufactureOrderRequest,
    UpdateManufactureOrderScheduleRequest,
    UpdateManufactureOrderStatusRequest,
    UpdateProductLine,
    UpdateSemiProductLine,
    filter_from_args,
)

__all__ = [
    'ManufactureOrderServiceBase',
    'ManufactureOrderConfirmationService',
    'ManufactureOrderCreationService',
    'ManufactureOrderEditService',
    'ManufactureErpWorkflow',
    'ManufactureOrderQueryService',
    'ManufactureOrderStatusService',
    'ConfirmProductCompletionRequest',
    'ConfirmSemiProductManufactureRequest',
    'ConfirmSinglePhaseProductionRequest',
    'CreateManufactureOrderProduct',
    'CreateManufactureOrderRequest',
    'ResolveManualActionRequest',
    'UpdateManufactureOrderRequest',
    'UpdateManufactureOrderScheduleRequest',
    'UpdateManufactureOrderStatusRequest',
    'UpdateProductLine',
    'UpdateSemiProductLine',
    'filter_from_args',
]
