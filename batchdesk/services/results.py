"""
Service Results

Every planning and order operation returns a ``ServiceResult`` instead of
raising for expected failures. Callers branch on ``success`` and map
``error_code`` to their own surface (HTTP status, CLI exit code).
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Machine-readable failure kinds"""
    VALIDATION_ERROR = "ValidationError"
    INVALID_BATCH_SIZE = "InvalidBatchSize"
    INVALID_INGREDIENT_AMOUNT = "InvalidIngredientAmount"
    INVALID_DATE_RANGE = "InvalidDateRange"
    MANUFACTURE_TEMPLATE_NOT_FOUND = "ManufactureTemplateNotFound"
    NO_PRODUCTS_FOR_SEMIPRODUCT = "NoProductsForSemiproduct"
    FIXED_PRODUCTS_EXCEED_AVAILABLE_VOLUME = "FixedProductsExceedAvailableVolume"
    ORDER_NOT_FOUND = "ManufactureOrderNotFound"
    INVALID_STATE_TRANSITION = "InvalidStateTransition"
    WRONG_MANUFACTURE_TYPE = "WrongManufactureType"
    CANNOT_UPDATE_CANCELLED_ORDER = "CannotUpdateCancelledOrder"
    CANNOT_UPDATE_COMPLETED_ORDER = "CannotUpdateCompletedOrder"
    CANNOT_SCHEDULE_IN_PAST = "CannotScheduleInPast"
    ERP_INTEGRATION_FAILED = "ErpIntegrationFailed"
    INTERNAL_ERROR = "InternalServerError"


@dataclass
class ServiceResult:
    success: bool
    data: Any = None
    error_code: Optional[ErrorCode] = None
    params: Dict[str, str] = field(default_factory=dict)
    message: Optional[str] = None

    @classmethod
    def ok(cls, data: Any = None, message: Optional[str] = None) -> "ServiceResult":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, error_code: ErrorCode, message: Optional[str] = None,
             params: Optional[Dict[str, Any]] = None, data: Any = None) -> "ServiceResult":
        return cls(
            success=False,
            data=data,
            error_code=error_code,
            params={key: str(value) for key, value in (params or {}).items()},
            message=message,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'data': self.data,
            'errorCode': self.error_code.value if self.error_code else None,
            'params': dict(self.params),
            'message': self.message,
        }
