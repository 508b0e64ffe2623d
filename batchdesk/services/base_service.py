import logging
from abc import ABC
from typing import Any, Callable, Dict, Optional

from flask import current_app, has_app_context

from ..utils.error_messages import ErrorMessages as EM
from ..utils.timezone_utils import Clock, SystemClock
from .results import ErrorCode, ServiceResult


class BaseService(ABC):
    """Base service class providing common functionality"""

    def __init__(self, clock: Optional[Clock] = None):
        self.logger = logging.getLogger(f"batchdesk.services.{self.__class__.__name__}")
        self.clock = clock or SystemClock()

    def log_operation(self, operation: str, data: Dict[str, Any], user: Optional[str] = None):
        """Centralized operation logging"""
        self.logger.info(f"Operation: {operation} {data}", extra={
            'operation': operation,
            'user': user,
            'service': self.__class__.__name__
        })

    def handle_service_error(self, error: Exception, operation: str) -> ServiceResult:
        """Log an unexpected failure and convert it to an internal-error result."""
        self.logger.exception(f"Service error in {operation}: {error}")
        return ServiceResult.fail(
            ErrorCode.INTERNAL_ERROR,
            EM.INTERNAL_ERROR.format(operation=operation),
            params={'operation': operation},
        )

    def run_guarded(self, operation: str, func: Callable[[], ServiceResult],
                    rollback: Optional[Callable[[], None]] = None) -> ServiceResult:
        """Run ``func`` and turn unexpected exceptions into ``INTERNAL_ERROR``."""
        try:
            return func()
        except Exception as exc:
            if rollback is not None:
                rollback()
            return self.handle_service_error(exc, operation)

    @staticmethod
    def config_value(key: str, default: Any) -> Any:
        if has_app_context():
            return current_app.config.get(key, default)
        return default
