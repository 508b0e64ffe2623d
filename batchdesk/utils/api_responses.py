from typing import Any, Dict, List, Optional

from flask import jsonify, request, Response

from ..services.results import ErrorCode, ServiceResult

_STATUS_BY_ERROR = {
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.INVALID_BATCH_SIZE: 422,
    ErrorCode.INVALID_INGREDIENT_AMOUNT: 422,
    ErrorCode.INVALID_DATE_RANGE: 422,
    ErrorCode.FIXED_PRODUCTS_EXCEED_AVAILABLE_VOLUME: 422,
    ErrorCode.MANUFACTURE_TEMPLATE_NOT_FOUND: 404,
    ErrorCode.NO_PRODUCTS_FOR_SEMIPRODUCT: 404,
    ErrorCode.ORDER_NOT_FOUND: 404,
    ErrorCode.INVALID_STATE_TRANSITION: 409,
    ErrorCode.WRONG_MANUFACTURE_TYPE: 409,
    ErrorCode.CANNOT_UPDATE_CANCELLED_ORDER: 409,
    ErrorCode.CANNOT_UPDATE_COMPLETED_ORDER: 409,
    ErrorCode.CANNOT_SCHEDULE_IN_PAST: 422,
    ErrorCode.ERP_INTEGRATION_FAILED: 502,
    ErrorCode.INTERNAL_ERROR: 500,
}


def _serialize(data: Any) -> Any:
    if hasattr(data, 'to_dict'):
        return data.to_dict()
    if isinstance(data, list):
        return [_serialize(item) for item in data]
    return data


class APIResponse:
    """Standardized API response handler"""

    @staticmethod
    def success(data: Any = None, message: str = "Success", status_code: int = 200) -> Response:
        response_data = {
            'success': True,
            'message': message,
            'data': data
        }
        return jsonify(response_data), status_code

    @staticmethod
    def error(message: str, errors: Optional[Dict] = None, status_code: int = 400,
              error_code: Optional[str] = None, data: Any = None) -> Response:
        response_data = {
            'success': False,
            'message': message,
            'errors': errors or {}
        }
        if error_code:
            response_data['errorCode'] = error_code
        if data is not None:
            response_data['data'] = data
        return jsonify(response_data), status_code

    @staticmethod
    def validation_error(errors: Dict[str, List[str]]) -> Response:
        return APIResponse.error(
            message="Validation failed",
            errors=errors,
            status_code=422,
            error_code=ErrorCode.VALIDATION_ERROR.value,
        )

    @staticmethod
    def not_found(resource: str = "Resource") -> Response:
        return APIResponse.error(
            message=f"{resource} not found",
            status_code=404
        )

    @staticmethod
    def from_result(result: ServiceResult, success_status: int = 200, message: str = "Success") -> Response:
        """Translate a service result into the standard envelope."""
        data = _serialize(result.data)
        if result.success:
            return APIResponse.success(data, message=result.message or message, status_code=success_status)
        code = result.error_code or ErrorCode.INTERNAL_ERROR
        return APIResponse.error(
            message=result.message or code.value,
            errors=result.params,
            status_code=_STATUS_BY_ERROR.get(code, 400),
            error_code=code.value,
            data=data,
        )

    @staticmethod
    def handle_request_content() -> Dict[str, Any]:
        """Smart request content handling"""
        if request.is_json:
            return request.get_json(silent=True) or {}
        elif request.form:
            return request.form.to_dict()
        else:
            return {}


__all__ = ['APIResponse']
