"""
ERP manufacture client.

The ERP owns stock: every confirmed production stage is posted there as a
manufacture document, and leftover semiproduct is written off after the
products are filled. Retries and backoff are the ERP's concern; a failed call
raises ``ErpClientError`` and the caller decides how to surface it.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional

import requests
from flask import current_app, has_app_context

logger = logging.getLogger(__name__)


class ErpManufactureType(str, Enum):
    SEMI_PRODUCT = "SemiProduct"
    PRODUCT = "Product"


class ErpClientError(RuntimeError):
    pass


class ErpNotConfiguredError(ErpClientError):
    pass


@dataclass
class SubmitManufactureItem:
    product_code: str
    name: str
    amount: float

    def to_dict(self) -> Dict[str, Any]:
        return {'productCode': self.product_code, 'name': self.name, 'amount': self.amount}


@dataclass
class SubmitManufactureRequest:
    manufacture_order_number: str
    manufacture_internal_number: str
    manufacture_type: ErpManufactureType
    date: date
    created_by: str
    items: List[SubmitManufactureItem] = field(default_factory=list)
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'manufactureOrderNumber': self.manufacture_order_number,
            'manufactureInternalNumber': self.manufacture_internal_number,
            'manufactureType': self.manufacture_type.value,
            'date': self.date.isoformat(),
            'createdBy': self.created_by,
            'items': [item.to_dict() for item in self.items],
            'lotNumber': self.lot_number,
            'expirationDate': self.expiration_date.isoformat() if self.expiration_date else None,
        }


@dataclass
class DiscardResidualSemiProductRequest:
    manufacture_order_number: str
    product_code: str
    product_name: str
    completion_date: date
    completed_by: str
    allowed_residue_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'manufactureOrderCode': self.manufacture_order_number,
            'productCode': self.product_code,
            'productName': self.product_name,
            'completionDate': self.completion_date.isoformat(),
            'completedBy': self.completed_by,
            'allowedResiduePercentage': self.allowed_residue_percentage,
        }


@dataclass
class DiscardResidualSemiProductResult:
    success: bool
    quantity_found: float = 0.0
    quantity_discarded: float = 0.0
    requires_manual_approval: bool = False
    stock_movement_reference: Optional[str] = None
    details: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "DiscardResidualSemiProductResult":
        return cls(
            success=bool(payload.get('success')),
            quantity_found=float(payload.get('quantityFound') or 0),
            quantity_discarded=float(payload.get('quantityDiscarded') or 0),
            requires_manual_approval=bool(payload.get('requiresManualApproval')),
            stock_movement_reference=payload.get('stockMovementReference'),
            details=payload.get('details'),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': self.success,
            'quantityFound': self.quantity_found,
            'quantityDiscarded': self.quantity_discarded,
            'requiresManualApproval': self.requires_manual_approval,
            'stockMovementReference': self.stock_movement_reference,
            'details': self.details,
        }


class ManufactureClient(ABC):
    @abstractmethod
    def submit_manufacture(self, request: SubmitManufactureRequest) -> str:
        """Post a manufacture document and return the ERP's document number."""

    @abstractmethod
    def discard_residual_semi_product(
        self, request: DiscardResidualSemiProductRequest
    ) -> DiscardResidualSemiProductResult:
        ...


class HttpManufactureClient(ManufactureClient):
    """JSON-over-HTTP client for the ERP manufacture endpoints."""

    def __init__(self, base_url: str, api_token: Optional[str] = None, timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.session = session or requests.Session()
        if api_token:
            self.session.headers['Authorization'] = f"Bearer {api_token}"

    def submit_manufacture(self, request: SubmitManufactureRequest) -> str:
        payload = self._post('/manufactures', request.to_dict())
        manufacture_id = payload.get('manufactureId')
        if not manufacture_id:
            raise ErpClientError(f"ERP accepted manufacture {request.manufacture_internal_number} without a document number")
        return str(manufacture_id)

    def discard_residual_semi_product(
        self, request: DiscardResidualSemiProductRequest
    ) -> DiscardResidualSemiProductResult:
        payload = self._post('/manufactures/discard-residue', request.to_dict())
        return DiscardResidualSemiProductResult.from_payload(payload)

    def _post(self, path: str, body: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = self.session.post(url, json=body, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ErpClientError(f"ERP request to {path} failed: {exc}") from exc

        if response.status_code >= 400:
            logger.warning(f"ERP rejected {path}: HTTP {response.status_code}")
            raise ErpClientError(f"ERP returned HTTP {response.status_code} for {path}: {response.text[:500]}")
        try:
            return response.json() or {}
        except ValueError as exc:
            raise ErpClientError(f"ERP returned a non-JSON response for {path}") from exc


class NullManufactureClient(ManufactureClient):
    """Used when no ERP is configured; every call fails so orders get flagged."""

    def submit_manufacture(self, request: SubmitManufactureRequest) -> str:
        raise ErpNotConfiguredError("ERP_BASE_URL is not configured")

    def discard_residual_semi_product(
        self, request: DiscardResidualSemiProductRequest
    ) -> DiscardResidualSemiProductResult:
        raise ErpNotConfiguredError("ERP_BASE_URL is not configured")


def build_manufacture_client(config: Optional[Dict[str, Any]] = None) -> ManufactureClient:
    """Create the client described by the app configuration."""
    if config is None:
        config = current_app.config if has_app_context() else {}
    base_url = config.get('ERP_BASE_URL')
    if not base_url:
        logger.debug("ERP_BASE_URL not set; using NullManufactureClient")
        return NullManufactureClient()
    return HttpManufactureClient(
        base_url,
        api_token=config.get('ERP_API_TOKEN'),
        timeout=float(config.get('ERP_TIMEOUT_SECONDS') or 30.0),
    )
