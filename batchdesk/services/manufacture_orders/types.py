"""
Manufacture Order Types

Request structures for the order lifecycle operations. ``from_payload``
accepts the JSON bodies posted by the front end.
"""

import math
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from ...models.order_state import ManufactureType, parse_manufacture_type, parse_state
from ...repositories import ManufactureOrderFilter
from ...utils.payloads import (
    ValidationError,
    parse_bool,
    parse_date,
    parse_float,
    parse_int,
    parse_str,
    pick,
    require,
)


def _parse_quantity_map(payload: Mapping[str, Any], key: str) -> Dict[int, float]:
    raw = pick(payload, key) or {}
    if not isinstance(raw, Mapping):
        raise ValidationError(f"{key} must be an object of line id to quantity.", key)
    quantities = {}
    for line_id, quantity in raw.items():
        try:
            line_key, amount = int(line_id), float(quantity)
        except (TypeError, ValueError):
            raise ValidationError(f"{key} has an invalid entry for line {line_id!r}.", key)
        if isinstance(quantity, bool) or not math.isfinite(amount):
            raise ValidationError(f"{key} has an invalid entry for line {line_id!r}.", key)
        quantities[line_key] = amount
    return quantities


@dataclass
class CreateManufactureOrderProduct:
    product_code: str
    product_name: str
    planned_quantity: float


@dataclass
class CreateManufactureOrderRequest:
    product_code: str
    product_name: str
    original_batch_size: float
    new_batch_size: float
    scale_factor: float
    products: List[CreateManufactureOrderProduct] = field(default_factory=list)
    planned_date: Optional[date] = None
    product_planned_date: Optional[date] = None
    responsible_person: Optional[str] = None
    manufacture_type: ManufactureType = ManufactureType.MULTI_PHASE

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CreateManufactureOrderRequest":
        products = []
        for raw in pick(payload, 'products') or []:
            if not isinstance(raw, Mapping):
                raise ValidationError("products entries must be objects.", 'products')
            products.append(CreateManufactureOrderProduct(
                product_code=require(parse_str(raw, 'productCode', max_length=50), 'productCode'),
                product_name=parse_str(raw, 'productName', '', max_length=200),
                planned_quantity=parse_float(raw, 'plannedQuantity', 0.0),
            ))
        try:
            kind = parse_manufacture_type(pick(payload, 'manufactureType', ManufactureType.MULTI_PHASE))
        except ValueError as exc:
            raise ValidationError(str(exc), 'manufactureType')
        return cls(
            product_code=require(parse_str(payload, 'productCode', max_length=50), 'productCode'),
            product_name=parse_str(payload, 'productName', '', max_length=200),
            original_batch_size=parse_float(payload, 'originalBatchSize', 0.0),
            new_batch_size=require(parse_float(payload, 'newBatchSize'), 'newBatchSize'),
            scale_factor=parse_float(payload, 'scaleFactor', 1.0),
            products=products,
            planned_date=parse_date(payload, 'plannedDate'),
            product_planned_date=parse_date(payload, 'productPlannedDate'),
            responsible_person=parse_str(payload, 'responsiblePerson', max_length=100),
            manufacture_type=kind,
        )


@dataclass
class ConfirmSinglePhaseProductionRequest:
    order_id: int
    product_actual_quantities: Dict[int, float] = field(default_factory=dict)
    change_reason: Optional[str] = None

    @classmethod
    def from_payload(cls, order_id: int, payload: Mapping[str, Any]) -> "ConfirmSinglePhaseProductionRequest":
        return cls(
            order_id=order_id,
            product_actual_quantities=_parse_quantity_map(payload, 'productActualQuantities'),
            change_reason=parse_str(payload, 'changeReason', max_length=2000),
        )


@dataclass
class ConfirmSemiProductManufactureRequest:
    order_id: int
    actual_quantity: float
    change_reason: Optional[str] = None

    @classmethod
    def from_payload(cls, order_id: int, payload: Mapping[str, Any]) -> "ConfirmSemiProductManufactureRequest":
        return cls(
            order_id=order_id,
            actual_quantity=require(parse_float(payload, 'actualQuantity'), 'actualQuantity'),
            change_reason=parse_str(payload, 'changeReason', max_length=2000),
        )


@dataclass
class ConfirmProductCompletionRequest:
    order_id: int
    product_actual_quantities: Dict[int, float] = field(default_factory=dict)
    change_reason: Optional[str] = None

    @classmethod
    def from_payload(cls, order_id: int, payload: Mapping[str, Any]) -> "ConfirmProductCompletionRequest":
        return cls(
            order_id=order_id,
            product_actual_quantities=_parse_quantity_map(payload, 'productActualQuantities'),
            change_reason=parse_str(payload, 'changeReason', max_length=2000),
        )


@dataclass
class UpdateSemiProductLine:
    planned_quantity: Optional[float] = None
    actual_quantity: Optional[float] = None
    lot_number: Optional[str] = None
    expiration_date: Optional[date] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UpdateSemiProductLine":
        return cls(
            planned_quantity=parse_float(payload, 'plannedQuantity'),
            actual_quantity=parse_float(payload, 'actualQuantity'),
            lot_number=parse_str(payload, 'lotNumber', max_length=50),
            expiration_date=parse_date(payload, 'expirationDate'),
        )


@dataclass
class UpdateProductLine:
    """A product line edit. Without ``id`` the entry is a replacement line."""
    id: Optional[int] = None
    product_code: Optional[str] = None
    product_name: Optional[str] = None
    planned_quantity: Optional[float] = None
    actual_quantity: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "UpdateProductLine":
        return cls(
            id=parse_int(payload, 'id'),
            product_code=parse_str(payload, 'productCode', max_length=50),
            product_name=parse_str(payload, 'productName', max_length=200),
            planned_quantity=parse_float(payload, 'plannedQuantity'),
            actual_quantity=parse_float(payload, 'actualQuantity'),
        )


@dataclass
class UpdateManufactureOrderRequest:
    order_id: int
    semi_product_planned_date: Optional[date] = None
    product_planned_date: Optional[date] = None
    responsible_person: Optional[str] = None
    semi_product: Optional[UpdateSemiProductLine] = None
    products: List[UpdateProductLine] = field(default_factory=list)
    new_note: Optional[str] = None

    @property
    def replaces_products(self) -> bool:
        return bool(self.products) and any(line.id is None for line in self.products)

    @classmethod
    def from_payload(cls, order_id: int, payload: Mapping[str, Any]) -> "UpdateManufactureOrderRequest":
        raw_semi = pick(payload, 'semiProduct')
        if raw_semi is not None and not isinstance(raw_semi, Mapping):
            raise ValidationError("semiProduct must be an object.", 'semiProduct')
        products = []
        for raw in pick(payload, 'products') or []:
            if not isinstance(raw, Mapping):
                raise ValidationError("products entries must be objects.", 'products')
            products.append(UpdateProductLine.from_payload(raw))
        return cls(
            order_id=order_id,
            semi_product_planned_date=parse_date(payload, 'semiProductPlannedDate'),
            product_planned_date=parse_date(payload, 'productPlannedDate'),
            responsible_person=parse_str(payload, 'responsiblePerson', max_length=100),
            semi_product=UpdateSemiProductLine.from_payload(raw_semi) if raw_semi is not None else None,
            products=products,
            new_note=parse_str(payload, 'newNote', max_length=2000),
        )


@dataclass
class UpdateManufactureOrderScheduleRequest:
    order_id: int
    semi_product_planned_date: Optional[date] = None
    product_planned_date: Optional[date] = None
    change_reason: Optional[str] = None

    @classmethod
    def from_payload(cls, order_id: int, payload: Mapping[str, Any]) -> "UpdateManufactureOrderScheduleRequest":
        return cls(
            order_id=order_id,
            semi_product_planned_date=parse_date(payload, 'semiProductPlannedDate'),
            product_planned_date=parse_date(payload, 'productPlannedDate'),
            change_reason=parse_str(payload, 'changeReason', max_length=2000),
        )


@dataclass
class UpdateManufactureOrderStatusRequest:
    order_id: int
    new_state: str
    change_reason: Optional[str] = None
    note: Optional[str] = None
    erp_order_number_semiproduct: Optional[str] = None
    erp_order_number_product: Optional[str] = None
    erp_discard_residue_document_number: Optional[str] = None
    manual_action_required: Optional[bool] = None

    @classmethod
    def from_payload(cls, order_id: int, payload: Mapping[str, Any]) -> "UpdateManufactureOrderStatusRequest":
        return cls(
            order_id=order_id,
            new_state=require(parse_str(payload, 'newState'), 'newState'),
            change_reason=parse_str(payload, 'changeReason', max_length=2000),
            note=parse_str(payload, 'note', max_length=2000),
            erp_order_number_semiproduct=parse_str(payload, 'erpOrderNumberSemiproduct', max_length=50),
            erp_order_number_product=parse_str(payload, 'erpOrderNumberProduct', max_length=50),
            erp_discard_residue_document_number=parse_str(
                payload, 'erpDiscardResidueDocumentNumber', max_length=50
            ),
            manual_action_required=parse_bool(payload, 'manualActionRequired'),
        )


@dataclass
class ResolveManualActionRequest:
    order_id: int
    erp_order_number_semiproduct: Optional[str] = None
    erp_order_number_product: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_payload(cls, order_id: int, payload: Mapping[str, Any]) -> "ResolveManualActionRequest":
        return cls(
            order_id=order_id,
            erp_order_number_semiproduct=parse_str(payload, 'erpOrderNumberSemiproduct', max_length=50),
            erp_order_number_product=parse_str(payload, 'erpOrderNumberProduct', max_length=50),
            note=parse_str(payload, 'note', max_length=2000),
        )


def filter_from_args(args: Mapping[str, Any]) -> ManufactureOrderFilter:
    """Build a list filter from query-string arguments."""
    state = parse_str(args, 'state')
    if state is not None:
        try:
            state = parse_state(state).value
        except ValueError as exc:
            raise ValidationError(str(exc), 'state')
    return ManufactureOrderFilter(
        state=state,
        manual_action_required=parse_bool(args, 'manualActionRequired'),
        product_code=parse_str(args, 'productCode'),
        responsible_person=parse_str(args, 'responsiblePerson'),
        order_number=parse_str(args, 'orderNumber'),
        created_from=parse_date(args, 'createdFrom'),
        created_to=parse_date(args, 'createdTo'),
        planned_from=parse_date(args, 'plannedFrom'),
        planned_to=parse_date(args, 'plannedTo'),
    )
