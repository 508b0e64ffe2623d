from enum import Enum

from sqlalchemy import event, inspect as sa_inspect

from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils
from .order_state import ManufactureOrderState, ManufactureType, OrderStatus

_QUANTITY = db.Numeric(18, 4, asdecimal=False)


class ManufactureOrderAuditAction(str, Enum):
    ORDER_CREATED = "OrderCreated"
    ORDER_UPDATED = "OrderUpdated"
    SCHEDULE_CHANGED = "ScheduleChanged"
    STATE_CHANGED = "StateChanged"
    QUANTITY_CHANGED = "QuantityChanged"
    NOTE_ADDED = "NoteAdded"
    LOT_NUMBER_ASSIGNED = "LotNumberAssigned"
    ERP_ORDER_LINKED = "ErpOrderLinked"
    MANUAL_ACTION_REQUIRED = "ManualActionRequired"
    MANUAL_ACTION_RESOLVED = "ManualActionResolved"
    RESIDUE_DISCARDED = "ResidueDiscarded"


def _iso(value):
    return value.isoformat() if value is not None else None


class ManufactureOrder(db.Model):
    __tablename__ = 'manufacture_order'

    id = db.Column(db.Integer, primary_key=True)
    order_number = db.Column(db.String(50), nullable=False, unique=True)
    created_date = db.Column(db.DateTime, nullable=False, default=TimezoneUtils.utc_now)
    created_by_user = db.Column(db.String(100), nullable=False)
    responsible_person = db.Column(db.String(100))
    semi_product_planned_date = db.Column(db.Date, nullable=False)
    product_planned_date = db.Column(db.Date, nullable=False)
    manufacture_type = db.Column(db.String(20), nullable=False, default=ManufactureType.MULTI_PHASE.value)
    state = db.Column(db.String(40), nullable=False, default=ManufactureOrderState.DRAFT.value)
    state_changed_at = db.Column(db.DateTime, nullable=False, default=TimezoneUtils.utc_now)
    state_changed_by_user = db.Column(db.String(100), nullable=False)
    manual_action_required = db.Column(db.Boolean, nullable=False, default=False)

    # ERP correlation, one pair per ERP document type
    erp_order_number_semiproduct = db.Column(db.String(50))
    erp_order_number_semiproduct_date = db.Column(db.DateTime)
    erp_order_number_product = db.Column(db.String(50))
    erp_order_number_product_date = db.Column(db.DateTime)
    erp_discard_residue_document_number = db.Column(db.String(50))
    erp_discard_residue_document_number_date = db.Column(db.DateTime)

    semi_product = db.relationship(
        'ManufactureOrderSemiProduct',
        backref='order',
        uselist=False,
        cascade='all, delete-orphan',
    )
    products = db.relationship(
        'ManufactureOrderProduct',
        backref='order',
        cascade='all, delete-orphan',
        order_by='ManufactureOrderProduct.id',
    )
    notes = db.relationship(
        'ManufactureOrderNote',
        backref='order',
        cascade='all, delete-orphan',
        order_by='ManufactureOrderNote.id',
    )
    # No delete-orphan: audit rows are never removed
    audit_logs = db.relationship(
        'ManufactureOrderAuditLog',
        backref='order',
        cascade='save-update, merge',
        order_by='ManufactureOrderAuditLog.id',
    )

    __table_args__ = (
        db.Index('ix_manufacture_order_state', 'state'),
        db.Index('ix_manufacture_order_created_date', 'created_date'),
        db.Index('ix_manufacture_order_responsible_person', 'responsible_person'),
    )

    @property
    def status(self) -> OrderStatus:
        return OrderStatus(
            state=ManufactureOrderState(self.state or ManufactureOrderState.DRAFT.value),
            manual_action_required=bool(self.manual_action_required),
        )

    @status.setter
    def status(self, value: OrderStatus) -> None:
        self.state = value.state.value
        self.manual_action_required = value.manual_action_required

    @property
    def type(self) -> ManufactureType:
        return ManufactureType(self.manufacture_type)

    def add_audit_entry(self, action, user, timestamp, details=None, old_value=None, new_value=None):
        entry = ManufactureOrderAuditLog(
            timestamp=timestamp,
            user=(user or '')[:100],
            action=action.value if isinstance(action, Enum) else str(action),
            details=(details or '')[:2000],
            old_value=None if old_value is None else str(old_value)[:500],
            new_value=None if new_value is None else str(new_value)[:500],
        )
        self.audit_logs.append(entry)
        return entry

    def add_note(self, text, user, timestamp):
        note = ManufactureOrderNote(text=text.strip()[:2000], created_by_user=(user or '')[:100], created_at=timestamp)
        self.notes.append(note)
        return note

    def find_product_line(self, line_id):
        for line in self.products:
            if line.id == line_id:
                return line
        return None

    def to_dict(self):
        return {
            'id': self.id,
            'orderNumber': self.order_number,
            'createdDate': _iso(self.created_date),
            'createdByUser': self.created_by_user,
            'responsiblePerson': self.responsible_person,
            'semiProductPlannedDate': _iso(self.semi_product_planned_date),
            'productPlannedDate': _iso(self.product_planned_date),
            'manufactureType': self.manufacture_type,
            'state': self.state,
            'stateChangedAt': _iso(self.state_changed_at),
            'stateChangedByUser': self.state_changed_by_user,
            'manualActionRequired': bool(self.manual_action_required),
            'erpOrderNumberSemiproduct': self.erp_order_number_semiproduct,
            'erpOrderNumberSemiproductDate': _iso(self.erp_order_number_semiproduct_date),
            'erpOrderNumberProduct': self.erp_order_number_product,
            'erpOrderNumberProductDate': _iso(self.erp_order_number_product_date),
            'erpDiscardResidueDocumentNumber': self.erp_discard_residue_document_number,
            'erpDiscardResidueDocumentNumberDate': _iso(self.erp_discard_residue_document_number_date),
            'semiProduct': self.semi_product.to_dict() if self.semi_product else None,
            'products': [line.to_dict() for line in self.products],
            'notes': [note.to_dict() for note in self.notes],
            'auditLog': [entry.to_dict() for entry in self.audit_logs],
        }

    def __repr__(self):
        return f'<ManufactureOrder {self.order_number} | {self.state}>'


class _OrderLineMixin:
    product_code = db.Column(db.String(50), nullable=False)
    product_name = db.Column(db.String(200), nullable=False)
    planned_quantity = db.Column(_QUANTITY, nullable=False)
    actual_quantity = db.Column(_QUANTITY)
    batch_multiplier = db.Column(_QUANTITY, nullable=False, default=1)
    expiration_months = db.Column(db.Integer, nullable=False, default=12)
    lot_number = db.Column(db.String(50))
    expiration_date = db.Column(db.Date)

    def effective_quantity(self) -> float:
        return self.actual_quantity if self.actual_quantity is not None else self.planned_quantity

    def line_dict(self):
        return {
            'id': self.id,
            'productCode': self.product_code,
            'productName': self.product_name,
            'plannedQuantity': self.planned_quantity,
            'actualQuantity': self.actual_quantity,
            'batchMultiplier': self.batch_multiplier,
            'expirationMonths': self.expiration_months,
            'lotNumber': self.lot_number,
            'expirationDate': _iso(self.expiration_date),
        }


class ManufactureOrderSemiProduct(_OrderLineMixin, db.Model):
    __tablename__ = 'manufacture_order_semi_product'

    id = db.Column(db.Integer, primary_key=True)
    manufacture_order_id = db.Column(db.Integer, db.ForeignKey('manufacture_order.id'), nullable=False, unique=True)

    def to_dict(self):
        return self.line_dict()

    def __repr__(self):
        return f'<ManufactureOrderSemiProduct {self.product_code} x{self.planned_quantity}>'


class ManufactureOrderProduct(_OrderLineMixin, db.Model):
    __tablename__ = 'manufacture_order_product'

    id = db.Column(db.Integer, primary_key=True)
    manufacture_order_id = db.Column(db.Integer, db.ForeignKey('manufacture_order.id'), nullable=False)
    semi_product_code = db.Column(db.String(50), nullable=False)

    __table_args__ = (
        db.Index('ix_manufacture_order_product_code', 'product_code'),
    )

    def to_dict(self):
        data = self.line_dict()
        data['semiProductCode'] = self.semi_product_code
        return data

    def __repr__(self):
        return f'<ManufactureOrderProduct {self.product_code} x{self.planned_quantity}>'


class ManufactureOrderNote(db.Model):
    __tablename__ = 'manufacture_order_note'

    id = db.Column(db.Integer, primary_key=True)
    manufacture_order_id = db.Column(db.Integer, db.ForeignKey('manufacture_order.id'), nullable=False)
    text = db.Column(db.String(2000), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=TimezoneUtils.utc_now)
    created_by_user = db.Column(db.String(100), nullable=False)

    def to_dict(self):
        return {
            'id': self.id,
            'text': self.text,
            'createdAt': _iso(self.created_at),
            'createdByUser': self.created_by_user,
        }


class AuditLogImmutableError(RuntimeError):
    pass


class ManufactureOrderAuditLog(db.Model):
    """Append-only history of an order. Rows are never updated or deleted."""
    __tablename__ = 'manufacture_order_audit_log'

    id = db.Column(db.Integer, primary_key=True)
    manufacture_order_id = db.Column(db.Integer, db.ForeignKey('manufacture_order.id'), nullable=False)
    timestamp = db.Column(db.DateTime, nullable=False, default=TimezoneUtils.utc_now)
    user = db.Column(db.String(100), nullable=False)
    action = db.Column(db.String(50), nullable=False)
    details = db.Column(db.String(2000), nullable=False, default='')
    old_value = db.Column(db.String(500))
    new_value = db.Column(db.String(500))

    __table_args__ = (
        db.Index('ix_manufacture_order_audit_log_order', 'manufacture_order_id'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'timestamp': _iso(self.timestamp),
            'user': self.user,
            'action': self.action,
            'details': self.details,
            'oldValue': self.old_value,
            'newValue': self.new_value,
        }

    def __repr__(self):
        return f'<ManufactureOrderAuditLog {self.action} by {self.user}>'


@event.listens_for(ManufactureOrderAuditLog, 'before_update')
def _reject_audit_update(mapper, connection, target):
    state = sa_inspect(target)
    changed = [attr.key for attr in mapper.column_attrs if state.attrs[attr.key].history.has_changes()]
    if changed:
        raise AuditLogImmutableError(f"Audit log entry {target.id} is append-only (attempted change: {changed})")


@event.listens_for(ManufactureOrderAuditLog, 'before_delete')
def _reject_audit_delete(mapper, connection, target):
    raise AuditLogImmutableError(f"Audit log entry {target.id} is append-only and cannot be deleted")
