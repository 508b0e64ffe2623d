from datetime import date
from unittest.mock import MagicMock

import pytest

from batchdesk.extensions import db
from batchdesk.integrations import (
    DiscardResidualSemiProductResult,
    ErpClientError,
    ErpManufactureType,
    ManufactureClient,
)
from batchdesk.models import (
    ManufactureOrder,
    ManufactureOrderAuditAction as Action,
    ManufactureOrderState as S,
)
from batchdesk.services.manufacture_orders import (
    ConfirmProductCompletionRequest,
    ConfirmSemiProductManufactureRequest,
    CreateManufactureOrderProduct,
    CreateManufactureOrderRequest,
    ManufactureErpWorkflow,
    ManufactureOrderCreationService,
)
from batchdesk.services.results import ErrorCode


@pytest.fixture
def erp_client():
    client = MagicMock(spec=ManufactureClient)
    client.submit_manufacture.return_value = 'ERP-100'
    client.discard_residual_semi_product.return_value = DiscardResidualSemiProductResult(
        success=True, quantity_found=12, quantity_discarded=12, stock_movement_reference='SM-1',
    )
    return client


@pytest.fixture
def workflow(seeded_catalog, fixed_clock, erp_client):
    return ManufactureErpWorkflow(clock=fixed_clock, manufacture_client=erp_client)


@pytest.fixture
def order(seeded_catalog, fixed_clock):
    result = ManufactureOrderCreationService(clock=fixed_clock).create_manufacture_order(
        CreateManufactureOrderRequest(
            product_code='SP001',
            product_name='Body cream base',
            original_batch_size=1000,
            new_batch_size=1000,
            scale_factor=1.0,
            products=[
                CreateManufactureOrderProduct('S100', 'Body cream 100 g', 6),
                CreateManufactureOrderProduct('S200', 'Body cream 200 g', 2),
            ],
            planned_date=date(2025, 3, 12),
        )
    )
    order = db.session.get(ManufactureOrder, result.data['id'])
    order.state = S.PLANNED.value
    db.session.commit()
    return order


def _reload(order_id):
    db.session.expire_all()
    return db.session.get(ManufactureOrder, order_id)


def _advance_to_semi_manufactured(order):
    order.state = S.SEMI_PRODUCT_MANUFACTURED.value
    db.session.commit()


class TestSemiProductSubmission:

    def test_links_erp_document(self, workflow, erp_client, order):
        result = workflow.confirm_semi_product_with_erp(ConfirmSemiProductManufactureRequest(order.id, 980))

        assert result.success, result.message
        assert result.data['erpOrderNumber'] == 'ERP-100'
        assert result.data['manualActionRequired'] is False

        submission = erp_client.submit_manufacture.call_args[0][0]
        assert submission.manufacture_type is ErpManufactureType.SEMI_PRODUCT
        assert submission.manufacture_internal_number == order.order_number
        assert submission.date == date(2025, 3, 12)
        assert submission.lot_number == '11202503'
        assert [(item.product_code, item.amount) for item in submission.items] == [('SP001', 980)]

        order = _reload(order.id)
        assert order.state == S.SEMI_PRODUCT_MANUFACTURED.value
        assert order.erp_order_number_semiproduct == 'ERP-100'
        assert order.erp_order_number_semiproduct_date is not None
        assert order.audit_logs[-1].action == Action.ERP_ORDER_LINKED.value

    def test_erp_failure_keeps_confirmation_and_flags_order(self, workflow, erp_client, order):
        erp_client.submit_manufacture.side_effect = ErpClientError('ERP timed out')

        result = workflow.confirm_semi_product_with_erp(ConfirmSemiProductManufactureRequest(order.id, 1000))

        assert result.success
        assert result.data['manualActionRequired'] is True
        assert result.data['erpError'] == 'ERP timed out'
        order = _reload(order.id)
        assert order.state == S.SEMI_PRODUCT_MANUFACTURED.value
        assert order.manual_action_required is True
        assert order.erp_order_number_semiproduct is None
        assert 'ERP timed out' in order.notes[-1].text
        assert order.audit_logs[-1].action == Action.MANUAL_ACTION_REQUIRED.value

    def test_rejected_confirmation_never_reaches_erp(self, workflow, erp_client, order):
        _advance_to_semi_manufactured(order)

        result = workflow.confirm_semi_product_with_erp(ConfirmSemiProductManufactureRequest(order.id, 1000))

        assert result.error_code is ErrorCode.INVALID_STATE_TRANSITION
        erp_client.submit_manufacture.assert_not_called()


class TestProductSubmission:

    def test_submits_products_and_discards_residue(self, workflow, erp_client, order):
        _advance_to_semi_manufactured(order)
        erp_client.submit_manufacture.return_value = 'ERP-200'

        result = workflow.confirm_products_with_erp(ConfirmProductCompletionRequest(order.id))

        assert result.success, result.message
        assert result.data['erpOrderNumber'] == 'ERP-200'
        assert result.data['manualActionRequired'] is False
        assert result.data['residueDiscard']['stockMovementReference'] == 'SM-1'

        submission = erp_client.submit_manufacture.call_args[0][0]
        assert submission.manufacture_type is ErpManufactureType.PRODUCT
        assert [item.product_code for item in submission.items] == ['S100', 'S200']

        discard = erp_client.discard_residual_semi_product.call_args[0][0]
        assert discard.product_code == 'SP001'
        assert discard.allowed_residue_percentage == 5

        order = _reload(order.id)
        assert order.state == S.COMPLETED.value
        assert order.erp_order_number_product == 'ERP-200'
        assert order.erp_discard_residue_document_number == 'SM-1'
        assert Action.RESIDUE_DISCARDED.value in [entry.action for entry in order.audit_logs]

    def test_residue_needing_approval_flags_order(self, workflow, erp_client, order):
        _advance_to_semi_manufactured(order)
        erp_client.discard_residual_semi_product.return_value = DiscardResidualSemiProductResult(
            success=True, quantity_found=120, requires_manual_approval=True,
        )

        result = workflow.confirm_products_with_erp(ConfirmProductCompletionRequest(order.id))

        assert result.success
        assert result.data['manualActionRequired'] is True
        order = _reload(order.id)
        assert order.state == S.COMPLETED.value
        assert order.manual_action_required is True

    def test_discard_failure_flags_order(self, workflow, erp_client, order):
        _advance_to_semi_manufactured(order)
        erp_client.discard_residual_semi_product.side_effect = ErpClientError('stock locked')

        result = workflow.confirm_products_with_erp(ConfirmProductCompletionRequest(order.id))

        assert result.success
        assert result.data['manualActionRequired'] is True
        assert result.data['residueDiscard'] is None
        order = _reload(order.id)
        assert order.manual_action_required is True
        assert 'stock locked' in order.notes[-1].text


class TestDiscardResidual:

    def test_client_exception_is_integration_failure(self, workflow, erp_client, order):
        erp_client.discard_residual_semi_product.side_effect = ErpClientError('boom')

        result = workflow.discard_residual_semi_product(order.id)

        assert result.error_code is ErrorCode.ERP_INTEGRATION_FAILED
        assert result.params == {'ErrorMessage': 'boom'}

    def test_unknown_order(self, workflow):
        assert workflow.discard_residual_semi_product(999).error_code is ErrorCode.ORDER_NOT_FOUND

    def test_returns_erp_outcome(self, workflow, order):
        result = workflow.discard_residual_semi_product(order.id)

        assert result.success
        assert result.data.quantity_discarded == 12
        assert _reload(order.id).erp_discard_residue_document_number == 'SM-1'
