from datetime import date
from unittest.mock import MagicMock

import pytest
import requests

from batchdesk.integrations import (
    DiscardResidualSemiProductRequest,
    ErpClientError,
    ErpManufactureType,
    ErpNotConfiguredError,
    HttpManufactureClient,
    NullManufactureClient,
    SubmitManufactureItem,
    SubmitManufactureRequest,
    build_manufacture_client,
)


def _submission():
    return SubmitManufactureRequest(
        manufacture_order_number='MO-2025-001',
        manufacture_internal_number='MO-2025-001',
        manufacture_type=ErpManufactureType.SEMI_PRODUCT,
        date=date(2025, 3, 12),
        created_by='Jana Planner',
        items=[SubmitManufactureItem('SP001', 'Body cream base', 1000)],
        lot_number='11202503',
        expiration_date=date(2026, 3, 31),
    )


def _discard_request():
    return DiscardResidualSemiProductRequest(
        manufacture_order_number='MO-2025-001',
        product_code='SP001',
        product_name='Body cream base',
        completion_date=date(2025, 3, 12),
        completed_by='Jana Planner',
        allowed_residue_percentage=5,
    )


def _response(status_code=200, payload=None, text=''):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    response.text = text
    return response


@pytest.fixture
def session():
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    return session


def test_submit_posts_camel_case_payload(session):
    session.post.return_value = _response(payload={'manufactureId': 'V-2025-17'})
    client = HttpManufactureClient('https://erp.example/api/', api_token='t0k', timeout=5, session=session)

    assert client.submit_manufacture(_submission()) == 'V-2025-17'

    args, kwargs = session.post.call_args
    assert args[0] == 'https://erp.example/api/manufactures'
    assert kwargs['timeout'] == 5
    body = kwargs['json']
    assert body['manufactureType'] == 'SemiProduct'
    assert body['lotNumber'] == '11202503'
    assert body['expirationDate'] == '2026-03-31'
    assert body['items'] == [{'productCode': 'SP001', 'name': 'Body cream base', 'amount': 1000}]
    assert session.headers['Authorization'] == 'Bearer t0k'


def test_submit_without_document_number_fails(session):
    session.post.return_value = _response(payload={})
    client = HttpManufactureClient('https://erp.example', session=session)

    with pytest.raises(ErpClientError):
        client.submit_manufacture(_submission())


def test_http_error_raises(session):
    session.post.return_value = _response(status_code=503, text='maintenance')
    client = HttpManufactureClient('https://erp.example', session=session)

    with pytest.raises(ErpClientError, match='HTTP 503'):
        client.submit_manufacture(_submission())


def test_transport_error_raises(session):
    session.post.side_effect = requests.ConnectionError('refused')
    client = HttpManufactureClient('https://erp.example', session=session)

    with pytest.raises(ErpClientError, match='refused'):
        client.discard_residual_semi_product(_discard_request())


def test_discard_parses_result(session):
    session.post.return_value = _response(payload={
        'success': True,
        'quantityFound': 40.5,
        'quantityDiscarded': 40.5,
        'requiresManualApproval': False,
        'stockMovementReference': 'SM-9',
    })
    client = HttpManufactureClient('https://erp.example', session=session)

    result = client.discard_residual_semi_product(_discard_request())

    assert result.success is True
    assert result.quantity_discarded == 40.5
    assert result.stock_movement_reference == 'SM-9'
    assert session.post.call_args[1]['json']['allowedResiduePercentage'] == 5


def test_null_client_always_fails():
    client = NullManufactureClient()
    with pytest.raises(ErpNotConfiguredError):
        client.submit_manufacture(_submission())
    with pytest.raises(ErpNotConfiguredError):
        client.discard_residual_semi_product(_discard_request())


def test_build_client_from_config():
    assert isinstance(build_manufacture_client({}), NullManufactureClient)

    client = build_manufacture_client({'ERP_BASE_URL': 'https://erp.example', 'ERP_TIMEOUT_SECONDS': '12'})
    assert isinstance(client, HttpManufactureClient)
    assert client.timeout == 12.0
