"""HTTP surface of the planning and order blueprints."""
import pytest

from batchdesk.seeders import seed_demo_catalog

from .conftest import FIXED_DATE

ORDERS_URL = '/api/manufacture-orders'


@pytest.fixture
def catalog(app):
    with app.app_context():
        seed_demo_catalog(FIXED_DATE)


def _order_payload(**overrides):
    payload = {
        'productCode': 'SP001',
        'productName': 'Body cream base',
        'originalBatchSize': 1000,
        'newBatchSize': 1000,
        'scaleFactor': 1,
        'manufactureType': 'SinglePhase',
        'responsiblePerson': 'Petr',
        'products': [
            {'productCode': 'S100', 'productName': 'Body cream 100 g', 'plannedQuantity': 6},
            {'productCode': 'S200', 'productName': 'Body cream 200 g', 'plannedQuantity': 2},
        ],
    }
    payload.update(overrides)
    return payload


def _create_order(client, headers, **overrides):
    response = client.post(ORDERS_URL, json=_order_payload(**overrides), headers=headers)
    assert response.status_code == 201, response.get_json()
    return response.get_json()['data']


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


def test_requires_proxy_identity(client):
    response = client.get(ORDERS_URL)
    assert response.status_code == 401
    assert response.get_json()['success'] is False


class TestPlanningRoutes:

    def test_calculate_plan(self, client, auth_headers, catalog):
        response = client.post('/api/manufacture/batch-planning/calculate', json={
            'semiproductCode': 'SP001',
            'controlMode': 'MMQ_MULTIPLIER',
            'mmqMultiplier': 1,
            'fromDate': '2025-02-11',
            'toDate': '2025-03-12',
        }, headers=auth_headers)

        assert response.status_code == 200
        data = response.get_json()['data']
        units = {size['productCode']: size['recommendedUnitsToProduce'] for size in data['productSizes']}
        assert units == {'S100': 6, 'S200': 2}
        assert data['summary']['usedControlMode'] == 'MMQ_MULTIPLIER'

    def test_fixed_sizes_over_budget_is_unprocessable(self, client, auth_headers, catalog):
        response = client.post('/api/manufacture/batch-planning/calculate', json={
            'semiproductCode': 'SP001',
            'mmqMultiplier': 1,
            'productConstraints': [{'productCode': 'S200', 'isFixed': True, 'fixedQuantity': 6}],
        }, headers=auth_headers)

        assert response.status_code == 422
        body = response.get_json()
        assert body['errorCode'] == 'FixedProductsExceedAvailableVolume'
        assert body['errors']['deficit'] == '200.00'
        assert len(body['data']['productSizes']) == 2

    @pytest.mark.parametrize("payload, field", [
        ({'controlMode': 'TOTAL_WEIGHT', 'totalWeightToUse': 'Infinity'}, 'totalWeightToUse'),
        ({'controlMode': 'MMQ_MULTIPLIER', 'mmqMultiplier': 'NaN'}, 'mmqMultiplier'),
        ({'productConstraints': [{'productCode': 'S100', 'isFixed': True, 'fixedQuantity': '-Infinity'}]},
         'fixedQuantity'),
    ])
    def test_non_finite_numbers_are_unprocessable(self, client, auth_headers, catalog, payload, field):
        response = client.post('/api/manufacture/batch-planning/calculate', json={
            'semiproductCode': 'SP001', **payload,
        }, headers=auth_headers)

        assert response.status_code == 422
        assert field in response.get_json()['errors']

    def test_unknown_control_mode(self, client, auth_headers, catalog):
        response = client.post('/api/manufacture/batch-planning/calculate', json={
            'semiproductCode': 'SP001', 'controlMode': 'GUESS',
        }, headers=auth_headers)
        assert response.status_code == 422
        assert 'controlMode' in response.get_json()['errors']

    def test_scale_by_size(self, client, auth_headers, catalog):
        response = client.post('/api/manufacture/batch-calculator/by-size', json={
            'productCode': 'SP001', 'desiredBatchSize': 500,
        }, headers=auth_headers)
        assert response.status_code == 200

    def test_scale_missing_template(self, client, auth_headers, catalog):
        response = client.post('/api/manufacture/batch-calculator/by-size', json={
            'productCode': 'NOPE', 'desiredBatchSize': 500,
        }, headers=auth_headers)
        assert response.status_code == 404


class TestOrderRoutes:

    def test_create_and_fetch(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers)
        assert created['orderNumber'].startswith('MO-')

        response = client.get(f"{ORDERS_URL}/{created['id']}", headers=auth_headers)
        assert response.status_code == 200
        order = response.get_json()['data']
        assert order['state'] == 'Draft'
        assert order['createdByUser'] == 'Jana Planner'
        assert order['semiProduct']['productCode'] == 'S100'
        assert [entry['action'] for entry in order['auditLog']] == ['OrderCreated']

    def test_create_without_batch_size(self, client, auth_headers, catalog):
        payload = _order_payload()
        del payload['newBatchSize']
        response = client.post(ORDERS_URL, json=payload, headers=auth_headers)
        assert response.status_code == 422
        assert 'newBatchSize' in response.get_json()['errors']

    def test_list_filters_by_state(self, client, auth_headers, catalog):
        first = _create_order(client, auth_headers)
        _create_order(client, auth_headers)
        client.patch(f"{ORDERS_URL}/{first['id']}/status", json={'newState': 'Planned'}, headers=auth_headers)

        response = client.get(f"{ORDERS_URL}?state=Planned", headers=auth_headers)
        assert response.status_code == 200
        assert [order['id'] for order in response.get_json()['data']] == [first['id']]

        assert client.get(f"{ORDERS_URL}?state=Shipped", headers=auth_headers).status_code == 422

    def test_single_phase_lifecycle(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers)
        order_url = f"{ORDERS_URL}/{created['id']}"

        response = client.patch(f"{order_url}/status", json={
            'newState': 'Planned', 'note': 'Line 2 on Monday',
        }, headers=auth_headers)
        assert response.status_code == 200
        assert response.get_json()['data']['newState'] == 'Planned'

        order = client.get(order_url, headers=auth_headers).get_json()['data']
        s100_line = order['products'][0]['id']
        response = client.post(f"{order_url}/confirm-single-phase", json={
            'productActualQuantities': {str(s100_line): 5},
            'userId': 'someone-else',
        }, headers=auth_headers)
        assert response.status_code == 200

        order = client.get(order_url, headers=auth_headers).get_json()['data']
        assert order['state'] == 'Completed'
        assert order['products'][0]['actualQuantity'] == 5
        assert order['notes'][0]['text'] == 'Line 2 on Monday'
        assert {entry['user'] for entry in order['auditLog']} == {'Jana Planner'}

    def test_invalid_transition_conflicts(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers)
        response = client.patch(f"{ORDERS_URL}/{created['id']}/status", json={
            'newState': 'Completed',
        }, headers=auth_headers)

        assert response.status_code == 409
        body = response.get_json()
        assert body['errorCode'] == 'InvalidStateTransition'
        assert body['errors'] == {'oldState': 'Draft', 'newState': 'Completed'}

    def test_duplicate(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers)
        response = client.post(f"{ORDERS_URL}/{created['id']}/duplicate", headers=auth_headers)
        assert response.status_code == 201
        assert response.get_json()['data']['orderNumber'] != created['orderNumber']

    def test_semi_product_without_erp_flags_order(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers, manufactureType='MultiPhase')
        order_url = f"{ORDERS_URL}/{created['id']}"
        client.patch(f"{order_url}/status", json={'newState': 'Planned'}, headers=auth_headers)

        response = client.post(f"{order_url}/confirm-semi-product", json={'actualQuantity': 990},
                               headers=auth_headers)

        assert response.status_code == 200
        assert response.get_json()['data']['manualActionRequired'] is True
        order = client.get(order_url, headers=auth_headers).get_json()['data']
        assert order['state'] == 'SemiProductManufactured'
        assert order['manualActionRequired'] is True

        response = client.post(f"{order_url}/resolve-manual-action", json={
            'erpOrderNumberSemiproduct': 'V-555', 'note': 'Posted by hand',
        }, headers=auth_headers)
        assert response.status_code == 200
        order = client.get(order_url, headers=auth_headers).get_json()['data']
        assert order['manualActionRequired'] is False
        assert order['erpOrderNumberSemiproduct'] == 'V-555'

    def test_non_finite_line_quantity_is_unprocessable(self, client, auth_headers):
        response = client.post(f"{ORDERS_URL}/1/confirm-single-phase", json={
            'productActualQuantities': {'1': 'NaN'},
        }, headers=auth_headers)
        assert response.status_code == 422
        assert 'productActualQuantities' in response.get_json()['errors']

    def test_update_order(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers, manufactureType='MultiPhase')
        order_url = f"{ORDERS_URL}/{created['id']}"
        s100_line = client.get(order_url, headers=auth_headers).get_json()['data']['products'][0]['id']

        response = client.patch(order_url, json={
            'responsiblePerson': 'Eva',
            'semiProduct': {'plannedQuantity': 1200},
            'products': [{'id': s100_line, 'plannedQuantity': 8}],
            'newNote': 'Bigger batch',
        }, headers=auth_headers)

        assert response.status_code == 200, response.get_json()
        order = response.get_json()['data']
        assert order['responsiblePerson'] == 'Eva'
        assert order['semiProduct']['plannedQuantity'] == 1200
        assert [line['plannedQuantity'] for line in order['products']] == [8, 2]
        assert order['notes'][-1]['text'] == 'Bigger batch'

    def test_update_cancelled_order_conflicts(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers)
        order_url = f"{ORDERS_URL}/{created['id']}"
        client.patch(f"{order_url}/status", json={'newState': 'Cancelled'}, headers=auth_headers)

        response = client.patch(order_url, json={'responsiblePerson': 'Eva'}, headers=auth_headers)

        assert response.status_code == 409
        assert response.get_json()['errorCode'] == 'CannotUpdateCancelledOrder'

    def test_update_unknown_order(self, client, auth_headers):
        response = client.patch(f"{ORDERS_URL}/9999", json={'responsiblePerson': 'Eva'}, headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()['errors'] == {'id': '9999'}

    def test_reschedule(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers)
        schedule_url = f"{ORDERS_URL}/{created['id']}/schedule"

        response = client.patch(schedule_url, json={
            'semiProductPlannedDate': '2099-01-05', 'productPlannedDate': '2099-01-06',
        }, headers=auth_headers)
        assert response.status_code == 200
        body = response.get_json()
        assert body['message'] == 'Schedule updated successfully'
        assert body['data']['semiProductPlannedDate'] == '2099-01-05'

        response = client.patch(schedule_url, json={'semiProductPlannedDate': '2000-01-03'}, headers=auth_headers)
        assert response.status_code == 422
        assert response.get_json()['errorCode'] == 'CannotScheduleInPast'

    def test_reschedule_cancelled_order_conflicts(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers)
        client.patch(f"{ORDERS_URL}/{created['id']}/status", json={'newState': 'Cancelled'}, headers=auth_headers)

        response = client.patch(f"{ORDERS_URL}/{created['id']}/schedule", json={
            'semiProductPlannedDate': '2099-01-05',
        }, headers=auth_headers)

        assert response.status_code == 409
        assert response.get_json()['errorCode'] == 'CannotUpdateCancelledOrder'

    def test_discard_without_erp_is_bad_gateway(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers, manufactureType='MultiPhase')
        response = client.post(f"{ORDERS_URL}/{created['id']}/discard-residual", headers=auth_headers)
        assert response.status_code == 502
        assert 'ErrorMessage' in response.get_json()['errors']

    def test_wrong_type_conflicts(self, client, auth_headers, catalog):
        created = _create_order(client, auth_headers, manufactureType='MultiPhase')
        client.patch(f"{ORDERS_URL}/{created['id']}/status", json={'newState': 'Planned'}, headers=auth_headers)
        response = client.post(f"{ORDERS_URL}/{created['id']}/confirm-single-phase", json={}, headers=auth_headers)
        assert response.status_code == 409
        assert response.get_json()['errorCode'] == 'WrongManufactureType'

    def test_unknown_order(self, client, auth_headers):
        response = client.get(f"{ORDERS_URL}/9999", headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json()['errors'] == {'id': '9999'}
