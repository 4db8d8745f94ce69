"""HTTP surface of the BOM blueprint: envelopes, status codes and parameter bounds."""

from datetime import timedelta

import pytest

from bomtrack.utils.timezone_utils import TimezoneUtils

from tests.bom_factories import OTHER_TENANT_ID, TENANT_ID, add_usage

BASE = f'/api/tenants/{TENANT_ID}/bom'


def _record_flour_usage(app, bom_catalog):
    with app.app_context():
        now = TimezoneUtils.utc_now().replace(tzinfo=None)
        add_usage(bom_catalog['flour'], [(now - timedelta(days=d), -10.0) for d in (1, 2, 3)])


def test_health_endpoint(client):
    response = client.get('/health')

    assert response.status_code == 200
    assert response.get_json()['status'] == 'ok'


class TestProductionEndpoints:

    def test_availability_reports_bottleneck(self, client, bom_catalog):
        response = client.get(f"{BASE}/products/{bom_catalog['cake']}/availability")

        assert response.status_code == 200
        body = response.get_json()
        assert body['success'] is True
        assert body['data']['available_quantity'] == 8
        assert body['data']['bottleneck_material']['material_name'] == 'Sugar'

    def test_availability_for_product_without_recipe(self, client, bom_catalog):
        response = client.get(f"{BASE}/products/{bom_catalog['draft']}/availability")

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['available_quantity'] == 0
        assert data['has_recipe'] is False
        assert data['bottleneck_material'] is None

    def test_unknown_product_is_404(self, client, bom_catalog):
        response = client.get(f'{BASE}/products/9999/availability')

        assert response.status_code == 404
        assert response.get_json()['success'] is False

    def test_other_tenants_cannot_see_products(self, client, bom_catalog):
        response = client.get(f"/api/tenants/{OTHER_TENANT_ID}/bom/products/{bom_catalog['bread']}/availability")

        assert response.status_code == 404

    def test_simple_inventory_product_is_422(self, client, bom_catalog):
        response = client.get(f"{BASE}/products/{bom_catalog['gift']}/availability")

        assert response.status_code == 422
        assert 'product_id' in response.get_json()['errors']

    def test_bulk_availability_reports_failures_per_entry(self, client, bom_catalog):
        ids = [bom_catalog['bread'], bom_catalog['gift'], 9999]

        response = client.post(f'{BASE}/bulk-availability', json={'product_ids': ids})

        assert response.status_code == 200
        data = response.get_json()['data']
        assert set(data['results']) == {str(i) for i in ids}
        assert data['results'][str(bom_catalog['bread'])]['available_quantity'] == 50
        assert data['results'][str(bom_catalog['gift'])]['success'] is False
        assert data['results']['9999']['error'] == 'Product 9999 not found'
        assert data['total'] == 3
        assert data['failed'] == 2

    @pytest.mark.parametrize('body', [{}, {'product_ids': []}, {'product_ids': ['x']}])
    def test_bulk_availability_validates_ids(self, client, bom_catalog, body):
        response = client.post(f'{BASE}/bulk-availability', json=body)

        assert response.status_code == 422

    def test_production_capacity(self, client, bom_catalog):
        response = client.get(f"{BASE}/products/{bom_catalog['bread']}/production-capacity")

        data = response.get_json()['data']
        assert data['available_quantity'] == 50
        assert data['stock_status'] == 'in_stock'
        assert data['can_produce'] is True

    def test_feasibility(self, client, bom_catalog):
        response = client.get(f"{BASE}/products/{bom_catalog['cake']}/feasibility?quantity=10")

        data = response.get_json()['data']
        assert data['is_feasible'] is False
        assert data['shortage'] == 2

    def test_batch_requirements(self, client, bom_catalog):
        response = client.post(f'{BASE}/batch-requirements',
                               json={'product_id': bom_catalog['bread'], 'quantity': 10})

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['can_produce'] is True
        assert [r['total_required'] for r in data['material_requirements']] == [20.0, 10.0]
        assert data['cost_analysis']['total_material_cost'] == 30.1

    @pytest.mark.parametrize('quantity', [0, -5, 'lots', None])
    def test_batch_requirements_rejects_bad_quantity(self, client, bom_catalog, quantity):
        response = client.post(f'{BASE}/batch-requirements',
                               json={'product_id': bom_catalog['bread'], 'quantity': quantity})

        assert response.status_code == 422
        assert 'quantity' in response.get_json()['errors']

    def test_optimal_batch_size(self, client, bom_catalog):
        response = client.post(f'{BASE}/optimal-batch-size', json={'product_id': bom_catalog['bread']})

        data = response.get_json()['data']
        assert data['maximum_producible'] == 50
        assert data['suggested_batches'] == [50, 25, 12, 10]

    def test_optimal_batch_size_rejects_inverted_bounds(self, client, bom_catalog):
        response = client.post(f'{BASE}/optimal-batch-size', json={
            'product_id': bom_catalog['bread'], 'min_quantity': 20, 'max_quantity': 10,
        })

        assert response.status_code == 422
        assert 'max_quantity' in response.get_json()['errors']

    def test_multi_product_plan_reports_shared_shortage(self, client, bom_catalog):
        response = client.post(f'{BASE}/multi-product-plan', json={'products': [
            {'product_id': bom_catalog['bread'], 'quantity': 30},
            {'product_id': bom_catalog['cake'], 'quantity': 10},
        ]})

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['is_feasible'] is False
        assert data['aggregated_material_requirements'][str(bom_catalog['flour'])] == 115.0
        assert [e['requested_quantity'] for e in data['production_plan']] == [30.0, 10.0]

    def test_multi_product_plan_isolates_simple_inventory_products(self, client, bom_catalog):
        response = client.post(f'{BASE}/multi-product-plan', json={'products': [
            {'product_id': bom_catalog['bread'], 'quantity': 10},
            {'product_id': bom_catalog['gift'], 'quantity': 2},
            {'product_id': bom_catalog['draft'], 'quantity': 1},
        ]})

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['is_feasible'] is True
        assert data['failed_products'] == [bom_catalog['gift']]
        assert data['products_without_recipe'] == [bom_catalog['draft']]
        assert data['production_plan'][1]['success'] is False
        assert data['production_plan'][0]['can_produce_individually'] is True

    def test_multi_product_plan_collects_line_errors(self, client, bom_catalog):
        response = client.post(f'{BASE}/multi-product-plan', json={'products': [
            {'product_id': bom_catalog['bread'], 'quantity': 3},
            {'product_id': bom_catalog['cake'], 'quantity': 0},
            'bad',
        ]})

        assert response.status_code == 422
        errors = response.get_json()['errors']
        assert 'products.1.quantity' in errors
        assert 'products.2' in errors

    def test_simulate_production(self, client, bom_catalog):
        response = client.post(f'{BASE}/simulate-production',
                               json={'product_id': bom_catalog['bread'], 'quantity': 40})

        data = response.get_json()['data']
        flour = data['materials'][0]
        assert flour['after'] == 20.0
        assert flour['will_fall_below_reorder_level'] is True


class TestAlertEndpoints:

    def test_active_alerts(self, client, bom_catalog):
        response = client.get(f'{BASE}/alerts/active')

        data = response.get_json()['data']
        assert data['total_alerts'] == 1
        assert data['alerts'][0]['material_name'] == 'Sugar'
        assert data['alerts'][0]['severity'] == 'critical'
        assert data['alerts'][0]['affects_production'] is True

    def test_predictive_alerts_follow_forecast_days(self, app, client, bom_catalog):
        _record_flour_usage(app, bom_catalog)

        default = client.get(f'{BASE}/alerts/predictive').get_json()['data']
        wider = client.get(f'{BASE}/alerts/predictive?forecast_days=14').get_json()['data']

        assert default['forecast_days'] == 7
        assert default['alerts'] == []
        assert [a['material_name'] for a in wider['alerts']] == ['Flour']
        assert wider['alerts'][0]['days_until_stockout'] == 10.0

    @pytest.mark.parametrize('value', ['0', '100', 'soon'])
    def test_predictive_alerts_reject_out_of_range_horizon(self, client, bom_catalog, value):
        response = client.get(f'{BASE}/alerts/predictive?forecast_days={value}')

        assert response.status_code == 422
        assert 'forecast_days' in response.get_json()['errors']

    def test_reorder_recommendations(self, app, client, bom_catalog):
        _record_flour_usage(app, bom_catalog)

        response = client.get(f'{BASE}/alerts/reorder-recommendations?target_days_of_stock=20')

        data = response.get_json()['data']
        assert data['target_days_of_stock'] == 20
        assert data['recommendations'][0]['recommended_order_quantity'] == 100.0
        assert data['recommendations'][0]['priority'] == 'soon'
        assert data['total_estimated_cost'] == 150.0

    def test_reorder_recommendations_reject_large_target(self, client, bom_catalog):
        response = client.get(f'{BASE}/alerts/reorder-recommendations?target_days_of_stock=500')

        assert response.status_code == 422
        assert 'target_days_of_stock' in response.get_json()['errors']

    def test_dashboard(self, app, client, bom_catalog):
        _record_flour_usage(app, bom_catalog)

        response = client.get(f'{BASE}/alerts/dashboard?forecast_days=14')

        assert response.status_code == 200
        summary = response.get_json()['data']['summary']
        assert summary['total_active_alerts'] == 1
        assert summary['predictive_alerts'] == 1


class TestReportEndpoints:

    def test_executive_report(self, client, bom_catalog):
        data = client.get(f'{BASE}/reports/executive').get_json()['data']

        assert data['inventory']['total_materials'] == 3
        assert data['production']['bom_products'] == 3

    def test_capacity_report(self, client, bom_catalog):
        data = client.get(f'{BASE}/reports/capacity').get_json()['data']

        assert data['ready'] == 0
        assert data['limited'] == 2
        assert data['zero_capacity'] == 1

    def test_material_usage_report(self, client, bom_catalog):
        response = client.get(f'{BASE}/reports/material-usage?days=14')

        assert response.status_code == 200
        assert response.get_json()['data']['period_days'] == 14

    def test_material_usage_report_rejects_long_period(self, client, bom_catalog):
        response = client.get(f'{BASE}/reports/material-usage?days=400')

        assert response.status_code == 422

    def test_recipe_costing_report(self, client, bom_catalog):
        data = client.get(f'{BASE}/reports/recipe-costing').get_json()['data']

        assert [r['product_name'] for r in data['recipes']] == ['Cake', 'Bread']
        assert data['summary']['total_active_recipes'] == 2
        assert data['summary']['highest_cost_recipe']['total_cost'] == 10.25

    def test_stock_movement_report(self, app, client, bom_catalog):
        _record_flour_usage(app, bom_catalog)

        response = client.get(f'{BASE}/reports/stock-movement?days=7')

        assert response.status_code == 200
        data = response.get_json()['data']
        assert data['summary']['total_transactions'] == 3
        assert data['by_transaction_type'] == [{'type': 'deduction', 'count': 3, 'total_quantity': -30.0}]
        assert data['recent_transactions'][0]['material_name'] == 'Flour'

    def test_stock_movement_report_rejects_long_period(self, client, bom_catalog):
        response = client.get(f'{BASE}/reports/stock-movement?days=400')

        assert response.status_code == 422
        assert 'days' in response.get_json()['errors']

    def test_production_efficiency_report(self, client, bom_catalog):
        data = client.get(f'{BASE}/reports/production-efficiency').get_json()['data']

        assert [row['product_name'] for row in data['products']] == ['Bread', 'Cake']
