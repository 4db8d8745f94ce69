from datetime import timedelta

import pytest

from bomtrack.services.bom_engine import (
    TransactionSnapshot,
    capacity_overview,
    executive_summary,
    material_usage_report,
    production_efficiency_report,
    recipe_costing_report,
    stock_movement_report,
)
from bomtrack.services.bom_engine._reporting import efficiency_score

from tests.bom_factories import AS_OF, daily_usage, make_material, make_product


@pytest.fixture
def catalog():
    flour = make_material(1, 120, reorder_level=10, unit_cost=1.0, name='Flour')
    sugar = make_material(2, 10, reorder_level=20, unit_cost=2.0, name='Sugar')
    yeast = make_material(3, 0, reorder_level=5, unit_cost=5.0, name='Yeast')
    products = [
        make_product(1, [(flour, 2)], name='Flatbread'),
        make_product(2, [(flour, 1), (sugar, 1)], name='Sweet Roll'),
        make_product(3, [(flour, 1), (yeast, 1)], name='Loaf'),
        make_product(4, [], with_recipe=False, name='Draft'),
        make_product(5, [(flour, 1)], management='simple', name='Gift Box'),
    ]
    return [flour, sugar, yeast], products


def test_capacity_overview_buckets_products(catalog):
    _, products = catalog

    overview = capacity_overview(products)

    assert overview['total_products'] == 4
    assert overview['ready'] == 1
    assert overview['limited'] == 1
    assert overview['zero_capacity'] == 2
    assert [p['product_id'] for p in overview['products']] == [1, 2, 3, 4]


def test_capacity_overview_groups_bottleneck_materials(catalog):
    _, products = catalog

    bottlenecks = capacity_overview(products)['bottleneck_materials']

    assert [(b['material_id'], b['constrained_products']) for b in bottlenecks] == [
        (1, [1]),
        (2, [2]),
        (3, [3]),
    ]


def test_executive_summary_totals(catalog):
    materials, products = catalog

    summary = executive_summary(materials, products, [], as_of=AS_OF)

    assert summary['inventory'] == {'total_materials': 3, 'total_inventory_value': 140.0}
    assert summary['alerts']['active_alerts'] == 2
    assert summary['alerts']['critical_alerts'] == 1
    assert summary['alerts']['out_of_stock'] == 1
    assert summary['alerts']['predictive_alerts'] == 0
    assert summary['alerts']['top_alerts'][0]['material_id'] == 3
    assert summary['production'] == {
        'bom_products': 4,
        'production_ready': 1,
        'limited_capacity': 1,
        'zero_capacity': 2,
    }


def test_material_usage_report_sorted_by_consumption(catalog):
    materials, _ = catalog
    transactions = daily_usage(1, 2, 10) + daily_usage(2, 1, 10)

    report = material_usage_report(materials, transactions, 30, as_of=AS_OF)

    rows = report['materials']
    assert [row['material_id'] for row in rows] == [1, 2, 3]
    assert rows[0]['total_consumed'] == 20.0
    assert rows[0]['average_daily_usage'] == 2.0
    assert rows[1]['consumed_value'] == 20.0
    assert rows[2]['days_to_stockout'] is None
    assert report['total_consumed_value'] == 40.0
    assert report['period_days'] == 30


@pytest.mark.parametrize('available, waste, score', [
    (100, 0, 100.0),
    (50, 10, 62.0),
    (200, 150, 70.0),
    (0, 0, 30.0),
])
def test_efficiency_score(available, waste, score):
    assert efficiency_score(available, waste) == score


def test_production_efficiency_report(catalog):
    _, products = catalog

    report = production_efficiency_report(products)

    rows = report['products']
    assert [row['product_id'] for row in rows] == [1, 2, 3]
    assert rows[0]['recipe_cost'] == 2.0
    assert rows[0]['efficiency_score'] == 72.0
    assert rows[1]['recipe_cost'] == 3.0
    assert rows[1]['efficiency_score'] == 37.0
    assert report['average_efficiency_score'] == pytest.approx(46.33)


def test_recipe_costing_report_ranks_recipes_by_cost(catalog):
    _, products = catalog

    report = recipe_costing_report(products)

    assert [r['product_name'] for r in report['recipes']] == ['Loaf', 'Sweet Roll', 'Flatbread']
    assert [r['total_cost'] for r in report['recipes']] == [6.0, 3.0, 2.0]
    assert report['summary'] == {
        'total_active_recipes': 3,
        'average_recipe_cost': 3.67,
        'highest_cost_recipe': {'recipe_id': 30, 'recipe_name': 'Recipe 30', 'total_cost': 6.0},
        'lowest_cost_recipe': {'recipe_id': 10, 'recipe_name': 'Recipe 10', 'total_cost': 2.0},
    }


def test_recipe_costing_component_shares(catalog):
    _, products = catalog

    sweet_roll = recipe_costing_report(products)['recipes'][1]

    assert [(c['material_name'], c['total_cost'], c['cost_percentage']) for c in sweet_roll['components']] == [
        ('Sugar', 2.0, 66.67),
        ('Flour', 1.0, 33.33),
    ]
    assert sweet_roll['most_expensive_component']['material_id'] == 2
    assert sweet_roll['cost_per_yield_unit'] == 3.0


def test_recipe_costing_report_without_recipes():
    report = recipe_costing_report([make_product(1, [], with_recipe=False)])

    assert report['recipes'] == []
    assert report['summary']['average_recipe_cost'] == 0.0
    assert report['summary']['highest_cost_recipe'] is None


@pytest.fixture
def movements():
    def txn(material_id, txn_type, change, age, reason=None):
        return TransactionSnapshot(
            material_id=material_id,
            transaction_type=txn_type,
            quantity_change=change,
            created_at=AS_OF - age,
            reason=reason,
        )

    return [
        txn(1, 'deduction', -4.0, timedelta(hours=1), 'production'),
        txn(1, 'restock', 10.0, timedelta(days=1), 'purchase'),
        txn(2, 'deduction', -2.5, timedelta(days=1, hours=2), 'production'),
        txn(2, 'deduction', -100.0, timedelta(days=40), 'production'),
        txn(99, 'adjustment', -1.0, timedelta(hours=2)),
    ]


def test_stock_movement_groups_by_type_and_reason(catalog, movements):
    materials, _ = catalog

    report = stock_movement_report(materials, movements, 30, as_of=AS_OF)

    assert report['summary'] == {
        'total_transactions': 4,
        'total_materials_affected': 3,
        'net_stock_change': 2.5,
    }
    assert report['by_transaction_type'] == [
        {'type': 'adjustment', 'count': 1, 'total_quantity': -1.0},
        {'type': 'deduction', 'count': 2, 'total_quantity': -6.5},
        {'type': 'restock', 'count': 1, 'total_quantity': 10.0},
    ]
    assert [(r['reason'], r['count']) for r in report['by_reason']] == [
        ('production', 2), ('purchase', 1), (None, 1),
    ]
    assert report['period']['days'] == 30


def test_stock_movement_daily_totals(catalog, movements):
    materials, _ = catalog

    daily = stock_movement_report(materials, movements, 30, as_of=AS_OF)['daily_movement']

    assert daily == [
        {'date': '2024-06-29', 'transaction_count': 2, 'total_increases': 10.0,
         'total_decreases': 2.5, 'net_change': 7.5},
        {'date': '2024-06-30', 'transaction_count': 2, 'total_increases': 0.0,
         'total_decreases': 5.0, 'net_change': -5.0},
    ]


def test_stock_movement_recent_transactions_newest_first(catalog, movements):
    materials, _ = catalog

    recent = stock_movement_report(materials, movements, 30, as_of=AS_OF, recent_limit=2)['recent_transactions']

    assert [(r['material_id'], r['material_name']) for r in recent] == [(1, 'Flour'), (99, None)]
    assert recent[0]['reason'] == 'production'
