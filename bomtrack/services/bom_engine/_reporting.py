"""
Report Aggregation

Dashboard-shaped bundles built from the other calculators. No calculation
rules of its own beyond sums and bucketing.
"""

from collections import defaultdict
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence

from ...utils.timezone_utils import TimezoneUtils
from ._alerts import compute_active_alerts, compute_predictive_alerts
from ._availability import compute_production_capacity
from ._forecasting import compute_usage_stats, group_transactions_by_material
from ._quantities import round_money, round_quantity, to_decimal
from .types import (
    DEFAULT_SETTINGS,
    EngineSettings,
    MaterialSnapshot,
    ProductSnapshot,
    TransactionSnapshot,
)

READY_CAPACITY_THRESHOLD = 50
EXECUTIVE_TOP_ALERTS = 5
RECENT_MOVEMENT_LIMIT = 20


def _inventory_value(materials: Iterable[MaterialSnapshot]) -> float:
    return round_money(sum(
        (to_decimal(m.stock_quantity) * to_decimal(m.unit_cost) for m in materials),
        Decimal('0'),
    ))


def capacity_overview(
    products: Sequence[ProductSnapshot], settings: EngineSettings = DEFAULT_SETTINGS
) -> Dict[str, Any]:
    capacities = [compute_production_capacity(p, settings) for p in products if p.is_bom_managed]

    bottlenecks: Dict[int, Dict[str, Any]] = {}
    for capacity in capacities:
        limiter = capacity.bottleneck_material
        if limiter is None:
            continue
        entry = bottlenecks.setdefault(limiter.material_id, {
            'material_id': limiter.material_id,
            'material_name': limiter.material_name,
            'available_stock': limiter.available_stock,
            'constrained_products': [],
        })
        entry['constrained_products'].append(capacity.product_id)

    return {
        'total_products': len(capacities),
        'ready': sum(1 for c in capacities if c.available_quantity > READY_CAPACITY_THRESHOLD),
        'limited': sum(1 for c in capacities if 0 < c.available_quantity <= READY_CAPACITY_THRESHOLD),
        'zero_capacity': sum(1 for c in capacities if c.available_quantity <= 0),
        'products': [c.to_dict() for c in capacities],
        'bottleneck_materials': sorted(
            bottlenecks.values(),
            key=lambda b: (-len(b['constrained_products']), b['material_id']),
        ),
    }


def executive_summary(
    materials: Sequence[MaterialSnapshot],
    products: Sequence[ProductSnapshot],
    transactions: Sequence[TransactionSnapshot],
    recipes=None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    as_of: Optional[datetime] = None,
) -> Dict[str, Any]:
    as_of = TimezoneUtils.ensure_timezone_aware(as_of) or TimezoneUtils.utc_now()
    active = compute_active_alerts(materials, recipes)
    predictive = compute_predictive_alerts(
        materials, transactions, settings.default_forecast_days, settings, as_of
    )
    capacity = capacity_overview(products, settings)

    return {
        'generated_at': as_of.isoformat(),
        'inventory': {
            'total_materials': len(materials),
            'total_inventory_value': _inventory_value(materials),
        },
        'alerts': {
            'active_alerts': active.total_alerts,
            'critical_alerts': active.severity_summary.get('critical', 0),
            'out_of_stock': active.severity_summary.get('out_of_stock', 0),
            'predictive_alerts': len(predictive),
            'top_alerts': [a.to_dict() for a in active.alerts[:EXECUTIVE_TOP_ALERTS]],
        },
        'production': {
            'bom_products': capacity['total_products'],
            'production_ready': capacity['ready'],
            'limited_capacity': capacity['limited'],
            'zero_capacity': capacity['zero_capacity'],
        },
    }


def material_usage_report(
    materials: Sequence[MaterialSnapshot],
    transactions: Sequence[TransactionSnapshot],
    days: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
    as_of: Optional[datetime] = None,
) -> Dict[str, Any]:
    as_of = TimezoneUtils.ensure_timezone_aware(as_of) or TimezoneUtils.utc_now()
    by_material = group_transactions_by_material(transactions)

    rows: List[Dict[str, Any]] = []
    for material in materials:
        stats = compute_usage_stats(
            material, by_material.get(material.id, ()), days, as_of, settings.usage_timezone
        )
        row = stats.to_dict()
        row.update({
            'material_name': material.name,
            'unit': material.unit,
            'current_stock': float(material.stock_quantity),
            'consumed_value': round_money(to_decimal(stats.total_consumed) * to_decimal(material.unit_cost)),
        })
        rows.append(row)

    rows.sort(key=lambda r: (-r['total_consumed'], r['material_id']))
    return {
        'period_days': days,
        'as_of': as_of.isoformat(),
        'total_consumed_value': round_money(sum(Decimal(str(r['consumed_value'])) for r in rows)),
        'materials': rows,
    }


def efficiency_score(available_quantity: int, average_waste_percentage: float) -> float:
    capacity_part = min(available_quantity / 100, 1.0) * 70
    waste_part = max(0.0, 1 - average_waste_percentage / 100) * 30
    return round(capacity_part + waste_part, 2)


def production_efficiency_report(
    products: Sequence[ProductSnapshot], settings: EngineSettings = DEFAULT_SETTINGS
) -> Dict[str, Any]:
    rows: List[Dict[str, Any]] = []
    for product in products:
        if not product.is_bom_managed or product.active_recipe is None:
            continue
        recipe = product.active_recipe
        components = recipe.components
        capacity = compute_production_capacity(product, settings)
        unit_cost = sum(
            (c.effective_quantity * to_decimal(c.material.unit_cost) for c in components),
            Decimal('0'),
        )
        yield_quantity = to_decimal(recipe.yield_quantity) or Decimal('1')
        avg_waste = (
            sum(float(c.waste_percentage) for c in components) / len(components) if components else 0.0
        )
        rows.append({
            'product_id': product.id,
            'product_name': product.name,
            'recipe_id': recipe.id,
            'component_count': len(components),
            'recipe_cost': round_money(unit_cost),
            'cost_per_yield_unit': round_money(unit_cost / yield_quantity),
            'yield_quantity': float(recipe.yield_quantity),
            'yield_unit': recipe.yield_unit,
            'average_waste_percentage': round_quantity(avg_waste, 2),
            'available_quantity': capacity.available_quantity,
            'stock_status': capacity.stock_status,
            'efficiency_score': efficiency_score(capacity.available_quantity, avg_waste),
        })

    rows.sort(key=lambda r: (-r['efficiency_score'], r['product_id']))
    return {
        'products': rows,
        'average_efficiency_score': round(sum(r['efficiency_score'] for r in rows) / len(rows), 2) if rows else 0.0,
    }


def _recipe_costing_row(product: ProductSnapshot) -> Dict[str, Any]:
    recipe = product.active_recipe
    line_costs = [
        (component, component.effective_quantity * to_decimal(component.material.unit_cost))
        for component in recipe.components
    ]
    total = sum((cost for _, cost in line_costs), Decimal('0'))
    yield_quantity = to_decimal(recipe.yield_quantity) or Decimal('1')

    components = [
        {
            'material_id': component.material_id,
            'material_name': component.material.name,
            'unit': component.material.unit,
            'quantity_required': float(component.quantity_required),
            'waste_percentage': float(component.waste_percentage),
            'effective_quantity': round_quantity(component.effective_quantity),
            'unit_cost': float(component.material.unit_cost),
            'total_cost': round_money(cost),
            'cost_percentage': round_money(cost / total * 100) if total > 0 else 0.0,
        }
        for component, cost in line_costs
    ]
    components.sort(key=lambda c: (-c['total_cost'], c['material_id']))

    return {
        'recipe_id': recipe.id,
        'recipe_name': recipe.name,
        'product_id': product.id,
        'product_name': product.name,
        'yield_quantity': float(recipe.yield_quantity),
        'yield_unit': recipe.yield_unit,
        'total_cost': round_money(total),
        'cost_per_yield_unit': round_money(total / yield_quantity),
        'component_count': len(components),
        'components': components,
        'most_expensive_component': components[0] if components else None,
    }


def recipe_costing_report(products: Sequence[ProductSnapshot]) -> Dict[str, Any]:
    """Cost breakdown of every active recipe, most expensive first."""
    rows = [
        _recipe_costing_row(product)
        for product in products
        if product.is_bom_managed and product.active_recipe is not None
    ]
    rows.sort(key=lambda r: (-r['total_cost'], r['recipe_id']))

    def _headline(row):
        return {'recipe_id': row['recipe_id'], 'recipe_name': row['recipe_name'], 'total_cost': row['total_cost']}

    return {
        'summary': {
            'total_active_recipes': len(rows),
            'average_recipe_cost': round_money(
                sum(Decimal(str(r['total_cost'])) for r in rows) / len(rows)
            ) if rows else 0.0,
            'highest_cost_recipe': _headline(rows[0]) if rows else None,
            'lowest_cost_recipe': _headline(rows[-1]) if rows else None,
        },
        'recipes': rows,
    }


def _movement_bucket(transactions: Sequence[TransactionSnapshot]) -> Dict[str, Any]:
    return {
        'count': len(transactions),
        'total_quantity': round_quantity(
            sum((to_decimal(t.quantity_change) for t in transactions), Decimal('0')), 3
        ),
    }


def stock_movement_report(
    materials: Sequence[MaterialSnapshot],
    transactions: Sequence[TransactionSnapshot],
    days: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
    as_of: Optional[datetime] = None,
    recent_limit: int = RECENT_MOVEMENT_LIMIT,
) -> Dict[str, Any]:
    """
    Stock movements over ``[as_of - days, as_of]``.

    Movements are grouped by transaction type, by reason and by calendar day
    (in the configured usage timezone). Transactions for materials outside
    ``materials`` are still counted; they just carry no material name.
    """
    as_of = TimezoneUtils.ensure_timezone_aware(as_of) or TimezoneUtils.utc_now()
    start = as_of - timedelta(days=days)
    in_window = sorted(
        (
            txn for txn in transactions
            if start <= TimezoneUtils.ensure_timezone_aware(txn.created_at) <= as_of
        ),
        key=lambda txn: TimezoneUtils.ensure_timezone_aware(txn.created_at),
        reverse=True,
    )
    names = {material.id: material.name for material in materials}

    by_type: Dict[str, List[TransactionSnapshot]] = defaultdict(list)
    by_reason: Dict[Optional[str], List[TransactionSnapshot]] = defaultdict(list)
    by_day: Dict[str, List[TransactionSnapshot]] = defaultdict(list)
    for txn in in_window:
        by_type[txn.transaction_type].append(txn)
        by_reason[txn.reason].append(txn)
        by_day[TimezoneUtils.local_date(txn.created_at, settings.usage_timezone).isoformat()].append(txn)

    daily = []
    for day in sorted(by_day):
        changes = [to_decimal(t.quantity_change) for t in by_day[day]]
        daily.append({
            'date': day,
            'transaction_count': len(changes),
            'total_increases': round_quantity(sum((c for c in changes if c > 0), Decimal('0')), 3),
            'total_decreases': round_quantity(abs(sum((c for c in changes if c < 0), Decimal('0'))), 3),
            'net_change': round_quantity(sum(changes, Decimal('0')), 3),
        })

    return {
        'period': {'from': start.isoformat(), 'to': as_of.isoformat(), 'days': days},
        'summary': {
            'total_transactions': len(in_window),
            'total_materials_affected': len({txn.material_id for txn in in_window}),
            'net_stock_change': _movement_bucket(in_window)['total_quantity'],
        },
        'by_transaction_type': [
            dict(type=txn_type, **_movement_bucket(by_type[txn_type])) for txn_type in sorted(by_type)
        ],
        'by_reason': [
            dict(reason=reason, **_movement_bucket(by_reason[reason]))
            for reason in sorted(by_reason, key=lambda r: (r is None, r or ''))
        ],
        'daily_movement': daily,
        'recent_transactions': [
            {
                'date': TimezoneUtils.ensure_timezone_aware(txn.created_at).isoformat(),
                'material_id': txn.material_id,
                'material_name': names.get(txn.material_id),
                'type': txn.transaction_type,
                'reason': txn.reason,
                'quantity_change': txn.quantity_change,
            }
            for txn in in_window[:recent_limit]
        ],
    }
