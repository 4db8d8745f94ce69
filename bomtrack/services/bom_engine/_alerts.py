"""
Stock Alerts

Active (threshold) alerts, usage-based predictive alerts and reorder
recommendations, all computed on demand and never persisted.
"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence

from ...utils.timezone_utils import TimezoneUtils
from ._forecasting import compute_usage_stats, group_transactions_by_material
from ._quantities import round_money, round_quantity, to_decimal
from .types import (
    ActiveAlertReport,
    AlertDashboard,
    DEFAULT_SETTINGS,
    EngineSettings,
    MaterialSnapshot,
    PredictiveAlert,
    RecipeSnapshot,
    ReorderRecommendation,
    StockAlert,
    TransactionSnapshot,
)

logger = logging.getLogger(__name__)

SEVERITY_OUT_OF_STOCK = 'out_of_stock'
SEVERITY_CRITICAL = 'critical'
SEVERITY_LOW = 'low'
SEVERITY_ORDER = (SEVERITY_OUT_OF_STOCK, SEVERITY_CRITICAL, SEVERITY_LOW)

PRIORITY_URGENT = 'urgent'
PRIORITY_SOON = 'soon'
PRIORITY_NORMAL = 'normal'

_HALF = Decimal('0.5')


def classify_stock_level(material: MaterialSnapshot) -> Optional[str]:
    stock = to_decimal(material.stock_quantity)
    reorder_level = to_decimal(material.reorder_level)
    if stock <= 0:
        return SEVERITY_OUT_OF_STOCK
    if stock <= reorder_level * _HALF:
        return SEVERITY_CRITICAL
    if stock <= reorder_level:
        return SEVERITY_LOW
    return None


def _active_recipe_counts(recipes: Iterable[RecipeSnapshot]) -> Dict[int, int]:
    counts: Dict[int, int] = {}
    for recipe in recipes:
        if not recipe.is_active:
            continue
        for material_id in {c.material_id for c in recipe.components}:
            counts[material_id] = counts.get(material_id, 0) + 1
    return counts


def compute_active_alerts(
    materials: Sequence[MaterialSnapshot],
    recipes: Optional[Iterable[RecipeSnapshot]] = None,
) -> ActiveAlertReport:
    usage_counts = _active_recipe_counts(recipes) if recipes is not None else None

    alerts: List[StockAlert] = []
    for material in materials:
        severity = classify_stock_level(material)
        if severity is None:
            continue
        alerts.append(StockAlert(
            material_id=material.id,
            material_name=material.name,
            severity=severity,
            current_stock=float(material.stock_quantity),
            reorder_level=float(material.reorder_level),
            unit=material.unit,
            sku=material.sku,
            active_recipe_count=usage_counts.get(material.id, 0) if usage_counts is not None else None,
        ))

    alerts.sort(key=lambda a: (SEVERITY_ORDER.index(a.severity), a.current_stock, a.material_id))
    summary = {severity: 0 for severity in SEVERITY_ORDER}
    for alert in alerts:
        summary[alert.severity] += 1
    return ActiveAlertReport(alerts=alerts, severity_summary=summary)


def compute_predictive_alerts(
    materials: Sequence[MaterialSnapshot],
    transactions: Iterable[TransactionSnapshot],
    forecast_days: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
    as_of: Optional[datetime] = None,
) -> List[PredictiveAlert]:
    """Materials projected to run out within ``forecast_days`` at current usage."""
    as_of = TimezoneUtils.ensure_timezone_aware(as_of) or TimezoneUtils.utc_now()
    by_material = group_transactions_by_material(transactions)

    alerts: List[PredictiveAlert] = []
    for material in materials:
        stats = compute_usage_stats(
            material,
            by_material.get(material.id, ()),
            settings.usage_window_days,
            as_of,
            settings.usage_timezone,
        )
        days = stats.days_to_stockout
        if days > forecast_days:
            continue
        alerts.append(PredictiveAlert(
            material_id=material.id,
            material_name=material.name,
            unit=material.unit,
            current_stock=float(material.stock_quantity),
            reorder_level=float(material.reorder_level),
            average_daily_usage=round_quantity(stats.average_daily_usage),
            days_until_stockout=round(days, 1),
            predicted_stockout_date=(as_of + timedelta(days=days)).date().isoformat(),
            based_on_usage_days=stats.observed_days,
            severity=SEVERITY_CRITICAL if days <= settings.predictive_critical_days else 'warning',
            recommended_reorder_quantity=round_quantity(
                to_decimal(stats.average_daily_usage) * settings.usage_window_days
            ),
        ))

    alerts.sort(key=lambda a: (a.days_until_stockout, a.material_id))
    return alerts


def reorder_priority(days_to_stockout: float, current_stock: float, settings: EngineSettings = DEFAULT_SETTINGS) -> str:
    if current_stock <= 0 or days_to_stockout <= settings.reorder_urgent_days:
        return PRIORITY_URGENT
    if days_to_stockout <= settings.reorder_soon_days:
        return PRIORITY_SOON
    return PRIORITY_NORMAL


def compute_reorder_recommendations(
    materials: Sequence[MaterialSnapshot],
    transactions: Iterable[TransactionSnapshot],
    target_days_of_stock: int,
    settings: EngineSettings = DEFAULT_SETTINGS,
    as_of: Optional[datetime] = None,
) -> List[ReorderRecommendation]:
    """
    Quantities that bring each material up to ``target_days_of_stock`` of cover.

    Only materials with a positive recommended quantity are returned, most
    urgent (fewest days to stockout) first.
    """
    as_of = TimezoneUtils.ensure_timezone_aware(as_of) or TimezoneUtils.utc_now()
    by_material = group_transactions_by_material(transactions)

    recommendations: List[ReorderRecommendation] = []
    for material in materials:
        stats = compute_usage_stats(
            material,
            by_material.get(material.id, ()),
            settings.usage_window_days,
            as_of,
            settings.usage_timezone,
        )
        target = to_decimal(stats.average_daily_usage) * target_days_of_stock
        quantity = max(Decimal('0'), target - to_decimal(material.stock_quantity))
        if quantity <= 0:
            continue
        recommendations.append(ReorderRecommendation(
            material_id=material.id,
            material_name=material.name,
            unit=material.unit,
            current_stock=float(material.stock_quantity),
            reorder_level=float(material.reorder_level),
            average_daily_usage=round_quantity(stats.average_daily_usage),
            days_to_stockout=stats.days_to_stockout,
            recommended_order_quantity=round_quantity(quantity),
            unit_cost=float(material.unit_cost),
            estimated_cost=round_money(quantity * to_decimal(material.unit_cost)),
            priority=reorder_priority(stats.days_to_stockout, float(material.stock_quantity), settings),
            sku=material.sku,
            supplier=material.supplier,
        ))

    recommendations.sort(key=lambda r: (r.days_to_stockout, r.material_id))
    return recommendations


def compute_dashboard(
    materials: Sequence[MaterialSnapshot],
    transactions: Sequence[TransactionSnapshot],
    recipes: Optional[Iterable[RecipeSnapshot]] = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
    forecast_days: Optional[int] = None,
    target_days_of_stock: Optional[int] = None,
    as_of: Optional[datetime] = None,
) -> AlertDashboard:
    as_of = TimezoneUtils.ensure_timezone_aware(as_of) or TimezoneUtils.utc_now()
    forecast_days = forecast_days or settings.default_forecast_days
    target_days_of_stock = target_days_of_stock or settings.default_target_days

    dashboard = AlertDashboard(
        generated_at=as_of,
        active=compute_active_alerts(materials, recipes),
        predictive_alerts=compute_predictive_alerts(materials, transactions, forecast_days, settings, as_of),
        reorder_recommendations=compute_reorder_recommendations(
            materials, transactions, target_days_of_stock, settings, as_of
        ),
        forecast_days=forecast_days,
        target_days_of_stock=target_days_of_stock,
        top_n=settings.dashboard_top_n,
    )
    logger.debug(
        "Alert dashboard: %d active, %d predictive, %d reorder",
        dashboard.active.total_alerts,
        len(dashboard.predictive_alerts),
        len(dashboard.reorder_recommendations),
    )
    return dashboard
