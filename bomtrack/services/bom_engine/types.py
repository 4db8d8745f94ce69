"""
BOM Engine Types

Immutable snapshots consumed by the engine and the request-scoped result
objects it produces. Snapshots are built once per request by the repository;
results expose ``to_dict()`` for API responses.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ...utils.timezone_utils import TimezoneUtils
from ._quantities import effective_quantity


def _finite_or_none(value: Optional[float]) -> Optional[float]:
    """JSON has no infinity; unbounded projections serialize as null."""
    if value is None or math.isinf(value) or math.isnan(value):
        return None
    return value


# --------------------------------------------------------------------------
# Settings
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class EngineSettings:
    usage_window_days: int = 30
    usage_timezone: str = 'UTC'
    capacity_low_threshold: int = 10
    capacity_moderate_threshold: int = 50
    predictive_critical_days: int = 3
    reorder_urgent_days: int = 7
    reorder_soon_days: int = 14
    dashboard_top_n: int = 10
    bulk_max_workers: int = 4
    default_forecast_days: int = 7
    default_target_days: int = 30

    _CONFIG_KEYS = {
        'usage_window_days': 'BOM_USAGE_WINDOW_DAYS',
        'usage_timezone': 'BOM_USAGE_TIMEZONE',
        'capacity_low_threshold': 'BOM_CAPACITY_LOW_THRESHOLD',
        'capacity_moderate_threshold': 'BOM_CAPACITY_MODERATE_THRESHOLD',
        'predictive_critical_days': 'BOM_PREDICTIVE_CRITICAL_DAYS',
        'reorder_urgent_days': 'BOM_REORDER_URGENT_DAYS',
        'reorder_soon_days': 'BOM_REORDER_SOON_DAYS',
        'dashboard_top_n': 'BOM_DASHBOARD_TOP_N',
        'bulk_max_workers': 'BOM_BULK_MAX_WORKERS',
        'default_forecast_days': 'BOM_DEFAULT_FORECAST_DAYS',
        'default_target_days': 'BOM_DEFAULT_TARGET_DAYS',
    }

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> 'EngineSettings':
        """Build settings from a Flask config (or any mapping of BOM_* keys)."""
        overrides = {
            attr: config[key]
            for attr, key in cls._CONFIG_KEYS.items()
            if config.get(key) is not None
        }
        tz_name = overrides.get('usage_timezone')
        if tz_name is not None and not TimezoneUtils.validate_timezone(tz_name):
            raise ValueError(f"BOM_USAGE_TIMEZONE is not a known timezone: {tz_name!r}")
        return cls(**overrides)


DEFAULT_SETTINGS = EngineSettings()


# --------------------------------------------------------------------------
# Snapshots
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class MaterialSnapshot:
    id: int
    tenant_id: str
    name: str
    stock_quantity: float
    reorder_level: float = 0.0
    unit_cost: float = 0.0
    unit: str = 'unit'
    sku: Optional[str] = None
    category: Optional[str] = None
    supplier: Optional[str] = None

    def to_ref(self) -> Dict[str, Any]:
        return {'id': self.id, 'name': self.name, 'unit': self.unit}


@dataclass(frozen=True)
class ComponentSnapshot:
    recipe_id: int
    material: MaterialSnapshot
    quantity_required: float
    waste_percentage: float = 0.0

    @property
    def material_id(self) -> int:
        return self.material.id

    @property
    def effective_quantity(self) -> Decimal:
        return effective_quantity(self.quantity_required, self.waste_percentage)


@dataclass(frozen=True)
class RecipeSnapshot:
    id: int
    product_id: int
    name: str
    yield_quantity: float = 1.0
    yield_unit: str = 'unit'
    is_active: bool = True
    components: Tuple[ComponentSnapshot, ...] = ()


@dataclass(frozen=True)
class ProductSnapshot:
    id: int
    tenant_id: str
    name: str
    inventory_management_type: str = 'bom'
    active_recipe: Optional[RecipeSnapshot] = None

    @property
    def is_bom_managed(self) -> bool:
        return self.inventory_management_type == 'bom'

    @property
    def components(self) -> Tuple[ComponentSnapshot, ...]:
        return self.active_recipe.components if self.active_recipe else ()


@dataclass(frozen=True)
class TransactionSnapshot:
    material_id: int
    transaction_type: str
    quantity_change: float
    created_at: datetime
    reason: Optional[str] = None


# --------------------------------------------------------------------------
# Availability
# --------------------------------------------------------------------------

@dataclass
class BottleneckMaterial:
    material_id: int
    material_name: str
    unit: str
    required_per_unit: float
    available_stock: float
    max_units: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'unit': self.unit,
            'required_per_unit': self.required_per_unit,
            'available_stock': self.available_stock,
            'max_units': self.max_units,
        }


@dataclass
class ComponentStatus:
    """Per-component view of how far current stock stretches"""
    material_id: int
    material_name: str
    unit: str
    quantity_required: float
    waste_percentage: float
    effective_quantity: float
    current_stock: float
    max_producible: Optional[int]
    is_constraining: bool
    is_limiting: bool = False

    @property
    def sufficient(self) -> bool:
        return self.current_stock >= self.effective_quantity

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'unit': self.unit,
            'quantity_required': self.quantity_required,
            'waste_percentage': self.waste_percentage,
            'effective_quantity': self.effective_quantity,
            'current_stock': self.current_stock,
            'max_producible': self.max_producible,
            'is_constraining': self.is_constraining,
            'is_limiting': self.is_limiting,
            'sufficient': self.sufficient,
        }


@dataclass
class AvailabilityResult:
    product_id: int
    product_name: str
    available_quantity: int
    bottleneck_material: Optional[BottleneckMaterial] = None
    limiting_material_ids: List[int] = field(default_factory=list)
    components: List[ComponentStatus] = field(default_factory=list)
    recipe_id: Optional[int] = None
    yield_unit: Optional[str] = None
    message: Optional[str] = None

    @property
    def has_recipe(self) -> bool:
        return self.recipe_id is not None

    @property
    def can_produce(self) -> bool:
        return self.available_quantity > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'recipe_id': self.recipe_id,
            'has_recipe': self.has_recipe,
            'available_quantity': self.available_quantity,
            'can_produce': self.can_produce,
            'bottleneck_material': self.bottleneck_material.to_dict() if self.bottleneck_material else None,
            'limiting_material_ids': list(self.limiting_material_ids),
            'components': [c.to_dict() for c in self.components],
            'message': self.message,
        }


@dataclass
class BulkAvailabilityEntry:
    product_id: int
    result: Optional[AvailabilityResult] = None
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.result is None:
            return {'success': False, 'product_id': self.product_id, 'error': self.error}
        payload = self.result.to_dict()
        payload['success'] = True
        return payload


@dataclass
class ProductionCapacity:
    product_id: int
    product_name: str
    available_quantity: int
    stock_status: str
    bottleneck_material: Optional[BottleneckMaterial] = None
    components_status: List[ComponentStatus] = field(default_factory=list)
    unit: Optional[str] = None

    @property
    def can_produce(self) -> bool:
        return self.available_quantity > 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'available_quantity': self.available_quantity,
            'can_produce': self.can_produce,
            'stock_status': self.stock_status,
            'unit': self.unit,
            'bottleneck_material': self.bottleneck_material.to_dict() if self.bottleneck_material else None,
            'components_status': [c.to_dict() for c in self.components_status],
        }


# --------------------------------------------------------------------------
# Batch planning
# --------------------------------------------------------------------------

@dataclass
class MaterialRequirement:
    material_id: int
    material_name: str
    unit: str
    quantity_per_unit: float
    waste_percentage: float
    effective_quantity_per_unit: float
    total_required: float
    current_stock: float
    is_sufficient: bool
    shortage: float = 0.0
    remaining_after_production: float = 0.0
    unit_cost: float = 0.0
    total_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'unit': self.unit,
            'quantity_per_unit': self.quantity_per_unit,
            'waste_percentage': self.waste_percentage,
            'effective_quantity_per_unit': self.effective_quantity_per_unit,
            'total_required': self.total_required,
            'current_stock': self.current_stock,
            'is_sufficient': self.is_sufficient,
            'shortage': self.shortage,
            'remaining_after_production': self.remaining_after_production,
            'unit_cost': self.unit_cost,
            'total_cost': self.total_cost,
        }


@dataclass
class BatchRequirements:
    product_id: int
    product_name: str
    quantity: float
    can_produce: bool
    material_requirements: List[MaterialRequirement] = field(default_factory=list)
    recipe_id: Optional[int] = None
    total_material_cost: float = 0.0
    cost_per_unit: float = 0.0
    message: Optional[str] = None

    @property
    def has_recipe(self) -> bool:
        return self.recipe_id is not None

    @property
    def shortages(self) -> List[MaterialRequirement]:
        return [req for req in self.material_requirements if not req.is_sufficient]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'recipe_id': self.recipe_id,
            'has_recipe': self.has_recipe,
            'quantity': self.quantity,
            'can_produce': self.can_produce,
            'material_requirements': [req.to_dict() for req in self.material_requirements],
            'shortages': [
                {
                    'material_id': req.material_id,
                    'material_name': req.material_name,
                    'required': req.total_required,
                    'available': req.current_stock,
                    'shortage': req.shortage,
                }
                for req in self.shortages
            ],
            'cost_analysis': {
                'total_material_cost': self.total_material_cost,
                'cost_per_unit': self.cost_per_unit,
            },
            'message': self.message,
        }


@dataclass
class BatchOption:
    quantity: int
    total_cost: float
    cost_per_unit: float
    utilization_percentage: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            'quantity': self.quantity,
            'total_cost': self.total_cost,
            'cost_per_unit': self.cost_per_unit,
            'utilization_percentage': self.utilization_percentage,
        }


@dataclass
class OptimalBatchSize:
    product_id: int
    product_name: str
    available_quantity: int
    maximum_producible: int
    suggested_batches: List[int]
    bottleneck_material: Optional[BottleneckMaterial] = None
    batch_options: List[BatchOption] = field(default_factory=list)
    min_quantity: Optional[int] = None
    max_quantity: Optional[int] = None
    recommendation: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'product_name': self.product_name,
            'available_quantity': self.available_quantity,
            'maximum_producible': self.maximum_producible,
            'min_quantity': self.min_quantity,
            'max_quantity': self.max_quantity,
            'suggested_batches': list(self.suggested_batches),
            'batch_options': [opt.to_dict() for opt in self.batch_options],
            'bottleneck_material': self.bottleneck_material.to_dict() if self.bottleneck_material else None,
            'recommendation': self.recommendation,
        }


@dataclass
class SimulatedConsumption:
    material_id: int
    material_name: str
    unit: str
    before: float
    consumed: float
    after: float
    reorder_level: float

    @property
    def goes_negative(self) -> bool:
        return self.after < 0

    @property
    def will_fall_below_reorder_level(self) -> bool:
        return self.after < self.reorder_level

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'unit': self.unit,
            'before': self.before,
            'consumed': self.consumed,
            'after': self.after,
            'reorder_level': self.reorder_level,
            'goes_negative': self.goes_negative,
            'will_fall_below_reorder_level': self.will_fall_below_reorder_level,
        }


@dataclass
class ProductionSimulation:
    product_id: int
    quantity: float
    can_produce: bool
    materials: List[SimulatedConsumption] = field(default_factory=list)
    total_material_cost: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'product_id': self.product_id,
            'quantity': self.quantity,
            'can_produce': self.can_produce,
            'total_material_cost': self.total_material_cost,
            'materials': [m.to_dict() for m in self.materials],
            'materials_below_reorder_level': [
                m.material_id for m in self.materials if m.will_fall_below_reorder_level
            ],
        }


# --------------------------------------------------------------------------
# Multi-product planning
# --------------------------------------------------------------------------

@dataclass(frozen=True)
class ProductionRequest:
    product: ProductSnapshot
    quantity: float


@dataclass
class ProductionPlanEntry:
    product_id: int
    product_name: str
    requested_quantity: float
    can_produce: bool
    material_requirements: List[MaterialRequirement] = field(default_factory=list)
    recipe_id: Optional[int] = None
    production_cost: float = 0.0
    error: Optional[str] = None

    @property
    def has_recipe(self) -> bool:
        return self.recipe_id is not None

    @property
    def success(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {
                'success': False,
                'product_id': self.product_id,
                'product_name': self.product_name,
                'requested_quantity': self.requested_quantity,
                'error': self.error,
            }
        return {
            'success': True,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'recipe_id': self.recipe_id,
            'has_recipe': self.has_recipe,
            'requested_quantity': self.requested_quantity,
            'can_produce_individually': self.can_produce,
            'production_cost': self.production_cost,
            'material_requirements': [req.to_dict() for req in self.material_requirements],
        }


@dataclass
class MaterialDemand:
    material_id: int
    material_name: str
    unit: str
    current_stock: float
    total_required: float
    used_in_products: List[int] = field(default_factory=list)

    @property
    def is_sufficient(self) -> bool:
        return self.current_stock >= self.total_required

    @property
    def shortage(self) -> float:
        return max(0.0, self.total_required - self.current_stock)

    @property
    def remaining_after_production(self) -> float:
        return self.current_stock - self.total_required

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'unit': self.unit,
            'current_stock': self.current_stock,
            'total_required': self.total_required,
            'remaining_after_production': self.remaining_after_production,
            'is_sufficient': self.is_sufficient,
            'shortage': self.shortage,
            'used_in_products': list(self.used_in_products),
        }


@dataclass
class MultiProductPlan:
    production_plan: List[ProductionPlanEntry]
    aggregated_material_requirements: Dict[int, float]
    material_summary: List[MaterialDemand]
    is_feasible: bool
    total_production_cost: float

    @property
    def material_shortages(self) -> List[MaterialDemand]:
        return [demand for demand in self.material_summary if not demand.is_sufficient]

    @property
    def products_without_recipe(self) -> List[int]:
        return [
            entry.product_id for entry in self.production_plan
            if entry.success and not entry.has_recipe
        ]

    @property
    def failed_products(self) -> List[int]:
        return [entry.product_id for entry in self.production_plan if not entry.success]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'production_plan': [entry.to_dict() for entry in self.production_plan],
            'aggregated_material_requirements': {
                str(material_id): total
                for material_id, total in self.aggregated_material_requirements.items()
            },
            'material_summary': [demand.to_dict() for demand in self.material_summary],
            'material_shortages': [demand.to_dict() for demand in self.material_shortages],
            'products_without_recipe': self.products_without_recipe,
            'failed_products': self.failed_products,
            'is_feasible': self.is_feasible,
            'total_production_cost': self.total_production_cost,
        }


# --------------------------------------------------------------------------
# Forecasting and alerts
# --------------------------------------------------------------------------

@dataclass
class UsageStats:
    material_id: int
    window_days: int
    average_daily_usage: float
    observed_days: int
    total_consumed: float
    total_received: float
    transaction_count: int
    days_to_stockout: float = math.inf

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'window_days': self.window_days,
            'average_daily_usage': self.average_daily_usage,
            'observed_days': self.observed_days,
            'total_consumed': self.total_consumed,
            'total_received': self.total_received,
            'net_change': self.total_received - self.total_consumed,
            'transaction_count': self.transaction_count,
            'days_to_stockout': _finite_or_none(self.days_to_stockout),
        }


@dataclass
class StockAlert:
    material_id: int
    material_name: str
    severity: str
    current_stock: float
    reorder_level: float
    unit: str = 'unit'
    sku: Optional[str] = None
    active_recipe_count: Optional[int] = None

    @property
    def shortage(self) -> float:
        return max(0.0, self.reorder_level - self.current_stock)

    @property
    def affects_production(self) -> Optional[bool]:
        if self.active_recipe_count is None:
            return None
        return self.active_recipe_count > 0

    @property
    def message(self) -> str:
        if self.severity == 'out_of_stock':
            return f"{self.material_name} is out of stock"
        return (
            f"{self.material_name} is {self.severity.replace('_', ' ')}: "
            f"{self.current_stock:g} {self.unit} left (reorder level {self.reorder_level:g})"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'sku': self.sku,
            'unit': self.unit,
            'severity': self.severity,
            'current_stock': self.current_stock,
            'reorder_level': self.reorder_level,
            'shortage': self.shortage,
            'active_recipe_count': self.active_recipe_count,
            'affects_production': self.affects_production,
            'message': self.message,
        }


@dataclass
class ActiveAlertReport:
    alerts: List[StockAlert]
    severity_summary: Dict[str, int]

    @property
    def total_alerts(self) -> int:
        return len(self.alerts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'alerts': [alert.to_dict() for alert in self.alerts],
            'total_alerts': self.total_alerts,
            'severity_summary': dict(self.severity_summary),
        }


@dataclass
class PredictiveAlert:
    material_id: int
    material_name: str
    unit: str
    current_stock: float
    reorder_level: float
    average_daily_usage: float
    days_until_stockout: float
    predicted_stockout_date: Optional[str]
    based_on_usage_days: int
    severity: str
    recommended_reorder_quantity: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'unit': self.unit,
            'current_stock': self.current_stock,
            'reorder_level': self.reorder_level,
            'average_daily_usage': self.average_daily_usage,
            'days_until_stockout': _finite_or_none(self.days_until_stockout),
            'predicted_stockout_date': self.predicted_stockout_date,
            'based_on_usage_days': self.based_on_usage_days,
            'severity': self.severity,
            'recommended_reorder_quantity': self.recommended_reorder_quantity,
        }


@dataclass
class ReorderRecommendation:
    material_id: int
    material_name: str
    unit: str
    current_stock: float
    reorder_level: float
    average_daily_usage: float
    days_to_stockout: float
    recommended_order_quantity: float
    unit_cost: float
    estimated_cost: float
    priority: str
    sku: Optional[str] = None
    supplier: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'material_id': self.material_id,
            'material_name': self.material_name,
            'sku': self.sku,
            'supplier': self.supplier,
            'unit': self.unit,
            'current_stock': self.current_stock,
            'reorder_level': self.reorder_level,
            'average_daily_usage': self.average_daily_usage,
            'days_to_stockout': _finite_or_none(self.days_to_stockout),
            'recommended_order_quantity': self.recommended_order_quantity,
            'unit_cost': self.unit_cost,
            'estimated_cost': self.estimated_cost,
            'priority': self.priority,
        }


@dataclass
class AlertDashboard:
    generated_at: datetime
    active: ActiveAlertReport
    predictive_alerts: List[PredictiveAlert]
    reorder_recommendations: List[ReorderRecommendation]
    forecast_days: int
    target_days_of_stock: int
    top_n: int = 10

    @property
    def total_reorder_cost(self) -> float:
        return round(sum(rec.estimated_cost for rec in self.reorder_recommendations), 2)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'generated_at': self.generated_at.isoformat(),
            'summary': {
                'total_active_alerts': self.active.total_alerts,
                'critical_alerts': self.active.severity_summary.get('critical', 0),
                'out_of_stock': self.active.severity_summary.get('out_of_stock', 0),
                'low_stock': self.active.severity_summary.get('low', 0),
                'predictive_alerts': len(self.predictive_alerts),
                'reorder_recommendations': len(self.reorder_recommendations),
                'total_reorder_cost': self.total_reorder_cost,
            },
            'severity_summary': dict(self.active.severity_summary),
            'forecast_days': self.forecast_days,
            'target_days_of_stock': self.target_days_of_stock,
            'active_alerts': [a.to_dict() for a in self.active.alerts[:self.top_n]],
            'predictive_alerts': [a.to_dict() for a in self.predictive_alerts[:self.top_n]],
            'reorder_recommendations': [r.to_dict() for r in self.reorder_recommendations[:self.top_n]],
        }
