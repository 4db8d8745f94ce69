"""
BOM Production Constraint Engine

Read-only calculations over a tenant's stock snapshot:
- Producible quantity and bottleneck detection
- Batch requirements, batch-size suggestions and what-if simulation
- Multi-product demand aggregation and feasibility
- Usage forecasting, stock alerts and reorder recommendations
- Report bundles for dashboards, recipe costing and stock movement

Every function is pure over the snapshots it is given; loading those
snapshots is the repository's job.
"""

from ._availability import (
    classify_capacity,
    check_production_feasibility,
    compute_available_quantity,
    compute_bulk_availability,
    compute_production_capacity,
)
from ._batch_planning import (
    STANDARD_BATCH_SIZES,
    compute_batch_requirements,
    compute_optimal_batch_size,
    simulate_production,
)
from ._multi_product import plan_multi_product
from ._forecasting import (
    compute_average_daily_usage,
    compute_usage_stats,
    project_days_to_stockout,
)
from ._alerts import (
    classify_stock_level,
    compute_active_alerts,
    compute_dashboard,
    compute_predictive_alerts,
    compute_reorder_recommendations,
)
from ._reporting import (
    capacity_overview,
    executive_summary,
    material_usage_report,
    production_efficiency_report,
    recipe_costing_report,
    stock_movement_report,
)
from ._quantities import effective_quantity
from .errors import (
    BomEngineError,
    InvalidQuantityError,
    NotBomManagedError,
    ProductNotFoundError,
)
from .types import (
    ComponentSnapshot,
    EngineSettings,
    MaterialSnapshot,
    ProductionRequest,
    ProductSnapshot,
    RecipeSnapshot,
    TransactionSnapshot,
)

__all__ = [
    'effective_quantity',
    'classify_capacity',
    'check_production_feasibility',
    'compute_available_quantity',
    'compute_bulk_availability',
    'compute_production_capacity',
    'STANDARD_BATCH_SIZES',
    'compute_batch_requirements',
    'compute_optimal_batch_size',
    'simulate_production',
    'plan_multi_product',
    'compute_average_daily_usage',
    'compute_usage_stats',
    'project_days_to_stockout',
    'classify_stock_level',
    'compute_active_alerts',
    'compute_dashboard',
    'compute_predictive_alerts',
    'compute_reorder_recommendations',
    'capacity_overview',
    'executive_summary',
    'material_usage_report',
    'production_efficiency_report',
    'recipe_costing_report',
    'stock_movement_report',
    'BomEngineError',
    'InvalidQuantityError',
    'NotBomManagedError',
    'ProductNotFoundError',
    'ComponentSnapshot',
    'EngineSettings',
    'MaterialSnapshot',
    'ProductionRequest',
    'ProductSnapshot',
    'RecipeSnapshot',
    'TransactionSnapshot',
]
