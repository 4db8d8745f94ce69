"""
Availability Calculation

How many units of a product current stock supports, and which material
binds that number.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Mapping, Optional, Sequence

from ._quantities import as_float, producible_units, require_positive
from .errors import BomEngineError, NotBomManagedError
from .types import (
    AvailabilityResult,
    BottleneckMaterial,
    BulkAvailabilityEntry,
    ComponentStatus,
    DEFAULT_SETTINGS,
    EngineSettings,
    ProductionCapacity,
    ProductSnapshot,
)

logger = logging.getLogger(__name__)

STOCK_OUT = 'out_of_stock'
STOCK_LOW = 'low_stock'
STOCK_MODERATE = 'moderate_stock'
STOCK_IN = 'in_stock'


def ensure_bom_managed(product: ProductSnapshot) -> None:
    if not product.is_bom_managed:
        raise NotBomManagedError(product.id, product.inventory_management_type)


def compute_available_quantity(product: ProductSnapshot) -> AvailabilityResult:
    """Maximum producible units of ``product`` from current stock."""
    ensure_bom_managed(product)

    recipe = product.active_recipe
    if recipe is None:
        return AvailabilityResult(
            product_id=product.id,
            product_name=product.name,
            available_quantity=0,
            message='No active recipe',
        )
    if not recipe.components:
        return AvailabilityResult(
            product_id=product.id,
            product_name=product.name,
            available_quantity=0,
            recipe_id=recipe.id,
            yield_unit=recipe.yield_unit,
            message='Active recipe has no components',
        )

    statuses: List[ComponentStatus] = []
    for component in sorted(recipe.components, key=lambda c: c.material_id):
        material = component.material
        effective = component.effective_quantity
        max_units = producible_units(material.stock_quantity, effective)
        statuses.append(ComponentStatus(
            material_id=material.id,
            material_name=material.name,
            unit=material.unit,
            quantity_required=float(component.quantity_required),
            waste_percentage=float(component.waste_percentage),
            effective_quantity=as_float(effective),
            current_stock=float(material.stock_quantity),
            max_producible=max_units,
            is_constraining=max_units is not None,
        ))

    constraining = [status for status in statuses if status.is_constraining]
    if not constraining:
        logger.warning("Recipe %s has no constraining components; treating as unproducible", recipe.id)
        return AvailabilityResult(
            product_id=product.id,
            product_name=product.name,
            available_quantity=0,
            components=statuses,
            recipe_id=recipe.id,
            yield_unit=recipe.yield_unit,
            message='Active recipe has no components with a positive requirement',
        )

    available = max(0, min(status.max_producible for status in constraining))
    limiting = [status for status in constraining if status.max_producible == available]
    for status in limiting:
        status.is_limiting = True
    # statuses are ordered by material_id, so the first limiting entry wins ties
    bottleneck = limiting[0]

    return AvailabilityResult(
        product_id=product.id,
        product_name=product.name,
        available_quantity=available,
        bottleneck_material=BottleneckMaterial(
            material_id=bottleneck.material_id,
            material_name=bottleneck.material_name,
            unit=bottleneck.unit,
            required_per_unit=bottleneck.effective_quantity,
            available_stock=bottleneck.current_stock,
            max_units=bottleneck.max_producible,
        ),
        limiting_material_ids=[status.material_id for status in limiting],
        components=statuses,
        recipe_id=recipe.id,
        yield_unit=recipe.yield_unit,
    )


def classify_capacity(available_quantity: int, settings: EngineSettings = DEFAULT_SETTINGS) -> str:
    if available_quantity <= 0:
        return STOCK_OUT
    if available_quantity < settings.capacity_low_threshold:
        return STOCK_LOW
    if available_quantity < settings.capacity_moderate_threshold:
        return STOCK_MODERATE
    return STOCK_IN


def compute_production_capacity(
    product: ProductSnapshot, settings: EngineSettings = DEFAULT_SETTINGS
) -> ProductionCapacity:
    result = compute_available_quantity(product)
    return ProductionCapacity(
        product_id=result.product_id,
        product_name=result.product_name,
        available_quantity=result.available_quantity,
        stock_status=classify_capacity(result.available_quantity, settings),
        bottleneck_material=result.bottleneck_material,
        components_status=result.components,
        unit=result.yield_unit,
    )


def check_production_feasibility(product: ProductSnapshot, requested_quantity) -> Dict[str, object]:
    requested = require_positive(requested_quantity, 'requested_quantity')
    result = compute_available_quantity(product)
    shortfall = requested - result.available_quantity
    return {
        'product_id': product.id,
        'requested_quantity': float(requested),
        'available_quantity': result.available_quantity,
        'is_feasible': shortfall <= 0,
        'shortage': float(max(shortfall, 0)),
        'bottleneck_material': result.bottleneck_material.to_dict() if result.bottleneck_material else None,
    }


def _availability_entry(product_id: int, product: Optional[ProductSnapshot]) -> BulkAvailabilityEntry:
    if product is None:
        return BulkAvailabilityEntry(product_id=product_id, error=f"Product {product_id} not found")
    try:
        return BulkAvailabilityEntry(product_id=product_id, result=compute_available_quantity(product))
    except BomEngineError as exc:
        return BulkAvailabilityEntry(product_id=product_id, error=str(exc))


def compute_bulk_availability(
    product_ids: Sequence[int],
    products_by_id: Mapping[int, ProductSnapshot],
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> Dict[int, BulkAvailabilityEntry]:
    """
    Availability for several products at once.

    Each product is computed independently; a failure is recorded on that
    entry only. Results keep the order of ``product_ids``.
    """
    ordered_ids = list(dict.fromkeys(product_ids))
    workers = max(1, min(settings.bulk_max_workers, len(ordered_ids) or 1))

    if workers == 1:
        entries = [_availability_entry(pid, products_by_id.get(pid)) for pid in ordered_ids]
    else:
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix='bom-availability') as pool:
            entries = list(pool.map(lambda pid: _availability_entry(pid, products_by_id.get(pid)), ordered_ids))

    failures = sum(1 for entry in entries if not entry.success)
    if failures:
        logger.info("Bulk availability: %d of %d products failed", failures, len(entries))
    return {entry.product_id: entry for entry in entries}
