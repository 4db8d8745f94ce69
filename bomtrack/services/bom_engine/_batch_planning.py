"""
Batch Planning

Material needs for a requested batch, bounded batch-size suggestions and a
read-only production what-if. Nothing here touches stock.
"""

import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from ._availability import compute_available_quantity, ensure_bom_managed
from ._quantities import as_float, require_positive, round_money, scaled_requirement, to_decimal
from .types import (
    BatchOption,
    BatchRequirements,
    MaterialRequirement,
    OptimalBatchSize,
    ProductionSimulation,
    ProductSnapshot,
    SimulatedConsumption,
)

logger = logging.getLogger(__name__)

STANDARD_BATCH_SIZES = (10, 25, 50, 100, 200, 500)
_SUGGESTION_FRACTIONS = (Decimal('0.5'), Decimal('0.25'))


def build_material_requirements(
    product: ProductSnapshot, quantity: Decimal
) -> Tuple[List[MaterialRequirement], Decimal]:
    """Per-component requirements for ``quantity`` units plus their total cost."""
    requirements: List[MaterialRequirement] = []
    total_cost = Decimal('0')
    for component in sorted(product.components, key=lambda c: c.material_id):
        material = component.material
        effective = component.effective_quantity
        required = scaled_requirement(effective, quantity)
        stock = to_decimal(material.stock_quantity)
        line_cost = required * to_decimal(material.unit_cost)
        total_cost += line_cost
        requirements.append(MaterialRequirement(
            material_id=material.id,
            material_name=material.name,
            unit=material.unit,
            quantity_per_unit=float(component.quantity_required),
            waste_percentage=float(component.waste_percentage),
            effective_quantity_per_unit=as_float(effective),
            total_required=as_float(required),
            current_stock=float(material.stock_quantity),
            is_sufficient=stock >= required,
            shortage=as_float(max(required - stock, Decimal('0'))),
            remaining_after_production=as_float(stock - required),
            unit_cost=float(material.unit_cost),
            total_cost=round_money(line_cost),
        ))
    return requirements, total_cost


def compute_batch_requirements(product: ProductSnapshot, quantity) -> BatchRequirements:
    """Exact material consumption for one batch of ``quantity`` units."""
    ensure_bom_managed(product)
    amount = require_positive(quantity)

    recipe = product.active_recipe
    if recipe is None:
        return BatchRequirements(
            product_id=product.id,
            product_name=product.name,
            quantity=float(amount),
            can_produce=False,
            message='No active recipe',
        )

    requirements, total_cost = build_material_requirements(product, amount)
    # An active recipe without components consumes nothing.
    can_produce = all(req.is_sufficient for req in requirements)

    return BatchRequirements(
        product_id=product.id,
        product_name=product.name,
        quantity=float(amount),
        can_produce=can_produce,
        material_requirements=requirements,
        recipe_id=recipe.id,
        total_material_cost=round_money(total_cost),
        cost_per_unit=round_money(total_cost / amount),
        message=None if requirements else 'Active recipe has no components',
    )


def _unit_cost(product: ProductSnapshot) -> Decimal:
    return sum(
        (c.effective_quantity * to_decimal(c.material.unit_cost) for c in product.components),
        Decimal('0'),
    )


def _clamp_maximum(available: int, min_quantity: Optional[int], max_quantity: Optional[int]) -> int:
    maximum = available
    if max_quantity is not None:
        maximum = min(maximum, max_quantity)
    if min_quantity is not None and maximum < min_quantity:
        return 0
    return max(0, maximum)


def suggest_batches(maximum: int, min_quantity: Optional[int] = None, max_quantity: Optional[int] = None) -> List[int]:
    if maximum <= 0:
        return [0]
    candidates = {maximum}
    for fraction in _SUGGESTION_FRACTIONS:
        candidates.add(int(Decimal(maximum) * fraction))
    candidates.update(size for size in STANDARD_BATCH_SIZES if size <= maximum)

    lower = max(1, min_quantity or 1)
    upper = maximum if max_quantity is None else min(maximum, max_quantity)
    return sorted((size for size in candidates if lower <= size <= upper), reverse=True)


def compute_optimal_batch_size(
    product: ProductSnapshot,
    min_quantity: Optional[int] = None,
    max_quantity: Optional[int] = None,
) -> OptimalBatchSize:
    """Largest producible batch within optional bounds, plus smaller candidates."""
    availability = compute_available_quantity(product)
    maximum = _clamp_maximum(availability.available_quantity, min_quantity, max_quantity)
    suggested = suggest_batches(maximum, min_quantity, max_quantity)

    per_unit_cost = _unit_cost(product)
    options = [
        BatchOption(
            quantity=size,
            total_cost=round_money(per_unit_cost * size),
            cost_per_unit=round_money(per_unit_cost),
            utilization_percentage=round(size / maximum * 100, 2) if maximum else 0.0,
        )
        for size in suggested
        if size > 0
    ]

    if maximum > 0:
        limiter = availability.bottleneck_material
        recommendation = f"Produce up to {maximum} units"
        if limiter is not None and maximum == availability.available_quantity:
            recommendation += f"; limited by {limiter.material_name}"
    elif availability.recipe_id is None:
        recommendation = "No active recipe; nothing can be produced"
    else:
        recommendation = "Insufficient stock to produce a batch within the requested range"

    return OptimalBatchSize(
        product_id=product.id,
        product_name=product.name,
        available_quantity=availability.available_quantity,
        maximum_producible=maximum,
        suggested_batches=suggested,
        bottleneck_material=availability.bottleneck_material,
        batch_options=options,
        min_quantity=min_quantity,
        max_quantity=max_quantity,
        recommendation=recommendation,
    )


def simulate_production(product: ProductSnapshot, quantity) -> ProductionSimulation:
    """What stock would look like after producing ``quantity`` units."""
    ensure_bom_managed(product)
    amount = require_positive(quantity)

    requirements, total_cost = build_material_requirements(product, amount)
    reorder_levels = {c.material_id: c.material.reorder_level for c in product.components}
    materials = [
        SimulatedConsumption(
            material_id=req.material_id,
            material_name=req.material_name,
            unit=req.unit,
            before=req.current_stock,
            consumed=req.total_required,
            after=req.remaining_after_production,
            reorder_level=float(reorder_levels[req.material_id]),
        )
        for req in requirements
    ]
    return ProductionSimulation(
        product_id=product.id,
        quantity=float(amount),
        can_produce=product.active_recipe is not None and all(req.is_sufficient for req in requirements),
        materials=materials,
        total_material_cost=round_money(total_cost),
    )
