"""
Multi-Product Planning

Aggregates material demand across simultaneous production requests sharing
one stock snapshot. Requests are never rationed: every entry keeps its full
requested quantity and an infeasible plan is reported as such. Feasibility
is decided by aggregated stock alone; requests without an active recipe or
that fail validation are reported on their own entry.
"""

import logging
from collections import OrderedDict
from decimal import Decimal
from typing import Dict, List, Sequence

from ._availability import ensure_bom_managed
from ._batch_planning import build_material_requirements
from ._quantities import as_float, require_positive, round_money, scaled_requirement, to_decimal
from .errors import BomEngineError
from .types import (
    MaterialDemand,
    MaterialSnapshot,
    MultiProductPlan,
    ProductionPlanEntry,
    ProductionRequest,
)

logger = logging.getLogger(__name__)


def plan_multi_product(requests: Sequence[ProductionRequest]) -> MultiProductPlan:
    entries: List[ProductionPlanEntry] = []
    demand: Dict[int, Decimal] = OrderedDict()
    materials: Dict[int, MaterialSnapshot] = {}
    consumers: Dict[int, List[int]] = {}
    total_cost = Decimal('0')

    for request in requests:
        product = request.product
        try:
            ensure_bom_managed(product)
            amount = require_positive(request.quantity)
        except BomEngineError as exc:
            logger.warning("Skipping product %s in multi-product plan: %s", product.id, exc)
            entries.append(ProductionPlanEntry(
                product_id=product.id,
                product_name=product.name,
                requested_quantity=request.quantity,
                can_produce=False,
                error=str(exc),
            ))
            continue

        recipe = product.active_recipe
        if recipe is None:
            entries.append(ProductionPlanEntry(
                product_id=product.id,
                product_name=product.name,
                requested_quantity=float(amount),
                can_produce=False,
            ))
            continue

        requirements, entry_cost = build_material_requirements(product, amount)
        total_cost += entry_cost
        for component in product.components:
            material = component.material
            materials.setdefault(material.id, material)
            demand[material.id] = demand.get(material.id, Decimal('0')) + scaled_requirement(
                component.effective_quantity, amount
            )
            users = consumers.setdefault(material.id, [])
            if product.id not in users:
                users.append(product.id)

        entries.append(ProductionPlanEntry(
            product_id=product.id,
            product_name=product.name,
            requested_quantity=float(amount),
            can_produce=all(req.is_sufficient for req in requirements),
            material_requirements=requirements,
            recipe_id=recipe.id,
            production_cost=round_money(entry_cost),
        ))

    summary = [
        MaterialDemand(
            material_id=material_id,
            material_name=materials[material_id].name,
            unit=materials[material_id].unit,
            current_stock=float(materials[material_id].stock_quantity),
            total_required=as_float(total),
            used_in_products=consumers[material_id],
        )
        for material_id, total in demand.items()
    ]
    is_feasible = all(
        total <= to_decimal(materials[material_id].stock_quantity)
        for material_id, total in demand.items()
    )
    if not is_feasible:
        logger.info(
            "Multi-product plan infeasible: %d material shortages",
            sum(1 for d in summary if not d.is_sufficient),
        )

    return MultiProductPlan(
        production_plan=entries,
        aggregated_material_requirements={mid: as_float(total) for mid, total in demand.items()},
        material_summary=summary,
        is_feasible=is_feasible,
        total_production_cost=round_money(total_cost),
    )
