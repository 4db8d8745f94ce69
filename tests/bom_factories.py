"""Snapshot builders for engine-level tests plus a transaction-log helper for repository tests."""

from datetime import datetime, timedelta, timezone

from bomtrack.extensions import db
from bomtrack.models import InventoryTransaction
from bomtrack.services.bom_engine import (
    ComponentSnapshot,
    MaterialSnapshot,
    ProductSnapshot,
    RecipeSnapshot,
    TransactionSnapshot,
)

TENANT_ID = 'tenant-a'
OTHER_TENANT_ID = 'tenant-b'

AS_OF = datetime(2024, 6, 30, 12, 0, tzinfo=timezone.utc)


def make_material(material_id, stock, reorder_level=0.0, unit_cost=0.0, name=None, unit='kg'):
    return MaterialSnapshot(
        id=material_id,
        tenant_id='t1',
        name=name or f'Material {material_id}',
        stock_quantity=stock,
        reorder_level=reorder_level,
        unit_cost=unit_cost,
        unit=unit,
    )


def make_product(product_id, lines, name=None, recipe_id=None, management='bom', with_recipe=True):
    """``lines`` is a list of ``(material, quantity_required[, waste_percentage])``."""
    recipe_id = recipe_id or product_id * 10
    recipe = None
    if with_recipe:
        recipe = RecipeSnapshot(
            id=recipe_id,
            product_id=product_id,
            name=f'Recipe {recipe_id}',
            components=tuple(
                ComponentSnapshot(
                    recipe_id=recipe_id,
                    material=line[0],
                    quantity_required=line[1],
                    waste_percentage=line[2] if len(line) > 2 else 0.0,
                )
                for line in lines
            ),
        )
    return ProductSnapshot(
        id=product_id,
        tenant_id='t1',
        name=name or f'Product {product_id}',
        inventory_management_type=management,
        active_recipe=recipe,
    )


def daily_usage(material_id, per_day, days, as_of=AS_OF):
    """One consumption transaction per day for the ``days`` days before ``as_of``."""
    return [
        TransactionSnapshot(
            material_id=material_id,
            transaction_type='deduction',
            quantity_change=-per_day,
            created_at=as_of - timedelta(days=offset, hours=1),
        )
        for offset in range(days)
    ]


def add_usage(material_id, changes, tenant_id=TENANT_ID):
    """Append ``(naive UTC datetime, quantity_change)`` rows to the transaction log."""
    for created_at, change in changes:
        db.session.add(InventoryTransaction(
            tenant_id=tenant_id,
            material_id=material_id,
            transaction_type='deduction' if change < 0 else 'restock',
            quantity_change=change,
            created_at=created_at,
        ))
    db.session.commit()
