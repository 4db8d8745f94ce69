from datetime import timedelta

from ..extensions import db
from ..models import InventoryTransaction, Material, Product, Recipe, RecipeComponent
from ..models.product import INVENTORY_BOM, INVENTORY_SIMPLE
from ..utils.timezone_utils import TimezoneUtils

DEMO_MATERIALS = [
    {"name": "Olive Oil", "sku": "MAT-OLV", "category": "Oils", "supplier": "Mediterranean Supply", "unit": "kg", "stock_quantity": 22.0, "reorder_level": 10.0, "unit_cost": 8.5},
    {"name": "Coconut Oil", "sku": "MAT-CCN", "category": "Oils", "supplier": "Island Imports", "unit": "kg", "stock_quantity": 4.0, "reorder_level": 10.0, "unit_cost": 6.25},
    {"name": "Lye", "sku": "MAT-LYE", "category": "Chemicals", "supplier": "ChemCo", "unit": "kg", "stock_quantity": 15.0, "reorder_level": 5.0, "unit_cost": 3.1},
    {"name": "Lavender Essential Oil", "sku": "MAT-LAV", "category": "Fragrance", "supplier": "Aroma Direct", "unit": "ml", "stock_quantity": 0.0, "reorder_level": 100.0, "unit_cost": 0.12},
    {"name": "Soap Wrapper", "sku": "PKG-WRP", "category": "Packaging", "supplier": "PackRight", "unit": "count", "stock_quantity": 400.0, "reorder_level": 150.0, "unit_cost": 0.05},
]

DEMO_PRODUCTS = [
    {
        "name": "Castile Bar",
        "sku": "SOAP-CAST",
        "recipe": {"name": "Castile Bar v1", "yield_unit": "bar"},
        "components": [("Olive Oil", 0.1, 10.0), ("Lye", 0.015, 0.0), ("Soap Wrapper", 1, 0.0)],
    },
    {
        "name": "Lavender Bar",
        "sku": "SOAP-LAV",
        "recipe": {"name": "Lavender Bar v1", "yield_unit": "bar"},
        "components": [("Olive Oil", 0.07, 5.0), ("Coconut Oil", 0.03, 5.0), ("Lye", 0.014, 0.0), ("Lavender Essential Oil", 2.0, 0.0)],
    },
    {
        "name": "Unscented Sampler",
        "sku": "SOAP-SMPL",
        "recipe": None,
        "components": [],
    },
]

# (material name, days ago, quantity change)
DEMO_USAGE = [
    ("Olive Oil", 1, -2.0),
    ("Olive Oil", 3, -1.5),
    ("Olive Oil", 6, 10.0),
    ("Coconut Oil", 2, -1.0),
    ("Coconut Oil", 5, -0.5),
    ("Lye", 1, -0.3),
    ("Soap Wrapper", 1, -20.0),
    ("Soap Wrapper", 2, -25.0),
]


def seed_bom_demo(tenant_id):
    """Create a small soap-making catalog for ``tenant_id``; no-op if it already has materials."""
    tenant_id = str(tenant_id)
    if Material.for_tenant(tenant_id).first() is not None:
        print(f"ℹ️  Tenant {tenant_id} already has materials - skipping demo seed")
        return False

    materials = {}
    for row in DEMO_MATERIALS:
        material = Material(tenant_id=tenant_id, **row)
        db.session.add(material)
        materials[row["name"]] = material
    db.session.flush()

    for row in DEMO_PRODUCTS:
        product = Product(
            tenant_id=tenant_id,
            name=row["name"],
            sku=row["sku"],
            inventory_management_type=INVENTORY_BOM,
        )
        db.session.add(product)
        db.session.flush()
        if row["recipe"] is None:
            continue

        recipe = Recipe(tenant_id=tenant_id, product_id=product.id, is_active=True, **row["recipe"])
        db.session.add(recipe)
        db.session.flush()
        for material_name, quantity, waste in row["components"]:
            db.session.add(RecipeComponent(
                recipe_id=recipe.id,
                material_id=materials[material_name].id,
                quantity_required=quantity,
                waste_percentage=waste,
            ))

    db.session.add(Product(tenant_id=tenant_id, name="Gift Card", sku="GIFT-25", inventory_management_type=INVENTORY_SIMPLE))

    # Stored timestamps are naive UTC
    now = TimezoneUtils.utc_now().replace(tzinfo=None)
    for material_name, days_ago, change in DEMO_USAGE:
        material = materials[material_name]
        db.session.add(InventoryTransaction(
            tenant_id=tenant_id,
            material_id=material.id,
            transaction_type='deduction' if change < 0 else 'restock',
            quantity_change=change,
            reason='demo history',
            created_at=now - timedelta(days=days_ago),
        ))

    db.session.commit()
    print(f"✅ Seeded {len(DEMO_MATERIALS)} materials and {len(DEMO_PRODUCTS) + 1} products for tenant {tenant_id}")
    return True
