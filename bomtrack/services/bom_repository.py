"""
Recipe/Material repository.

Loads one tenant's products, recipes, materials and transactions and freezes
them into engine snapshots. All tenant scoping happens here; the engine
trusts that what it receives belongs to a single tenant.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from ..models import InventoryTransaction, Material, Product, Recipe
from ..models.product import INVENTORY_BOM
from ..utils.timezone_utils import TimezoneUtils
from .base_service import BaseService
from .bom_engine.errors import ProductNotFoundError
from .bom_engine.types import (
    ComponentSnapshot,
    MaterialSnapshot,
    ProductSnapshot,
    RecipeSnapshot,
    TransactionSnapshot,
)


def _naive_utc(value: datetime) -> datetime:
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class BomRepository(BaseService):
    """Snapshot loader for a single tenant; instances live for one request."""

    def __init__(self, tenant_id):
        super().__init__(tenant_id)
        self._materials: Dict[int, MaterialSnapshot] = {}

    # -- materials -----------------------------------------------------------

    def _material_snapshot(self, material: Material) -> MaterialSnapshot:
        cached = self._materials.get(material.id)
        if cached is not None:
            return cached
        snapshot = MaterialSnapshot(
            id=material.id,
            tenant_id=material.tenant_id,
            name=material.name,
            stock_quantity=float(material.stock_quantity or 0.0),
            reorder_level=float(material.reorder_level or 0.0),
            unit_cost=float(material.unit_cost or 0.0),
            unit=material.unit or 'unit',
            sku=material.sku,
            category=material.category,
            supplier=material.supplier,
        )
        self._materials[material.id] = snapshot
        return snapshot

    def list_materials(self, active_only: bool = True) -> List[MaterialSnapshot]:
        query = Material.for_tenant(self.tenant_id)
        if active_only:
            query = query.filter(Material.is_active.is_(True))
        return [self._material_snapshot(m) for m in query.order_by(Material.id).all()]

    # -- recipes and products ------------------------------------------------

    def _recipe_snapshot(self, recipe: Recipe) -> RecipeSnapshot:
        components = []
        for component in recipe.components:
            material = component.material
            if material is None or material.tenant_id != self.tenant_id:
                self.logger.warning(
                    "Recipe %s component %s references material %s outside tenant %s; "
                    "excluded from production constraints",
                    recipe.id, component.id, component.material_id, self.tenant_id,
                )
                continue
            components.append(ComponentSnapshot(
                recipe_id=recipe.id,
                material=self._material_snapshot(material),
                quantity_required=float(component.quantity_required),
                waste_percentage=float(component.waste_percentage or 0.0),
            ))
        return RecipeSnapshot(
            id=recipe.id,
            product_id=recipe.product_id,
            name=recipe.name,
            yield_quantity=float(recipe.yield_quantity or 1.0),
            yield_unit=recipe.yield_unit or 'unit',
            is_active=bool(recipe.is_active),
            components=tuple(components),
        )

    def _product_snapshot(self, product: Product) -> ProductSnapshot:
        active = product.active_recipe
        return ProductSnapshot(
            id=product.id,
            tenant_id=product.tenant_id,
            name=product.name,
            inventory_management_type=product.inventory_management_type,
            active_recipe=self._recipe_snapshot(active) if active is not None else None,
        )

    def get_product(self, product_id: int) -> ProductSnapshot:
        product = Product.for_tenant(self.tenant_id).filter_by(id=product_id).first()
        if product is None:
            raise ProductNotFoundError(product_id, self.tenant_id)
        return self._product_snapshot(product)

    def get_products(self, product_ids: Iterable[int]) -> Dict[int, ProductSnapshot]:
        """Snapshots keyed by id; ids outside this tenant are simply absent."""
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return {}
        products = Product.for_tenant(self.tenant_id).filter(Product.id.in_(ids)).all()
        return {product.id: self._product_snapshot(product) for product in products}

    def list_bom_products(self) -> List[ProductSnapshot]:
        products = (
            Product.for_tenant(self.tenant_id)
            .filter(Product.inventory_management_type == INVENTORY_BOM, Product.is_active.is_(True))
            .order_by(Product.id)
            .all()
        )
        return [self._product_snapshot(p) for p in products]

    def list_active_recipes(self) -> List[RecipeSnapshot]:
        recipes = (
            Recipe.for_tenant(self.tenant_id)
            .filter(Recipe.is_active.is_(True))
            .order_by(Recipe.id)
            .all()
        )
        return [self._recipe_snapshot(r) for r in recipes]

    # -- transactions --------------------------------------------------------

    def list_transactions(
        self,
        window_days: int,
        as_of: Optional[datetime] = None,
    ) -> List[TransactionSnapshot]:
        end = TimezoneUtils.ensure_timezone_aware(as_of) or TimezoneUtils.utc_now()
        start = end - timedelta(days=window_days)
        # Stored timestamps are naive UTC.
        rows = (
            InventoryTransaction.for_tenant(self.tenant_id)
            .filter(
                InventoryTransaction.created_at >= _naive_utc(start),
                InventoryTransaction.created_at <= _naive_utc(end),
            )
            .order_by(InventoryTransaction.created_at)
            .all()
        )
        return [
            TransactionSnapshot(
                material_id=row.material_id,
                transaction_type=row.transaction_type,
                quantity_change=float(row.quantity_change),
                created_at=TimezoneUtils.ensure_timezone_aware(row.created_at),
                reason=row.reason,
            )
            for row in rows
        ]
