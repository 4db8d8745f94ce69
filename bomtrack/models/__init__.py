"""Models package - imports all models for the application"""
from ..extensions import db
from .mixins import TenantScopedMixin

# Dependency order for table creation
from .material import Material, InventoryTransaction, TRANSACTION_TYPES
from .product import Product, INVENTORY_BOM, INVENTORY_SIMPLE
from .recipe import Recipe, RecipeComponent

__all__ = [
    'db',
    'TenantScopedMixin',
    'Material',
    'InventoryTransaction',
    'TRANSACTION_TYPES',
    'Product',
    'INVENTORY_BOM',
    'INVENTORY_SIMPLE',
    'Recipe',
    'RecipeComponent',
]
