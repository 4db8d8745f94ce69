from ..extensions import db
from .mixins import TenantScopedMixin, TimestampMixin

INVENTORY_SIMPLE = 'simple'
INVENTORY_BOM = 'bom'


class Product(TenantScopedMixin, TimestampMixin, db.Model):
    """Finished good; BOM-managed products derive stock from their active recipe."""
    __tablename__ = 'product'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    sku = db.Column(db.String(64), nullable=True)
    inventory_management_type = db.Column(db.String(16), nullable=False, default=INVENTORY_SIMPLE)
    is_active = db.Column(db.Boolean, default=True)

    recipes = db.relationship('Recipe', back_populates='product', cascade='all, delete-orphan', lazy='selectin')

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'sku', name='_tenant_product_sku_uc'),
    )

    @property
    def is_bom_managed(self):
        return self.inventory_management_type == INVENTORY_BOM

    @property
    def active_recipe(self):
        return next((recipe for recipe in self.recipes if recipe.is_active), None)

    def __repr__(self):
        return f'<Product {self.name} ({self.inventory_management_type})>'
