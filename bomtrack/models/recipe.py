from ..extensions import db
from .mixins import TenantScopedMixin, TimestampMixin


class Recipe(TenantScopedMixin, TimestampMixin, db.Model):
    __tablename__ = 'recipe'
    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('product.id'), nullable=False, index=True)
    name = db.Column(db.String(128), nullable=False)
    description = db.Column(db.Text)
    yield_quantity = db.Column(db.Float, nullable=False, default=1.0)
    yield_unit = db.Column(db.String(32), nullable=False, default='unit')
    is_active = db.Column(db.Boolean, nullable=False, default=False)

    product = db.relationship('Product', back_populates='recipes')
    components = db.relationship(
        'RecipeComponent',
        back_populates='recipe',
        cascade='all, delete-orphan',
        order_by='RecipeComponent.material_id',
        lazy='selectin',
    )

    def activate(self):
        """Make this the product's only active recipe."""
        for sibling in Recipe.query.filter(
            Recipe.product_id == self.product_id,
            Recipe.id != self.id,
            Recipe.is_active.is_(True),
        ):
            sibling.is_active = False
        self.is_active = True

    def deactivate(self):
        self.is_active = False

    def __repr__(self):
        return f'<Recipe {self.name} active={self.is_active}>'


class RecipeComponent(db.Model):
    __tablename__ = 'recipe_component'
    id = db.Column(db.Integer, primary_key=True)
    recipe_id = db.Column(db.Integer, db.ForeignKey('recipe.id'), nullable=False)
    material_id = db.Column(db.Integer, db.ForeignKey('material.id'), nullable=False)
    quantity_required = db.Column(db.Float, nullable=False)
    waste_percentage = db.Column(db.Float, nullable=False, default=0.0)
    notes = db.Column(db.Text)

    recipe = db.relationship('Recipe', back_populates='components')
    material = db.relationship('Material', lazy='joined')

    __table_args__ = (
        db.UniqueConstraint('recipe_id', 'material_id', name='_recipe_material_uc'),
        db.CheckConstraint('quantity_required > 0', name='ck_component_quantity_positive'),
        db.CheckConstraint('waste_percentage >= 0 AND waste_percentage <= 100', name='ck_component_waste_range'),
    )
