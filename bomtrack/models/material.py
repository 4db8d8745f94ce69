from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils
from .mixins import TenantScopedMixin, TimestampMixin

TRANSACTION_TYPES = ('restock', 'deduction', 'adjustment')


class Material(TenantScopedMixin, TimestampMixin, db.Model):
    """Raw material consumed by recipes"""
    __tablename__ = 'material'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(128), nullable=False)
    sku = db.Column(db.String(64), nullable=True)
    category = db.Column(db.String(64), nullable=True)
    supplier = db.Column(db.String(128), nullable=True)
    unit = db.Column(db.String(32), nullable=False, default='unit')
    stock_quantity = db.Column(db.Float, nullable=False, default=0.0)
    reorder_level = db.Column(db.Float, nullable=False, default=0.0)
    unit_cost = db.Column(db.Float, nullable=False, default=0.0)
    is_active = db.Column(db.Boolean, default=True)

    transactions = db.relationship(
        'InventoryTransaction',
        back_populates='material',
        order_by='InventoryTransaction.created_at',
        lazy='dynamic',
    )

    __table_args__ = (
        db.UniqueConstraint('tenant_id', 'name', name='_tenant_material_name_uc'),
        db.CheckConstraint('stock_quantity >= 0', name='ck_material_stock_non_negative'),
    )

    def __repr__(self):
        return f'<Material {self.name}: {self.stock_quantity} {self.unit}>'


class InventoryTransaction(TenantScopedMixin, db.Model):
    """Append-only stock movement log"""
    __tablename__ = 'inventory_transaction'
    id = db.Column(db.Integer, primary_key=True)
    material_id = db.Column(db.Integer, db.ForeignKey('material.id'), nullable=False, index=True)
    transaction_type = db.Column(db.String(16), nullable=False)
    quantity_before = db.Column(db.Float, nullable=True)
    quantity_change = db.Column(db.Float, nullable=False)
    quantity_after = db.Column(db.Float, nullable=True)
    reason = db.Column(db.String(128), nullable=True)
    notes = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=TimezoneUtils.utc_now, index=True)

    material = db.relationship('Material', back_populates='transactions')

    __table_args__ = (
        db.Index('ix_inventory_transaction_material_created', 'material_id', 'created_at'),
    )
