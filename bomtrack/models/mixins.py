from ..extensions import db
from ..utils.timezone_utils import TimezoneUtils


class TenantScopedMixin:
    tenant_id = db.Column(db.String(36), nullable=False, index=True)

    @classmethod
    def for_tenant(cls, tenant_id):
        """Explicitly scope to a specific tenant"""
        return cls.query.filter_by(tenant_id=str(tenant_id))


class TimestampMixin:
    created_at = db.Column(db.DateTime, default=TimezoneUtils.utc_now)
    updated_at = db.Column(db.DateTime, default=TimezoneUtils.utc_now, onupdate=TimezoneUtils.utc_now)
