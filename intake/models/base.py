"""
TenantModel — Abstract base class for tenant-scoped models.

Every intake record belongs to exactly one onboarding organisation.
Models that need tenant isolation inherit from TenantModel instead of
db.Model directly. This adds:
  - tenant_id FK column with index
  - query_for_tenant(tenant_id) classmethod
"""

from datetime import datetime, timezone

from intake.models import db


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


class TenantModel(db.Model):
    """Abstract base for tenant-scoped tables."""
    __abstract__ = True

    tenant_id = db.Column(
        db.Integer,
        db.ForeignKey("tenants.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    @classmethod
    def query_for_tenant(cls, tenant_id):
        """Return a query filtered by tenant_id."""
        return cls.query.filter_by(tenant_id=tenant_id)
