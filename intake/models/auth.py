"""
Auth Models — tenants (onboarding organisations) and users.

A tenant is a single onboarding organisation. It can act as a buyer
("affiliate"), a seller, or both; the role flags decide which intake
flows are shown.

Tenant.status / Tenant.submitted_at are the legacy top-level form status.
They predate per-phase records and are still the source of truth for
phase 1; phase_service keeps them in sync with the phase 1 row.
"""

from intake.models import db
from intake.models.base import _iso, _utcnow

ROLE_PLATFORM_ADMIN = "platform_admin"
ROLE_MEMBER = "member"


# ═══════════════════════════════════════════════════════════════
# 1. TENANTS
# ═══════════════════════════════════════════════════════════════
class Tenant(db.Model):
    __tablename__ = "tenants"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    slug = db.Column(db.String(100), unique=True, nullable=False)
    legal_name = db.Column(db.String(255))
    is_affiliate = db.Column(db.Boolean, nullable=False, default=True)
    is_seller = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, default=True)

    # Legacy phase 1 status (DRAFT | SUBMITTED)
    status = db.Column(db.String(20), nullable=False, default="DRAFT")
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    default_scheduling_system = db.Column(db.String(100))

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    users = db.relationship("User", back_populates="tenant", lazy="dynamic")

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "legal_name": self.legal_name,
            "is_affiliate": self.is_affiliate,
            "is_seller": self.is_seller,
            "is_active": self.is_active,
            "status": self.status,
            "submitted_at": _iso(self.submitted_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Tenant #{self.id} {self.slug} {self.status}>"


# ═══════════════════════════════════════════════════════════════
# 2. USERS
# ═══════════════════════════════════════════════════════════════
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    tenant_id = db.Column(
        db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=True
    )  # NULL for platform admins
    email = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(200))
    role = db.Column(db.String(30), nullable=False, default=ROLE_MEMBER)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    # Composite unique: same email can exist in different tenants
    __table_args__ = (
        db.UniqueConstraint("tenant_id", "email", name="uq_user_tenant_email"),
        db.Index("ix_users_tenant_id", "tenant_id"),
    )

    tenant = db.relationship("Tenant", back_populates="users")

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role,
            "created_at": _iso(self.created_at),
        }
