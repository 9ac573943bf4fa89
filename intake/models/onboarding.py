"""
Onboarding state models — phase records, seller flow record, section snapshots.

TenantPhase / OnboardingFlow hold gate state only (DRAFT / SUBMITTED plus
timestamps). Section completion is never stored here; it is recomputed from
the domain tables on every read.

SectionSnapshot is an append-only audit log:
- Records are NEVER updated or deleted.
- A rollback writes new rows carrying historical payloads, tagged with
  rolled_back_from.
"""

from intake.models import db
from intake.models.base import TenantModel, _iso, _utcnow

PHASE_DRAFT = "DRAFT"
PHASE_SUBMITTED = "SUBMITTED"

FLOW_TYPE_SELLER = "SELLER"


class TenantPhase(TenantModel):
    """Gate state for one (tenant, phase). Created lazily on first unlock."""

    __tablename__ = "tenant_phases"

    id = db.Column(db.Integer, primary_key=True)
    phase = db.Column(db.Integer, nullable=False)
    status = db.Column(
        db.String(20), nullable=False, default=PHASE_DRAFT, comment="DRAFT | SUBMITTED",
    )
    unlocked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "phase", name="uq_tenant_phase"),
    )

    def to_dict(self):
        return {
            "phase": self.phase,
            "status": self.status,
            "unlocked_at": _iso(self.unlocked_at),
            "submitted_at": _iso(self.submitted_at),
        }

    def __repr__(self) -> str:
        return f"<TenantPhase tenant={self.tenant_id} phase={self.phase} {self.status}>"


class OnboardingFlow(TenantModel):
    """Gate state for a single-phase flow (currently only the seller flow)."""

    __tablename__ = "onboarding_flows"

    id = db.Column(db.Integer, primary_key=True)
    flow_type = db.Column(db.String(20), nullable=False, default=FLOW_TYPE_SELLER)
    status = db.Column(
        db.String(20), nullable=False, default=PHASE_DRAFT, comment="DRAFT | SUBMITTED",
    )
    unlocked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    submitted_at = db.Column(db.DateTime(timezone=True), nullable=True)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "flow_type", name="uq_onboarding_flow_type"),
    )

    def to_dict(self):
        return {
            "flow_type": self.flow_type,
            "status": self.status,
            "unlocked_at": _iso(self.unlocked_at),
            "submitted_at": _iso(self.submitted_at),
        }


class SectionSnapshot(TenantModel):
    """Immutable copy of one section's saved payload."""

    __tablename__ = "section_snapshots"

    id = db.Column(db.Integer, primary_key=True)
    section_id = db.Column(
        db.Integer, nullable=False,
        comment="Buyer section id (1-12) or seller snapshot id (101-106)",
    )
    data = db.Column(db.JSON, nullable=False, default=dict)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="Actor; SET NULL if the user is deleted",
    )
    program_id = db.Column(
        db.Integer,
        db.ForeignKey("programs.id", ondelete="SET NULL"),
        nullable=True,
    )
    rolled_back_from = db.Column(
        db.DateTime(timezone=True),
        nullable=True,
        comment="Set on rows written by a rollback: the point in time restored",
    )
    created_at = db.Column(
        db.DateTime(timezone=True), nullable=False, default=_utcnow, index=True,
    )

    user = db.relationship("User", lazy="joined")

    __table_args__ = (
        db.Index("ix_snapshot_tenant_section_created", "tenant_id", "section_id", "created_at"),
    )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "section_id": self.section_id,
            "data": self.data,
            "user_id": self.user_id,
            "user_name": self.user.full_name if self.user else None,
            "user_email": self.user.email if self.user else None,
            "program_id": self.program_id,
            "rolled_back_from": _iso(self.rolled_back_from),
            "created_at": _iso(self.created_at),
        }

    def __repr__(self) -> str:
        return f"<SectionSnapshot #{self.id} tenant={self.tenant_id} section={self.section_id}>"
