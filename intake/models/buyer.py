"""
Buyer intake domain models.

Models:
    - Program: one per tenant; overview contacts, service confirmation,
      payout and payment details (sections 1, 2, 4)
    - Service: selectable in-person / extended service catalog row (section 3)
    - SubService: sub-service selection per service category (section 11)
    - Location: physical practice location (section 5)
    - Provider: credentialed provider (section 6)
    - LabNetwork / RadiologyNetwork / CareNavConfig: one-to-one configs
      (sections 7, 8, 9)
    - NetworkContract: buyer -> seller contract, created for dual-role
      tenants when their seller flow is submitted

These tables are owned by the section writers. The completion engine only
reads presence / `selected` state from them.
"""

from intake.models import db
from intake.models.base import TenantModel, _iso, _utcnow

# Section 3 catalog; urgent_primary is always offered.
SERVICE_TYPES = (
    "urgent_primary",
    "labs",
    "imaging",
    "immunizations",
    "dme",
    "bundled_surgeries",
    "specialist_care",
    "physical_therapy",
    "infusion_services",
    "behavioral_health",
    "pharmacy",
    "other",
)

# Section 11 catalog: service category -> configurable sub-services.
# Categories without an entry have nothing to configure in phase 2.
SUB_SERVICE_TYPES = {
    "labs": ("basic_panels", "advanced_panels", "specimen_collection"),
    "imaging": ("x_ray", "ultrasound", "ct", "mri"),
    "immunizations": ("routine_adult", "travel", "seasonal_flu"),
    "dme": ("mobility_aids", "orthotics", "respiratory"),
    "specialist_care": ("cardiology", "dermatology", "orthopedics", "gastroenterology"),
    "physical_therapy": ("outpatient_rehab", "sports_medicine"),
    "infusion_services": ("hydration", "antibiotics", "biologics"),
    "behavioral_health": ("counseling", "psychiatry", "substance_use"),
}

LOCATION_ACCESS_TYPES = ("walk_in", "appointment_only", "both")
PROVIDER_TYPES = ("physician", "np", "pa", "other")
ACH_ACCOUNT_TYPES = ("checking", "savings")
LAB_NETWORK_TYPES = ("quest", "labcorp", "other")


# ── Program ──────────────────────────────────────────────────────────────────


class Program(TenantModel):
    """Buyer program record backing sections 1, 2 and 4."""

    __tablename__ = "programs"

    id = db.Column(db.Integer, primary_key=True)

    # Section 1: overview contacts
    program_name = db.Column(db.String(255))
    admin_contact_name = db.Column(db.String(200))
    admin_contact_email = db.Column(db.String(200))
    executive_sponsor_name = db.Column(db.String(200))
    executive_sponsor_email = db.Column(db.String(200))
    it_contact_name = db.Column(db.String(200))
    it_contact_email = db.Column(db.String(200))
    it_contact_phone = db.Column(db.String(50))

    # Section 2
    default_services_confirmed = db.Column(db.Boolean, nullable=False, default=False)

    # Section 4: payouts (buyer receives)
    w9_file_path = db.Column(db.String(500))
    ach_routing_number = db.Column(db.String(255))
    ach_account_number = db.Column(db.String(255))
    ach_account_type = db.Column(db.String(20), comment="checking | savings")
    ach_account_holder_name = db.Column(db.String(200))
    bank_doc_file_path = db.Column(db.String(500))

    # Section 4: payments (buyer pays)
    payment_ach_account_holder_name = db.Column(db.String(200))
    payment_ach_account_type = db.Column(db.String(20), comment="checking | savings")
    payment_ach_routing_number = db.Column(db.String(255))
    payment_ach_account_number = db.Column(db.String(255))

    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    services = db.relationship(
        "Service", backref="program", lazy="select", cascade="all, delete-orphan",
    )
    sub_services = db.relationship(
        "SubService", backref="program", lazy="select", cascade="all, delete-orphan",
    )

    __table_args__ = (
        db.UniqueConstraint("tenant_id", name="uq_program_tenant"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "program_name": self.program_name,
            "admin_contact_name": self.admin_contact_name,
            "admin_contact_email": self.admin_contact_email,
            "executive_sponsor_name": self.executive_sponsor_name,
            "executive_sponsor_email": self.executive_sponsor_email,
            "it_contact_name": self.it_contact_name,
            "it_contact_email": self.it_contact_email,
            "it_contact_phone": self.it_contact_phone,
            "default_services_confirmed": self.default_services_confirmed,
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }


class Service(db.Model):
    """Section 3 catalog row. Rows exist once the section has been saved."""

    __tablename__ = "services"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    service_type = db.Column(db.String(50), nullable=False)
    selected = db.Column(db.Boolean, nullable=False, default=False)
    other_name = db.Column(db.String(200))

    __table_args__ = (
        db.UniqueConstraint("program_id", "service_type", name="uq_service_program_type"),
    )

    def to_dict(self):
        return {
            "service_type": self.service_type,
            "selected": self.selected,
            "other_name": self.other_name or "",
        }


class SubService(db.Model):
    """Section 11 selection row: (service category, sub-type)."""

    __tablename__ = "sub_services"

    id = db.Column(db.Integer, primary_key=True)
    program_id = db.Column(
        db.Integer, db.ForeignKey("programs.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    service_type = db.Column(db.String(50), nullable=False)
    sub_type = db.Column(db.String(50), nullable=False)
    selected = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.UniqueConstraint(
            "program_id", "service_type", "sub_type", name="uq_sub_service_program_type",
        ),
    )


# ── Locations & providers ────────────────────────────────────────────────────


class Location(TenantModel):
    """Section 5 practice location."""

    __tablename__ = "locations"

    id = db.Column(db.Integer, primary_key=True)
    location_name = db.Column(db.String(200))
    street_address = db.Column(db.String(255))
    street_address2 = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(50))
    zip = db.Column(db.String(20))
    close_by_description = db.Column(db.Text)
    location_npi = db.Column(db.String(20))
    phone_number = db.Column(db.String(50))
    hours_of_operation = db.Column(db.String(255))
    access_type = db.Column(db.String(30), comment="walk_in | appointment_only | both")
    has_on_site_labs = db.Column(db.Boolean, nullable=False, default=False)
    has_on_site_radiology = db.Column(db.Boolean, nullable=False, default=False)
    has_on_site_pharmacy = db.Column(db.Boolean, nullable=False, default=False)
    weekly_schedule = db.Column(db.JSON, nullable=True)
    scheduling_system_override = db.Column(db.String(100))
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "location_name": self.location_name or "",
            "street_address": self.street_address or "",
            "street_address2": self.street_address2 or "",
            "city": self.city or "",
            "state": self.state or "",
            "zip": self.zip or "",
            "close_by_description": self.close_by_description or "",
            "location_npi": self.location_npi or "",
            "phone_number": self.phone_number or "",
            "hours_of_operation": self.hours_of_operation or "",
            "access_type": self.access_type,
            "has_on_site_labs": self.has_on_site_labs,
            "has_on_site_radiology": self.has_on_site_radiology,
            "has_on_site_pharmacy": self.has_on_site_pharmacy,
            "weekly_schedule": self.weekly_schedule,
            "scheduling_system_override": self.scheduling_system_override,
        }


class Provider(TenantModel):
    """Section 6 provider and credentials."""

    __tablename__ = "providers"

    id = db.Column(db.Integer, primary_key=True)
    first_name = db.Column(db.String(100))
    last_name = db.Column(db.String(100))
    provider_type = db.Column(db.String(20), comment="physician | np | pa | other")
    license_number = db.Column(db.String(100))
    license_state = db.Column(db.String(50))
    npi = db.Column(db.String(20))
    dea_number = db.Column(db.String(50))
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "first_name": self.first_name or "",
            "last_name": self.last_name or "",
            "provider_type": self.provider_type,
            "license_number": self.license_number or "",
            "license_state": self.license_state or "",
            "npi": self.npi or "",
            "dea_number": self.dea_number or "",
        }


# ── One-to-one network configs ───────────────────────────────────────────────


class LabNetwork(TenantModel):
    """Section 7 lab network configuration."""

    __tablename__ = "lab_networks"

    id = db.Column(db.Integer, primary_key=True)
    network_type = db.Column(db.String(30), comment="quest | labcorp | other")
    other_network_name = db.Column(db.String(200))
    coordination_contact_name = db.Column(db.String(200))
    coordination_contact_email = db.Column(db.String(200))
    coordination_contact_phone = db.Column(db.String(50))
    integration_acknowledged = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", name="uq_lab_network_tenant"),
    )


class RadiologyNetwork(TenantModel):
    """Section 8 radiology network (hidden section, kept for existing data)."""

    __tablename__ = "radiology_networks"

    id = db.Column(db.Integer, primary_key=True)
    network_name = db.Column(db.String(200))
    order_delivery_method = db.Column(db.String(50))
    order_delivery_endpoint = db.Column(db.String(255))
    results_delivery_method = db.Column(db.String(50))
    results_delivery_endpoint = db.Column(db.String(255))
    coordination_contact_name = db.Column(db.String(200))
    coordination_contact_email = db.Column(db.String(200))
    coordination_contact_phone = db.Column(db.String(50))

    __table_args__ = (
        db.UniqueConstraint("tenant_id", name="uq_radiology_network_tenant"),
    )


class CareNavConfig(TenantModel):
    """Section 9 care navigation acknowledgement and escalation contacts."""

    __tablename__ = "care_nav_configs"

    id = db.Column(db.Integer, primary_key=True)
    acknowledged = db.Column(db.Boolean, nullable=False, default=False)
    primary_escalation_name = db.Column(db.String(200))
    primary_escalation_email = db.Column(db.String(200))
    secondary_escalation_name = db.Column(db.String(200))
    secondary_escalation_email = db.Column(db.String(200))

    __table_args__ = (
        db.UniqueConstraint("tenant_id", name="uq_care_nav_tenant"),
    )


class NetworkContract(TenantModel):
    """Buyer (tenant_id) contracted with a seller organisation."""

    __tablename__ = "network_contracts"

    id = db.Column(db.Integer, primary_key=True)
    seller_id = db.Column(
        db.Integer, db.ForeignKey("tenants.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    scope_all = db.Column(
        db.Boolean, nullable=False, default=False,
        comment="True = every seller location is in the buyer network",
    )
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "seller_id", name="uq_network_contract_pair"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "tenant_id": self.tenant_id,
            "seller_id": self.seller_id,
            "scope_all": self.scope_all,
            "created_at": _iso(self.created_at),
        }
