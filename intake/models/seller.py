"""
Seller intake domain models (care-delivery organisations).

The seller flow has its own tables, disjoint from the buyer intake tables,
even where a dual-role tenant fills in the same kind of data twice.

Models:
    - SellerProfile: org info contacts (S-1) and billing (S-6)
    - SellerLocation: care-delivery location (S-2)
    - SellerProvider: provider roster (S-3)
    - SellerServiceOffering: offered service catalog row (S-4)
    - SellerLabNetwork: lab network (S-5)
"""

from intake.models import db
from intake.models.base import TenantModel, _utcnow

SELLER_SERVICE_TYPES = (
    "primary_care",
    "urgent_care",
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


class SellerProfile(TenantModel):
    """Seller org profile; one per tenant."""

    __tablename__ = "seller_profiles"

    id = db.Column(db.Integer, primary_key=True)

    # S-1
    legal_name = db.Column(db.String(255))
    admin_contact_name = db.Column(db.String(200))
    admin_contact_email = db.Column(db.String(200))
    admin_contact_phone = db.Column(db.String(50))
    operations_contact_name = db.Column(db.String(200))
    operations_contact_email = db.Column(db.String(200))
    operations_contact_phone = db.Column(db.String(50))

    # S-6
    w9_file_path = db.Column(db.String(500))
    ach_account_holder_name = db.Column(db.String(200))
    ach_account_type = db.Column(db.String(20), comment="checking | savings")
    ach_routing_number = db.Column(db.String(255))
    ach_account_number = db.Column(db.String(255))
    bank_doc_file_path = db.Column(db.String(500))

    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", name="uq_seller_profile_tenant"),
    )


class SellerLocation(TenantModel):
    """S-2 location; same row-completeness fields as buyer locations."""

    __tablename__ = "seller_locations"

    id = db.Column(db.Integer, primary_key=True)
    location_name = db.Column(db.String(200))
    street_address = db.Column(db.String(255))
    street_address2 = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(50))
    zip = db.Column(db.String(20))
    location_npi = db.Column(db.String(20))
    phone_number = db.Column(db.String(50))
    hours_of_operation = db.Column(db.String(255))
    access_type = db.Column(db.String(30), comment="walk_in | appointment_only | both")
    has_on_site_labs = db.Column(db.Boolean, nullable=False, default=False)
    has_on_site_radiology = db.Column(db.Boolean, nullable=False, default=False)
    has_on_site_pharmacy = db.Column(db.Boolean, nullable=False, default=False)
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
            "location_npi": self.location_npi or "",
            "phone_number": self.phone_number or "",
            "hours_of_operation": self.hours_of_operation or "",
            "access_type": self.access_type,
            "has_on_site_labs": self.has_on_site_labs,
            "has_on_site_radiology": self.has_on_site_radiology,
            "has_on_site_pharmacy": self.has_on_site_pharmacy,
        }


class SellerProvider(TenantModel):
    """S-3 provider."""

    __tablename__ = "seller_providers"

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


class SellerServiceOffering(TenantModel):
    """S-4 catalog row."""

    __tablename__ = "seller_service_offerings"

    id = db.Column(db.Integer, primary_key=True)
    service_type = db.Column(db.String(50), nullable=False)
    selected = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", "service_type", name="uq_seller_offering_type"),
    )


class SellerLabNetwork(TenantModel):
    """S-5 lab network."""

    __tablename__ = "seller_lab_networks"

    id = db.Column(db.Integer, primary_key=True)
    network_type = db.Column(db.String(30), comment="quest | labcorp | other")
    other_network_name = db.Column(db.String(200))
    coordination_contact_name = db.Column(db.String(200))
    coordination_contact_email = db.Column(db.String(200))
    coordination_contact_phone = db.Column(db.String(50))
    integration_acknowledged = db.Column(db.Boolean, nullable=False, default=False)

    __table_args__ = (
        db.UniqueConstraint("tenant_id", name="uq_seller_lab_network_tenant"),
    )
