"""
Shared pytest fixtures for the intake service test suite.

Provides:
    - app: Flask application (session-scoped)
    - _setup_db: Database table creation/teardown (session-scoped)
    - session: Per-test DB cleanup w/ rollback + recreate (autouse)
    - client: Flask test client (function-scoped)
    - tenant / seller_tenant / member / admin_user: pre-created rows
    - auth_headers: builds Bearer headers for any user
"""

import pytest

from intake import create_app
from intake.models import db as _db
from intake.models.auth import ROLE_MEMBER, ROLE_PLATFORM_ADMIN, Tenant, User
from intake.services.jwt_service import generate_access_token


# ── App & DB fixtures ────────────────────────────────────────────────────


@pytest.fixture(scope="session")
def app():
    """Create the Flask application once per test session."""
    return create_app("testing")


@pytest.fixture(scope="session")
def _setup_db(app):
    """Create all tables at session start, drop at end."""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.drop_all()


@pytest.fixture(autouse=True)
def session(app, _setup_db):
    """Per-test: open app context, rollback after test, recreate tables."""
    with app.app_context():
        yield
        _db.session.rollback()
        _db.drop_all()
        _db.create_all()


@pytest.fixture()
def client(app):
    """Flask test client."""
    return app.test_client()


# ── Row factories ────────────────────────────────────────────────────────


def make_tenant(slug="acme-health", *, is_seller=False, is_affiliate=True, **kwargs) -> Tenant:
    t = Tenant(
        name=kwargs.pop("name", slug.replace("-", " ").title()),
        slug=slug,
        is_seller=is_seller,
        is_affiliate=is_affiliate,
        **kwargs,
    )
    _db.session.add(t)
    _db.session.flush()
    return t


def make_user(email, tenant_id=None, role=ROLE_MEMBER) -> User:
    u = User(email=email, full_name=email.split("@")[0].title(), tenant_id=tenant_id, role=role)
    _db.session.add(u)
    _db.session.flush()
    return u


@pytest.fixture()
def tenant():
    t = make_tenant()
    _db.session.commit()
    return t


@pytest.fixture()
def seller_tenant():
    t = make_tenant("northside-clinics", is_seller=True, is_affiliate=False)
    _db.session.commit()
    return t


@pytest.fixture()
def member(tenant):
    u = make_user("member@acme.test", tenant.id)
    _db.session.commit()
    return u


@pytest.fixture()
def admin_user():
    u = make_user("ops@platform.test", None, role=ROLE_PLATFORM_ADMIN)
    _db.session.commit()
    return u


@pytest.fixture()
def auth_headers():
    """Return a builder: auth_headers(user) → {"Authorization": "Bearer …"}."""

    def _build(user: User) -> dict:
        token = generate_access_token(user.id, user.tenant_id, [user.role])
        return {"Authorization": f"Bearer {token}"}

    return _build


# ── Domain data builders ─────────────────────────────────────────────────


def _complete_location(**overrides):
    row = {
        "location_name": "Main Street Clinic",
        "street_address": "100 Main St",
        "city": "Springfield",
        "state": "IL",
        "zip": "62701",
        "location_npi": "1234567893",
        "phone_number": "555-0100",
    }
    row.update(overrides)
    return row


def _complete_provider(**overrides):
    row = {"first_name": "Ada", "last_name": "Okafor", "npi": "1982736450", "license_number": "IL-55821"}
    row.update(overrides)
    return row


@pytest.fixture()
def fill_buyer():
    """Return fill(tenant, skip=()) that completes buyer sections 1-9 via the ORM."""
    from intake.models.buyer import (
        CareNavConfig,
        LabNetwork,
        Location,
        Program,
        Provider,
        Service,
    )

    def _fill(tenant, skip=()):
        tid = tenant.id
        program = Program(tenant_id=tid)
        _db.session.add(program)
        _db.session.flush()
        if 1 not in skip:
            tenant.legal_name = "Acme Health LLC"
            program.program_name = "Acme Employee Care"
            program.admin_contact_name = "Jordan Lee"
            program.admin_contact_email = "jordan@acme.test"
            program.executive_sponsor_name = "Sam Rivera"
            program.executive_sponsor_email = "sam@acme.test"
            program.it_contact_name = "Kai Chen"
        if 2 not in skip:
            program.default_services_confirmed = True
        if 3 not in skip:
            _db.session.add(Service(program_id=program.id, service_type="urgent_primary", selected=True))
            _db.session.add(Service(program_id=program.id, service_type="labs", selected=True))
            _db.session.add(Service(program_id=program.id, service_type="pharmacy", selected=False))
        if 4 not in skip:
            program.w9_file_path = "uploads/w9.pdf"
            program.ach_routing_number = "021000021"
            program.ach_account_number = "000123456789"
            program.ach_account_type = "checking"
            program.ach_account_holder_name = "Acme Health LLC"
            program.bank_doc_file_path = "uploads/voided-check.pdf"
            program.payment_ach_account_holder_name = "Acme Health LLC"
            program.payment_ach_account_type = "savings"
            program.payment_ach_routing_number = "021000021"
            program.payment_ach_account_number = "000987654321"
        if 5 not in skip:
            _db.session.add(Location(tenant_id=tid, **_complete_location()))
        if 6 not in skip:
            _db.session.add(Provider(tenant_id=tid, **_complete_provider()))
        if 7 not in skip:
            _db.session.add(LabNetwork(
                tenant_id=tid, network_type="quest", coordination_contact_name="Lab Desk",
            ))
        if 9 not in skip:
            _db.session.add(CareNavConfig(
                tenant_id=tid,
                acknowledged=True,
                primary_escalation_name="Morgan Diaz",
                secondary_escalation_name="Riley Park",
            ))
        _db.session.commit()
        return program

    return _fill


@pytest.fixture()
def fill_seller():
    """Return fill(tenant, skip=()) that completes seller sections S-1..S-6 via the ORM."""
    from intake.models.seller import (
        SellerLabNetwork,
        SellerLocation,
        SellerProfile,
        SellerProvider,
        SellerServiceOffering,
    )

    def _fill(tenant, skip=()):
        tid = tenant.id
        profile = SellerProfile(tenant_id=tid)
        _db.session.add(profile)
        if "S-1" not in skip:
            profile.legal_name = "Northside Clinics PC"
            profile.admin_contact_name = "Taylor Brooks"
            profile.admin_contact_email = "taylor@northside.test"
        if "S-2" not in skip:
            _db.session.add(SellerLocation(tenant_id=tid, **_complete_location()))
        if "S-3" not in skip:
            _db.session.add(SellerProvider(tenant_id=tid, **_complete_provider()))
        if "S-4" not in skip:
            _db.session.add(SellerServiceOffering(tenant_id=tid, service_type="primary_care", selected=True))
        if "S-5" not in skip:
            _db.session.add(SellerLabNetwork(
                tenant_id=tid, network_type="labcorp", coordination_contact_name="Lab Desk",
            ))
        if "S-6" not in skip:
            profile.ach_account_holder_name = "Northside Clinics PC"
            profile.ach_routing_number = "021000021"
            profile.ach_account_number = "000555111222"
            profile.ach_account_type = "checking"
        _db.session.commit()
        return profile

    return _fill
