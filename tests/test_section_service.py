"""
Section writers: payload validation, phase locking and the elevated bypass.
"""

import pytest

from intake.core.exceptions import ConflictError, NotFoundError, PhaseLockedError, ValidationError
from intake.models import db
from intake.models.auth import Tenant
from intake.models.buyer import SERVICE_TYPES, Location, Program, Provider, Service, SubService
from intake.models.onboarding import OnboardingFlow, SectionSnapshot
from intake.models.seller import SELLER_SERVICE_TYPES, SellerLocation, SellerServiceOffering
from intake.services import phase_service
from intake.services.context_service import RequestContext
from intake.services.section_service import delete_location, delete_provider, load_section, save_section
from intake.services.seller_section_service import delete_seller_location, load_seller_section, save_seller_section


def _other_tenant():
    t = Tenant(name="Other Co", slug="other-co")
    db.session.add(t)
    db.session.flush()
    return t


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


def _complete_provider():
    return {"first_name": "Ada", "last_name": "Okafor", "npi": "1982736450", "license_number": "IL-55821"}


def _ctx(tenant, user=None, elevated=False):
    return RequestContext(tenant_id=tenant.id, actor_id=user.id if user else None, is_elevated=elevated)


PROGRAM_OVERVIEW = {
    "legal_name": "Acme Health LLC",
    "program_name": "Acme Employee Care",
    "admin_contact_name": "Jordan Lee",
    "admin_contact_email": "jordan@acme.test",
    "executive_sponsor_name": "Sam Rivera",
    "executive_sponsor_email": "sam@acme.test",
    "it_contact_name": "Kai Chen",
}


class TestBuyerSave:
    def test_program_overview_complete(self, tenant, member):
        statuses = save_section(_ctx(tenant, member), 1, PROGRAM_OVERVIEW)
        assert statuses[1] == "complete"
        assert db.session.get(Tenant, tenant.id).legal_name == "Acme Health LLC"

    def test_save_appends_snapshot(self, tenant, member):
        save_section(_ctx(tenant, member), 1, PROGRAM_OVERVIEW)
        snap = SectionSnapshot.query.filter_by(tenant_id=tenant.id, section_id=1).one()
        assert snap.user_id == member.id
        assert snap.data["program_name"] == "Acme Employee Care"
        assert snap.program_id == Program.query.filter_by(tenant_id=tenant.id).one().id

    def test_put_semantics_reset_absent_fields(self, tenant):
        ctx = _ctx(tenant)
        save_section(ctx, 1, PROGRAM_OVERVIEW)
        statuses = save_section(ctx, 1, {"program_name": "Only this"})
        assert statuses[1] == "in_progress"
        assert Program.query.filter_by(tenant_id=tenant.id).one().admin_contact_name is None

    def test_services_are_replaced(self, tenant):
        ctx = _ctx(tenant)
        save_section(ctx, 3, {"services": [{"service_type": "labs", "selected": True}]})
        statuses = save_section(ctx, 3, {"services": [{"service_type": "imaging", "selected": False}]})
        assert [s.service_type for s in Service.query.all()] == ["imaging"]
        assert statuses[3] == "in_progress"

    def test_unknown_service_type(self, tenant):
        with pytest.raises(ValidationError) as exc:
            save_section(_ctx(tenant), 3, {"services": [{"service_type": "teleportation"}]})
        assert "services[0].service_type" in exc.value.details

    def test_duplicate_service_type(self, tenant):
        rows = [{"service_type": "labs"}, {"service_type": "labs"}]
        with pytest.raises(ValidationError) as exc:
            save_section(_ctx(tenant), 3, {"services": rows})
        assert exc.value.details["services[1].service_type"] == "duplicate"

    def test_non_string_service_type(self, tenant):
        with pytest.raises(ValidationError) as exc:
            save_section(_ctx(tenant), 3, {"services": [{"service_type": ["labs"]}, {"service_type": {"a": 1}}]})
        assert exc.value.details["services[0].service_type"] == "must be a string"
        assert exc.value.details["services[1].service_type"] == "must be a string"
        assert Service.query.count() == 0

    def test_non_string_sub_type(self, tenant):
        payload = {"sub_services": [{"service_type": ["labs"]}, {"service_type": "labs", "sub_type": ["ct"]}]}
        with pytest.raises(ValidationError) as exc:
            save_section(_ctx(tenant, elevated=True), 11, payload)
        assert "sub_services[0].service_type" in exc.value.details
        assert exc.value.details["sub_services[1].sub_type"] == "must be a string"

    def test_location_id_must_be_an_integer(self, tenant):
        with pytest.raises(ValidationError) as exc:
            save_section(_ctx(tenant), 5, {"locations": [_complete_location(id=[1])]})
        assert exc.value.details == {"locations[0].id": "invalid"}
        assert Location.query.count() == 0

    def test_invalid_ach_account_type(self, tenant):
        with pytest.raises(ValidationError):
            save_section(_ctx(tenant), 4, {"ach_account_type": "brokerage"})

    def test_location_upsert_by_id(self, tenant):
        ctx = _ctx(tenant)
        save_section(ctx, 5, {"locations": [_complete_location()]})
        loc = Location.query.filter_by(tenant_id=tenant.id).one()
        statuses = save_section(ctx, 5, {"locations": [_complete_location(id=loc.id, phone_number="")]})
        assert Location.query.filter_by(tenant_id=tenant.id).count() == 1
        assert statuses[5] == "in_progress"

    def test_location_id_from_other_tenant(self, tenant):
        other = _other_tenant()
        foreign = Location(tenant_id=other.id, location_name="Elsewhere")
        db.session.add(foreign)
        db.session.commit()
        with pytest.raises(NotFoundError):
            save_section(_ctx(tenant), 5, {"locations": [{"id": foreign.id, "location_name": "Mine now"}]})
        assert db.session.get(Location, foreign.id).location_name == "Elsewhere"

    def test_providers_must_be_a_list(self, tenant):
        with pytest.raises(ValidationError):
            save_section(_ctx(tenant), 6, {"providers": {"npi": "1"}})

    def test_radiology_save_keeps_section_complete(self, tenant):
        statuses = save_section(_ctx(tenant), 8, {"network_name": "RadNet"})
        assert statuses[8] == "complete"

    def test_lab_network_other_needs_acknowledgement(self, tenant):
        payload = {"network_type": "other", "coordination_contact_name": "Desk"}
        assert save_section(_ctx(tenant), 7, payload)[7] == "in_progress"
        payload["integration_acknowledged"] = True
        assert save_section(_ctx(tenant), 7, payload)[7] == "complete"

    @pytest.mark.parametrize("section_id", [10, 12])
    def test_review_sections_are_read_only(self, tenant, section_id):
        with pytest.raises(ValidationError):
            save_section(_ctx(tenant), section_id, {})

    def test_unknown_section(self, tenant):
        with pytest.raises(NotFoundError):
            save_section(_ctx(tenant), 42, {})


class TestPhaseLocking:
    def test_member_cannot_write_submitted_phase(self, tenant, member):
        tenant.status = "SUBMITTED"
        db.session.commit()
        with pytest.raises(PhaseLockedError):
            save_section(_ctx(tenant, member), 1, PROGRAM_OVERVIEW)
        assert Program.query.count() == 0

    def test_elevated_caller_bypasses_lock(self, tenant, admin_user):
        tenant.status = "SUBMITTED"
        db.session.commit()
        statuses = save_section(_ctx(tenant, admin_user, elevated=True), 1, PROGRAM_OVERVIEW)
        assert statuses[1] == "complete"
        assert db.session.get(Tenant, tenant.id).status == "SUBMITTED"

    def test_phase_two_section_before_unlock(self, tenant, member):
        payload = {"sub_services": [{"service_type": "labs", "sub_type": "basic_panels", "selected": True}]}
        with pytest.raises(ConflictError):
            save_section(_ctx(tenant, member), 11, payload)

    def test_phase_two_section_after_unlock(self, tenant, member, fill_buyer):
        fill_buyer(tenant)
        phase_service.unlock_phase(tenant.id, 2)
        db.session.commit()
        payload = {"sub_services": [{"service_type": "labs", "sub_type": "basic_panels", "selected": True}]}
        statuses = save_section(_ctx(tenant, member), 11, payload)
        assert statuses[11] == "complete"
        assert SubService.query.count() == 1

    def test_sub_type_must_belong_to_category(self, tenant, admin_user):
        payload = {"sub_services": [{"service_type": "labs", "sub_type": "mri"}]}
        with pytest.raises(ValidationError):
            save_section(_ctx(tenant, admin_user, elevated=True), 11, payload)

    def test_submitted_phase_one_does_not_lock_phase_two(self, tenant, member, fill_buyer):
        fill_buyer(tenant)
        phase_service.lock_phase(tenant.id, 1)
        phase_service.unlock_phase(tenant.id, 2)
        db.session.commit()
        payload = {"sub_services": [{"service_type": "labs", "sub_type": "ct", "selected": True}]}
        with pytest.raises(ValidationError):
            save_section(_ctx(tenant, member), 11, payload)
        payload["sub_services"][0]["sub_type"] = "basic_panels"
        assert save_section(_ctx(tenant, member), 11, payload)[11] == "complete"


class TestDeletes:
    def test_delete_provider_recomputes(self, tenant, fill_buyer):
        fill_buyer(tenant)
        provider = Provider.query.filter_by(tenant_id=tenant.id).one()
        statuses = delete_provider(_ctx(tenant), provider.id)
        assert statuses[6] == "not_started"

    def test_delete_other_tenants_location(self, tenant):
        other = _other_tenant()
        foreign = Location(tenant_id=other.id, **_complete_location())
        db.session.add(foreign)
        db.session.commit()
        with pytest.raises(NotFoundError):
            delete_location(_ctx(tenant), foreign.id)
        assert db.session.get(Location, foreign.id) is not None

    def test_delete_blocked_after_submission(self, tenant, member):
        db.session.add(Provider(tenant_id=tenant.id, **_complete_provider()))
        tenant.status = "SUBMITTED"
        db.session.commit()
        provider = Provider.query.one()
        with pytest.raises(PhaseLockedError):
            delete_provider(_ctx(tenant, member), provider.id)


class TestSellerSave:
    def test_org_info(self, seller_tenant):
        payload = {
            "legal_name": "Northside Clinics PC",
            "admin_contact_name": "Taylor Brooks",
            "admin_contact_email": "taylor@northside.test",
        }
        statuses = save_seller_section(_ctx(seller_tenant), "S-1", payload)
        assert statuses["S-1"] == "complete"
        assert SectionSnapshot.query.filter_by(tenant_id=seller_tenant.id, section_id=101).count() == 1

    def test_services_offered_replace_all(self, seller_tenant):
        ctx = _ctx(seller_tenant)
        save_seller_section(ctx, "S-4", {"services": [{"service_type": "labs", "selected": True}]})
        statuses = save_seller_section(
            ctx, "S-4", {"services": [{"service_type": "primary_care", "selected": True}]},
        )
        assert [o.service_type for o in SellerServiceOffering.query.all()] == ["primary_care"]
        assert statuses["S-4"] == "complete"

    def test_non_string_service_type(self, seller_tenant):
        with pytest.raises(ValidationError) as exc:
            save_seller_section(_ctx(seller_tenant), "S-4", {"services": [{"service_type": {"labs": True}}]})
        assert exc.value.details["services[0].service_type"] == "must be a string"

    def test_provider_id_must_be_an_integer(self, seller_tenant):
        with pytest.raises(ValidationError):
            save_seller_section(_ctx(seller_tenant), "S-3", {"providers": [{"id": {"x": 1}, "npi": "1"}]})

    def test_review_is_read_only(self, seller_tenant):
        with pytest.raises(ValidationError):
            save_seller_section(_ctx(seller_tenant), "S-R", {})

    def test_submitted_flow_blocks_member(self, seller_tenant):
        db.session.add(OnboardingFlow(tenant_id=seller_tenant.id, status="SUBMITTED"))
        db.session.commit()
        with pytest.raises(PhaseLockedError):
            save_seller_section(_ctx(seller_tenant), "S-1", {"legal_name": "X"})
        statuses = save_seller_section(_ctx(seller_tenant, elevated=True), "S-1", {"legal_name": "X"})
        assert statuses["S-1"] == "in_progress"

    def test_delete_location(self, seller_tenant):
        loc = SellerLocation(tenant_id=seller_tenant.id, **_complete_location())
        db.session.add(loc)
        db.session.commit()
        statuses = delete_seller_location(_ctx(seller_tenant), loc.id)
        assert statuses["S-2"] == "not_started"


class TestLoadSection:
    def test_fresh_tenant_gets_blank_forms(self, tenant):
        overview = load_section(tenant.id, 1)
        assert overview["program_name"] == ""
        assert overview["legal_name"] == ""
        assert load_section(tenant.id, 2) == {"default_services_confirmed": False}
        assert load_section(tenant.id, 5)["locations"] == []

    def test_saved_payload_reads_back(self, tenant):
        save_section(_ctx(tenant), 1, PROGRAM_OVERVIEW)
        data = load_section(tenant.id, 1)
        assert data["legal_name"] == "Acme Health LLC"
        assert data["admin_contact_email"] == "jordan@acme.test"
        assert data["it_contact_email"] == ""

    def test_service_catalog_is_always_complete(self, tenant):
        save_section(_ctx(tenant), 3, {"services": [{"service_type": "imaging", "selected": True}]})
        services = load_section(tenant.id, 3)["services"]
        assert [s["service_type"] for s in services] == list(SERVICE_TYPES)
        assert [s["service_type"] for s in services if s["selected"]] == ["imaging"]

    def test_locations_keep_their_ids(self, tenant):
        save_section(_ctx(tenant), 5, {"locations": [_complete_location()]})
        rows = load_section(tenant.id, 5)["locations"]
        assert rows[0]["id"] == Location.query.one().id
        assert rows[0]["location_name"] == "Main Street Clinic"

    def test_service_configuration_follows_selected_categories(self, tenant, fill_buyer):
        program = fill_buyer(tenant)
        db.session.add(SubService(program_id=program.id, service_type="labs", sub_type="basic_panels", selected=True))
        db.session.commit()

        categories = load_section(tenant.id, 11)["categories"]
        # urgent_primary has nothing to configure and pharmacy is not selected
        assert list(categories) == ["labs"]
        assert categories["labs"] == [
            {"sub_type": "basic_panels", "selected": True},
            {"sub_type": "advanced_panels", "selected": False},
            {"sub_type": "specimen_collection", "selected": False},
        ]

    def test_service_configuration_without_program(self, tenant):
        assert load_section(tenant.id, 11) == {"categories": {}}

    def test_review_section_has_no_payload(self, tenant):
        with pytest.raises(ValidationError):
            load_section(tenant.id, 10)

    def test_unknown_section_or_tenant(self, tenant):
        with pytest.raises(NotFoundError):
            load_section(tenant.id, 42)
        with pytest.raises(NotFoundError):
            load_section(9999, 1)

    def test_seller_service_catalog(self, seller_tenant):
        save_seller_section(_ctx(seller_tenant), "S-4", {"services": [{"service_type": "labs", "selected": True}]})
        services = load_seller_section(seller_tenant.id, "S-4")["services"]
        assert [s["service_type"] for s in services] == list(SELLER_SERVICE_TYPES)
        assert {s["service_type"] for s in services if s["selected"]} == {"labs"}

    def test_seller_rows_and_blank_billing(self, seller_tenant):
        save_seller_section(_ctx(seller_tenant), "S-2", {"locations": [_complete_location()]})
        assert load_seller_section(seller_tenant.id, "S-2")["locations"][0]["city"] == "Springfield"
        assert load_seller_section(seller_tenant.id, "S-6")["ach_routing_number"] == ""
        with pytest.raises(ValidationError):
            load_seller_section(seller_tenant.id, "S-R")
