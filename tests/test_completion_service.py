"""
Buyer and seller status evaluators against real rows.

Setup strategy:
    Rows are created through the ORM (fill_buyer / fill_seller fixtures in
    conftest.py) so each test controls exactly which sections have data.
"""

from intake.models import db
from intake.models.buyer import LabNetwork, Location, Program, Provider, Service, SubService
from intake.models.onboarding import OnboardingFlow, TenantPhase
from intake.models.seller import SellerProfile
from intake.services import phase_service
from intake.services.completion_service import (
    ALWAYS_COMPLETE_OVERRIDES,
    BuyerRecords,
    compute_statuses,
    evaluate_buyer_statuses,
    load_buyer_records,
)
from intake.services.sections import CompletionStatus
from intake.services.seller_completion_service import compute_seller_statuses

NS = CompletionStatus.NOT_STARTED
IP = CompletionStatus.IN_PROGRESS
OK = CompletionStatus.COMPLETE


class TestBuyerStatuses:
    def test_fresh_tenant(self, tenant):
        statuses = compute_statuses(tenant.id)
        assert set(statuses) == set(range(1, 13))
        assert statuses[8] == OK
        assert all(v == NS for k, v in statuses.items() if k != 8)

    def test_unknown_tenant_yields_not_started(self):
        statuses = compute_statuses(424242)
        assert statuses[1] == NS
        assert statuses[10] == NS
        assert statuses[8] == OK

    def test_fully_filled_phase_one(self, tenant, fill_buyer):
        fill_buyer(tenant)
        statuses = compute_statuses(tenant.id)
        for sid in (1, 2, 3, 4, 5, 6, 7, 8, 9):
            assert statuses[sid] == OK, sid
        assert statuses[10] == NS
        assert statuses[11] == NS
        assert statuses[12] == NS

    def test_overview_partially_filled(self, tenant):
        db.session.add(Program(tenant_id=tenant.id, program_name="Care Plus"))
        db.session.commit()
        assert compute_statuses(tenant.id)[1] == IP

    def test_overview_counts_tenant_legal_name(self, tenant, fill_buyer):
        fill_buyer(tenant)
        tenant.legal_name = ""
        db.session.commit()
        assert compute_statuses(tenant.id)[1] == IP

    def test_payouts_partial(self, tenant):
        db.session.add(Program(tenant_id=tenant.id, ach_routing_number="021000021"))
        db.session.commit()
        assert compute_statuses(tenant.id)[4] == IP

    def test_services_catalog_without_selection(self, tenant):
        program = Program(tenant_id=tenant.id)
        db.session.add(program)
        db.session.flush()
        db.session.add(Service(program_id=program.id, service_type="labs", selected=False))
        db.session.commit()
        assert compute_statuses(tenant.id)[3] == IP

    def test_provider_missing_npi_is_in_progress(self, tenant, fill_buyer):
        fill_buyer(tenant)
        db.session.add(Provider(tenant_id=tenant.id, first_name="Bo", last_name="Reyes", license_number="L-2"))
        db.session.commit()
        assert compute_statuses(tenant.id)[6] == IP

    def test_location_row_missing_phone(self, tenant):
        db.session.add(Location(tenant_id=tenant.id, location_name="Annex", street_address="1 Elm"))
        db.session.commit()
        assert compute_statuses(tenant.id)[5] == IP

    def test_lab_other_network_without_acknowledgement(self, tenant):
        db.session.add(LabNetwork(tenant_id=tenant.id, network_type="other", coordination_contact_name="X"))
        db.session.commit()
        assert compute_statuses(tenant.id)[7] == IP

    def test_review_complete_once_phase_one_submitted(self, tenant):
        tenant.status = "SUBMITTED"
        db.session.commit()
        assert compute_statuses(tenant.id)[10] == OK

    def test_radiology_override_is_named(self):
        assert ALWAYS_COMPLETE_OVERRIDES == frozenset({8})


class TestServiceConfiguration:
    def _unlock_phase_two(self, tenant):
        phase_service.unlock_phase(tenant.id, 2)
        db.session.commit()

    def _select_sub(self, program, service_type, sub_type):
        db.session.add(SubService(program_id=program.id, service_type=service_type, sub_type=sub_type, selected=True))

    def test_not_started_while_phase_two_locked(self, tenant, fill_buyer):
        program = fill_buyer(tenant)
        self._select_sub(program, "labs", "basic_panels")
        db.session.commit()
        assert compute_statuses(tenant.id)[11] == NS

    def test_every_category_configured(self, tenant, fill_buyer):
        program = fill_buyer(tenant)
        self._unlock_phase_two(tenant)
        self._select_sub(program, "labs", "basic_panels")
        db.session.commit()
        assert compute_statuses(tenant.id)[11] == OK

    def test_some_categories_configured(self, tenant, fill_buyer):
        program = fill_buyer(tenant)
        db.session.add(Service(program_id=program.id, service_type="imaging", selected=True))
        self._unlock_phase_two(tenant)
        self._select_sub(program, "labs", "basic_panels")
        db.session.commit()
        assert compute_statuses(tenant.id)[11] == IP

    def test_no_configurable_categories(self, tenant, fill_buyer):
        fill_buyer(tenant, skip=(3,))
        self._unlock_phase_two(tenant)
        assert compute_statuses(tenant.id)[11] == NS

    def test_review_phase_two_follows_submission(self, tenant):
        self._unlock_phase_two(tenant)
        record = TenantPhase.query.filter_by(tenant_id=tenant.id, phase=2).one()
        record.status = "SUBMITTED"
        db.session.commit()
        assert compute_statuses(tenant.id)[12] == OK


class TestEvaluatorDegradation:
    def test_malformed_record_degrades_to_not_started(self, tenant):
        records = load_buyer_records(tenant.id)
        records.locations = [object()]  # no attributes at all
        records.services = None        # not iterable
        statuses = evaluate_buyer_statuses(records)
        assert statuses[3] == NS
        # object() rows have no fields, so the row is simply incomplete
        assert statuses[5] == IP
        assert statuses[1] == NS

    def test_empty_bundle(self):
        statuses = evaluate_buyer_statuses(BuyerRecords())
        assert statuses[8] == OK
        assert {v for k, v in statuses.items() if k != 8} == {NS}


class TestSellerStatuses:
    def test_seller_without_rows(self, seller_tenant):
        db.session.add(SellerProfile(
            tenant_id=seller_tenant.id,
            legal_name="Northside", admin_contact_name="T", admin_contact_email="t@x.test",
        ))
        db.session.commit()
        statuses = compute_seller_statuses(seller_tenant.id)
        assert statuses["S-1"] == OK
        assert statuses["S-2"] == NS
        assert statuses["S-3"] == NS
        assert statuses["S-4"] == NS
        assert statuses["S-R"] == NS

    def test_all_complete_makes_review_in_progress(self, seller_tenant, fill_seller):
        fill_seller(seller_tenant)
        statuses = compute_seller_statuses(seller_tenant.id)
        assert all(statuses[c] == OK for c in ("S-1", "S-2", "S-3", "S-4", "S-5", "S-6"))
        assert statuses["S-R"] == IP

    def test_submitted_flow_makes_review_complete(self, seller_tenant, fill_seller):
        fill_seller(seller_tenant)
        db.session.add(OnboardingFlow(tenant_id=seller_tenant.id, status="SUBMITTED"))
        db.session.commit()
        assert compute_seller_statuses(seller_tenant.id)["S-R"] == OK

    def test_billing_untouched_until_account_fields(self, seller_tenant):
        db.session.add(SellerProfile(tenant_id=seller_tenant.id, ach_account_type="checking"))
        db.session.commit()
        assert compute_seller_statuses(seller_tenant.id)["S-6"] == NS

    def test_billing_partial(self, seller_tenant):
        db.session.add(SellerProfile(tenant_id=seller_tenant.id, ach_routing_number="021000021"))
        db.session.commit()
        assert compute_seller_statuses(seller_tenant.id)["S-6"] == IP
