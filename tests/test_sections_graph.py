"""
Section catalog, prerequisite graph and lock resolver.
"""

import pytest

from intake.core.exceptions import NotFoundError
from intake.services.sections import (
    BUYER_PREREQUISITES,
    BUYER_REQUIRED_BY_PHASE,
    BUYER_SECTIONS,
    SELLER_PREREQUISITES,
    SELLER_SECTIONS,
    SNAPSHOT_SECTION_IDS,
    CompletionStatus,
    get_section_meta,
    is_locked,
    lock_map,
    unmet_prerequisites,
    visible_sections,
)

OK = CompletionStatus.COMPLETE
IP = CompletionStatus.IN_PROGRESS


def _has_cycle(graph: dict) -> bool:
    visiting, done = set(), set()

    def visit(node):
        if node in done:
            return False
        if node in visiting:
            return True
        visiting.add(node)
        if any(visit(dep) for dep in graph.get(node, ())):
            return True
        visiting.discard(node)
        done.add(node)
        return False

    return any(visit(n) for n in graph)


class TestCatalog:
    def test_buyer_catalog_has_twelve_sections(self):
        assert [s.id for s in BUYER_SECTIONS] == list(range(1, 13))

    def test_seller_catalog_codes(self):
        assert [s.id for s in SELLER_SECTIONS] == ["S-1", "S-2", "S-3", "S-4", "S-5", "S-6", "S-R"]

    def test_only_radiology_is_hidden(self):
        assert [s.id for s in BUYER_SECTIONS if s.hidden] == [8]

    def test_phase_two_sections(self):
        assert [s.id for s in BUYER_SECTIONS if s.min_phase == 2] == [11, 12]

    def test_radiology_is_not_required_for_submission(self):
        assert 8 not in BUYER_REQUIRED_BY_PHASE[1]
        assert BUYER_REQUIRED_BY_PHASE[2] == (11,)

    def test_snapshot_ids_cover_both_flows(self):
        assert set(SNAPSHOT_SECTION_IDS) == set(range(1, 13)) | set(range(101, 107))

    def test_unknown_section_raises_not_found(self):
        with pytest.raises(NotFoundError):
            get_section_meta(99)
        with pytest.raises(NotFoundError):
            get_section_meta("S-9")


class TestGraph:
    @pytest.mark.parametrize("graph", [BUYER_PREREQUISITES, SELLER_PREREQUISITES])
    def test_graph_is_acyclic(self, graph):
        assert not _has_cycle(graph)

    def test_prerequisites_reference_known_sections(self):
        for sid, deps in BUYER_PREREQUISITES.items():
            get_section_meta(sid)
            for dep in deps:
                get_section_meta(dep)

    def test_unmet_prerequisites_lists_incomplete_in_order(self):
        statuses = {1: OK, 2: OK, 3: IP, 4: OK, 5: OK, 6: IP, 7: OK, 9: OK}
        unmet = unmet_prerequisites(10, statuses)
        assert [m.id for m in unmet] == [3, 6]

    def test_missing_status_counts_as_unmet(self):
        assert [m.id for m in unmet_prerequisites(6, {})] == [5]

    def test_section_without_prerequisites(self):
        assert unmet_prerequisites(1, {}) == []


class TestLocks:
    @pytest.mark.parametrize("section_id", [1, 5, 7, 9, 11])
    @pytest.mark.parametrize("submitted", [True, False])
    def test_no_prerequisites_means_lock_equals_phase_submitted(self, section_id, submitted):
        meta = get_section_meta(section_id)
        phases = {1: "DRAFT", 2: "DRAFT"}
        if submitted:
            phases[meta.min_phase] = "SUBMITTED"
        assert is_locked(section_id, {}, phases) is submitted

    def test_unmet_prerequisite_locks_in_draft(self):
        assert is_locked(6, {5: IP}, {1: "DRAFT"}) is True
        assert is_locked(6, {5: OK}, {1: "DRAFT"}) is False

    def test_phase_one_submission_does_not_lock_phase_two(self):
        phases = {1: "SUBMITTED", 2: "DRAFT"}
        assert is_locked(11, {}, phases) is False
        assert is_locked(1, {}, phases) is True

    def test_lock_map_carries_unmet_titles(self):
        sections = [get_section_meta(6)]
        result = lock_map(sections, {5: IP}, {1: "DRAFT"})
        assert result[6] == {
            "locked": True,
            "phase_submitted": False,
            "unmet_prerequisites": ["Physical Locations"],
        }

    def test_seller_review_locked_until_all_sections_complete(self):
        statuses = {code: OK for code in ("S-1", "S-2", "S-3", "S-4", "S-5")}
        assert is_locked("S-R", statuses, {1: "DRAFT"}) is True
        statuses["S-6"] = OK
        assert is_locked("S-R", statuses, {1: "DRAFT"}) is False


class TestVisibleSections:
    def test_phase_one_only(self):
        ids = [s.id for s in visible_sections([1])]
        assert ids == [1, 2, 3, 4, 5, 6, 7, 9, 10]

    def test_phase_two_unlocked(self):
        ids = [s.id for s in visible_sections([1, 2])]
        assert ids[-2:] == [11, 12]
        assert 8 not in ids
