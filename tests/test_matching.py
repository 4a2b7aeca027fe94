"""Tests für StudentPool, Direkttausch, Rotationssuche, Resolver und Batch-Prüfung."""

import logging

import pytest

from config.defaults import SAMPLE_STUDENTS
from config.schema import MatchingConfig
from data.store import StudentStore
from matching.batch import BatchMatchChecker, any_match_map
from matching.direct import find_direct_partner
from matching.pool import StudentPool
from matching.resolver import SwapResolver
from matching.rotation import RotationSearch
from models.student import Student, StudentNotFoundError


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _make_student(student_id: str, current: str, desired: list[str],
                  name: str = "", cohort: str = "21") -> Student:
    return Student(
        id=student_id,
        name=name or student_id,
        current_section=current,
        desired_sections=desired,
        cohort=cohort,
    )


def _make_store(*students: Student) -> StudentStore:
    return StudentStore.from_records(s.to_record() for s in students)


def _scenario() -> tuple[Student, Student, Student]:
    """Alice{10 → 20,30}, Bob{20 → 30,40}, Carol{30 → 10,40}."""
    return (
        _make_student("21000001", "10", ["20", "30"], name="Alice"),
        _make_student("21000002", "20", ["30", "40"], name="Bob"),
        _make_student("21000003", "30", ["10", "40"], name="Carol"),
    )


def _assert_closed_chain(plan, requester: Student) -> None:
    """Kette beginnt beim Anfragenden, ist geschlossen und sektionsdisjunkt."""
    steps = plan.steps
    assert steps[0].student_id == requester.id
    assert steps[0].is_requester
    assert steps[-1].to_section == requester.current_section
    for a, b in zip(steps, steps[1:]):
        assert a.to_section == b.from_section
    froms = [s.from_section for s in steps]
    assert len(froms) == len(set(froms))
    assert len(set(plan.participant_ids)) == len(steps)


# ─── STUDENT-POOL ─────────────────────────────────────────────────────────────

class TestStudentPool:
    def test_excludes_students_without_preference(self):
        pool = StudentPool([
            _make_student("21000002", "1", ["2"]),
            _make_student("21000001", "1", []),
        ])
        assert len(pool) == 1
        assert "21000001" not in pool
        assert "21000002" in pool

    def test_canonical_order_by_id(self):
        pool = StudentPool([
            _make_student("21000003", "1", ["2"]),
            _make_student("21000001", "1", ["3"]),
            _make_student("21000002", "2", ["1"]),
        ])
        assert [s.id for s in pool] == ["21000001", "21000002", "21000003"]
        assert [s.id for s in pool.occupants("1")] == ["21000001", "21000003"]

    def test_duplicate_ids_first_wins(self):
        pool = StudentPool([
            _make_student("21000001", "1", ["2"]),
            _make_student("21000001", "5", ["6"]),
        ])
        assert len(pool) == 1
        assert pool.get("21000001").current_section == "1"

    def test_unknown_section_empty(self):
        pool = StudentPool([_make_student("21000001", "1", ["2"])])
        assert pool.occupants("99") == ()
        assert pool.get("nope") is None

    def test_load_from_store_filters_cohort_and_requester(self):
        store = _make_store(
            _make_student("21000001", "1", ["2"]),
            _make_student("21000002", "2", ["1"]),
            _make_student("22000001", "2", ["1"], cohort="22"),
        )
        pool = StudentPool.load(store, cohort="21", exclude_id="21000001")
        assert [s.id for s in pool] == ["21000002"]


# ─── DIREKTTAUSCH ─────────────────────────────────────────────────────────────

class TestDirectSwap:
    def test_finds_partner(self):
        alice, bob, carol = _scenario()
        pool = StudentPool([bob, carol])
        assert find_direct_partner(pool, alice, "30").id == carol.id

    def test_no_partner_when_nobody_wants_home(self):
        alice, bob, carol = _scenario()
        pool = StudentPool([alice, carol])
        assert find_direct_partner(pool, bob, "30") is None

    def test_first_partner_by_id(self):
        r = _make_student("21000005", "1", ["2"])
        pool = StudentPool([
            _make_student("21000009", "2", ["1"]),
            _make_student("21000003", "2", ["1"]),
        ])
        assert find_direct_partner(pool, r, "2").id == "21000003"


# ─── ROTATIONSSUCHE ───────────────────────────────────────────────────────────

class TestRotationSearch:
    def test_three_person_rotation(self):
        alice, bob, carol = _scenario()
        pool = StudentPool([alice, carol])
        steps = RotationSearch().find(pool, bob, "30")
        assert [(s.student_id, s.from_section, s.to_section) for s in steps] == [
            (bob.id, "20", "30"),
            (carol.id, "30", "10"),
            (alice.id, "10", "20"),
        ]

    def test_target_not_desired_returns_none(self):
        alice, bob, carol = _scenario()
        pool = StudentPool([alice, carol])
        assert RotationSearch().find(pool, bob, "10") is None

    def test_target_equal_home_returns_none(self):
        alice, bob, carol = _scenario()
        assert RotationSearch().find(StudentPool([alice, carol]), bob, "20") is None

    def test_shortest_chain_wins(self):
        """Eine Dreierkette wird vor einer Viererkette gefunden."""
        r = _make_student("21000001", "A", ["B"])
        pool = StudentPool([
            # Viererkette B → C → D → A (kleinere Matrikel, kommt in DFS zuerst)
            _make_student("21000002", "B", ["C", "E"]),
            _make_student("21000003", "C", ["D"]),
            _make_student("21000004", "D", ["A"]),
            # Dreierkette B → E → A
            _make_student("21000005", "E", ["A"]),
        ])
        steps = RotationSearch().find(pool, r, "B")
        assert len(steps) == 3
        assert [s.to_section for s in steps] == ["B", "E", "A"]

    def test_five_person_chain_respects_max_length(self):
        r = _make_student("21000001", "A", ["B"])
        others = [
            _make_student("21000002", "B", ["C"]),
            _make_student("21000003", "C", ["D"]),
            _make_student("21000004", "D", ["E"]),
            _make_student("21000005", "E", ["A"]),
        ]
        pool = StudentPool(others)
        steps = RotationSearch(MatchingConfig(max_rotation_length=5)).find(pool, r, "B")
        assert len(steps) == 5
        assert RotationSearch(MatchingConfig(max_rotation_length=4)).find(pool, r, "B") is None

    def test_candidate_cap_limits_search(self):
        """Nur die ersten 5 Personen pro Sektion werden betrachtet."""
        r = _make_student("21000001", "1", ["2"])
        dead_ends = [_make_student(f"2100001{i}", "2", ["9"]) for i in range(5)]
        sixth = _make_student("21000020", "2", ["3"])
        closer = _make_student("21000030", "3", ["1"])
        pool = StudentPool(dead_ends + [sixth, closer])

        assert RotationSearch().find(pool, r, "2") is None
        steps = RotationSearch(MatchingConfig(candidate_cap=6)).find(pool, r, "2")
        assert [s.student_id for s in steps] == [r.id, sixth.id, closer.id]

    def test_never_revisits_section(self):
        """Eine Person, die nur zurück in eine belegte Sektion will, schließt keine Kette."""
        r = _make_student("21000001", "A", ["B"])
        pool = StudentPool([
            _make_student("21000002", "B", ["C"]),
            _make_student("21000003", "C", ["B"]),
        ])
        assert RotationSearch().find(pool, r, "B") is None

    def test_deterministic(self):
        alice, bob, carol = _scenario()
        pool = StudentPool([alice, carol])
        first = RotationSearch().find(pool, bob, "30")
        second = RotationSearch().find(pool, bob, "30")
        assert first == second

    def test_expanded_chains_counted(self):
        alice, bob, carol = _scenario()
        search = RotationSearch()
        search.find(StudentPool([alice, carol]), bob, "30")
        assert search.expanded_chains > 0


# ─── RESOLVER ─────────────────────────────────────────────────────────────────

class TestSwapResolver:
    def test_alice_direct_with_carol(self):
        alice, bob, carol = _scenario()
        plan = SwapResolver(_make_store(alice, bob, carol)).find_swap(alice.id, ["30"])
        assert plan.type == "direct"
        assert plan.partner.id == carol.id
        assert plan.target_section == "30"
        assert [(s.student_id, s.to_section) for s in plan.steps] == [
            (alice.id, "30"), (carol.id, "10"),
        ]

    def test_carol_direct_with_alice(self):
        alice, bob, carol = _scenario()
        plan = SwapResolver(_make_store(alice, bob, carol)).find_swap(carol.id, ["10"])
        assert plan.type == "direct"
        assert plan.partner.id == alice.id

    def test_bob_three_rotation(self):
        alice, bob, carol = _scenario()
        plan = SwapResolver(_make_store(alice, bob, carol)).find_swap(bob.id, ["30"])
        assert plan.type == "rotation"
        assert plan.length == 3
        assert plan.describe() == "Bob 20→30, Carol 30→10, Alice 10→20"
        _assert_closed_chain(plan, bob)

    def test_default_targets_from_wishlist(self):
        alice, bob, carol = _scenario()
        plan = SwapResolver(_make_store(alice, bob, carol)).find_swap(bob.id)
        assert plan.type == "rotation"
        assert plan.target_section == "30"

    def test_target_priority(self):
        """Das erste Ziel mit Treffer gewinnt, auch wenn ein späteres direkt ginge."""
        r = _make_student("21000001", "1", ["2", "3"])
        store = _make_store(
            r,
            _make_student("21000002", "2", ["4"]),
            _make_student("21000003", "4", ["1"]),
            _make_student("21000004", "3", ["1"]),
        )
        plan = SwapResolver(store).find_swap(r.id)
        assert plan.type == "rotation"
        assert plan.target_section == "2"

    def test_direct_preferred_over_rotation(self):
        r = _make_student("21000001", "1", ["2"])
        store = _make_store(
            r,
            _make_student("21000002", "2", ["3"]),
            _make_student("21000003", "3", ["1"]),
            _make_student("21000004", "2", ["1"]),
        )
        plan = SwapResolver(store).find_swap(r.id)
        assert plan.type == "direct"
        assert plan.partner.id == "21000004"

    def test_no_match_returns_none_plan(self):
        alice, bob, carol = _scenario()
        plan = SwapResolver(_make_store(alice, bob, carol)).find_swap(bob.id, ["40"])
        assert plan.type == "none"
        assert not plan.is_match
        assert plan.steps == []

    def test_target_equal_current_skipped(self):
        alice, bob, carol = _scenario()
        plan = SwapResolver(_make_store(alice, bob, carol)).find_swap(bob.id, ["20"])
        assert plan.type == "none"

    def test_target_outside_wishlist_direct_only(self):
        """Ziele außerhalb der Wunschliste: nur Direkttausch, keine Rotation."""
        alice, bob, carol = _scenario()
        bob_no_30 = _make_student(bob.id, "20", ["40"], name="Bob")
        store = _make_store(alice, bob_no_30, carol)
        assert SwapResolver(store).find_swap(bob.id, ["30"]).type == "none"
        # Direkttausch geht auch ohne Wunsch: Alice (10) möchte nach 20
        assert SwapResolver(store).find_swap(bob.id, ["10"]).type == "direct"

    def test_unknown_requester_raises(self):
        alice, bob, carol = _scenario()
        with pytest.raises(StudentNotFoundError):
            SwapResolver(_make_store(alice, bob, carol)).find_swap("99999999", ["30"])

    def test_requester_without_preference_still_resolved(self):
        """Auch ohne eigene Wünsche wird mit expliziten Zielen gesucht."""
        r = _make_student("21000001", "1", [])
        store = _make_store(r, _make_student("21000002", "2", ["1"]))
        assert SwapResolver(store).find_swap(r.id, ["2"]).type == "direct"

    def test_cohort_restriction(self):
        r = _make_student("21000001", "1", ["2"])
        other = _make_student("22000001", "2", ["1"], cohort="22")
        store = _make_store(r, other)
        assert SwapResolver(store).find_swap(r.id).type == "none"
        plan = SwapResolver(store, restrict_to_cohort=False).find_swap(r.id)
        assert plan.type == "direct"

    def test_rotation_error_degrades(self, caplog):
        """Inkonsistenter Pool → Warnung, Ergebnis 'none' statt Absturz."""
        requester = _make_student("21000001", "1", ["2"])
        stray = _make_student("21000002", "7", ["3"])

        class BrokenPool(StudentPool):
            def occupants(self, section):
                return (stray,)

        resolver = SwapResolver(_make_store(requester))
        with caplog.at_level(logging.WARNING, logger="matching.resolver"):
            plan = resolver.find_in_pool(requester, ["2"], BrokenPool([stray]))
        assert plan.type == "none"
        assert "Rotationssuche abgebrochen" in caplog.text

    def test_duplicate_targets_tried_once(self):
        alice, bob, carol = _scenario()
        plan = SwapResolver(_make_store(alice, bob, carol)).find_swap(bob.id, ["40", " 40 ", "30"])
        assert plan.type == "rotation"

    def test_sample_data_four_rotation(self):
        """Beispieldatensatz: 4 → 32 → 5 → 20 → 4 mit vier Personen."""
        store = StudentStore.from_records(SAMPLE_STUDENTS)
        plan = SwapResolver(store).find_swap("21051001")
        assert plan.type == "rotation"
        assert plan.participant_ids == ["21051001", "21051005", "21051002", "21051004"]
        _assert_closed_chain(plan, store.require_student("21051001"))

    def test_resolver_does_not_modify_store(self):
        alice, bob, carol = _scenario()
        store = _make_store(alice, bob, carol)
        before = [dict(r) for r in store.rows]
        SwapResolver(store).find_swap(bob.id, ["30"])
        assert store.rows == before

    def test_non_string_name_keeps_partner(self):
        """Ein Zahlen-Name ist kein Grund, den Datensatz zu verwerfen."""
        store = StudentStore.from_records([
            {"id": "21000001", "current_section": "10", "desired_sections": ["30"]},
            {"id": "21000003", "name": 42, "current_section": "30", "desired_sections": ["10"]},
        ])
        plan = SwapResolver(store).find_swap("21000001", ["30"])
        assert plan.type == "direct"
        assert plan.partner.id == "21000003"
        assert plan.partner.name == "42"

    def test_requester_without_cohort_stays_among_no_cohort(self):
        """Ohne Batch nur Partner ohne Batch, wie bei der Batch-Prüfung."""
        store = StudentStore.from_records([
            {"id": "7", "current_section": "10", "desired_sections": ["30"]},
            {"id": "21000003", "current_section": "30", "desired_sections": ["10"]},
        ])
        assert SwapResolver(store).find_swap("7", ["30"]).type == "none"
        assert BatchMatchChecker(store).check_all_matches()["7"] is False

        store.rows.append({"id": "8", "current_section": "30", "desired_sections": ["10"]})
        plan = SwapResolver(store).find_swap("7", ["30"])
        assert plan.type == "direct"
        assert plan.partner.id == "8"

        unrestricted = SwapResolver(store, restrict_to_cohort=False).find_swap("7", ["30"])
        assert unrestricted.partner.id == "21000003"


# ─── BATCH-PRÜFUNG ────────────────────────────────────────────────────────────

class TestBatchMatch:
    def test_scenario_flags(self):
        alice, bob, carol = _scenario()
        result = any_match_map([alice, bob, carol])
        assert result[alice.id] is True
        assert result[carol.id] is True
        # Näherung: Bob erreicht 30 über Carol und Alice
        assert result[bob.id] is True

    def test_no_preference_is_false(self):
        a = _make_student("21000001", "1", [])
        b = _make_student("21000002", "2", ["1"])
        result = any_match_map([a, b])
        assert result == {a.id: False, b.id: False}

    def test_only_current_section_desired_is_false(self):
        a = _make_student("21000001", "1", ["1"])
        b = _make_student("21000002", "2", ["1"])
        assert any_match_map([a, b])[a.id] is False

    def test_four_cycle_not_detected(self):
        """Ketten mit mehr als drei Personen liegen außerhalb der Näherung."""
        students = [
            _make_student("21000001", "A", ["B"]),
            _make_student("21000002", "B", ["C"]),
            _make_student("21000003", "C", ["D"]),
            _make_student("21000004", "D", ["A"]),
        ]
        assert not any(any_match_map(students).values())

    def test_checker_groups_by_cohort(self):
        store = _make_store(
            _make_student("21000001", "1", ["2"]),
            _make_student("22000001", "2", ["1"], cohort="22"),
        )
        assert BatchMatchChecker(store).check_all_matches() == {
            "21000001": False, "22000001": False,
        }
        unrestricted = BatchMatchChecker(store, restrict_to_cohort=False).check_all_matches()
        assert all(unrestricted.values())

    def test_checker_single_cohort(self):
        alice, bob, carol = _scenario()
        store = _make_store(alice, bob, carol, _make_student("22000001", "10", ["30"], cohort="22"))
        result = BatchMatchChecker(store).check_all_matches(cohort="21")
        assert set(result) == {alice.id, bob.id, carol.id}

    def test_malformed_rows_absent(self):
        alice, bob, carol = _scenario()
        store = _make_store(alice, bob, carol)
        store.rows.append({"id": "21000009", "current_section": "", "desired_sections": ["1"]})
        result = BatchMatchChecker(store).check_all_matches()
        assert "21000009" not in result
