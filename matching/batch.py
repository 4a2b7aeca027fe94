"""Batch-Prüfung "hat überhaupt einen möglichen Tausch" für ganze Jahrgänge.

Bewusst nur eine Näherung: geprüft werden Direkttausch und die einfache
Dreier-Rotation (R → D, jemand in D → M, jemand in M → R). Für eine
verbindliche Antwort muss SwapResolver.find_swap aufgerufen werden.
"""

import logging
from collections import defaultdict
from typing import Iterable, Optional

from models.student import Student

logger = logging.getLogger(__name__)


def any_match_map(students: Iterable[Student]) -> dict[str, bool]:
    """student_id → True, wenn eine Wunschsektion direkt oder über 2 Züge erreichbar ist.

    Alle übergebenen Studierenden gelten als gemeinsamer Pool.
    """
    students = list(students)

    # (von, nach) → Matrikelnummern mit diesem Wunsch
    wants: dict[tuple[str, str], set[str]] = defaultdict(set)
    # Sektion → alle Wunschsektionen ihrer Inhaber
    hops_from: dict[str, set[str]] = defaultdict(set)
    for s in students:
        for d in s.desired_sections:
            if d == s.current_section:
                continue
            wants[(s.current_section, d)].add(s.id)
            hops_from[s.current_section].add(d)

    def admits(s: Student, desired: str) -> bool:
        home = s.current_section
        if desired == home:
            return False
        if wants.get((desired, home)):
            return True
        for middle in hops_from.get(desired, ()):
            if middle in (home, desired):
                continue
            if wants.get((middle, home)):
                return True
        return False

    return {
        s.id: s.has_preference and any(admits(s, d) for d in s.desired_sections)
        for s in students
    }


class BatchMatchChecker:
    """Berechnet die Näherung für alle Studierenden eines (oder jedes) Batches."""

    def __init__(self, store, restrict_to_cohort: bool = True) -> None:
        self.store = store
        self.restrict_to_cohort = restrict_to_cohort

    def check_all_matches(self, cohort: Optional[str] = None) -> dict[str, bool]:
        """Mapping student_id → bool für alle lesbaren Datensätze des Batches.

        Ohne Batch-Filter und mit restrict_to_cohort wird jeder Batch separat
        betrachtet (Partner nur aus dem eigenen Batch).
        """
        students = self.store.fetch_students(cohort=cohort)
        if cohort is not None or not self.restrict_to_cohort:
            result = any_match_map(students)
        else:
            groups: dict[Optional[str], list[Student]] = defaultdict(list)
            for s in students:
                groups[s.cohort].append(s)
            result = {}
            for members in groups.values():
                result.update(any_match_map(members))

        hits = sum(1 for v in result.values() if v)
        logger.info(f"Batch-Prüfung: {hits}/{len(result)} mit möglichem Tausch")
        return result
