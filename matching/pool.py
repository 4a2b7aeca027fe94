"""StudentPool – unveränderlicher Schnappschuss der Tauschkandidaten.

Der Pool wird pro Suche frisch aus dem Speicher geladen und danach nur noch
gelesen. Kanonische Reihenfolge: aufsteigend nach Matrikelnummer.
"""

import logging
from typing import Iterable, Iterator, Optional

from models.student import Student

logger = logging.getLogger(__name__)


class StudentPool:
    """Geordnete, nach Sektion indizierte Menge wählbarer Studierender.

    Wählbar ist nur, wer mindestens eine Wunschsektion angegeben hat.
    """

    def __init__(self, students: Iterable[Student]) -> None:
        ordered: list[Student] = []
        seen: set[str] = set()
        for s in sorted(students, key=lambda s: s.id):
            if not s.has_preference or s.id in seen:
                continue
            seen.add(s.id)
            ordered.append(s)

        self._students: tuple[Student, ...] = tuple(ordered)
        self._by_id: dict[str, Student] = {s.id: s for s in ordered}

        by_section: dict[str, list[Student]] = {}
        for s in ordered:
            by_section.setdefault(s.current_section, []).append(s)
        self._by_section: dict[str, tuple[Student, ...]] = {
            sec: tuple(members) for sec, members in by_section.items()
        }

    @classmethod
    def load(
        cls,
        store,
        cohort: Optional[str] = None,
        exclude_id: Optional[str] = None,
    ) -> "StudentPool":
        """Lädt den Pool über store.fetch_eligible_students(cohort, exclude_id)."""
        students = store.fetch_eligible_students(cohort=cohort, exclude_id=exclude_id)
        pool = cls(students)
        logger.debug(
            f"StudentPool geladen: {len(pool)} Kandidaten "
            f"(Batch={cohort or 'alle'}, ohne={exclude_id})"
        )
        return pool

    # ─── Abfragen ───

    def occupants(self, section: str) -> tuple[Student, ...]:
        """Alle wählbaren Studierenden in `section`, kanonisch sortiert."""
        return self._by_section.get(section, ())

    def get(self, student_id: str) -> Optional[Student]:
        return self._by_id.get(student_id)

    @property
    def sections(self) -> list[str]:
        """Alle aktuell besetzten Sektionen (sortiert)."""
        return sorted(self._by_section)

    def __len__(self) -> int:
        return len(self._students)

    def __iter__(self) -> Iterator[Student]:
        return iter(self._students)

    def __contains__(self, student_id: object) -> bool:
        return student_id in self._by_id

    def __repr__(self) -> str:
        return f"StudentPool({len(self._students)} Studierende, {len(self._by_section)} Sektionen)"
