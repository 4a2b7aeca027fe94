"""Direkttausch-Prüfung: zwei Personen tauschen ihre Sektionen."""

from typing import Optional

from matching.pool import StudentPool
from models.student import Student


def find_direct_partner(
    pool: StudentPool, requester: Student, target_section: str
) -> Optional[Student]:
    """Erste Person (kanonische Reihenfolge) in `target_section`, die in die
    aktuelle Sektion des Anfragenden wechseln möchte."""
    home = requester.current_section
    for candidate in pool.occupants(target_section):
        if candidate.id == requester.id:
            continue
        if candidate.desires(home):
            return candidate
    return None
