"""Testdaten-Generator für den Sektionstausch.

Erzeugt realistische Fake-Studierende mit absichtlichen Sonderfällen.

Absichtliche Sonderfälle (pro Batch, soweit Sektionen/Personen reichen):
  1. Direkter Tausch: Person A (Sektion 1 → 2) und B (Sektion 2 → 1)
  2. Ringtausch zu dritt: 3 → 4, 4 → 5, 5 → 3 (kein direkter Partner)
  3. Ohne Wunsch: Anteil gemäß no_preference_percentage
  4. Bereits zufrieden: einzelne Personen wünschen ihre aktuelle Sektion
"""

import random
from typing import Optional

from config.schema import SwapConfig
from models.roster import Roster

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_FIRST_NAMES = [
    "Andreas", "Anna", "Bernd", "Birgit", "Christian", "Christine", "Eva",
    "Franz", "Iris", "Jürgen", "Kathrin", "Klaus", "Lena", "Markus", "Maria",
    "Michael", "Olga", "Peter", "Sandra", "Stefan", "Tanja", "Thomas",
    "Ulrike", "Vera", "Yusuf", "Zoe", "Martin", "Sabine", "Robert", "Heike",
]

_LAST_NAMES = [
    "Müller", "Schmidt", "Schneider", "Fischer", "Weber", "Meyer",
    "Wagner", "Becker", "Schulz", "Hoffmann", "Schäfer", "Koch",
    "Bauer", "Richter", "Klein", "Wolf", "Schröder", "Neumann",
    "Schwarz", "Zimmermann", "Braun", "Krüger", "Hofmann", "Hartmann",
    "Lange", "Schmitt", "Krause", "Meier", "Lehmann", "Kaiser",
]

# Anteil der Personen, die (auch) ihre aktuelle Sektion wünschen
_SATISFIED_PERCENTAGE = 0.05


class FakeRosterGenerator:
    """Generiert einen vollständigen Roster auf Basis der SwapConfig."""

    def __init__(self, config: SwapConfig, seed: Optional[int] = None) -> None:
        self.config = config
        self.rng = random.Random(seed)

    # ─── Einzelne Person ──────────────────────────────────────────────────────

    def _make_student(self, cohort: str, number: int, section: str,
                      desired: list[str]) -> dict:
        first = self.rng.choice(_FIRST_NAMES)
        last = self.rng.choice(_LAST_NAMES)
        student_id = f"{cohort}05{number:04d}"
        slug = f"{first}.{last}".lower() \
            .replace("ä", "ae").replace("ö", "oe").replace("ü", "ue").replace("ß", "ss")
        return {
            "id": student_id,
            "name": f"{first} {last}",
            "phone_number": f"01{self.rng.randint(50, 79)}{self.rng.randint(1000000, 9999999)}",
            "email": f"{slug}.{number}@example.edu",
            "current_section": section,
            "desired_sections": desired,
            "cohort": cohort,
        }

    def _random_wishes(self, current: str, sections: list[str]) -> list[str]:
        gc = self.config.generator
        if self.rng.random() < gc.no_preference_percentage:
            return []
        others = [s for s in sections if s != current]
        k = self.rng.randint(1, min(gc.max_desired, len(others)))
        wishes = self.rng.sample(others, k)
        if self.rng.random() < _SATISFIED_PERCENTAGE:
            wishes.insert(self.rng.randrange(len(wishes) + 1), current)
        return wishes

    # ─── Batch ────────────────────────────────────────────────────────────────

    def _generate_cohort(self, cohort: str) -> list[dict]:
        gc = self.config.generator
        sections = [str(i) for i in range(1, gc.num_sections + 1)]
        rows: list[dict] = []
        number = 1

        # Feste Fälle zuerst, damit Matrikel und Ergebnis reproduzierbar bleiben
        fixed: list[tuple[str, list[str]]] = []
        if gc.students_per_cohort >= 2:
            fixed += [("1", ["2"]), ("2", ["1"])]
        if gc.students_per_cohort >= 5 and gc.num_sections >= 5:
            fixed += [("3", ["4"]), ("4", ["5"]), ("5", ["3"])]
        for section, desired in fixed:
            rows.append(self._make_student(cohort, number, section, desired))
            number += 1

        while number <= gc.students_per_cohort:
            section = self.rng.choice(sections)
            rows.append(self._make_student(
                cohort, number, section, self._random_wishes(section, sections)
            ))
            number += 1
        return rows

    def generate(self) -> Roster:
        """Erzeugt alle Batches gemäß GeneratorConfig."""
        students: list[dict] = []
        for cohort in self.config.generator.cohorts:
            students.extend(self._generate_cohort(cohort))
        return Roster(institution_name=self.config.institution_name, students=students)

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, roster: Roster) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Batch", style="bold cyan")
        table.add_column("Studierende", justify="right")
        table.add_column("Ohne Wunsch", justify="right")
        table.add_column("Sektionen", justify="right")

        by_cohort: dict[str, list[dict]] = {}
        for row in roster.students:
            by_cohort.setdefault(row.get("cohort") or "?", []).append(row)
        for cohort, rows in by_cohort.items():
            table.add_row(
                cohort,
                str(len(rows)),
                str(sum(1 for r in rows if not r["desired_sections"])),
                str(len({r["current_section"] for r in rows})),
            )
        console.print(table)
