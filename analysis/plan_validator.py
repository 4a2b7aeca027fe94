"""Validierung eines SwapPlan gegen einen Datenstand.

Prüft einen gefundenen (oder gespeicherten) Plan auf Kettenschluss,
Platzbilanz und Belegung, unabhängig vom Suchalgorithmus. Wird vor dem
Vollziehen eines Tauschs gegen einen frischen Datenstand ausgeführt.
"""

from collections import Counter
from typing import Literal, Optional

from pydantic import BaseModel

from config.schema import MatchingConfig
from models.student import Student
from models.swap_plan import SwapPlan


class ValidationViolation(BaseModel):
    """Eine einzelne Regelverletzung."""

    severity: Literal["error", "warning"]
    constraint: str      # z.B. "chain_closure"
    description: str
    entity: str          # student_id / Sektion


class ValidationReport(BaseModel):
    """Ergebnis der Plan-Validierung."""

    violations: list[ValidationViolation]
    is_valid: bool       # True wenn keine Errors (Warnings ok)

    @property
    def errors(self) -> list[ValidationViolation]:
        return [v for v in self.violations if v.severity == "error"]

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        warnings = [v for v in self.violations if v.severity == "warning"]
        status = (
            "[bold green]✓ VALIDE[/bold green]"
            if self.is_valid
            else "[bold red]✗ VERLETZUNGEN GEFUNDEN[/bold red]"
        )
        lines = [status, f"Fehler: {len(self.errors)} | Warnungen: {len(warnings)}"]
        console.print(Panel("\n".join(lines), title="Plan-Validierung", border_style="cyan"))

        if not self.violations:
            return

        table = Table(box=box.ROUNDED, show_lines=True)
        table.add_column("Typ", width=8)
        table.add_column("Regel", width=22)
        table.add_column("Entität", width=12)
        table.add_column("Beschreibung")
        for v in self.violations:
            color = "red" if v.severity == "error" else "yellow"
            table.add_row(
                f"[{color}]{v.severity.upper()}[/{color}]",
                v.constraint,
                v.entity,
                v.description,
            )
        console.print(table)


class PlanValidator:
    """Prüft einen SwapPlan gegen einen Datenstand (student_id → Student)."""

    def __init__(self, matching: Optional[MatchingConfig] = None) -> None:
        self.matching = matching or MatchingConfig()

    def validate(self, plan: SwapPlan, students: dict[str, Student]) -> ValidationReport:
        """Führt alle Checks durch. Ein Plan vom Typ "none" ist trivial valide."""
        violations: list[ValidationViolation] = []
        if plan.is_match:
            violations.extend(self._check_length(plan))
            violations.extend(self._check_chain(plan))
            violations.extend(self._check_participants(plan, students))
            violations.extend(self._check_seat_balance(plan))

        has_errors = any(v.severity == "error" for v in violations)
        return ValidationReport(violations=violations, is_valid=not has_errors)

    # ── Einzelne Prüfungen ────────────────────────────────────────────────────

    def _check_length(self, plan: SwapPlan) -> list[ValidationViolation]:
        lo = 2
        hi = self.matching.max_rotation_length
        if plan.type == "direct" and plan.length != 2:
            return [ValidationViolation(
                severity="error", constraint="rotation_length",
                entity=plan.requester_id or "?",
                description=f"Direkttausch mit {plan.length} Zügen.",
            )]
        if not lo <= plan.length <= hi:
            return [ValidationViolation(
                severity="error", constraint="rotation_length",
                entity=plan.requester_id or "?",
                description=f"Kettenlänge {plan.length} außerhalb {lo}–{hi}.",
            )]
        return []

    def _check_chain(self, plan: SwapPlan) -> list[ValidationViolation]:
        """Erster Zug vom Anfragenden, lückenlose Kette, Rückkehr zur Ausgangssektion."""
        violations: list[ValidationViolation] = []
        if not plan.steps:
            return violations
        first, last = plan.steps[0], plan.steps[-1]

        if not first.is_requester or first.student_id != plan.requester_id:
            violations.append(ValidationViolation(
                severity="error", constraint="requester_first",
                entity=first.student_id,
                description="Erster Zug gehört nicht zur anfragenden Person.",
            ))
        if plan.target_section is not None and first.to_section != plan.target_section:
            violations.append(ValidationViolation(
                severity="error", constraint="target_section",
                entity=first.student_id,
                description=f"Erster Zug endet in {first.to_section}, Ziel ist {plan.target_section}.",
            ))
        if first.to_section == first.from_section:
            violations.append(ValidationViolation(
                severity="error", constraint="self_loop",
                entity=first.student_id,
                description="Ziel entspricht der aktuellen Sektion.",
            ))
        if last.to_section != first.from_section:
            violations.append(ValidationViolation(
                severity="error", constraint="chain_closure",
                entity=last.student_id,
                description=(
                    f"Kette endet in {last.to_section}, "
                    f"nicht in der Ausgangssektion {first.from_section}."
                ),
            ))
        for prev, step in zip(plan.steps, plan.steps[1:]):
            if prev.to_section != step.from_section:
                violations.append(ValidationViolation(
                    severity="error", constraint="chain_continuity",
                    entity=step.student_id,
                    description=(
                        f"Zieht aus {step.from_section}, "
                        f"frei wird aber {prev.to_section}."
                    ),
                ))

        sections = [s.from_section for s in plan.steps]
        for section, n in Counter(sections).items():
            if n > 1:
                violations.append(ValidationViolation(
                    severity="error", constraint="section_repeat",
                    entity=section,
                    description=f"Sektion {section} kommt {n}× als Ausgang vor.",
                ))
        return violations

    def _check_participants(
        self, plan: SwapPlan, students: dict[str, Student]
    ) -> list[ValidationViolation]:
        """Jede Person existiert, sitzt in ihrer Ausgangssektion und will ins Ziel."""
        violations: list[ValidationViolation] = []
        for student_id, n in Counter(plan.participant_ids).items():
            if n > 1:
                violations.append(ValidationViolation(
                    severity="error", constraint="duplicate_participant",
                    entity=student_id,
                    description=f"Person kommt {n}× in der Kette vor.",
                ))

        for step in plan.steps:
            student = students.get(step.student_id)
            if student is None:
                violations.append(ValidationViolation(
                    severity="error", constraint="unknown_student",
                    entity=step.student_id,
                    description="Person nicht im Datenstand.",
                ))
                continue
            if student.current_section != step.from_section:
                violations.append(ValidationViolation(
                    severity="error", constraint="occupancy",
                    entity=step.student_id,
                    description=(
                        f"Sitzt in {student.current_section}, "
                        f"Plan erwartet {step.from_section}."
                    ),
                ))
            if not student.desires(step.to_section):
                # Anfragende dürfen ein Ziel außerhalb der Wunschliste angeben
                violations.append(ValidationViolation(
                    severity="warning" if step.is_requester else "error",
                    constraint="preference",
                    entity=step.student_id,
                    description=f"Sektion {step.to_section} steht nicht auf der Wunschliste.",
                ))
        return violations

    def _check_seat_balance(self, plan: SwapPlan) -> list[ValidationViolation]:
        """Jede Sektion gibt genau so viele Plätze ab, wie sie erhält."""
        leaving = Counter(s.from_section for s in plan.steps)
        arriving = Counter(s.to_section for s in plan.steps)
        if leaving == arriving:
            return []
        diff = sorted(set((leaving - arriving) + (arriving - leaving)))
        return [ValidationViolation(
            severity="error", constraint="seat_balance",
            entity=", ".join(diff),
            description="Platzbilanz nicht ausgeglichen.",
        )]
