"""Tauschliste ("Swap Sheet") und Dashboard.

Listet alle Studierenden mit Wunschstatus und dem Batch-Hinweis
"möglicher Tausch". Der Hinweis stammt aus der Näherung in
matching.batch und ist NICHT verbindlich.
"""

from typing import Literal, Optional

from pydantic import BaseModel

from matching.batch import BatchMatchChecker
from models.student import Student
from models.swap_request import SwapHistoryEntry


SheetStatus = Literal["satisfied", "no_preference", "looking"]

STATUS_LABELS: dict[str, str] = {
    "satisfied": "Zufrieden",
    "no_preference": "Kein Wunsch",
    "looking": "Sucht Tausch",
}


def student_status(student: Student) -> SheetStatus:
    """Wunschstatus: bereits in einer Wunschsektion / kein Wunsch / sucht."""
    if student.is_satisfied:
        return "satisfied"
    if not student.has_preference:
        return "no_preference"
    return "looking"


class SwapSheetRow(BaseModel):
    """Eine Zeile der Tauschliste."""

    student_id: str
    name: str
    cohort: Optional[str] = None
    current_section: str
    desired_sections: list[str]
    status: SheetStatus
    has_potential_swap: bool


class SwapSheet(BaseModel):
    """Tauschliste eines Batches (oder aller Batches)."""

    cohort: Optional[str] = None
    rows: list[SwapSheetRow]

    @property
    def potential_count(self) -> int:
        return sum(1 for r in self.rows if r.has_potential_swap)

    def status_counts(self) -> dict[str, int]:
        counts = {k: 0 for k in STATUS_LABELS}
        for r in self.rows:
            counts[r.status] += 1
        return counts

    def print_rich(self, limit: Optional[int] = None) -> None:
        """Gibt die Tauschliste als Rich-Tabelle aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        title = f"Tauschliste – Batch {self.cohort}" if self.cohort else "Tauschliste"
        table = Table(title=title, box=box.ROUNDED)
        table.add_column("Matrikel", style="bold")
        table.add_column("Name")
        table.add_column("Sektion", justify="right")
        table.add_column("Wünsche")
        table.add_column("Status")
        table.add_column("Tausch?", justify="center")

        rows = self.rows if limit is None else self.rows[:limit]
        for r in rows:
            table.add_row(
                r.student_id,
                r.name,
                r.current_section,
                ", ".join(r.desired_sections) or "–",
                STATUS_LABELS[r.status],
                "[green]✓[/green]" if r.has_potential_swap else "[dim]–[/dim]",
            )
        console.print(table)
        counts = self.status_counts()
        console.print(
            f"[dim]{len(self.rows)} Studierende | "
            + " | ".join(f"{STATUS_LABELS[k]}: {v}" for k, v in counts.items())
            + f" | möglicher Tausch: {self.potential_count}[/dim]"
        )


def build_swap_sheet(
    store, cohort: Optional[str] = None, restrict_to_cohort: bool = True
) -> SwapSheet:
    """Erzeugt die Tauschliste inkl. Batch-Hinweis für alle lesbaren Datensätze."""
    matches = BatchMatchChecker(store, restrict_to_cohort=restrict_to_cohort) \
        .check_all_matches(cohort=cohort)
    rows = [
        SwapSheetRow(
            student_id=s.id,
            name=s.name,
            cohort=s.cohort,
            current_section=s.current_section,
            desired_sections=list(s.desired_sections),
            status=student_status(s),
            has_potential_swap=matches.get(s.id, False),
        )
        for s in store.fetch_students(cohort=cohort)
    ]
    return SwapSheet(cohort=cohort, rows=rows)


# ─── Dashboard ────────────────────────────────────────────────────────────────

class Dashboard(BaseModel):
    """Übersicht für eine Person: Profil, offene Anfragen, Historie, Tauschliste."""

    student: Student
    pending_requests: int
    total_swaps: int
    recent_history: list[SwapHistoryEntry]
    sheet: SwapSheet

    def print_rich(self) -> None:
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        s = self.student
        console.print(Panel(
            f"[bold]{s.name}[/bold] ({s.id})  |  Sektion {s.current_section}  |  "
            f"Wünsche: {', '.join(s.desired_sections) or '–'}\n"
            f"Offene Anfragen: {self.pending_requests}  |  "
            f"Vollzogene Wechsel: {self.total_swaps}",
            title="Dashboard",
            border_style="cyan",
        ))
        self.sheet.print_rich()


def build_dashboard(store, student_id: str, restrict_to_cohort: bool = True) -> Dashboard:
    """Dashboard einer Person; Tauschliste auf den eigenen Batch beschränkt."""
    student = store.require_student(student_id)
    history = store.history(student.id)
    cohort = student.cohort if restrict_to_cohort else None
    return Dashboard(
        student=student,
        pending_requests=len(store.pending_requests(student.id)),
        total_swaps=len(history),
        recent_history=history[:5],
        sheet=build_swap_sheet(store, cohort=cohort, restrict_to_cohort=restrict_to_cohort),
    )
