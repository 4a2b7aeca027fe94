"""Ergebnis-Modelle der Tausch-Suche: SwapStep und SwapPlan (Pydantic v2)."""

from typing import Literal, Optional

from pydantic import BaseModel

from models.student import Student


class SwapStep(BaseModel):
    """Ein einzelner Zug einer Rotation: eine Person wechselt from → to."""

    from_section: str
    to_section: str
    student_id: str
    student_name: str
    is_requester: bool = False


class SwapPlan(BaseModel):
    """Ergebnis von SwapResolver.find_swap.

    type == "direct":   partner ist gesetzt, steps enthält beide Züge
    type == "rotation": steps ist die geschlossene Kette (2–5 Züge)
    type == "none":     kein Tausch gefunden (normales Ergebnis, kein Fehler)
    """

    type: Literal["direct", "rotation", "none"]
    requester_id: Optional[str] = None
    target_section: Optional[str] = None
    partner: Optional[Student] = None
    steps: list[SwapStep] = []

    # ─── Konstruktoren ───

    @classmethod
    def none(cls, requester_id: Optional[str] = None) -> "SwapPlan":
        return cls(type="none", requester_id=requester_id)

    @classmethod
    def direct(cls, requester: Student, partner: Student, target_section: str) -> "SwapPlan":
        """Direkttausch: requester R → T, partner T → R."""
        steps = [
            SwapStep(from_section=requester.current_section, to_section=target_section,
                     student_id=requester.id, student_name=requester.name,
                     is_requester=True),
            SwapStep(from_section=partner.current_section,
                     to_section=requester.current_section,
                     student_id=partner.id, student_name=partner.name),
        ]
        return cls(type="direct", requester_id=requester.id,
                   target_section=target_section, partner=partner, steps=steps)

    @classmethod
    def rotation(cls, requester: Student, steps: list[SwapStep]) -> "SwapPlan":
        return cls(type="rotation", requester_id=requester.id,
                   target_section=steps[0].to_section, steps=list(steps))

    # ─── Abfragen ───

    @property
    def is_match(self) -> bool:
        return self.type != "none"

    @property
    def length(self) -> int:
        """Anzahl beteiligter Personen (= Anzahl Züge)."""
        return len(self.steps)

    @property
    def participant_ids(self) -> list[str]:
        return [s.student_id for s in self.steps]

    @property
    def swap_type(self) -> str:
        """Bezeichnung für SwapRequest.swap_type ("direct" / "multi")."""
        return "direct" if self.type == "direct" else "multi"

    def describe(self) -> str:
        """Einzeilige Beschreibung, z.B. 'Bob 20→30, Carol 30→10, Alice 10→20'."""
        if not self.is_match:
            return "Kein Tausch gefunden"
        return ", ".join(
            f"{s.student_name} {s.from_section}→{s.to_section}" for s in self.steps
        )

    def print_rich(self) -> None:
        """Gibt den Plan formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel
        from rich.table import Table
        from rich import box

        console = Console()
        if self.type == "none":
            console.print(Panel("[yellow]Kein Tausch gefunden.[/yellow]",
                                title="Tausch-Suche", border_style="cyan"))
            return

        if self.type == "direct":
            title = f"[bold green]✓ DIREKTTAUSCH[/bold green] → Sektion {self.target_section}"
        else:
            title = (f"[bold green]✓ ROTATION[/bold green] ({self.length} Personen) "
                     f"→ Sektion {self.target_section}")
        console.print(Panel(title, title="Tausch-Suche", border_style="cyan"))

        table = Table(box=box.ROUNDED)
        table.add_column("#", justify="right")
        table.add_column("Matrikel")
        table.add_column("Name")
        table.add_column("Von")
        table.add_column("Nach")
        for i, step in enumerate(self.steps, 1):
            name = f"[bold]{step.student_name}[/bold]" if step.is_requester else step.student_name
            table.add_row(str(i), step.student_id, name, step.from_section, step.to_section)
        console.print(table)
