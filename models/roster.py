"""Roster: Vollständiger gespeicherter Datensatz (Pydantic v2).

Enthält die Studierenden als ROHZEILEN (wie aus der Datenbank), damit
fehlerhafte Datensätze erhalten bleiben und erst beim Laden eines
StudentPool übersprungen werden.
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel

from models.swap_request import SwapHistoryEntry, SwapRequest


class Roster(BaseModel):
    """Persistenter Datensatz: Studierende, Anfragen, Historie."""

    institution_name: str = ""
    students: list[Any] = []
    requests: list[SwapRequest] = []
    history: list[SwapHistoryEntry] = []
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        sections = {
            str(r.get("current_section")) for r in self.students
            if isinstance(r, dict) and r.get("current_section")
        }
        pending = sum(1 for r in self.requests if r.status == "pending")
        lines = [
            f"Hochschule: {self.institution_name}" if self.institution_name else "",
            f"Studierende: {len(self.students)}",
            f"Sektionen: {len(sections)}",
            f"Offene Anfragen: {pending}",
            f"Vollzogene Wechsel: {len(self.history)}",
        ]
        return "\n".join(l for l in lines if l)

    def save_json(self, path: Path) -> None:
        """Speichert den Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        if self.created_at is None:
            self.created_at = now
        self.modified_at = now
        with open(path, "w", encoding="utf-8") as f:
            f.write(self.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "Roster":
        """Lädt einen gespeicherten Datensatz aus JSON."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Datensatz nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
