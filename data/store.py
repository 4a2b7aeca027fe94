"""StudentStore: JSON-basierter Datenspeicher für Studierende, Anfragen und Historie.

Der Speicher hält die Studierenden als Rohzeilen (wie aus einer Datenbank).
Erst beim Abfragen werden sie zu `Student` geparst; unbrauchbare Zeilen
werden dabei einzeln übersprungen und nur im DEBUG-Log vermerkt.

Schnittstelle für die Tausch-Suche:
  fetch_eligible_students(cohort, exclude_id) -> list[Student]
  fetch_student(student_id)                   -> Student | None
"""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from config.schema import SwapConfig
from models.roster import Roster
from models.student import (
    DEFAULT_COHORT_PREFIX,
    MalformedRecordError,
    Student,
    StudentNotFoundError,
)
from models.swap_plan import SwapPlan
from models.swap_request import SwapHistoryEntry, SwapRequest

logger = logging.getLogger(__name__)


class SwapRequestError(Exception):
    """Unbekannte oder nicht mehr offene Tausch-Anfrage."""


class StaleSwapError(Exception):
    """Plan passt nicht mehr zum aktuellen Datenstand (z.B. Partner schon getauscht)."""

    def __init__(self, message: str, report=None) -> None:
        super().__init__(message)
        self.report = report


def _row_id(row: Any) -> Optional[str]:
    if not isinstance(row, dict):
        return None
    value = row.get("id", row.get("roll_number"))
    return None if value is None else str(value).strip()


class StudentStore:
    """Datenspeicher auf Basis eines Roster-Dokuments."""

    def __init__(
        self,
        roster: Optional[Roster] = None,
        cohort_prefix: int = DEFAULT_COHORT_PREFIX,
        path: Optional[Path] = None,
    ) -> None:
        self.roster = roster or Roster()
        self.cohort_prefix = cohort_prefix
        self.path = Path(path) if path is not None else None

    @classmethod
    def from_records(
        cls, rows: Iterable[dict], cohort_prefix: int = DEFAULT_COHORT_PREFIX
    ) -> "StudentStore":
        return cls(Roster(students=[dict(r) for r in rows]), cohort_prefix=cohort_prefix)

    @classmethod
    def from_config(cls, config: SwapConfig) -> "StudentStore":
        """Lädt den Datensatz aus config.data.roster_path (leer wenn nicht vorhanden)."""
        path = Path(config.data.roster_path)
        roster = Roster.load_json(path) if path.exists() else Roster(
            institution_name=config.institution_name
        )
        return cls(roster, cohort_prefix=config.cohorts.prefix_length, path=path)

    # ─── Persistenz ───

    def save_json(self, path: Optional[Path] = None) -> Path:
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("Kein Speicherpfad angegeben.")
        self.roster.save_json(target)
        self.path = target
        return target

    @classmethod
    def load_json(
        cls, path: Path, cohort_prefix: int = DEFAULT_COHORT_PREFIX
    ) -> "StudentStore":
        return cls(Roster.load_json(path), cohort_prefix=cohort_prefix, path=path)

    # ─── Lesen ───

    @property
    def rows(self) -> list[Any]:
        return self.roster.students

    def _parse(self, row: Any) -> Optional[Student]:
        try:
            return Student.from_record(row, cohort_prefix=self.cohort_prefix)
        except MalformedRecordError as e:
            logger.debug(f"Datensatz übersprungen: {e}")
            return None

    def fetch_students(self, cohort: Optional[str] = None) -> list[Student]:
        """Alle lesbaren Studierenden (auch ohne Wunsch), Matrikel aufsteigend.

        Doppelte Matrikelnummern: der erste Datensatz gewinnt.
        """
        result: dict[str, Student] = {}
        for row in self.rows:
            student = self._parse(row)
            if student is None or student.id in result:
                continue
            if cohort is not None and student.cohort != cohort:
                continue
            result[student.id] = student
        return [result[k] for k in sorted(result)]

    def fetch_eligible_students(
        self, cohort: Optional[str] = None, exclude_id: Optional[str] = None
    ) -> list[Student]:
        """Tauschkandidaten: lesbar, mit mindestens einer Wunschsektion."""
        return [
            s for s in self.fetch_students(cohort=cohort)
            if s.has_preference and s.id != exclude_id
        ]

    def fetch_student(self, student_id: str) -> Optional[Student]:
        """Einzelner Datensatz oder None (unbekannt oder unbrauchbar)."""
        row = self._find_row(student_id)
        if row is None:
            return None
        student = self._parse(row)
        if student is None:
            logger.warning(f"Datensatz {student_id} ist unbrauchbar.")
        return student

    def require_student(self, student_id: str) -> Student:
        student = self.fetch_student(student_id)
        if student is None:
            raise StudentNotFoundError(student_id)
        return student

    def _find_row(self, student_id: str) -> Optional[dict]:
        key = str(student_id).strip()
        for row in self.rows:
            if _row_id(row) == key:
                return row
        return None

    # ─── Schreiben ───

    def upsert_student(self, student: Student) -> None:
        """Fügt einen Datensatz hinzu oder ersetzt den bestehenden."""
        row = self._find_row(student.id)
        record = student.to_record()
        if row is None:
            self.rows.append(record)
        else:
            row.clear()
            row.update(record)

    def update_profile(
        self,
        student_id: str,
        name: Optional[str] = None,
        phone_number: Optional[str] = None,
        email: Optional[str] = None,
        desired_sections: Optional[list[str]] = None,
    ) -> Student:
        """Ändert Profilfelder; die aktuelle Sektion ist hier NICHT änderbar."""
        student = self.require_student(student_id)
        update: dict[str, Any] = {}
        if name is not None:
            update["name"] = name
        if phone_number is not None:
            update["phone_number"] = phone_number
        if email is not None:
            update["email"] = email
        if desired_sections is not None:
            update["desired_sections"] = [str(s).strip() for s in desired_sections]
        updated = Student.model_validate({**student.model_dump(), **update})
        self.upsert_student(updated)
        return updated

    # ─── Anfragen ───

    def create_swap_request(self, plan: SwapPlan) -> SwapRequest:
        """Speichert einen gefundenen Plan als offene Anfrage."""
        if not plan.is_match or plan.requester_id is None or plan.target_section is None:
            raise SwapRequestError("Nur gefundene Tausch-Pläne können angefragt werden.")
        self.require_student(plan.requester_id)
        next_id = max((r.id for r in self.roster.requests), default=0) + 1
        request = SwapRequest(
            id=next_id,
            requester_id=plan.requester_id,
            target_section=plan.target_section,
            swap_type=plan.swap_type,
            swap_path=list(plan.steps),
        )
        self.roster.requests.append(request)
        logger.info(f"Anfrage #{request.id} angelegt ({request.requester_id} → {request.target_section})")
        return request

    def get_request(self, request_id: int) -> SwapRequest:
        for r in self.roster.requests:
            if r.id == request_id:
                return r
        raise SwapRequestError(f"Anfrage #{request_id} existiert nicht.")

    def pending_requests(self, student_id: Optional[str] = None) -> list[SwapRequest]:
        return [
            r for r in self.roster.requests
            if r.is_pending and (student_id is None or r.requester_id == student_id)
        ]

    def cancel_swap_request(self, request_id: int) -> SwapRequest:
        request = self._require_pending(request_id)
        request.status = "cancelled"
        request.updated_at = datetime.now(timezone.utc)
        return request

    def _require_pending(self, request_id: int) -> SwapRequest:
        request = self.get_request(request_id)
        if not request.is_pending:
            raise SwapRequestError(f"Anfrage #{request_id} ist bereits '{request.status}'.")
        return request

    # ─── Vollziehen ───

    def commit_request(self, request_id: int, max_rotation_length: int = 5) -> list[SwapHistoryEntry]:
        """Vollzieht eine offene Anfrage und markiert sie als 'completed'."""
        request = self._require_pending(request_id)
        plan = SwapPlan(
            type="direct" if request.swap_type == "direct" else "rotation",
            requester_id=request.requester_id,
            target_section=request.target_section,
            steps=request.swap_path,
        )
        entries = self.commit_plan(plan, request_id=request.id,
                                   max_rotation_length=max_rotation_length)
        request.status = "completed"
        request.updated_at = datetime.now(timezone.utc)
        return entries

    def commit_plan(
        self,
        plan: SwapPlan,
        request_id: Optional[int] = None,
        max_rotation_length: int = 5,
    ) -> list[SwapHistoryEntry]:
        """Wendet einen Plan an: Sektionen aller Beteiligten ändern + Historie.

        Der Plan wird vorher gegen den AKTUELLEN Datenstand geprüft. Hat eine
        beteiligte Person inzwischen die Sektion gewechselt, wird nichts
        geändert und StaleSwapError geworfen.
        """
        from analysis.plan_validator import PlanValidator
        from config.schema import MatchingConfig

        if not plan.is_match:
            raise SwapRequestError("Ein leerer Plan kann nicht vollzogen werden.")

        snapshot = {s.id: s for s in self.fetch_students()}
        validator = PlanValidator(MatchingConfig(max_rotation_length=max_rotation_length))
        report = validator.validate(plan, snapshot)
        if not report.is_valid:
            details = "; ".join(f"{v.entity}: {v.description}" for v in report.errors)
            raise StaleSwapError(f"Plan nicht mehr gültig: {details}", report=report)

        now = datetime.now(timezone.utc)
        entries: list[SwapHistoryEntry] = []
        n = len(plan.steps)
        for i, step in enumerate(plan.steps):
            row = self._find_row(step.student_id)
            row["current_section"] = step.to_section
            # Partner = Person, deren Platz übernommen wird
            partner = plan.steps[(i + 1) % n].student_id
            entries.append(SwapHistoryEntry(
                student_id=step.student_id,
                from_section=step.from_section,
                to_section=step.to_section,
                swap_partner_id=partner,
                request_id=request_id,
                swap_date=now,
            ))
        self.roster.history.extend(entries)
        logger.info(f"Tausch vollzogen: {plan.describe()}")
        return entries

    def history(self, student_id: str) -> list[SwapHistoryEntry]:
        """Vollzogene Wechsel einer Person, neueste zuerst."""
        entries = [h for h in self.roster.history if h.student_id == student_id]
        return sorted(entries, key=lambda h: h.swap_date, reverse=True)

    def __len__(self) -> int:
        return len(self.rows)

    def __repr__(self) -> str:
        return f"StudentStore({len(self.rows)} Datensätze)"
