"""Datenmodell für Studierende (Pydantic v2).

Rohdatensätze aus dem Speicher (Zeilen wie aus einer Datenbank) werden über
`Student.from_record` geparst. Die Wunschsektionen können als Liste, als
JSON-Array-String oder als kommagetrennter String vorliegen.
"""

import json
import re
from typing import Any, Optional

from pydantic import BaseModel, field_validator


DEFAULT_COHORT_PREFIX = 2


class MalformedRecordError(ValueError):
    """Rohdatensatz lässt sich nicht als Student interpretieren."""


def parse_sections(raw: Any) -> list[str]:
    """Parst eine Wunschliste → geordnete Liste von Sektions-Tokens.

    '["32","5"]' → ["32", "5"]
    "32, 5"      → ["32", "5"]
    ["32", 5]    → ["32", "5"]
    None / ""    → []

    Reihenfolge (= Priorität) bleibt erhalten, Duplikate ebenfalls.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                raw = json.loads(text)
            except json.JSONDecodeError as e:
                raise MalformedRecordError(f"Ungültiges JSON in Wunschliste: {text!r}") from e
        else:
            return [t for t in re.split(r"[\s,;]+", text) if t]
    if not isinstance(raw, (list, tuple)):
        raise MalformedRecordError(f"Wunschliste hat unerwarteten Typ: {type(raw).__name__}")

    result = []
    for item in raw:
        if isinstance(item, bool) or not isinstance(item, (str, int)):
            raise MalformedRecordError(f"Ungültiger Eintrag in Wunschliste: {item!r}")
        token = str(item).strip()
        if not token:
            raise MalformedRecordError("Leerer Eintrag in Wunschliste")
        result.append(token)
    return result


def _optional_str(value: Any) -> Optional[str]:
    if value is None or value == "":
        return None
    return str(value).strip()


def derive_cohort(student_id: str, prefix_length: int = DEFAULT_COHORT_PREFIX) -> Optional[str]:
    """Batch aus der Matrikelnummer ("21051001" → "21")."""
    if prefix_length <= 0 or len(student_id) < prefix_length:
        return None
    return student_id[:prefix_length]


class Student(BaseModel):
    """Repräsentiert eine einzelne Studierende / einen einzelnen Studierenden."""

    id: str                                # Matrikelnummer ("21051001")
    name: str                              # Anzeigename
    current_section: str                   # Aktuelle Sektion ("20")
    desired_sections: list[str] = []       # Wunschsektionen, Priorität absteigend
    phone_number: Optional[str] = None
    email: Optional[str] = None
    cohort: Optional[str] = None           # Batch ("21")

    @field_validator("id", "current_section")
    @classmethod
    def _strip_token(cls, v: str) -> str:
        v = str(v).strip()
        if not v:
            raise ValueError("darf nicht leer sein")
        return v

    @field_validator("desired_sections", mode="before")
    @classmethod
    def _parse_desired(cls, v: Any) -> list[str]:
        try:
            return parse_sections(v)
        except MalformedRecordError as e:
            raise ValueError(str(e)) from e

    @property
    def has_preference(self) -> bool:
        """True wenn mindestens eine Wunschsektion angegeben ist."""
        return bool(self.desired_sections)

    @property
    def is_satisfied(self) -> bool:
        """True wenn die aktuelle Sektion bereits auf der Wunschliste steht."""
        return self.current_section in self.desired_sections

    def desires(self, section: str) -> bool:
        return section in self.desired_sections

    @classmethod
    def from_record(cls, row: dict, cohort_prefix: int = DEFAULT_COHORT_PREFIX) -> "Student":
        """Erzeugt einen Student aus einer Rohzeile des Speichers.

        Akzeptiert auch die Spaltennamen der Datenbank-Exporte
        (roll_number, current_section, desired_section[s]).
        Wirft MalformedRecordError bei unbrauchbaren Daten.
        """
        if not isinstance(row, dict):
            raise MalformedRecordError(f"Datensatz ist kein Objekt: {row!r}")
        student_id = row.get("id", row.get("roll_number"))
        if student_id is None:
            raise MalformedRecordError("Datensatz ohne Matrikelnummer")
        desired = row.get("desired_sections", row.get("desired_section"))
        student_id = str(student_id).strip()
        cohort = _optional_str(row.get("cohort")) or derive_cohort(student_id, cohort_prefix)
        try:
            return cls(
                id=student_id,
                name=_optional_str(row.get("name")) or student_id,
                current_section=str(row.get("current_section") or ""),
                desired_sections=desired,
                phone_number=_optional_str(row.get("phone_number")),
                email=_optional_str(row.get("email")),
                cohort=cohort,
            )
        except ValueError as e:
            # pydantic.ValidationError ist eine Unterklasse von ValueError
            raise MalformedRecordError(f"Datensatz {student_id}: {e}") from e

    def to_record(self) -> dict:
        """Rohzeile für den Speicher (Gegenstück zu from_record)."""
        return self.model_dump()


class StudentNotFoundError(LookupError):
    """Matrikelnummer existiert nicht (oder Datensatz ist unbrauchbar)."""

    def __init__(self, student_id: str) -> None:
        super().__init__(f"Student nicht gefunden: {student_id}")
        self.student_id = student_id
