"""Excel-/CSV-Import und Template-Generator für Studierendenlisten.

Template-Generator: Excel-Vorlage mit Blatt 'Studierende' und Beispielzeile.
Import-Funktion:    Excel/CSV → StudentStore + ImportReport.
"""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from config.schema import SwapConfig
from data.store import StudentStore
from models.roster import Roster
from models.student import MalformedRecordError, derive_cohort, parse_sections


class RosterImportError(Exception):
    """Fehler beim Import einer Studierendenliste."""


class ImportReport(BaseModel):
    """Ergebnis eines Imports."""

    imported: int
    skipped: int
    errors: list[str]      # Zeile übersprungen
    warnings: list[str]    # Zeile importiert, aber auffällig

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        lines = [
            f"[bold green]✓ {self.imported} importiert[/bold green]"
            + (f"  [red]({self.skipped} übersprungen)[/red]" if self.skipped else "")
        ]
        if self.errors:
            lines.append("\n[red bold]Fehler (Zeile übersprungen):[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Import", border_style="cyan"))


# ─── Spalten ──────────────────────────────────────────────────────────────────

SHEET_NAME = "Studierende"

COLUMNS = [
    "Matrikelnummer", "Name", "Telefon", "E-Mail", "Aktuelle Sektion",
    "Wunschsektionen (kommagetrennt)", "Batch (optional)",
]

# Header (lowercase) → Feld; mehrere Schreibweisen erlaubt
_HEADER_MAP: dict[str, str] = {
    "matrikelnummer": "id",
    "matrikel": "id",
    "roll_number": "id",
    "id": "id",
    "name": "name",
    "telefon": "phone_number",
    "phone_number": "phone_number",
    "e-mail": "email",
    "email": "email",
    "aktuelle sektion": "current_section",
    "sektion": "current_section",
    "current_section": "current_section",
    "wunschsektionen (kommagetrennt)": "desired_sections",
    "wunschsektionen": "desired_sections",
    "desired_sections": "desired_sections",
    "desired_section": "desired_sections",
    "batch (optional)": "cohort",
    "batch": "cohort",
    "cohort": "cohort",
}

_EXAMPLE_ID = "00000000"


def _cell_str(value) -> str:
    """Zellwert → String; 21051001.0 aus Zahlenzellen → "21051001"."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


# ─── TEMPLATE-GENERATOR ───────────────────────────────────────────────────────

def generate_template(path: Path) -> None:
    """Erzeugt eine Excel-Vorlage mit dem Blatt 'Studierende'.

    Zeile 2 ist eine kursive Beispielzeile (Matrikelnummer 00000000),
    die beim Import ignoriert wird.
    """
    import openpyxl
    from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
    from openpyxl.utils import get_column_letter

    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = SHEET_NAME

    hdr_font = Font(bold=True, color="FFFFFF", size=11)
    hdr_fill = PatternFill("solid", fgColor="2E6DA4")
    ex_font = Font(italic=True, color="888888")
    ex_fill = PatternFill("solid", fgColor="F5F5F5")
    thin = Side(style="thin", color="BBBBBB")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)

    for col, h in enumerate(COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=h)
        cell.font = hdr_font
        cell.fill = hdr_fill
        cell.alignment = Alignment(horizontal="center", vertical="center")
        cell.border = border

    widths = [16, 28, 14, 28, 16, 32, 16]
    for col, w in enumerate(widths, 1):
        ws.column_dimensions[get_column_letter(col)].width = w

    example = [_EXAMPLE_ID, "Mustermann, Max", "0123456789", "max@example.edu",
               "4", "32, 5", ""]
    for col, val in enumerate(example, 1):
        cell = ws.cell(row=2, column=col, value=val)
        cell.font = ex_font
        cell.fill = ex_fill
        cell.border = border

    # Matrikel und Sektionen als Text, damit Excel keine Zahlen daraus macht
    for row in range(3, 2001):
        for col in (1, 3, 5, 6):
            ws.cell(row=row, column=col).number_format = "@"
    ws.freeze_panes = "A2"

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(str(path))


# ─── IMPORT ───────────────────────────────────────────────────────────────────

class RosterImporter:
    """Importiert Studierende aus einer Excel-Datei (Blatt 'Studierende')."""

    def __init__(self, path: Path, config: Optional[SwapConfig] = None) -> None:
        self.path = Path(path)
        self.config = config or SwapConfig()
        self._wb = None
        self._errors: list[str] = []
        self._warnings: list[str] = []

    def _open(self):
        try:
            import openpyxl
            self._wb = openpyxl.load_workbook(
                str(self.path), read_only=True, data_only=True
            )
        except FileNotFoundError:
            raise RosterImportError(f"Datei nicht gefunden: {self.path}")
        except Exception as e:
            raise RosterImportError(f"Fehler beim Öffnen der Excel-Datei: {e}")

    def _get_sheet(self, name: str):
        if self._wb is None:
            self._open()
        for sn in self._wb.sheetnames:
            if sn.strip().lower() == name.strip().lower():
                return self._wb[sn]
        # Fallback: einziges Blatt
        if len(self._wb.sheetnames) == 1:
            return self._wb[self._wb.sheetnames[0]]
        return None

    def _sheet_rows(self, sheet) -> list[tuple[int, dict]]:
        """Tabellenblatt → (Zeilennummer, Dict mit Feldnamen), erste Zeile = Header.

        Leerzeilen werden übersprungen, die Zeilennummer bleibt die des Blatts.
        """
        rows = list(sheet.iter_rows(values_only=True))
        if not rows:
            return []
        headers = [
            _HEADER_MAP.get(str(h).strip().lower(), f"col_{i}") if h is not None else f"col_{i}"
            for i, h in enumerate(rows[0])
        ]
        if "id" not in headers or "current_section" not in headers:
            raise RosterImportError(
                "Pflichtspalten fehlen: 'Matrikelnummer' und 'Aktuelle Sektion'."
            )
        result = []
        for row_no, row in enumerate(rows[1:], 2):
            if all(v is None or v == "" for v in row):
                continue
            result.append((row_no, {
                headers[i]: _cell_str(v)
                for i, v in enumerate(row)
                if i < len(headers)
            }))
        return result

    def import_students(self) -> list[dict]:
        """Liest alle Zeilen → Rohdatensätze für den StudentStore."""
        sheet = self._get_sheet(SHEET_NAME)
        if sheet is None:
            raise RosterImportError(f"Tabellenblatt '{SHEET_NAME}' nicht gefunden.")

        prefix = self.config.cohorts.prefix_length
        records: list[dict] = []
        used_ids: set[str] = set()

        for i, row in self._sheet_rows(sheet):
            student_id = row.get("id", "")
            if student_id == _EXAMPLE_ID:
                continue  # Beispielzeile
            if not student_id:
                self._errors.append(f"Zeile {i}: Matrikelnummer fehlt")
                continue
            if student_id in used_ids:
                self._errors.append(f"Zeile {i}: Doppelte Matrikelnummer '{student_id}'")
                continue
            section = row.get("current_section", "")
            if not section:
                self._errors.append(f"Zeile {i} ({student_id}): Aktuelle Sektion fehlt")
                continue
            used_ids.add(student_id)

            raw_desired = row.get("desired_sections", "")
            try:
                desired = parse_sections(raw_desired)
            except MalformedRecordError as e:
                self._warnings.append(f"Zeile {i} ({student_id}): {e} → keine Wünsche")
                desired = []
            if section in desired:
                self._warnings.append(
                    f"Zeile {i} ({student_id}): Aktuelle Sektion {section} steht auf der Wunschliste"
                )
            if not desired:
                self._warnings.append(f"Zeile {i} ({student_id}): Keine Wunschsektion")

            records.append({
                "id": student_id,
                "name": row.get("name") or student_id,
                "phone_number": row.get("phone_number") or None,
                "email": row.get("email") or None,
                "current_section": section,
                "desired_sections": desired,
                "cohort": row.get("cohort") or derive_cohort(student_id, prefix),
            })
        return records

    def import_all(self) -> tuple[StudentStore, ImportReport]:
        """Importiert alle Zeilen → StudentStore + ImportReport."""
        self._errors = []
        self._warnings = []
        records = self.import_students()

        if not records and self._errors:
            raise RosterImportError(
                f"Import mit {len(self._errors)} Fehlern, keine gültige Zeile:\n"
                + "\n".join(f"  • {e}" for e in self._errors)
            )

        roster = Roster(institution_name=self.config.institution_name, students=records)
        store = StudentStore(roster, cohort_prefix=self.config.cohorts.prefix_length)
        report = ImportReport(
            imported=len(records),
            skipped=len(self._errors),
            errors=list(self._errors),
            warnings=list(self._warnings),
        )
        return store, report


def import_from_excel(
    path: Path, config: Optional[SwapConfig] = None
) -> tuple[StudentStore, ImportReport]:
    """Importiert Studierende aus einer Excel-Datei (.xlsx).

    Raises:
        RosterImportError: Datei unlesbar, Blatt/Pflichtspalten fehlen
                           oder keine einzige gültige Zeile.
    """
    return RosterImporter(path, config).import_all()


# ─── CSV-IMPORTER ──────────────────────────────────────────────────────────────

class CsvImporter(RosterImporter):
    """Importiert Studierende aus einer CSV-Datei (gleiche Spalten wie die Vorlage)."""

    def __init__(self, path: Path, config: Optional[SwapConfig] = None) -> None:
        super().__init__(path, config)
        self._csv_rows: Optional[list[tuple]] = None

    def _open(self) -> None:
        import csv

        if self.path.suffix.lower() != ".csv":
            raise RosterImportError(f"Unbekanntes Dateiformat: {self.path}. Erwartet: .csv")
        try:
            with open(self.path, encoding="utf-8-sig", newline="") as f:
                # Leerzeilen bleiben als leere Tupel erhalten (Zeilennummern)
                self._csv_rows = [tuple(v.strip() for v in row) for row in csv.reader(f)]
        except FileNotFoundError:
            raise RosterImportError(f"Datei nicht gefunden: {self.path}")
        except (UnicodeDecodeError, csv.Error) as e:
            raise RosterImportError(f"CSV-Datei nicht lesbar (UTF-8 erwartet): {e}")

    def _get_sheet(self, name: str):
        if self._csv_rows is None:
            self._open()
        return _CsvSheetProxy(self._csv_rows)


class _CsvSheetProxy:
    """Adapter, der CSV-Zeilen als Sheet-ähnliches Objekt bereitstellt."""

    def __init__(self, rows: list[tuple]) -> None:
        self._rows = rows

    def iter_rows(self, values_only: bool = True):
        return iter(self._rows)


def import_from_csv(
    path: Path, config: Optional[SwapConfig] = None
) -> tuple[StudentStore, ImportReport]:
    """Importiert Studierende aus einer CSV-Datei."""
    return CsvImporter(path, config).import_all()


def import_roster(
    path: Path, config: Optional[SwapConfig] = None
) -> tuple[StudentStore, ImportReport]:
    """Wählt den Importer anhand der Dateiendung (.xlsx / .csv)."""
    suffix = Path(path).suffix.lower()
    if suffix == ".csv":
        return import_from_csv(path, config)
    if suffix in (".xlsx", ".xlsm"):
        return import_from_excel(path, config)
    raise RosterImportError(f"Unbekanntes Dateiformat: {path}. Erwartet: .xlsx oder .csv")
