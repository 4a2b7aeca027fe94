"""Gemeinsame Hilfsfunktionen für Exporte und Tabellenausgaben."""

from datetime import date

from analysis.swap_sheet import STATUS_LABELS, SwapSheetRow

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "satisfied":     "B3FFB3",
    "no_preference": "E0E0E0",
    "looking":       "FFF2B3",
    "potential":     "B3D4FF",
    "header":        "4472C4",
    "alt":           "F5F5F5",
}


def today_str() -> str:
    """Gibt das heutige Datum als DD.MM.YYYY zurück."""
    return date.today().strftime("%d.%m.%Y")


def format_sections(sections: list[str]) -> str:
    """["32", "5"] → "32, 5" (Reihenfolge = Priorität)."""
    return ", ".join(sections)


def section_sort_key(section: str) -> tuple[int, int, str]:
    """Numerische Sektionen numerisch sortieren, alle anderen danach alphabetisch."""
    if section.isdigit():
        return (0, int(section), section)
    return (1, 0, section)


def sheet_row_values(row: SwapSheetRow) -> list:
    """Zellwerte einer Tauschlisten-Zeile (Reihenfolge = SHEET_HEADERS)."""
    return [
        row.student_id,
        row.name,
        row.cohort or "",
        row.current_section,
        format_sections(row.desired_sections),
        STATUS_LABELS[row.status],
        "ja" if row.has_potential_swap else "nein",
    ]


SHEET_HEADERS = [
    "Matrikel", "Name", "Batch", "Sektion", "Wünsche (Priorität)",
    "Status", "Möglicher Tausch",
]
