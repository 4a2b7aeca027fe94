"""Excel-Export der Tauschliste (openpyxl)."""

from collections import defaultdict
from pathlib import Path

from analysis.swap_sheet import STATUS_LABELS, SwapSheet
from export.helpers import (
    COLORS, SHEET_HEADERS, section_sort_key, sheet_row_values, today_str,
)


class ExcelExporter:
    """Exportiert eine SwapSheet in eine Excel-Datei.

    Blätter:
      - Übersicht:  Kennzahlen pro Status
      - Tauschliste: alle Zeilen, farbig nach Status
      - Sektionen:  Belegung, Abwanderungs- und Zuwanderungswünsche
    """

    COL_WIDTHS = [12, 28, 8, 10, 24, 16, 18]
    ROW_HEADER_H = 22

    def __init__(self, sheet: SwapSheet, institution_name: str = "") -> None:
        self.sheet = sheet
        self.institution_name = institution_name

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> None:
        """Erstellt die Excel-Datei mit allen Blättern."""
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_uebersicht(wb)
        self._sheet_tauschliste(wb)
        self._sheet_sektionen(wb)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    def _write_header_row(self, ws, headers: list[str]) -> None:
        from openpyxl.styles import Alignment, Font
        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = Alignment(horizontal="center", vertical="center")
            cell.border = border
        ws.row_dimensions[1].height = self.ROW_HEADER_H

    def _set_widths(self, ws, widths: list[int]) -> None:
        from openpyxl.utils import get_column_letter
        for col, w in enumerate(widths, 1):
            ws.column_dimensions[get_column_letter(col)].width = w

    # ─── Blätter ──────────────────────────────────────────────────────────────

    def _sheet_uebersicht(self, wb) -> None:
        from openpyxl.styles import Font
        ws = wb.create_sheet("Übersicht")
        title = "Tauschliste"
        if self.institution_name:
            title += f" – {self.institution_name}"
        ws.cell(row=1, column=1, value=title).font = Font(bold=True, size=14)
        ws.cell(row=2, column=1, value=f"Stand: {today_str()}")
        ws.cell(row=3, column=1, value=f"Batch: {self.sheet.cohort or 'alle'}")

        row = 5
        ws.cell(row=row, column=1, value="Studierende").font = Font(bold=True)
        ws.cell(row=row, column=2, value=len(self.sheet.rows))
        for status, count in self.sheet.status_counts().items():
            row += 1
            ws.cell(row=row, column=1, value=STATUS_LABELS[status])
            ws.cell(row=row, column=2, value=count).fill = self._fill(COLORS[status])
        row += 1
        ws.cell(row=row, column=1, value="Möglicher Tausch")
        ws.cell(row=row, column=2, value=self.sheet.potential_count).fill = \
            self._fill(COLORS["potential"])
        self._set_widths(ws, [22, 12])

    def _sheet_tauschliste(self, wb) -> None:
        ws = wb.create_sheet("Tauschliste")
        self._write_header_row(ws, SHEET_HEADERS)
        self._set_widths(ws, self.COL_WIDTHS)
        border = self._thin_border()

        for r, sheet_row in enumerate(self.sheet.rows, 2):
            values = sheet_row_values(sheet_row)
            for col, val in enumerate(values, 1):
                cell = ws.cell(row=r, column=col, value=val)
                cell.border = border
            ws.cell(row=r, column=6).fill = self._fill(COLORS[sheet_row.status])
            if sheet_row.has_potential_swap:
                ws.cell(row=r, column=7).fill = self._fill(COLORS["potential"])
        ws.freeze_panes = "A2"

    def _sheet_sektionen(self, wb) -> None:
        """Pro Sektion: Belegung, wie viele weg wollen, wie viele hinein wollen."""
        ws = wb.create_sheet("Sektionen")
        self._write_header_row(ws, ["Sektion", "Belegung", "Wollen weg", "Wollen hinein"])
        self._set_widths(ws, [10, 12, 14, 14])

        occupancy: dict[str, int] = defaultdict(int)
        leaving: dict[str, int] = defaultdict(int)
        incoming: dict[str, int] = defaultdict(int)
        for row in self.sheet.rows:
            occupancy[row.current_section] += 1
            if row.status == "looking":
                leaving[row.current_section] += 1
            for d in set(row.desired_sections):
                if d != row.current_section:
                    incoming[d] += 1

        sections = sorted(set(occupancy) | set(incoming), key=section_sort_key)
        for r, section in enumerate(sections, 2):
            ws.cell(row=r, column=1, value=section)
            ws.cell(row=r, column=2, value=occupancy.get(section, 0))
            ws.cell(row=r, column=3, value=leaving.get(section, 0))
            ws.cell(row=r, column=4, value=incoming.get(section, 0))
            if r % 2 == 0:
                for col in range(1, 5):
                    ws.cell(row=r, column=col).fill = self._fill(COLORS["alt"])
