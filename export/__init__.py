"""Export-Modul: Excel (openpyxl) für die Tauschliste."""

from export.excel_export import ExcelExporter

__all__ = ["ExcelExporter"]
