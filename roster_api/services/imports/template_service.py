"""
Downloadable import templates.

Both formats carry the canonical headers and one example row, and both
read back cleanly through the import pipeline.
"""
import csv
import io
from dataclasses import dataclass

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from roster_api.services.imports.column_mapping import (
    TEMPLATE_DISPLAY_HEADERS,
    TEMPLATE_HEADERS,
    TEMPLATE_SAMPLE_ROW,
)
from roster_api.services.imports.errors import UnsupportedFileFormatError

TEMPLATE_BASENAME = "player_import_template"
TEMPLATE_SHEET = "Players"

CSV_MEDIA_TYPE = "text/csv"
XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


@dataclass
class TemplateFile:
    file_name: str
    media_type: str
    content: bytes


def build_csv_template() -> bytes:
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(TEMPLATE_HEADERS)
    writer.writerow(TEMPLATE_SAMPLE_ROW)
    return buffer.getvalue().encode("utf-8")


def _xlsx_sample_value(value: str):
    # Numbers go in as numbers; the date stays text so no locale reformats it.
    return int(value) if value.isdigit() else value


def build_xlsx_template() -> bytes:
    workbook = Workbook()
    sheet = workbook.active
    sheet.title = TEMPLATE_SHEET

    sheet.append(TEMPLATE_DISPLAY_HEADERS)
    sheet.append([_xlsx_sample_value(v) for v in TEMPLATE_SAMPLE_ROW])

    bold = Font(bold=True)
    for column, header in enumerate(TEMPLATE_DISPLAY_HEADERS, start=1):
        sheet.cell(row=1, column=column).font = bold
        sheet.column_dimensions[get_column_letter(column)].width = max(14, len(header) + 2)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def build_template(file_format: str = "csv") -> TemplateFile:
    """
    Build the import template in the requested format.

    Raises:
        UnsupportedFileFormatError: For anything other than csv or xlsx
    """
    file_format = (file_format or "csv").strip().lower().lstrip(".")
    if file_format == "csv":
        return TemplateFile(f"{TEMPLATE_BASENAME}.csv", CSV_MEDIA_TYPE, build_csv_template())
    if file_format == "xlsx":
        return TemplateFile(f"{TEMPLATE_BASENAME}.xlsx", XLSX_MEDIA_TYPE, build_xlsx_template())
    raise UnsupportedFileFormatError(f"{TEMPLATE_BASENAME}.{file_format}", (".csv", ".xlsx"))
