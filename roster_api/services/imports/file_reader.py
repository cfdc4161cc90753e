"""
Read uploaded roster files into a header row plus string data rows.

Supported formats:
- .csv: comma delimited, quoted fields, UTF-8 (BOM tolerated) with a
  Latin-1 fallback
- .xlsx: first worksheet, row 1 holds the headers

Whatever the format, the output is the same: `ImportFile.headers` (trimmed,
unique) and `ImportFile.rows`, each row a list of trimmed strings exactly as
wide as the header row. Library exceptions never escape; they are wrapped in
ImportFileError subclasses.
"""
import csv
import io
import logging
import os
import zipfile
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import BinaryIO, Iterable, List, Sequence, Union

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

from roster_api.services.imports.errors import (
    EmptyImportFileError,
    MalformedFileError,
    UnsupportedFileFormatError,
)

logger = logging.getLogger(__name__)

CSV_EXTENSION = ".csv"
XLSX_EXTENSION = ".xlsx"
SUPPORTED_EXTENSIONS = (CSV_EXTENSION, XLSX_EXTENSION)


@dataclass
class ImportFile:
    """Tabular content of an uploaded file."""
    headers: List[str]
    rows: List[List[str]] = field(default_factory=list)


def file_extension(file_name: str) -> str:
    """
    Lower-cased extension of a supported file.

    Raises:
        UnsupportedFileFormatError: If the extension is not .csv or .xlsx
    """
    extension = os.path.splitext(file_name or "")[1].lower()
    if extension not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFileFormatError(file_name, SUPPORTED_EXTENSIONS)
    return extension


def read_content(source: Union[bytes, BinaryIO]) -> bytes:
    """Buffer a stream (seekable or not) into memory once."""
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)
    if getattr(source, "seekable", None) and source.seekable():
        source.seek(0)
    return source.read()


def read_import_file(source: Union[bytes, BinaryIO], file_name: str) -> ImportFile:
    """
    Read a .csv or .xlsx upload.

    Args:
        source: Raw file bytes or a binary stream
        file_name: Original file name; its extension selects the reader

    Raises:
        UnsupportedFileFormatError: Unknown extension
        MalformedFileError: Content cannot be decoded or parsed
        EmptyImportFileError: No header row or no data rows
    """
    extension = file_extension(file_name)
    content = read_content(source)

    if extension == CSV_EXTENSION:
        import_file = _read_csv(content)
    else:
        import_file = _read_xlsx(content)

    if not import_file.rows:
        raise EmptyImportFileError()

    logger.debug(
        f"Read {len(import_file.rows)} data rows from '{file_name}'",
        extra={"file_name": file_name, "columns": len(import_file.headers)},
    )
    return import_file


# ============================================================================
# Headers and rows
# ============================================================================

def unique_headers(raw_headers: Iterable[object]) -> List[str]:
    """
    Trim headers and make them unique (case-insensitively).

    Empty headers become "Column{n}"; a repeated header becomes "{name}_{n}",
    with n the first suffix not already taken.
    """
    headers: List[str] = []
    taken = set()
    for raw in raw_headers:
        base = "" if raw is None else str(raw).strip()
        name = base
        index = 1
        while not name or name.casefold() in taken:
            name = f"Column{index}" if not base else f"{base}_{index}"
            index += 1
        taken.add(name.casefold())
        headers.append(name)
    return headers


def _fit_row(cells: Sequence[str], width: int) -> List[str]:
    """Pad or truncate a row to the header width."""
    cells = list(cells[:width])
    if len(cells) < width:
        cells.extend([""] * (width - len(cells)))
    return cells


def _is_blank(cells: Sequence[str]) -> bool:
    return all(not cell for cell in cells)


# ============================================================================
# CSV
# ============================================================================

def _decode(content: bytes) -> str:
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("CSV is not valid UTF-8, falling back to Latin-1")
        return content.decode("latin-1")


def _read_csv(content: bytes) -> ImportFile:
    text = _decode(content)
    reader = csv.reader(io.StringIO(text, newline=""), delimiter=",", strict=True)

    try:
        records = [[cell.strip() for cell in record] for record in reader]
    except csv.Error as e:
        raise MalformedFileError(f"Could not parse CSV file (line {reader.line_num}): {e}") from e

    records = [record for record in records if not _is_blank(record)]
    if not records:
        raise EmptyImportFileError("The file is empty.")

    headers = unique_headers(records[0])
    rows = [_fit_row(record, len(headers)) for record in records[1:]]
    return ImportFile(headers=headers, rows=rows)


# ============================================================================
# XLSX
# ============================================================================

def render_cell(value: object) -> str:
    """Render a worksheet cell as the text a user would have typed."""
    if value is None:
        return ""
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _read_xlsx(content: bytes) -> ImportFile:
    try:
        workbook = openpyxl.load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise MalformedFileError(f"Could not open workbook: {e}") from e

    try:
        if not workbook.worksheets:
            raise EmptyImportFileError("The workbook has no worksheets.")
        sheet = workbook.worksheets[0]
        rows_iter = sheet.iter_rows(values_only=True)

        header_values = next(rows_iter, None)
        if header_values is None or _is_blank([render_cell(v) for v in header_values]):
            raise EmptyImportFileError("The worksheet has no header row.")
        headers = unique_headers(render_cell(v) for v in header_values)

        rows: List[List[str]] = []
        for values in rows_iter:
            cells = _fit_row([render_cell(v) for v in values], len(headers))
            if not _is_blank(cells):
                rows.append(cells)
    except (EmptyImportFileError, MalformedFileError):
        raise
    except (zipfile.BadZipFile, KeyError, ValueError, TypeError) as e:
        raise MalformedFileError(f"Could not read worksheet: {e}") from e
    finally:
        workbook.close()

    return ImportFile(headers=headers, rows=rows)
