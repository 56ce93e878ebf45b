"""Decode uploaded CSV/XLSX bytes into raw rows."""

from __future__ import annotations

import csv
import io
from logging import getLogger
from pathlib import PurePath
from typing import TYPE_CHECKING
from zipfile import BadZipFile

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from rollcall.domain.model import FileFormat
from rollcall.domain.registry_import.errors import ParseError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from rollcall.domain.registry_import.records import RawRow

log = getLogger(__name__)

_ZIP_MAGIC = b"PK\x03\x04"


def detect_format(filename: str) -> FileFormat:
    suffix = PurePath(filename).suffix.lower().lstrip(".")
    try:
        return FileFormat(suffix)
    except ValueError:
        raise ParseError(
            f"Unsupported file type {suffix or '(none)'!r}; expected .csv or .xlsx"
        ) from None


def read_rows(data: bytes, file_format: FileFormat) -> list[RawRow]:
    """Return the non-blank rows of ``data``; the first one is the header row.

    Raises ``ParseError`` when the bytes cannot be decoded as ``file_format`` or
    when there is no data row below the header.
    """

    if file_format is FileFormat.XLSX:
        rows = _read_xlsx(data)
    else:
        rows = _read_csv(data)
    rows = [row for row in rows if not _is_blank(row)]
    if len(rows) < 2:
        raise ParseError("Empty file: expected a header row and at least one data row")
    log.debug("Read %s data rows from %s upload", len(rows) - 1, file_format)
    return rows


def _read_csv(data: bytes) -> list[RawRow]:
    if data.startswith(_ZIP_MAGIC):
        raise ParseError("File looks like an XLSX workbook, not CSV")
    try:
        text = data.decode("utf-8-sig")
    except UnicodeDecodeError:
        text = data.decode("latin-1")
    try:
        return [tuple(row) for row in csv.reader(io.StringIO(text, newline=""))]
    except csv.Error as exc:
        raise ParseError(f"Could not read CSV: {exc}") from exc


def _read_xlsx(data: bytes) -> list[RawRow]:
    try:
        workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    except (BadZipFile, InvalidFileException, KeyError, OSError, ValueError) as exc:
        raise ParseError(f"Could not read XLSX workbook: {exc}") from exc
    try:
        if not workbook.worksheets:
            raise ParseError("Workbook has no worksheets")
        sheet = workbook.worksheets[0]
        return [tuple(row) for row in sheet.iter_rows(values_only=True)]
    finally:
        workbook.close()


def _is_blank(row: Iterable[object]) -> bool:
    return all(cell is None or (isinstance(cell, str) and not cell.strip()) for cell in row)
