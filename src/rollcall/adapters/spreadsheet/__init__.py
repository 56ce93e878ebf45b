"""Spreadsheet adapter: decode uploads, resolve headers, normalize rows, export."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .export import EXPORT_HEADERS, write_registry_workbook
from .headers import DEFAULT_ALIAS_TABLE, AliasTable, normalize_header, resolve_columns
from .reader import detect_format, read_rows
from .translator import normalize_row, normalize_rows

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rollcall.domain.model import FileFormat
    from rollcall.domain.registry_import.records import (
        ColumnMap,
        ImportContext,
        NormalizedRows,
        RawRow,
    )


class SpreadsheetParser:
    """``RegistryFileParser`` backed by CSV/openpyxl decoding and an alias table."""

    def __init__(self, alias_table: AliasTable = DEFAULT_ALIAS_TABLE) -> None:
        self.alias_table = alias_table

    def read(self, data: bytes, file_format: FileFormat) -> Sequence[RawRow]:
        return read_rows(data, file_format)

    def resolve(self, header: RawRow) -> ColumnMap:
        return resolve_columns(header, self.alias_table)

    def normalize(
        self,
        rows: Sequence[RawRow],
        column_map: ColumnMap,
        context: ImportContext,
    ) -> NormalizedRows:
        return normalize_rows(rows, column_map, context)


__all__ = [
    "DEFAULT_ALIAS_TABLE",
    "EXPORT_HEADERS",
    "AliasTable",
    "SpreadsheetParser",
    "detect_format",
    "normalize_header",
    "normalize_row",
    "normalize_rows",
    "read_rows",
    "resolve_columns",
    "write_registry_workbook",
]

if TYPE_CHECKING:
    from rollcall.domain.ports import RegistryFileParser

    _parser_check: RegistryFileParser = SpreadsheetParser()
