"""Ports for decoding uploaded registry files."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rollcall.domain.model import FileFormat
    from rollcall.domain.registry_import.records import (
        ColumnMap,
        ImportContext,
        NormalizedRows,
        RawRow,
    )


@runtime_checkable
class RegistryFileParser(Protocol):
    """Turns an uploaded spreadsheet into normalized candidate records, step by step."""

    def read(self, data: bytes, file_format: FileFormat) -> Sequence[RawRow]:
        """Decode ``data``; the first row returned is the header row."""
        ...

    def resolve(self, header: RawRow) -> ColumnMap: ...

    def normalize(
        self,
        rows: Sequence[RawRow],
        column_map: ColumnMap,
        context: ImportContext,
    ) -> NormalizedRows: ...
