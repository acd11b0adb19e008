"""Materialized procedure results, as adapters hand them to the executor."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

Row = dict[str, Any]


@dataclass
class ProcedureResult:
    """Everything one invocation produced.

    Attributes:
        result_sets: Row sets in the order the routine produced them.
        rowcount: Rows affected as reported by the driver, 0 when unknown.
        output_values: Values of the output slots, by parameter name.
    """

    result_sets: list[list[Row]] = field(default_factory=list)
    rowcount: int = 0
    output_values: dict[str, Any] = field(default_factory=dict)

    def first_set(self) -> list[Row]:
        return self.result_sets[0] if self.result_sets else []


def rows_to_dicts(columns: list[str], rows: Iterable[Any]) -> list[Row]:
    """Convert driver rows to dicts.

    Handles both tuple-like rows and dict-like rows from different drivers.
    """
    result: list[Row] = []
    for row in rows:
        if isinstance(row, Mapping):
            result.append(dict(row))
        else:
            result.append(dict(zip(columns, row, strict=True)))
    return result


def pick_outputs(row: Mapping[str, Any] | None, names: Iterable[str]) -> dict[str, Any]:
    """Read output slots from *row* by column name, ignoring case.

    Names absent from the row map to None.
    """
    if row is None:
        return {name: None for name in names}
    folded = {str(key).lower(): value for key, value in row.items()}
    return {name: row[name] if name in row else folded.get(name.lower()) for name in names}
