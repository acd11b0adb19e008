"""Unit tests for ModelMapper and resolve_mapper."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from pydantic import BaseModel

from proc_forge.core.exceptions import ColumnMismatchError
from proc_forge.mapping.model import Mapper, ModelMapper, resolve_mapper


@dataclass
class StudentRow:
    Id: int
    Name: str
    tags: list[str] = field(default_factory=list, init=False)


class StudentModel(BaseModel):
    Id: int
    Name: str


class StudentPlain:
    def __init__(self, Id: int, Name: str) -> None:
        self.Id = Id
        self.Name = Name


class UpperNames:
    def map_one(self, row: dict[str, Any]) -> str:
        return str(row["Name"]).upper()

    def map_many(self, rows: list[dict[str, Any]]) -> list[str]:
        return [self.map_one(row) for row in rows]


class TestModelMapper:
    def test_dataclass_ignores_extra_columns(self) -> None:
        mapper = ModelMapper(StudentRow)
        result = mapper.map_one({"Id": 1, "Name": "Ana", "RowVersion": 9, "tags": ["x"]})
        assert result == StudentRow(1, "Ana")
        assert result.tags == []

    def test_pydantic(self) -> None:
        result = ModelMapper(StudentModel).map_one({"Id": "2", "Name": "Ben"})
        assert result == StudentModel(Id=2, Name="Ben")

    def test_pydantic_missing_field(self) -> None:
        with pytest.raises(ColumnMismatchError, match="Name"):
            ModelMapper(StudentModel).map_one({"Id": 2})

    def test_plain_class(self) -> None:
        result = ModelMapper(StudentPlain).map_one({"Id": 3, "Name": "Cy"})
        assert (result.Id, result.Name) == (3, "Cy")

    def test_dataclass_missing_field(self) -> None:
        with pytest.raises(ColumnMismatchError, match="StudentRow"):
            ModelMapper(StudentRow).map_one({"Id": 1})

    def test_aliases(self) -> None:
        mapper = ModelMapper(StudentRow, aliases={"student_id": "Id", "student_name": "Name"})
        assert mapper.map_one({"student_id": 4, "student_name": "Di"}) == StudentRow(4, "Di")

    def test_map_many(self) -> None:
        rows = [{"Id": 1, "Name": "Ana"}, {"Id": 2, "Name": "Ben"}]
        assert [s.Name for s in ModelMapper(StudentRow).map_many(rows)] == ["Ana", "Ben"]


class TestResolveMapper:
    def test_none(self) -> None:
        assert resolve_mapper(None) is None

    def test_class_wrapped(self) -> None:
        mapper = resolve_mapper(StudentRow)
        assert isinstance(mapper, ModelMapper)
        assert mapper.target_class is StudentRow

    def test_mapper_instance_used_as_is(self) -> None:
        mapper = UpperNames()
        assert isinstance(mapper, Mapper)
        assert resolve_mapper(mapper) is mapper

    def test_rejects_other_values(self) -> None:
        with pytest.raises(TypeError):
            resolve_mapper("StudentRow")
