"""Unit tests for ParameterBag."""

from __future__ import annotations

from dataclasses import dataclass

import pytest
from pydantic import BaseModel

from proc_forge.core.enums import ParameterDirection
from proc_forge.core.params import ParameterBag, coerce_parameters


@dataclass
class NewStudent:
    Name: str
    Email: str
    IsActive: bool


class StudentModel(BaseModel):
    Name: str
    Email: str
    IsActive: bool = True


class TestParameterBag:
    def test_from_mapping_keeps_order(self) -> None:
        bag = ParameterBag({"b": 2, "a": 1, "c": 3})
        assert bag.names == ["b", "a", "c"]

    def test_from_dataclass_uses_field_order(self) -> None:
        bag = ParameterBag(NewStudent("Ana", "ana@example.com", True))
        assert bag.names == ["Name", "Email", "IsActive"]
        assert bag.input_values() == {
            "Name": "Ana",
            "Email": "ana@example.com",
            "IsActive": True,
        }

    def test_from_pydantic_model(self) -> None:
        bag = ParameterBag(StudentModel(Name="Ana", Email="ana@example.com"))
        assert bag.names == ["Name", "Email", "IsActive"]

    def test_rejects_arbitrary_objects(self) -> None:
        class Loose:
            def __init__(self) -> None:
                self.Name = "Ana"

        with pytest.raises(TypeError, match="mapping"):
            ParameterBag(Loose())

    def test_rejects_dataclass_type(self) -> None:
        with pytest.raises(TypeError):
            ParameterBag(NewStudent)

    def test_add_strips_marker_prefix(self) -> None:
        bag = ParameterBag().add("@Id", 7)
        assert bag.names == ["Id"]
        assert "@Id" in bag
        assert bag.get("@Id").value == 7

    def test_add_replaces_in_place(self) -> None:
        bag = ParameterBag({"a": 1, "b": 2})
        bag.add("a", 10)
        assert bag.names == ["a", "b"]
        assert bag.get("a").value == 10

    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ValueError):
            ParameterBag().add("@")

    def test_output_slots(self) -> None:
        bag = ParameterBag({"Name": "Ana"}).add_output("NewId", "INT")
        bag.add("Total", 5, direction=ParameterDirection.INPUT_OUTPUT)
        assert bag.input_names == ["Name", "Total"]
        assert bag.output_names == ["NewId", "Total"]
        assert bag.input_values() == {"Name": "Ana", "Total": 5}
        assert bag.positional_values() == ("Ana", None, 5)
        assert bag.get("NewId").db_type == "INT"

    def test_copy_keeps_directions(self) -> None:
        original = ParameterBag({"Name": "Ana"}).add_output("NewId")
        copy = ParameterBag(original)
        copy.add("Extra", 1)
        assert copy.output_names == ["NewId"]
        assert "Extra" not in original

    def test_len_and_iter(self) -> None:
        bag = ParameterBag({"a": 1, "b": 2})
        assert len(bag) == 2
        assert [p.name for p in bag] == ["a", "b"]

    def test_repr_marks_outputs(self) -> None:
        bag = ParameterBag({"a": 1}).add_output("b")
        assert repr(bag) == "ParameterBag(a, b<output>)"


class TestCoerceParameters:
    def test_none_gives_empty_bag(self) -> None:
        assert len(coerce_parameters(None)) == 0

    def test_bag_returned_as_is(self) -> None:
        bag = ParameterBag({"a": 1})
        assert coerce_parameters(bag) is bag

    def test_mapping_wrapped(self) -> None:
        assert coerce_parameters({"a": 1}).names == ["a"]
