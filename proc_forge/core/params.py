"""Procedure parameters.

Parameters arrive as a mapping, a dataclass instance, a pydantic model
instance or a ParameterBag. They are normalized into an ordered ParameterBag
whose declaration order drives positional call syntax. Arbitrary objects are
not reflected over: their attribute order is not a declared schema.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel

from proc_forge.core.enums import ParameterDirection


@dataclass(frozen=True)
class Parameter:
    """One named slot of a procedure call."""

    name: str
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    db_type: Any = None

    @property
    def is_input(self) -> bool:
        return self.direction is not ParameterDirection.OUTPUT

    @property
    def is_output(self) -> bool:
        return self.direction is not ParameterDirection.INPUT


class ParameterBag:
    """Ordered, output-capable parameter collection.

    Adding a name that already exists replaces the slot in place, keeping its
    original position.
    """

    def __init__(self, values: Any = None) -> None:
        self._parameters: dict[str, Parameter] = {}
        if isinstance(values, ParameterBag):
            self._parameters.update(values._parameters)
        elif values is not None:
            for name, value in _declared_items(values):
                self.add(name, value)

    def add(
        self,
        name: str,
        value: Any = None,
        *,
        direction: ParameterDirection = ParameterDirection.INPUT,
        db_type: Any = None,
    ) -> ParameterBag:
        """Add or replace a parameter; returns self so calls can be chained."""
        name = name.lstrip("@")
        if not name:
            raise ValueError("Parameter name must not be empty")
        self._parameters[name] = Parameter(name, value, direction, db_type)
        return self

    def add_output(self, name: str, db_type: Any = None) -> ParameterBag:
        return self.add(name, direction=ParameterDirection.OUTPUT, db_type=db_type)

    @property
    def names(self) -> list[str]:
        """All parameter names in declaration order."""
        return list(self._parameters)

    @property
    def input_names(self) -> list[str]:
        return [p.name for p in self._parameters.values() if p.is_input]

    @property
    def output_names(self) -> list[str]:
        return [p.name for p in self._parameters.values() if p.is_output]

    def input_values(self) -> dict[str, Any]:
        """Values of the input and input/output slots, by name."""
        return {p.name: p.value for p in self._parameters.values() if p.is_input}

    def positional_values(self) -> tuple[Any, ...]:
        """Every slot's value in declaration order, outputs as their current value."""
        return tuple(p.value for p in self._parameters.values())

    def get(self, name: str) -> Parameter:
        return self._parameters[name.lstrip("@")]

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._parameters.values())

    def __len__(self) -> int:
        return len(self._parameters)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lstrip("@") in self._parameters

    def __repr__(self) -> str:
        slots = ", ".join(
            f"{p.name}<{p.direction.value}>" if p.is_output else p.name for p in self
        )
        return f"ParameterBag({slots})"


def _declared_items(values: Any) -> list[tuple[str, Any]]:
    if isinstance(values, Mapping):
        return [(str(k), v) for k, v in values.items()]
    if dataclasses.is_dataclass(values) and not isinstance(values, type):
        return [(f.name, getattr(values, f.name)) for f in dataclasses.fields(values)]
    if isinstance(values, BaseModel):
        return list(values.model_dump().items())
    raise TypeError(
        "Procedure parameters must be a mapping, a dataclass instance, a pydantic "
        f"model or a ParameterBag, not {type(values).__name__}"
    )


def coerce_parameters(parameters: Any) -> ParameterBag:
    """Normalize *parameters* to a ParameterBag.

    * ``None`` -> an empty bag.
    * ``ParameterBag`` -> returned as-is, output slots included.
    * mapping / dataclass / pydantic model -> input slots in declaration order.
    """
    if isinstance(parameters, ParameterBag):
        return parameters
    return ParameterBag(parameters)
