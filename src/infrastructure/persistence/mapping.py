"""Structural entity ↔ table mapping.

EntityMapping is the per-entity field descriptor table: table name, primary
key column and an ordered tuple of FieldDescriptor(name, column, ...).  It
is built once, when a repository is constructed, and then only read.

Three entity shapes are understood:
  - pydantic BaseModel subclasses (frozen models are fine),
  - dataclasses,
  - plain classes with annotated attributes and a no-argument constructor.
"""

from __future__ import annotations

import copy
import dataclasses
import re
import typing
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel

from src.domain.models.columns import Column

T = TypeVar("T")

DEFAULT_ID_COLUMN = "Id"

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)?$")


class MappingError(TypeError):
    """The entity type cannot be mapped to a table."""


@dataclass(frozen=True)
class FieldDescriptor:
    name: str
    column: str
    annotation: Any = None
    primary_key: bool = False


class EntityMapping(Generic[T]):
    """Table binding for one entity type.

    table_name: explicit override > ``__tablename__`` > class name.
    id_column: explicit override > field marked ``Column(primary_key=True)`` >
    field named "id" (any case) > DEFAULT_ID_COLUMN.  The result must
    name a mapped column.
    """

    def __init__(
        self,
        entity_type: type[T],
        table_name: str | None = None,
        id_column: str | None = None,
    ) -> None:
        self.entity_type = entity_type
        self.fields: tuple[FieldDescriptor, ...] = _describe_fields(entity_type)
        if not self.fields:
            raise MappingError(f"{entity_type.__name__} has no mappable fields")

        self.table_name = _check_identifier(
            table_name or getattr(entity_type, "__tablename__", None) or entity_type.__name__
        )
        self._by_column = {f.column.lower(): f for f in self.fields}

        wanted = id_column or _default_id_column(self.fields)
        id_field = self._by_column.get(wanted.lower())
        if id_field is None:
            raise MappingError(
                f"id column {wanted!r} is not a field of {entity_type.__name__}; "
                "name a field 'id' or mark one with Column(primary_key=True)"
            )
        self.id_field = id_field

    @property
    def id_column(self) -> str:
        return self.id_field.column

    @property
    def columns(self) -> list[str]:
        return [f.column for f in self.fields]

    @property
    def non_key_fields(self) -> list[FieldDescriptor]:
        return [f for f in self.fields if f is not self.id_field]

    # ── entity ↔ values ──────────────────────────────────────────────────── #

    def get_id(self, entity: T) -> Any:
        return getattr(entity, self.id_field.name)

    def to_values(self, entity: T, *, include_id: bool = True) -> dict[str, Any]:
        """Ordered column → value map read from the entity."""
        fields = self.fields if include_id else self.non_key_fields
        return {f.column: getattr(entity, f.name) for f in fields}

    def from_row(self, row: Mapping[str, Any]) -> T:
        """Build an entity from a result row, matching columns case-insensitively."""
        values = {}
        for key, value in row.items():
            descriptor = self._by_column.get(str(key).lower())
            if descriptor is not None:
                values[descriptor.name] = value
        return self._construct(values)

    def with_id(self, entity: T, id_value: Any) -> T:
        """Return a copy of entity carrying id_value."""
        changes = {self.id_field.name: id_value}
        if isinstance(entity, BaseModel):
            return entity.model_copy(update=changes)
        if dataclasses.is_dataclass(entity):
            return dataclasses.replace(entity, **changes)
        clone = copy.copy(entity)
        setattr(clone, self.id_field.name, id_value)
        return clone

    def _construct(self, values: dict[str, Any]) -> T:
        entity_type = self.entity_type
        if issubclass(entity_type, BaseModel):
            return entity_type.model_validate(values)
        if dataclasses.is_dataclass(entity_type):
            return entity_type(**values)
        entity = entity_type()
        for name, value in values.items():
            setattr(entity, name, value)
        return entity

    def __repr__(self) -> str:
        return (
            f"EntityMapping({self.entity_type.__name__}, table={self.table_name!r}, "
            f"id={self.id_column!r}, columns={self.columns!r})"
        )


def _describe_fields(entity_type: type) -> tuple[FieldDescriptor, ...]:
    if not isinstance(entity_type, type):
        raise MappingError(f"entity type must be a class, got {entity_type!r}")

    if issubclass(entity_type, BaseModel):
        return tuple(
            _descriptor(name, info.annotation, _marker(info.metadata))
            for name, info in entity_type.model_fields.items()
        )

    hints = typing.get_type_hints(entity_type, include_extras=True)
    if dataclasses.is_dataclass(entity_type):
        descriptors = []
        for f in dataclasses.fields(entity_type):
            marker = _marker(getattr(hints.get(f.name), "__metadata__", ()))
            if marker is None and ("column" in f.metadata or "primary_key" in f.metadata):
                marker = Column(
                    name=f.metadata.get("column"),
                    primary_key=bool(f.metadata.get("primary_key", False)),
                )
            descriptors.append(_descriptor(f.name, hints.get(f.name), marker))
        return tuple(descriptors)

    return tuple(
        _descriptor(name, hint, _marker(getattr(hint, "__metadata__", ())))
        for name, hint in hints.items()
        if not name.startswith("_") and typing.get_origin(hint) is not ClassVar
    )


def _descriptor(name: str, annotation: Any, marker: Column | None) -> FieldDescriptor:
    column = (marker.name if marker else None) or name
    return FieldDescriptor(
        name=name,
        column=_check_identifier(column),
        annotation=annotation,
        primary_key=bool(marker and marker.primary_key),
    )


def _marker(metadata: Any) -> Column | None:
    return next((m for m in metadata if isinstance(m, Column)), None)


def _default_id_column(fields: tuple[FieldDescriptor, ...]) -> str:
    for f in fields:
        if f.primary_key:
            return f.column
    for f in fields:
        if f.name.lower() == "id":
            return f.column
    return DEFAULT_ID_COLUMN


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise MappingError(f"{name!r} is not a valid SQL identifier")
    return name
