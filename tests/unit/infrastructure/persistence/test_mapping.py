"""Tests for EntityMapping over pydantic, dataclass and plain-class entities."""

from dataclasses import dataclass, field
from typing import Annotated, ClassVar

import pytest
from pydantic import BaseModel

from src.domain.models.columns import Column
from src.domain.models.users import User
from src.infrastructure.persistence.mapping import EntityMapping, MappingError


@dataclass
class Person:
    Id: int | None = None
    Name: str | None = None
    Age: int = 0


@dataclass(frozen=True)
class Invoice:
    number: int = field(default=0, metadata={"primary_key": True})
    total: float = field(default=0.0, metadata={"column": "total_amount"})


class Tag:
    __tablename__: ClassVar[str] = "tags"
    _cache: dict

    id: int
    label: str


class Sku(BaseModel):
    code: Annotated[str, Column(name="sku_code", primary_key=True)]
    price: int


# --- table and key resolution ---

def test_pydantic_table_name_from_tablename():
    assert EntityMapping(User).table_name == "users"


def test_table_name_falls_back_to_class_name():
    assert EntityMapping(Person).table_name == "Person"


def test_table_name_override_wins():
    assert EntityMapping(Person, table_name="people").table_name == "people"


def test_id_column_found_by_name_case_insensitively():
    assert EntityMapping(Person).id_column == "Id"


def test_id_column_from_dataclass_metadata():
    assert EntityMapping(Invoice).id_column == "number"


def test_id_column_from_annotated_marker():
    assert EntityMapping(Sku).id_column == "sku_code"


def test_id_column_override():
    assert EntityMapping(Person, id_column="Name").id_column == "Name"


def test_unknown_id_column_raises():
    with pytest.raises(MappingError):
        EntityMapping(Person, id_column="missing")


def test_entity_without_id_raises():
    class NoKey:
        label: str

    with pytest.raises(MappingError):
        EntityMapping(NoKey)


def test_invalid_table_name_raises():
    with pytest.raises(MappingError):
        EntityMapping(Person, table_name="Person; DROP TABLE x")


def test_schema_qualified_table_name_allowed():
    assert EntityMapping(Person, table_name="dbo.Person").table_name == "dbo.Person"


def test_non_class_entity_raises():
    with pytest.raises(MappingError):
        EntityMapping("Person")  # type: ignore[arg-type]


def test_mapping_error_is_type_error():
    assert issubclass(MappingError, TypeError)


# --- columns ---

def test_pydantic_columns_in_declaration_order():
    assert EntityMapping(User).columns == [
        "id", "name", "email", "description", "created_date", "updated_date", "is_active",
    ]


def test_dataclass_column_rename_from_metadata():
    assert EntityMapping(Invoice).columns == ["number", "total_amount"]


def test_plain_class_skips_private_and_classvar_attributes():
    assert EntityMapping(Tag).columns == ["id", "label"]


def test_non_key_fields_exclude_id():
    assert [f.column for f in EntityMapping(Person).non_key_fields] == ["Name", "Age"]


# --- values ---

def test_to_values_reads_columns():
    values = EntityMapping(Person).to_values(Person(Id=1, Name="Ada", Age=36))
    assert values == {"Id": 1, "Name": "Ada", "Age": 36}


def test_to_values_without_id():
    values = EntityMapping(Person).to_values(Person(Id=1, Name="Ada", Age=36), include_id=False)
    assert values == {"Name": "Ada", "Age": 36}


def test_to_values_uses_renamed_column():
    assert EntityMapping(Invoice).to_values(Invoice(7, 9.5)) == {"number": 7, "total_amount": 9.5}


def test_get_id():
    assert EntityMapping(Person).get_id(Person(Id=5)) == 5


def test_from_row_matches_columns_case_insensitively():
    person = EntityMapping(Person).from_row({"id": 3, "NAME": "Ada", "age": 36})
    assert person == Person(Id=3, Name="Ada", Age=36)


def test_from_row_ignores_unknown_columns():
    person = EntityMapping(Person).from_row({"Id": 3, "Name": "Ada", "Age": 1, "extra": "x"})
    assert person.Name == "Ada"


def test_from_row_builds_pydantic_model():
    sku = EntityMapping(Sku).from_row({"sku_code": "A-1", "price": 10})
    assert sku == Sku(code="A-1", price=10)


def test_from_row_builds_plain_class():
    tag = EntityMapping(Tag).from_row({"id": 1, "label": "red"})
    assert (tag.id, tag.label) == (1, "red")


def test_with_id_copies_frozen_pydantic_model():
    user = User.create("Ada", "ada@example.com")
    saved = EntityMapping(User).with_id(user, 9)
    assert saved.id == 9
    assert user.id is None


def test_with_id_copies_dataclass():
    person = Person(Name="Ada", Age=36)
    saved = EntityMapping(Person).with_id(person, 4)
    assert saved == Person(Id=4, Name="Ada", Age=36)
    assert person.Id is None


def test_primary_key_marker_wins_over_field_named_id():
    @dataclass
    class Ledger:
        id: str = ""
        entry_no: int = field(default=0, metadata={"primary_key": True})

    assert EntityMapping(Ledger).id_column == "entry_no"


def test_primary_key_marker_wins_on_pydantic_model():
    class Shipment(BaseModel):
        id: str
        tracking: Annotated[str, Column(primary_key=True)]

    assert EntityMapping(Shipment).id_column == "tracking"
