"""Tests for decomposing records into parameters and mapping rows back onto schemas."""

from dataclasses import dataclass, field
from typing import Any, NamedTuple, Optional, TypedDict

import attrs
import msgspec
import pytest
from pydantic import BaseModel

from fluidsql.exceptions import FluidSQLError
from fluidsql.utils.schema import FieldMapper, SchemaFieldMapper, to_schema
from fluidsql.utils.type_guards import schema_dump


@dataclass
class PersonDataclass:
    id: int
    first_name: str
    nickname: Optional[str] = None
    tags: list = field(default_factory=list, init=False)


class PersonModel(BaseModel):
    id: int
    first_name: str
    nickname: Optional[str] = None


class PersonStruct(msgspec.Struct):
    id: int
    first_name: str
    nickname: Optional[str] = None


@attrs.define
class PersonAttrs:
    id: int
    first_name: str
    nickname: Optional[str] = None


class PersonDict(TypedDict):
    id: int
    first_name: str


class PersonTuple(NamedTuple):
    id: int
    FirstName: str


class PlainPerson:
    def __init__(self) -> None:
        self.Id = 3
        self.FirstName = "Ada"
        self._secret = "hidden"


ROW = {"Id": 1, "FirstName": "Ada", "Nickname": None, "LastLogin": "2024-01-01"}


def test_default_mapper_satisfies_protocol() -> None:
    assert isinstance(SchemaFieldMapper(), FieldMapper)


@pytest.mark.parametrize(
    "record",
    [
        PersonDataclass(1, "Ada"),
        PersonModel(id=1, first_name="Ada"),
        PersonStruct(1, "Ada"),
        PersonAttrs(1, "Ada"),
        {"id": 1, "first_name": "Ada", "nickname": None},
    ],
    ids=["dataclass", "pydantic", "msgspec", "attrs", "mapping"],
)
def test_to_fields(record: Any) -> None:
    fields = SchemaFieldMapper().to_fields(record)

    assert fields["id"] == 1
    assert fields["first_name"] == "Ada"
    assert fields["nickname"] is None


def test_to_fields_normalizes_names() -> None:
    assert SchemaFieldMapper().to_fields(PersonTuple(2, "Grace")) == {"id": 2, "first_name": "Grace"}


def test_to_fields_plain_object_skips_private_attributes() -> None:
    assert SchemaFieldMapper().to_fields(PlainPerson()) == {"id": 3, "first_name": "Ada"}


def test_schema_dump_rejects_unsupported_values() -> None:
    with pytest.raises(TypeError):
        schema_dump(42)


@pytest.mark.parametrize(
    ("schema_type", "expected"),
    [
        (PersonDataclass, PersonDataclass(1, "Ada")),
        (PersonModel, PersonModel(id=1, first_name="Ada")),
        (PersonStruct, PersonStruct(1, "Ada")),
        (PersonAttrs, PersonAttrs(1, "Ada")),
        (PersonDict, {"id": 1, "first_name": "Ada"}),
    ],
    ids=["dataclass", "pydantic", "msgspec", "attrs", "typed_dict"],
)
def test_to_record_ignores_unmatched_columns(schema_type: Any, expected: Any) -> None:
    assert SchemaFieldMapper().to_record(ROW, schema_type) == expected


def test_to_record_with_custom_converter() -> None:
    mapper = SchemaFieldMapper(str.lower)
    record = mapper.to_record({"ID": 5, "FIRST_NAME": "Alan"}, PersonDataclass)
    assert record == PersonDataclass(5, "Alan")


def test_to_schema_passthrough() -> None:
    data = {"id": 1}
    assert to_schema(data) is data
    assert to_schema(data, schema_type=dict) is data


def test_to_schema_unsupported_type() -> None:
    with pytest.raises(FluidSQLError):
        to_schema({"id": 1}, schema_type=int)
