from __future__ import annotations

from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, NonNegativeInt, model_validator


# -----------------
# Field kinds
# -----------------


class _FieldBase(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    optional: bool = False
    description: Optional[str] = None


class StringField(_FieldBase):
    kind: Literal["string"] = "string"

    choices: Optional[List[str]] = None
    min_length: Optional[NonNegativeInt] = None
    max_length: Optional[NonNegativeInt] = None

    @model_validator(mode="after")
    def _validate_lengths(self) -> "StringField":
        if self.min_length is not None and self.max_length is not None and self.min_length > self.max_length:
            raise ValueError("min_length must not exceed max_length")
        return self


class IntegerField(_FieldBase):
    """Exact integer; amounts of currency and counts always use this kind."""

    kind: Literal["integer"] = "integer"

    minimum: Optional[int] = None
    maximum: Optional[int] = None

    @model_validator(mode="after")
    def _validate_bounds(self) -> "IntegerField":
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError("minimum must not exceed maximum")
        return self


class NumberField(_FieldBase):
    kind: Literal["number"] = "number"

    minimum: Optional[float] = None
    maximum: Optional[float] = None

    @model_validator(mode="after")
    def _validate_bounds(self) -> "NumberField":
        if self.minimum is not None and self.maximum is not None and self.minimum > self.maximum:
            raise ValueError("minimum must not exceed maximum")
        return self


class BooleanField(_FieldBase):
    kind: Literal["boolean"] = "boolean"


class FlagField(_FieldBase):
    """Flag that is only ever asserted: present with ``true`` or absent."""

    kind: Literal["flag"] = "flag"

    @model_validator(mode="after")
    def _validate_optional(self) -> "FlagField":
        if not self.optional:
            raise ValueError("flags must be optional")
        return self


class RecordRefField(_FieldBase):
    kind: Literal["record"] = "record"

    ref: str


class UnionRefField(_FieldBase):
    kind: Literal["union"] = "union"

    ref: str


class ObjectField(_FieldBase):
    """Opaque JSON object passed through without interpretation."""

    kind: Literal["object"] = "object"


class ArrayField(_FieldBase):
    kind: Literal["array"] = "array"

    items: "FieldSpec"
    min_items: Optional[NonNegativeInt] = None
    max_items: Optional[NonNegativeInt] = None

    @model_validator(mode="after")
    def _validate_items(self) -> "ArrayField":
        if self.items.optional:
            raise ValueError("array items cannot be optional")
        if self.min_items is not None and self.max_items is not None and self.min_items > self.max_items:
            raise ValueError("min_items must not exceed max_items")
        return self


FieldSpec = Annotated[
    Union[
        StringField,
        IntegerField,
        NumberField,
        BooleanField,
        FlagField,
        RecordRefField,
        UnionRefField,
        ObjectField,
        ArrayField,
    ],
    Field(discriminator="kind"),
]

ArrayField.model_rebuild()


# -----------------
# Records and unions
# -----------------


class RecordSchema(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    description: Optional[str] = None
    fields: Dict[str, FieldSpec] = Field(default_factory=dict)

    def required_fields(self) -> List[str]:
        return [name for name, spec in self.fields.items() if not spec.optional]


class UnionSchema(BaseModel):
    """A closed set of variants sharing one string discriminant field.

    ``variants`` maps each discriminant literal to the name of the record
    schema describing the rest of the object.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    description: Optional[str] = None
    discriminator: str = "type"
    variants: Dict[str, str] = Field(default_factory=dict)
    removed_variants: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate_variants(self) -> "UnionSchema":
        overlap = set(self.variants) & set(self.removed_variants)
        if overlap:
            raise ValueError(f"variants both declared and removed: {sorted(overlap)}")
        return self


class SchemaDocument(BaseModel):
    """One revision of the bot API object schema, as stored in YAML/JSON."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    revision: str
    extends: Optional[str] = None
    description: Optional[str] = None

    records: Dict[str, RecordSchema] = Field(default_factory=dict)
    unions: Dict[str, UnionSchema] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _validate_names(self) -> "SchemaDocument":
        clash = set(self.records) & set(self.unions)
        if clash:
            raise ValueError(f"names used for both a record and a union: {sorted(clash)}")
        if self.extends == self.revision:
            raise ValueError("a revision cannot extend itself")
        return self
