from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Optional, Sized, Type

from tagwire.core.exceptions import (
    DecodeError,
    MissingRequiredFieldError,
    RangeViolationError,
    TypeMismatchError,
    UnknownVariantError,
)
from tagwire.models.schema_config import (
    ArrayField,
    BooleanField,
    FieldSpec,
    IntegerField,
    NumberField,
    StringField,
)


def join_path(path: str, name: str) -> str:
    return f"{path}.{name}" if path else name


def index_path(path: str, index: int) -> str:
    return f"{path}[{index}]"


@dataclass(frozen=True)
class Where:
    """Which record (and which union variant, if any) a value belongs to."""

    type_name: str
    union: Optional[str] = None
    tag: Optional[str] = None

    def error(
        self,
        cls: Type[DecodeError],
        reason: str,
        *,
        field: Optional[str] = None,
        path: str = "",
    ) -> DecodeError:
        return cls(reason, type_name=self.type_name, union=self.union, tag=self.tag, field=field, path=path)

    def missing(self, field: str, path: str) -> DecodeError:
        return self.error(MissingRequiredFieldError, "required field is absent", field=field, path=path)

    def mismatch(self, reason: str, field: Optional[str], path: str) -> DecodeError:
        return self.error(TypeMismatchError, reason, field=field, path=path)

    def out_of_range(self, reason: str, field: Optional[str], path: str) -> DecodeError:
        return self.error(RangeViolationError, reason, field=field, path=path)

    def unknown_variant(self, tag: Any, field: str, path: str) -> UnknownVariantError:
        return UnknownVariantError(
            "unknown discriminant value",
            type_name=self.type_name,
            union=self.union,
            tag=tag,
            field=field,
            path=path,
        )


def describe(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    return type(value).__name__


def _check_bounds(spec: Any, value: Any, where: Where, field: Optional[str], path: str) -> None:
    if spec.minimum is not None and value < spec.minimum:
        raise where.out_of_range(f"{value} is below the minimum {spec.minimum}", field, path)
    if spec.maximum is not None and value > spec.maximum:
        raise where.out_of_range(f"{value} is above the maximum {spec.maximum}", field, path)


def check_size(spec: ArrayField, items: Sized, where: Where, field: Optional[str], path: str) -> None:
    size = len(items)
    if spec.min_items is not None and size < spec.min_items:
        raise where.out_of_range(f"{size} items, expected at least {spec.min_items}", field, path)
    if spec.max_items is not None and size > spec.max_items:
        raise where.out_of_range(f"{size} items, expected at most {spec.max_items}", field, path)


def check_scalar(spec: FieldSpec, value: Any, where: Where, field: Optional[str], path: str) -> Any:
    """Validate a string/integer/number/boolean value; returns it unchanged.

    Integers must be exact ints: floats (even integral ones), numeric strings
    and booleans are rejected so that money amounts are never rounded.
    """
    if isinstance(spec, StringField):
        if not isinstance(value, str):
            raise where.mismatch(f"expected string, got {describe(value)}", field, path)
        if spec.choices is not None and value not in spec.choices:
            raise where.mismatch(f"{value!r} is not one of {spec.choices}", field, path)
        if spec.min_length is not None and len(value) < spec.min_length:
            raise where.out_of_range(f"length {len(value)} is below {spec.min_length}", field, path)
        if spec.max_length is not None and len(value) > spec.max_length:
            raise where.out_of_range(f"length {len(value)} is above {spec.max_length}", field, path)
        return value

    if isinstance(spec, IntegerField):
        if isinstance(value, bool) or not isinstance(value, int):
            raise where.mismatch(f"expected integer, got {describe(value)}", field, path)
        _check_bounds(spec, value, where, field, path)
        return value

    if isinstance(spec, NumberField):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise where.mismatch(f"expected number, got {describe(value)}", field, path)
        if isinstance(value, float) and not math.isfinite(value):
            raise where.mismatch(f"expected a finite number, got {value}", field, path)
        _check_bounds(spec, value, where, field, path)
        return value

    if isinstance(spec, BooleanField):
        if not isinstance(value, bool):
            raise where.mismatch(f"expected boolean, got {describe(value)}", field, path)
        return value

    raise TypeError(f"{type(spec).__name__} is not a scalar field kind")
