from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from tagwire.codec.checks import Where, check_scalar, check_size, describe, index_path, join_path
from tagwire.core.values import Record, TaggedRecord, UnrecognizedVariant, thaw
from tagwire.models.schema_config import (
    ArrayField,
    FieldSpec,
    FlagField,
    ObjectField,
    RecordRefField,
    UnionRefField,
)
from tagwire.schemas.registry import ResolvedSchema

_OMIT = object()


class Encoder:
    """Turns :class:`Record` trees back into plain JSON-ready dicts and lists.

    Values are re-validated against the schema on the way out, so a
    hand-built record fails here with the same errors a decode would raise.
    """

    def __init__(self, schema: ResolvedSchema, *, retain_unknown_fields: bool = True):
        self.schema = schema
        self.retain_unknown_fields = retain_unknown_fields

    def encode(self, value: Any) -> Dict[str, Any]:
        if isinstance(value, UnrecognizedVariant):
            return thaw(value.raw)
        if isinstance(value, TaggedRecord):
            return self._encode_tagged(value, "")
        if isinstance(value, Record):
            return self._encode_record(value, "", Where(value.type_name))
        raise TypeError(f"Cannot encode {type(value).__name__}; expected a Record or UnrecognizedVariant")

    def _encode_tagged(self, value: TaggedRecord, path: str) -> Dict[str, Any]:
        union = self.schema.union(value.union)
        where = Where(value.type_name, union=value.union, tag=value.tag)
        disc = union.discriminator

        record_name = union.variants.get(value.tag)
        if record_name is None:
            raise where.unknown_variant(value.tag, disc, join_path(path, disc))
        if record_name != value.type_name:
            raise where.mismatch(
                f"variant {value.tag!r} of {value.union} is {record_name}, not {value.type_name}",
                disc,
                join_path(path, disc),
            )
        return self._encode_record(value, path, where, discriminator=(disc, value.tag))

    def _encode_record(
        self,
        value: Record,
        path: str,
        where: Where,
        *,
        discriminator: Optional[tuple] = None,
    ) -> Dict[str, Any]:
        record = self.schema.record(value.type_name)
        out: Dict[str, Any] = {}
        if discriminator is not None:
            out[discriminator[0]] = discriminator[1]

        for name in value.fields:
            if name not in record.fields:
                raise where.mismatch(f"field is not declared by {value.type_name}", name, join_path(path, name))

        for name, spec in record.fields.items():
            field_path = join_path(path, name)
            if name not in value.fields:
                if not spec.optional:
                    raise where.missing(name, field_path)
                continue
            encoded = self._encode_value(spec, value.fields[name], where, name, field_path)
            if encoded is not _OMIT:
                out[name] = encoded

        if self.retain_unknown_fields:
            for key, extra_value in value.extra.items():
                if key not in out and key not in record.fields:
                    out[key] = thaw(extra_value)
        return out

    def _encode_value(self, spec: FieldSpec, value: Any, where: Where, field: str, path: str) -> Any:
        if value is None:
            raise where.mismatch("null is not allowed; leave the field absent instead", field, path)

        if isinstance(spec, FlagField):
            if value is True:
                return True
            if value is False:
                return _OMIT
            raise where.mismatch(f"expected boolean flag, got {describe(value)}", field, path)

        if isinstance(spec, RecordRefField):
            if isinstance(value, TaggedRecord) or not isinstance(value, Record) or value.type_name != spec.ref:
                raise where.mismatch(f"expected {spec.ref} record, got {_name(value)}", field, path)
            return self._encode_record(value, path, Where(spec.ref))

        if isinstance(spec, UnionRefField):
            if isinstance(value, UnrecognizedVariant) and value.union == spec.ref:
                return thaw(value.raw)
            if not isinstance(value, TaggedRecord) or value.union != spec.ref:
                raise where.mismatch(f"expected {spec.ref} variant, got {_name(value)}", field, path)
            return self._encode_tagged(value, path)

        if isinstance(spec, ObjectField):
            if not isinstance(value, Mapping):
                raise where.mismatch(f"expected object, got {describe(value)}", field, path)
            return thaw(value)

        if isinstance(spec, ArrayField):
            if not isinstance(value, (list, tuple)):
                raise where.mismatch(f"expected array, got {describe(value)}", field, path)
            check_size(spec, value, where, field, path)
            return [
                self._encode_value(spec.items, item, where, field, index_path(path, i))
                for i, item in enumerate(value)
            ]

        return check_scalar(spec, value, where, field, path)


def _name(value: Any) -> str:
    if isinstance(value, TaggedRecord):
        return f"{value.union}[{value.tag!r}]"
    if isinstance(value, Record):
        return value.type_name
    if isinstance(value, UnrecognizedVariant):
        return f"unrecognized {value.union}"
    return describe(value)
