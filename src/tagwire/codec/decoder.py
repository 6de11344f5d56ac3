from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from tagwire.codec.checks import Where, check_scalar, check_size, describe, index_path, join_path
from tagwire.core.exceptions import UnknownVariantHandler
from tagwire.core.logger import get_logger
from tagwire.core.values import Record, TaggedRecord, UnrecognizedVariant
from tagwire.models.schema_config import (
    ArrayField,
    FieldSpec,
    FlagField,
    ObjectField,
    RecordRefField,
    UnionRefField,
)
from tagwire.schemas.registry import ResolvedSchema

logger = get_logger(__name__)


class Decoder:
    """Turns parsed JSON values into immutable :class:`Record` trees.

    Stateless apart from its configuration, so one instance may serve many
    threads at once.
    """

    def __init__(
        self,
        schema: ResolvedSchema,
        *,
        retain_unknown_fields: bool = True,
        unknown_variant_handler: Optional[UnknownVariantHandler] = None,
    ):
        self.schema = schema
        self.retain_unknown_fields = retain_unknown_fields
        self.unknown_variant_handler = unknown_variant_handler or UnknownVariantHandler()

    def decode(self, type_name: str, raw: Any) -> Any:
        if self.schema.is_union(type_name):
            return self._decode_union(type_name, raw, "")
        return self._decode_record(type_name, raw, "", Where(type_name))

    def _decode_union(self, union_name: str, raw: Any, path: str) -> Any:
        union = self.schema.union(union_name)
        where = Where(union_name, union=union_name)
        disc = union.discriminator

        if not isinstance(raw, Mapping):
            raise where.mismatch(f"expected object, got {describe(raw)}", None, path)
        if disc not in raw:
            raise where.missing(disc, join_path(path, disc))

        tag = raw[disc]
        if not isinstance(tag, str):
            raise where.mismatch(f"discriminator must be a string, got {describe(tag)}", disc, join_path(path, disc))

        record_name = union.variants.get(tag)
        if record_name is None:
            error = where.unknown_variant(tag, disc, join_path(path, disc))
            return self.unknown_variant_handler.handle(
                error,
                lambda: UnrecognizedVariant(union=union_name, tag=tag, raw=raw),
            )

        logger.debug("Selected variant %s[%r] -> %s at %s", union_name, tag, record_name, path or "<root>")
        return self._decode_record(
            record_name,
            raw,
            path,
            Where(record_name, union=union_name, tag=tag),
            discriminator=disc,
        )

    def _decode_record(
        self,
        record_name: str,
        raw: Any,
        path: str,
        where: Where,
        *,
        discriminator: Optional[str] = None,
    ) -> Record:
        record = self.schema.record(record_name)
        if not isinstance(raw, Mapping):
            raise where.mismatch(f"expected object, got {describe(raw)}", None, path)

        fields: Dict[str, Any] = {}
        for name, spec in record.fields.items():
            field_path = join_path(path, name)
            if name not in raw:
                if not spec.optional:
                    raise where.missing(name, field_path)
                continue
            fields[name] = self._decode_value(spec, raw[name], where, name, field_path)

        extra: Dict[str, Any] = {}
        if self.retain_unknown_fields:
            for key, value in raw.items():
                if key not in record.fields and key != discriminator:
                    extra[key] = value

        if where.tag is not None:
            return TaggedRecord(
                type_name=record_name,
                fields=fields,
                extra=extra,
                union=where.union,
                tag=where.tag,
            )
        return Record(type_name=record_name, fields=fields, extra=extra)

    def _decode_value(self, spec: FieldSpec, value: Any, where: Where, field: str, path: str) -> Any:
        if value is None:
            raise where.mismatch("null is not allowed; omit the field instead", field, path)

        if isinstance(spec, FlagField):
            if value is not True:
                raise where.mismatch(f"flag can only be true, got {value!r}", field, path)
            return True

        if isinstance(spec, RecordRefField):
            return self._decode_record(spec.ref, value, path, Where(spec.ref))

        if isinstance(spec, UnionRefField):
            return self._decode_union(spec.ref, value, path)

        if isinstance(spec, ObjectField):
            if not isinstance(value, Mapping):
                raise where.mismatch(f"expected object, got {describe(value)}", field, path)
            return value

        if isinstance(spec, ArrayField):
            if not isinstance(value, list):
                raise where.mismatch(f"expected array, got {describe(value)}", field, path)
            check_size(spec, value, where, field, path)
            return tuple(
                self._decode_value(spec.items, item, where, field, index_path(path, i))
                for i, item in enumerate(value)
            )

        return check_scalar(spec, value, where, field, path)
