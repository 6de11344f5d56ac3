from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import ClassVar, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from tagwire.core.exceptions import SchemaError, SchemaRegistryError
from tagwire.core.logger import get_logger
from tagwire.models.schema_config import (
    ArrayField,
    FieldSpec,
    RecordRefField,
    RecordSchema,
    SchemaDocument,
    UnionRefField,
    UnionSchema,
)

logger = get_logger(__name__)


@dataclass(frozen=True)
class ResolvedSchema:
    """A schema revision with inheritance applied and every reference checked.

    Read-only once built; codecs share it freely across threads.
    """

    revision: str
    records: Mapping[str, RecordSchema]
    unions: Mapping[str, UnionSchema]
    lineage: Tuple[str, ...] = ()

    def is_union(self, name: str) -> bool:
        return name in self.unions

    def has_type(self, name: str) -> bool:
        return name in self.records or name in self.unions

    def record(self, name: str) -> RecordSchema:
        try:
            return self.records[name]
        except KeyError as exc:
            raise SchemaError(f"Unknown record type {name!r} in revision {self.revision!r}") from exc

    def union(self, name: str) -> UnionSchema:
        try:
            return self.unions[name]
        except KeyError as exc:
            raise SchemaError(f"Unknown union type {name!r} in revision {self.revision!r}") from exc

    def variant_tags(self, union_name: str) -> List[str]:
        return list(self.union(union_name).variants)


def _version_key(revision: str) -> Tuple[Tuple[int, Union[int, str]], ...]:
    parts = []
    for part in revision.split("."):
        parts.append((0, int(part)) if part.isdigit() else (1, part))
    return tuple(parts)


def _iter_refs(spec: FieldSpec) -> Iterable[FieldSpec]:
    if isinstance(spec, ArrayField):
        yield from _iter_refs(spec.items)
    elif isinstance(spec, (RecordRefField, UnionRefField)):
        yield spec


def resolve_document(document: SchemaDocument, parent: Optional[ResolvedSchema] = None) -> ResolvedSchema:
    """Apply ``extends`` on top of ``parent`` and validate every cross reference."""
    if document.extends and parent is None:
        raise SchemaError(f"Revision {document.revision!r} extends {document.extends!r}, which is not resolved")

    records: Dict[str, RecordSchema] = dict(parent.records) if parent else {}
    records.update(document.records)

    unions: Dict[str, UnionSchema] = dict(parent.unions) if parent else {}
    for name, union in document.unions.items():
        inherited = unions.get(name)
        variants: Dict[str, str] = dict(inherited.variants) if inherited else {}
        for tag in union.removed_variants:
            if tag not in variants:
                raise SchemaError(f"Union {name!r} removes variant {tag!r}, which it never had")
            del variants[tag]
        variants.update(union.variants)
        discriminator = union.discriminator
        if inherited and "discriminator" not in union.model_fields_set:
            discriminator = inherited.discriminator
        unions[name] = UnionSchema(
            description=union.description or (inherited.description if inherited else None),
            discriminator=discriminator,
            variants=variants,
        )

    clash = set(records) & set(unions)
    if clash:
        raise SchemaError(f"Names used for both a record and a union: {sorted(clash)}")

    for union_name, union in unions.items():
        if not union.variants:
            raise SchemaError(f"Union {union_name!r} has no variants")
        for tag, record_name in union.variants.items():
            record = records.get(record_name)
            if record is None:
                raise SchemaError(f"Union {union_name!r} variant {tag!r} names unknown record {record_name!r}")
            if union.discriminator in record.fields:
                raise SchemaError(
                    f"Record {record_name!r} declares the discriminator {union.discriminator!r} of union {union_name!r}"
                )

    for record_name, record in records.items():
        for field_name, spec in record.fields.items():
            for ref in _iter_refs(spec):
                target = records if isinstance(ref, RecordRefField) else unions
                if ref.ref not in target:
                    raise SchemaError(
                        f"{record_name}.{field_name} references unknown {ref.kind} {ref.ref!r}"
                    )

    lineage = (parent.lineage if parent else ()) + (document.revision,)
    return ResolvedSchema(
        revision=document.revision,
        records=MappingProxyType(records),
        unions=MappingProxyType(unions),
        lineage=lineage,
    )


class SchemaRegistry:
    _documents: ClassVar[Dict[str, SchemaDocument]] = {}
    _resolved: ClassVar[Dict[str, ResolvedSchema]] = {}

    @classmethod
    def register(
        cls,
        document: SchemaDocument,
        *,
        overwrite: bool = False,
    ) -> ResolvedSchema:
        revision = document.revision
        if not overwrite and revision in cls._resolved:
            raise SchemaRegistryError(f"Schema already registered for revision={revision!r}")

        parent = None
        if document.extends:
            parent = cls._resolved.get(document.extends)
            if parent is None:
                raise SchemaRegistryError(
                    f"Revision {revision!r} extends {document.extends!r}, which is not registered"
                )

        resolved = resolve_document(document, parent)
        cls._documents[revision] = document
        cls._resolved[revision] = resolved
        logger.info(
            f"Registered schema revision {revision} "
            f"({len(resolved.records)} records, {len(resolved.unions)} unions)"
        )
        return resolved

    @classmethod
    def register_all(cls, documents: Iterable[SchemaDocument], *, overwrite: bool = False) -> List[ResolvedSchema]:
        """Register documents in dependency order, whatever order they are given in."""
        pending = {doc.revision: doc for doc in documents}
        registered: List[ResolvedSchema] = []
        while pending:
            ready = [
                doc for doc in pending.values()
                if not doc.extends or doc.extends not in pending
            ]
            if not ready:
                raise SchemaRegistryError(f"Cyclic 'extends' between revisions {sorted(pending)}")
            for doc in sorted(ready, key=lambda d: _version_key(d.revision)):
                registered.append(cls.register(doc, overwrite=overwrite))
                del pending[doc.revision]
        return registered

    @classmethod
    def get(cls, revision: str) -> ResolvedSchema:
        try:
            return cls._resolved[revision]
        except KeyError as exc:
            raise SchemaRegistryError(f"No schema registered for revision={revision!r}") from exc

    @classmethod
    def try_get(cls, revision: str) -> Optional[ResolvedSchema]:
        return cls._resolved.get(revision)

    @classmethod
    def document(cls, revision: str) -> SchemaDocument:
        try:
            return cls._documents[revision]
        except KeyError as exc:
            raise SchemaRegistryError(f"No schema registered for revision={revision!r}") from exc

    @classmethod
    def revisions(cls) -> List[str]:
        return sorted(cls._resolved, key=_version_key)

    @classmethod
    def latest(cls) -> ResolvedSchema:
        revisions = cls.revisions()
        if not revisions:
            raise SchemaRegistryError("No schema revisions registered")
        return cls._resolved[revisions[-1]]

    @classmethod
    def clear(cls) -> None:
        cls._documents.clear()
        cls._resolved.clear()
