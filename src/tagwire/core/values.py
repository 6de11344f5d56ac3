from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def freeze(value: Any) -> Any:
    """Return a read-only deep copy of a JSON-like value (dicts -> mappingproxy, lists -> tuples)."""
    if isinstance(value, Record):
        return value
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze` for opaque payloads: plain dicts and lists again."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [thaw(v) for v in value]
    return value


@dataclass(frozen=True)
class Record:
    """A decoded plain record.

    ``fields`` holds the schema-declared fields that are present; absent
    optional fields are simply missing from it. ``extra`` holds fields the
    schema does not know about, retained verbatim for forward compatibility.
    """

    type_name: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    extra: Mapping[str, Any] = field(default_factory=dict)

    # Read-only mapping proxies inside; equality only.
    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", freeze(dict(self.fields)))
        object.__setattr__(self, "extra", freeze(dict(self.extra)))

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal attribute lookup fails.
        if name.startswith("__"):
            raise AttributeError(name)
        fields = self.__dict__.get("fields", _EMPTY)
        try:
            return fields[name]
        except KeyError:
            raise AttributeError(f"{self.__dict__.get('type_name', 'Record')} has no field {name!r}") from None

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __contains__(self, name: object) -> bool:
        return name in self.fields

    def __iter__(self) -> Iterator[str]:
        return iter(self.fields)

    def get(self, name: str, default: Any = None) -> Any:
        return self.fields.get(name, default)

    def has(self, name: str) -> bool:
        return name in self.fields

    def __repr__(self) -> str:
        inner = ", ".join(f"{k}={v!r}" for k, v in self.fields.items())
        if self.extra:
            inner += f", extra={{{', '.join(map(repr, self.extra))}}}"
        return f"{self.type_name}({inner})"


@dataclass(frozen=True, repr=False)
class TaggedRecord(Record):
    """A decoded variant of a discriminated union.

    ``tag`` is the discriminant literal and ``type_name`` the variant's record
    schema name (e.g. ``RevenueWithdrawalStateSucceeded``).
    """

    union: str = ""
    tag: str = ""

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{self.union}[{self.tag!r}]:" + super().__repr__()


@dataclass(frozen=True)
class UnrecognizedVariant:
    """Raw payload of a union member whose tag is not in the active variant set.

    Only produced when the caller's unknown-variant policy tolerates unknown
    tags; encodes back to exactly the payload it was decoded from.
    """

    union: str
    tag: Optional[str]
    raw: Mapping[str, Any] = field(default_factory=dict)

    __hash__ = None  # type: ignore[assignment]

    def __post_init__(self) -> None:
        object.__setattr__(self, "raw", freeze(dict(self.raw)))
