"""tagwire.

Schema-driven codec for the discriminated-union JSON records of a messaging
platform's bot API (payments, Telegram Stars transactions, gifts, checklists,
story areas).

Variant sets and field layouts live in versioned schema documents, so a new
API revision is a data change rather than a code change.

The default codec uses the newest bundled revision (9.1). Some variants are
stricter there than in 7.10: a ``user`` transaction partner must carry
``transaction_type``, so ``{"type": "user", "user": {...}}`` only decodes
with ``CodecConfig(revision="7.10")``.
"""

from tagwire.codec.codec import Codec, decode, encode, get_default_codec, set_default_codec
from tagwire.core.exceptions import (
    DecodeError,
    MissingRequiredFieldError,
    RangeViolationError,
    SchemaError,
    SchemaRegistryError,
    TagwireException,
    TypeMismatchError,
    UnknownVariantError,
    UnknownVariantPolicy,
)
from tagwire.core.values import Record, TaggedRecord, UnrecognizedVariant
from tagwire.models.codec_config import CodecConfig
from tagwire.schemas.registry import SchemaRegistry

__version__ = "0.1.0"

__all__ = [
    "Codec",
    "CodecConfig",
    "DecodeError",
    "MissingRequiredFieldError",
    "RangeViolationError",
    "Record",
    "SchemaError",
    "SchemaRegistry",
    "SchemaRegistryError",
    "TaggedRecord",
    "TagwireException",
    "TypeMismatchError",
    "UnknownVariantError",
    "UnknownVariantPolicy",
    "UnrecognizedVariant",
    "decode",
    "encode",
    "get_default_codec",
    "set_default_codec",
]
