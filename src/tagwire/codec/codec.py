from __future__ import annotations

import json
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Union

from tagwire.bootstrap import load_builtin_schemas
from tagwire.codec.decoder import Decoder
from tagwire.codec.encoder import Encoder
from tagwire.core.exceptions import SchemaError, UnknownVariantError, UnknownVariantHandler
from tagwire.core.logger import configure_root_logger, get_logger, push_revision, reset_revision
from tagwire.core.values import Record, TaggedRecord, UnrecognizedVariant
from tagwire.models.codec_config import CodecConfig
from tagwire.models.schema_config import FlagField
from tagwire.schemas.registry import ResolvedSchema, SchemaRegistry

logger = get_logger(__name__)


class Codec:
    """
    Schema-driven decoder/encoder for bot API records.

    One codec is bound to one resolved schema revision. It holds no mutable
    state after construction, so it can be shared between threads.

    Example:
        >>> from tagwire import Codec
        >>> codec = Codec()  # newest bundled revision
        >>> state = codec.decode("RevenueWithdrawalState", {"type": "pending"})
        >>> state.tag
        'pending'
        >>> codec.encode(state)
        {'type': 'pending'}
    """

    def __init__(
        self,
        schema: Optional[ResolvedSchema] = None,
        *,
        config: Optional[CodecConfig] = None,
        unknown_variant_handler: Optional[UnknownVariantHandler] = None,
    ):
        """
        Initialize the codec.

        Args:
            schema: Resolved schema to use. If not provided, the revision named in
                    ``config`` (or the newest registered one) is looked up in the
                    SchemaRegistry after loading the bundled revisions.
            config: Codec configuration; defaults to ``CodecConfig()``.
            unknown_variant_handler: Overrides the handler built from
                    ``config.unknown_variant``.
        """
        self.config = config or CodecConfig()
        if schema is None:
            load_builtin_schemas()
            if self.config.revision:
                schema = SchemaRegistry.get(self.config.revision)
            else:
                schema = SchemaRegistry.latest()
        self.schema = schema

        handler = unknown_variant_handler or UnknownVariantHandler(
            policy=self.config.unknown_variant,
            logger=logger,
        )
        retain = self.config.retain_unknown_fields
        self._decoder = Decoder(schema, retain_unknown_fields=retain, unknown_variant_handler=handler)
        self._encoder = Encoder(schema, retain_unknown_fields=retain)

    @classmethod
    def from_config(cls, cfg: Union[Dict[str, Any], CodecConfig]) -> "Codec":
        """Build a codec from a config dict (validated by pydantic) or a CodecConfig."""
        config = cfg if isinstance(cfg, CodecConfig) else CodecConfig.model_validate(cfg)
        configure_root_logger(config.log_level)
        return cls(config=config)

    @property
    def revision(self) -> str:
        return self.schema.revision

    def __repr__(self) -> str:
        return f"Codec(revision={self.revision!r})"

    # -----------------
    # Decoding
    # -----------------

    def decode(self, type_name: str, raw: Any) -> Any:
        """
        Decode one parsed JSON value as ``type_name`` (a record or a union).

        Returns:
            Record for plain record types, TaggedRecord for unions, or
            UnrecognizedVariant when the unknown-variant policy tolerates it.

        Raises:
            UnknownVariantError, MissingRequiredFieldError, TypeMismatchError,
            RangeViolationError: On the first problem found; nothing partial is returned.
            SchemaError: If ``type_name`` is not part of this revision.
        """
        self._require_type(type_name)
        token = push_revision(self.revision)
        try:
            return self._decoder.decode(type_name, raw)
        finally:
            reset_revision(token)

    def decode_many(
        self,
        type_name: str,
        raws: Iterable[Any],
        *,
        max_workers: Optional[int] = None,
    ) -> List[Any]:
        """
        Decode independent records concurrently.

        Results come back in input order. If any record fails, the error of the
        first failing record (in input order) is raised.
        """
        items = list(raws)
        if not items:
            return []
        self._require_type(type_name)
        workers = max_workers or self.config.max_workers
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tagwire-decode") as pool:
            return list(pool.map(lambda raw: self.decode(type_name, raw), items))

    def decode_json(self, type_name: str, text: Union[str, bytes]) -> Any:
        return self.decode(type_name, json.loads(text))

    # -----------------
    # Encoding
    # -----------------

    def encode(self, value: Any) -> Dict[str, Any]:
        """Encode a decoded or built value back to a JSON-ready dict."""
        token = push_revision(self.revision)
        try:
            return self._encoder.encode(value)
        finally:
            reset_revision(token)

    def encode_json(self, value: Any, **dumps_kwargs: Any) -> str:
        dumps_kwargs.setdefault("ensure_ascii", False)
        return json.dumps(self.encode(value), **dumps_kwargs)

    # -----------------
    # Construction and dispatch
    # -----------------

    def build(self, type_name: str, tag: Optional[str] = None, **fields: Any) -> Record:
        """
        Construct a value for encoding.

        ``None`` values and false flags are treated as absent. The result is
        validated immediately with the same errors encode() raises.

        Example:
            >>> partner = codec.build("TransactionPartner", "telegram_api", request_count=3)
            >>> codec.encode(partner)
            {'type': 'telegram_api', 'request_count': 3}
        """
        self._require_type(type_name)
        if self.schema.is_union(type_name):
            union = self.schema.union(type_name)
            if tag is None:
                raise SchemaError(f"{type_name} is a union; a variant tag is required")
            record_name = union.variants.get(tag)
            if record_name is None:
                raise UnknownVariantError(
                    "unknown discriminant value",
                    type_name=type_name,
                    union=type_name,
                    tag=tag,
                    field=union.discriminator,
                )
        else:
            if tag is not None:
                raise SchemaError(f"{type_name} is a plain record; it takes no variant tag")
            record_name = type_name

        record = self.schema.record(record_name)
        present = {
            name: value
            for name, value in fields.items()
            if value is not None
            and not (value is False and isinstance(record.fields.get(name), FlagField))
        }

        if tag is not None:
            value: Record = TaggedRecord(type_name=record_name, fields=present, union=type_name, tag=tag)
        else:
            value = Record(type_name=record_name, fields=present)
        self.encode(value)
        return value

    def variant_tags(self, union_name: str) -> List[str]:
        return self.schema.variant_tags(union_name)

    def visit(
        self,
        value: Union[TaggedRecord, UnrecognizedVariant],
        handlers: Mapping[str, Callable[[TaggedRecord], Any]],
        *,
        fallback: Optional[Callable[[UnrecognizedVariant], Any]] = None,
    ) -> Any:
        """
        Dispatch on a tagged value's variant.

        ``handlers`` must cover exactly the variant set of the value's union in
        this revision; a missing or stale handler raises SchemaError even when the
        value itself would have matched, so gaps surface on the first call.
        """
        union_name = value.union
        tags = set(self.schema.union(union_name).variants)
        missing = tags - set(handlers)
        stale = set(handlers) - tags
        if missing or stale:
            raise SchemaError(
                f"Handlers for {union_name} in revision {self.revision!r} do not match its variants "
                f"(missing={sorted(missing)}, unknown={sorted(stale)})"
            )

        if isinstance(value, UnrecognizedVariant):
            if fallback is None:
                raise UnknownVariantError(
                    "no fallback handler for unrecognized variant",
                    type_name=union_name,
                    union=union_name,
                    tag=value.tag,
                )
            return fallback(value)
        return handlers[value.tag](value)

    def _require_type(self, type_name: str) -> None:
        if not self.schema.has_type(type_name):
            raise SchemaError(f"Unknown type {type_name!r} in revision {self.revision!r}")


# Default codec for module-level helpers, created lazily
_DEFAULT_CODEC: Optional[Codec] = None
_DEFAULT_LOCK = threading.Lock()


def set_default_codec(codec: Optional[Codec]) -> None:
    global _DEFAULT_CODEC
    _DEFAULT_CODEC = codec


def get_default_codec() -> Codec:
    global _DEFAULT_CODEC
    with _DEFAULT_LOCK:
        if _DEFAULT_CODEC is None:
            _DEFAULT_CODEC = Codec()
        return _DEFAULT_CODEC


def decode(type_name: str, raw: Any) -> Any:
    """Decode with the default codec (newest registered revision)."""
    return get_default_codec().decode(type_name, raw)


def encode(value: Any) -> Dict[str, Any]:
    """Encode with the default codec (newest registered revision)."""
    return get_default_codec().encode(value)
