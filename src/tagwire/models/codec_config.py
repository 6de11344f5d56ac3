from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, PositiveInt

from tagwire.core.exceptions import UnknownVariantPolicy


class CodecConfig(BaseModel):
    """Caller-side configuration for a :class:`~tagwire.codec.codec.Codec`."""

    # Schema revision to decode against; the newest registered one when omitted.
    revision: Optional[str] = None

    # Forward-compatible retention of fields the schema does not declare.
    unknown_fields: Literal["retain", "drop"] = "retain"

    unknown_variant: UnknownVariantPolicy = UnknownVariantPolicy.FAIL

    # Thread pool size for decode_many; None lets the executor decide.
    max_workers: Optional[PositiveInt] = None

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    @property
    def retain_unknown_fields(self) -> bool:
        return self.unknown_fields == "retain"
