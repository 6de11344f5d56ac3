"""
Custom exception classes for the tagwire codec.

Provides structured error handling with domain-specific exceptions
for schema loading and for decoding/encoding tagged records.
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional


class TagwireException(Exception):
    """Base exception class for all tagwire exceptions."""

    pass


class SchemaError(TagwireException):
    """Raised when a schema document is inconsistent or cannot be resolved."""

    pass


class SchemaRegistryError(TagwireException):
    pass


class DecodeError(TagwireException):
    """
    Base class for every failure of the codec on a concrete value.

    Carries enough context to locate the failure without re-parsing the input:

    - ``type_name``: record or union being processed when the failure occurred
    - ``union``: union name, when the failure happened inside a tagged record
    - ``tag``: discriminant value seen for that union (if any)
    - ``field``: offending field name (if any)
    - ``path``: location from the root value, e.g. ``transactions[1].source.type``

    Example:
        >>> raise MissingRequiredFieldError(
        ...     "required field is absent",
        ...     type_name="RevenueWithdrawalStateSucceeded",
        ...     union="RevenueWithdrawalState",
        ...     tag="succeeded",
        ...     field="url",
        ... )
    """

    def __init__(
        self,
        reason: str,
        *,
        type_name: Optional[str] = None,
        union: Optional[str] = None,
        tag: Optional[str] = None,
        field: Optional[str] = None,
        path: str = "",
    ):
        self.reason = reason
        self.type_name = type_name
        self.union = union
        self.tag = tag
        self.field = field
        self.path = path
        super().__init__(self._format())

    def _format(self) -> str:
        parts = []
        if self.type_name:
            parts.append(f"type={self.type_name}")
        if self.union:
            parts.append(f"union={self.union}")
        if self.tag is not None:
            parts.append(f"tag={self.tag!r}")
        if self.field:
            parts.append(f"field={self.field}")
        if self.path:
            parts.append(f"path={self.path}")
        if not parts:
            return self.reason
        return f"{self.reason} ({', '.join(parts)})"

    def details(self) -> Dict[str, Any]:
        return {
            "kind": type(self).__name__,
            "reason": self.reason,
            "type_name": self.type_name,
            "union": self.union,
            "tag": self.tag,
            "field": self.field,
            "path": self.path,
        }


class UnknownVariantError(DecodeError):
    """Raised when a discriminant value is not in the union's variant set."""

    pass


class MissingRequiredFieldError(DecodeError):
    """Raised when a field required by the resolved variant is absent."""

    pass


class TypeMismatchError(DecodeError):
    """Raised when a JSON value's shape does not match the declared field kind."""

    pass


class RangeViolationError(DecodeError):
    """Raised when a value is outside its documented bound (numbers, lengths, sizes)."""

    pass


class UnknownVariantPolicy(Enum):
    """Policy for handling discriminant values outside the known variant set."""

    FAIL = "fail"              # Raise UnknownVariantError (default)
    WARN = "warn"              # Log warning and keep the raw payload
    ALLOW = "allow"            # Keep the raw payload silently


class UnknownVariantHandler:
    """
    Handles unknown discriminant values based on configured policy.

    The handler never picks a concrete variant; tolerant policies hand back a
    value built by the caller-supplied ``fallback`` factory (the codec passes
    one that wraps the raw payload in ``UnrecognizedVariant``).

    Usage:
        >>> handler = UnknownVariantHandler(policy=UnknownVariantPolicy.FAIL)
        >>> handler.handle(error, fallback=lambda: ...)
        # Raises UnknownVariantError

        >>> handler = UnknownVariantHandler(policy=UnknownVariantPolicy.WARN, logger=log)
        >>> handler.handle(error, fallback=lambda: raw_value)
        # Logs warning and returns raw_value
    """

    def __init__(
        self,
        policy: UnknownVariantPolicy = UnknownVariantPolicy.FAIL,
        logger: Optional[Any] = None,
        custom_handler: Optional[Callable[[UnknownVariantError, Callable[[], Any]], Any]] = None,
    ):
        """
        Initialize the handler.

        Args:
            policy: How to handle unknown variants (FAIL, WARN, ALLOW)
            logger: Logger instance for WARN policy
            custom_handler: Custom function receiving the error and the fallback factory
        """
        self.policy = policy
        self.logger = logger
        self.custom_handler = custom_handler

    def handle(self, error: UnknownVariantError, fallback: Callable[[], Any]) -> Any:
        """
        Handle an unknown variant based on policy.

        Args:
            error: The error describing the unknown tag
            fallback: Zero-argument factory producing the tolerated value

        Returns:
            The tolerated value when the policy allows it

        Raises:
            UnknownVariantError: If policy is FAIL
        """
        if self.custom_handler:
            return self.custom_handler(error, fallback)

        if self.policy == UnknownVariantPolicy.FAIL:
            raise error

        if self.policy == UnknownVariantPolicy.WARN:
            if self.logger:
                self.logger.warning(f"Keeping unrecognized variant: {error}")
            else:
                import warnings
                warnings.warn(f"Keeping unrecognized variant: {error}", UserWarning)

        return fallback()
