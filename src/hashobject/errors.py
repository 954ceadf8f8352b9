"""Errors raised while declaring fields and parsing mappings."""

from __future__ import annotations

from enum import StrEnum


class ConfigurationErrorCode(StrEnum):
    """Stable error codes raised by registration and parsing."""

    INVALID_FIELD_SPEC = "invalid_field_spec"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    UNSUPPORTED_ATTRIBUTE = "unsupported_attribute"
    INVALID_INPUT = "invalid_input"
    SCHEMA_SEALED = "schema_sealed"


class ConfigurationError(RuntimeError):
    """A field declaration or an input mapping does not fit the schema.

    ``data`` names what went wrong: ``field`` for the offending field,
    ``type`` for the target type, ``key`` for an input or alias key.
    """

    def __init__(
        self,
        code: ConfigurationErrorCode,
        message: str,
        *,
        data: dict[str, object] | None = None,
    ) -> None:
        """Record the error kind next to the message.

        Args:
            code: Kind of registration or parse failure.
            message: Message naming the field and target type involved.
            data: Field, type and key names for callers that branch on them.
        """
        super().__init__(message)
        self.code = code
        self.data = data or {}


class PayloadDecodeError(RuntimeError):
    """Raised when a payload file cannot be decoded into a mapping."""
