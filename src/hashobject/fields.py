"""Field descriptors: per-field options, coercion and default resolution."""

from __future__ import annotations

from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from hashobject.errors import ConfigurationError, ConfigurationErrorCode


class Cardinality(StrEnum):
    """Whether a raw value is coerced once or element-wise."""

    SINGLE = "single"
    MANY = "many"


class BooleanConverter:
    """Coercion type normalizing loose flag values into ``bool``."""

    @staticmethod
    def parse(raw_value: object) -> bool:
        """Map ``"false"`` and ``0`` to ``False``, anything else to its truthiness.

        Args:
            raw_value: Raw flag value from the input mapping.

        Returns:
            Normalized boolean.
        """
        if raw_value == "false" or raw_value == 0:
            return False
        return bool(raw_value)


class FieldOptions(BaseModel):
    """Recognized options of one field declaration."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    required: StrictBool = True
    default: Any = None
    coercion_type: Any = None
    coercion_builder: Callable[[Any], Any] | None = None
    cardinality: Cardinality = Cardinality.SINGLE
    source_key: str | None = Field(default=None, min_length=1)
    readable: StrictBool = True


def make_field_options(
    field_name: str,
    *,
    single: bool | None = None,
    cardinality: Cardinality | str | None = None,
    **options: Any,
) -> FieldOptions:
    """Build validated options from declaration keyword arguments.

    ``single`` is accepted as a shorthand for ``cardinality``; giving both
    with different meanings is an error.

    Args:
        field_name: Field being declared (used in error messages).
        single: Optional shorthand for SINGLE (true) or MANY (false).
        cardinality: Optional explicit cardinality.
        **options: Remaining ``FieldOptions`` values.

    Returns:
        Frozen options model.

    Raises:
        ConfigurationError: With ``INVALID_FIELD_SPEC`` for unknown or
            malformed options.
    """
    if cardinality is not None:
        options["cardinality"] = cardinality
    elif single is not None:
        options["cardinality"] = Cardinality.SINGLE if single else Cardinality.MANY
    try:
        field_options = FieldOptions.model_validate(options)
    except ValidationError as exc:
        raise ConfigurationError(
            ConfigurationErrorCode.INVALID_FIELD_SPEC,
            f"Malformed options for '{field_name}': {exc}",
            data={"field": field_name},
        ) from exc
    if single is not None and bool(single) != (
        field_options.cardinality is Cardinality.SINGLE
    ):
        raise ConfigurationError(
            ConfigurationErrorCode.INVALID_FIELD_SPEC,
            f"'{field_name}' declares conflicting single={single!r} "
            f"and cardinality={cardinality!r}",
            data={"field": field_name},
        )
    return field_options


class FieldDescriptor:
    """Immutable metadata for one mapped field.

    The descriptor knows how to coerce a raw value (once, or over every
    element for MANY fields), how to resolve its default, and how to write
    either onto a target instance.
    """

    def __init__(self, field_name: str, options: FieldOptions | None = None) -> None:
        """Validate options and build the descriptor.

        Args:
            field_name: Attribute name on the target type.
            options: Declaration options; defaults to a required SINGLE
                pass-through field.

        Raises:
            ConfigurationError: With ``INVALID_FIELD_SPEC`` when the name is
                not an identifier or the coercion is unusable.
        """
        if options is None:
            options = FieldOptions()
        if not isinstance(field_name, str) or not field_name.isidentifier():
            raise ConfigurationError(
                ConfigurationErrorCode.INVALID_FIELD_SPEC,
                f"Field name must be an identifier: {field_name!r}",
                data={"field": field_name},
            )
        _validate_coercion(field_name, options)
        self._field_name = field_name
        self._options = options

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._field_name!r}, "
            f"source_key={self.source_key!r}, "
            f"cardinality={self.cardinality.value!r}, "
            f"required={self.required!r})"
        )

    @property
    def field_name(self) -> str:
        return self._field_name

    @property
    def source_key(self) -> str:
        """Key expected in input mappings (the alias, else the field name)."""
        return self._options.source_key or self._field_name

    @property
    def alias(self) -> str | None:
        """Source key when it differs from the field name."""
        key = self._options.source_key
        return key if key and key != self._field_name else None

    @property
    def keys(self) -> tuple[str, ...]:
        """Every input key that reaches this descriptor."""
        alias = self.alias
        return (self._field_name,) if alias is None else (self._field_name, alias)

    @property
    def cardinality(self) -> Cardinality:
        return self._options.cardinality

    @property
    def required(self) -> bool:
        return self._options.required

    @property
    def readable(self) -> bool:
        return self._options.readable

    @property
    def default(self) -> Any:
        return self._options.default

    @property
    def coercion_type(self) -> type | None:
        return self._options.coercion_type

    @property
    def coercion_builder(self) -> Callable[[Any], Any] | None:
        return self._options.coercion_builder

    def coerce(self, raw_value: Any) -> Any:
        """Coerce a raw value according to cardinality.

        MANY fields map the coercion over each element of ``raw_value``
        (which must be iterable) and always produce a list. Without a
        coercion the raw value is returned unchanged.
        """
        if self.coercion_type is not None:
            convert = self.coercion_type.parse
        elif self.coercion_builder is not None:
            convert = self.coercion_builder
        else:
            return raw_value
        if self.cardinality is Cardinality.MANY:
            return [convert(element) for element in raw_value]
        return convert(raw_value)

    def apply(self, target: object, raw_value: Any) -> None:
        """Coerce ``raw_value`` and store it on ``target``."""
        setattr(target, self._field_name, self.coerce(raw_value))

    def apply_default(self, target: object) -> None:
        """Store the resolved default on ``target``.

        Args:
            target: Instance being populated.

        Raises:
            ConfigurationError: With ``MISSING_REQUIRED_FIELD`` when the
                field is required.
        """
        if self.required:
            type_name = type(target).__name__
            raise ConfigurationError(
                ConfigurationErrorCode.MISSING_REQUIRED_FIELD,
                f"The '{self._field_name}' attribute is required for '{type_name}'",
                data={"field": self._field_name, "type": type_name},
            )
        setattr(target, self._field_name, self.resolve_default())

    def resolve_default(self) -> Any:
        """Return the default, invoking it when it is a producer (never cached)."""
        default = self._options.default
        if callable(default):
            return default()
        return default

    def is_populated(self, value: Any) -> bool:
        """Derived ``field?`` predicate: truthy for SINGLE, non-empty for MANY."""
        if self.cardinality is Cardinality.MANY:
            return value is not None and len(value) > 0
        return bool(value)


def _validate_coercion(field_name: str, options: FieldOptions) -> None:
    """Fail fast on an unusable coercion declaration."""
    coercion_type = options.coercion_type
    if coercion_type is None:
        return
    if options.coercion_builder is not None:
        raise ConfigurationError(
            ConfigurationErrorCode.INVALID_FIELD_SPEC,
            f"'{field_name}' cannot declare both a type and a builder",
            data={"field": field_name},
        )
    if not isinstance(coercion_type, type):
        raise ConfigurationError(
            ConfigurationErrorCode.INVALID_FIELD_SPEC,
            f"'{field_name}' requires a type: {coercion_type!r}",
            data={"field": field_name},
        )
    if not callable(getattr(coercion_type, "parse", None)):
        raise ConfigurationError(
            ConfigurationErrorCode.INVALID_FIELD_SPEC,
            f"'{field_name}' attribute requires type "
            f"'{coercion_type.__name__}' to implement 'parse'",
            data={"field": field_name, "type": coercion_type.__name__},
        )
