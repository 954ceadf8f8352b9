"""Per-type schema registry: field registration and the mapping parser."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Callable, Mapping
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from hashobject.errors import ConfigurationError, ConfigurationErrorCode
from hashobject.fields import (
    BooleanConverter,
    Cardinality,
    FieldDescriptor,
    make_field_options,
)

T = TypeVar("T")

_LOGGER = logging.getLogger(__name__)


class FieldAccessor:
    """Data descriptor exposing one declared field on its target type.

    Values live in the instance ``__dict__`` under the field name, so a
    write-only field is still visible internally as ``vars(self)[name]``.
    """

    def __init__(self, field_name: str, *, readable: bool) -> None:
        self.field_name = field_name
        self.readable = readable

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.field_name!r}, readable={self.readable!r})"

    def __get__(self, instance: object, owner: type | None = None) -> Any:
        if instance is None:
            return self
        if not self.readable:
            raise AttributeError(
                f"'{type(instance).__name__}' field '{self.field_name}' is write-only"
            )
        return instance.__dict__.get(self.field_name)

    def __set__(self, instance: object, value: Any) -> None:
        instance.__dict__[self.field_name] = value


class SchemaRegistry(Generic[T]):
    """Field descriptors plus strictness policy for one target type.

    Fields are declared once while the owning type is being defined. The
    first ``parse`` call seals the registry; from then on it is read-only,
    so concurrent ``parse`` calls need no locking.
    """

    def __init__(self, target_type: type[T], *, strict: bool = True) -> None:
        """Initialize an empty registry for ``target_type``.

        Args:
            target_type: Class instantiated (without arguments) by ``parse``.
            strict: Whether unknown input keys are fatal.
        """
        self._target_type = target_type
        self._strict = bool(strict)
        self._fields: dict[str, FieldDescriptor] = {}
        self._descriptors: dict[str, FieldDescriptor] = {}
        self._sealed = False

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self._target_type.__name__}, "
            f"fields={list(self._fields)!r}, strict={self._strict!r})"
        )

    @property
    def target_type(self) -> type[T]:
        return self._target_type

    @property
    def strict(self) -> bool:
        return self._strict

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def descriptors(self) -> Mapping[str, FieldDescriptor]:
        """Read-only view: every reachable key (field name or alias) -> descriptor."""
        return MappingProxyType(self._descriptors)

    def field_descriptors(self) -> tuple[FieldDescriptor, ...]:
        """Return the distinct descriptors in declaration order."""
        return tuple(self._fields.values())

    def get(self, field_name: str) -> FieldDescriptor:
        """Return the descriptor declared under ``field_name``.

        Raises:
            KeyError: If no such field is declared.
        """
        if field_name not in self._fields:
            raise KeyError(f"Unknown field: {field_name!r}")
        return self._fields[field_name]

    def derive(self, target_type: type[T]) -> SchemaRegistry[T]:
        """Return an unsealed copy of this registry bound to a subclass.

        Args:
            target_type: Subclass of this registry's target type.

        Returns:
            New registry sharing the (immutable) descriptors.

        Raises:
            ValueError: If ``target_type`` is not a subclass of the target type.
        """
        if not issubclass(target_type, self._target_type):
            raise ValueError(
                f"{target_type.__name__} is not a subclass of "
                f"{self._target_type.__name__}"
            )
        registry = type(self)(target_type, strict=self._strict)
        registry._fields = dict(self._fields)
        registry._descriptors = dict(self._descriptors)
        return registry

    #
    # Registration API

    def declare_field(
        self,
        field_name: str,
        *,
        required: bool = True,
        default: Any = None,
        type: type | None = None,  # noqa: A002
        builder: Callable[[Any], Any] | None = None,
        cardinality: Cardinality | str | None = None,
        single: bool | None = None,
        source_key: str | None = None,
        name: str | None = None,
        readable: bool = True,
    ) -> SchemaRegistry[T]:
        """Declare (or redeclare) one field.

        Args:
            field_name: Attribute name on the target type.
            required: Whether absence without input is fatal.
            default: Value, or zero-argument producer called on every use.
            type: Coercion class exposing ``parse(raw)``.
            builder: Coercion callable ``(raw) -> value``.
            cardinality: SINGLE (default) or MANY.
            single: Shorthand for ``cardinality``.
            source_key: Alias key accepted in input mappings.
            name: Shorthand for ``source_key``.
            readable: Whether reading the attribute is allowed.

        Returns:
            This registry, for chaining.

        Raises:
            ConfigurationError: ``INVALID_FIELD_SPEC`` for an unusable
                declaration or a key already taken by another field,
                ``SCHEMA_SEALED`` after the first parse.
        """
        self._ensure_open(f"declare field '{field_name}'")
        if name is not None:
            if source_key is not None and source_key != name:
                raise ConfigurationError(
                    ConfigurationErrorCode.INVALID_FIELD_SPEC,
                    f"'{field_name}' declares conflicting name={name!r} "
                    f"and source_key={source_key!r}",
                    data={"field": field_name},
                )
            source_key = name
        options = make_field_options(
            field_name,
            single=single,
            cardinality=cardinality,
            required=required,
            default=default,
            coercion_type=type,
            coercion_builder=builder,
            source_key=source_key,
            readable=readable,
        )
        descriptor = FieldDescriptor(field_name, options)
        self._ensure_keys_free(descriptor)
        self._install_accessor(descriptor)

        previous = self._fields.get(field_name)
        if previous is not None:
            for key in previous.keys:
                if self._descriptors.get(key) is previous:
                    del self._descriptors[key]
        self._fields[field_name] = descriptor
        for key in descriptor.keys:
            self._descriptors[key] = descriptor
        _LOGGER.debug("Declared %r on %s", descriptor, self._target_type.__name__)
        return self

    def declare_boolean(self, field_name: str, **options: Any) -> SchemaRegistry[T]:
        """Declare a SINGLE write-only field coerced by ``BooleanConverter``."""
        options.setdefault("type", BooleanConverter)
        options.setdefault("readable", False)
        if options.get("cardinality") is None and options.get("single") is None:
            options["single"] = True
        return self.declare_field(field_name, **options)

    def declare_many(self, field_name: str, **options: Any) -> SchemaRegistry[T]:
        """Declare a field whose raw value is a sequence coerced element-wise."""
        if options.get("cardinality") is None and options.get("single") is None:
            options["cardinality"] = Cardinality.MANY
        return self.declare_field(field_name, **options)

    def set_strict(self, strict: bool) -> SchemaRegistry[T]:
        """Set whether unknown input keys are fatal."""
        self._ensure_open("change strictness")
        self._strict = bool(strict)
        return self

    #
    # Parsing

    def parse(self, input_mapping: Mapping[str, Any]) -> T:
        """Build a populated target instance from an untyped mapping.

        Input items are applied in the mapping's own order; afterwards every
        field whose keys were all absent gets its default. The first failure
        aborts the whole parse.

        Args:
            input_mapping: Mapping of string keys to raw values.

        Returns:
            Fresh, fully populated target instance.

        Raises:
            ConfigurationError: ``INVALID_INPUT``, ``UNSUPPORTED_ATTRIBUTE``
                or ``MISSING_REQUIRED_FIELD``; nested parse errors propagate
                unchanged.
        """
        type_name = self._target_type.__name__
        if not isinstance(input_mapping, Mapping):
            raise ConfigurationError(
                ConfigurationErrorCode.INVALID_INPUT,
                f"Requires a mapping to read in for {type_name}, "
                f"got {type(input_mapping).__name__}",
                data={"type": type_name},
            )
        self._seal()

        target = self._target_type()
        satisfied: set[str] = set()
        for key, raw_value in input_mapping.items():
            descriptor = self._descriptors.get(key)
            if descriptor is not None:
                descriptor.apply(target, raw_value)
                satisfied.add(descriptor.field_name)
            elif self._strict:
                raise ConfigurationError(
                    ConfigurationErrorCode.UNSUPPORTED_ATTRIBUTE,
                    f"Unsupported attribute '{key}: {raw_value}' for {type_name}",
                    data={"key": key, "type": type_name},
                )
            else:
                _LOGGER.debug(
                    "Ignoring unsupported attribute %r for %s", key, type_name
                )

        for descriptor in self._fields.values():
            if descriptor.field_name not in satisfied:
                descriptor.apply_default(target)
        return target

    def is_set(self, instance: object, field_name: str) -> bool:
        """Derived predicate: is the stored value of ``field_name`` populated?"""
        descriptor = self.get(field_name)
        return descriptor.is_populated(vars(instance).get(field_name))

    #
    # Internals

    def _ensure_open(self, action: str) -> None:
        if self._sealed:
            raise ConfigurationError(
                ConfigurationErrorCode.SCHEMA_SEALED,
                f"Cannot {action}: schema for '{self._target_type.__name__}' "
                "is sealed after its first parse",
                data={"type": self._target_type.__name__},
            )

    def _seal(self) -> None:
        if not self._sealed:
            self._sealed = True
            _LOGGER.debug(
                "Sealed schema for %s (%d fields)",
                self._target_type.__name__,
                len(self._fields),
            )

    def _ensure_keys_free(self, descriptor: FieldDescriptor) -> None:
        """Reject keys already reachable through a different field."""
        for key in descriptor.keys:
            owner = self._descriptors.get(key)
            if owner is not None and owner.field_name != descriptor.field_name:
                raise ConfigurationError(
                    ConfigurationErrorCode.INVALID_FIELD_SPEC,
                    f"Key '{key}' of '{descriptor.field_name}' is already "
                    f"taken by field '{owner.field_name}'",
                    data={
                        "field": descriptor.field_name,
                        "key": key,
                        "other_field": owner.field_name,
                    },
                )

    def _install_accessor(self, descriptor: FieldDescriptor) -> None:
        name = descriptor.field_name
        existing = inspect.getattr_static(self._target_type, name, None)
        if (
            existing is not None
            and not isinstance(existing, FieldAccessor)
            and (callable(existing) or hasattr(existing, "__get__"))
        ):
            raise ConfigurationError(
                ConfigurationErrorCode.INVALID_FIELD_SPEC,
                f"'{name}' conflicts with an existing attribute of "
                f"'{self._target_type.__name__}'",
                data={"field": name, "type": self._target_type.__name__},
            )
        setattr(
            self._target_type,
            name,
            FieldAccessor(name, readable=descriptor.readable),
        )
