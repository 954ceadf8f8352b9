"""Base class binding a schema registry to a target type."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Self

from hashobject.schema import SchemaRegistry

_REGISTRY_ATTR = "_hashobject_schema"


class HashObject:
    """Target type whose instances are built from untyped mappings.

    Fields are declared once, at module load, through the registry
    returned by ``define()``::

        class Address(HashObject):
            pass

        Address.define().declare_field("street").set_strict(False)

    ``parse`` makes every subclass usable as the ``type`` of a field on
    another schema, which is how nested mappings are handled.
    """

    @classmethod
    def define(cls) -> SchemaRegistry[Self]:
        """Return this class's registry, creating it on first call.

        A new registry starts from a copy of the nearest base class's
        registry, so subclasses inherit declared fields and strictness.
        """
        registry = cls.__dict__.get(_REGISTRY_ATTR)
        if registry is None:
            inherited = _find_base_registry(cls)
            registry = inherited.derive(cls) if inherited else SchemaRegistry(cls)
            setattr(cls, _REGISTRY_ATTR, registry)
        return registry

    @classmethod
    def schema(cls) -> SchemaRegistry[Self]:
        """Return the registry of this class.

        A subclass that never declared fields gets an empty strict registry
        (or a copy of its nearest registered base's), so parsing it yields
        a bare instance.
        """
        return cls.define()

    @classmethod
    def parse(cls, input_mapping: Mapping[str, Any]) -> Self:
        """Build an instance from ``input_mapping`` (see ``SchemaRegistry.parse``)."""
        return cls.schema().parse(input_mapping)

    def is_set(self, field_name: str) -> bool:
        """Return True when the field holds a truthy value (non-empty for MANY)."""
        return type(self).schema().is_set(self, field_name)

    def __repr__(self) -> str:
        registry = getattr(type(self), _REGISTRY_ATTR, None)
        stored = vars(self)
        parts = []
        if registry is not None:
            for descriptor in registry.field_descriptors():
                name = descriptor.field_name
                if name in stored and descriptor.readable:
                    parts.append(f"{name}={stored[name]!r}")
        return f"{type(self).__name__}({', '.join(parts)})"


def _find_base_registry(cls: type) -> SchemaRegistry[Any] | None:
    for base in cls.__mro__[1:]:
        registry = base.__dict__.get(_REGISTRY_ATTR)
        if registry is not None:
            return registry
    return None
