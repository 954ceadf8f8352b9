"""Declarative mapping of untyped key/value payloads onto typed objects."""

from hashobject.errors import (
    ConfigurationError,
    ConfigurationErrorCode,
    PayloadDecodeError,
)
from hashobject.fields import (
    BooleanConverter,
    Cardinality,
    FieldDescriptor,
    FieldOptions,
    make_field_options,
)
from hashobject.loaders import load_mapping, parse_file
from hashobject.mapped import HashObject
from hashobject.schema import FieldAccessor, SchemaRegistry

__all__ = [
    "BooleanConverter",
    "Cardinality",
    "ConfigurationError",
    "ConfigurationErrorCode",
    "FieldAccessor",
    "FieldDescriptor",
    "FieldOptions",
    "HashObject",
    "PayloadDecodeError",
    "SchemaRegistry",
    "load_mapping",
    "make_field_options",
    "parse_file",
]
