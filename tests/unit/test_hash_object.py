"""Unit tests for HashObject-backed types, including nested schemas."""

from __future__ import annotations

import pytest

from hashobject import (
    ConfigurationError,
    ConfigurationErrorCode,
    HashObject,
    SchemaRegistry,
)


class D(HashObject):
    pass


D.define().declare_field("original_name", source_key="originalName")


class C(HashObject):
    pass


C.define().declare_field("name")


class B(HashObject):
    pass


B.define().declare_field("address").set_strict(False)


class A(HashObject):
    pass


(
    A.define()
    .declare_field("name")
    .declare_many("aliases", required=False, default=list)
    .declare_boolean("default", required=False, default=False)
    .declare_many("b", required=False, type=B)
    .declare_many("c", required=False, builder=lambda x: f"_{x}_")
)


@pytest.mark.unit
def test_declared_fields_have_accessors() -> None:
    """Single, many and boolean fields all get settable attributes."""
    a = A()
    a.name = "bob"
    a.aliases = ["x"]
    a.default = True

    assert a.name == "bob"
    assert a.aliases == ["x"]
    assert a.is_set("default") is True


@pytest.mark.unit
def test_boolean_reader_is_suppressed() -> None:
    """Boolean fields are write-only by default."""
    assert not hasattr(A(), "default")


@pytest.mark.unit
def test_type_without_parse_fails_at_definition() -> None:
    """Declaring a type coercion without parse fails immediately."""

    class X(HashObject):
        pass

    with pytest.raises(ConfigurationError, match="requires type"):
        X.define().declare_field("here", type=str)


@pytest.mark.unit
def test_unsupported_element_fails() -> None:
    """Strict types reject unknown keys."""
    with pytest.raises(ConfigurationError, match="noattr"):
        A.parse({"noattr": "foo"})


@pytest.mark.unit
def test_lenient_type_ignores_unknown_keys() -> None:
    """Non-strict types silently drop unknown keys."""
    b = B.parse({"address": "this", "not-an-element": "goes here"})

    assert b.address == "this"


@pytest.mark.unit
def test_sets_required_elements() -> None:
    """Required values are taken from the input."""
    assert A.parse({"name": "bob"}).name == "bob"


@pytest.mark.unit
def test_sets_default_values_when_absent() -> None:
    """Absent optional fields receive their defaults."""
    a = A.parse({"name": "bob"})

    assert a.aliases == []
    assert vars(a)["default"] is False
    assert a.b is None
    assert a.c is None


@pytest.mark.unit
def test_missing_required_name_fails() -> None:
    """An empty mapping misses the required name."""
    with pytest.raises(
        ConfigurationError, match="'name' attribute is required for"
    ) as exc_info:
        A.parse({})

    assert exc_info.value.code == ConfigurationErrorCode.MISSING_REQUIRED_FIELD
    assert exc_info.value.data == {"field": "name", "type": "A"}


@pytest.mark.unit
def test_sets_collection_values() -> None:
    """MANY fields without coercion keep the input sequence."""
    a = A.parse({"name": "bob", "aliases": ["this", "that"]})

    assert a.aliases == ["this", "that"]


@pytest.mark.unit
def test_handles_nested_types() -> None:
    """MANY fields typed with another HashObject parse each element."""
    a = A.parse({"name": "bob", "b": [{"address": "someplace"}]})

    assert isinstance(a.b[0], B)
    assert a.b[0].address == "someplace"


@pytest.mark.unit
def test_nested_errors_propagate_unchanged() -> None:
    """A nested failure surfaces with the nested type's context."""

    class Parent(HashObject):
        pass

    Parent.define().declare_field("child", type=C)

    with pytest.raises(ConfigurationError) as exc_info:
        Parent.parse({"child": {}})

    assert exc_info.value.code == ConfigurationErrorCode.MISSING_REQUIRED_FIELD
    assert exc_info.value.data == {"field": "name", "type": "C"}


@pytest.mark.unit
def test_empty_sublist_is_not_set() -> None:
    """The derived predicate is false for empty MANY fields."""
    a = A.parse({"name": "bob"})

    assert a.is_set("aliases") is False
    assert a.is_set("name") is True


@pytest.mark.unit
@pytest.mark.parametrize(
    "raw,expected",
    [(0, False), ("false", False), (1, True), ("true", True), ("yes", True)],
)
def test_boolean_field_normalizes(raw: object, expected: bool) -> None:
    """Boolean fields are stored normalized."""
    a = A.parse({"name": "bob", "default": raw})

    assert vars(a)["default"] is expected
    assert a.is_set("default") is expected


@pytest.mark.unit
def test_creates_objects_using_builders() -> None:
    """Builders are mapped over MANY inputs."""
    a = A.parse({"name": "bob", "c": ["x", "y"]})

    assert a.c == ["_x_", "_y_"]


@pytest.mark.unit
def test_maps_original_name_to_new_name() -> None:
    """An alias key populates the field name."""
    assert D.parse({"originalName": "orin"}).original_name == "orin"


@pytest.mark.unit
def test_default_producers_are_independent_between_parses() -> None:
    """Mutating one parse's default never leaks into another."""
    first = A.parse({"name": "bob"})
    second = A.parse({"name": "alice"})
    first.aliases.append("bobby")

    assert second.aliases == []


@pytest.mark.unit
def test_type_without_fields_parses_to_empty_instance() -> None:
    """A subclass that never called define() has an empty strict schema."""

    class Undefined(HashObject):
        pass

    instance = Undefined.parse({})

    assert isinstance(instance, Undefined)
    assert vars(instance) == {}
    assert Undefined.schema().strict is True
    assert Undefined.schema().field_descriptors() == ()


@pytest.mark.unit
def test_type_without_fields_rejects_unknown_keys() -> None:
    """Unknown keys on an empty strict schema are unsupported attributes."""

    class Bare(HashObject):
        pass

    with pytest.raises(ConfigurationError) as exc_info:
        Bare.parse({"x": 1})

    assert exc_info.value.code == ConfigurationErrorCode.UNSUPPORTED_ATTRIBUTE


@pytest.mark.unit
def test_define_returns_same_registry() -> None:
    """define() is idempotent per class."""

    class E(HashObject):
        pass

    assert E.define() is E.define()
    assert isinstance(E.define(), SchemaRegistry)


@pytest.mark.unit
def test_subclass_inherits_fields() -> None:
    """A subclass registry starts from its base's fields and strictness."""

    class Base(HashObject):
        pass

    Base.define().declare_field("name").set_strict(False)

    class Child(Base):
        pass

    Child.define().declare_field("age", required=False, default=0)
    child = Child.parse({"name": "bob", "extra": 1})

    assert isinstance(child, Child)
    assert child.name == "bob"
    assert child.age == 0
    assert [d.field_name for d in Base.schema().field_descriptors()] == ["name"]


@pytest.mark.unit
def test_subclass_without_own_declarations_parses_as_itself() -> None:
    """An undeclared subclass still builds instances of its own type."""

    class Base(HashObject):
        pass

    Base.define().declare_field("name")

    class Child(Base):
        pass

    assert type(Child.parse({"name": "bob"})) is Child


@pytest.mark.unit
def test_repr_lists_readable_fields() -> None:
    """repr shows readable stored fields and hides write-only ones."""
    a = A.parse({"name": "bob", "default": 1})

    assert repr(a) == "A(name='bob', aliases=[], b=None, c=None)"
