"""Tests for the extension-type hook."""
import pytest

from packed_registry import DuplicateExtTypeError, ExtTypeRegistry, ExtTypeVTable
from tests.shapes import Counter, Segment, Shape, Square


def test_register_and_get():
    types = ExtTypeRegistry()
    vtable = ExtTypeVTable()

    assert types.register(Shape, vtable) is vtable
    assert types.get(Shape) is vtable
    assert types.registered_types() == [Shape]


def test_lookup_follows_base_classes():
    types = ExtTypeRegistry()
    shape_table = types.register(Shape)
    square_table = types.register(Square, ExtTypeVTable(clone=lambda s: Square(0)))

    assert types.get(Segment) is shape_table
    assert types.get(Square) is square_table
    assert types.get(Counter) is None


def test_is_registered():
    types = ExtTypeRegistry()
    types.register(Shape)

    assert types.is_registered(Segment(1))
    assert not types.is_registered(Counter())


def test_duplicate_requires_override():
    types = ExtTypeRegistry()
    first = types.register(Shape)

    with pytest.raises(DuplicateExtTypeError):
        types.register(Shape)
    assert types.get(Shape) is first

    second = types.register(Shape, ExtTypeVTable(), override=True)
    assert types.get(Shape) is second


def test_default_vtable_clones_shallowly():
    table = ExtTypeVTable()
    counter = Counter(5)

    clone = table.clone(counter)
    table.destroy(clone)

    assert clone is not counter
    assert clone.value == 5


def test_only_classes_can_be_registered():
    with pytest.raises(TypeError, match="must be classes"):
        ExtTypeRegistry().register(Shape())  # type: ignore[arg-type]
