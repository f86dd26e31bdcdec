"""Tests for handle types."""
from packed_registry import Handle, ObjectRef
from tests.shapes import Segment, ShapeRef


def test_object_ref_derefs_to_its_object():
    segment = Segment(5)
    ref = ShapeRef(segment)

    assert ref.deref() is segment
    assert ref.defined


def test_null_ref():
    ref = ShapeRef()

    assert ref.deref() is None
    assert not ref.defined


def test_equality_follows_referent_identity():
    segment = Segment(5)

    assert ShapeRef(segment) == ShapeRef(segment)
    assert ShapeRef(segment).same_as(ShapeRef(segment))
    assert ShapeRef(segment) != ShapeRef(Segment(5))
    assert len({ShapeRef(segment), ShapeRef(segment)}) == 1


def test_handle_protocol():
    class CustomHandle:
        def __init__(self, target):
            self.target = target

        def deref(self):
            return self.target

    assert isinstance(ShapeRef(), Handle)
    assert isinstance(CustomHandle(None), Handle)
    assert not isinstance(object(), Handle)


def test_repr():
    assert repr(ObjectRef(None)) == "ObjectRef(None)"
