"""Domain classes shared by adapter and registry tests."""
from __future__ import annotations

from packed_registry import ObjectRef


class Shape:
    """Base type declaring the methods exposed through handles."""

    def __init__(self, name: str = "shape") -> None:
        self.name = name

    def length(self) -> int:
        return 0

    def scaled(self, factor: int) -> int:
        return self.length() * factor

    def describe(self, prefix: str) -> str:
        return f"{prefix}{self.name}"

    @property
    def sides(self) -> int:
        return 0


class Segment(Shape):
    def __init__(self, size: int) -> None:
        super().__init__("segment")
        self._size = size

    def length(self) -> int:
        return self._size

    @property
    def sides(self) -> int:
        return 1


class Square(Shape):
    def __init__(self, side: int) -> None:
        super().__init__("square")
        self._side = side

    def length(self) -> int:
        return 4 * self._side

    @property
    def sides(self) -> int:
        return 4


class ShapeRef(ObjectRef):
    """Handle to a Shape."""


class CounterRef(ObjectRef):
    """Handle to a Counter."""


class Counter:
    def __init__(self, start: int = 0) -> None:
        self.value = start

    def increment(self, by: int) -> int:
        self.value += by
        return self.value

    def reset(self) -> None:
        self.value = 0

    @staticmethod
    def zero() -> int:
        return 0
