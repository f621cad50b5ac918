"""
Selection Masks

Fixed-width mask choosing which components of a feature take part in the
task. Bit i selects component i; the default selects every component.
"""

from typing import Iterable, Optional

import numpy as np


class SelectionMask:
    """
    Immutable selection over the components of a d-dimensional feature.

    Args:
        width: Feature dimension the mask applies to
        bits: Integer bitmask (bit i -> component i). None selects all.
    """

    __slots__ = ("_width", "_bits")

    def __init__(self, width: int, bits: Optional[int] = None):
        width = int(width)
        if width <= 0:
            raise ValueError(f"Selection width must be positive, got {width}")
        full = (1 << width) - 1
        if bits is None:
            bits = full
        bits = int(bits)
        if bits < 0 or bits & ~full:
            raise ValueError(f"Bitmask {bits:#b} has bits outside width {width}")
        self._width = width
        self._bits = bits

    @classmethod
    def all(cls, width: int) -> "SelectionMask":
        return cls(width)

    @classmethod
    def from_indices(cls, width: int, indices: Iterable[int]) -> "SelectionMask":
        bits = 0
        for i in indices:
            i = int(i)
            if not 0 <= i < width:
                raise ValueError(f"Component index {i} outside width {width}")
            bits |= 1 << i
        return cls(width, bits)

    @property
    def width(self) -> int:
        return self._width

    @property
    def bits(self) -> int:
        return self._bits

    @property
    def indices(self) -> np.ndarray:
        return np.array([i for i in range(self._width) if self._bits >> i & 1], dtype=int)

    @property
    def count(self) -> int:
        return bin(self._bits).count("1")

    def is_all(self) -> bool:
        return self._bits == (1 << self._width) - 1

    def __eq__(self, other):
        if not isinstance(other, SelectionMask):
            return NotImplemented
        return self._width == other._width and self._bits == other._bits

    def __hash__(self):
        return hash((self._width, self._bits))

    def __repr__(self):
        return f"SelectionMask(width={self._width}, bits={self._bits:#0{self._width + 2}b})"


def resolve_mask(mask, width: int) -> SelectionMask:
    """Normalise None / int / SelectionMask into a mask of the given width."""
    if mask is None:
        return SelectionMask.all(width)
    if isinstance(mask, SelectionMask):
        return mask
    return SelectionMask(width, mask)
