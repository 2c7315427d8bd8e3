"""
Containers for graph walks and GAF alignments. Each component may have a columnar, batched counterpart used by the
query engines.
"""
from abc import ABC, abstractmethod
from typing import Iterable

import numpy as np


# Classes --------------------------------------------------------------------------------------------------------------
class Batch(ABC):
    """
    Abstract base class for all batch containers.

    Batches are columnar containers that store multiple instances of a component
    efficiently (SoA layout with NumPy arrays). They enforce the
    Sequence protocol (len, getitem, iter).
    """
    __slots__ = ()
    @abstractmethod
    def __len__(self) -> int: ...
    @classmethod
    @abstractmethod
    def empty(cls) -> 'Batch':
        """Creates an empty batch."""
        ...
    @classmethod
    @abstractmethod
    def build(cls, components: Iterable[object]) -> 'Batch':
        """Constructs a batch from an iterable of components."""
        ...
    @abstractmethod
    def __getitem__(self, item): ...
    def __iter__(self):
        for i in range(len(self)): yield self[i]
    def __bool__(self):
        return len(self) > 0


class RaggedBatch(Batch):
    """
    Base class for batches that store variable-length items in a flattened format (CSR-like).

    Manages the offsets array and length calculation. Subclasses add flat data arrays.

    Args:
        offsets: Array of offsets (size *N* + 1), starting at 0 and non-decreasing.
    """
    __slots__ = ('_offsets', '_length')
    def __init__(self, offsets: np.ndarray):
        self._offsets = offsets
        self._length = len(offsets) - 1

    @property
    def offsets(self) -> np.ndarray: return self._offsets

    @property
    def total_size(self) -> int:
        """Returns the total number of elements flattened across all components."""
        return int(self._offsets[-1]) if self._length >= 0 else 0

    @property
    def lengths(self) -> np.ndarray:
        """Returns the lengths of the components as a numpy array."""
        return np.diff(self._offsets)

    def __len__(self) -> int: return self._length

    @staticmethod
    def _offsets_from_lengths(lengths: Iterable[int]) -> np.ndarray:
        """Builds an offsets array (leading 0, cumulative sum) from component lengths."""
        lengths = np.fromiter(lengths, dtype=np.int64)
        offsets = np.zeros(len(lengths) + 1, dtype=np.int64)
        np.cumsum(lengths, out=offsets[1:])
        return offsets
