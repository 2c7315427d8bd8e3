"""
Module for GAF alignment records and their columnar walk representation.
"""
from dataclasses import dataclass
from typing import Iterable, Optional, Union

import numpy as np

from gaflib.containers import RaggedBatch
from gaflib.containers.graph import Walk
from gaflib.core.walk import OrientedName, Orientation


# Classes --------------------------------------------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class GafAlignment:
    """
    One ingested GAF record.

    Numeric fields are ``None`` when the column is missing or not an integer, so "not provided" can never be
    mistaken for a real value.

    Attributes:
        query_name: Column 1, the read name.
        query_length: Column 2.
        query_start: Column 3.
        query_end: Column 4.
        strand: Column 5, kept verbatim.
        mapping_quality: Column 12, if present.
        line_number: 1-based line in the source, counting blank and comment lines.
        raw_path: Column 6 exactly as read.
        path_string: Canonical display string of the parsed walk (``"5+, 3-, 8+"``).
        walk: The verified walk returned by the path validator.
    """
    query_name: str
    query_length: Optional[int]
    query_start: Optional[int]
    query_end: Optional[int]
    strand: str
    mapping_quality: Optional[int]
    line_number: int
    raw_path: str
    path_string: str
    walk: Walk

    def __repr__(self):
        return f"GafAlignment({self.query_name}, line={self.line_number}, steps={len(self.walk)})"

    @property
    def node_count(self) -> int: return len(self.walk)

    @property
    def query_range(self) -> str:
        """
        Display text for the aligned query range: ``"start-end / length"``, ``"start-end"`` or ``""``.
        """
        if self.query_start is None or self.query_end is None: return ''
        if self.query_length is not None and self.query_length > 0:
            return f'{self.query_start}-{self.query_end} / {self.query_length}'
        return f'{self.query_start}-{self.query_end}'


class WalkBatch(RaggedBatch):
    """
    Columnar store of many walks: flattened segment codes and orientations with CSR offsets, plus one mapping
    quality per walk.

    Segment names are interned into integer codes so membership queries run over integer arrays. An absent
    mapping quality is stored as ``MISSING_QUALITY`` and never compares as passing a positive threshold.

    Examples:
        >>> batch = WalkBatch.build(result.alignments)
        >>> batch.code_for('5')
        0
    """
    MISSING_QUALITY = -1
    __slots__ = ('codes', 'orientations', 'qualities', '_vocabulary', '_names')

    def __init__(self, offsets: np.ndarray, codes: np.ndarray, orientations: np.ndarray, qualities: np.ndarray,
                 names: list[str]):
        super().__init__(offsets)
        self.codes = codes
        self.orientations = orientations
        self.qualities = qualities
        self._names = names
        self._vocabulary = {name: code for code, name in enumerate(names)}

    @classmethod
    def empty(cls) -> 'WalkBatch':
        return cls(np.zeros(1, dtype=np.int64), np.empty(0, dtype=np.int32), np.empty(0, dtype=np.int8),
                   np.empty(0, dtype=np.int64), [])

    @classmethod
    def build(cls, components: Iterable[Union['GafAlignment', Walk]]) -> 'WalkBatch':
        """
        Builds a batch from alignments (quality taken from each record) or bare walks (quality missing).
        """
        vocabulary: dict[str, int] = {}
        codes, orientations, lengths, qualities = [], [], [], []
        for item in components:
            if isinstance(item, GafAlignment):
                walk, quality = item.walk, item.mapping_quality
            else:
                walk, quality = item, None
            lengths.append(len(walk))
            qualities.append(cls.MISSING_QUALITY if quality is None else quality)
            for segment in walk:
                codes.append(vocabulary.setdefault(segment.name, len(vocabulary)))
                orientations.append(segment.orientation.value)

        if not lengths: return cls.empty()
        return cls(
            cls._offsets_from_lengths(lengths), np.array(codes, dtype=np.int32),
            np.array(orientations, dtype=np.int8), np.array(qualities, dtype=np.int64), list(vocabulary)
        )

    @property
    def names(self) -> list[str]: return list(self._names)

    def code_for(self, name: str) -> int:
        """Returns the integer code for a segment name, or -1 if no walk in the batch uses it."""
        return self._vocabulary.get(name, -1)

    def __repr__(self): return f"WalkBatch(walks={len(self)}, segments={len(self._names)})"

    def __getitem__(self, item: int) -> Walk:
        if item < 0: item += len(self)
        if not 0 <= item < len(self): raise IndexError(item)
        start, end = self._offsets[item], self._offsets[item + 1]
        return Walk(OrientedName(self._names[c], Orientation(int(o)))
                    for c, o in zip(self.codes[start:end], self.orientations[start:end]))
