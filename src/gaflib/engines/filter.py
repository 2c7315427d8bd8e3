"""
Filtering of ingested alignments by mapping quality and by the segments their walks visit.
"""
from dataclasses import dataclass
from enum import IntEnum
from re import compile as regex
from typing import Union, Iterable, Sequence

import numpy as np

from gaflib.containers.alignments import GafAlignment, WalkBatch
from gaflib.core.walk import Orientation, OrientedName
from gaflib.utils.resources import jit


# Classes --------------------------------------------------------------------------------------------------------------
class MatchMode(IntEnum):
    """How segment tokens combine: ANY passes on the first token found, ALL needs every token somewhere."""
    ANY = 0
    ALL = 1

    @classmethod
    def coerce(cls, mode: Union['MatchMode', str, int]) -> 'MatchMode':
        if isinstance(mode, str): return cls[mode.strip().upper()]
        return cls(mode)


@dataclass(frozen=True, slots=True)
class SegmentToken:
    """
    One segment to look for. A token written with a trailing sign (``5+``) must match name and orientation; a bare
    name (``5``) matches the segment in either orientation.
    """
    name: str
    orientation: Orientation = Orientation.UNSPECIFIED

    def __str__(self): return self.name + self.orientation.symbol
    @property
    def qualified(self) -> bool: return self.orientation is not Orientation.UNSPECIFIED

    @classmethod
    def from_string(cls, text: str) -> 'SegmentToken':
        text = text.strip()
        if text.endswith(('+', '-')): return cls(text[:-1], Orientation.from_symbol(text[-1]))
        return cls(text)

    def matches(self, segment: OrientedName) -> bool:
        if segment.name != self.name: return False
        return not self.qualified or segment.orientation == self.orientation


@dataclass(frozen=True, slots=True)
class FilterCriteria:
    """
    What an alignment must satisfy to be shown.

    Attributes:
        min_quality: Inclusive mapping-quality threshold; ``<= 0`` disables it.
        tokens: Segments to look for, in the order given.
        mode: How the tokens combine.

    Examples:
        >>> FilterCriteria.from_text(20, '5+, 8 12-', 'all').tokens
        (SegmentToken(name='5', orientation=<Orientation.FORWARD: 1>), ...)
    """
    min_quality: int = 0
    tokens: tuple[SegmentToken, ...] = ()
    mode: MatchMode = MatchMode.ANY

    def __post_init__(self):
        object.__setattr__(self, 'tokens', tuple(
            t if isinstance(t, SegmentToken) else SegmentToken.from_string(t) for t in self.tokens))
        object.__setattr__(self, 'mode', MatchMode.coerce(self.mode))

    @classmethod
    def from_text(cls, min_quality: int = 0, text: str = '', mode: Union[MatchMode, str] = MatchMode.ANY
                  ) -> 'FilterCriteria':
        """
        Builds criteria from free text as typed by a user: tokens separated by any run of commas and whitespace.
        """
        return cls(min_quality, tuple(SegmentToken.from_string(i) for i in _TOKEN_SEPARATORS.split(text.strip()) if i),
                   mode)

    @property
    def is_default(self) -> bool:
        """True when these criteria let every alignment through."""
        return self.min_quality <= 0 and not self.tokens

    def accepts(self, alignment: GafAlignment) -> bool:
        """Evaluates the criteria against a single alignment."""
        if self.min_quality > 0 and (alignment.mapping_quality is None or alignment.mapping_quality < self.min_quality):
            return False
        if not self.tokens: return True
        found = (any(t.matches(s) for s in alignment.walk) for t in self.tokens)
        return all(found) if self.mode is MatchMode.ALL else any(found)


class AlignmentFilter:
    """
    Applies `FilterCriteria` to a fixed set of alignments, reusing one columnar `WalkBatch` across queries.

    Examples:
        >>> f = AlignmentFilter(result)
        >>> f.apply(FilterCriteria(min_quality=30))
        array([0, 2, 5])
    """
    __slots__ = ('batch',)

    def __init__(self, source: Union['IngestionResult', WalkBatch, Iterable[GafAlignment]]):
        if isinstance(source, WalkBatch): self.batch = source
        elif isinstance(getattr(source, 'batch', None), WalkBatch): self.batch = source.batch
        else: self.batch = WalkBatch.build(source)

    def __len__(self): return len(self.batch)

    def apply(self, criteria: FilterCriteria) -> np.ndarray:
        """
        Returns:
            The indices of passing alignments, in their original order.
        """
        batch = self.batch
        if criteria.min_quality > 0: keep = batch.qualities >= criteria.min_quality
        else: keep = np.ones(len(batch), dtype=np.bool_)

        if criteria.tokens and len(batch):
            token_codes = np.array([batch.code_for(t.name) for t in criteria.tokens], dtype=np.int32)
            token_orientations = np.array([t.orientation.value for t in criteria.tokens], dtype=np.int8)
            keep &= _membership_kernel(batch.offsets, batch.codes, batch.orientations, token_codes,
                                       token_orientations, criteria.mode is MatchMode.ALL)
        return np.flatnonzero(keep)


# Functions ------------------------------------------------------------------------------------------------------------
def filter_alignments(alignments: Union['IngestionResult', Sequence[GafAlignment]], criteria: FilterCriteria
                      ) -> np.ndarray:
    """
    Filters alignments by quality and segment membership.

    Args:
        alignments: An `IngestionResult` or a sequence of `GafAlignment`.
        criteria: The criteria to apply.

    Returns:
        A 1D int64 array of matching indices, in original order.
    """
    return AlignmentFilter(alignments).apply(criteria)


@jit(nopython=True, cache=True, nogil=True)
def _membership_kernel(offsets, codes, orientations, token_codes, token_orientations, match_all):
    """
    For each walk, tests whether any (or all) tokens occur in it. A token orientation of 0 matches both
    orientations; one segment may satisfy several tokens.
    """
    n = len(offsets) - 1
    n_tokens = len(token_codes)
    out = np.zeros(n, dtype=np.bool_)
    for i in range(n):
        start, end = offsets[i], offsets[i + 1]
        passed = match_all
        for t in range(n_tokens):
            code, orientation = token_codes[t], token_orientations[t]
            found = False
            for j in range(start, end):
                if codes[j] == code and (orientation == 0 or orientations[j] == orientation):
                    found = True
                    break
            if match_all:
                if not found:
                    passed = False
                    break
            elif found:
                passed = True
                break
        out[i] = passed
    return out


# Constants ------------------------------------------------------------------------------------------------------------
_TOKEN_SEPARATORS = regex(r'[,\s]+')
