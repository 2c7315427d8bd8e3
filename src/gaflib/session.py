"""
Highlighting handoff between ingested alignments and a graphics layer.

A `HighlightSession` is owned by the presentation layer and passed to whatever needs to know which walks are
highlighted and which path sources are still open.
"""
from typing import Iterable, Callable

from gaflib.containers.graph import Walk
from gaflib.core.walk import OrientedName


# Classes --------------------------------------------------------------------------------------------------------------
class HighlightSession:
    """
    Tracks the highlighted walks and which path sources (e.g. ``'gaf'``, ``'query'``) are open.

    Highlighting is shared between sources: closing one only clears it when no other source remains open.

    Examples:
        >>> session = HighlightSession()
        >>> session.open('gaf')
        >>> missing = session.highlight(result, [0, 3], locate=scene.select_segment)
        >>> session.close('gaf')
        True
    """
    __slots__ = ('query_walks', '_open_sources')

    def __init__(self):
        self.query_walks: list[Walk] = []
        self._open_sources: set[str] = set()

    def __repr__(self): return f"HighlightSession(walks={len(self.query_walks)}, open={sorted(self._open_sources)})"

    @property
    def open_sources(self) -> frozenset[str]: return frozenset(self._open_sources)
    def is_open(self, source: str) -> bool: return source in self._open_sources

    def open(self, source: str):
        self._open_sources.add(source)

    def close(self, source: str) -> bool:
        """
        Marks a source closed.

        Returns:
            True if this cleared the highlighted walks (no other source is open).
        """
        self._open_sources.discard(source)
        if self._open_sources: return False
        self.query_walks.clear()
        return True

    def highlight(self, result, indices: Iterable[int], locate: Callable[[OrientedName], bool],
                  source: str = 'gaf') -> list[str]:
        """
        Replaces the highlighted walks with those of the given alignments.

        Args:
            result: An `IngestionResult` (anything with ``walks_for``).
            indices: Alignment indices; out-of-range indices are skipped.
            locate: Called for every segment of every walk; returns False if the segment has no visual element.
            source: The source doing the highlighting, marked open.

        Returns:
            Sorted, unique names of segments that could not be located.
        """
        self.open(source)
        self.query_walks = result.walks_for(indices)
        missing = {segment.name for walk in self.query_walks for segment in walk if not locate(segment)}
        return sorted(missing)
