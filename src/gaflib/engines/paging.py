"""
Paged, thread-safe views over filtered alignments, and the display rows a table presents for them.
"""
import threading
from typing import Iterable, Optional, Generator

import numpy as np

from gaflib.containers.alignments import GafAlignment
from gaflib.engines.filter import AlignmentFilter, FilterCriteria


# Classes --------------------------------------------------------------------------------------------------------------
class PagedView:
    """
    Splits an ordered sequence of match indices into fixed-size pages.

    The current page is always within ``[0, page_count)`` (or 0 when there are no matches) after any mutation.
    State changes and reads hold one re-entrant lock, so concurrent observers never see a half-updated page.

    Examples:
        >>> view = PagedView(range(12), page_size=5)
        >>> view.page_count, view.rows().tolist()
        (3, [0, 1, 2, 3, 4])
        >>> view.set_current_page(99); view.rows().tolist()
        [10, 11]
    """
    DEFAULT_PAGE_SIZE = 500
    __slots__ = ('_lock', '_matches', '_page_size', '_current_page', '_page_rows')

    def __init__(self, matches: Iterable[int] = (), page_size: int = DEFAULT_PAGE_SIZE):
        self._lock = threading.RLock()
        self._matches = np.empty(0, dtype=np.int64)
        self._page_size = max(1, int(page_size))
        self._current_page = 0
        self._page_rows: Optional[np.ndarray] = None
        self.set_matches(matches)

    def __repr__(self):
        with self._lock:
            return f"PagedView(matches={len(self._matches)}, page={self._current_page}/{self.page_count}, " \
                   f"page_size={self._page_size})"

    def __len__(self): return self.total

    @property
    def lock(self) -> threading.RLock:
        """The lock guarding this view, for callers that need several mutations to appear atomic."""
        return self._lock

    @property
    def matches(self) -> np.ndarray:
        """A copy of the full match index sequence."""
        with self._lock: return self._matches.copy()
    @property
    def total(self) -> int:
        with self._lock: return len(self._matches)
    @property
    def page_size(self) -> int:
        with self._lock: return self._page_size
    @property
    def current_page(self) -> int:
        with self._lock: return self._current_page

    @property
    def page_count(self) -> int:
        """``ceil(total / page_size)``, or 0 when there are no matches."""
        with self._lock:
            if not len(self._matches): return 0
            return (len(self._matches) + self._page_size - 1) // self._page_size

    @property
    def has_next(self) -> bool:
        with self._lock: return self._current_page + 1 < self.page_count
    @property
    def has_previous(self) -> bool:
        with self._lock: return self._current_page > 0

    def _invalidate(self):
        self._page_rows = None

    def set_matches(self, matches: Iterable[int]):
        """Replaces the match sequence; the current page resets to 0 if it no longer exists."""
        matches = np.fromiter(matches, dtype=np.int64) if not isinstance(matches, np.ndarray) \
            else matches.astype(np.int64, copy=True)
        with self._lock:
            self._matches = matches
            if self._current_page >= self.page_count: self._current_page = 0
            self._invalidate()

    def set_page_size(self, size: int):
        """Sets the page size (at least 1); the current page resets to 0 if it no longer exists."""
        size = max(1, int(size))
        with self._lock:
            if size == self._page_size: return
            self._page_size = size
            if self._current_page >= self.page_count: self._current_page = 0
            self._invalidate()

    def set_current_page(self, page: int):
        """Moves to a page, clamped into ``[0, max(0, page_count - 1)]``."""
        with self._lock:
            page = min(max(0, int(page)), max(0, self.page_count - 1))
            if page == self._current_page: return
            self._current_page = page
            self._invalidate()

    def next_page(self):
        with self._lock: self.set_current_page(self._current_page + 1)

    def previous_page(self):
        with self._lock: self.set_current_page(self._current_page - 1)

    def rows(self) -> np.ndarray:
        """
        The alignment indices on the current page, in match order.

        Returns:
            A read-only slice ``matches[page * size : min(page * size + size, total)]``.
        """
        with self._lock:
            if self._page_rows is None:
                start = self._current_page * self._page_size
                rows = self._matches[start:start + self._page_size].copy()
                rows.flags.writeable = False
                self._page_rows = rows
            return self._page_rows

    def index_for_row(self, row: int) -> Optional[int]:
        """The alignment index shown at a row of the current page, or None if there is no such row."""
        rows = self.rows()
        if 0 <= row < len(rows): return int(rows[row])
        return None


class AlignmentTable:
    """
    Table model over ingested alignments: filtering, paging and display strings for each row.

    Examples:
        >>> table = AlignmentTable(result)
        >>> table.filter(FilterCriteria.from_text(30, '5+'))
        >>> for row in table.page_rows(): print('\\t'.join(row))
    """
    HEADERS = ('#', 'Query', 'Strand', 'MAPQ', 'Nodes', 'Path', 'Query range')
    __slots__ = ('_alignments', '_filter', 'criteria', 'view')

    def __init__(self, alignments: Iterable[GafAlignment], page_size: int = PagedView.DEFAULT_PAGE_SIZE):
        self._alignments = list(alignments)
        self._filter = AlignmentFilter(self._alignments)
        self.criteria = FilterCriteria()
        self.view = PagedView(range(len(self._alignments)), page_size)

    def __len__(self): return len(self._alignments)

    @property
    def is_filtered(self) -> bool:
        """Whether `reset` would change anything."""
        with self.view.lock: return self.view.total != len(self._alignments) or not self.criteria.is_default

    def filter(self, criteria: FilterCriteria):
        """Refilters the table and returns to the first page."""
        with self.view.lock:
            self.criteria = criteria
            self.view.set_matches(self._filter.apply(criteria))
            self.view.set_current_page(0)

    def reset(self):
        """Shows every alignment again with default criteria."""
        self.filter(FilterCriteria())

    def row(self, index: int) -> tuple[str, ...]:
        """Display strings for the alignment at ``index``, in `HEADERS` order."""
        a = self._alignments[index]
        return (str(a.line_number), a.query_name, a.strand,
                '' if a.mapping_quality is None else str(a.mapping_quality),
                str(a.node_count), a.path_string, a.query_range)

    def page_rows(self) -> Generator[tuple[str, ...], None, None]:
        """Display rows for the current page."""
        for index in self.view.rows(): yield self.row(int(index))
