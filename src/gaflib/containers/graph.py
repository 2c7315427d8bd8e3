"""
Oriented segment graph backed by a `scipy.sparse` adjacency matrix, used to verify that parsed GAF paths are real
walks through the graph.
"""
from dataclasses import dataclass
from re import compile as regex
from typing import Union, Iterable, Optional, Dict, List, Set

import numpy as np
from scipy.sparse import csr_matrix

from gaflib import GaflibError
from gaflib.core.walk import OrientedName, Orientation, format_walk


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class WalkError(GaflibError):
    """Raised when a walk string cannot be resolved against a graph; the message is a plain-text reason."""
    @property
    def reason(self) -> str: return str(self)


# Classes --------------------------------------------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class Link:
    """
    A directed link from the end of one oriented segment to the start of another.

    Examples:
        >>> Link.coerce('1+', '2-').reverse()
        Link(2+ -> 1-)
    """
    u: OrientedName
    v: OrientedName

    def __repr__(self): return f"Link({self.u} -> {self.v})"
    def __iter__(self): return iter((self.u, self.v))

    def reverse(self) -> 'Link':
        """Returns the reverse-complement twin: ``a+ -> b-`` becomes ``b+ -> a-``."""
        return Link(self.v.reverse(), self.u.reverse())

    @staticmethod
    def _coerce_node(obj: Union[OrientedName, str]) -> OrientedName:
        if isinstance(obj, OrientedName): return obj
        return OrientedName.from_string(str(obj))

    @classmethod
    def coerce(cls, u: Union[OrientedName, str], v: Union[OrientedName, str]) -> 'Link':
        return cls(cls._coerce_node(u), cls._coerce_node(v))


class Walk:
    """
    A verified walk through the graph: oriented segments in traversal order.

    Attributes:
        segments (tuple[OrientedName, ...]): Segments in traversal order.
    """
    __slots__ = ('segments',)

    def __init__(self, segments: Iterable[OrientedName] = ()):
        self.segments = tuple(segments)

    @classmethod
    def empty(cls) -> 'Walk': return cls()
    @property
    def is_empty(self) -> bool: return not self.segments
    @property
    def names(self) -> list[str]:
        """Segment names without orientation, in traversal order."""
        return [i.name for i in self.segments]

    def __len__(self): return len(self.segments)
    def __iter__(self): return iter(self.segments)
    def __getitem__(self, item): return self.segments[item]
    def __bool__(self): return bool(self.segments)
    def __str__(self): return format_walk(self.segments)
    def __repr__(self): return f"Walk(steps={len(self.segments)})"
    def __eq__(self, other):
        if not isinstance(other, Walk): return NotImplemented
        return self.segments == other.segments
    def __hash__(self): return hash(self.segments)


class SegmentGraph:
    """
    A graph of segments where every segment exists in both orientations. Adding a link also adds its
    reverse-complement twin, as in GFA.

    The graph acts as the path validator for GAF ingestion (see `gaflib.utils.protocols.PathValidator`).

    Examples:
        >>> g = SegmentGraph(links=[('1+', '2+'), ('2+', '3-')])
        >>> g.make_walk('1+, 2+, 3-')
        Walk(steps=3)
        >>> g.has_link('3+', '2-')
        True
    """
    __slots__ = ('links', '_names', '_name_to_idx', '_matrix_cache')
    _WALK_SEPARATORS = regex(r'[,\s]+')

    def __init__(self, segments: Iterable[str] = None, links: Iterable[Union[Link, tuple]] = None):
        """
        Initializes the graph.

        Args:
            segments: Segment names to register (links register their segments automatically).
            links: Links as `Link` objects or ``(u, v)`` tuples of oriented names.
        """
        self.links: Set[Link] = set()
        self._names: List[str] = []
        self._name_to_idx: Dict[str, int] = {}
        self._matrix_cache: Optional[csr_matrix] = None
        if segments:
            for name in segments: self.add_segment(name)
        if links: self.add_links(links)

    def __repr__(self): return f"SegmentGraph with {len(self._names)} segments and {len(self.links)} links"
    def __len__(self): return len(self._names)
    def __contains__(self, item):
        if isinstance(item, OrientedName): item = item.name
        return item in self._name_to_idx

    @property
    def segments(self) -> list[str]: return list(self._names)

    def add_segment(self, name: str):
        """
        Registers a segment (both orientations).

        Raises:
            ValueError: If the name is empty or ends with an orientation sign.
        """
        name = str(name).strip()
        if not name or name.endswith(('+', '-')):
            raise ValueError(f'Invalid segment name: {name!r}')
        if name not in self._name_to_idx:
            self._name_to_idx[name] = len(self._names)
            self._names.append(name)
            self._matrix_cache = None

    def add_link(self, u: Union[OrientedName, str], v: Union[OrientedName, str]):
        """Adds a link and its reverse-complement twin."""
        self.add_links([(u, v)])

    def add_links(self, links: Iterable[Union[Link, tuple]]):
        """
        Batch addition of links, registering unseen segments.

        Args:
            links: An iterable of `Link` objects or ``(u, v)`` tuples.
        """
        len_before = len(self.links)
        for link in links:
            if not isinstance(link, Link): link = Link.coerce(*link)
            for node in link: self.add_segment(node.name)
            self.links.add(link)
            self.links.add(link.reverse())
        if len(self.links) > len_before: self._matrix_cache = None

    def _node_index(self, node: OrientedName) -> Optional[int]:
        # Forward and reverse copies of a segment sit next to each other: 2i and 2i + 1
        if (idx := self._name_to_idx.get(node.name)) is None: return None
        return 2 * idx + (0 if node.orientation is Orientation.FORWARD else 1)

    @property
    def matrix(self) -> csr_matrix:
        """The oriented adjacency matrix (2 rows per segment), rebuilt lazily after mutation."""
        if self._matrix_cache is None: self._matrix_cache = self._build_matrix()
        return self._matrix_cache

    def _build_matrix(self) -> csr_matrix:
        n = 2 * len(self._names)
        if not self.links: return csr_matrix((n, n), dtype=np.int8)
        rows = np.fromiter((self._node_index(l.u) for l in self.links), dtype=np.int64, count=len(self.links))
        cols = np.fromiter((self._node_index(l.v) for l in self.links), dtype=np.int64, count=len(self.links))
        data = np.ones(len(rows), dtype=np.int8)
        return csr_matrix((data, (rows, cols)), shape=(n, n))

    def has_link(self, u: Union[OrientedName, str], v: Union[OrientedName, str]) -> bool:
        """Whether ``v`` can directly follow ``u`` in a walk."""
        link = Link.coerce(u, v)
        if (i := self._node_index(link.u)) is None or (j := self._node_index(link.v)) is None: return False
        return bool(self.matrix[i, j])

    def make_walk(self, text: str) -> Walk:
        """
        Resolves a canonical oriented-name string into a walk.

        Args:
            text: Oriented names separated by commas and/or whitespace, e.g. ``"5+, 3-, 8+"``.

        Returns:
            The verified walk, or an empty walk if consecutive segments are not linked.

        Raises:
            WalkError: If a name is malformed or not in the graph.
        """
        nodes = []
        for token in self._WALK_SEPARATORS.split(text.strip()):
            if not token: continue
            try: nodes.append(OrientedName.from_string(token))
            except ValueError: raise WalkError(f'invalid node name: {token}') from None

        if missing := list(dict.fromkeys(i.name for i in nodes if i.name not in self._name_to_idx)):
            raise WalkError('the following nodes are not in the graph: ' + ', '.join(missing))
        if len(nodes) < 2: return Walk(nodes)

        idx = np.array([self._node_index(i) for i in nodes], dtype=np.int64)
        steps = np.asarray(self.matrix[idx[:-1], idx[1:]]).ravel()
        if not np.all(steps): return Walk.empty()
        return Walk(nodes)
