"""
Oriented segment names and the two textual grammars used by GAF path fields.

A path field is either written with direction markers that precede each segment (``>5>3<8``, the GAF "arrow"
grammar) or as separated names carrying a trailing sign (``5+,3-,8+``, the "suffix" grammar). Both are parsed into
the same canonical tuple of `OrientedName`.

Examples:
    >>> parse_path('>5>3<8')
    (OrientedName('5+'), OrientedName('3+'), OrientedName('8-'))
    >>> format_walk(parse_path('5+,3-;8+'))
    '5+, 3-, 8+'
"""
from dataclasses import dataclass
from enum import Enum, IntEnum
from re import compile as regex
from typing import ClassVar, Callable, Iterable, Optional

from gaflib import GaflibError


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class ParseErrorKind(Enum):
    """Reasons a path field can be rejected; the value is the human-readable reason."""
    EMPTY_PATH = 'path field is empty'
    NO_NODES_IN_PATH = 'no nodes found in path'
    EMPTY_NODE_NAME = 'empty segment name in path'
    ENTRY_TOO_SHORT = 'path entry too short'
    MISSING_ORIENTATION = 'missing orientation (+/-) in path entry'


class PathParseError(GaflibError, ValueError):
    """
    Raised when a path field cannot be parsed.

    Attributes:
        kind (ParseErrorKind): What went wrong.
        reason (str): Plain-text reason, safe to show to a user.
    """
    def __init__(self, kind: ParseErrorKind, detail: str = None):
        self.kind = kind
        self.reason = f'{kind.value}: {detail}' if detail else kind.value
        super().__init__(self.reason)


# Classes --------------------------------------------------------------------------------------------------------------
class Orientation(IntEnum):
    """
    Traversal orientation of a segment.

    ``UNSPECIFIED`` never appears on a parsed segment; it marks filter tokens that match either orientation.
    """
    FORWARD = 1
    REVERSE = -1
    UNSPECIFIED = 0
    _SYMBOLS: ClassVar[dict]
    _FROM_SYMBOL: ClassVar[dict]

    def __str__(self): return self._SYMBOLS[self]
    @property
    def symbol(self) -> str: return self._SYMBOLS[self]

    def flip(self) -> 'Orientation':
        """Returns the opposite orientation (``UNSPECIFIED`` stays unspecified)."""
        return Orientation(-self.value)

    @classmethod
    def from_symbol(cls, s: str) -> 'Orientation':
        """
        Converts ``+``/``>`` or ``-``/``<`` to an orientation.

        Raises:
            ValueError: If the symbol is not an orientation marker.
        """
        try: return cls._FROM_SYMBOL[s]
        except KeyError: raise ValueError(f'Not an orientation symbol: {s!r}') from None

    @classmethod
    def _init_caches(cls):
        cls._SYMBOLS = {cls.FORWARD: '+', cls.REVERSE: '-', cls.UNSPECIFIED: ''}
        cls._FROM_SYMBOL = {'+': cls.FORWARD, '>': cls.FORWARD, '-': cls.REVERSE, '<': cls.REVERSE}


Orientation._init_caches()


@dataclass(frozen=True, slots=True)
class OrientedName:
    """
    A segment name paired with the orientation it is traversed in.

    Attributes:
        name: The segment identifier, without any sign.
        orientation: ``Orientation.FORWARD`` or ``Orientation.REVERSE``.

    Examples:
        >>> OrientedName.from_string('utg12-')
        OrientedName('utg12-')
        >>> str(OrientedName('utg12', Orientation.FORWARD))
        'utg12+'
    """
    name: str
    orientation: Orientation

    def __post_init__(self):
        if not self.name or self.name != self.name.strip():
            raise ValueError(f'Segment name must be non-empty and trimmed: {self.name!r}')
        if self.orientation not in (Orientation.FORWARD, Orientation.REVERSE):
            raise ValueError(f'Segment orientation must be + or -, got {self.orientation!r}')

    def __str__(self): return self.name + self.orientation.symbol
    def __repr__(self): return f"OrientedName('{self}')"

    @property
    def is_forward(self) -> bool: return self.orientation is Orientation.FORWARD

    def reverse(self) -> 'OrientedName':
        """Returns the same segment traversed in the opposite direction."""
        return OrientedName(self.name, self.orientation.flip())

    @classmethod
    def from_string(cls, text: str) -> 'OrientedName':
        """
        Parses a canonical oriented name such as ``5+``.

        Raises:
            ValueError: If the text is too short or does not end in ``+``/``-``.
        """
        text = text.strip()
        if len(text) < 2 or text[-1] not in '+-':
            raise ValueError(f'Not an oriented segment name: {text!r}')
        return cls(text[:-1].strip(), Orientation.from_symbol(text[-1]))


ParsedWalk = tuple[OrientedName, ...]


class Grammar(Enum):
    """
    The two path grammars. Which one applies is decided from the text itself by `Grammar.detect`.
    """
    ARROW = 'arrow'
    SUFFIX = 'suffix'

    @staticmethod
    def detect(text: str) -> 'Grammar':
        """Direction markers anywhere in the text select the arrow grammar, even if signs are also present."""
        return Grammar.ARROW if ('>' in text or '<' in text) else Grammar.SUFFIX

    def parse(self, text: str) -> ParsedWalk:
        """Parses already-trimmed, non-empty text with this grammar."""
        return _GRAMMAR_PARSERS[self](text)


# Functions ------------------------------------------------------------------------------------------------------------
def normalise_name(name: str, orientation: Orientation) -> OrientedName:
    """
    Trims a segment name and drops one redundant trailing sign before attaching the resolved orientation.

    Args:
        name: Raw segment name, possibly padded or ending in a leftover ``+``/``-``.
        orientation: The orientation resolved by the grammar.

    Returns:
        The canonical oriented name.

    Raises:
        PathParseError: If nothing is left of the name.

    Examples:
        >>> normalise_name(' 5+ ', Orientation.REVERSE)
        OrientedName('5-')
    """
    trimmed = name.strip()
    if trimmed.endswith(('+', '-')): trimmed = trimmed[:-1].strip()
    if not trimmed: raise PathParseError(ParseErrorKind.EMPTY_NODE_NAME)
    return OrientedName(trimmed, orientation)


def parse_path(text: str) -> ParsedWalk:
    """
    Parses one GAF path field into its oriented segment names, in traversal order.

    Args:
        text: The raw path field (column 6 of a GAF line).

    Returns:
        A non-empty tuple of `OrientedName`.

    Raises:
        PathParseError: On the first problem encountered; no partial result is returned.

    Examples:
        >>> parse_path('5+,3-,8+')
        (OrientedName('5+'), OrientedName('3-'), OrientedName('8+'))
    """
    trimmed = text.strip()
    if not trimmed or trimmed == '*': raise PathParseError(ParseErrorKind.EMPTY_PATH)
    return Grammar.detect(trimmed).parse(trimmed)


def format_walk(walk: Iterable[OrientedName], separator: str = None) -> str:
    """Joins oriented names into the canonical display string (``"5+, 3-"``)."""
    return (PATH_SEPARATOR if separator is None else separator).join(str(i) for i in walk)


def _parse_arrows(text: str) -> ParsedWalk:
    # Each marker governs the name that follows it, so a name is only emitted when the next marker (or the end of
    # the text) is reached.
    nodes = []
    buffer = []
    pending: Optional[Orientation] = None

    def flush():
        if pending is None: return
        name = ''.join(buffer).strip()
        if not name: raise PathParseError(ParseErrorKind.EMPTY_NODE_NAME)
        nodes.append(normalise_name(name, pending))
        buffer.clear()

    for ch in text.replace(',', ''):
        if ch in _ARROWS:
            flush()
            pending = _ARROWS[ch]
        elif ch != ';': buffer.append(ch)
    flush()

    if not nodes: raise PathParseError(ParseErrorKind.NO_NODES_IN_PATH)
    return tuple(nodes)


def _parse_suffixes(text: str) -> ParsedWalk:
    nodes = []
    for part in _SUFFIX_SEPARATORS.split(text):
        if not part: continue
        part = part.strip()
        if len(part) < 2: raise PathParseError(ParseErrorKind.ENTRY_TOO_SHORT)
        if part[-1] not in '+-': raise PathParseError(ParseErrorKind.MISSING_ORIENTATION, part)
        nodes.append(normalise_name(part[:-1], Orientation.from_symbol(part[-1])))

    if not nodes: raise PathParseError(ParseErrorKind.NO_NODES_IN_PATH)
    return tuple(nodes)


# Constants ------------------------------------------------------------------------------------------------------------
PATH_SEPARATOR = ', '
_ARROWS = {'>': Orientation.FORWARD, '<': Orientation.REVERSE}
_SUFFIX_SEPARATORS = regex(r'[,;]+')
_GRAMMAR_PARSERS: dict[Grammar, Callable[[str], ParsedWalk]] = {
    Grammar.ARROW: _parse_arrows,
    Grammar.SUFFIX: _parse_suffixes,
}
