"""
Ingestion of GAF (Graph Alignment Format) files into verified graph walks.

Every problem with an individual line is recorded as a `Diagnostic` and the line is skipped; only a source that
cannot be opened or read at all turns the whole ingestion into a single diagnostic.

Examples:
    >>> graph = SegmentGraph(links=[('5+', '3+'), ('3+', '8-')])
    >>> result = read_gaf('reads.gaf', graph)
    >>> for alignment in result: print(alignment.query_name, alignment.path_string)
    >>> print('\\n'.join(result.warnings))
"""
import lzma
import zlib
from dataclasses import dataclass, field
from enum import Enum
from functools import cached_property
from pathlib import Path
from re import compile as regex
from typing import Union, Generator, Optional, Iterable, BinaryIO
from warnings import warn

from gaflib import GafFileWarning
from gaflib.containers.alignments import GafAlignment, WalkBatch
from gaflib.containers.graph import Walk, WalkError
from gaflib.core.walk import parse_path, format_walk, PathParseError
from gaflib.io import BaseReader
from gaflib.io.open import Xopen
from gaflib.utils.protocols import PathValidator


# Classes --------------------------------------------------------------------------------------------------------------
class DiagnosticKind(Enum):
    """Why a line (or the whole source) produced no alignment; the value is the message template."""
    NOT_ENOUGH_FIELDS = 'Line {line}: not enough fields, skipped.'
    PARSE_FAILED = 'Line {line}: failed to parse path ({reason}).'
    INVALID_PATH = 'Line {line}: invalid path ({reason}).'
    SOURCE_UNAVAILABLE = 'Cannot open GAF file: {reason}'
    NO_ALIGNMENTS = 'No alignments were found in the file.'


@dataclass(frozen=True, slots=True)
class Diagnostic:
    """
    A plain-text warning about a skipped line. ``str()`` gives the message, safe to display verbatim.

    Attributes:
        kind: The category of problem.
        line_number: The 1-based line, or None for source-level diagnostics.
        reason: Detail substituted into the message, if any.
    """
    kind: DiagnosticKind
    line_number: Optional[int] = None
    reason: str = ''

    def __str__(self): return self.message
    @property
    def message(self) -> str: return self.kind.value.format(line=self.line_number, reason=self.reason)


@dataclass
class IngestionResult:
    """
    Alignments that were ingested, in input order, and the diagnostics for everything that was not.

    Attributes:
        alignments: One `GafAlignment` per accepted line.
        diagnostics: One `Diagnostic` per skipped line, in line order.
    """
    alignments: list[GafAlignment] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def __len__(self): return len(self.alignments)
    def __iter__(self): return iter(self.alignments)
    def __getitem__(self, item): return self.alignments[item]

    @property
    def is_empty(self) -> bool: return not self.alignments
    @property
    def warnings(self) -> list[str]:
        """The diagnostic messages as plain strings."""
        return [i.message for i in self.diagnostics]

    @cached_property
    def batch(self) -> WalkBatch:
        """Columnar view of all walks and qualities, built on first use."""
        return WalkBatch.build(self.alignments)

    def walks_for(self, indices: Iterable[int]) -> list[Walk]:
        """
        Returns the verified walks for the given alignment indices, skipping any that are out of range.

        This is what a graphics layer needs to highlight a selection.
        """
        n = len(self.alignments)
        return [self.alignments[i].walk for i in map(int, indices) if 0 <= i < n]

    def finalise(self) -> 'IngestionResult':
        """Ensures an empty result is never silent."""
        if not self.alignments and not self.diagnostics:
            self.diagnostics.append(Diagnostic(DiagnosticKind.NO_ALIGNMENTS))
        return self

    @classmethod
    def unavailable(cls, source: str) -> 'IngestionResult':
        """The result for a source that could not be opened or read."""
        return cls(diagnostics=[Diagnostic(DiagnosticKind.SOURCE_UNAVAILABLE, reason=source)])


class GafReader(BaseReader):
    """
    Reader for GAF files, resolving each path against a graph.

    Iterating yields only the accepted alignments and collects diagnostics on the reader; `ingest` returns both.
    A reader consumes its handle once and is not reentrant.

    Examples:
        >>> with open("reads.gaf", "rb") as f:
        ...     result = GafReader(f, graph).ingest()
    """
    _MIN_FIELDS = 6
    _PATH_FIELD = 5
    _QUALITY_FIELD = 11
    _INTEGER = regex(r'[+-]?[0-9]+')
    _INT_RANGE = (-2 ** 31, 2 ** 31 - 1)
    __slots__ = ('_validator', 'diagnostics')

    def __init__(self, handle: Union[BinaryIO, Iterable[Union[bytes, str]]], validator: PathValidator, **kwargs):
        """
        Initializes the reader.

        Args:
            handle: An open GAF file or iterable of lines.
            validator: Resolves canonical oriented-name strings into verified walks (e.g. a `SegmentGraph`).
        """
        super().__init__(handle, **kwargs)
        self._validator = validator
        self.diagnostics: list[Diagnostic] = []

    def __iter__(self) -> Generator[GafAlignment, None, None]:
        for item in self._records():
            if isinstance(item, Diagnostic): self.diagnostics.append(item)
            else: yield item

    def ingest(self) -> IngestionResult:
        """
        Reads every line of the handle.

        Returns:
            The alignments and diagnostics, with the "no alignments" diagnostic added if both would be empty.
        """
        result = IngestionResult()
        for item in self._records():
            if isinstance(item, Diagnostic): result.diagnostics.append(item)
            else: result.alignments.append(item)
        return result.finalise()

    def _records(self) -> Generator[Union[GafAlignment, Diagnostic], None, None]:
        parse = self.parse_row
        for number, line in self.read_lines():
            line = line.strip()
            if not line or line.startswith('#'): continue
            yield parse(number, line.split('\t'))

    def parse_row(self, line_number: int, parts: list[str]) -> Union[GafAlignment, Diagnostic]:
        """
        Parses a GAF row.

        Args:
            line_number: The 1-based line number of the row.
            parts: The tab-separated columns.

        Returns:
            A `GafAlignment`, or the `Diagnostic` explaining why the row was skipped.
        """
        if len(parts) < self._MIN_FIELDS: return Diagnostic(DiagnosticKind.NOT_ENOUGH_FIELDS, line_number)

        raw_path = parts[self._PATH_FIELD]
        try: nodes = parse_path(raw_path)
        except PathParseError as e: return Diagnostic(DiagnosticKind.PARSE_FAILED, line_number, e.reason)

        path_string = format_walk(nodes)
        reason = ''
        try: walk = self._validator.make_walk(path_string)
        except WalkError as e: walk, reason = None, e.reason
        if walk is None or walk.is_empty:
            return Diagnostic(DiagnosticKind.INVALID_PATH, line_number, reason or 'the nodes do not form a path')

        return GafAlignment(
            query_name=parts[0], query_length=self._to_int(parts[1]), query_start=self._to_int(parts[2]),
            query_end=self._to_int(parts[3]), strand=parts[4],
            mapping_quality=self._to_int(parts[self._QUALITY_FIELD]) if len(parts) > self._QUALITY_FIELD else None,
            line_number=line_number, raw_path=raw_path, path_string=path_string, walk=walk
        )

    @classmethod
    def _to_int(cls, text: str) -> Optional[int]:
        """Strict 32-bit integer parsing; anything else, including out-of-range values, is None."""
        if not cls._INTEGER.fullmatch(text): return None
        value = int(text)
        low, high = cls._INT_RANGE
        return value if low <= value <= high else None


# Functions ------------------------------------------------------------------------------------------------------------
def read_gaf(file: Union[str, Path, BinaryIO], validator: PathValidator) -> IngestionResult:
    """
    Ingests a GAF file, which may be compressed, from a path, ``'-'`` or an open binary stream.

    Args:
        file: The GAF source.
        validator: Resolves paths into verified walks (e.g. a `SegmentGraph`).

    Returns:
        The ingestion result. If the source cannot be opened, decompressed or read, the result is empty with a
        single "Cannot open GAF file" diagnostic, and a `GafFileWarning` is issued.
    """
    try:
        with Xopen(file) as handle:
            return GafReader(handle, validator).ingest()
    except (OSError, EOFError, ImportError, zlib.error, lzma.LZMAError) as e:
        source = str(file) if isinstance(file, (str, Path)) else str(getattr(file, 'name', file))
        warn(f'Cannot open GAF file {source}: {e}', GafFileWarning)
        return IngestionResult.unavailable(source)
