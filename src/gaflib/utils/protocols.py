from typing import Protocol, runtime_checkable, Iterator


@runtime_checkable
class VerifiedWalk(Protocol):
    """Protocol for walk objects returned by a path validator."""
    @property
    def segments(self) -> tuple: ...
    @property
    def is_empty(self) -> bool: ...
    def __len__(self) -> int: ...
    def __iter__(self) -> Iterator: ...


@runtime_checkable
class PathValidator(Protocol):
    """
    Protocol for objects that turn a canonical oriented-name string (e.g. ``"5+, 3-, 8+"``) into a verified walk.

    Implementations raise ``gaflib.containers.graph.WalkError`` with a human-readable reason when the text cannot
    be resolved, and may return an empty walk when the segments exist but do not connect.
    """
    def make_walk(self, text: str) -> VerifiedWalk: ...
