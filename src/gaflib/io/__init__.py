"""
Module for reading line-oriented alignment files.
"""
from abc import ABC, abstractmethod
from typing import Union, Generator, BinaryIO, Iterable, TextIO


# Classes --------------------------------------------------------------------------------------------------------------
class BaseReader(ABC):
    """
    Abstract base class for line-oriented readers.

    The handle can be an open binary or text file, or any iterable of ``bytes``/``str`` lines; bytes are decoded
    as UTF-8 with undecodable bytes replaced.
    """
    _ENCODING = 'utf-8'
    __slots__ = ('_handle', '_iterator')
    def __init__(self, handle: Union[BinaryIO, TextIO, Iterable[Union[bytes, str]]], **kwargs):
        """
        Initializes the reader.

        Args:
            handle: The open file handle or line iterable to read from.
            **kwargs: Additional arguments.
        """
        self._handle = handle
        self._iterator = None

    @abstractmethod
    def __iter__(self) -> Generator: ...
    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb): self.close()
    def __next__(self):
        if self._iterator is None:
            self._iterator = self.__iter__()
        return next(self._iterator)

    def close(self):
        """Closes the reader (the handle belongs to the caller)."""
        pass

    def read_lines(self) -> Generator[tuple[int, str], None, None]:
        """
        Yields ``(line_number, line)`` for every physical line, numbered from 1, with the line terminator removed.
        """
        encoding = self._ENCODING
        for number, line in enumerate(self._handle, 1):
            if isinstance(line, (bytes, bytearray)): line = line.decode(encoding, 'replace')
            yield number, line.rstrip('\r\n')
