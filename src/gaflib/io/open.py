from io import IOBase
from typing import Union, BinaryIO, Optional, Generator
from pathlib import Path
from sys import stdin
from importlib import import_module


# Classes --------------------------------------------------------------------------------------------------------------
class PeekableHandle:
    """
    A wrapper around a binary stream that allows peeking at the beginning of the
    content without consuming it. Used by Xopen to sniff compression on pipes.
    """
    __slots__ = ('_stream', '_peek_buffer', '_buffer_pos', '_buffer_len')

    def __init__(self, stream: BinaryIO, max_peek: int = 4096):
        self._stream = stream
        self._peek_buffer = stream.read(max_peek)
        self._buffer_pos = 0
        self._buffer_len = len(self._peek_buffer)

    def peek(self, size: int = -1) -> bytes:
        """Returns content from the buffer without advancing the stream position."""
        if size == -1 or size > self._buffer_len: return self._peek_buffer
        return self._peek_buffer[:size]

    def read(self, size: int = -1) -> bytes:
        """Reads from the stream, consuming the peek buffer first."""
        if self._buffer_pos >= self._buffer_len: return self._stream.read(size)
        if size == -1:
            chunk = self._peek_buffer[self._buffer_pos:]
            self._buffer_pos = self._buffer_len
            return chunk + self._stream.read()
        available = self._buffer_len - self._buffer_pos
        if size <= available:
            chunk = self._peek_buffer[self._buffer_pos: self._buffer_pos + size]
            self._buffer_pos += size
            return chunk
        chunk = self._peek_buffer[self._buffer_pos:]
        self._buffer_pos = self._buffer_len
        return chunk + self._stream.read(size - available)

    def readable(self) -> bool: return True

    def __iter__(self) -> Generator[bytes, None, None]:
        """Iterates over lines, stitching the peek buffer onto the rest of the stream."""
        if self._buffer_pos < self._buffer_len:
            fragment = self._peek_buffer[self._buffer_pos:]
            self._buffer_pos = self._buffer_len
            lines = fragment.splitlines(keepends=True)
            for i, line in enumerate(lines):
                # An unterminated final fragment continues on the stream
                if i == len(lines) - 1 and not line.endswith(b'\n'): yield line + self._stream.readline()
                else: yield line
        yield from self._stream

    def close(self):
        """Closes the underlying stream if possible."""
        if hasattr(self._stream, 'close'): self._stream.close()


class Xopen:
    """
    Opens a path, ``'-'`` (stdin) or binary stream for reading, transparently decompressing
    gzip, bzip2, xz and zstandard content detected by magic bytes.

    Examples:
        >>> with Xopen("alignments.gaf.gz") as f:
        ...     first = f.readline()
    """
    _MAGIC = {
        b'\x1f\x8b': 'gzip',
        b'\x42\x5a': 'bz2',
        b'\xfd7zXZ\x00': 'lzma',
        b'\x28\xb5\x2f\xfd': 'zstandard'
    }
    _MIN_N_BYTES = max(len(i) for i in _MAGIC.keys())
    _OPEN_FUNCS = {}

    def __init__(self, file: Union[str, Path, BinaryIO]):
        self.file = file
        self._handle: Optional[BinaryIO] = None
        self._owned: list = []

    def __enter__(self) -> BinaryIO:
        self._handle = self._open()
        return self._handle

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Closes every handle this instance opened, innermost last."""
        for handle in reversed(self._owned): handle.close()
        self._owned.clear()

    def _get_opener(self, pkg_name: str):
        """
        Retrieves the open function for a compression package, importing it if necessary.

        Raises:
            ModuleNotFoundError: If the module cannot be imported.
        """
        if pkg_name not in self._OPEN_FUNCS:
            try: self._OPEN_FUNCS[pkg_name] = import_module(pkg_name).open
            except ImportError: raise ModuleNotFoundError(f"Compression module '{pkg_name}' not installed.")
        return self._OPEN_FUNCS[pkg_name]

    def _decompress(self, stream, start: bytes) -> BinaryIO:
        for magic, pkg in self._MAGIC.items():
            if start.startswith(magic):
                handle = self._get_opener(pkg)(stream, mode='rb')
                self._owned.append(handle)
                return handle
        return stream

    def _open(self) -> BinaryIO:
        if isinstance(self.file, IOBase): raw_stream = self.file
        elif str(self.file) in {'-', 'stdin'}: raw_stream = stdin.buffer
        else:
            raw_stream = open(Path(self.file).expanduser(), mode='rb')
            self._owned.append(raw_stream)

        try:
            if raw_stream.seekable():
                start = raw_stream.read(self._MIN_N_BYTES)
                raw_stream.seek(0)
                return self._decompress(raw_stream, start)
        except (AttributeError, ValueError, OSError): pass

        # Non-seekable (stdin, pipes)
        peekable = PeekableHandle(raw_stream)
        return self._decompress(peekable, peekable.peek(self._MIN_N_BYTES))
