from enum import Enum
from io import IOBase
from typing import Union, BinaryIO, Optional, Iterator
from pathlib import Path
import sys
from importlib import import_module


# Classes --------------------------------------------------------------------------------------------------------------
class Compression(str, Enum):
    """Compression formats recognised by :class:`Xopen`, valued by the module that opens them."""
    GZIP = 'gzip'
    BZ2 = 'bz2'
    LZMA = 'lzma'
    ZSTD = 'zstandard'

    @property
    def magic(self) -> bytes: return _MAGIC[self]

    @classmethod
    def from_magic(cls, start: bytes) -> Optional['Compression']:
        """Returns the compression whose magic number starts `start`, or None for uncompressed data."""
        for fmt in cls:
            if start.startswith(fmt.magic): return fmt
        return None

    @classmethod
    def from_path(cls, path: Path) -> Optional['Compression']:
        """Returns the compression implied by a file extension, or None."""
        return _EXTENSIONS.get(path.suffix.lower().lstrip('.'))


_MAGIC = {
    Compression.GZIP: b'\x1f\x8b',
    Compression.BZ2: b'\x42\x5a\x68',
    Compression.LZMA: b'\xfd7zXZ\x00',
    Compression.ZSTD: b'\x28\xb5\x2f\xfd'
}
_EXTENSIONS = {'gz': Compression.GZIP, 'bz2': Compression.BZ2, 'xz': Compression.LZMA, 'zst': Compression.ZSTD}


class PeekableHandle:
    """
    A wrapper around a BinaryIO stream that allows peeking at the beginning of the
    content without consuming it. Used by Xopen to sniff compression on pipes.
    """
    __slots__ = ('_stream', '_peek_buffer', '_buffer_pos', '_buffer_len')

    def __init__(self, stream: BinaryIO, max_peek: int = 4096):
        """
        Initializes the PeekableHandle.

        Args:
            stream: The underlying binary stream.
            max_peek: Maximum number of bytes to buffer for peeking.
        """
        self._stream = stream
        self._peek_buffer = stream.read(max_peek)
        self._buffer_pos = 0
        self._buffer_len = len(self._peek_buffer)

    def peek(self, size: int = -1) -> bytes:
        """Returns buffered bytes without advancing the stream position."""
        if size == -1 or size > self._buffer_len: return self._peek_buffer
        return self._peek_buffer[:size]

    def read(self, size: int = -1) -> bytes:
        """
        Reads from the stream, consuming the buffer first if available.

        Args:
            size: Number of bytes to read. If -1, reads until EOF.
        """
        # 1. Buffer exhausted
        if self._buffer_pos >= self._buffer_len:
            return self._stream.read(size)

        # 2. Read all (rest of buffer + stream)
        if size is None or size < 0:
            chunk = self._peek_buffer[self._buffer_pos:]
            self._buffer_pos = self._buffer_len
            return chunk + self._stream.read()

        # 3. Read partial
        available = self._buffer_len - self._buffer_pos
        if size <= available:
            chunk = self._peek_buffer[self._buffer_pos: self._buffer_pos + size]
            self._buffer_pos += size
            return chunk
        chunk = self._peek_buffer[self._buffer_pos:]
        self._buffer_pos = self._buffer_len
        return chunk + self._stream.read(size - available)

    def __iter__(self) -> Iterator[bytes]:
        """
        Iterates over lines in the stream, handling the buffer seamlessly.

        Yields:
            Lines from the stream.
        """
        # 1. Yield lines from the buffer
        if self._buffer_pos < self._buffer_len:
            fragment = self._peek_buffer[self._buffer_pos:]
            self._buffer_pos = self._buffer_len
            lines = fragment.splitlines(keepends=True)
            for i, line in enumerate(lines):
                # An unterminated last line continues in the stream
                if i == len(lines) - 1 and not line.endswith(b'\n'): yield line + self._stream.readline()
                else: yield line

        # 2. Yield rest from stream
        yield from self._stream

    def close(self):
        """Closes the underlying stream if possible."""
        if hasattr(self._stream, 'close'): self._stream.close()


class Xopen:
    """
    Opens paths or streams for binary I/O, handling compression transparently.

    Reading sniffs the compression from magic bytes, writing infers it from the file extension.
    ``'-'`` maps to stdin or stdout depending on the mode.

    Examples:
        >>> with Xopen("alignments.paf.gz", "rb") as f:
        ...     content = f.read()
    """
    _MIN_N_BYTES = max(len(i) for i in _MAGIC.values())
    _OPEN_FUNCS = {}

    def __init__(self, file: Union[str, Path, BinaryIO], mode: str = 'rb'):
        """
        Initializes the Xopen context manager.

        Args:
            file: File path (str or Path), '-' for the standard streams, or an existing binary file object.
            mode: File opening mode ('rb', 'wb' or 'ab').
        """
        if 'b' not in mode: mode += 'b'
        self.file = file
        self.mode = mode
        self._handle: Optional[BinaryIO] = None
        self._raw: Optional[BinaryIO] = None  # Opened by us beneath a decompressor
        self._close_on_exit = False

    @property
    def name(self) -> str:
        if isinstance(self.file, IOBase): return getattr(self.file, 'name', '<stream>')
        if str(self.file) == '-': return '<stdin>' if 'r' in self.mode else '<stdout>'
        return str(self.file)

    def __enter__(self) -> BinaryIO:
        """
        Opens the file and returns the file handle.

        Raises:
            OSError: If the file cannot be opened.
        """
        self._handle = self._open()
        return self._handle

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Closes the file handle if it was opened by this instance."""
        if self._close_on_exit and self._handle:
            self._handle.close()
        elif self._handle is not None and hasattr(self._handle, 'flush'):
            self._handle.flush()
        if self._raw is not None and self._raw is not self._handle: self._raw.close()
        self._raw = None
        self._handle = None

    def _get_opener(self, fmt: Compression):
        """
        Retrieves the open function for a compression package, importing it if necessary.

        Raises:
            ModuleNotFoundError: If the module cannot be imported.
        """
        if fmt not in self._OPEN_FUNCS:
            try:
                self._OPEN_FUNCS[fmt] = import_module(fmt.value).open
            except ImportError:
                raise ModuleNotFoundError(f"Compression module '{fmt.value}' not installed.")
        return self._OPEN_FUNCS[fmt]

    def _open(self) -> BinaryIO:
        writing = 'w' in self.mode or 'a' in self.mode

        # 1. Resolve Raw Stream
        if isinstance(self.file, IOBase): raw_stream = self.file
        elif str(self.file) == '-': raw_stream = sys.stdout.buffer if writing else sys.stdin.buffer
        else:
            path = Path(self.file).expanduser()
            self._close_on_exit = True
            if writing:
                if fmt := Compression.from_path(path): return self._get_opener(fmt)(path, mode=self.mode)
                return open(path, mode=self.mode)
            raw_stream = self._raw = open(path, mode='rb')

        # 2. Streams are written as given
        if writing: return raw_stream

        # 3. Sniff compression, seekable files first
        try:
            if raw_stream.seekable():
                start = raw_stream.read(self._MIN_N_BYTES)
                raw_stream.seek(0)
                return self._wrap(raw_stream, Compression.from_magic(start))
        except (AttributeError, ValueError, OSError):
            pass

        # Non-Seekable (stdin, pipes) -> Use PeekableHandle
        peekable = PeekableHandle(raw_stream)
        return self._wrap(peekable, Compression.from_magic(peekable.peek(self._MIN_N_BYTES)))

    def _wrap(self, stream, fmt: Optional[Compression]):
        if fmt is None: return stream
        self._close_on_exit = True
        return self._get_opener(fmt)(stream, mode='rb')
