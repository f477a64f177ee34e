"""
Module for reading alignment files and writing statistics tables.
"""
from abc import ABC, abstractmethod
from typing import Union, Generator, BinaryIO, Iterable
from pathlib import Path

from cigarstats import CigarStatsError
from cigarstats.io.open import Xopen, PeekableHandle, Compression


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class ParserError(CigarStatsError):
    """Raised when a reader is given content it cannot parse."""


# Classes --------------------------------------------------------------------------------------------------------------
class BaseReader(ABC):
    """Abstract base class for record readers."""
    __slots__ = ('_handle', '_iterator')
    def __init__(self, handle: BinaryIO, **kwargs):
        """
        Initializes the reader.

        Args:
            handle: The open binary file handle to read from.
            **kwargs: Additional arguments.
        """
        self._handle = handle
        self._iterator = None

    @classmethod
    @abstractmethod
    def sniff(cls, s: bytes) -> bool: ...
    @abstractmethod
    def __iter__(self) -> Generator: ...
    def __enter__(self): return self
    def __exit__(self, exc_type, exc_val, exc_tb): self.close()
    def __next__(self):
        if self._iterator is None:
            self._iterator = self.__iter__()
        return next(self._iterator)

    def close(self):
        """Closes the reader."""
        pass


class BaseWriter(ABC):
    """
    Abstract base class for table writers.

    The target is opened through :class:`~cigarstats.io.open.Xopen`, so compressed outputs and stdout ('-') are
    supported. The header is written on entry.

    Examples:
        >>> with CigarStatsWriter("stats.tsv.gz") as w:
        ...     w.write_all(rows)
    """
    __slots__ = ('_opener', '_handle')
    def __init__(self, file: Union[str, Path, BinaryIO], mode: str = 'wb', **kwargs):
        self._opener = Xopen(file, mode=mode)
        self._handle = None

    def __enter__(self):
        """Opens the file and writes the header."""
        self._handle = self._opener.__enter__()
        self.write_header()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Closes the file."""
        self._opener.__exit__(exc_type, exc_val, exc_tb)
        self._handle = None

    def write_all(self, items: Iterable) -> int:
        """
        Writes every item of an iterable, consuming it lazily.

        Returns:
            The number of items written.
        """
        n = 0
        for item in items:
            self.write_one(item)
            n += 1
        return n

    @abstractmethod
    def write_one(self, item):
        """Writes a single item."""
        pass

    def write_header(self):
        """Writes the file header if applicable."""
        pass
