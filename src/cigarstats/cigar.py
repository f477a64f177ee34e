"""
Module for tokenizing CIGAR strings into runs of alignment operations.

Only the four operations that describe base-level agreement between query and target are recognised:
``=`` (match), ``X`` (mismatch), ``I`` (insertion) and ``D`` (deletion). Anything else in the string, including
the remaining SAM operations (``M``, ``N``, ``S``, ``H``, ``P``), is skipped rather than rejected.
"""
from enum import IntEnum
from re import compile as regex
from typing import Generator, NamedTuple, Union

import numpy as np

from cigarstats import CigarStatsError
from cigarstats.utils.resources import jit


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class MalformedRecordError(CigarStatsError, ValueError):
    """Raised when a CIGAR run cannot be represented, aborting the record it belongs to."""


# Constants ------------------------------------------------------------------------------------------------------------
INT64_MAX = 9223372036854775807
_SYMBOLS = '=XID'


# Classes --------------------------------------------------------------------------------------------------------------
class Kind(IntEnum):
    """
    CIGAR operation kinds, in output order.

    Examples:
        >>> Kind.from_symbol('X')
        <Kind.MISMATCH: 1>
        >>> Kind.INSERTION.symbol
        'I'
    """
    MATCH = 0
    MISMATCH = 1
    INSERTION = 2
    DELETION = 3

    @property
    def symbol(self) -> str: return _SYMBOLS[self]

    @classmethod
    def from_symbol(cls, symbol: Union[str, bytes]) -> 'Kind':
        """
        Looks up a Kind by its CIGAR letter.

        Raises:
            ValueError: If the symbol is not one of ``=XID``.
        """
        if isinstance(symbol, bytes): symbol = symbol.decode('ascii', 'replace')
        if len(symbol) != 1 or symbol not in _SYMBOLS: raise ValueError(f'Unsupported CIGAR operation: {symbol!r}')
        return cls(_SYMBOLS.index(symbol))


class Run(NamedTuple):
    """One contiguous stretch of a single operation kind."""
    length: int
    kind: Kind


class CigarParser:
    """
    Tokenizes CIGAR strings into runs.

    Two equivalent strategies are provided: :meth:`parse` is a lazy, regex-based generator of :class:`Run` tuples,
    and :meth:`scan` is a single-pass byte scanner returning NumPy arrays, compiled with Numba when it is available.

    Examples:
        >>> list(CigarParser.parse('10=2X'))
        [Run(length=10, kind=<Kind.MATCH: 0>), Run(length=2, kind=<Kind.MISMATCH: 1>)]
        >>> lengths, kinds = CigarParser.scan(b'10=2X')
    """
    _OPS_REGEX = regex(r'(?P<n>[0-9]+)(?P<operation>[=XID])')
    _OPS_REGEX_BYTES = regex(rb'(?P<n>[0-9]+)(?P<operation>[=XID])')
    _SYM_TO_KIND = {s: Kind(i) for i, s in enumerate(_SYMBOLS)}
    _SYM_TO_KIND.update({s.encode('ascii'): k for s, k in _SYM_TO_KIND.items()})

    # Fast lookup for bytes -> Kind codes, 255 marks an unrecognised byte
    _BYTE_TO_KIND = np.full(256, 255, dtype=np.uint8)
    for _i, _s in enumerate(_SYMBOLS): _BYTE_TO_KIND[ord(_s)] = _i

    @classmethod
    def parse(cls, cigar: Union[str, bytes]) -> Generator[Run, None, None]:
        """
        Lazily tokenizes a CIGAR string.

        Args:
            cigar: The CIGAR string (e.g., "10=2X3I5="), without its tag prefix.

        Yields:
            Run tuples in left-to-right order.

        Raises:
            MalformedRecordError: When a run length does not fit in a signed 64-bit integer.
        """
        pattern = cls._OPS_REGEX_BYTES if isinstance(cigar, (bytes, bytearray)) else cls._OPS_REGEX
        lookup = cls._SYM_TO_KIND
        for match in pattern.finditer(cigar):
            n = int(match['n'])
            if n > INT64_MAX:
                raise MalformedRecordError(f'Run length at position {match.start()} overflows a 64-bit integer')
            yield Run(n, lookup[match['operation']])

    @classmethod
    def scan(cls, cigar: Union[str, bytes]) -> tuple[np.ndarray, np.ndarray]:
        """
        Tokenizes a CIGAR string in one pass over its bytes.

        Args:
            cigar: The CIGAR string, without its tag prefix.

        Returns:
            A tuple of (lengths, kinds) arrays, int64 and uint8 respectively, where kinds holds Kind values.

        Raises:
            MalformedRecordError: When a run length does not fit in a signed 64-bit integer.
        """
        if isinstance(cigar, str): cigar = cigar.encode('utf-8')
        lengths, kinds, error_at = _scan_cigar_kernel(np.frombuffer(cigar, dtype=np.uint8), cls._BYTE_TO_KIND)
        if error_at >= 0:
            raise MalformedRecordError(f'Run length ending at position {error_at} overflows a 64-bit integer')
        return lengths, kinds


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _scan_cigar_kernel(cigar, map_table):
    """
    Scans CIGAR bytes into run lengths and kind codes.
    Returns the offset of the first overflowing run's operation byte, or -1.
    """
    n = len(cigar)
    lengths = np.empty(n, dtype=np.int64)
    kinds = np.empty(n, dtype=np.uint8)
    idx = 0; curr = 0; n_digits = 0; overflow = False
    for i in range(n):
        b = cigar[i]
        if 48 <= b <= 57:
            d = np.int64(b) - 48
            if overflow or curr > (INT64_MAX - d) // 10: overflow = True
            else: curr = curr * 10 + d
            n_digits += 1
        else:
            kind = map_table[b]
            if n_digits > 0 and kind != 255:
                if overflow: return lengths[:0], kinds[:0], i
                lengths[idx] = curr; kinds[idx] = kind
                idx += 1
            curr = 0; n_digits = 0; overflow = False
    return lengths[:idx], kinds[:idx], -1
