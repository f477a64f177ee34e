"""
Module for folding CIGAR runs into per-kind run statistics.
"""
from typing import Iterable, Generator, Union
from warnings import warn

import numpy as np

from cigarstats import MalformedRecordWarning
from cigarstats.alignment import PafRecord
from cigarstats.cigar import CigarParser, Kind, Run, MalformedRecordError, INT64_MAX
from cigarstats.utils.resources import jit


# Constants ------------------------------------------------------------------------------------------------------------
_N_KINDS = len(Kind)
_SHORTEST_SENTINEL = INT64_MAX + 1  # Larger than any valid run length


# Classes --------------------------------------------------------------------------------------------------------------
class KindStats:
    """
    Run statistics for a single operation kind.

    Attributes:
        total: Number of bases covered by runs of this kind.
        count: Number of runs of this kind.
        longest: Length of the longest run, 0 if there were none.
        shortest: Length of the shortest run, 0 if there were none.
    """
    __slots__ = ('total', 'count', 'longest', 'shortest')

    def __init__(self, total: int = 0, count: int = 0, longest: int = 0, shortest: int = 0):
        self.total = total
        self.count = count
        self.longest = longest
        self.shortest = shortest

    @property
    def average(self) -> float:
        """Mean run length, exactly 0.0 when there were no runs."""
        return self.total / self.count if self.count > 0 else 0.0

    def __repr__(self):
        return (f'KindStats(total={self.total}, count={self.count}, longest={self.longest}, '
                f'shortest={self.shortest}, average={self.average:.2f})')

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return (self.total == other.total and self.count == other.count and
                    self.longest == other.longest and self.shortest == other.shortest)
        return False

    def __hash__(self): return hash((self.total, self.count, self.longest, self.shortest))


class CigarStats:
    """
    Per-kind run statistics for one CIGAR string.

    Kinds are aggregated independently in a single left-to-right pass; no state is shared between instances.

    Examples:
        >>> stats = CigarStats.from_cigar('10=2X3I5=')
        >>> stats['='].total, stats['='].count, stats['='].average
        (15, 2, 7.5)
        >>> stats[Kind.DELETION].shortest
        0
    """
    __slots__ = ('_kinds',)

    def __init__(self, kinds: Iterable[KindStats] = None):
        self._kinds = tuple(kinds) if kinds is not None else tuple(KindStats() for _ in range(_N_KINDS))
        if len(self._kinds) != _N_KINDS:
            raise ValueError(f'Expected {_N_KINDS} KindStats, got {len(self._kinds)}')

    @classmethod
    def from_runs(cls, runs: Iterable[Run]) -> 'CigarStats':
        """
        Folds a stream of runs without materialising it.

        Args:
            runs: Iterable of Run tuples, e.g. from :meth:`CigarParser.parse`.

        Returns:
            A CigarStats instance.

        Raises:
            MalformedRecordError: When a kind's total overflows a signed 64-bit integer.
        """
        totals = [0] * _N_KINDS
        counts = [0] * _N_KINDS
        longest = [0] * _N_KINDS
        shortest = [_SHORTEST_SENTINEL] * _N_KINDS
        for n, kind in runs:
            if totals[kind] > INT64_MAX - n:
                raise MalformedRecordError(f'Total length of {Kind(kind).symbol} runs overflows a 64-bit integer')
            totals[kind] += n
            counts[kind] += 1
            if n > longest[kind]: longest[kind] = n
            if n < shortest[kind]: shortest[kind] = n
        # Kinds that never occurred must not leak the sentinel
        for k in range(_N_KINDS):
            if counts[k] == 0: shortest[k] = 0
        return cls(KindStats(*i) for i in zip(totals, counts, longest, shortest))

    @classmethod
    def from_arrays(cls, lengths: np.ndarray, kinds: np.ndarray) -> 'CigarStats':
        """
        Folds run arrays as returned by :meth:`CigarParser.scan`.

        Args:
            lengths: int64 array of run lengths.
            kinds: uint8 array of Kind values, parallel to lengths.

        Returns:
            A CigarStats instance.

        Raises:
            MalformedRecordError: When a kind's total overflows a signed 64-bit integer.
        """
        if len(lengths) != len(kinds): raise ValueError('Run lengths and kinds must have the same size')
        totals, counts, longest, shortest, error_kind = _fold_runs_kernel(lengths, kinds, _N_KINDS)
        if error_kind >= 0:
            raise MalformedRecordError(f'Total length of {Kind(error_kind).symbol} runs overflows a 64-bit integer')
        return cls(KindStats(int(t), int(c), int(l), int(s)) for t, c, l, s in zip(totals, counts, longest, shortest))

    @classmethod
    def from_cigar(cls, cigar: Union[str, bytes]) -> 'CigarStats':
        """
        Tokenizes and folds a CIGAR string.

        Args:
            cigar: The CIGAR string, without its tag prefix.

        Returns:
            A CigarStats instance.

        Raises:
            MalformedRecordError: When a run length or a kind's total overflows a signed 64-bit integer.
        """
        return cls.from_arrays(*CigarParser.scan(cigar))

    def __getitem__(self, item: Union[Kind, int, str, bytes]) -> KindStats:
        if isinstance(item, (str, bytes)): item = Kind.from_symbol(item)
        return self._kinds[item]

    def __iter__(self): return iter(self._kinds)
    def __len__(self): return _N_KINDS

    def __eq__(self, other):
        if isinstance(other, self.__class__): return self._kinds == other._kinds
        return False

    def __hash__(self): return hash(self._kinds)

    def __repr__(self):
        return 'CigarStats(' + ', '.join(f'{k.symbol}={s!r}' for k, s in zip(Kind, self._kinds)) + ')'

    def values(self) -> tuple:
        """
        Returns the fixed-order statistics record.

        Totals and run counts for each kind come first, followed by (longest, shortest, average) for each kind,
        always in the order =, X, I, D.
        """
        kinds = self._kinds
        return (
            *(s.total for s in kinds),
            *(s.count for s in kinds),
            *(v for s in kinds for v in (s.longest, s.shortest, s.average))
        )


# Functions ------------------------------------------------------------------------------------------------------------
def summarise(records: Iterable[PafRecord]) -> Generator[tuple[PafRecord, CigarStats], None, None]:
    """
    Computes statistics for each record, skipping malformed ones.

    Args:
        records: Iterable of PafRecord, e.g. a :class:`~cigarstats.io.tabular.PafReader`.

    Yields:
        (record, stats) tuples.

    Warns:
        MalformedRecordWarning: For each record whose CIGAR cannot be aggregated.
    """
    for record in records:
        try:
            stats = CigarStats.from_cigar(record.cigar)
        except MalformedRecordError as e:
            warn(f"Skipping record '{record.query.decode('ascii', 'replace')}': {e}", MalformedRecordWarning)
            continue
        yield record, stats


# Kernels --------------------------------------------------------------------------------------------------------------
@jit(nopython=True, cache=True, nogil=True)
def _fold_runs_kernel(lengths, kinds, n_kinds):
    """
    Single-pass fold of runs into per-kind totals, counts, longest and shortest.
    The last value returned is the kind whose total would overflow int64, or -1.
    """
    totals = np.zeros(n_kinds, dtype=np.int64)
    counts = np.zeros(n_kinds, dtype=np.int64)
    longest = np.zeros(n_kinds, dtype=np.int64)
    shortest = np.full(n_kinds, INT64_MAX, dtype=np.int64)
    for i in range(len(lengths)):
        k = kinds[i]; n = lengths[i]
        if totals[k] > INT64_MAX - n: return totals, counts, longest, shortest, np.int64(k)
        totals[k] += n
        counts[k] += 1
        if n > longest[k]: longest[k] = n
        if n < shortest[k]: shortest[k] = n
    for k in range(n_kinds):
        if counts[k] == 0: shortest[k] = 0
    return totals, counts, longest, shortest, np.int64(-1)
