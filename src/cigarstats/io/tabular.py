from abc import abstractmethod
from typing import Generator, Optional, Union

from cigarstats.alignment import PafRecord
from cigarstats.stats import CigarStats
from cigarstats.io import BaseReader, BaseWriter


# Constants ------------------------------------------------------------------------------------------------------------
HEADER = (
    'q.name', 'q.start', 'q.end', 'q.strand', 't.name', 't.start', 't.end',
    'num.=', 'num.X', 'num.I', 'num.D',
    'unique.=', 'unique.X', 'unique.I', 'unique.D',
    'longest.=', 'shortest.=', 'avg.=',
    'longest.X', 'shortest.X', 'avg.X',
    'longest.I', 'shortest.I', 'avg.I',
    'longest.D', 'shortest.D', 'avg.D'
)


# Classes --------------------------------------------------------------------------------------------------------------
class TabularReader(BaseReader):
    """
    Base class for readers of line-based tabular formats.

    Lines with fewer than ``min_cols`` fields are skipped, as are rows for which :meth:`parse_row` returns None.
    """
    _delim: Optional[bytes] = b'\t'  # None splits on runs of whitespace
    _comment: Optional[bytes] = b'#'
    _min_cols: int = 1

    def __init__(self, handle, min_cols: int = None, **kwargs):
        super().__init__(handle, **kwargs)
        if min_cols is not None: self._min_cols = min_cols

    def _read_parts(self) -> Generator[list[bytes], None, None]:
        """Internal generator that yields split lines."""
        delim, comment, min_cols = self._delim, self._comment, self._min_cols
        for line in self._handle:
            line = line.rstrip()
            if not line or (comment and line.startswith(comment)): continue
            parts = line.split(delim)
            if len(parts) < min_cols: continue
            yield parts

    def __iter__(self) -> Generator:
        """
        Iterates over lines, parsing valid rows.

        Yields:
            Parsed row objects.
        """
        parse = self.parse_row
        for parts in self._read_parts():
            if (row := parse(parts)) is not None: yield row

    @abstractmethod
    def parse_row(self, parts: list[bytes]):
        """
        Parses a single row split by delimiter.

        Args:
            parts: List of column bytes.

        Returns:
            The parsed object, or None to skip the row.
        """
        pass


class PafReader(TabularReader):
    """
    Reader for PAF (Pairwise mApping Format) files carrying CIGAR strings.

    Lines are split on whitespace. A line needs at least 11 fields and a field starting with the CIGAR tag
    (``cg:Z:`` by default); any other line is skipped without complaint.

    Examples:
        >>> with open("alignments.paf", "rb") as f:
        ...     for record in PafReader(f):
        ...         print(record.cigar)
    """
    _delim = None
    _comment = None
    _min_cols = 11
    _tag = b'cg:Z:'

    def __init__(self, handle, tag: Union[str, bytes] = None, **kwargs):
        super().__init__(handle, **kwargs)
        if tag is not None: self._tag = tag.encode('ascii') if isinstance(tag, str) else tag

    @property
    def tag(self) -> bytes: return self._tag

    def parse_row(self, parts: list[bytes]) -> Optional[PafRecord]:
        """
        Parses a PAF row.

        Args:
            parts: List of whitespace-separated fields.

        Returns:
            A PafRecord, or None if no field carries the CIGAR tag.
        """
        tag = self._tag
        if (cigar := next((p for p in parts if p.startswith(tag)), None)) is None: return None
        return PafRecord(
            query=parts[0], query_start=parts[2], query_end=parts[3], strand=parts[4],
            target=parts[5], target_start=parts[7], target_end=parts[8], cigar=cigar[len(tag):]
        )

    @classmethod
    def sniff(cls, s: bytes) -> bool:
        for line in s.splitlines():
            if not line.strip(): continue
            parts = line.split(b'\t')
            return len(parts) >= 12 and all(parts[i].isdigit() for i in (1, 2, 3, 6, 7, 8, 9, 10))
        return False


class CigarStatsWriter(BaseWriter):
    """
    Writer for the CIGAR statistics table.

    Each item is a ``(PafRecord, CigarStats)`` pair, as yielded by :func:`~cigarstats.stats.summarise`.
    Positional fields are written verbatim, averages with two decimal places.

    Examples:
        >>> with CigarStatsWriter("-") as w:
        ...     w.write_all(summarise(reader))
    """
    def write_header(self):
        self._handle.write('\t'.join(HEADER).encode('ascii') + b'\n')

    def write_one(self, item: tuple[PafRecord, CigarStats]):
        """
        Writes one table row.

        Args:
            item: A (record, stats) tuple.
        """
        record, stats = item
        values = '\t'.join(f'{v:.2f}' if isinstance(v, float) else str(v) for v in stats.values())
        self._handle.write(b'\t'.join(record.fields) + b'\t' + values.encode('ascii') + b'\n')
