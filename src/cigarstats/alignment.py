"""
Module for representing PAF alignment records.
"""


# Classes --------------------------------------------------------------------------------------------------------------
class PafRecord:
    """
    The positional fields of a PAF line that are carried to the output, plus its CIGAR string.

    Positional fields are kept as the raw bytes found in the file; no coordinate validation is performed.

    Examples:
        >>> rec = PafRecord(b'q1', b'0', b'100', b'+', b't1', b'50', b'150', b'100=')
        >>> rec.fields
        (b'q1', b'0', b'100', b'+', b't1', b'50', b'150')
    """
    __slots__ = ('query', 'query_start', 'query_end', 'strand', 'target', 'target_start', 'target_end', 'cigar')

    def __init__(self, query: bytes, query_start: bytes, query_end: bytes, strand: bytes, target: bytes,
                 target_start: bytes, target_end: bytes, cigar: bytes = b''):
        self.query = query
        self.query_start = query_start
        self.query_end = query_end
        self.strand = strand
        self.target = target
        self.target_start = target_start
        self.target_end = target_end
        self.cigar = cigar

    @property
    def fields(self) -> tuple[bytes, ...]:
        """The seven positional fields in output order."""
        return (self.query, self.query_start, self.query_end, self.strand,
                self.target, self.target_start, self.target_end)

    def __repr__(self):
        return f"PafRecord({self.query.decode('ascii', 'ignore')}->{self.target.decode('ascii', 'ignore')})"

    def __eq__(self, other):
        if isinstance(other, self.__class__):
            return self.fields == other.fields and self.cigar == other.cigar
        return False

    def __hash__(self): return hash((self.fields, self.cigar))
