"""
Per-alignment CIGAR run statistics for PAF files.

Examples:
    >>> from cigarstats import CigarStats
    >>> stats = CigarStats.from_cigar('10=2X3I5=')
    >>> stats.values()[:4]
    (15, 2, 3, 0)
"""
from cigarstats.utils.resources import RESOURCES


# Exceptions and Warnings ----------------------------------------------------------------------------------------------
class CigarStatsError(Exception):
    """Base class for errors raised by this package."""
class CigarStatsWarning(Warning):
    """Base class for warnings issued by this package."""
class MalformedRecordWarning(CigarStatsWarning):
    """Issued when a record is skipped because its CIGAR cannot be aggregated."""


# Constants ------------------------------------------------------------------------------------------------------------
__version__ = RESOURCES.version

# Import submodules to expose the public API
from cigarstats.cigar import Kind, Run, CigarParser, MalformedRecordError
from cigarstats.alignment import PafRecord
from cigarstats.stats import KindStats, CigarStats, summarise
from cigarstats.io.tabular import PafReader, CigarStatsWriter, HEADER
from cigarstats.cli import run, main
