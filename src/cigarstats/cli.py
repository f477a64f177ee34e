"""
Command line interface: tabulate CIGAR run statistics for every alignment in a PAF file.
"""
import logging
from argparse import ArgumentParser, RawDescriptionHelpFormatter
from lzma import LZMAError
from pathlib import Path
from typing import Union, BinaryIO, Sequence
from warnings import simplefilter, catch_warnings
from zlib import error as ZlibError

from cigarstats import RESOURCES, CigarStatsWarning
from cigarstats.io import Xopen
from cigarstats.io.tabular import PafReader, CigarStatsWriter
from cigarstats.stats import summarise

_log = logging.getLogger(__name__)


# Functions ------------------------------------------------------------------------------------------------------------
def run(paf: Union[str, Path, BinaryIO], output: Union[str, Path, BinaryIO] = '-', tag: Union[str, bytes] = None) -> int:
    """
    Writes the statistics table for a PAF file.

    Args:
        paf: Path to the PAF file (optionally compressed), '-' for stdin, or a binary file object.
        output: Path to the output table, '-' for stdout, or a binary file object.
        tag: Prefix of the field carrying the CIGAR string, ``cg:Z:`` by default.

    Returns:
        The number of rows written.

    Raises:
        OSError: If the input cannot be opened or read, or the output cannot be written.
    """
    # The input is opened first so that a missing file fails before any output is produced
    with Xopen(paf) as handle, CigarStatsWriter(output) as writer:
        n = writer.write_all(summarise(PafReader(handle, tag=tag)))
    _log.debug('Wrote %d rows', n)
    return n


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(
        prog=RESOURCES.package,
        description='Summarise the =, X, I and D runs of the CIGAR string (cg:Z: tag) of each alignment in a PAF file.',
        formatter_class=RawDescriptionHelpFormatter,
        epilog='Lines with fewer than 11 fields or without a CIGAR tag are skipped.'
    )
    parser.add_argument('-p', '--paf', required=True, help="Input PAF file, uncompressed or compressed, '-' for stdin")
    parser.add_argument('-o', '--output', default='-', help="Output table (default: stdout)")
    parser.add_argument('--tag', default='cg:Z:', help='Prefix of the field holding the CIGAR (default: %(default)s)')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug messages')
    parser.add_argument('--version', action='version', version=f'%(prog)s {RESOURCES.version}')
    return parser


def main(argv: Sequence[str] = None) -> int:
    """
    Entry point for the ``cigarstats`` command.

    Returns:
        The process exit status: 0 on success, 1 if the input or output stream failed.
    """
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s')
    source = Xopen(args.paf).name
    with catch_warnings():
        simplefilter('always', CigarStatsWarning)  # Report every skipped record
        logging.captureWarnings(False)  # Otherwise a no-op if an earlier call's routing was since undone
        logging.captureWarnings(True)
        _log.debug('Reading %s', source)
        try:
            run(args.paf, args.output, tag=args.tag)
        except (OSError, EOFError, LZMAError, ZlibError, ModuleNotFoundError) as e:
            _log.error('%s: %s', source, e)
            return 1
        finally:
            logging.captureWarnings(False)
    return 0
