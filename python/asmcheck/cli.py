"""asmcheck command-line interface.

Usage:
    asmcheck count-kmers -g genomes.fa [-m 10] [-M 20]
    asmcheck annotate-repeats -g genomes.fa [-k 13] [-t 15]

Both commands write TSV to stdout unless ``-o`` is given.  Each command is
also installed as a standalone script (``count-kmers`` and
``annotate-repetitive-kmers``).
"""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import contextmanager
from typing import IO, Iterable, Iterator, Optional

from asmcheck.fasta_io import read_fasta
from asmcheck.kmer import (
    DEFAULT_MAX_K,
    DEFAULT_MIN_K,
    HISTOGRAM_HEADER,
    InvalidConfiguration,
    kmer_spectrum,
)
from asmcheck.repeats import (
    DEFAULT_K,
    DEFAULT_THRESHOLD,
    annotate_repeats,
    format_repeat_table,
)

_log = logging.getLogger(__name__)


def _configure_logging(verbose: bool, quiet: bool) -> None:
    level = logging.INFO
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.WARNING
    logging.basicConfig(
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
    )
    logging.getLogger('asmcheck').setLevel(level)


@contextmanager
def _output(path: Optional[str]) -> Iterator[IO[str]]:
    if path is None or path == '-':
        yield sys.stdout
    else:
        with open(path, 'w', encoding='utf-8') as fh:
            yield fh


def _write_lines(fh: IO[str], lines: Iterable[str]) -> None:
    for line in lines:
        fh.write(line + '\n')


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def run_count_kmers(args: argparse.Namespace) -> None:
    """Write the canonical k-mer histogram for every k in the range."""
    records = read_fasta(args.genomes)
    rows = list(
        kmer_spectrum(
            records,
            min_k=args.min_k_mer,
            max_k=args.max_k_mer,
            strand_invariant=args.strand_invariant,
        )
    )
    with _output(args.output) as fh:
        _write_lines(fh, [HISTOGRAM_HEADER] + [row.to_line() for row in rows])
    if args.plot:
        import matplotlib.pyplot as plt

        from asmcheck.plot import SpectrumPlotter

        fig = SpectrumPlotter(rows).plot(output_path=args.plot, title=args.genomes)
        plt.close(fig)
        _log.info('Spectrum plot saved to %s', args.plot)


def run_annotate_repeats(args: argparse.Namespace) -> None:
    """Write the repetitive intervals of every sequence."""
    records = read_fasta(args.genomes)
    intervals = annotate_repeats(
        records,
        k=args.kmer,
        threshold=args.threshold,
        strand_invariant=args.strand_invariant,
    )
    _log.info('Found %d repetitive intervals', len(intervals))
    with _output(args.output) as fh:
        _write_lines(fh, format_repeat_table(intervals))
    if args.plot:
        import matplotlib.pyplot as plt

        from asmcheck.plot import RepeatTrackPlotter

        fig = RepeatTrackPlotter(records, intervals).plot(output_path=args.plot)
        plt.close(fig)
        _log.info('Repeat track plot saved to %s', args.plot)


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('-g', '--genomes', required=True, help='Genomes (FASTA, optionally gzipped)')
    parser.add_argument('-o', '--output', default=None, help='Output TSV (default: stdout)')
    parser.add_argument('--plot', default=None, metavar='PATH',
                        help='Also render a figure; format follows the extension (.png, .svg, .pdf)')
    parser.add_argument('--strand-invariant', action='store_true',
                        help='Index each k-mer as the smaller of its forward and '
                             'reverse-complement packings')
    parser.add_argument('-v', '--verbose', action='store_true', help='Log debug messages')
    parser.add_argument('-q', '--quiet', action='store_true', help='Log warnings and errors only')


def _add_count_kmers(parser: argparse.ArgumentParser) -> None:
    _add_common(parser)
    parser.add_argument('-m', '--min-k-mer', type=int, default=DEFAULT_MIN_K,
                        help=f'Minimum k (default: {DEFAULT_MIN_K})')
    parser.add_argument('-M', '--max-k-mer', type=int, default=DEFAULT_MAX_K,
                        help=f'Maximum k (default: {DEFAULT_MAX_K})')
    parser.set_defaults(func=run_count_kmers)


def _add_annotate_repeats(parser: argparse.ArgumentParser) -> None:
    _add_common(parser)
    parser.add_argument('-k', '--kmer', type=int, default=DEFAULT_K,
                        help=f'K for the k-mer (default: {DEFAULT_K})')
    parser.add_argument('-t', '--threshold', type=int, default=DEFAULT_THRESHOLD,
                        help=f'Minimum count for a k-mer to be repetitive (default: {DEFAULT_THRESHOLD})')
    parser.set_defaults(func=run_annotate_repeats)


COUNT_KMERS_DESCRIPTION = (
    'Dump canonical k-mer histograms in TSV format. Forward and reverse '
    'strands are merged together.'
)
ANNOTATE_REPEATS_DESCRIPTION = 'Enumerate repetitive k-mer regions of the genomes in TSV.'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='asmcheck',
        description='K-mer analysis utilities for genome assemblies.',
    )
    sub = parser.add_subparsers(dest='command', required=True)
    _add_count_kmers(
        sub.add_parser('count-kmers', help='K-mer histogram over a range of k',
                       description=COUNT_KMERS_DESCRIPTION)
    )
    _add_annotate_repeats(
        sub.add_parser('annotate-repeats', help='Repetitive regions from k-mer counts',
                       description=ANNOTATE_REPEATS_DESCRIPTION)
    )
    return parser


def _run(parser: argparse.ArgumentParser, argv: Optional[list[str]]) -> int:
    args = parser.parse_args(argv)
    _configure_logging(args.verbose, args.quiet)
    try:
        args.func(args)
    except (InvalidConfiguration, OSError, ValueError) as exc:
        _log.error('%s', exc)
        return 1
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for ``asmcheck``."""
    return _run(build_parser(), argv)


def count_kmers_main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the standalone ``count-kmers`` script."""
    parser = argparse.ArgumentParser(prog='count-kmers', description=COUNT_KMERS_DESCRIPTION)
    _add_count_kmers(parser)
    return _run(parser, argv)


def annotate_repeats_main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the standalone ``annotate-repetitive-kmers`` script."""
    parser = argparse.ArgumentParser(
        prog='annotate-repetitive-kmers', description=ANNOTATE_REPEATS_DESCRIPTION
    )
    _add_annotate_repeats(parser)
    return _run(parser, argv)


if __name__ == '__main__':
    sys.exit(main())
