"""Repetitive-region detection from canonical k-mer counts.

This module provides:
- :class:`RepeatInterval` — a merged run of repetitive k-mer windows.
- :func:`retain_repetitive` — keep k-mers at or above a count threshold.
- :func:`find_repetitive_regions` — merge consecutive hit windows of one sequence.
- :func:`annotate_repeats` — count, filter and scan a whole sequence set.

Merging
-------
Window ``i`` of a sequence is a *hit* when its canonical index survives the
threshold.  Consecutive hits ``i, i+1, ...`` form one interval spanning
``[first, last + k)``.  The interval count is the truncating average of the
per-window counts, ``total // (last - first + 1)``.

Examples
--------
>>> from asmcheck.repeats import annotate_repeats
>>> intervals = annotate_repeats([('chrM', b'ACGTACGTACGT')], k=4, threshold=2)
>>> [iv.to_line() for iv in intervals]
['chrM\\t0\\t12\\t2\\tACGTACGTACGT']
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Sequence

from asmcheck.kmer import (
    InvalidConfiguration,
    Window,
    as_bytes,
    count_kmers,
    iter_window_indexes,
)

_log = logging.getLogger(__name__)

DEFAULT_K: int = 13
DEFAULT_THRESHOLD: int = 15

REPEAT_HEADER: str = 'ID\tStart\tEnd\tCount\tSeq'


@dataclass(frozen=True)
class RepeatInterval:
    """A contiguous run of repetitive k-mer windows on one sequence.

    Parameters
    ----------
    seq_id : str
        Name of the sequence the interval lies on.
    start : int
        0-based start, the position of the first hit window.
    end : int
        0-based exclusive end, ``last hit window + k``.
    count : int
        Truncating average of the hit windows' k-mer counts.
    seq : str
        The bases ``sequence[start:end]`` as they appear in the input.
    """

    seq_id: str
    start: int
    end: int
    count: int
    seq: str

    def __len__(self) -> int:
        return self.end - self.start

    def to_line(self) -> str:
        """Serialise to a tab-separated row (no trailing newline).

        Returns
        -------
        str
            ``ID``, ``Start``, ``End``, ``Count`` and ``Seq`` columns.
        """
        return '\t'.join(
            str(v) for v in [self.seq_id, self.start, self.end, self.count, self.seq]
        )


def retain_repetitive(counts: dict[int, int], threshold: int) -> dict[int, int]:
    """Keep only k-mers counted at least *threshold* times.

    Parameters
    ----------
    counts : dict[int, int]
        Packed index → occurrence count.
    threshold : int
        Inclusive lower bound on the count.

    Returns
    -------
    dict[int, int]
        A new table; *counts* is left untouched.

    Raises
    ------
    InvalidConfiguration
        If *threshold* is negative.
    """
    if threshold < 0:
        raise InvalidConfiguration(f'threshold must be non-negative, got {threshold!r}')
    return {idx: n for idx, n in counts.items() if n >= threshold}


def find_repetitive_regions(
    seq_id: str,
    sequence: Window,
    repetitive: dict[int, int],
    k: int,
    strand_invariant: bool = False,
) -> list[RepeatInterval]:
    """Merge the repetitive windows of one sequence into intervals.

    Parameters
    ----------
    seq_id : str
        Sequence name copied into each interval.
    sequence : bytes or str
        The sequence to scan.
    repetitive : dict[int, int]
        Retained k-mers, e.g. from :func:`retain_repetitive`.
    k : int
        K-mer length used to build *repetitive*.
    strand_invariant : bool, optional
        Must match the indexer used to build *repetitive*.

    Returns
    -------
    list[RepeatInterval]
        Intervals in sequence order.  A run still open at the end of the
        sequence is included.
    """
    seq = as_bytes(sequence)
    intervals: list[RepeatInterval] = []
    # (first hit, last hit, summed count) of the run being extended
    region: tuple[int, int, int] | None = None

    def _close(first: int, last: int, total: int) -> None:
        end = last + k
        intervals.append(
            RepeatInterval(
                seq_id=seq_id,
                start=first,
                end=end,
                count=total // (last - first + 1),
                seq=seq[first:end].decode('ascii', 'replace'),
            )
        )

    for i, idx in enumerate(
        iter_window_indexes(seq, k, strand_invariant=strand_invariant)
    ):
        count = repetitive.get(idx)
        if count is None:
            continue
        if region is None:
            region = (i, i, count)
        elif region[1] + 1 == i:
            region = (region[0], i, region[2] + count)
        else:
            _close(*region)
            region = (i, i, count)
    if region is not None:
        _close(*region)

    _log.debug('%s: %d repetitive intervals', seq_id, len(intervals))
    return intervals


def annotate_repeats(
    sequences: Sequence[tuple[str, Window]],
    k: int = DEFAULT_K,
    threshold: int = DEFAULT_THRESHOLD,
    strand_invariant: bool = False,
) -> list[RepeatInterval]:
    """Find repetitive intervals across a set of sequences.

    K-mers are counted over all of *sequences*, filtered with
    :func:`retain_repetitive`, and every sequence is then scanned with
    :func:`find_repetitive_regions` in input order.

    Parameters
    ----------
    sequences : sequence of (str, bytes)
        ``(name, sequence)`` pairs.  Traversed twice.
    k : int, optional
        K-mer length.  Default is ``13``.
    threshold : int, optional
        Minimum count for a k-mer to be repetitive.  Default is ``15``.
    strand_invariant : bool, optional
        Use :func:`~asmcheck.kmer.to_strand_index`.  Default is ``False``.

    Returns
    -------
    list[RepeatInterval]

    Raises
    ------
    InvalidConfiguration
        If ``k`` or *threshold* is out of range.
    """
    counts = count_kmers(sequences, k, strand_invariant=strand_invariant)
    repetitive = retain_repetitive(counts, threshold)
    _log.info(
        '%d of %d distinct %d-mers occur at least %d times',
        len(repetitive),
        len(counts),
        k,
        threshold,
    )
    intervals: list[RepeatInterval] = []
    for name, seq in sequences:
        intervals.extend(
            find_repetitive_regions(
                name, seq, repetitive, k, strand_invariant=strand_invariant
            )
        )
    return intervals


def format_repeat_table(intervals: Iterable[RepeatInterval]) -> Iterable[str]:
    """Yield the TSV header followed by one line per interval."""
    yield REPEAT_HEADER
    for interval in intervals:
        yield interval.to_line()
