"""Canonical k-mer indexing and counting.

This module provides:
- :data:`FORWARD_TABLE` / :data:`COMPLEMENT_TABLE` — byte → 2-bit code lookups.
- :func:`to_canonical_index` — orientation-folded packed index of a window.
- :func:`to_strand_index` — strictly strand-invariant packed index.
- :func:`count_kmers` — occurrence counts of every window over many sequences.
- :func:`merge_counts` — reduce count tables produced from sequence shards.
- :func:`kmer_histogram` / :func:`kmer_spectrum` — occurrence-count histograms.

Packed indexes
--------------
A window of ``k`` bases is packed into an ``int`` by folding left-to-right
with ``(acc << 2) | code``, so the last base folded sits in the two low bits.
``k`` is limited to :data:`MAX_K` so that every index fits in 64 bits.

Bytes other than ``A``, ``C``, ``G`` and ``T`` (in either case) encode as
``0``, the same code as ``A``.  Ambiguity codes such as ``N`` are therefore
counted rather than rejected.

Examples
--------
>>> from asmcheck.kmer import count_kmers, decode_index
>>> counts = count_kmers([('seq1', b'ACGTACGT')], k=3)
>>> sorted((decode_index(idx, 3), n) for idx, n in counts.items())
[('ACG', 2), ('CGT', 2), ('GTA', 1), ('TAC', 1)]
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable, Iterator, Sequence, Union

_log = logging.getLogger(__name__)

MAX_K: int = 32
DEFAULT_MIN_K: int = 10
DEFAULT_MAX_K: int = 20

HISTOGRAM_HEADER: str = 'K\tOccInGenome\tNumOfKmer'

Window = Union[bytes, bytearray, memoryview, str]


class InvalidConfiguration(ValueError):
    """Raised when a k-mer parameter cannot be honoured.

    Covers ``k`` outside ``[1, MAX_K]``, empty windows, negative thresholds
    and inverted k ranges.
    """


# ---------------------------------------------------------------------------
# Base encoding tables
# ---------------------------------------------------------------------------


def _base_table(codes: dict[str, int]) -> tuple[int, ...]:
    """Build a 256-entry byte → 2-bit code table, case-insensitive."""
    slots = [0] * 256
    for base, code in codes.items():
        slots[ord(base.upper())] = code
        slots[ord(base.lower())] = code
    return tuple(slots)


FORWARD_TABLE: tuple[int, ...] = _base_table({'A': 0, 'C': 1, 'G': 2, 'T': 3})
COMPLEMENT_TABLE: tuple[int, ...] = _base_table({'A': 3, 'C': 2, 'G': 1, 'T': 0})

_DECODE = 'ACGT'


def check_k(k: int) -> None:
    """Validate a k-mer length.

    Parameters
    ----------
    k : int
        K-mer length.

    Raises
    ------
    InvalidConfiguration
        If ``k`` is not in ``[1, MAX_K]``.
    """
    if not 1 <= k <= MAX_K:
        raise InvalidConfiguration(
            f'k must be between 1 and {MAX_K} for a 64-bit packed index, got {k!r}'
        )


def as_bytes(window: Window) -> bytes:
    """Return *window* as ``bytes``; ``str`` is ASCII-encoded with ``?`` for other characters."""
    if isinstance(window, str):
        return window.encode('ascii', 'replace')
    return bytes(window)


# ---------------------------------------------------------------------------
# Packed indexes
# ---------------------------------------------------------------------------


def encode_forward(window: Window) -> int:
    """Pack a window in its literal orientation.

    Parameters
    ----------
    window : bytes or str
        The bases to pack.

    Returns
    -------
    int
        Left-to-right fold of :data:`FORWARD_TABLE` codes.
    """
    index = 0
    for b in as_bytes(window):
        index = (index << 2) | FORWARD_TABLE[b]
    return index


def encode_reverse_complement(window: Window) -> int:
    """Pack the reverse complement of a window.

    Equivalent to :func:`encode_forward` on the reverse-complemented window.
    """
    index = 0
    for b in reversed(as_bytes(window)):
        index = (index << 2) | COMPLEMENT_TABLE[b]
    return index


def is_forward_canonical(window: Window) -> bool:
    """Decide whether *window* is packed in its forward orientation.

    The window is compared with its own reverse from both ends inward.  The
    scan skips pairs that are equal ignoring case and stops at the midpoint.
    The stopping pair is then compared as raw bytes, so case does matter for
    the final decision: ``b'Ag'`` is forward but ``b'aG'`` is not.

    Parameters
    ----------
    window : bytes or str
        A non-empty window.

    Returns
    -------
    bool
        ``True`` when the window is folded forward.
    """
    window = as_bytes(window)
    n = len(window)
    idx = 0
    while idx < n // 2 and (
        _upper(window[idx]) == _upper(window[n - idx - 1])
    ):
        idx += 1
    return window[idx] <= window[n - idx - 1]


def _upper(b: int) -> int:
    # ASCII-only uppercase
    return b - 32 if 97 <= b <= 122 else b


def to_canonical_index(window: Window) -> int:
    """Return the canonical packed index of a k-mer window.

    When :func:`is_forward_canonical` holds, the window is folded
    left-to-right through :data:`FORWARD_TABLE`; otherwise it is folded
    right-to-left through :data:`COMPLEMENT_TABLE`, which packs its reverse
    complement.

    Parameters
    ----------
    window : bytes, bytearray, memoryview or str
        The k-mer.  ``str`` input is ASCII-encoded; characters outside ASCII
        encode as code ``0``.

    Returns
    -------
    int
        Packed index in ``[0, 4 ** len(window))``.

    Raises
    ------
    InvalidConfiguration
        If the window is empty or longer than :data:`MAX_K`.

    Examples
    --------
    >>> to_canonical_index('ACG')
    6
    >>> to_canonical_index('GTA')  # folded as TAC
    49
    """
    w = as_bytes(window)
    check_k(len(w))
    if is_forward_canonical(w):
        return encode_forward(w)
    return encode_reverse_complement(w)


def to_strand_index(window: Window) -> int:
    """Return the smaller of the forward and reverse-complement packings.

    Unlike :func:`to_canonical_index` this is identical for a window and its
    reverse complement.

    Raises
    ------
    InvalidConfiguration
        If the window is empty or longer than :data:`MAX_K`.
    """
    w = as_bytes(window)
    check_k(len(w))
    return min(encode_forward(w), encode_reverse_complement(w))


def _indexer(strand_invariant: bool):
    return to_strand_index if strand_invariant else to_canonical_index


def decode_index(index: int, k: int) -> str:
    """Decode a packed index back into its ``k`` bases.

    Parameters
    ----------
    index : int
        Packed index.
    k : int
        Number of bases packed into *index*.

    Returns
    -------
    str
        Upper-case bases, first-folded base first.  Non-ACGT input bytes
        come back as ``'A'``.
    """
    check_k(k)
    return ''.join(
        _DECODE[(index >> (2 * offset)) & 0b11] for offset in reversed(range(k))
    )


def iter_window_indexes(
    sequence: Window, k: int, strand_invariant: bool = False
) -> Iterator[int]:
    """Yield the packed index of every length-``k`` window of *sequence*.

    Windows slide by one base; nothing is yielded when the sequence is
    shorter than ``k``.
    """
    check_k(k)
    seq = as_bytes(sequence)
    index_of = _indexer(strand_invariant)
    for i in range(len(seq) - k + 1):
        yield index_of(seq[i:i + k])


# ---------------------------------------------------------------------------
# Counting
# ---------------------------------------------------------------------------


def count_kmers(
    sequences: Iterable[tuple[str, Window]],
    k: int,
    counts: dict[int, int] | None = None,
    strand_invariant: bool = False,
) -> dict[int, int]:
    """Count canonical k-mers over a set of sequences.

    Counts are shared across all sequences; there is no per-sequence
    separation.  Counting is a commutative fold, so the result does not
    depend on the order of *sequences*.

    Parameters
    ----------
    sequences : iterable of (str, bytes)
        ``(name, sequence)`` pairs, e.g. :class:`~asmcheck.fasta_io.FastaRecord`.
    k : int
        K-mer length, ``1 <= k <= MAX_K``.
    counts : dict[int, int], optional
        Table to accumulate into.  It is updated in place and returned.
        A new table is created when ``None`` (default).
    strand_invariant : bool, optional
        Count with :func:`to_strand_index` instead of
        :func:`to_canonical_index`.  Default is ``False``.

    Returns
    -------
    dict[int, int]
        Packed index → occurrence count.

    Raises
    ------
    InvalidConfiguration
        If ``k`` is out of range.
    """
    check_k(k)
    if counts is None:
        counts = {}
    n_seqs = 0
    for name, seq in sequences:
        n_seqs += 1
        if len(seq) < k:
            _log.warning('Sequence %r (%d bp) is shorter than k=%d', name, len(seq), k)
            continue
        for idx in iter_window_indexes(seq, k, strand_invariant=strand_invariant):
            counts[idx] = counts.get(idx, 0) + 1
    _log.debug('Counted %d distinct %d-mers over %d sequences', len(counts), k, n_seqs)
    return counts


def merge_counts(*tables: dict[int, int]) -> dict[int, int]:
    """Sum count tables key by key.

    Used to reduce tables counted independently over shards of the input.
    The input tables are not modified.
    """
    merged: dict[int, int] = {}
    for table in tables:
        for idx, n in table.items():
            merged[idx] = merged.get(idx, 0) + n
    return merged


# ---------------------------------------------------------------------------
# Histograms
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SpectrumRow:
    """One row of a k-mer spectrum.

    Parameters
    ----------
    k : int
        K-mer length.
    occurrences : int
        Number of times a k-mer occurs in the input.
    n_kmers : int
        Number of distinct k-mers occurring exactly ``occurrences`` times.
    """

    k: int
    occurrences: int
    n_kmers: int

    def to_line(self) -> str:
        """Serialise to a tab-separated row (no trailing newline)."""
        return f'{self.k}\t{self.occurrences}\t{self.n_kmers}'


def kmer_histogram(counts: dict[int, int]) -> list[tuple[int, int]]:
    """Bin a count table by occurrence count.

    Returns
    -------
    list[tuple[int, int]]
        ``(occurrences, n_kmers)`` pairs sorted by ``occurrences``.
    """
    freq: dict[int, int] = {}
    for n in counts.values():
        freq[n] = freq.get(n, 0) + 1
    return sorted(freq.items())


def kmer_spectrum(
    sequences: Sequence[tuple[str, Window]],
    min_k: int = DEFAULT_MIN_K,
    max_k: int = DEFAULT_MAX_K,
    strand_invariant: bool = False,
) -> Iterator[SpectrumRow]:
    """Yield histogram rows for every k in ``min_k..max_k`` inclusive.

    *sequences* is traversed once per k, so pass a list rather than a
    one-shot iterator.

    Raises
    ------
    InvalidConfiguration
        If either bound is out of range or ``min_k > max_k``.
    """
    check_k(min_k)
    check_k(max_k)
    if min_k > max_k:
        raise InvalidConfiguration(
            f'min_k ({min_k}) must not exceed max_k ({max_k})'
        )
    for k in range(min_k, max_k + 1):
        counts = count_kmers(sequences, k, strand_invariant=strand_invariant)
        _log.info('k=%d: %d distinct k-mers', k, len(counts))
        for occurrences, n_kmers in kmer_histogram(counts):
            yield SpectrumRow(k=k, occurrences=occurrences, n_kmers=n_kmers)
