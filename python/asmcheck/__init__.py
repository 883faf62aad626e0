"""
asmcheck: canonical k-mer analysis for genome assemblies.

This package provides:
- Canonical 2-bit packing of DNA k-mers (strand-folded integer indexes)
- K-mer counting across sets of sequences, with shard merging
- K-mer spectra (occurrence histograms) over a range of k
- Detection of repetitive regions from k-mer counts
- FASTA input and matplotlib renderings of spectra and repeat tracks

Examples
--------
Basic usage:

>>> from asmcheck import count_kmers, annotate_repeats
>>> records = [('seq1', b'ACGTACGTACGT'), ('seq2', b'TTTTTTTTTT')]
>>> counts = count_kmers(records, k=4)
>>> intervals = annotate_repeats(records, k=4, threshold=3)
"""

from asmcheck.fasta_io import FastaRecord, read_fasta  # noqa: F401
from asmcheck.kmer import (  # noqa: F401
    COMPLEMENT_TABLE,
    FORWARD_TABLE,
    MAX_K,
    InvalidConfiguration,
    SpectrumRow,
    count_kmers,
    decode_index,
    kmer_histogram,
    kmer_spectrum,
    merge_counts,
    to_canonical_index,
    to_strand_index,
)
from asmcheck.repeats import (  # noqa: F401
    RepeatInterval,
    annotate_repeats,
    find_repetitive_regions,
    retain_repetitive,
)

__version__ = '0.1.0'
__all__ = [
    'FORWARD_TABLE',
    'COMPLEMENT_TABLE',
    'MAX_K',
    'InvalidConfiguration',
    'to_canonical_index',
    'to_strand_index',
    'decode_index',
    'count_kmers',
    'merge_counts',
    'kmer_histogram',
    'kmer_spectrum',
    'SpectrumRow',
    'RepeatInterval',
    'retain_repetitive',
    'find_repetitive_regions',
    'annotate_repeats',
    'FastaRecord',
    'read_fasta',
]
