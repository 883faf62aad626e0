"""FASTA input for the k-mer tools.

Records are parsed with Biopython and handed to the core as
:class:`FastaRecord` ``(name, seq)`` pairs.  Sequence bytes are kept exactly
as written in the file, including lower-case (soft-masked) bases.

Examples
--------
>>> from asmcheck.fasta_io import read_fasta
>>> records = read_fasta("assembly.fasta.gz")
>>> [r.name for r in records]
['chrM', 'contig_2']
"""

from __future__ import annotations

import gzip
import logging
from pathlib import Path
from typing import IO, NamedTuple

from Bio import SeqIO

_log = logging.getLogger(__name__)

_GZIP_MAGIC = b'\x1f\x8b'


class FastaRecord(NamedTuple):
    """A named sequence.

    Parameters
    ----------
    name : str
        Record identifier (first word of the header line).
    seq : bytes
        Raw sequence bytes.
    """

    name: str
    seq: bytes


def _is_gzip(path: Path) -> bool:
    with path.open('rb') as fh:
        return fh.read(2) == _GZIP_MAGIC


def _open_text(path: Path) -> IO[str]:
    if _is_gzip(path):
        return gzip.open(path, 'rt', encoding='ascii', errors='replace')
    return path.open('r', encoding='ascii', errors='replace')


def read_fasta(path: str | Path) -> list[FastaRecord]:
    """Read every record of a plain or gzipped FASTA file.

    Gzip input is detected from the file's magic bytes, not its suffix.

    Parameters
    ----------
    path : str or Path
        Path to the FASTA file.

    Returns
    -------
    list[FastaRecord]
        Records in file order.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    ValueError
        If two records share a name.
    """
    path = Path(path)
    records: list[FastaRecord] = []
    seen: set[str] = set()
    with _open_text(path) as handle:
        for rec in SeqIO.parse(handle, 'fasta'):
            if rec.id in seen:
                raise ValueError(f'Duplicate sequence name {rec.id!r} in {path}')
            seen.add(rec.id)
            records.append(
                FastaRecord(name=rec.id, seq=str(rec.seq).encode('ascii', 'replace'))
            )
    _log.info(
        'Read %d sequences (%d bp) from %s',
        len(records),
        sum(len(r.seq) for r in records),
        path,
    )
    return records
