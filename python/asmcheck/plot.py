"""
Plotting module for asmcheck.

Provides :class:`SpectrumPlotter` for k-mer spectra (occurrence count vs
number of distinct k-mers, one line per k) and :class:`RepeatTrackPlotter`
for repetitive intervals drawn along their sequences.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional, Sequence, Union

import matplotlib.colors as mcolors
import matplotlib.figure
import matplotlib.patches as mpatches
import matplotlib.pyplot as plt

from asmcheck.kmer import SpectrumRow, Window
from asmcheck.repeats import RepeatInterval

_log = logging.getLogger(__name__)


class SpectrumPlotter:
    """Plot k-mer spectra produced by :func:`~asmcheck.kmer.kmer_spectrum`.

    Parameters
    ----------
    rows : iterable of SpectrumRow
        Histogram rows, any number of k values.

    Examples
    --------
    >>> from asmcheck.kmer import kmer_spectrum
    >>> rows = list(kmer_spectrum(records, min_k=10, max_k=14))
    >>> fig = SpectrumPlotter(rows).plot(output_path="spectrum.svg")
    """

    def __init__(self, rows: Iterable[SpectrumRow]) -> None:
        self.rows: list[SpectrumRow] = list(rows)

    def k_values(self) -> list[int]:
        """Return the distinct k values present, ascending."""
        return sorted({row.k for row in self.rows})

    def plot(
        self,
        output_path: Optional[Union[str, Path]] = None,
        figsize: tuple[float, float] = (6.0, 4.5),
        log_scale: bool = True,
        palette: str = 'viridis',
        title: Optional[str] = None,
        dpi: int = 150,
        format: Optional[str] = None,
    ) -> matplotlib.figure.Figure:
        """Draw one line per k.

        Parameters
        ----------
        output_path : str or Path, optional
            Output image file path.  When ``None`` (default) the figure is
            not saved to disk.
        figsize : tuple[float, float], optional
            Figure size in inches.  Default is ``(6.0, 4.5)``.
        log_scale : bool, optional
            Use logarithmic axes.  Default is ``True``.
        palette : str, optional
            Matplotlib colormap sampled once per k.  Default is ``'viridis'``.
        title : str, optional
            Figure title.
        dpi : int, optional
            Output image resolution. Default is ``150``.
        format : str, optional
            Output image format (e.g. ``'png'``, ``'svg'``, ``'pdf'``).
            When ``None`` (default), the format is inferred from the
            ``output_path`` file extension.

        Returns
        -------
        matplotlib.figure.Figure

        Raises
        ------
        ValueError
            If there are no rows to plot.
        """
        if not self.rows:
            raise ValueError('No spectrum rows to plot')
        ks = self.k_values()
        cmap = plt.get_cmap(palette)
        norm = mcolors.Normalize(vmin=ks[0], vmax=max(ks[-1], ks[0] + 1))

        fig, ax = plt.subplots(figsize=figsize)
        for k in ks:
            points = sorted(
                (row.occurrences, row.n_kmers) for row in self.rows if row.k == k
            )
            xs = [p[0] for p in points]
            ys = [p[1] for p in points]
            ax.plot(xs, ys, marker='.', linewidth=1, color=cmap(norm(k)), label=f'k={k}')

        if log_scale:
            ax.set_xscale('log')
            ax.set_yscale('log')
        ax.set_xlabel('Occurrences in genome')
        ax.set_ylabel('Number of k-mers')
        ax.legend(fontsize=8, frameon=False)
        if title:
            ax.set_title(title)

        plt.tight_layout()
        if output_path is not None:
            plt.savefig(str(output_path), dpi=dpi, bbox_inches='tight', format=format)
        return fig


class RepeatTrackPlotter:
    """Draw repetitive intervals as tracks along their sequences.

    Each sequence becomes one horizontal track scaled to its length; each
    :class:`~asmcheck.repeats.RepeatInterval` is a rectangle coloured by its
    average k-mer count.

    Parameters
    ----------
    sequences : sequence of (str, bytes)
        The scanned sequences, used for track order and length.
    intervals : iterable of RepeatInterval
        Intervals from :func:`~asmcheck.repeats.annotate_repeats`.
    """

    def __init__(
        self,
        sequences: Sequence[tuple[str, Window]],
        intervals: Iterable[RepeatInterval],
    ) -> None:
        self.lengths: dict[str, int] = {name: len(seq) for name, seq in sequences}
        self.intervals: list[RepeatInterval] = list(intervals)

    def get_intervals_for_sequence(self, seq_id: str) -> list[RepeatInterval]:
        """Return intervals on *seq_id* in the order they were found."""
        return [iv for iv in self.intervals if iv.seq_id == seq_id]

    def plot(
        self,
        output_path: Optional[Union[str, Path]] = None,
        track_height: float = 0.6,
        figwidth: float = 8.0,
        palette: str = 'magma_r',
        title: Optional[str] = None,
        dpi: int = 150,
        format: Optional[str] = None,
    ) -> matplotlib.figure.Figure:
        """Render one track per sequence.

        Parameters
        ----------
        output_path : str or Path, optional
            Output image file path.  When ``None`` (default) the figure is
            not saved to disk.
        track_height : float, optional
            Height per track in inches. Default is ``0.6``.
        figwidth : float, optional
            Figure width in inches. Default is ``8.0``.
        palette : str, optional
            Matplotlib colormap for interval counts. Default is ``'magma_r'``.
        title : str, optional
            Figure title.
        dpi : int, optional
            Output image resolution. Default is ``150``.
        format : str, optional
            Output image format.  Inferred from *output_path* when ``None``.

        Returns
        -------
        matplotlib.figure.Figure

        Raises
        ------
        ValueError
            If there are no sequences to draw.
        """
        if not self.lengths:
            raise ValueError('No sequences to plot')
        names = list(self.lengths)
        max_len = max(max(self.lengths.values()), 1)
        counts = [iv.count for iv in self.intervals] or [0]
        norm = mcolors.Normalize(vmin=min(counts), vmax=max(max(counts), min(counts) + 1))
        cmap = plt.get_cmap(palette)

        fig, ax = plt.subplots(figsize=(figwidth, 0.5 + track_height * len(names)))
        for row, name in enumerate(names):
            y = len(names) - row - 1
            ax.add_patch(
                mpatches.Rectangle(
                    (0, y + 0.4),
                    self.lengths[name],
                    0.2,
                    facecolor='lightgrey',
                    edgecolor='none',
                )
            )
            for iv in self.get_intervals_for_sequence(name):
                if iv.end > self.lengths[name]:
                    _log.warning(
                        'Interval %s:%d-%d extends past sequence end (%d)',
                        name,
                        iv.start,
                        iv.end,
                        self.lengths[name],
                    )
                ax.add_patch(
                    mpatches.Rectangle(
                        (iv.start, y + 0.15),
                        len(iv),
                        0.7,
                        facecolor=cmap(norm(iv.count)),
                        edgecolor='none',
                    )
                )

        ax.set_xlim(0, max_len)
        ax.set_ylim(0, len(names))
        ax.set_yticks([len(names) - i - 0.5 for i in range(len(names))])
        ax.set_yticklabels(names, fontsize=8)
        ax.set_xlabel('Position (bp)')
        sm = plt.cm.ScalarMappable(cmap=cmap, norm=norm)
        sm.set_array([])
        cb = fig.colorbar(sm, ax=ax, orientation='vertical', pad=0.01)
        cb.set_label('Mean k-mer count', fontsize=8)
        if title:
            ax.set_title(title)

        plt.tight_layout()
        if output_path is not None:
            plt.savefig(str(output_path), dpi=dpi, bbox_inches='tight', format=format)
        return fig
