from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Sequence

import matplotlib.pyplot as plt
import numpy as np

from .models import EvalMetrics, EventKind, PositionEvent

logger = logging.getLogger(__name__)


def plot_error_counts(
    *,
    metrics: EvalMetrics,
    out_png: str | Path,
    title: str = "Errors per test haplotype",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = ["Switches", "False SNPs", "False indels", "Bad calls"]
    series = {
        "Test haplotype 1": metrics.test_one,
        "Test haplotype 2": metrics.test_two,
    }
    xs = np.arange(len(labels))
    width = 0.38

    plt.figure()
    for k, (name, m) in enumerate(series.items()):
        values = [m.switches, m.false_snps, m.false_indels, m.bad_calls]
        plt.bar(xs + (k - 0.5) * width, values, width=width, label=name)
    plt.xticks(xs, labels, rotation=15, ha="right")
    plt.ylabel("Count")
    plt.title(title)
    plt.legend()
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_event_positions(
    *,
    events: Sequence[PositionEvent],
    width: int,
    out_png: str | Path,
    title: str = "Events along the alignment",
    nbins: int = 50,
) -> None:
    """Histogram of event positions, one line per event kind.

    Column-level true-indel events are included so error clusters can be read
    against indel-dense regions.
    """
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    nbins = max(1, min(nbins, width)) if width > 0 else 1
    bin_edges = np.linspace(0.5, max(width, 1) + 0.5, nbins + 1)
    centers = 0.5 * (bin_edges[:-1] + bin_edges[1:])

    by_kind: Dict[EventKind, List[int]] = {}
    for ev in events:
        by_kind.setdefault(ev.kind, []).append(ev.position)

    plt.figure()
    for kind in EventKind:
        positions = by_kind.get(kind)
        if not positions:
            continue
        counts, _ = np.histogram(positions, bins=bin_edges)
        plt.plot(centers, counts, marker=".", label=kind.value)
    plt.xlabel("Alignment column")
    plt.ylabel("Events per bin")
    plt.title(title)
    if by_kind:
        plt.legend()
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
