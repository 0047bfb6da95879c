from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List

import matplotlib.pyplot as plt

logger = logging.getLogger(__name__)


def plot_srq_hist(
    *,
    srq_values: List[float],
    out_png: str | Path,
    title: str = "Split-read consensus alignment quality (SRQ)",
    nbins: int = 20,
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    edges = [i / nbins for i in range(nbins + 1)]

    plt.figure()
    plt.hist(srq_values, bins=edges)
    plt.xlabel("SRQ")
    plt.ylabel("Refined records")
    plt.xlim(0.0, 1.0)
    plt.title(title)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_outcome_counts(
    *,
    refined: int,
    fallback: Dict[str, int],
    out_png: str | Path,
    title: str = "Refinement outcomes",
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    labels = ["refined"] + sorted(fallback)
    values = [int(refined)] + [int(fallback[k]) for k in sorted(fallback)]

    plt.figure()
    plt.bar(labels, values)
    plt.ylabel("Record count")
    plt.title(title)
    plt.xticks(rotation=15, ha="right")
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()


def plot_inslen_hist(
    *,
    inslen_values: List[int],
    out_png: str | Path,
    title: str = "Inserted bases at refined junctions",
    max_bin: int = 20,
) -> None:
    out_png = Path(out_png)
    out_png.parent.mkdir(parents=True, exist_ok=True)

    # Collapse tail into max_bin+
    ys = [0] * (max_bin + 1)
    tail = 0
    for v in inslen_values:
        if v <= max_bin:
            ys[v] += 1
        else:
            tail += 1

    xticklabels = [str(x) for x in range(0, max_bin + 1)]
    if tail > 0:
        ys.append(tail)
        xticklabels.append(f"{max_bin + 1}+")

    plt.figure()
    plt.bar(range(len(ys)), ys)
    plt.xlabel("INSLEN")
    plt.ylabel("Refined records")
    plt.title(title)
    plt.xticks(range(len(ys)), xticklabels, rotation=0)
    plt.tight_layout()
    plt.savefig(out_png, dpi=160)
    plt.close()
