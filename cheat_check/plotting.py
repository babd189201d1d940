"""Charts of comparison results: a similarity heatmap and the top pairs."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Sequence

import matplotlib
import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
from matplotlib.colors import LinearSegmentedColormap

from cheat_check.comparator import Score

# Use a non-interactive backend
matplotlib.use("Agg")

logger = logging.getLogger(__name__)


def similarity_matrix(identities: Sequence[str], scores: Sequence[Score]) -> pd.DataFrame:
    """Symmetric identity x identity frame; diagonal 1.0, unscored pairs NaN."""
    matrix = pd.DataFrame(np.nan, index=list(identities), columns=list(identities))
    for identity in identities:
        matrix.loc[identity, identity] = 1.0
    for s in scores:
        matrix.loc[s.pair.first, s.pair.second] = s.value
        matrix.loc[s.pair.second, s.pair.first] = s.value
    return matrix


def _short(name: str, width: int = 23) -> str:
    return name[: width - 3] + "..." if len(name) > width else name


def plot_results(
    identities: Sequence[str],
    scores: Sequence[Score],
    ranked: List[Score],
    out_path: Path,
    threshold: float,
    top_n: int = 20,
) -> None:
    """Write a PNG with the similarity heatmap, top pairs and score histogram."""
    matrix = similarity_matrix(identities, scores)
    n = len(matrix)
    fig_size = max(8, n * 0.4)
    fig, axes = plt.subplots(1, 3, figsize=(fig_size * 2.5, fig_size))

    colors = ["#ffffff", "#e6f2ff", "#99ccff", "#3399ff", "#0066cc", "#003366"]
    cmap = LinearSegmentedColormap.from_list("similarity", colors)
    im = axes[0].imshow(matrix.values, cmap=cmap, aspect="auto", vmin=0, vmax=1)
    fig.colorbar(im, ax=axes[0], fraction=0.046, pad=0.04, label="Similarity score")
    short_names = [_short(name) for name in matrix.columns]
    axes[0].set_xticks(np.arange(n))
    axes[0].set_yticks(np.arange(n))
    axes[0].set_xticklabels(short_names, rotation=45, ha="right", fontsize=8)
    axes[0].set_yticklabels(short_names, fontsize=8)
    axes[0].set_title("Similarity matrix")

    top = pd.DataFrame(
        [{"pair": f"{_short(s.pair.first, 15)} <-> {_short(s.pair.second, 15)}", "score": s.value} for s in ranked[:top_n]],
        columns=["pair", "score"],
    )
    axes[1].barh(top["pair"], top["score"], color="#4C72B0")
    axes[1].invert_yaxis()
    axes[1].set_xlim(0, 1)
    axes[1].axvline(threshold, color="#C44E52", linestyle="--", linewidth=1)
    axes[1].set_xlabel("Similarity score")
    axes[1].set_title(f"Top {min(top_n, len(ranked))} flagged pairs")

    axes[2].hist([s.value for s in scores], bins=20, range=(0, 1), color="#55A868", alpha=0.8)
    axes[2].axvline(threshold, color="#C44E52", linestyle="--", linewidth=1)
    axes[2].set_xlabel("Similarity score")
    axes[2].set_ylabel("Pairs")
    axes[2].set_title("Score distribution")

    fig.tight_layout()
    out_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_path, dpi=150, bbox_inches="tight")
    plt.close(fig)
    logger.info(f"Saved similarity plot to {out_path}")
