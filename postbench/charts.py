from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns

from .errors import ReportError
from .runner import ResultRow

LOGGER = logging.getLogger("postbench.charts")

sns.set_style("whitegrid")
plt.rcParams["savefig.dpi"] = 150
plt.rcParams["font.size"] = 10

PHASE_COLORS = {
    "INIT": "#2E86AB",
    "INIT-V": "#6A994E",
    "EXEC": "#F18F01",
    "EXEC-V": "#C73E1D",
}


def results_frame(rows: Sequence[ResultRow]) -> pd.DataFrame:
    """Long-format frame with one row per (case, phase) duration."""
    records = []
    for case, row in enumerate(rows, start=1):
        label = f"#{case} {row.num_files}f/{row.files_parallelism}x{row.infile_parallelism}"
        for phase, seconds in (
            ("INIT", row.init_s),
            ("INIT-V", row.init_validate_s),
            ("EXEC", row.exec_s),
            ("EXEC-V", row.exec_validate_s),
        ):
            records.append({"case": label, "phase": phase, "seconds": seconds})
    return pd.DataFrame(records, columns=["case", "phase", "seconds"])


def render_results_chart(rows: Sequence[ResultRow], chart_path: Path, title: str) -> Path:
    """Render phase durations per case as a grouped bar chart."""
    df = results_frame(rows)
    if df.empty:
        LOGGER.warning("No results available for chart %s", chart_path)
        return chart_path

    cases = list(dict.fromkeys(df["case"]))
    fig, ax = plt.subplots(figsize=(max(8, len(cases) * 0.8), 6))
    sns.barplot(
        data=df,
        x="case",
        y="seconds",
        hue="phase",
        order=cases,
        hue_order=list(PHASE_COLORS),
        palette=list(PHASE_COLORS.values()),
        ax=ax,
    )

    ax.set_xticks(np.arange(len(cases)))
    ax.set_xticklabels(cases, rotation=45, ha="right", fontsize=8)
    ax.set_xlabel("Case (files / pfiles x pinfile)", fontweight="semibold")
    ax.set_ylabel("Duration (seconds)", fontweight="semibold")
    ax.set_title(title, fontweight="bold", pad=15)
    ax.grid(True, alpha=0.3, axis="y", linestyle="--")

    plt.tight_layout()
    try:
        fig.savefig(chart_path, bbox_inches="tight", facecolor="white")
    except OSError as exc:
        raise ReportError(f"chart file creation failed: {exc}") from exc
    finally:
        plt.close(fig)
    LOGGER.info("Rendering chart %s", chart_path)
    return chart_path
