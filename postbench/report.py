from __future__ import annotations

import csv
import logging
import sys
from pathlib import Path
from typing import Sequence, TextIO

import pandas as pd

from .errors import ReportError
from .metadata import Metadata
from .runner import ResultRow

LOGGER = logging.getLogger("postbench.report")

# Long and of little use on a terminal; still written to the CSV.
CONSOLE_HIDDEN_KEYS = frozenset({"CPU_FLAGS"})


def export_table(
    metadata: Metadata,
    header: Sequence[str],
    rows: Sequence[ResultRow],
    stream: TextIO | None = None,
) -> None:
    """Print metadata lines followed by a bordered results table."""
    stream = stream or sys.stdout
    stream.write("\n- Results -\n")
    for key, value in metadata:
        if key in CONSOLE_HIDDEN_KEYS:
            continue
        stream.write(f"{key}: {value}\n")
    stream.write(render_table(header, [row.to_record() for row in rows]))
    stream.write("\n")


def render_table(header: Sequence[str], records: Sequence[Sequence[str]]) -> str:
    widths = [len(label) for label in header]
    for record in records:
        for i, cell in enumerate(record):
            widths[i] = max(widths[i], len(cell))

    border = "+" + "+".join("-" * (width + 2) for width in widths) + "+"
    lines = [border]
    lines.append(
        "| " + " | ".join(label.center(width) for label, width in zip(header, widths)) + " |"
    )
    lines.append(border)
    for record in records:
        cells = [
            cell.rjust(width) if _is_number(cell) else cell.ljust(width)
            for cell, width in zip(record, widths)
        ]
        lines.append("| " + " | ".join(cells) + " |")
    if records:
        lines.append(border)
    return "\n".join(lines)


def export_csv(
    metadata: Metadata,
    header: Sequence[str],
    rows: Sequence[ResultRow],
    path: Path | str,
) -> Path:
    """Write metadata keys, metadata values, a blank row, then the results."""
    path = Path(path)
    df = pd.DataFrame([row.to_record() for row in rows], columns=list(header))
    try:
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerows([metadata.keys(), metadata.values(), []])
            df.to_csv(f, index=False, lineterminator="\n")
    except OSError as exc:
        raise ReportError(f"report file creation failed: {exc}") from exc

    LOGGER.info("Saved report to %s (%d rows)", path, len(df))
    return path


def read_report(path: Path | str) -> tuple[Metadata, pd.DataFrame]:
    """Load a report written by ``export_csv``.

    The metadata and results blocks are separated by the first empty record.
    Quoted values may themselves contain blank lines.
    """
    with open(path, newline="", encoding="utf-8") as f:
        records = list(csv.reader(f))
    if len(records) < 2:
        raise ReportError(f"{path}: missing metadata rows")
    keys, values = records[0], records[1]
    try:
        split = records.index([], 2)
    except ValueError as exc:
        raise ReportError(f"{path}: missing results block") from exc

    metadata = Metadata()
    for key, value in zip(keys, values):
        metadata.add(key, value)
    results = records[split + 1 :]
    if not results:
        raise ReportError(f"{path}: missing results header")
    df = pd.DataFrame(results[1:], columns=results[0], dtype=str)
    return metadata, df


def _is_number(cell: str) -> bool:
    try:
        float(cell)
    except ValueError:
        return False
    return True
