from __future__ import annotations

import dataclasses
import logging
from typing import Callable, Iterable

import psutil

from .config import BenchMode, Configuration

LOGGER = logging.getLogger("postbench.sweep")

FILE_SPLIT_STEPS = 6
COMBINED_STEPS = 4


def generate_cases(
    mode: BenchMode,
    baseline: Configuration,
    cpu_count: int | None = None,
) -> list[Configuration]:
    """Expand the baseline configuration into the ordered cases for ``mode``.

    ``single`` runs the baseline as given. ``mid`` and ``full`` sweep four axes
    from a single-file, single-writer baseline: in-file parallelism, file
    splitting, file splitting with files parallelism, and all three combined.
    ``full`` emits every step; ``mid`` only the endpoints of each axis (the
    first two steps for the combined axis).
    """
    if mode == BenchMode.SINGLE:
        return [baseline]

    if cpu_count is None:
        cpu_count = psutil.cpu_count(logical=True) or 1

    base = dataclasses.replace(
        baseline,
        file_size=baseline.space_per_unit,
        max_write_files_parallelism=1,
        max_write_infile_parallelism=1,
    )

    cases: list[Configuration] = []
    cases.extend(
        _sweep(
            mode,
            cpu_count,
            mid_steps=(1, cpu_count),
            build=lambda i: dataclasses.replace(base, max_write_infile_parallelism=i),
        )
    )
    cases.extend(
        _sweep(
            mode,
            FILE_SPLIT_STEPS,
            mid_steps=(1, FILE_SPLIT_STEPS),
            build=lambda i: dataclasses.replace(base, file_size=base.file_size >> i),
        )
    )
    cases.extend(
        _sweep(
            mode,
            FILE_SPLIT_STEPS,
            mid_steps=(1, FILE_SPLIT_STEPS),
            build=lambda i: dataclasses.replace(
                base,
                file_size=base.file_size >> i,
                max_write_files_parallelism=base.max_write_files_parallelism << i,
            ),
        )
    )
    cases.extend(
        _sweep(
            mode,
            COMBINED_STEPS,
            mid_steps=(1, 2),
            build=lambda i: dataclasses.replace(
                base,
                file_size=base.file_size >> i,
                max_write_files_parallelism=base.max_write_files_parallelism << i,
                max_write_infile_parallelism=base.max_write_infile_parallelism << i,
            ),
        )
    )

    LOGGER.debug("Generated %d %s cases (cpu_count=%d)", len(cases), mode, cpu_count)
    return cases


def _sweep(
    mode: BenchMode,
    steps: int,
    mid_steps: Iterable[int],
    build: Callable[[int], Configuration],
) -> list[Configuration]:
    selected = set(mid_steps)
    return [
        build(i)
        for i in range(1, steps + 1)
        if mode == BenchMode.FULL or i in selected
    ]
