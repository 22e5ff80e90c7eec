from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Sequence

from .charts import render_results_chart
from .config import (
    CHALLENGE,
    DEFAULT_DATADIR,
    DEFAULT_FILE_SIZE,
    DEFAULT_REPORT_PATH,
    DEFAULT_SPACE_PER_UNIT,
    IDENTITY,
    BenchMode,
    Configuration,
)
from .engine import EngineFactory
from .errors import BenchmarkError
from .localengine import LocalEngine
from .metadata import collect_metadata
from .profiling import Profiler
from .report import export_csv, export_table
from .runner import HEADER, BenchRunner
from .sweep import generate_cases
from .units import format_size, parse_size

LOGGER = logging.getLogger("postbench")

ENGINES: dict[str, EngineFactory] = {
    "local": LocalEngine,
}


def positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid int value: {value!r}") from exc
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be at least 1, got {number}")
    return number


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Proof-of-space engine benchmark")
    parser.add_argument(
        "--datadir",
        default=os.environ.get("POSTBENCH_DATADIR", DEFAULT_DATADIR),
        help="filesystem datadir path",
    )
    parser.add_argument(
        "--space",
        type=parse_size,
        default=DEFAULT_SPACE_PER_UNIT,
        help="space per unit, in bytes (e.g. 8388608 or 8M)",
    )
    parser.add_argument(
        "--filesize",
        type=parse_size,
        default=DEFAULT_FILE_SIZE,
        help="space per file, in bytes (in single mode only, otherwise it is autogenerated)",
    )
    parser.add_argument(
        "--pfiles",
        type=positive_int,
        default=1,
        help="max degree of files write parallelism (in single mode only, otherwise it is autogenerated)",
    )
    parser.add_argument(
        "--pinfile",
        type=positive_int,
        default=1,
        help="max degree of cpu work parallelism per file write (in single mode only, otherwise it is autogenerated)",
    )
    parser.add_argument(
        "--pread",
        type=positive_int,
        default=1,
        help="max degree of files read parallelism",
    )
    parser.add_argument(
        "--mode",
        type=int,
        default=int(BenchMode.MID),
        help=f"benchmark mode: {BenchMode.describe()}",
    )
    parser.add_argument("--disktype", default="", help="disk type (to be used in report)")
    parser.add_argument("--fstype", default="", help="file-system type (to be used in report)")
    parser.add_argument("--desc", default="", help="test run description (to be used in report)")
    parser.add_argument("--cpuprof", default="", help="write cpu profile to file")
    parser.add_argument(
        "--memprof",
        default="",
        help="write memory profile to file (allocation tracing runs during the sweep and slows the timed phases)",
    )
    parser.add_argument(
        "--report",
        default=os.environ.get("POSTBENCH_REPORT", DEFAULT_REPORT_PATH),
        help="write report csv to file",
    )
    parser.add_argument("--chart", default="", help="also render a results chart to file")
    parser.add_argument(
        "--engine",
        choices=sorted(ENGINES),
        default=os.environ.get("POSTBENCH_ENGINE", "local"),
        help="engine implementation to benchmark",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only print the planned benchmark cases without executing them",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("POSTBENCH_LOG_LEVEL", "INFO"),
        help="Logging level",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )


def build_baseline(args: argparse.Namespace) -> Configuration:
    return Configuration(
        data_dir=args.datadir,
        space_per_unit=args.space,
        file_size=args.filesize,
        max_write_files_parallelism=args.pfiles,
        max_write_infile_parallelism=args.pinfile,
        max_read_files_parallelism=args.pread,
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    profiler = Profiler(cpu_path=args.cpuprof or None, mem_path=args.memprof or None)
    try:
        mode = BenchMode.parse(args.mode)
        baseline = build_baseline(args)
        LOGGER.info(
            "bench config: mode: %s, datadir: %s, space: %s",
            mode,
            baseline.data_dir,
            format_size(baseline.space_per_unit),
        )

        cases = generate_cases(mode, baseline)
        if args.dry_run:
            _print_plan(cases)
            return 0

        profiler.start()
        runner = BenchRunner(ENGINES[args.engine], identity=IDENTITY, challenge=CHALLENGE)
        rows = runner.run(cases)
        profiler.stop_cpu()

        metadata = collect_metadata(baseline, args.disktype, args.fstype, args.desc)
        export_table(metadata, HEADER, rows, sys.stdout)
        export_csv(metadata, HEADER, rows, Path(args.report))
        if args.chart:
            render_results_chart(rows, Path(args.chart), f"Benchmark results ({mode.label} mode)")

        profiler.write_heap()
    except BenchmarkError as exc:
        LOGGER.error("%s", exc)
        return 1
    finally:
        profiler.close()
    return 0


def _print_plan(cases: Sequence[Configuration]) -> None:
    for i, case in enumerate(cases, start=1):
        print(f"  - case {i}/{len(cases)}: space={case.space_per_unit}, {case.describe()}")


if __name__ == "__main__":
    sys.exit(main())
