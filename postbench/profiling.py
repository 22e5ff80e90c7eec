from __future__ import annotations

import gc
import logging
import tracemalloc
from pathlib import Path

import yappi

from .errors import ReportError

LOGGER = logging.getLogger("postbench.profiling")


class Profiler:
    """Optional CPU profile around the sweep and heap snapshot after it.

    The CPU profile covers every thread, including the engine's worker pools.
    Output files are created up front so that an unwritable path fails before
    any engine work starts.
    """

    def __init__(self, cpu_path: str | None = None, mem_path: str | None = None) -> None:
        self._cpu_path = Path(cpu_path) if cpu_path else None
        self._mem_path = Path(mem_path) if mem_path else None
        self._cpu_running = False

    def start(self) -> None:
        if self._cpu_path is not None:
            _touch(self._cpu_path, "CPU profile")
            yappi.clear_stats()
            yappi.set_clock_type("cpu")
            yappi.start(profile_threads=True)
            self._cpu_running = True
            LOGGER.info("CPU profiling to %s", self._cpu_path)
        if self._mem_path is not None:
            _touch(self._mem_path, "memory profile")
            tracemalloc.start()

    def stop_cpu(self) -> None:
        if not self._cpu_running:
            return
        yappi.stop()
        self._cpu_running = False
        try:
            yappi.get_func_stats().save(str(self._cpu_path), type="pstat")
        except OSError as exc:
            raise ReportError(f"could not write CPU profile: {exc}") from exc
        finally:
            yappi.clear_stats()

    def write_heap(self) -> None:
        if self._mem_path is None or not tracemalloc.is_tracing():
            return
        gc.collect()
        snapshot = tracemalloc.take_snapshot()
        tracemalloc.stop()
        try:
            snapshot.dump(str(self._mem_path))
        except OSError as exc:
            raise ReportError(f"could not write memory profile: {exc}") from exc
        LOGGER.info("Heap snapshot written to %s", self._mem_path)

    def close(self) -> None:
        """Stop whatever is still running without writing output."""
        if self._cpu_running:
            yappi.stop()
            yappi.clear_stats()
            self._cpu_running = False
        if self._mem_path is not None and tracemalloc.is_tracing():
            tracemalloc.stop()


def _touch(path: Path, what: str) -> None:
    try:
        path.open("wb").close()
    except OSError as exc:
        raise ReportError(f"could not create {what}: {exc}") from exc
