from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Sequence, TypeVar

from .config import Configuration
from .engine import Engine, EngineFactory, num_files
from .errors import EnginePhaseError
from .units import format_duration

LOGGER = logging.getLogger("postbench.runner")

HEADER = ["NUMFILES", "P-FILES", "P-INFILE", "INIT", "INIT-V", "P-READ", "EXEC", "EXEC-V"]

T = TypeVar("T")


@dataclass(frozen=True)
class ResultRow:
    """Measurements of one benchmark case, durations in seconds."""

    num_files: int
    files_parallelism: int
    infile_parallelism: int
    init_s: float
    init_validate_s: float
    read_parallelism: int
    exec_s: float
    exec_validate_s: float

    def to_record(self) -> list[str]:
        return [
            str(self.num_files),
            str(self.files_parallelism),
            str(self.infile_parallelism),
            format_duration(self.init_s),
            format_duration(self.init_validate_s),
            str(self.read_parallelism),
            format_duration(self.exec_s),
            format_duration(self.exec_validate_s),
        ]


class BenchRunner:
    """Runs every case through initialize, validate, prove, validate and reset.

    Cases execute strictly one after another. The first failing engine call
    raises ``EnginePhaseError`` and no further case is started.
    """

    def __init__(
        self,
        engine_factory: EngineFactory,
        identity: bytes,
        challenge: bytes,
    ) -> None:
        self._engine_factory = engine_factory
        self._identity = identity
        self._challenge = challenge

    def run(self, cases: Sequence[Configuration]) -> list[ResultRow]:
        rows: list[ResultRow] = []
        total = len(cases)
        for i, config in enumerate(cases, start=1):
            LOGGER.info("case %d/%d starting... (%s)", i, total, config.describe())
            started = time.perf_counter()
            rows.append(self.run_case(config, i, total))
            LOGGER.info(
                "case %d/%d completed, %s",
                i,
                total,
                format_duration(round(time.perf_counter() - started, 3)),
            )
        return rows

    def run_case(self, config: Configuration, case: int = 1, total: int = 1) -> ResultRow:
        engine: Engine = self._phase("setup", case, total, self._engine_factory, config)

        proof, init_s = self._timed("initialize", case, total, engine.initialize, self._identity)
        _, init_validate_s = self._timed("validate initialization", case, total, engine.validate, proof)
        proof, exec_s = self._timed(
            "generate proof", case, total, engine.generate_proof, self._identity, self._challenge
        )
        _, exec_validate_s = self._timed("validate proof", case, total, engine.validate, proof)
        self._phase("reset", case, total, engine.reset, self._identity)

        files = self._phase("file count", case, total, num_files, config.space_per_unit, config.file_size)
        files_parallelism, infile_parallelism = self._phase(
            "write parallelism", case, total, engine.write_parallelism
        )
        read_parallelism = self._phase("read parallelism", case, total, engine.read_parallelism, files)

        return ResultRow(
            num_files=files,
            files_parallelism=files_parallelism,
            infile_parallelism=infile_parallelism,
            init_s=round(init_s, 3),
            init_validate_s=round(init_validate_s, 6),
            read_parallelism=read_parallelism,
            exec_s=round(exec_s, 3),
            exec_validate_s=round(exec_validate_s, 6),
        )

    def _timed(self, phase: str, case: int, total: int, func: Callable[..., T], *args) -> tuple[T, float]:
        started = time.perf_counter()
        result = self._phase(phase, case, total, func, *args)
        return result, time.perf_counter() - started

    @staticmethod
    def _phase(phase: str, case: int, total: int, func: Callable[..., T], *args) -> T:
        try:
            return func(*args)
        except Exception as exc:
            raise EnginePhaseError(phase, case, total, str(exc) or type(exc).__name__) from exc
