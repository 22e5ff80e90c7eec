from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from postbench.config import Configuration
from postbench.engine import Proof


class StubEngineError(Exception):
    pass


@dataclass
class CallLog:
    calls: list[tuple[str, object]] = field(default_factory=list)
    validations: int = 0


class StubEngine:
    """Engine double that records calls and optionally fails one validation."""

    def __init__(
        self,
        config: Configuration,
        log: CallLog,
        fail_on_validation: int | None = None,
    ) -> None:
        self.config = config
        self.log = log
        self.fail_on_validation = fail_on_validation

    def initialize(self, identity: bytes) -> Proof:
        self.log.calls.append(("initialize", identity))
        return Proof(identity=identity, challenge=b"", indices=(0,), labels=(b"init",))

    def validate(self, proof: Proof) -> None:
        self.log.validations += 1
        self.log.calls.append(("validate", proof.challenge))
        if self.log.validations == self.fail_on_validation:
            raise StubEngineError("bad proof")

    def generate_proof(self, identity: bytes, challenge: bytes) -> Proof:
        self.log.calls.append(("generate_proof", challenge))
        return Proof(identity=identity, challenge=challenge, indices=(1,), labels=(b"exec",))

    def reset(self, identity: bytes) -> None:
        self.log.calls.append(("reset", identity))

    def write_parallelism(self) -> tuple[int, int]:
        return self.config.max_write_files_parallelism, self.config.max_write_infile_parallelism

    def read_parallelism(self, num_files: int) -> int:
        return min(self.config.max_read_files_parallelism, num_files)


@pytest.fixture
def call_log() -> CallLog:
    return CallLog()


@pytest.fixture
def make_stub_factory(call_log):
    """Build an engine factory whose engines share ``call_log``."""

    def make(fail_on_validation: int | None = None):
        def factory(config: Configuration) -> StubEngine:
            return StubEngine(config, call_log, fail_on_validation)

        return factory

    return make


@pytest.fixture
def stub_factory(make_stub_factory):
    return make_stub_factory()


@pytest.fixture
def baseline(tmp_path) -> Configuration:
    return Configuration(
        data_dir=str(tmp_path / "data"),
        space_per_unit=1 << 16,
        file_size=1 << 14,
        max_write_files_parallelism=2,
        max_write_infile_parallelism=2,
        max_read_files_parallelism=2,
    )
