from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Protocol

from .config import Configuration


@dataclass(frozen=True)
class Proof:
    """Proof artifact returned by initialization and proof generation."""

    identity: bytes
    challenge: bytes
    indices: tuple[int, ...]
    labels: tuple[bytes, ...]


class Engine(Protocol):
    """Storage and proof engine driven by the benchmark.

    Every call either returns or raises; the runner treats any exception as a
    fatal failure of the current case.
    """

    def initialize(self, identity: bytes) -> Proof: ...

    def validate(self, proof: Proof) -> None: ...

    def generate_proof(self, identity: bytes, challenge: bytes) -> Proof: ...

    def reset(self, identity: bytes) -> None: ...

    def write_parallelism(self) -> tuple[int, int]: ...

    def read_parallelism(self, num_files: int) -> int: ...


EngineFactory = Callable[[Configuration], Engine]


def num_files(space_per_unit: int, file_size: int) -> int:
    """Number of files the space is split into.

    Raises ``ValueError`` unless ``file_size`` is positive, not larger than the
    space and divides it evenly.
    """
    if file_size <= 0:
        raise ValueError(f"file size must be positive, got {file_size}")
    if space_per_unit < file_size:
        raise ValueError(
            f"space ({space_per_unit}) is lower than file size ({file_size})"
        )
    if space_per_unit % file_size != 0:
        raise ValueError(
            f"space ({space_per_unit}) is not a multiple of file size ({file_size})"
        )
    return space_per_unit // file_size
