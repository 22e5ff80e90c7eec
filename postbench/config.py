from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path

from .errors import InvalidModeError

DEFAULT_DATADIR = str(Path.home() / "post" / "data")
DEFAULT_SPACE_PER_UNIT = 1 << 23
DEFAULT_FILE_SIZE = 1 << 23
DEFAULT_REPORT_PATH = "report.csv"

# Fixed identity and challenge shared by every case of a run.
IDENTITY = bytes.fromhex("deadbeef")
CHALLENGE = b"this is a challenge"


class BenchMode(enum.IntEnum):
    """Breadth of the configuration sweep, ordered single < mid < full."""

    SINGLE = 1
    MID = 2
    FULL = 3

    @property
    def label(self) -> str:
        return _MODE_LABELS[self.value - 1]

    def __str__(self) -> str:
        return self.label

    @classmethod
    def parse(cls, value: int) -> "BenchMode":
        if not isinstance(value, int) or not cls.SINGLE <= value <= cls.FULL:
            raise InvalidModeError(value)
        return cls(value)

    @classmethod
    def describe(cls) -> str:
        return ", ".join(f"{mode.label}={mode.value}" for mode in cls)


_MODE_LABELS = ("single", "mid", "full")


@dataclass(frozen=True)
class Configuration:
    """Engine parameters for one benchmark case."""

    data_dir: str = DEFAULT_DATADIR
    space_per_unit: int = DEFAULT_SPACE_PER_UNIT
    file_size: int = DEFAULT_FILE_SIZE
    max_write_files_parallelism: int = 1
    max_write_infile_parallelism: int = 1
    max_read_files_parallelism: int = 1

    def describe(self) -> str:
        return (
            f"filesize={self.file_size}, pfiles={self.max_write_files_parallelism}, "
            f"pinfile={self.max_write_infile_parallelism}, "
            f"pread={self.max_read_files_parallelism}"
        )
