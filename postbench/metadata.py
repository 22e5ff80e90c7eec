from __future__ import annotations

import logging
import platform
from pathlib import Path
from typing import Iterator

import psutil

from .config import Configuration
from .errors import MetadataError
from .units import format_size

LOGGER = logging.getLogger("postbench.metadata")

CPUINFO_PATH = Path("/proc/cpuinfo")


class Metadata:
    """Ordered (key, value) pairs describing the benchmark environment.

    Insertion order is preserved for both the console and the CSV output.
    """

    def __init__(self) -> None:
        self._items: list[tuple[str, str]] = []

    def add(self, key: str, value: str) -> None:
        self._items.append((key, value))

    def keys(self) -> list[str]:
        return [key for key, _ in self._items]

    def values(self) -> list[str]:
        return [value for _, value in self._items]

    def get(self, key: str) -> str | None:
        for item_key, value in self._items:
            if item_key == key:
                return value
        return None

    def __iter__(self) -> Iterator[tuple[str, str]]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)


def collect_metadata(
    config: Configuration,
    disktype: str = "",
    fstype: str = "",
    description: str = "",
) -> Metadata:
    metadata = Metadata()

    if description:
        metadata.add("DESC", description)

    metadata.add("DATADIR", config.data_dir)
    metadata.add("SPACE", format_size(config.space_per_unit))

    if disktype:
        metadata.add("DISK", disktype)
    if fstype:
        metadata.add("FS", fstype)

    metadata.add("OS", platform.system().lower())

    model, flags = read_cpu_info()
    metadata.add("CPU_MODEL", model)
    metadata.add("CPU_FLAGS", " ".join(flags))

    try:
        logical = psutil.cpu_count(logical=True)
        physical = psutil.cpu_count(logical=False)
        free = psutil.virtual_memory().free
    except (psutil.Error, OSError) as exc:
        raise MetadataError(f"failed to query cpu/memory info: {exc}") from exc
    if not logical:
        raise MetadataError("failed to determine the logical cpu count")

    metadata.add("CPU_LOGICAL", str(logical))
    metadata.add("CPU_CORES", str(physical or logical))
    metadata.add("MEM_FREE", format_size(free))

    LOGGER.debug("Collected %d metadata entries", len(metadata))
    return metadata


def read_cpu_info(path: Path = CPUINFO_PATH) -> tuple[str, list[str]]:
    """Return the CPU model name and feature flags of the first processor.

    Reads ``/proc/cpuinfo`` where available since ``platform.processor()`` is
    empty in containers, and falls back to ``platform`` elsewhere.
    """
    if not path.exists():
        model = platform.processor() or platform.machine()
        if not model:
            raise MetadataError("failed to determine the cpu model")
        return model, []

    try:
        text = path.read_text()
    except OSError as exc:
        raise MetadataError(f"failed to read {path}: {exc}") from exc

    model = ""
    flags: list[str] = []
    for line in text.splitlines():
        if not line.strip():
            # Only the first processor block is reported.
            if model:
                break
            continue
        key, _, value = line.partition(":")
        key = key.strip()
        if key in ("model name", "Model", "cpu model") and not model:
            model = value.strip()
        elif key in ("flags", "Features") and not flags:
            flags = value.split()

    if not model:
        model = platform.processor() or platform.machine()
    if not model:
        raise MetadataError(f"no cpu model found in {path}")
    return model, flags
