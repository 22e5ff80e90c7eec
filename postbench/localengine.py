from __future__ import annotations

import hashlib
import logging
import shutil
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import psutil

from .config import Configuration
from .engine import Proof, num_files

LOGGER = logging.getLogger("postbench.localengine")

LABEL_SIZE = 8
PROOF_LABELS = 16


class LocalEngineError(Exception):
    """Raised when the local engine rejects a configuration or a proof."""


def compute_label(identity: bytes, index: int) -> bytes:
    return hashlib.blake2b(
        identity + index.to_bytes(8, "little"), digest_size=LABEL_SIZE
    ).digest()


class LocalEngine:
    """Reference engine that stores hashed identity labels in local files.

    Space is laid out as ``<data_dir>/<identity hex>/postdata_<n>.bin``. Each
    file holds ``file_size // LABEL_SIZE`` consecutive labels. Proofs sample
    label positions derived from the challenge and validation recomputes them.
    """

    def __init__(self, config: Configuration, cpu_count: int | None = None) -> None:
        self._config = config
        self._cpu_count = cpu_count or psutil.cpu_count(logical=True) or 1

    def write_parallelism(self) -> tuple[int, int]:
        files = min(
            self._config.max_write_files_parallelism,
            self._num_files(),
            self._cpu_count,
        )
        files = max(files, 1)
        infile = min(
            self._config.max_write_infile_parallelism,
            max(1, self._cpu_count // files),
        )
        return files, max(infile, 1)

    def read_parallelism(self, num_files: int) -> int:
        return max(
            1, min(self._config.max_read_files_parallelism, num_files, self._cpu_count)
        )

    def initialize(self, identity: bytes) -> Proof:
        count = self._num_files()
        labels_per_file = self._labels_per_file()
        files_parallelism, infile_parallelism = self.write_parallelism()

        space_dir = self._space_dir(identity)
        space_dir.mkdir(parents=True, exist_ok=True)
        LOGGER.debug(
            "Initializing %d file(s) in %s (pfiles=%d, pinfile=%d)",
            count,
            space_dir,
            files_parallelism,
            infile_parallelism,
        )

        with ThreadPoolExecutor(max_workers=files_parallelism) as pool:
            futures = [
                pool.submit(
                    self._write_file,
                    identity,
                    index,
                    labels_per_file,
                    infile_parallelism,
                )
                for index in range(count)
            ]
            for future in futures:
                future.result()

        return self.generate_proof(identity, b"")

    def generate_proof(self, identity: bytes, challenge: bytes) -> Proof:
        count = self._num_files()
        labels_per_file = self._labels_per_file()
        total_labels = count * labels_per_file
        indices = [
            int.from_bytes(
                hashlib.blake2b(challenge + k.to_bytes(4, "little")).digest()[:8],
                "little",
            )
            % total_labels
            for k in range(PROOF_LABELS)
        ]

        by_file: dict[int, list[int]] = defaultdict(list)
        for index in indices:
            by_file[index // labels_per_file].append(index)

        labels: dict[int, bytes] = {}
        with ThreadPoolExecutor(max_workers=self.read_parallelism(count)) as pool:
            futures = [
                pool.submit(self._read_labels, identity, file_index, wanted, labels_per_file)
                for file_index, wanted in by_file.items()
            ]
            for future in futures:
                labels.update(future.result())

        return Proof(
            identity=identity,
            challenge=challenge,
            indices=tuple(indices),
            labels=tuple(labels[index] for index in indices),
        )

    def validate(self, proof: Proof) -> None:
        if len(proof.indices) != len(proof.labels) or not proof.indices:
            raise LocalEngineError("malformed proof")
        for index, label in zip(proof.indices, proof.labels):
            if compute_label(proof.identity, index) != label:
                raise LocalEngineError(f"invalid label at index {index}")

    def reset(self, identity: bytes) -> None:
        space_dir = self._space_dir(identity)
        if space_dir.exists():
            shutil.rmtree(space_dir)

    def _num_files(self) -> int:
        return num_files(self._config.space_per_unit, self._config.file_size)

    def _labels_per_file(self) -> int:
        if self._config.file_size % LABEL_SIZE != 0:
            raise LocalEngineError(
                f"file size ({self._config.file_size}) is not a multiple of the "
                f"label size ({LABEL_SIZE})"
            )
        return self._config.file_size // LABEL_SIZE

    def _space_dir(self, identity: bytes) -> Path:
        return Path(self._config.data_dir) / identity.hex()

    def _file_path(self, identity: bytes, file_index: int) -> Path:
        return self._space_dir(identity) / f"postdata_{file_index}.bin"

    def _write_file(
        self,
        identity: bytes,
        file_index: int,
        labels_per_file: int,
        parallelism: int,
    ) -> None:
        first = file_index * labels_per_file
        chunk = -(-labels_per_file // parallelism)
        ranges = [
            (start, min(start + chunk, first + labels_per_file))
            for start in range(first, first + labels_per_file, chunk)
        ]

        with ThreadPoolExecutor(max_workers=parallelism) as pool:
            chunks = pool.map(lambda r: _compute_labels(identity, *r), ranges)
            with open(self._file_path(identity, file_index), "wb") as f:
                for data in chunks:
                    f.write(data)

    def _read_labels(
        self,
        identity: bytes,
        file_index: int,
        indices: list[int],
        labels_per_file: int,
    ) -> dict[int, bytes]:
        result = {}
        with open(self._file_path(identity, file_index), "rb") as f:
            for index in indices:
                f.seek((index - file_index * labels_per_file) * LABEL_SIZE)
                label = f.read(LABEL_SIZE)
                if len(label) != LABEL_SIZE:
                    raise LocalEngineError(f"short read at index {index}")
                result[index] = label
        return result


def _compute_labels(identity: bytes, start: int, end: int) -> bytes:
    return b"".join(compute_label(identity, index) for index in range(start, end))
