from __future__ import annotations


class BenchmarkError(Exception):
    """Raised when the benchmark run hits a fatal condition."""


class InvalidModeError(BenchmarkError):
    """Raised for a benchmark mode outside the supported range."""

    def __init__(self, value: object) -> None:
        super().__init__(f"invalid mode: {value}")
        self.value = value


class EnginePhaseError(BenchmarkError):
    """Raised when an engine call fails during a benchmark case."""

    def __init__(self, phase: str, case: int, total: int, reason: str = "") -> None:
        message = f"case {case}/{total}: {phase} failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.phase = phase
        self.case = case
        self.total = total


class MetadataError(BenchmarkError):
    """Raised when CPU or memory introspection fails."""


class ReportError(BenchmarkError):
    """Raised when a report or profile file cannot be written."""
