"""
Tests for the four-phase bench runner.
"""

import dataclasses

import pytest

from postbench.config import CHALLENGE, IDENTITY
from postbench.engine import num_files
from postbench.errors import EnginePhaseError
from postbench.runner import HEADER, BenchRunner, ResultRow


class TestRunCase:
    def test_result_row(self, baseline, stub_factory):
        runner = BenchRunner(stub_factory, identity=IDENTITY, challenge=CHALLENGE)
        row = runner.run_case(baseline)

        assert row.num_files == num_files(baseline.space_per_unit, baseline.file_size)
        assert (row.files_parallelism, row.infile_parallelism) == (2, 2)
        assert row.read_parallelism == 2
        for seconds in (row.init_s, row.init_validate_s, row.exec_s, row.exec_validate_s):
            assert seconds >= 0

    def test_phase_order(self, baseline, stub_factory, call_log):
        runner = BenchRunner(stub_factory, identity=IDENTITY, challenge=CHALLENGE)
        runner.run_case(baseline)

        assert [name for name, _ in call_log.calls] == [
            "initialize",
            "validate",
            "generate_proof",
            "validate",
            "reset",
        ]
        assert call_log.calls[0] == ("initialize", bytes.fromhex("deadbeef"))
        assert call_log.calls[2] == ("generate_proof", CHALLENGE)

    def test_repeated_runs(self, baseline, stub_factory):
        runner = BenchRunner(stub_factory, identity=IDENTITY, challenge=CHALLENGE)
        first = runner.run_case(baseline)
        second = runner.run_case(baseline)
        assert first.num_files == second.num_files == 4


class TestRun:
    def test_rows_follow_case_order(self, baseline, stub_factory):
        cases = [
            baseline,
            dataclasses.replace(baseline, file_size=baseline.space_per_unit),
            dataclasses.replace(baseline, file_size=baseline.file_size >> 1),
        ]
        rows = BenchRunner(stub_factory, IDENTITY, CHALLENGE).run(cases)
        assert [row.num_files for row in rows] == [4, 1, 8]

    def test_failed_validation_aborts_remaining_cases(self, baseline, make_stub_factory, call_log):
        runner = BenchRunner(make_stub_factory(fail_on_validation=2), IDENTITY, CHALLENGE)

        with pytest.raises(EnginePhaseError) as excinfo:
            runner.run([baseline, baseline, baseline])

        assert excinfo.value.phase == "validate proof"
        assert excinfo.value.case == 1
        assert "bad proof" in str(excinfo.value)
        names = [name for name, _ in call_log.calls]
        assert names.count("initialize") == 1
        assert "reset" not in names

    def test_engine_construction_failure(self, baseline):
        def broken(config):
            raise RuntimeError("no device")

        with pytest.raises(EnginePhaseError, match="setup failed: no device"):
            BenchRunner(broken, IDENTITY, CHALLENGE).run([baseline])


class TestResultRow:
    def test_record_matches_header(self):
        row = ResultRow(
            num_files=4,
            files_parallelism=2,
            infile_parallelism=1,
            init_s=1.234,
            init_validate_s=0.000345,
            read_parallelism=2,
            exec_s=0.012,
            exec_validate_s=0.001234,
        )
        record = row.to_record()
        assert len(record) == len(HEADER)
        assert record == ["4", "2", "1", "1.234s", "345µs", "2", "12ms", "1.234ms"]
