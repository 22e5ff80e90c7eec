"""
Tests for the console table and CSV report exporters.
"""

import csv
import io

import pytest

from postbench.errors import ReportError
from postbench.metadata import Metadata, collect_metadata
from postbench.report import export_csv, export_table, read_report, render_table
from postbench.runner import HEADER, ResultRow


@pytest.fixture
def metadata():
    md = Metadata()
    md.add("DATADIR", "/data/post")
    md.add("SPACE", "8M")
    md.add("OS", "linux")
    md.add("CPU_MODEL", "Example CPU")
    md.add("CPU_FLAGS", "fpu sse avx2")
    md.add("CPU_LOGICAL", "8")
    return md


@pytest.fixture
def rows():
    return [
        ResultRow(1, 1, 1, 0.512, 0.000041, 1, 0.004, 0.000038),
        ResultRow(2, 1, 1, 0.498, 0.000040, 1, 0.006, 0.000039),
        ResultRow(4, 4, 2, 1.25, 0.000052, 2, 0.011, 0.000044),
    ]


class TestExportTable:
    def test_metadata_lines_skip_cpu_flags(self, metadata, rows):
        out = io.StringIO()
        export_table(metadata, HEADER, rows, out)
        text = out.getvalue()

        assert "- Results -" in text
        assert "DATADIR: /data/post" in text
        assert "CPU_MODEL: Example CPU" in text
        assert "CPU_FLAGS" not in text
        assert "avx2" not in text

    def test_table_has_one_line_per_row(self, metadata, rows):
        out = io.StringIO()
        export_table(metadata, HEADER, rows, out)
        table_lines = [line for line in out.getvalue().splitlines() if line.startswith("|")]
        assert len(table_lines) == 1 + len(rows)
        assert "NUMFILES" in table_lines[0]
        assert "512ms" in table_lines[1]

    def test_render_table_borders(self):
        text = render_table(["A", "BB"], [["1", "x"], ["22", "yyy"]])
        lines = text.splitlines()
        assert lines[0] == lines[2] == lines[-1] == "+----+-----+"
        assert lines[3] == "|  1 | x   |"
        assert lines[4] == "| 22 | yyy |"


class TestExportCsv:
    def test_layout(self, tmp_path, metadata, rows):
        path = export_csv(metadata, HEADER, rows, tmp_path / "report.csv")
        with open(path, newline="", encoding="utf-8") as f:
            records = list(csv.reader(f))

        assert records[0] == metadata.keys()
        assert records[1] == metadata.values()
        assert records[2] == []
        assert records[3] == HEADER
        assert records[4:] == [row.to_record() for row in rows]
        assert "CPU_FLAGS" in records[0]

    def test_round_trip(self, tmp_path, metadata, rows):
        path = export_csv(metadata, HEADER, rows, tmp_path / "report.csv")
        loaded_metadata, df = read_report(path)

        assert list(df.columns) == HEADER
        assert len(df) == len(rows)
        assert list(loaded_metadata) == list(metadata)

    def test_round_trip_multiline_description(self, tmp_path, metadata, rows):
        metadata.add("DESC", "first line\n\nsecond, after a blank line")
        path = export_csv(metadata, HEADER, rows, tmp_path / "report.csv")
        loaded_metadata, df = read_report(path)

        assert loaded_metadata.get("DESC") == "first line\n\nsecond, after a blank line"
        assert list(loaded_metadata) == list(metadata)
        assert list(df.columns) == HEADER
        assert df.values.tolist() == [row.to_record() for row in rows]

    def test_missing_results_block(self, tmp_path):
        path = tmp_path / "report.csv"
        path.write_text("DATADIR\n/data\n", encoding="utf-8")
        with pytest.raises(ReportError):
            read_report(path)

    def test_no_rows(self, tmp_path, metadata):
        path = export_csv(metadata, HEADER, [], tmp_path / "report.csv")
        _, df = read_report(path)
        assert list(df.columns) == HEADER
        assert df.empty

    def test_unwritable_path_is_fatal(self, tmp_path, metadata, rows):
        with pytest.raises(ReportError):
            export_csv(metadata, HEADER, rows, tmp_path / "missing" / "report.csv")


class TestEmptyOptionalMetadata:
    def test_no_placeholders_in_outputs(self, tmp_path, rows, baseline):
        md = collect_metadata(baseline, disktype="", fstype="", description="")
        out = io.StringIO()
        export_table(md, HEADER, rows, out)
        path = export_csv(md, HEADER, rows, tmp_path / "report.csv")

        console_keys = {line.split(":", 1)[0] for line in out.getvalue().splitlines() if ": " in line}
        assert not {"DESC", "DISK", "FS"} & console_keys
        with open(path, newline="", encoding="utf-8") as f:
            keys, values = list(csv.reader(f))[:2]
        assert not {"DESC", "DISK", "FS"} & set(keys)
        assert len(values) == len(keys)
