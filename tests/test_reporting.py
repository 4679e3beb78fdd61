#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Tests for the HTML report and the FastQC-style summary file.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import json
from datetime import datetime

import pytest
from readscope.analysis_core.engine import AnalysisEngine
from readscope.config.schema import AnalysisOptions
from readscope.reporting import (
    MODULE_BASE_QUALITY,
    MODULE_BASIC_STATISTICS,
    MODULE_KMER_CONTENT,
    SUMMARY_FILENAME,
    base_quality_status,
    quality_plot_spec,
    render_html,
    render_summary,
    write_summary,
)


def _fastq_with_quality(path, quality_char):
    path.write_text("".join(
        f"@r{i}\nACGTACGT\n+\n{quality_char * 8}\n" for i in range(4)
    ))
    return path


@pytest.fixture
def simple_report(simple_fastq_file):
    return AnalysisEngine(AnalysisOptions(overrepresented_fraction=0.2)).run(simple_fastq_file)


class TestHtmlReport:
    """HTML rendering."""

    def test_contains_sections(self, simple_report):
        html = render_html(simple_report, generated=datetime(2024, 1, 2, 3, 4, 5))

        assert html.startswith("<!DOCTYPE html>")
        assert "simple.fastq" in html
        assert "Basic statistics" in html
        assert "Per base sequence quality" in html
        assert "ACGTA" in html
        assert "2024" in html

    def test_no_invalid_reads_banner(self, simple_report):
        assert "Invalid reads" not in render_html(simple_report)

    def test_invalid_reads_banner(self, temp_output_dir):
        path = temp_output_dir / "bad.fastq"
        path.write_text("@r1\nAC\n+\nII\nbroken\nAC\n+\nII\n")
        report = AnalysisEngine().run(path)

        html = render_html(report)

        assert "Invalid reads" in html
        assert "malformed record at byte" in html

    def test_names_are_escaped(self, temp_output_dir):
        path = temp_output_dir / "<odd>.fastq"
        path.write_text("@r1\nAC\n+\nII\n")

        html = render_html(AnalysisEngine().run(path))

        assert "&lt;odd&gt;.fastq" in html

    def test_quality_plot_spec(self, simple_report):
        spec = quality_plot_spec(simple_report)
        values = spec["data"]["values"]

        assert len(values) == 5
        assert values[0]["pos"] == 1
        assert values[0]["median"] == 40.0
        # Serialisable for embedding
        json.dumps(spec)


class TestSummaryFile:
    """fastqc_data.txt output."""

    def test_module_layout(self, simple_report):
        text = render_summary(simple_report)
        lines = text.splitlines()

        assert lines[0].startswith("##FastQC")
        assert f">>{MODULE_BASIC_STATISTICS}\tpass" in lines
        assert f">>{MODULE_BASE_QUALITY}\tpass" in lines
        assert text.count(">>END_MODULE") == 7
        assert "Total Sequences\t4" in lines
        assert "#Base\tMean\tMedian\tLower Quartile\tUpper Quartile\t10th Percentile\t90th Percentile" in lines
        assert "1\t40.0\t40.0\t40.0\t40.0\t40.0\t40.0" in lines

    def test_kmer_module(self, simple_report):
        text = render_summary(simple_report)

        assert f">>{MODULE_KMER_CONTENT}\twarn" in text
        assert "ACGTA\t2\t50.0\t1" in text.splitlines()

    @pytest.mark.parametrize("quality_char,expected", [
        ("I", "pass"),   # Phred 40
        (":", "warn"),   # Phred 25
        ("5", "fail"),   # Phred 20
    ])
    def test_base_quality_status(self, temp_output_dir, quality_char, expected):
        path = _fastq_with_quality(temp_output_dir / "reads.fastq", quality_char)
        report = AnalysisEngine().run(path)

        assert base_quality_status(report) == expected
        assert f">>{MODULE_BASE_QUALITY}\t{expected}" in render_summary(report)

    def test_custom_thresholds(self, temp_output_dir):
        path = _fastq_with_quality(temp_output_dir / "reads.fastq", "?")  # Phred 30
        report = AnalysisEngine().run(path)

        assert base_quality_status(report, warn_median=30, fail_median=10) == "warn"
        assert base_quality_status(report, warn_median=35, fail_median=30) == "fail"

    def test_write_to_directory(self, simple_report, temp_output_dir):
        written = write_summary(simple_report, temp_output_dir)

        assert written == temp_output_dir / SUMMARY_FILENAME
        assert written.read_text().startswith("##FastQC")

    def test_write_to_file(self, simple_report, temp_output_dir):
        target = temp_output_dir / "nested" / "summary.txt"
        written = write_summary(simple_report, target)

        assert written == target
        assert target.exists()

    @pytest.mark.parametrize("name", ["qc/", "qc"])
    def test_write_to_new_directory(self, simple_report, temp_output_dir, name):
        """A missing directory is created rather than written as a file."""
        written = write_summary(simple_report, f"{temp_output_dir}/{name}")

        assert written == temp_output_dir / "qc" / SUMMARY_FILENAME
        assert (temp_output_dir / "qc").is_dir()
        assert written.read_text().startswith("##FastQC")

    def test_malformed_records_row(self, temp_output_dir):
        """Malformed records get their own row; none are flagged as poor quality."""
        path = temp_output_dir / "bad.fastq"
        path.write_text("@r1\nAC\n+\nII\nbroken\nAC\n+\nII\n")
        lines = render_summary(AnalysisEngine().run(path)).splitlines()

        assert "Sequences flagged as poor quality\t0" in lines
        assert "Malformed records skipped\t1" in lines

# ReadScope v0.1.0
# Any usage is subject to this software's license.
