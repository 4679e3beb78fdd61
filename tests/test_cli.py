#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

Tests for CLI command interface.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import gzip
import json
import logging

import pytest
import yaml
from click.testing import CliRunner
from readscope.cli import main


@pytest.fixture
def runner():
    # Keep stderr separate so stdout holds only the HTML report
    try:
        return CliRunner(mix_stderr=False)
    except TypeError:
        return CliRunner()


@pytest.fixture(autouse=True)
def restore_logging():
    """Drop the stderr handlers the command installs on the root logger."""
    root = logging.getLogger()
    before = list(root.handlers)
    yield
    for handler in root.handlers[:]:
        if handler not in before:
            root.removeHandler(handler)
            handler.close()


class TestCLIBasics:
    """Test basic CLI functionality."""

    def test_cli_help(self, runner):
        """Test that --help runs without error."""
        result = runner.invoke(main, ['--help'])

        assert result.exit_code == 0
        assert 'ReadScope' in result.output
        assert '--fastq' in result.output

    def test_cli_version(self, runner):
        """Test that --version displays version."""
        result = runner.invoke(main, ['--version'])

        assert result.exit_code == 0
        assert '0.1.0' in result.output

    def test_missing_fastq_is_usage_error(self, runner):
        """Running without -q is a usage error."""
        result = runner.invoke(main, [])

        assert result.exit_code == 2

    def test_unknown_option(self, runner):
        result = runner.invoke(main, ['--bogus'])

        assert result.exit_code == 2


class TestAnalysisCLI:
    """Full runs through the command line."""

    def test_html_on_stdout(self, runner, simple_fastq_file):
        result = runner.invoke(main, ['-q', str(simple_fastq_file)])

        assert result.exit_code == 0
        assert result.stdout.startswith("<!DOCTYPE html>")
        assert "simple.fastq" in result.stdout

    def test_summary_directory(self, runner, simple_fastq_file, temp_output_dir):
        result = runner.invoke(main, ['-q', str(simple_fastq_file), '-s', str(temp_output_dir)])

        assert result.exit_code == 0
        summary = temp_output_dir / "fastqc_data.txt"
        assert summary.exists()
        assert ">>Per base sequence quality\tpass" in summary.read_text()

    def test_summary_new_directory(self, runner, simple_fastq_file, temp_output_dir):
        target = temp_output_dir / "qc"
        result = runner.invoke(main, ['-q', str(simple_fastq_file), '-s', f"{target}/"])

        assert result.exit_code == 0
        assert (target / "fastqc_data.txt").exists()

    def test_kmer_size_option(self, runner, simple_fastq_file, temp_output_dir):
        json_path = temp_output_dir / "report.json"
        result = runner.invoke(main, ['-q', str(simple_fastq_file), '-k', '3',
                                      '--json', str(json_path)])

        assert result.exit_code == 0
        data = json.loads(json_path.read_text())
        assert data['kmers']['k'] == 3
        assert data['read_count'] == 4

    def test_threads_option(self, runner, random_fastq_file, temp_output_dir):
        sequential = temp_output_dir / "sequential.json"
        parallel = temp_output_dir / "parallel.json"
        config = temp_output_dir / "config.yaml"
        config.write_text(yaml.safe_dump({'execution': {'backend': 'thread'}}))

        runner.invoke(main, ['-q', str(random_fastq_file), '--json', str(sequential)])
        result = runner.invoke(main, ['-q', str(random_fastq_file), '-c', str(config),
                                      '-t', '3', '--chunk-size', '2000',
                                      '--json', str(parallel)])

        assert result.exit_code == 0
        assert json.loads(parallel.read_text()) == json.loads(sequential.read_text())

    def test_stdin_input(self, runner, simple_fastq):
        result = runner.invoke(main, ['-q', '-'], input=simple_fastq)

        assert result.exit_code == 0
        assert "stdin" in result.stdout


class TestCLIErrors:
    """Fatal errors exit with status 1 and a message on stderr."""

    def test_missing_file(self, runner, temp_output_dir):
        result = runner.invoke(main, ['-q', str(temp_output_dir / "missing.fastq")])

        assert result.exit_code == 1
        assert "✗" in result.stderr
        assert "<html" not in result.stdout

    def test_invalid_k(self, runner, simple_fastq_file):
        result = runner.invoke(main, ['-q', str(simple_fastq_file), '-k', '0'])

        assert result.exit_code == 1
        assert "k-mer size" in result.stderr

    def test_tolerance_exceeded(self, runner, temp_output_dir):
        path = temp_output_dir / "bad.fastq"
        path.write_text("broken\nAC\n+\nII\n" * 3)
        config = temp_output_dir / "config.yaml"
        config.write_text(yaml.safe_dump({'tolerance': {'policy': 'abort'}}))

        result = runner.invoke(main, ['-q', str(path), '-c', str(config)])

        assert result.exit_code == 1
        assert "malformed" in result.stderr
        assert result.stdout == ""

    def test_corrupt_gzip(self, runner, random_fastq_file, temp_output_dir):
        path = temp_output_dir / "corrupt.fastq.gz"
        data = bytearray(gzip.compress(random_fastq_file.read_bytes()))
        middle = len(data) // 2
        for offset in range(middle, middle + 64):
            data[offset] ^= 0xFF
        path.write_bytes(bytes(data))

        result = runner.invoke(main, ['-q', str(path)])

        assert result.exit_code == 1
        assert "✗" in result.stderr

    def test_invalid_config(self, runner, simple_fastq_file, temp_output_dir):
        config = temp_output_dir / "config.yaml"
        config.write_text(yaml.safe_dump({'analysis': {'kmer_size': 500}}))

        result = runner.invoke(main, ['-q', str(simple_fastq_file), '-c', str(config)])

        assert result.exit_code == 1


class TestWriteConfig:
    """Configuration template generation."""

    def test_write_config(self, runner, temp_output_dir):
        target = temp_output_dir / "readscope.yaml"
        result = runner.invoke(main, ['--write-config', str(target)])

        assert result.exit_code == 0
        assert yaml.safe_load(target.read_text())['analysis']['kmer_size'] == 5

# ReadScope v0.1.0
# Any usage is subject to this software's license.
