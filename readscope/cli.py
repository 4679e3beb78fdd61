#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Command-line interface for ReadScope.

Analyses one FASTQ file, writes the HTML report to standard output and,
optionally, a FastQC-compatible summary file and a JSON dump of the
results. Log messages go to standard error.
"""

import json
import logging
import sys
from pathlib import Path

import click

from .analysis_core.engine import AnalysisEngine, StreamCorruptError
from .config.parser import ConfigParser
from .config.schema import ConfigError, save_config_template
from .reporting.html_report import render_html
from .reporting.summary_writer import write_summary
from .version import __version__

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str, log_file=None):
    """Send log records to stderr (stdout carries the report)."""
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )


@click.command()
@click.version_option(version=__version__)
@click.option('--fastq', '-q', type=click.Path(allow_dash=True),
              help='FASTQ file to analyse (gzip supported, "-" for stdin)')
@click.option('-k', 'kmer_size', type=int, default=None,
              help='K-mer length [default: 5]')
@click.option('--summary', '-s', type=click.Path(),
              help='Write a FastQC-style summary (directory -> fastqc_data.txt in it)')
@click.option('--threads', '-t', type=int, default=None,
              help='Worker count for plain files [default: 1]')
@click.option('--chunk-size', type=int, default=None,
              help='Target chunk size in bytes for parallel runs')
@click.option('--config', '-c', 'config_file', type=click.Path(exists=True, dir_okay=False),
              help='YAML configuration file')
@click.option('--json', 'json_path', type=click.Path(),
              help='Also write the results as JSON')
@click.option('--write-config', type=click.Path(),
              help='Write a configuration template and exit')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
def main(fastq, kmer_size, summary, threads, chunk_size, config_file, json_path,
         write_config, verbose):
    """
    ReadScope: streaming quality control for FASTQ files.

    The HTML report is written to standard output:

        readscope -q reads.fastq -s qc/ > report.html
    """
    if write_config:
        try:
            save_config_template(Path(write_config))
        except OSError as e:
            click.echo(f"✗ Error creating configuration: {e}", err=True)
            sys.exit(1)
        click.echo(f"✓ Configuration file created: {write_config}", err=True)
        return

    if not fastq:
        raise click.UsageError("Missing option '-q' / '--fastq'.")

    try:
        parser = ConfigParser(config_file)
        parser.merge_cli_overrides({
            'analysis.kmer_size': kmer_size,
            'execution.threads': threads,
            'execution.chunk_size': chunk_size,
            'logging.level': 'DEBUG' if verbose else None,
        })
        options = parser.build_options()
    except (ConfigError, OSError) as e:
        click.echo(f"✗ Configuration error: {e}", err=True)
        sys.exit(1)

    setup_logging(parser.get('logging.level', 'INFO'), parser.get('logging.log_file'))
    logger.debug(f"Options: {options.to_dict()}")

    try:
        report = AnalysisEngine(options).run(fastq)
    except (StreamCorruptError, ConfigError, OSError) as e:
        click.echo(f"✗ {e}", err=True)
        sys.exit(1)

    click.echo(render_html(report))

    try:
        if summary:
            write_summary(
                report, summary,
                warn_median=parser.get('report.quality_warn_median'),
                fail_median=parser.get('report.quality_fail_median'),
            )
        if json_path:
            with open(json_path, 'w') as handle:
                json.dump(report.to_dict(), handle, indent=2)
            logger.info(f"JSON results written to {json_path}")
    except OSError as e:
        click.echo(f"✗ Error writing output: {e}", err=True)
        sys.exit(1)


if __name__ == '__main__':
    sys.exit(main())
