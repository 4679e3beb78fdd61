#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
ReadScope v0.1.0

HTML report renderer — turns a ReportModel into a single self-contained
HTML page (jinja2 template shipped with the package, Vega-Lite plots
loaded from a CDN).

The renderer only formats values that are already in the ReportModel; it
never derives statistics of its own.

Author: ReadScope Development Team
License: Dual License (Academic/Commercial) - See LICENSE_ACADEMIC.md and LICENSE_COMMERCIAL.md
"""

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from ..analysis_core.report_model import BASES, DUPLICATION_LEVELS, ReportModel
from ..version import __version__

logger = logging.getLogger(__name__)

REPORT_TEMPLATE = "report.html.j2"
TIME_FORMAT = "%a %b %e %H:%M:%S %Y"

# Vega-Lite box plot of per-position quality; data values are filled in
# per report.
QUALITY_PLOT_SPEC = {
    "$schema": "https://vega.github.io/schema/vega-lite/v5.json",
    "width": "container",
    "height": 300,
    "data": {"values": []},
    "encoding": {
        "x": {"field": "pos", "type": "ordinal", "title": "Position in read (bp)"},
    },
    "layer": [
        {
            "mark": {"type": "rule"},
            "encoding": {
                "y": {"field": "lower", "type": "quantitative", "title": "Phred score"},
                "y2": {"field": "upper"},
            },
        },
        {
            "mark": {"type": "bar", "size": 8, "color": "#f2d16b"},
            "encoding": {
                "y": {"field": "q1", "type": "quantitative"},
                "y2": {"field": "q3"},
            },
        },
        {
            "mark": {"type": "tick", "color": "#c0392b", "size": 8},
            "encoding": {"y": {"field": "median", "type": "quantitative"}},
        },
        {
            "mark": {"type": "line", "color": "#2c7fb8"},
            "encoding": {"y": {"field": "average", "type": "quantitative"}},
        },
    ],
}


def _environment() -> Environment:
    env = Environment(
        loader=PackageLoader("readscope", "reporting/templates"),
        autoescape=select_autoescape(["html", "j2"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    env.filters["thousands"] = lambda value: f"{value:,}"
    env.filters["percent"] = lambda value: f"{value:.2f}"
    return env


def quality_plot_spec(report: ReportModel) -> Dict[str, Any]:
    """Vega-Lite specification of the per-base quality box plot."""
    spec = json.loads(json.dumps(QUALITY_PLOT_SPEC))
    values = []
    for row in report.quality.to_dict():
        # 1-based positions on the axis
        row = dict(row)
        row["pos"] = row["pos"] + 1
        values.append(row)
    spec["data"]["values"] = values
    return spec


def basic_statistics(report: ReportModel) -> List[Dict[str, Any]]:
    """Rows of the basic statistics table."""
    lengths = report.lengths
    if lengths.total:
        length_range = (str(lengths.min_length) if lengths.min_length == lengths.max_length
                        else f"{lengths.min_length}-{lengths.max_length}")
    else:
        length_range = "0"

    return [
        {"name": "File name", "value": report.source_name},
        {"name": "Total sequences", "value": f"{report.read_count:,}"},
        {"name": "Total bases", "value": f"{report.total_bases:,}"},
        {"name": "Sequence length", "value": length_range},
        {"name": "Mean length", "value": f"{lengths.mean:.1f}"},
        {"name": "%GC", "value": f"{report.overall_gc_percent:.1f}"},
        {"name": "Quality offset", "value": f"Phred+{report.quality_offset}"},
        {"name": "Malformed records skipped", "value": f"{report.malformed_records:,}"},
    ]


def _duplication_rows(report: ReportModel) -> List[Dict[str, Any]]:
    summary = report.duplication
    levels = summary.duplication_levels()
    rows = []
    for label, _ in DUPLICATION_LEVELS:
        distinct, reads = levels[label]
        rows.append({
            "level": label,
            "distinct": distinct,
            "reads": reads,
            "percent": 100.0 * reads / summary.sampled_reads if summary.sampled_reads else 0.0,
        })
    return rows


def build_context(report: ReportModel, generated: Optional[datetime] = None) -> Dict[str, Any]:
    """Template context for a report."""
    generated = generated or datetime.now()
    return {
        "report": report,
        "version": __version__,
        "time": generated.strftime(TIME_FORMAT),
        "invalid_reads": report.has_invalid_reads,
        "statistics": basic_statistics(report),
        "quality_spec": json.dumps(quality_plot_spec(report)),
        "bases": BASES,
        "composition": [
            {"position": counts.position + 1, "percentages": counts.percentages()}
            for counts in report.composition
        ],
        "gc_rows": sorted(report.gc.nonzero().items()),
        "length_rows": sorted(report.lengths.counts.items()),
        "duplication_rows": _duplication_rows(report),
    }


def render_html(report: ReportModel, generated: Optional[datetime] = None) -> str:
    """
    Render the HTML report.

    Args:
        report: Finished analysis results
        generated: Timestamp shown in the header (default: now)

    Returns:
        Complete HTML document
    """
    template = _environment().get_template(REPORT_TEMPLATE)
    html = template.render(**build_context(report, generated))
    logger.debug(f"Rendered HTML report for {report.source_name} ({len(html):,} characters)")
    return html

# ReadScope v0.1.0
# Any usage is subject to this software's license.
