# File: site_auditor/report/html_report.py
"""site_auditor.report.html_report: HTML report rendered with Jinja2."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional, Union

from jinja2 import Environment, FileSystemLoader, PackageLoader, select_autoescape

from site_auditor.aggregator import CrawlReport

TEMPLATE_NAME = "report.html.j2"


def render_html(
    report: CrawlReport,
    output_path: Union[Path, str],
    template_dir: Optional[Union[Path, str]] = None,
) -> Path:
    """Render *report* into an HTML file.

    Args:
        report: the aggregated CrawlReport.
        output_path: where the HTML file is written.
        template_dir: directory holding ``report.html.j2``; the packaged
            template is used when omitted.

    Returns:
        Path of the written file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    loader = (
        FileSystemLoader(str(template_dir))
        if template_dir is not None
        else PackageLoader("site_auditor.report", "templates")
    )
    env = Environment(loader=loader, autoescape=select_autoescape(["html", "xml", "j2"]))
    template = env.get_template(TEMPLATE_NAME)

    context: dict[str, Any] = {
        "summary": report.summary,
        "sections": [
            (title, getattr(report, key))
            for key, title in CrawlReport.SECTION_TITLES.items()
            if key != "summary"
        ],
    }
    output_path.write_text(template.render(**context), encoding="utf-8")
    return output_path
