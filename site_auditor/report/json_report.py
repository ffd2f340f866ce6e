# site_auditor/report/json_report.py

"""
JSON report for SiteAuditor: serializes a CrawlReport to a file.
"""
from pathlib import Path

from site_auditor.aggregator import CrawlReport


def render_json(report: CrawlReport, output_path: Path | str, *, pretty: bool = True) -> Path:
    """
    Write *report* as JSON to *output_path* and return the path.

    Example:
    ```python
    from site_auditor.report.json_report import render_json
    report_path = render_json(report, 'reports/report.json')
    ```
    """
    output = Path(output_path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(report.json(pretty=pretty), encoding='utf-8')
    return output
