# File: site_auditor/report/__init__.py
"""site_auditor.report: JSON and HTML report writers."""

from site_auditor.report.html_report import render_html
from site_auditor.report.json_report import render_json

__all__ = ["render_json", "render_html"]
