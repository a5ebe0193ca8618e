"""Output reporters for rendering analysis results.

This module provides reporters for rendering an analysis report to
various output formats (JSON, HTML).
"""

from dependency_risk.reporters.base import BaseReporter
from dependency_risk.reporters.html import HtmlReporter
from dependency_risk.reporters.json_reporter import JsonReporter

__all__ = ["BaseReporter", "HtmlReporter", "JsonReporter"]
