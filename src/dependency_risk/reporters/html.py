"""HTML reporter embedding the JSON result into a static page.

This module provides a reporter that renders a self-contained HTML page
using Jinja2 templates. The page carries the JSON report verbatim and
builds its table client-side.
"""

from datetime import datetime
from importlib.resources import files
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader, Template, select_autoescape

from dependency_risk.analysis import AnalysisReport
from dependency_risk.reporters.base import BaseReporter
from dependency_risk.reporters.json_reporter import JsonReporter


def _script_safe(payload: str) -> str:
    """Make a JSON document safe to place inside a <script> element.

    ``<`` only occurs inside JSON strings, where ``\\u003c`` decodes to the
    same text, so package metadata can never close the element early.
    """
    return payload.replace("<", "\\u003c")


class HtmlReporter(BaseReporter):
    """Reporter that generates a static HTML risk report.

    Attributes:
        template: The Jinja2 template to use for rendering.
    """

    def __init__(self, template_path: Optional[Path] = None) -> None:
        """Initialize the HTML reporter.

        Args:
            template_path: Optional path to a custom Jinja2 template.
                If not provided, uses the default bundled template.
        """
        if template_path:
            # Load custom template from file
            env = Environment(
                loader=FileSystemLoader(template_path.parent),
                autoescape=select_autoescape(["html", "j2"]),
            )
            self.template = env.get_template(template_path.name)
        else:
            # Load default template from package resources
            self.template = self._load_default_template()

    def _load_default_template(self) -> Template:
        """Load the default bundled Jinja2 template.

        Returns:
            The default template loaded from package resources.
        """
        template_content = (
            files("dependency_risk.templates")
            .joinpath("report.html.j2")
            .read_text(encoding="utf-8")
        )
        env = Environment(autoescape=True)
        return env.from_string(template_content)

    def render(self, report: AnalysisReport) -> str:
        """Render the analysis report to an HTML page.

        Args:
            report: The analysis report.

        Returns:
            Rendered HTML document as a string.
        """
        payload = JsonReporter(indent=None).render(report)
        return self.template.render(
            name=report.project_name,
            roots=report.roots,
            package_count=len(report.packages),
            incomplete=report.incomplete,
            json_result=_script_safe(payload),
            generated_at=datetime.now(),
        )
