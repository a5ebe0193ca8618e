"""Base interface for output reporters.

Reporters generate formatted output (JSON, HTML, etc.) from an analysis
report.
"""

from abc import ABC, abstractmethod
from pathlib import Path

from dependency_risk.analysis import AnalysisReport


class BaseReporter(ABC):
    """Abstract base class for output reporters.

    Reporters take an analysis report and generate formatted output
    documents.
    """

    @abstractmethod
    def render(self, report: AnalysisReport) -> str:
        """Render an analysis report to formatted output.

        Args:
            report: The analysis report.

        Returns:
            Rendered output as a string.
        """
        ...

    def write(self, report: AnalysisReport, output_path: Path) -> None:
        """Render and write output to a file.

        Args:
            report: The analysis report.
            output_path: Path to write the output file.
        """
        content = self.render(report)
        output_path.write_text(content, encoding="utf-8")
