"""JSON reporter producing the flat, name-keyed risk mapping."""

import json

from dependency_risk.analysis import AnalysisReport
from dependency_risk.reporters.base import BaseReporter


class JsonReporter(BaseReporter):
    """Reporter that serializes every PackageRisk record as one JSON object.

    Attributes:
        indent: Indentation passed to json.dumps, None for compact output.
    """

    def __init__(self, indent: int | None = 2) -> None:
        self.indent = indent

    def render(self, report: AnalysisReport) -> str:
        return json.dumps(report.to_dict(), indent=self.indent, sort_keys=True)
