"""Impact reports and the analysis pipeline that builds them."""

from impactscope.report.assembler import FileAnalyzer, ImpactAnalyzer, analyze_impact, build_issues
from impactscope.report.models import (
    ChangeRequest,
    ImpactAnalysisResult,
    ImpactIssue,
    ImpactReport,
    IssueType,
)

__all__ = [
    "ChangeRequest",
    "FileAnalyzer",
    "ImpactAnalysisResult",
    "ImpactAnalyzer",
    "ImpactIssue",
    "ImpactReport",
    "IssueType",
    "analyze_impact",
    "build_issues",
]
