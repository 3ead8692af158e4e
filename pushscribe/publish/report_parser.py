"""Reading AnalysisReport files back from pending_analysis/."""

import re
from typing import Dict, List, Optional

from ..exceptions import ReportParseError
from ..models import AnalysisReport

_FIELDS = {
    "generated": re.compile(r'\*\*Generated\*\*:[ \t]*(.+)'),
    "repository": re.compile(r'\*\*Repository\*\*:[ \t]*(.+)'),
    "branch": re.compile(r'\*\*Branch\*\*:[ \t]*(.+)'),
    "pusher": re.compile(r'\*\*Pusher\*\*:[ \t]*(.+)'),
    "commit_range": re.compile(r'\*\*Commit Range\*\*:[ \t]*(.+)'),
    "total_commits": re.compile(r'\*\*Total Commits\*\*:[ \t]*(\d+)'),
    "delivery_id": re.compile(r'\*\*Webhook Delivery ID\*\*:[ \t]*(.+)'),
}

_COMMIT_SECTION = re.compile(r'## Commit Details\s*\n(.+?)(?=\n---|\n## |\Z)', re.DOTALL)
_COMMIT_HEADING = re.compile(r'###\s*\d+\.\s*(.+)')
_ANALYSIS_BODY = re.compile(
    r'##\s*(?:Claude AI Analysis|Analysis Results)[ \t]*\n(.*?)'
    r'(?=\n---\s*\n\*Analysis performed|\Z)',
    re.DOTALL,
)

# Older reports carried the summary as emoji-led paragraphs
_LEGACY_SECTIONS = {
    "main_changes": re.compile(r'📌\s*\*\*주요 변경사항\*\*:\s*(.+?)(?=\n\n|📁|\Z)', re.DOTALL),
    "affected_modules": re.compile(r'📁\s*\*\*영향받는 모듈\*\*:\s*(.+?)(?=\n\n|🎯|\Z)', re.DOTALL),
    "purpose": re.compile(r'🎯\s*\*\*변경 목적\*\*:\s*(.+?)(?=\n\n|🔍|\Z)', re.DOTALL),
    "review_points": re.compile(r'🔍\s*\*\*코드 리뷰 포인트\*\*:\s*(.+?)\Z', re.DOTALL),
}

ERROR_MARKERS = [
    re.compile(r'^Execution error:.*$', re.MULTILINE),
    re.compile(r'^Error executing Claude command.*$', re.MULTILINE),
    re.compile(r'^Claude return code: [^0].*$', re.MULTILINE),
    re.compile(r'^Claude analysis failed.*$', re.MULTILINE),
]


def find_error_marker(content: str) -> Optional[str]:
    """Return the first summarizer error line embedded in a report, if any."""
    for pattern in ERROR_MARKERS:
        match = pattern.search(content)
        if match:
            return match.group(0).strip()
    return None


def parse_report(content: str) -> AnalysisReport:
    """Extract the metadata header, commit headings and analysis body.

    Every field is optional except the branch; a report without one raises
    ReportParseError.
    """
    data: Dict[str, object] = {}

    for name, pattern in _FIELDS.items():
        match = pattern.search(content)
        if match:
            data[name] = match.group(1).strip()

    if "branch" not in data or not data["branch"]:
        raise ReportParseError("Could not parse analysis file or branch not found")

    if "repository" in data:
        data["repository"] = str(data["repository"]).replace("\\/", "/")

    messages: List[str] = []
    section = _COMMIT_SECTION.search(content)
    if section:
        messages = [m.strip() for m in _COMMIT_HEADING.findall(section.group(1))]
    data["commit_messages"] = messages

    body = _ANALYSIS_BODY.search(content)
    if body:
        analysis = re.sub(r'\n---\s*\Z', '', body.group(1).strip()).strip()
        if analysis:
            data["full_analysis"] = analysis
            for name, pattern in _LEGACY_SECTIONS.items():
                match = pattern.search(analysis)
                if match:
                    data[name] = match.group(1).strip()

    return AnalysisReport.model_validate(data)
