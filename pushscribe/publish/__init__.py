"""Publish stage: report parsing and posting to Jira."""

from .jira_client import JiraClient
from .report_parser import ERROR_MARKERS, find_error_marker, parse_report
from .stage import STAGE_NAME, JiraPublishStage, build_jira_comment

__all__ = [
    "JiraClient",
    "ERROR_MARKERS",
    "find_error_marker",
    "parse_report",
    "STAGE_NAME",
    "JiraPublishStage",
    "build_jira_comment",
]
