"""JiraPublishStage: pending_analysis/*.md -> Jira."""

import logging
from datetime import datetime
from pathlib import Path
from typing import Callable, Optional

import requests
from jira.exceptions import JIRAError

from ..common import append_log_line
from ..config import PipelineConfig
from ..exceptions import ReportParseError
from ..markup import markdown_to_jira
from ..models import AnalysisReport, FileQueue, QueueOutcome, QueueSummary
from ..tickets import find_ticket_commits_first
from .jira_client import JiraClient
from .report_parser import find_error_marker, parse_report

logger = logging.getLogger(__name__)

STAGE_NAME = "jira_hook"

_LEGACY_HEADINGS = [
    ("main_changes", "## 📌 주요 변경사항"),
    ("affected_modules", "## 📁 영향받는 모듈"),
    ("purpose", "## 🎯 변경 목적"),
    ("review_points", "## 🔍 코드 리뷰 포인트"),
]


def build_jira_comment(report: AnalysisReport) -> str:
    """Jira markup for one report: a one-line header, a rule, then the analysis."""
    markdown = (
        f"{report.repository or ''}:{report.branch} / {report.pusher or ''} {report.generated or ''}\n\n"
        "---\n\n"
    )

    if report.full_analysis:
        markdown += report.full_analysis + "\n\n"
    else:
        for field_name, heading in _LEGACY_HEADINGS:
            value = getattr(report, field_name)
            if value:
                markdown += f"{heading}\n{value}\n\n"

    return markdown_to_jira(markdown)


class JiraPublishStage:
    """Posts analysis reports to the Jira issue they reference."""

    def __init__(self, config: PipelineConfig, jira_client: Optional[JiraClient] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.config = config
        self.paths = config.paths
        self.jira_client = jira_client
        self.clock = clock

    @property
    def dry_run(self) -> bool:
        return self.config.jira.dry_run or not self.config.jira.is_configured

    def run(self) -> QueueSummary:
        self.paths.ensure()
        if self.dry_run:
            logger.warning("Jira credentials not configured or dry run enabled; comments are written to "
                           f"{self.paths.dry_run}")
        return FileQueue(self.paths.pending_analysis, "*.md").run(self.handle)

    def _client(self) -> JiraClient:
        if self.jira_client is None:
            self.jira_client = JiraClient(self.config.jira)
        return self.jira_client

    def handle(self, path: Path) -> QueueOutcome:
        content = path.read_text(encoding="utf-8")

        try:
            report = parse_report(content)
        except ReportParseError as e:
            return QueueOutcome.failed(e.message)

        marker = find_error_marker(content)
        if marker:
            logger.error(f"Claude execution error detected in {path.name}: {marker}")
            append_log_line(
                self.paths.logs / "jira_errors.log",
                f"Claude execution error in analysis | {path.name}",
                level="ERROR",
            )
            return QueueOutcome.diverted(self.paths.error_analysis, "Claude execution error in analysis")

        if not report.has_analysis:
            return QueueOutcome.failed("Report has no analysis body yet")

        logger.info(f"Branch: {report.branch}")
        ticket = find_ticket_commits_first(report.branch, report.commit_messages)
        if ticket is None:
            return QueueOutcome.skipped(self.paths.processed_jira, "No Jira ticket ID found in commit messages or branch name")
        logger.info(f"Jira ticket: {ticket.key} (found in {ticket.source})")

        comment = build_jira_comment(report)

        if self.dry_run:
            preview = self.write_dry_run(ticket.key, comment)
            return QueueOutcome.failed(f"Dry run: comment saved to {preview.name}")

        return self.publish(path, ticket.key, comment)

    def publish(self, path: Path, ticket_id: str, content: str) -> QueueOutcome:
        client = self._client()
        try:
            description = client.get_issue_description(ticket_id)
            if not description.strip():
                logger.info("Description is empty. Updating description instead of adding comment.")
                client.update_description(ticket_id, content)
                action = "description_updated"
            else:
                logger.info(f"Description exists ({len(description)} characters). Adding as comment.")
                client.add_comment(ticket_id, content)
                action = "comment_added"
        except JIRAError as e:
            logger.error(f"Jira API error for {ticket_id}: HTTP {e.status_code} - {e.text}")
            return QueueOutcome.failed(f"Jira API error: HTTP {e.status_code}")
        except requests.RequestException as e:
            logger.error(f"Jira request failed for {ticket_id}: {e}")
            return QueueOutcome.failed(f"Jira request failed: {e}")

        append_log_line(
            self.paths.logs / "jira_success.log",
            f"{ticket_id} | {path.name} | {action}",
            level="SUCCESS",
        )
        return QueueOutcome.processed(self.paths.processed_jira, f"{action} on {ticket_id}")

    def write_dry_run(self, ticket_id: str, content: str) -> Path:
        self.paths.dry_run.mkdir(parents=True, exist_ok=True)
        preview = self.paths.dry_run / f"test_{ticket_id}_{self.clock().strftime('%Y-%m-%d_%H-%M-%S')}.txt"
        preview.write_text(f"Ticket: {ticket_id}\n\n{content}", encoding="utf-8")
        logger.info(f"Test comment saved to: {preview}")
        return preview
