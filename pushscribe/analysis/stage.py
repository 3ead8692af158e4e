"""AnalysisStage: pending_webhooks/*.json -> pending_analysis/*.md."""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from pydantic import ValidationError

from ..common import append_log_line
from ..config import PipelineConfig
from ..exceptions import TemplateError
from ..models import (
    CommitRecord,
    FileQueue,
    PushPayload,
    QueueOutcome,
    QueueSummary,
    WebhookRecord,
    write_queue_item,
)
from ..tickets import find_ticket_branch_first
from . import prompts
from .prompts import PromptData, PromptTemplate, PromptTemplateRepository
from .report import (
    FILENAME_TIMESTAMP_FORMAT,
    TIMESTAMP_FORMAT,
    index_line,
    render_report,
    report_filename,
    safe_repo_name,
)
from .summarizer import Summarizer, SummaryResult

logger = logging.getLogger(__name__)

STAGE_NAME = "claude_analyze"

MERGE_PHRASES = ("merge pull request", "merge branch", "merge remote-tracking branch")
MERGE_PATTERNS = [
    re.compile(r'^Merge [a-f0-9]{7,40} into [a-f0-9]{7,40}'),
    re.compile(r"^Merge commit '[a-f0-9]{7,40}'"),
]
CONFLICT_KEYWORDS = ("conflict", "resolve", "fixed merge")


def is_merge_commit(commit: CommitRecord) -> bool:
    """More than one parent, or a message shaped like a generated merge message."""
    if commit.has_multiple_parents:
        return True
    lowered = commit.message.lower()
    if any(phrase in lowered for phrase in MERGE_PHRASES):
        return True
    return any(pattern.search(commit.message) for pattern in MERGE_PATTERNS)


def mentions_conflict(message: str) -> bool:
    lowered = message.lower()
    return any(keyword in lowered for keyword in CONFLICT_KEYWORDS)


@dataclass(frozen=True)
class MergeInspection:
    merge_commits: Tuple[CommitRecord, ...] = ()

    @classmethod
    def of(cls, commits: List[CommitRecord]) -> "MergeInspection":
        return cls(tuple(commit for commit in commits if is_merge_commit(commit)))

    @property
    def is_merge(self) -> bool:
        return bool(self.merge_commits)

    @property
    def has_conflict(self) -> bool:
        return self.is_merge and all(mentions_conflict(c.message) for c in self.merge_commits)

    @property
    def skip(self) -> bool:
        return self.is_merge and not self.has_conflict


def prompt_size(prompt: str) -> int:
    return len(prompt.encode("utf-8"))


class AnalysisStage:
    """Turns queued push webhooks into Markdown analysis reports."""

    def __init__(self, config: PipelineConfig, summarizer: Summarizer,
                 templates: Optional[PromptTemplateRepository] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.config = config
        self.paths = config.paths
        self.summarizer = summarizer
        self.templates = templates or PromptTemplateRepository(config.analysis.templates_dir)
        self.clock = clock

    def run(self) -> QueueSummary:
        self.paths.ensure()
        return FileQueue(self.paths.pending_webhooks, "*.json").run(self.handle)

    def handle(self, path: Path) -> QueueOutcome:
        try:
            record = WebhookRecord.model_validate_json(path.read_text(encoding="utf-8"))
        except ValidationError as e:
            return QueueOutcome.failed(f"Invalid JSON in file: {e.error_count()} error(s)")

        if not record.is_push:
            return QueueOutcome.skipped(self.paths.processed_webhooks, f"Non-push event: {record.event}")

        try:
            push = record.push_payload()
        except ValidationError as e:
            return QueueOutcome.failed(f"Invalid push payload: {e.error_count()} error(s)")
        commits = push.commit_records()

        ticket = find_ticket_branch_first(push.branch, [c.message for c in commits])
        if ticket is None:
            logger.info(f"No Jira ticket ID found - skipping analysis (branch: {push.branch})")
            return QueueOutcome.skipped(self.paths.processed_webhooks, "No Jira ticket ID found in branch or commits")
        logger.info(f"Found Jira ticket in {ticket.source}: {ticket.key}")

        merge = MergeInspection.of(commits)
        if merge.skip:
            logger.info("Skipping merge commit (no conflicts detected)")
            return QueueOutcome.skipped(self.paths.processed_webhooks, "Merge commit without conflicts")
        if merge.has_conflict:
            logger.info("Analyzing merge commit with potential conflicts")

        return self.analyze(record, push, commits, merge.has_conflict)

    def analyze(self, record: WebhookRecord, push: PushPayload, commits: List[CommitRecord],
                merge_with_conflict: bool = False) -> QueueOutcome:
        analysis_config = self.config.analysis
        data = PromptData(
            repository=push.repository.full_name,
            branch=push.branch,
            author=push.pusher.name,
            before_commit=push.before[:7],
            after_commit=push.after[:7],
            repo_name=push.repository.name,
            commits=commits,
            compare_url=prompts.build_compare_url(push.repository.compare_url, push.before, push.after),
        )

        variant = prompts.select_variant(
            commits,
            merge_with_conflict,
            max_commits=analysis_config.max_commits_simplified,
            max_prompt_length=analysis_config.max_prompt_length,
        )

        try:
            template, prompt = self._render(variant, data)
            budget = template.max_prompt_length or analysis_config.max_prompt_length
            if template.variant != prompts.SIMPLIFIED and prompt_size(prompt) > budget:
                logger.warning(
                    f"Prompt too long ({prompt_size(prompt)} bytes), switching to simplified version"
                )
                template, prompt = self._render(prompts.SIMPLIFIED, data)

            result = self._summarize(template, prompt, push)
            if not result.ok and result.is_content_too_long and template.variant != prompts.SIMPLIFIED:
                logger.warning("Claude token limit exceeded, retrying with simplified template")
                template, prompt = self._render(prompts.SIMPLIFIED, data)
                result = self._summarize(template, prompt, push)
        except TemplateError as e:
            logger.error(f"Failed to load prompt template: {e.message}")
            return QueueOutcome.failed(f"Failed to load prompt template: {e.message}")

        if not result.ok:
            if result.is_content_too_long:
                return QueueOutcome.failed("Content too long for Claude analysis")
            return QueueOutcome.failed(f"Claude analysis failed with code: {result.exit_code}")

        if not result.text.strip():
            return QueueOutcome.failed("Claude returned empty result")

        filename = self.write_report(record, push, commits, result.text)
        return QueueOutcome.processed(self.paths.processed_webhooks, f"Saved to {filename}")

    def _render(self, variant: str, data: PromptData) -> Tuple[PromptTemplate, str]:
        template = self.templates.load(variant)
        return template, prompts.render_prompt(template, data)

    def _summarize(self, template: PromptTemplate, prompt: str, push: PushPayload) -> SummaryResult:
        self.save_prompt_log(template, prompt, push)
        return self.summarizer.summarize(template.system_prompt, prompt)

    def save_prompt_log(self, template: PromptTemplate, prompt: str, push: PushPayload) -> Path:
        now = self.clock()
        log_dir = self.paths.logs / "claude_prompts"
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / (
            f"{now.strftime(FILENAME_TIMESTAMP_FORMAT)}_{safe_repo_name(push.repository.full_name)}_prompt.txt"
        )

        content = "\n".join([
            "=== SYSTEM PROMPT ===",
            template.system_prompt,
            "",
            "=== USER PROMPT ===",
            prompt,
            "",
            "=== METADATA ===",
            f"Repository: {push.repository.full_name}",
            f"Branch: {push.branch}",
            f"Template: {template.variant}",
            f"Commit Range: {push.before[:7]} → {push.after[:7]}",
            f"Prompt Size: {prompt_size(prompt)} bytes",
            f"Timestamp: {now.strftime(TIMESTAMP_FORMAT)}",
        ])
        log_file.write_text(content + "\n", encoding="utf-8")
        logger.info(f"Prompt saved to: {log_file}")
        return log_file

    def write_report(self, record: WebhookRecord, push: PushPayload, commits: List[CommitRecord],
                     analysis: str) -> str:
        now = self.clock()
        target = write_queue_item(
            self.paths.pending_analysis,
            report_filename(push, now),
            render_report(record, push, commits, analysis.strip(), now),
        )
        filename = target.name

        append_log_line(self.paths.pending_analysis / "index.txt", index_line(push, filename))
        logger.info(f"Analysis saved: {filename}")
        return filename
