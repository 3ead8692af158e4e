"""Markdown report written for each analysed push."""

from datetime import datetime
from typing import List

from ..models import CommitRecord, PushPayload, WebhookRecord

REPORT_TITLE = "# Git Push Analysis Report"
ANALYSIS_HEADING = "## Claude AI Analysis"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"
FILENAME_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"


def safe_repo_name(full_name: str) -> str:
    return (full_name or "unknown").replace("/", "_")


def report_filename(push: PushPayload, when: datetime) -> str:
    return (
        f"{when.strftime(FILENAME_TIMESTAMP_FORMAT)}_{safe_repo_name(push.repository.full_name)}"
        f"_{push.before[:7]}_to_{push.after[:7]}.md"
    )


def render_report(record: WebhookRecord, push: PushPayload, commits: List[CommitRecord],
                  analysis: str, when: datetime) -> str:
    generated = when.strftime(TIMESTAMP_FORMAT)
    lines = [
        REPORT_TITLE,
        "",
        f"**Generated**: {generated}",
        f"**Repository**: {push.repository.full_name}",
        f"**Branch**: {push.branch}",
        f"**Pusher**: {push.pusher.name}",
        f"**Commit Range**: {push.before[:7]} → {push.after[:7]}",
        f"**Total Commits**: {len(commits)}",
        f"**Webhook Delivery ID**: {record.delivery_id or 'N/A'}",
        "",
        "---",
        "",
        "## Commit Details",
        "",
    ]

    for idx, commit in enumerate(commits, start=1):
        # one line per heading
        heading = " ".join(commit.message.split())
        lines.append(f"### {idx}. {heading}")
        lines.append(f"- **Commit Hash**: `{commit.short_id}`")
        lines.append(f"- **Author**: {commit.author}")
        lines.append(f"- **Timestamp**: {commit.timestamp}")
        lines.append(
            f"- **Changes**: Added {commit.added}, Modified {commit.modified}, Removed {commit.removed} files"
        )
        if commit.files:
            lines.append("- **Files**:")
            lines.extend(f"  - {path}" for path in commit.files)
        lines.append("")

    lines.extend([
        "---",
        "",
        ANALYSIS_HEADING,
        "",
        analysis,
        "",
        "---",
        "",
        f"*Analysis performed by Claude AI at {generated}*",
    ])
    return "\n".join(lines) + "\n"


def index_line(push: PushPayload, filename: str) -> str:
    return (
        f"{safe_repo_name(push.repository.full_name)} | {push.branch} | "
        f"{push.before[:7]} → {push.after[:7]} | File: {filename}"
    )
