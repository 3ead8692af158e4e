from datetime import datetime
from unittest.mock import Mock

import pytest
import requests
from jira.exceptions import JIRAError

from pushscribe.analysis.report import render_report, report_filename
from pushscribe.models import AnalysisReport, OutcomeStatus, WebhookRecord
from pushscribe.publish import JiraPublishStage, build_jira_comment
from tests.unit.base import configured_jira, make_commit, make_config, make_push_payload

FIXED_NOW = datetime(2024, 5, 1, 11, 30, 0)

ANALYSIS = "#### 1. **주요 변경 사항**\n- **로그인** 흐름 정리\n- `auth.py` 수정"


def _write_report(config, messages, analysis=ANALYSIS, branch="main"):
    payload = make_push_payload([make_commit(m) for m in messages], branch=branch)
    record = WebhookRecord.from_payload("push", "abc-123", "2024-05-01 10:00:00", payload)
    push = record.push_payload()
    commits = push.commit_records()
    path = config.paths.pending_analysis / report_filename(push, FIXED_NOW)
    path.write_text(render_report(record, push, commits, analysis, FIXED_NOW), encoding="utf-8")
    return path


@pytest.fixture
def live_config(tmp_path):
    config = make_config(tmp_path, **configured_jira())
    config.paths.ensure()
    return config


@pytest.fixture
def jira_client():
    client = Mock()
    client.get_issue_description.return_value = "Existing description"
    return client


def test_comment_added_when_description_exists(live_config, jira_client):
    source = _write_report(live_config, ["PROJ-9 add login"])
    stage = JiraPublishStage(live_config, jira_client=jira_client, clock=lambda: FIXED_NOW)

    summary = stage.run()

    assert summary.processed == 1
    jira_client.get_issue_description.assert_called_once_with("PROJ-9")
    jira_client.update_description.assert_not_called()
    ticket, comment = jira_client.add_comment.call_args[0]
    assert ticket == "PROJ-9"
    assert comment.startswith("acme/widgets:main / pusher-bot 2024-05-01 11:30:00")
    assert "*로그인* 흐름 정리" in comment
    assert "{{auth.py}}" in comment

    assert not source.exists()
    assert (live_config.paths.processed_jira / source.name).exists()
    success_log = (live_config.paths.logs / "jira_success.log").read_text(encoding="utf-8")
    assert f"| SUCCESS | PROJ-9 | {source.name} | comment_added" in success_log


def test_empty_description_is_replaced(live_config, jira_client):
    jira_client.get_issue_description.return_value = "   "
    source = _write_report(live_config, ["PROJ-9 add login"])

    outcome = JiraPublishStage(live_config, jira_client=jira_client).handle(source)

    assert outcome.status is OutcomeStatus.PROCESSED
    jira_client.update_description.assert_called_once()
    jira_client.add_comment.assert_not_called()


def test_commit_ticket_wins_over_branch(live_config, jira_client):
    source = _write_report(live_config, ["fix", "ABC-7 tweak"], branch="feature/XYZ-1")

    JiraPublishStage(live_config, jira_client=jira_client).handle(source)

    jira_client.get_issue_description.assert_called_once_with("ABC-7")


def test_branch_ticket_used_when_commits_have_none(live_config, jira_client):
    source = _write_report(live_config, ["fix"], branch="feature/XYZ-1")

    JiraPublishStage(live_config, jira_client=jira_client).handle(source)

    jira_client.get_issue_description.assert_called_once_with("XYZ-1")


def test_error_report_is_diverted_without_jira_calls(live_config, jira_client):
    source = _write_report(live_config, ["PROJ-9 add login"], analysis="Claude analysis failed with code: 1")

    summary = JiraPublishStage(live_config, jira_client=jira_client).run()

    assert summary.diverted == 1
    assert (live_config.paths.error_analysis / source.name).exists()
    assert not source.exists()
    assert jira_client.method_calls == []
    errors = (live_config.paths.logs / "jira_errors.log").read_text(encoding="utf-8")
    assert f"| ERROR | Claude execution error in analysis | {source.name}" in errors


def test_report_without_ticket_is_skipped(live_config, jira_client):
    source = _write_report(live_config, ["cleanup"], branch="develop")

    outcome = JiraPublishStage(live_config, jira_client=jira_client).handle(source)

    assert outcome.status is OutcomeStatus.SKIPPED
    assert outcome.destination == live_config.paths.processed_jira
    assert jira_client.method_calls == []


def test_unparseable_report_is_left(live_config, jira_client):
    source = live_config.paths.pending_analysis / "broken.md"
    source.write_text("# nothing useful here\n", encoding="utf-8")

    summary = JiraPublishStage(live_config, jira_client=jira_client).run()

    assert summary.failed == 1
    assert source.exists()


@pytest.mark.parametrize("error", [
    JIRAError(status_code=404, text="Issue does not exist"),
    requests.ConnectionError("connection refused"),
])
def test_jira_failure_leaves_report(live_config, jira_client, error):
    jira_client.add_comment.side_effect = error
    source = _write_report(live_config, ["PROJ-9 add login"])

    outcome = JiraPublishStage(live_config, jira_client=jira_client).handle(source)

    assert outcome.status is OutcomeStatus.FAILED
    assert source.exists()
    assert not (live_config.paths.logs / "jira_success.log").exists()


def test_placeholder_credentials_write_dry_run_preview(pipeline_config, jira_client):
    source = _write_report(pipeline_config, ["PROJ-9 add login"])
    stage = JiraPublishStage(pipeline_config, jira_client=jira_client, clock=lambda: FIXED_NOW)

    summary = stage.run()

    assert stage.dry_run
    assert summary.failed == 1
    assert source.exists()
    assert jira_client.method_calls == []
    preview = pipeline_config.paths.dry_run / "test_PROJ-9_2024-05-01_11-30-00.txt"
    content = preview.read_text(encoding="utf-8")
    assert content.startswith("Ticket: PROJ-9\n\n")
    assert "h4." not in content


def test_dry_run_flag_overrides_credentials(tmp_path, jira_client):
    config = make_config(tmp_path, dry_run=True, **configured_jira())

    assert JiraPublishStage(config, jira_client=jira_client).dry_run


def test_build_comment_from_legacy_sections():
    report = AnalysisReport(
        branch="main",
        repository="acme/widgets",
        pusher="dev",
        generated="2024-01-02 03:04:05",
        main_changes="로그인 흐름 정리",
        affected_modules="auth",
    )

    comment = build_jira_comment(report)

    assert comment.startswith("acme/widgets:main / dev 2024-01-02 03:04:05\n\n----")
    assert "h2. (!) 주요 변경사항\n로그인 흐름 정리" in comment
    assert "h2. (i) 영향받는 모듈\nauth" in comment
    assert "변경 목적" not in comment


def test_report_without_analysis_body_is_left_for_retry(live_config, jira_client):
    source = _write_report(live_config, ["PROJ-9 add login"])
    full = source.read_text(encoding="utf-8")
    source.write_text(full.split("## Claude AI Analysis")[0], encoding="utf-8")

    outcome = JiraPublishStage(live_config, jira_client=jira_client).handle(source)

    assert outcome.status is OutcomeStatus.FAILED
    assert jira_client.method_calls == []

    source.write_text(full, encoding="utf-8")
    summary = JiraPublishStage(live_config, jira_client=jira_client).run()

    assert summary.processed == 1
    ticket, comment = jira_client.add_comment.call_args[0]
    assert "*로그인* 흐름 정리" in comment
