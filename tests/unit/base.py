import shutil
import tempfile
import unittest
from pathlib import Path
from typing import Any, Dict, List, Optional

from pushscribe.analysis.summarizer import SummaryResult
from pushscribe.config import JiraConfig, PathsConfig, PipelineConfig


def make_commit(message: str, commit_id: str = "a1b2c3d4e5f6a7b8", author: str = "Dev",
                added: Optional[List[str]] = None, modified: Optional[List[str]] = None,
                removed: Optional[List[str]] = None, parents: Optional[List[str]] = None) -> Dict[str, Any]:
    """A commit entry shaped like GitHub's push payload."""
    commit = {
        "id": commit_id,
        "message": message,
        "timestamp": "2024-05-01T10:00:00+09:00",
        "author": {"name": author, "email": f"{author.lower()}@example.com"},
        "added": added or [],
        "modified": modified or [],
        "removed": removed or [],
    }
    if parents is not None:
        commit["parents"] = parents
    return commit


def make_push_payload(commits: List[Dict[str, Any]], branch: str = "main",
                      full_name: str = "acme/widgets") -> Dict[str, Any]:
    owner, name = full_name.split("/")
    return {
        "ref": f"refs/heads/{branch}",
        "before": "1111111aaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaaa",
        "after": "2222222bbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbbb",
        "repository": {
            "name": name,
            "full_name": full_name,
            "html_url": f"https://github.com/{full_name}",
            "compare_url": f"https://github.com/{full_name}/compare/{{base}}...{{head}}",
        },
        "pusher": {"name": "pusher-bot", "email": "pusher@example.com"},
        "commits": commits,
    }


def make_config(base_dir: Path, **jira_overrides) -> PipelineConfig:
    """Pipeline rooted at ``base_dir`` with placeholder (dry run) Jira credentials."""
    return PipelineConfig(
        jira=JiraConfig(**jira_overrides),
        paths=PathsConfig(base_dir=Path(base_dir)),
    )


def configured_jira() -> Dict[str, str]:
    return {
        "base_url": "https://test-jira.atlassian.net",
        "email": "test@example.com",
        "api_token": "test-token-123456",
    }


class FakeSummarizer:
    """Summarizer returning canned results and recording every call."""

    def __init__(self, *results: SummaryResult):
        self.results = list(results) or [SummaryResult("#### 1. **주요 변경 사항**\n- 로그인 수정", 0)]
        self.calls: List[Dict[str, str]] = []

    def summarize(self, system_prompt: str, prompt: str) -> SummaryResult:
        self.calls.append({"system": system_prompt, "prompt": prompt})
        if len(self.results) > 1:
            return self.results.pop(0)
        return self.results[0]


class BaseTestCase(unittest.TestCase):
    """Base class for pushscribe unit tests that need a pipeline directory tree"""

    def setUp(self):
        """Common setup for all tests"""
        self.temp_dir = tempfile.mkdtemp()
        self.addCleanup(self.cleanup_temp_dir)

        self.base_dir = Path(self.temp_dir)
        self.config = make_config(self.base_dir)
        self.config.paths.ensure()

    def cleanup_temp_dir(self):
        """Clean up temporary directory"""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def write_file(self, directory: Path, name: str, content: str) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / name
        path.write_text(content, encoding="utf-8")
        return path
