"""Pipeline configuration.

One ``PipelineConfig`` is built at process start (from the environment or a
YAML file) and handed to every stage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

PLACEHOLDER_JIRA_URL = "https://your-domain.atlassian.net"
PLACEHOLDER_JIRA_EMAIL = "your-email@example.com"
PLACEHOLDER_JIRA_TOKEN = "your-api-token"

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "prompts"


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class JiraConfig:
    """Settings required to connect to Jira."""

    base_url: str = PLACEHOLDER_JIRA_URL
    email: str = PLACEHOLDER_JIRA_EMAIL
    api_token: str = PLACEHOLDER_JIRA_TOKEN
    timeout: int = 10
    dry_run: bool = False

    @property
    def is_configured(self) -> bool:
        """False while any credential still holds its placeholder value."""
        return not (
            not self.base_url or not self.email or not self.api_token
            or self.base_url == PLACEHOLDER_JIRA_URL
            or self.email == PLACEHOLDER_JIRA_EMAIL
            or self.api_token == PLACEHOLDER_JIRA_TOKEN
        )


@dataclass
class AnalysisConfig:
    """Settings for prompt rendering and the external summarizer."""

    claude_command: str = "claude"
    templates_dir: Path = DEFAULT_TEMPLATES_DIR
    max_prompt_length: int = 10000
    summarizer_timeout: int = 600
    max_commits_simplified: int = 15


@dataclass
class PathsConfig:
    """Queue, log and lock directories under one base directory."""

    base_dir: Path = field(default_factory=Path.cwd)

    @property
    def logs(self) -> Path:
        return self.base_dir / "logs"

    @property
    def locks(self) -> Path:
        return self.base_dir / "locks"

    @property
    def pending_webhooks(self) -> Path:
        return self.base_dir / "pending_webhooks"

    @property
    def pending_analysis(self) -> Path:
        return self.base_dir / "pending_analysis"

    @property
    def processed_webhooks(self) -> Path:
        return self.base_dir / "processed_webhooks"

    @property
    def processed_jira(self) -> Path:
        return self.base_dir / "processed_jira"

    @property
    def error_analysis(self) -> Path:
        return self.base_dir / "error_analysis"

    @property
    def dry_run(self) -> Path:
        return self.base_dir / "dry_run_jira"

    def as_dict(self) -> Dict[str, Path]:
        return {
            "logs": self.logs,
            "locks": self.locks,
            "pending_webhooks": self.pending_webhooks,
            "pending_analysis": self.pending_analysis,
            "processed_webhooks": self.processed_webhooks,
            "processed_jira": self.processed_jira,
            "error_analysis": self.error_analysis,
            "dry_run": self.dry_run,
        }

    def ensure(self) -> None:
        """Create every pipeline directory."""
        for directory in self.as_dict().values():
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class PipelineConfig:
    """Top level configuration shared by all stages."""

    jira: JiraConfig = field(default_factory=JiraConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    paths: PathsConfig = field(default_factory=PathsConfig)
    webhook_secret: str = ""
    lock_max_age: int = 300

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        """Create configuration from environment variables."""
        return cls(
            jira=JiraConfig(
                base_url=os.getenv("JIRA_BASE_URL", PLACEHOLDER_JIRA_URL),
                email=os.getenv("JIRA_EMAIL", PLACEHOLDER_JIRA_EMAIL),
                api_token=os.getenv("JIRA_API_TOKEN", PLACEHOLDER_JIRA_TOKEN),
                timeout=int(os.getenv("JIRA_TIMEOUT", "10")),
                dry_run=_env_bool("JIRA_DRY_RUN"),
            ),
            analysis=AnalysisConfig(
                claude_command=os.getenv("CLAUDE_COMMAND", "claude"),
                templates_dir=Path(os.getenv("PUSHSCRIBE_TEMPLATES_DIR", str(DEFAULT_TEMPLATES_DIR))),
                max_prompt_length=int(os.getenv("MAX_PROMPT_LENGTH", "10000")),
                summarizer_timeout=int(os.getenv("CLAUDE_TIMEOUT", "600")),
            ),
            paths=PathsConfig(base_dir=Path(os.getenv("PUSHSCRIBE_BASE_DIR", os.getcwd()))),
            webhook_secret=os.getenv("GITHUB_WEBHOOK_SECRET", ""),
            lock_max_age=int(os.getenv("PUSHSCRIBE_LOCK_TIMEOUT", "300")),
        )

    @staticmethod
    def load(path: str | Path) -> "PipelineConfig":
        """Load configuration from a YAML file.

        Secrets (Jira API token, webhook secret) are always read from the
        environment, never from the file.
        """
        with open(path, "r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}

        jira_data = dict(data.get("jira", {}))
        jira_data["api_token"] = os.getenv("JIRA_API_TOKEN", PLACEHOLDER_JIRA_TOKEN)
        jira = JiraConfig(**jira_data)

        analysis_data = dict(data.get("analysis", {}))
        if "templates_dir" in analysis_data:
            analysis_data["templates_dir"] = Path(analysis_data["templates_dir"])
        analysis = AnalysisConfig(**analysis_data)

        base_dir: Optional[str] = data.get("base_dir")
        paths = PathsConfig(base_dir=Path(base_dir)) if base_dir else PathsConfig()

        return PipelineConfig(
            jira=jira,
            analysis=analysis,
            paths=paths,
            webhook_secret=os.getenv("GITHUB_WEBHOOK_SECRET", ""),
            lock_max_age=int(data.get("lock_max_age", 300)),
        )
