"""Pydantic models for GitHub push webhooks and queued webhook records."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class GithubPerson(BaseModel):
    """Commit author, committer or pusher."""
    model_config = ConfigDict(extra="ignore")

    name: str = "Unknown"
    email: Optional[str] = None


class GithubRepository(BaseModel):
    """Repository section of a push payload."""
    model_config = ConfigDict(extra="ignore")

    name: str = "repo"
    full_name: str = "Unknown"
    html_url: Optional[str] = None
    compare_url: Optional[str] = None


class GithubCommit(BaseModel):
    """One commit as GitHub sends it in a push payload."""
    model_config = ConfigDict(extra="ignore")

    id: str = ""
    message: str = ""
    timestamp: str = ""
    author: GithubPerson = Field(default_factory=GithubPerson)
    added: List[str] = Field(default_factory=list)
    modified: List[str] = Field(default_factory=list)
    removed: List[str] = Field(default_factory=list)
    parents: Optional[List[str]] = None


class PushPayload(BaseModel):
    """The subset of a GitHub push payload the pipeline relies on."""
    model_config = ConfigDict(extra="ignore")

    ref: str = "refs/heads/main"
    before: str = ""
    after: str = ""
    repository: GithubRepository = Field(default_factory=GithubRepository)
    pusher: GithubPerson = Field(default_factory=GithubPerson)
    commits: Optional[List[GithubCommit]] = None

    @property
    def branch(self) -> str:
        return self.ref.replace("refs/heads/", "", 1)

    def commit_records(self) -> List["CommitRecord"]:
        return [CommitRecord.from_github(commit) for commit in self.commits or []]


class CommitRecord(BaseModel):
    """Flattened commit used for prompts and reports."""
    model_config = ConfigDict(frozen=True)

    id: str
    message: str
    author: str
    timestamp: str = ""
    added: int = 0
    modified: int = 0
    removed: int = 0
    files: List[str] = Field(default_factory=list)
    parents: Optional[List[str]] = None

    @classmethod
    def from_github(cls, commit: GithubCommit) -> "CommitRecord":
        return cls(
            id=commit.id,
            message=commit.message,
            author=commit.author.name,
            timestamp=commit.timestamp,
            added=len(commit.added),
            modified=len(commit.modified),
            removed=len(commit.removed),
            files=[*commit.added, *commit.modified, *commit.removed],
            parents=commit.parents,
        )

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def total_files(self) -> int:
        return self.added + self.modified + self.removed

    @property
    def has_multiple_parents(self) -> bool:
        return bool(self.parents) and len(self.parents) > 1


class WebhookRecord(BaseModel):
    """One received webhook, persisted as a single JSON file in pending_webhooks/."""
    model_config = ConfigDict(extra="ignore", frozen=True)

    event: str
    delivery_id: str = ""
    timestamp: str
    repository: str = "unknown"
    branch: str = ""
    pusher: str = "unknown"
    commits_count: int = 0
    payload: Dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def from_payload(cls, event: str, delivery_id: str, timestamp: str,
                     payload: Dict[str, Any]) -> "WebhookRecord":
        push = PushPayload.model_validate(payload)
        return cls(
            event=event,
            delivery_id=delivery_id,
            timestamp=timestamp,
            repository=push.repository.full_name if "repository" in payload else "unknown",
            branch=push.branch if "ref" in payload else "",
            pusher=push.pusher.name if "pusher" in payload else "unknown",
            commits_count=len(push.commits or []),
            payload=payload,
        )

    @property
    def is_push(self) -> bool:
        return self.event == "push" and isinstance(self.payload.get("commits"), list)

    def push_payload(self) -> PushPayload:
        return PushPayload.model_validate(self.payload)

    def commit_records(self) -> List[CommitRecord]:
        return self.push_payload().commit_records()
