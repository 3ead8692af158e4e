"""Models for analysis reports and extracted ticket references."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class TicketReference(BaseModel):
    """A Jira issue key together with where it was found."""
    model_config = ConfigDict(frozen=True)

    key: str
    source: Literal["branch", "commit"]
    text: str = ""


class AnalysisReport(BaseModel):
    """Fields recovered from a pending_analysis/*.md report."""
    model_config = ConfigDict(frozen=True)

    branch: str
    generated: Optional[str] = None
    repository: Optional[str] = None
    pusher: Optional[str] = None
    commit_range: Optional[str] = None
    total_commits: Optional[int] = None
    delivery_id: Optional[str] = None
    commit_messages: List[str] = Field(default_factory=list)
    full_analysis: Optional[str] = None
    main_changes: Optional[str] = None
    affected_modules: Optional[str] = None
    purpose: Optional[str] = None
    review_points: Optional[str] = None

    @property
    def has_analysis(self) -> bool:
        """True when the report carries an analysis body in either layout."""
        return any([
            self.full_analysis,
            self.main_changes,
            self.affected_modules,
            self.purpose,
            self.review_points,
        ])
