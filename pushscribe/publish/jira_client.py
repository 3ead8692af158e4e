"""Thin wrapper around the Jira API used by the publish stage."""

import logging
from typing import Any, Dict, Optional

from jira import JIRA

from ..config import JiraConfig

logger = logging.getLogger(__name__)


class JiraClient:
    """Fetches issue descriptions, replaces them, and adds comments.

    The connection is opened on first use so that building a client never
    touches the network.
    """

    def __init__(self, config: JiraConfig):
        self.config = config
        self._client: Optional[JIRA] = None

    @property
    def client(self) -> JIRA:
        if self._client is None:
            self._client = JIRA(
                server=self.config.base_url,
                basic_auth=(self.config.email, self.config.api_token),
                timeout=self.config.timeout,
                get_server_info=False,
            )
        return self._client

    def get_issue_description(self, issue_id: str) -> str:
        """Current description of an issue ("" when it has none)."""
        issue = self.client.issue(issue_id, fields="description,summary")
        return getattr(issue.fields, "description", None) or ""

    def update_description(self, issue_id: str, description: str) -> None:
        issue = self.client.issue(issue_id, fields="description")
        issue.update(fields={"description": description})
        logger.info(f"Description updated for {issue_id}")

    def add_comment(self, issue_id: str, comment: str) -> Any:
        result = self.client.add_comment(issue_id, comment)
        logger.info(f"Comment posted to {issue_id} (id: {getattr(result, 'id', 'unknown')})")
        return result

    def myself(self) -> Dict[str, Any]:
        return self.client.myself()
