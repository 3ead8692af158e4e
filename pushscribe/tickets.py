"""Jira issue key extraction from commit messages and branch names."""

import re
from typing import Iterable, List, Optional

from .models import TicketReference

# Most specific first; the first pattern that matches wins.
TICKET_PATTERNS: List[re.Pattern] = [
    re.compile(r'\[([A-Z]+[0-9]+-\d+)\]', re.IGNORECASE),  # [P03-45]
    re.compile(r'\[([A-Z]+-\d+)\]', re.IGNORECASE),        # [PROJ-123]
    re.compile(r'([A-Z]+[0-9]+-\d+)', re.IGNORECASE),      # P03-45, ABC1-234
    re.compile(r'([A-Z]{1,10}-\d+)', re.IGNORECASE),       # PROJ-123
    re.compile(r'^([A-Z]{1,10}-\d+)', re.IGNORECASE),      # at the start
    re.compile(r'/([A-Z]{1,10}-\d+)', re.IGNORECASE),      # feature/PROJ-123
]


def extract_ticket_id(text: Optional[str]) -> Optional[str]:
    """Return the upper-cased Jira key found in ``text``, or None."""
    if not text:
        return None

    for pattern in TICKET_PATTERNS:
        match = pattern.search(text)
        if match:
            return match.group(1).upper()

    return None


def find_in_branch(branch: Optional[str]) -> Optional[TicketReference]:
    key = extract_ticket_id(branch)
    if key:
        return TicketReference(key=key, source="branch", text=branch)
    return None


def find_in_commits(messages: Iterable[str]) -> Optional[TicketReference]:
    for message in messages:
        key = extract_ticket_id(message)
        if key:
            return TicketReference(key=key, source="commit", text=message)
    return None


def find_ticket_branch_first(branch: Optional[str], messages: Iterable[str]) -> Optional[TicketReference]:
    """Branch name, then each commit message in order (analysis stage)."""
    return find_in_branch(branch) or find_in_commits(messages)


def find_ticket_commits_first(branch: Optional[str], messages: Iterable[str]) -> Optional[TicketReference]:
    """Each commit message in order, then the branch name (publish stage)."""
    return find_in_commits(messages) or find_in_branch(branch)
