import pytest

from pushscribe.tickets import (
    extract_ticket_id,
    find_ticket_branch_first,
    find_ticket_commits_first,
)


@pytest.mark.parametrize("text, expected", [
    ("fix PROJ-1 see [ABCD-12]", "ABCD-12"),
    ("[AB3-4] follow-up for XY-9", "AB3-4"),
    ("[proj-7] lower case key", "PROJ-7"),
    ("P03-45 fix login", "P03-45"),
    ("feature/PROJ-123", "PROJ-123"),
    ("PROJ-123 at the start", "PROJ-123"),
    ("fixes bug in abc-42 handler", "ABC-42"),
])
def test_extract_ticket_id(text, expected):
    assert extract_ticket_id(text) == expected


@pytest.mark.parametrize("text", ["develop", "", None, "release-candidate", "v1.2.3"])
def test_extract_ticket_id_no_match(text):
    assert extract_ticket_id(text) is None


def test_mixed_alnum_key_wins_over_earlier_plain_key():
    # the LETTERS+DIGITS-DIGITS pattern is tried before the plain key pattern
    assert extract_ticket_id("ABC-1 and X9-2") == "X9-2"


def test_bracketed_key_wins_over_earlier_unbracketed_key():
    assert extract_ticket_id("P03-45 then [P07-1]") == "P07-1"


def test_branch_first_prefers_branch():
    ref = find_ticket_branch_first("feature/ABC-1", ["XYZ-2 fix"])
    assert ref.key == "ABC-1"
    assert ref.source == "branch"


def test_commits_first_prefers_commit_message():
    ref = find_ticket_commits_first("feature/ABC-1", ["no key here", "XYZ-2 fix"])
    assert ref.key == "XYZ-2"
    assert ref.source == "commit"
    assert ref.text == "XYZ-2 fix"


def test_branch_first_falls_back_to_commits_in_order():
    ref = find_ticket_branch_first("main", ["cleanup", "PROJ-9 done", "PROJ-10 later"])
    assert ref.key == "PROJ-9"
    assert ref.source == "commit"


def test_commits_first_falls_back_to_branch():
    ref = find_ticket_commits_first("bugfix/OPS-77", ["typo"])
    assert ref.key == "OPS-77"
    assert ref.source == "branch"


def test_no_ticket_anywhere():
    assert find_ticket_branch_first("main", ["cleanup"]) is None
    assert find_ticket_commits_first("main", []) is None
