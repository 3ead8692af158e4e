import os
from pathlib import Path
from unittest.mock import patch

import pytest

from pushscribe.models import FileQueue, OutcomeStatus, QueueOutcome, move_to, write_queue_item
from tests.unit.base import BaseTestCase


@pytest.fixture
def inbound(tmp_path):
    directory = tmp_path / "inbound"
    directory.mkdir()
    for name in ("a.json", "b.json", "c.json"):
        (directory / name).write_text("{}", encoding="utf-8")
    (directory / "notes.txt").write_text("ignored", encoding="utf-8")
    return directory


def test_failing_item_is_isolated_and_left_in_place(inbound, tmp_path):
    done = tmp_path / "done"

    def handle(path: Path) -> QueueOutcome:
        if path.name == "b.json":
            raise RuntimeError("boom")
        return QueueOutcome.processed(done)

    summary = FileQueue(inbound, "*.json").run(handle)

    assert summary.processed_count == 2
    assert summary.failed_count == 1
    assert (inbound / "b.json").exists()
    assert not (inbound / "a.json").exists()
    assert (done / "a.json").exists()
    assert (done / "c.json").exists()
    assert (inbound / "notes.txt").exists()


def test_outcomes_move_delete_or_leave(inbound, tmp_path):
    skipped_dir = tmp_path / "skipped"
    outcomes = {
        "a.json": QueueOutcome.skipped(skipped_dir, "nothing to do"),
        "b.json": QueueOutcome.failed("retry later"),
        "c.json": QueueOutcome.processed(None),
    }

    summary = FileQueue(inbound, "*.json").run(lambda path: outcomes[path.name])

    assert (skipped_dir / "a.json").exists()
    assert (inbound / "b.json").exists()
    assert not (inbound / "c.json").exists()
    assert summary.skipped == 1
    assert summary.failed == 1
    assert summary.processed == 1
    assert summary.total == 3


def test_diverted_counts_as_failure(inbound, tmp_path):
    errors = tmp_path / "errors"
    summary = FileQueue(inbound, "a.json").run(lambda path: QueueOutcome.diverted(errors, "bad content"))

    assert summary.diverted == 1
    assert summary.failed_count == 1
    assert summary.processed_count == 0
    assert (errors / "a.json").exists()


def test_files_added_during_run_wait_for_next_run(tmp_path):
    inbound = tmp_path / "inbound"
    inbound.mkdir()
    (inbound / "first.json").write_text("{}", encoding="utf-8")
    seen = []

    def handle(path: Path) -> QueueOutcome:
        seen.append(path.name)
        (inbound / "late.json").write_text("{}", encoding="utf-8")
        return QueueOutcome.processed(None)

    queue = FileQueue(inbound, "*.json")
    summary = queue.run(handle)

    assert seen == ["first.json"]
    assert summary.total == 1
    assert [p.name for p in queue.list_items()] == ["late.json"]


def test_missing_inbound_directory(tmp_path):
    summary = FileQueue(tmp_path / "missing", "*.json").run(lambda path: QueueOutcome.processed(None))
    assert summary.total == 0


def test_outcome_status_flags():
    assert QueueOutcome.failed("x").status is OutcomeStatus.FAILED
    assert not QueueOutcome.failed("x").leaves_inbound
    assert QueueOutcome.skipped(None, "x").leaves_inbound


def test_move_to_creates_destination(tmp_path):
    source = tmp_path / "report.md"
    source.write_text("x", encoding="utf-8")

    assert move_to(source, tmp_path / "nested" / "dest")
    assert not source.exists()
    assert (tmp_path / "nested" / "dest" / "report.md").read_text(encoding="utf-8") == "x"


class TestWriteQueueItem(BaseTestCase):
    """Test cases for handing files to the next stage"""

    def test_item_is_written_without_leftovers(self):
        """The published file is complete and no temporary file remains"""
        inbound = self.config.paths.pending_analysis

        path = write_queue_item(inbound, "report.md", "# Report\n\nbody\n")

        self.assertEqual(path, inbound / "report.md")
        self.assertEqual(path.read_text(encoding="utf-8"), "# Report\n\nbody\n")
        self.assertEqual(sorted(p.name for p in inbound.iterdir()), ["report.md"])

    def test_existing_name_is_never_overwritten(self):
        """A name clash gets a numbered suffix instead of replacing the first item"""
        inbound = self.config.paths.pending_webhooks
        self.write_file(inbound, "push_2024-05-01_10-00-00_.json", '{"n": 0}')

        first = write_queue_item(inbound, "push_2024-05-01_10-00-00_.json", '{"n": 1}')
        second = write_queue_item(inbound, "push_2024-05-01_10-00-00_.json", '{"n": 2}')

        self.assertEqual(first.name, "push_2024-05-01_10-00-00__1.json")
        self.assertEqual(second.name, "push_2024-05-01_10-00-00__2.json")
        self.assertEqual((inbound / "push_2024-05-01_10-00-00_.json").read_text(encoding="utf-8"), '{"n": 0}')
        self.assertEqual(len(FileQueue(inbound, "*.json").list_items()), 3)

    def test_partial_file_is_not_a_queue_item(self):
        """The temporary file does not match the consumer's pattern"""
        inbound = self.config.paths.pending_analysis
        seen = []

        real_link = os.link

        def link_and_look(src, dst):
            seen.extend(p.name for p in FileQueue(inbound, "*.md").list_items())
            real_link(src, dst)

        with patch("pushscribe.models.queue.os.link", side_effect=link_and_look):
            write_queue_item(inbound, "report.md", "content")

        self.assertEqual(seen, [])
        self.assertTrue((inbound / "report.md").exists())
