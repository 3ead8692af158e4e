"""Directory-based work queue shared by the analysis and publish stages.

Each stage owns an inbound directory. A run lists the matching files once,
hands each to a handler strictly one at a time, and then moves, deletes or
leaves the file depending on the handler's outcome:

- processed / skipped / diverted: the file leaves the inbound directory
- failed: the file stays where it is and is retried on the next run

Files written while a run is in progress are picked up by the next run.
Producers hand files over with ``write_queue_item`` so a consumer never
sees a partial file and never loses one to a name clash.
"""

import enum
import logging
import os
import shutil
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

logger = logging.getLogger(__name__)


class OutcomeStatus(str, enum.Enum):
    PROCESSED = "processed"
    SKIPPED = "skipped"
    DIVERTED = "diverted"
    FAILED = "failed"


@dataclass(frozen=True)
class QueueOutcome:
    """What a handler decided for one queue item.

    ``destination`` is a directory; ``None`` on a non-failed outcome means the
    item is deleted instead of moved.
    """

    status: OutcomeStatus
    destination: Optional[Path] = None
    reason: str = ""

    @classmethod
    def processed(cls, destination: Optional[Path], reason: str = "") -> "QueueOutcome":
        return cls(OutcomeStatus.PROCESSED, destination, reason)

    @classmethod
    def skipped(cls, destination: Optional[Path], reason: str) -> "QueueOutcome":
        return cls(OutcomeStatus.SKIPPED, destination, reason)

    @classmethod
    def diverted(cls, destination: Path, reason: str) -> "QueueOutcome":
        return cls(OutcomeStatus.DIVERTED, destination, reason)

    @classmethod
    def failed(cls, reason: str) -> "QueueOutcome":
        return cls(OutcomeStatus.FAILED, None, reason)

    @property
    def leaves_inbound(self) -> bool:
        return self.status is not OutcomeStatus.FAILED


@dataclass
class QueueSummary:
    """Per-run counters."""

    processed: int = 0
    skipped: int = 0
    diverted: int = 0
    failed: int = 0
    items: List[str] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return self.processed

    @property
    def failed_count(self) -> int:
        return self.failed + self.diverted

    @property
    def total(self) -> int:
        return self.processed + self.skipped + self.diverted + self.failed

    def record(self, outcome: QueueOutcome) -> None:
        if outcome.status is OutcomeStatus.PROCESSED:
            self.processed += 1
        elif outcome.status is OutcomeStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status is OutcomeStatus.DIVERTED:
            self.diverted += 1
        else:
            self.failed += 1


ItemHandler = Callable[[Path], QueueOutcome]


class FileQueue:
    """A stage's inbound directory, polled once per run."""

    def __init__(self, inbound_dir: Union[str, Path], pattern: str):
        self.inbound_dir = Path(inbound_dir)
        self.pattern = pattern

    def list_items(self) -> List[Path]:
        """Snapshot of the matching files. Listing order carries no meaning."""
        if not self.inbound_dir.is_dir():
            return []
        return [path for path in self.inbound_dir.glob(self.pattern) if path.is_file()]

    def run(self, handle: ItemHandler) -> QueueSummary:
        """Handle every item present at call time, one at a time."""
        summary = QueueSummary()
        items = self.list_items()

        if not items:
            logger.info(f"No files matching {self.pattern} in {self.inbound_dir}")
            return summary

        logger.info(f"Found {len(items)} file(s) to process in {self.inbound_dir}")

        for item in items:
            logger.info(f"Processing: {item.name}")
            try:
                outcome = handle(item)
            except Exception as e:
                logger.exception(f"Error processing {item.name}: {e}")
                outcome = QueueOutcome.failed(f"{type(e).__name__}: {e}")

            if outcome.leaves_inbound and not self._finish(item, outcome):
                outcome = QueueOutcome.failed(f"could not move or delete {item.name}")

            summary.record(outcome)
            summary.items.append(item.name)
            self._log_outcome(item, outcome)

        logger.info(
            f"Run complete: {summary.processed} processed, {summary.skipped} skipped, "
            f"{summary.diverted} diverted, {summary.failed} failed"
        )
        return summary

    def _finish(self, item: Path, outcome: QueueOutcome) -> bool:
        if outcome.destination is None:
            return self._delete(item)
        return move_to(item, outcome.destination)

    @staticmethod
    def _delete(item: Path) -> bool:
        try:
            item.unlink()
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.error(f"Failed to delete {item}: {e}")
            return False

    @staticmethod
    def _log_outcome(item: Path, outcome: QueueOutcome) -> None:
        reason = f" ({outcome.reason})" if outcome.reason else ""
        if outcome.status is OutcomeStatus.FAILED:
            logger.error(f"{item.name}: failed, left for retry{reason}")
        elif outcome.status is OutcomeStatus.DIVERTED:
            logger.warning(f"{item.name}: diverted to {outcome.destination}{reason}")
        else:
            logger.info(f"{item.name}: {outcome.status.value}{reason}")


def move_to(source: Path, destination_dir: Path) -> bool:
    """Move a file into ``destination_dir`` keeping its name.

    Falls back to deleting the source if the move fails, so a handled item
    is never picked up again.
    """
    target = Path(destination_dir) / source.name
    try:
        Path(destination_dir).mkdir(parents=True, exist_ok=True)
        try:
            source.replace(target)
        except OSError:
            # cross-device
            shutil.move(str(source), str(target))
        return True
    except OSError as e:
        logger.error(f"Failed to move {source.name} to {destination_dir}: {e}")

    try:
        source.unlink()
        logger.info(f"Original file deleted: {source.name}")
        return True
    except OSError as e:
        logger.error(f"Failed to move or delete {source.name}: {e}")
        return False


def write_queue_item(directory: Union[str, Path], name: str, content: str) -> Path:
    """Publish ``content`` into ``directory`` as ``name`` in one step.

    The content is written to a private ``.tmp`` file first and then
    hard-linked into place, which fails instead of overwriting. If ``name``
    is already taken, ``<stem>_1<suffix>``, ``<stem>_2<suffix>`` ... are
    tried in turn. Returns the path actually used.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / name
    partial = directory / f".{name}.{uuid.uuid4().hex[:8]}.tmp"
    partial.write_text(content, encoding="utf-8")

    try:
        candidate = target
        counter = 0
        while True:
            try:
                os.link(partial, candidate)
                return candidate
            except FileExistsError:
                counter += 1
                candidate = target.with_name(f"{target.stem}_{counter}{target.suffix}")
    finally:
        partial.unlink(missing_ok=True)
