import os
import signal
import time

from pushscribe.common import LockGuard


def test_second_acquire_fails_until_release(tmp_path):
    lock = LockGuard(tmp_path, install_signal_handlers=False)

    assert lock.acquire("claude_analyze") is True
    assert lock.acquire("claude_analyze") is False
    assert LockGuard(tmp_path, install_signal_handlers=False).acquire("claude_analyze") is False

    lock.release()
    assert not lock.lock_path("claude_analyze").exists()
    assert LockGuard(tmp_path, install_signal_handlers=False).acquire("claude_analyze") is True


def test_stale_lock_is_replaced(tmp_path):
    first = LockGuard(tmp_path, max_age=300, install_signal_handlers=False)
    assert first.acquire("jira_hook") is True

    lock_file = first.lock_path("jira_hook")
    old = time.time() - 301
    os.utime(lock_file, (old, old))

    second = LockGuard(tmp_path, max_age=300, install_signal_handlers=False)
    assert second.acquire("jira_hook") is True
    assert time.time() - lock_file.stat().st_mtime < 60
    second.release()


def test_fresh_lock_is_respected(tmp_path):
    lock_file = tmp_path / "claude_analyze.lock"
    lock_file.write_text("12345\n", encoding="utf-8")

    assert LockGuard(tmp_path, install_signal_handlers=False).acquire("claude_analyze") is False
    assert lock_file.exists()


def test_release_is_idempotent(tmp_path):
    lock = LockGuard(tmp_path, install_signal_handlers=False)
    lock.release()
    assert lock.acquire("stage") is True
    lock.release()
    lock.release()
    assert not lock.held


def test_signal_handlers_restored_on_release(tmp_path):
    before = signal.getsignal(signal.SIGTERM)
    lock = LockGuard(tmp_path)

    assert lock.acquire("stage") is True
    assert signal.getsignal(signal.SIGTERM) == lock._signal_handler

    lock.release()
    assert signal.getsignal(signal.SIGTERM) == before
