"""Adapters around the external summarizer (the Claude CLI)."""

import logging
import shlex
import subprocess
from dataclasses import dataclass
from typing import List, Optional, Protocol

logger = logging.getLogger(__name__)

TOO_LONG_PHRASES = ("token limit", "context length", "too long")

EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class SummaryResult:
    """Combined output and exit status of one summarizer call."""

    text: str
    exit_code: int = 0

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def is_content_too_long(self) -> bool:
        lowered = self.text.lower()
        return any(phrase in lowered for phrase in TOO_LONG_PHRASES)


class Summarizer(Protocol):
    def summarize(self, system_prompt: str, prompt: str) -> SummaryResult:
        ...


class ClaudeCliSummarizer:
    """Runs ``claude -p`` with the prompt on stdin and stderr merged into stdout."""

    FLAGS = [
        "-p",
        "--permission-mode", "bypassPermissions",
        "--input-format", "text",
        "--output-format", "text",
    ]

    def __init__(self, command: str = "claude", timeout: Optional[int] = 600, cwd: Optional[str] = None):
        self.command = command
        self.timeout = timeout
        self.cwd = cwd

    def build_command(self, system_prompt: str) -> List[str]:
        return shlex.split(self.command) + self.FLAGS + ["--append-system-prompt", system_prompt]

    def summarize(self, system_prompt: str, prompt: str) -> SummaryResult:
        args = self.build_command(system_prompt)
        logger.info(f"Executing summarizer: {args[0]} (prompt size: {len(prompt.encode('utf-8'))} bytes)")

        try:
            completed = subprocess.run(
                args,
                input=prompt,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
                cwd=self.cwd,
                check=False,
            )
        except FileNotFoundError as e:
            logger.error(f"Summarizer executable not found: {args[0]}")
            return SummaryResult(f"Error executing Claude command: {e}", EXIT_NOT_FOUND)
        except subprocess.TimeoutExpired:
            logger.error(f"Summarizer timed out after {self.timeout}s")
            return SummaryResult(f"Execution error: summarizer timed out after {self.timeout}s", EXIT_TIMEOUT)

        output = (completed.stdout or "").strip()
        logger.info(f"Claude return code: {completed.returncode}, output lines: {len(output.splitlines())}")
        return SummaryResult(output, completed.returncode)
