"""Prompt templates for the summarizer.

Templates live in ``prompts_<variant>.yaml`` files and use ``{placeholder}``
tokens that are substituted literally (no format-string semantics, so
templates may contain other braces).
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Union
from urllib.parse import urlparse

import yaml

from ..exceptions import TemplateError
from ..models import CommitRecord

logger = logging.getLogger(__name__)

NORMAL = "normal"
CONFLICT = "conflict"
SIMPLIFIED = "simplified"
VARIANTS = (NORMAL, CONFLICT, SIMPLIFIED)

DEFAULT_SYSTEM_PROMPT = "You are a Git commit analyzer."

MAX_COMMITS_DETAIL = 10
MAX_COMMITS_SIMPLIFIED = 5
MAX_MESSAGE_LENGTH = 200
MAX_MESSAGE_LENGTH_SIMPLIFIED = 50
MAX_FILES_PER_COMMIT = 10
MAX_FILES_TO_LIST = 5
ESTIMATED_BYTES_PER_COMMIT = 500


@dataclass(frozen=True)
class PromptTemplate:
    """One loaded prompt variant."""

    variant: str
    system_prompt: str = DEFAULT_SYSTEM_PROMPT
    user_prompt: str = ""
    user_prompt_no_url: str = ""
    commit_template: str = ""
    main_commit_template: str = ""
    max_prompt_length: Optional[int] = None

    @classmethod
    def from_dict(cls, variant: str, data: Dict) -> "PromptTemplate":
        settings = data.get("settings") or {}
        max_length = settings.get("max_prompt_length")
        return cls(
            variant=variant,
            system_prompt=(data.get("system_prompt") or DEFAULT_SYSTEM_PROMPT).strip(),
            user_prompt=data.get("user_prompt") or "",
            user_prompt_no_url=data.get("user_prompt_no_url") or data.get("user_prompt") or "",
            commit_template=data.get("commit_template") or "",
            main_commit_template=data.get("main_commit_template") or "",
            max_prompt_length=int(max_length) if max_length else None,
        )


class PromptTemplateRepository:
    """YAML-file backed prompt templates, reloaded when a file changes."""

    def __init__(self, templates_dir: Union[str, Path]):
        self._dir = Path(templates_dir)
        self._cache: Dict[str, tuple] = {}

    def path_for(self, variant: str) -> Path:
        return self._dir / f"prompts_{variant}.yaml"

    def load(self, variant: str) -> PromptTemplate:
        if variant not in VARIANTS:
            logger.warning(f"Unknown template variant '{variant}', using '{NORMAL}'")
            variant = NORMAL

        path = self.path_for(variant)
        try:
            mtime = path.stat().st_mtime
        except FileNotFoundError:
            raise TemplateError(f"Prompt template file not found: {path}")

        cached = self._cache.get(variant)
        if cached and cached[0] >= mtime:
            return cached[1]

        try:
            with open(path, "r", encoding="utf-8") as fh:
                data = yaml.safe_load(fh)
        except yaml.YAMLError as e:
            raise TemplateError(f"Invalid YAML in template file: {path}", str(e))

        if not isinstance(data, dict) or not (data.get("user_prompt") or data.get("user_prompt_no_url")):
            raise TemplateError(f"Template file has no user prompt: {path}")

        template = PromptTemplate.from_dict(variant, data)
        self._cache[variant] = (mtime, template)
        logger.info(f"Loaded prompt template: {path.name}")
        return template


@dataclass
class PromptData:
    """Values substituted into a prompt template."""

    repository: str
    branch: str
    author: str
    before_commit: str
    after_commit: str
    repo_name: str
    commits: List[CommitRecord] = field(default_factory=list)
    compare_url: str = ""

    @property
    def commit_count(self) -> int:
        return len(self.commits)


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit - 3] + "..."
    return text


def format_file_list(files: List[str]) -> str:
    if not files:
        return ""
    if len(files) > MAX_FILES_PER_COMMIT:
        return f"총 {len(files)}개 파일 변경됨"
    listed = ", ".join(files[:MAX_FILES_TO_LIST])
    if len(files) > MAX_FILES_TO_LIST:
        listed += f" 외 {len(files) - MAX_FILES_TO_LIST}개"
    return listed


def substitute(template: str, values: Dict[str, object]) -> str:
    for key, value in values.items():
        template = template.replace("{" + key + "}", str(value))
    return template


def render_commits_detail(template: PromptTemplate, commits: List[CommitRecord]) -> str:
    parts = []

    if template.variant == SIMPLIFIED:
        for commit in commits[:MAX_COMMITS_SIMPLIFIED]:
            parts.append(substitute(template.main_commit_template, {
                "commit_id": commit.short_id,
                "message": truncate(commit.message, MAX_MESSAGE_LENGTH_SIMPLIFIED),
                "total_files": commit.total_files,
            }))
        return "".join(parts).strip()

    for idx, commit in enumerate(commits[:MAX_COMMITS_DETAIL], start=1):
        merge_info = ""
        if template.variant == CONFLICT and commit.has_multiple_parents:
            merge_info = f"병합 커밋 (부모: {len(commit.parents)}개)"
        parts.append(substitute(template.commit_template, {
            "idx": idx,
            "commit_id": commit.short_id,
            "message": truncate(commit.message, MAX_MESSAGE_LENGTH),
            "author": commit.author,
            "added": commit.added,
            "modified": commit.modified,
            "removed": commit.removed,
            "files": format_file_list(commit.files),
            "merge_info": merge_info,
        }))
    return "".join(parts).strip()


def render_prompt(template: PromptTemplate, data: PromptData) -> str:
    """Fill a template with push data."""
    prompt = template.user_prompt if data.compare_url else template.user_prompt_no_url
    detail = render_commits_detail(template, data.commits)
    shown_limit = MAX_COMMITS_SIMPLIFIED if template.variant == SIMPLIFIED else MAX_COMMITS_DETAIL

    return substitute(prompt, {
        "repository": data.repository,
        "branch": data.branch,
        "author": data.author,
        "before_commit": data.before_commit,
        "after_commit": data.after_commit,
        "total": data.commit_count,
        "shown": min(data.commit_count, shown_limit),
        "commit_count": data.commit_count,
        "commits_detail": detail,
        "main_commits": detail,
        "url": data.compare_url,
        "repo_name": data.repo_name,
    })


def estimate_prompt_size(commits: List[CommitRecord]) -> int:
    return len(commits) * ESTIMATED_BYTES_PER_COMMIT


def select_variant(commits: List[CommitRecord], merge_with_conflict: bool,
                   max_commits: int = 15, max_prompt_length: int = 10000) -> str:
    if merge_with_conflict:
        return CONFLICT
    if len(commits) > max_commits:
        logger.info(f"Template type: simplified (large commit set: {len(commits)} commits)")
        return SIMPLIFIED
    if estimate_prompt_size(commits) > max_prompt_length:
        logger.info("Template type: simplified (estimated size too large)")
        return SIMPLIFIED
    return NORMAL


_COMPARE_PATH = re.compile(r'^/repos/([^/]+)/([^/]+)/compare/([^/]+)$')


def build_compare_url(compare_url: Optional[str], before: str, after: str) -> str:
    """Turn the payload's compare URL template into a GitHub compare API URL.

    Returns an empty string when the URL cannot be built or does not point at
    ``https://api.github.com/repos/<owner>/<repo>/compare/<base>...<head>``.
    """
    if not compare_url or not before or not after:
        return ""

    url = compare_url.replace("{base}", before).replace("{head}", after)
    if url.startswith("https://github.com/"):
        url = url.replace("https://github.com/", "https://api.github.com/repos/", 1)

    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc or not parsed.path:
        logger.error(f"Malformed compare URL: {url}")
        return ""

    path = parsed.path.replace("/repos/repos/", "/repos/")
    match = _COMPARE_PATH.match(path)
    if not match:
        logger.error(f"Invalid compare API path: {path}")
        return ""

    owner, repo, compare_range = match.groups()
    if not owner or not repo or compare_range.find("...") <= 0:
        logger.error(f"Invalid compare range: {compare_range}")
        return ""

    if parsed.netloc != "api.github.com":
        logger.error(f"Invalid compare API host: {parsed.netloc}")
        return ""

    return f"{parsed.scheme}://{parsed.netloc}{path}"


def sample_prompt_data(variant: str = NORMAL) -> PromptData:
    """Fixed push data used to preview a template."""
    commits = [
        CommitRecord(
            id="def56789abcdef",
            message="P03-45 프롬프트 템플릿 기능 추가 및 로깅 개선",
            author="홍길동",
            added=2,
            modified=3,
            removed=1,
            files=["prompts_normal.yaml", "pushscribe/analysis/stage.py", "README.md"],
            parents=["abc1234"],
        ),
        CommitRecord(
            id="cde4567890abcd",
            message="P03-45 병합 충돌 감지 로직 수정",
            author="김철수",
            added=1,
            modified=2,
            removed=0,
            files=["pushscribe/tickets.py", "pushscribe/publish/stage.py"],
            parents=["abc1234"],
        ),
    ]
    if variant == CONFLICT:
        commits.insert(0, CommitRecord(
            id="merge123456789",
            message="Merge branch 'feature' into main - resolved conflicts in config files",
            author="박개발",
            modified=3,
            files=["config.yml", "settings.json", "database.yml"],
            parents=["abc1234", "bcd5678"],
        ))

    return PromptData(
        repository="example/test-repo",
        branch="main",
        author="홍길동",
        before_commit="abc1234",
        after_commit="def5678",
        repo_name="test-repo",
        commits=commits,
        compare_url="https://api.github.com/repos/example/test-repo/compare/abc1234...def5678",
    )
