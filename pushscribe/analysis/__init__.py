"""Analysis stage: prompt templates, the summarizer adapter and the stage itself."""

from .prompts import (
    PromptData,
    PromptTemplate,
    PromptTemplateRepository,
    build_compare_url,
    render_prompt,
    sample_prompt_data,
    select_variant,
)
from .summarizer import ClaudeCliSummarizer, Summarizer, SummaryResult
from .stage import STAGE_NAME, AnalysisStage, MergeInspection, is_merge_commit

__all__ = [
    "PromptData",
    "PromptTemplate",
    "PromptTemplateRepository",
    "build_compare_url",
    "render_prompt",
    "sample_prompt_data",
    "select_variant",
    "ClaudeCliSummarizer",
    "Summarizer",
    "SummaryResult",
    "STAGE_NAME",
    "AnalysisStage",
    "MergeInspection",
    "is_merge_commit",
]
