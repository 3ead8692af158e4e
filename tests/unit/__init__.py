"""
Unit tests package for pushscribe.

- base.py: BaseTestCase with a temporary pipeline tree, payload builders and
  a fake summarizer
"""

from .base import BaseTestCase, FakeSummarizer, make_commit, make_config, make_push_payload

__all__ = [
    'BaseTestCase',
    'FakeSummarizer',
    'make_commit',
    'make_config',
    'make_push_payload',
]
