"""Markdown to Jira wiki markup conversion.

Only the Markdown the summarizer actually produces is handled: headers up to
five levels, bold, italic, fenced and inline code, lists, links, horizontal
rules, blockquotes, pipe tables and a fixed set of emoji. The conversion is
best-effort and never raises.

The steps run in a fixed order and several depend on it:

- headers are converted deepest level first
- the ``#### 1. **Title**`` form is handled before the generic h4 rule
- bold runs before italic; bold output is held behind a private marker
  until the end so italic never re-matches it
- standalone ``1.`` / ``a.`` / ``ii.`` lines are removed before numbered
  lists are converted
"""

import re
from typing import Callable, Dict, List, Tuple

_BOLD = "\ue000"
_CODE = "\ue001"

EMOJI_ICONS: List[Tuple[str, str]] = [
    ("📌", "(!)"),
    ("📁", "(i)"),
    ("🎯", "(/)"),
    ("🔍", "(?)"),
    ("📊", "(*)"),
    ("🔄", "(on)"),
    ("✅", "(/)"),
    ("❌", "(x)"),
    ("⚠️", "(!)"),
    ("⚠", "(!)"),
]

# "- <emoji> text" list items whose emoji becomes the bullet's icon
EMOJI_LIST_ICONS: List[Tuple[str, str]] = EMOJI_ICONS[:4]

_HEADER_RULES: List[Tuple[re.Pattern, str]] = [
    (re.compile(r'^#####[ \t]+(.+)$', re.M), r'h5. \1'),
    (re.compile(r'^####[ \t]+(\d+\.)[ \t]+\*\*(.+?)\*\*[ \t]*$', re.M), _BOLD + r'\1 \2' + _BOLD),
    (re.compile(r'^####[ \t]+(.+)$', re.M), r'h4. \1'),
    (re.compile(r'^###[ \t]+(.+)$', re.M), r'h3. \1'),
    (re.compile(r'^##[ \t]+(.+)$', re.M), r'h2. \1'),
    (re.compile(r'^#[ \t]+(.+)$', re.M), r'h1. \1'),
]

_STANDALONE_MARKERS: List[re.Pattern] = [
    re.compile(r'^\d+\.[ \t]*$', re.M),      # "1."
    re.compile(r'^[a-z]\.[ \t]*$', re.M),    # "a."
    re.compile(r'^[ivx]+\.[ \t]*$', re.M),   # "ii."
]


def collapse_blank_lines(text: str) -> str:
    """Three or more newlines become exactly two."""
    return re.sub(r'\n{3,}', '\n\n', text)


def convert_headers(text: str) -> str:
    for pattern, replacement in _HEADER_RULES:
        text = pattern.sub(replacement, text)
    return text


def convert_bold(text: str) -> str:
    text = re.sub(r'\*\*(.+?)\*\*', _BOLD + r'\1' + _BOLD, text)
    return re.sub(r'__(.+?)__', _BOLD + r'\1' + _BOLD, text)


def convert_italic(text: str) -> str:
    return re.sub(r'(?<![*\w])\*(?![*\s])([^*\n]+?)(?<![*\s])\*(?![*\w])', r'_\1_', text)


def convert_emoji_list_items(text: str) -> str:
    for emoji, icon in EMOJI_LIST_ICONS:
        text = re.sub(r'^- ' + emoji + r'[ \t]+(.+)$', '* ' + icon + r' \1', text, flags=re.M)
    return text


def convert_bullet_lists(text: str) -> str:
    return re.sub(r'^[*\-][ \t]+(.+)$', r'* \1', text, flags=re.M)


def remove_standalone_markers(text: str) -> str:
    """Drop enumeration markers left on a line of their own."""
    for pattern in _STANDALONE_MARKERS:
        text = pattern.sub('', text)
    return text


def convert_numbered_lists(text: str) -> str:
    return re.sub(r'^\d+\.[ \t]+(\S.*)$', r'# \1', text, flags=re.M)


def convert_tables(text: str) -> str:
    return re.sub(r'\|(.+)\|', r'||\1||', text)


def convert_links(text: str) -> str:
    return re.sub(r'\[([^\]]+)\]\(([^)]+)\)', r'[\1|\2]', text)


def convert_horizontal_rules(text: str) -> str:
    return re.sub(r'^---+[ \t]*$', '----', text, flags=re.M)


def convert_blockquotes(text: str) -> str:
    """Wrap each run of consecutive "> " lines in a single {quote} block."""
    result = []
    in_quote = False

    for line in text.split("\n"):
        if line.startswith("> "):
            if not in_quote:
                result.append("{quote}")
                in_quote = True
            result.append(line[2:])
        else:
            if in_quote:
                result.append("{quote}")
                in_quote = False
            result.append(line)

    if in_quote:
        result.append("{quote}")

    return "\n".join(result)


def replace_emoji(text: str) -> str:
    for emoji, icon in EMOJI_ICONS:
        text = text.replace(emoji, icon)
    return text


def restore_bold(text: str) -> str:
    return text.replace(_BOLD, "*")


def cleanup_blank_lines(text: str) -> str:
    """Final pass: collapse blank runs, including whitespace-only lines."""
    text = collapse_blank_lines(text)
    return re.sub(r'\n\s*\n', '\n\n', text)


CONVERSION_STEPS: List[Tuple[str, Callable[[str], str]]] = [
    ("collapse_blank_lines", collapse_blank_lines),
    ("headers", convert_headers),
    ("bold", convert_bold),
    ("italic", convert_italic),
    ("emoji_list_items", convert_emoji_list_items),
    ("bullet_lists", convert_bullet_lists),
    ("standalone_markers", remove_standalone_markers),
    ("numbered_lists", convert_numbered_lists),
    ("tables", convert_tables),
    ("links", convert_links),
    ("horizontal_rules", convert_horizontal_rules),
    ("blockquotes", convert_blockquotes),
    ("emoji", replace_emoji),
    ("restore_bold", restore_bold),
    ("cleanup_blank_lines", cleanup_blank_lines),
]


class _CodeStash:
    """Keeps code spans out of the way of the other steps."""

    def __init__(self):
        self.blocks: Dict[str, str] = {}

    def _hold(self, markup: str) -> str:
        token = f"{_CODE}{len(self.blocks)}{_CODE}"
        self.blocks[token] = markup
        return token

    def protect(self, text: str) -> str:
        def fenced(match: re.Match) -> str:
            language = match.group(1).strip()
            opening = f"{{code:{language}}}" if language else "{code}"
            return self._hold(f"{opening}\n{match.group(2)}{{code}}")

        text = re.sub(r'```([^\n`]*)\n(.*?)```', fenced, text, flags=re.S)
        text = re.sub(r'```([^`]+?)```', lambda m: self._hold(f"{{code}}{m.group(1)}{{code}}"), text, flags=re.S)
        return re.sub(r'`([^`\n]+?)`', lambda m: self._hold(f"{{{{{m.group(1)}}}}}"), text)

    def restore(self, text: str) -> str:
        for token, markup in self.blocks.items():
            text = text.replace(token, markup)
        return text


def markdown_to_jira(markdown: str) -> str:
    """Convert summarizer Markdown to Jira wiki markup."""
    if not markdown:
        return ""

    # the placeholders must not occur in the input
    markdown = markdown.replace(_BOLD, "").replace(_CODE, "")

    stash = _CodeStash()
    text = stash.protect(markdown)
    for _name, step in CONVERSION_STEPS:
        text = step(text)
    return stash.restore(text)
