"""
Answer formatting: turn Gemini's loosely structured text into HTML for the UI.

"Label:" lines become headings and unicode bullets become list items before
the text goes through the markdown renderer.
"""

import re

import markdown

_MAIN_SECTION_RE = re.compile(r"^([A-Za-z][A-Za-z\s]+):(\s*)", re.MULTILINE)
_SUB_SECTION_RE = re.compile(r"^([A-Za-z][A-Za-z\s]+):(?!\d)", re.MULTILINE)
_BULLET_RE = re.compile(r"^[•●○]\s*", re.MULTILINE)
_PARAGRAPH_SPLIT_RE = re.compile(r"\n\n+")

MARKDOWN_EXTENSIONS = ["tables", "nl2br", "fenced_code", "sane_lists"]


def to_markdown(raw_text: str | None) -> str:
    """Apply heading/bullet heuristics and normalize paragraph spacing."""
    if raw_text is None:
        return ""
    text = raw_text.replace("\r\n", "\n")
    text = _MAIN_SECTION_RE.sub(r"## \1\2", text)
    text = _SUB_SECTION_RE.sub(r"### \1", text)
    text = _BULLET_RE.sub("* ", text)

    paragraphs = [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(text)]
    out = []
    for p in paragraphs:
        if not p:
            continue
        out.append(p if p.startswith(("#", "*", "-")) else p + "\n")
    return "\n\n".join(out)


def format_to_html(raw_text: str | None) -> str:
    """Render answer text to HTML. None renders as an empty string."""
    if raw_text is None:
        return ""
    return markdown.markdown(to_markdown(raw_text), extensions=MARKDOWN_EXTENSIONS)
