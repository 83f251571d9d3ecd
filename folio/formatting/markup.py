"""Deterministic HTML helpers: the plain-text fallback and output post-processing."""

import html
import re

from folio.ingestion.normalizer import is_mostly_uppercase, to_title_case

PARAGRAPH_BREAK = re.compile(r"\n{2,}")
FIRST_SUBHEADING = re.compile(r"^\s*<h[23][^>]*>(.*?)</h[23]>", re.IGNORECASE)
HEADING_TAG = re.compile(r"(<h[2-5][^>]*>)(.*?)(</h[2-5]>)", re.IGNORECASE)
CODE_FENCE_OPEN = re.compile(r"^```(?:html?)?\s*\n?", re.IGNORECASE)
CODE_FENCE_CLOSE = re.compile(r"\n?```\s*$")
TAG = re.compile(r"<[^>]+>")
SIGNIFICANT_WORD_LENGTH = 3


def text_to_html(text: str) -> str:
    """Wrap blank-line-separated paragraphs in <p> tags."""
    paragraphs = [p.strip() for p in PARAGRAPH_BREAK.split(text)]
    return "\n".join(
        f"<p>{html.escape(p, quote=False)}</p>" for p in paragraphs if p
    )


def strip_code_fences(output: str) -> str:
    """Remove a Markdown code fence wrapped around model output."""
    cleaned = CODE_FENCE_OPEN.sub("", output.strip())
    return CODE_FENCE_CLOSE.sub("", cleaned).strip()


def _duplicates_heading(subheading: str, chapter_heading: str) -> bool:
    if not subheading:
        return False
    chapter = chapter_heading.lower()
    if subheading in chapter or chapter in subheading:
        return True
    # "Storytelling" under "3 Sell With Storytelling"
    return len(subheading.split()) <= 2 and any(
        len(word) > SIGNIFICANT_WORD_LENGTH and word in subheading
        for word in chapter.split()
    )


def _title_case_heading(match: re.Match) -> str:
    open_tag, content, close_tag = match.groups()
    text = TAG.sub("", content).strip()
    if not is_mostly_uppercase(text):
        return match.group(0)
    return f"{open_tag}{to_title_case(text)}{close_tag}"


def postprocess_html(html_text: str, chapter_heading: str | None = None) -> str:
    """Tidy formatted chapter HTML.

    Drops a leading subheading that repeats the chapter's own heading, and
    rewrites ALL CAPS <h2>-<h5> headings in Title Case.

    Args:
        html_text: Chapter body HTML.
        chapter_heading: The chapter title the body sits under, if known.

    Returns:
        The adjusted HTML.
    """
    result = html_text

    if chapter_heading:
        first = FIRST_SUBHEADING.match(result)
        if first is not None:
            subheading = TAG.sub("", first.group(1)).strip().lower()
            if _duplicates_heading(subheading, chapter_heading):
                result = result[first.end():].lstrip()

    return HEADING_TAG.sub(_title_case_heading, result)
