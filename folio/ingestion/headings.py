"""Classification of structural headings (chapters, parts, named sections)."""

import re

NAMED_SECTIONS: tuple[str, ...] = (
    "introduction",
    "foreword",
    "preface",
    "prologue",
    "epilogue",
    "conclusion",
    "postscript",
    "afterword",
    "acknowledgments",
    "acknowledgements",
    "about the author",
    "appendix",
    "bibliography",
    "glossary",
    "index",
    "table of contents",
    "dedication",
    "copyright",
)

NUMBERED_CHAPTER = re.compile(r"^(chapter|part)\s+\d", re.IGNORECASE)
NUMBERED_HEADING = re.compile(r"^\d+[\s:.]+\w")  # "1 Title", "1: Title", "1. Title"
PART_HEADING = re.compile(r"^part\s+", re.IGNORECASE)

# Line-level pattern for spotting chapter starts in PDFs without an outline.
CHAPTER_START_PATTERN = re.compile(
    r"^(?:(?:chapter|part)\s+\d+[:\s].*"
    r"|(?:introduction|foreword|preface|prologue|epilogue|conclusion|postscript"
    r"|afterword|acknowledgments|acknowledgements|about the author|appendix"
    r"|bibliography|glossary)(?:[:\s].*)?)",
    re.IGNORECASE,
)
MAX_CHAPTER_LINE_LENGTH = 100


def is_top_level_heading(title: str) -> bool:
    """Decide whether a title names a chapter, part or named book section.

    Args:
        title: Candidate heading, e.g. an outline entry.

    Returns:
        True for "Chapter 3", "2: Growth", "Part II", "Preface", etc.
    """
    if NUMBERED_CHAPTER.match(title) or NUMBERED_HEADING.match(title):
        return True

    lower = title.lower()
    if any(lower.startswith(name) for name in NAMED_SECTIONS):
        return True

    return bool(PART_HEADING.match(title))


def looks_like_chapter_start(line: str) -> bool:
    """Whether a single page line reads like the start of a chapter."""
    return len(line) < MAX_CHAPTER_LINE_LENGTH and bool(CHAPTER_START_PATTERN.match(line))
