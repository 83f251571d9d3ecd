"""Cleanup of extraction artifacts and small text helpers shared by the recoverers."""

import re

HYPHEN_BREAK = re.compile(r"(?<=\w)-\n(?=\w)")
SPACED_CAPITALS = re.compile(r"([A-Z]) ([A-Z])")
PAGE_NUMBER_LINE = re.compile(r"\s*\d{1,3}\s*")
# Running headers/footers: "the art of selling 42" and "42 the art of selling"
TRAILING_FOLIO_LINE = re.compile(r"[a-z\s]{20,}\d{1,3}\s*")
LEADING_FOLIO_LINE = re.compile(r"\d{1,3}\s+[a-z\s]{10,}")
EXCESS_BLANK_LINES = re.compile(r"\n{3,}")

SMALL_WORDS: frozenset[str] = frozenset({
    "a", "an", "the", "and", "but", "or", "for", "nor", "on", "at",
    "to", "by", "in", "of", "up", "as", "is", "it", "so", "no",
    "do", "if", "my", "we", "us",
})

MAX_SLUG_LENGTH = 80


def normalize(raw_text: str) -> str:
    """Fix common PDF extraction artifacts in a block of text.

    Rules, in order:
    1. Rejoin words hyphenated across a line break.
    2. Collapse letter-spacing in lines that are mostly uppercase
       ("G R E AT  I D EAS" -> "GREAT  IDEAS"). Wider gaps between
       words are kept; ``clean_heading`` reads them as word breaks.
    3. Drop lines that are only a page number.
    4. Drop running headers/footers (lowercase text plus a page number).
    5. Collapse runs of blank lines.

    Args:
        raw_text: Text as it came out of the extractor.

    Returns:
        The cleaned, stripped text. Applying it twice changes nothing.
    """
    cleaned = HYPHEN_BREAK.sub("", raw_text)

    lines = [_clean_line(line) for line in cleaned.split("\n")]
    cleaned = "\n".join(lines)

    cleaned = EXCESS_BLANK_LINES.sub("\n\n", cleaned)
    return cleaned.strip()


def _clean_line(line: str) -> str:
    # Matched on the stripped line: the final strip may remove indentation.
    leading, trimmed, trailing = re.fullmatch(r"(\s*)(.*?)(\s*)", line).groups()
    if (
        PAGE_NUMBER_LINE.fullmatch(trimmed)
        or TRAILING_FOLIO_LINE.fullmatch(trimmed)
        or LEADING_FOLIO_LINE.fullmatch(trimmed)
    ):
        return ""

    if len(trimmed) > 5 and _uppercase_ratio(trimmed) > 0.7:
        collapsed = trimmed
        # Substitution skips overlapping pairs, so repeat until stable.
        while SPACED_CAPITALS.search(collapsed):
            collapsed = SPACED_CAPITALS.sub(r"\1\2", collapsed)
        return leading + collapsed + trailing

    return line


def _uppercase_ratio(text: str) -> float:
    visible = re.sub(r"\s", "", text)
    if not visible:
        return 0.0
    return len(re.findall(r"[A-Z]", visible)) / len(visible)


def count_words(text: str) -> int:
    """Count whitespace-delimited tokens."""
    return len(text.split())


def slugify(text: str) -> str:
    """Build a URL-safe identifier from a heading."""
    slug = re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")
    return slug[:MAX_SLUG_LENGTH] or "section"


def strip_html(html: str) -> str:
    """Reduce markup to plain text with single spaces."""
    text = re.sub(r"<[^>]+>", " ", html)
    text = re.sub(r"&[a-z]+;", " ", text)
    return re.sub(r"\s+", " ", text).strip()


def to_title_case(text: str) -> str:
    """Title-case a heading, keeping short function words lowercase.

    Args:
        text: Heading text, typically ALL CAPS.

    Returns:
        The heading with each word capitalized except small words
        after the first.
    """
    words = text.lower().split()
    titled = []
    for i, word in enumerate(words):
        if i == 0 or word not in SMALL_WORDS:
            word = word[:1].upper() + word[1:]
        titled.append(word)
    return " ".join(titled)


def is_mostly_uppercase(text: str, threshold: float = 0.8) -> bool:
    """Whether more than ``threshold`` of the letters are uppercase.

    Strings with three letters or fewer never qualify, so acronyms and
    roman numerals are left alone.
    """
    letters = re.sub(r"[^a-zA-Z]", "", text)
    if len(letters) <= 3:
        return False
    upper = re.sub(r"[^A-Z]", "", letters)
    return len(upper) / len(letters) > threshold


def clean_heading(title: str) -> str:
    """Normalize a heading for display.

    Collapses letter-spaced words ("T A B L E   O F   C O N T E N T S"
    -> "TABLE OF CONTENTS") and rewrites ALL CAPS headings in Title Case.
    """
    words = re.split(r"\s{2,}", title.strip())
    collapsed = [
        word.replace(" ", "") if re.fullmatch(r"[A-Z]( [A-Z])+", word) else word
        for word in words
    ]
    heading = " ".join(collapsed).strip()

    if is_mostly_uppercase(heading):
        heading = to_title_case(heading)
    return heading


class SlugRegistry:
    """Hands out slugs that are unique within one book.

    A slug that is already taken gets the section's 1-based position
    appended. If even that is taken, a counter is appended until the
    slug is free.
    """

    def __init__(self) -> None:
        self._used: set[str] = set()

    def claim(self, text: str, position: int) -> str:
        """Reserve a slug derived from ``text``.

        Args:
            text: Heading the slug is derived from.
            position: 1-based position used to disambiguate collisions.

        Returns:
            A slug not handed out before by this registry.
        """
        slug = slugify(text)
        if slug in self._used:
            base = f"{slug}-{position}"
            slug = base
            counter = 2
            while slug in self._used:
                slug = f"{base}-{counter}"
                counter += 1
        self._used.add(slug)
        return slug

    def __contains__(self, slug: object) -> bool:
        return slug in self._used
