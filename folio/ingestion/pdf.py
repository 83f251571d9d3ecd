"""Chapter recovery for PDF manuscripts.

PDFs carry no reliable semantic markup, so sections are inferred with a
chain of strategies, each a pure function from a ``PdfDocument`` to a list
of sections. The first strategy that yields anything wins:

1. Outline: depth-0 bookmarks, located in the page text.
2. Heuristics: chapter-looking lines near the top of pages.
3. Full text: the whole document as one section.
"""

import logging
import re
from collections.abc import Callable, Sequence

from folio.ingestion.headings import is_top_level_heading, looks_like_chapter_start
from folio.ingestion.normalizer import SlugRegistry, clean_heading, count_words
from folio.models.document import ChapterStart, OutlineEntry, PdfDocument
from folio.models.section import RawSection

logger = logging.getLogger(__name__)

HEADING_SCAN_LINES = 10
HEURISTIC_SCAN_LINES = 5
HEADING_LENGTH_TOLERANCE = 1.3
TOC_LINE_LIMIT = 3
FRONT_MATTER_MIN_WORDS = 20

TOC_LINE = re.compile(r"\.{3,}|\.\s*\d+\s*$")

Strategy = Callable[[PdfDocument], list[RawSection]]


def load_pdf(data: bytes) -> PdfDocument:
    """Extract page text and the outline from PDF bytes using pymupdf (fitz).

    Args:
        data: Raw PDF file content.

    Returns:
        A PdfDocument. Unreadable files produce an empty document.
    """
    import fitz  # type: ignore[import-untyped]

    try:
        with fitz.open(stream=data, filetype="pdf") as doc:
            pages = [page.get_text("text") for page in doc]
            toc = doc.get_toc(simple=True)
    except Exception:
        logger.exception("Failed to parse PDF (%d bytes)", len(data))
        return PdfDocument()

    return PdfDocument(pages=pages, outline=build_outline(toc))


def build_outline(toc: Sequence[Sequence]) -> list[OutlineEntry]:
    """Turn pymupdf's flat ``[level, title, page]`` rows into a tree.

    Uses a stack: an entry at level N pops everything at level >= N and
    becomes a child of whatever remains on top.

    Args:
        toc: Rows from ``Document.get_toc(simple=True)``. Levels start at 1
            and pages are 1-based (non-positive when the bookmark has no target).

    Returns:
        Root outline entries.
    """
    roots: list[OutlineEntry] = []
    stack: list[tuple[int, OutlineEntry]] = []

    for level, title, page, *_ in toc:
        entry = OutlineEntry(
            title=str(title),
            destination=page - 1 if page > 0 else None,
        )

        while stack and stack[-1][0] >= level:
            stack.pop()

        if stack:
            stack[-1][1].children.append(entry)
        else:
            roots.append(entry)

        stack.append((level, entry))

    return roots


def _collapse(text: str) -> str:
    return re.sub(r"\s+", "", text.lower())


def flatten_outline(outline: Sequence[OutlineEntry]) -> list[str]:
    """Pick chapter titles from the top level of an outline.

    Repeated titles (some PDFs bookmark the book title twice) are dropped,
    as are one- and two-word entries that are probably an author name or a
    subtitle fragment, unless they are recognizable section names.
    """
    titles: list[str] = []
    seen: set[str] = set()

    for entry in outline:
        title = entry.title.strip()
        if not title:
            continue

        key = title.lower()
        if key in seen:
            continue
        seen.add(key)

        if len(title.split()) <= 2 and not is_top_level_heading(title):
            continue

        titles.append(title)

    return titles


def _is_toc_page(page_text: str) -> bool:
    lines = [line for line in page_text.split("\n") if line.strip()]
    dot_lines = [line for line in lines if TOC_LINE.search(line)]
    return len(dot_lines) > TOC_LINE_LIMIT


def find_heading_in_pages(heading: str, pages: Sequence[str]) -> int:
    """Find the page on which a chapter heading appears.

    Pass 1 looks for the heading as a line of its own near the top of a
    page, the strongest signal. Pass 2 accepts the heading anywhere in a
    page, skipping pages that look like a table of contents.

    Args:
        heading: Chapter title, e.g. from the outline.
        pages: Page texts, in order.

    Returns:
        0-based page index, or -1 if the heading was not found.
    """
    target = _collapse(heading)
    if not target:
        return -1

    for i, page_text in enumerate(pages):
        for line in page_text.split("\n")[:HEADING_SCAN_LINES]:
            candidate = _collapse(line)
            if candidate == target:
                return i
            # Tolerate trailing punctuation or a page number on the line.
            if (
                len(candidate) > 3
                and len(candidate) <= len(target) * HEADING_LENGTH_TOLERANCE
                and target in candidate
            ):
                return i

    for i, page_text in enumerate(pages):
        if target not in _collapse(page_text):
            continue
        if _is_toc_page(page_text):
            continue
        return i

    return -1


def remove_heading_from_text(heading: str, text: str) -> str:
    """Drop the first line that carries the heading from a chapter body."""
    target = _collapse(heading)
    kept: list[str] = []
    found = False

    for line in text.split("\n"):
        if not found:
            candidate = _collapse(line)
            if target in candidate or (candidate in target and len(candidate) > 3):
                found = True
                continue
        kept.append(line)

    return "\n".join(kept)


def _join_pages(pages: Sequence[str]) -> str:
    return "\n\n".join(pages)


def build_sections(
    starts: Sequence[ChapterStart],
    pages: Sequence[str],
    slugs: SlugRegistry,
    keep_context: bool = False,
) -> list[RawSection]:
    """Cut the page stream into sections at each chapter start.

    Each section runs from its start page up to (not including) the next
    chapter's start page; the last one runs to the end of the document.

    Args:
        starts: Chapter starts, sorted by page index.
        pages: Page texts.
        slugs: Registry shared by every section of the book.
        keep_context: Pass the original title on to the reformatter.

    Returns:
        Sections with a non-empty body, in page order.
    """
    sections: list[RawSection] = []

    for i, start in enumerate(starts):
        end_page = starts[i + 1].page_index if i + 1 < len(starts) else len(pages)
        body = _join_pages(pages[start.page_index:end_page])
        text_content = remove_heading_from_text(start.title, body).strip()
        if not text_content:
            continue

        heading = clean_heading(start.title)
        sections.append(
            RawSection(
                slug=slugs.claim(heading, i + 1),
                heading=heading,
                text_content=text_content,
                word_count=count_words(text_content),
                context_heading=start.title if keep_context else None,
            )
        )

    return sections


def front_matter_section(
    pages: Sequence[str], first_page: int, slugs: SlugRegistry
) -> RawSection | None:
    """Wrap the pages before the first chapter, if they hold real content."""
    if first_page <= 0:
        return None

    text_content = _join_pages(pages[:first_page]).strip()
    word_count = count_words(text_content)
    if word_count <= FRONT_MATTER_MIN_WORDS:
        return None

    return RawSection(
        slug=slugs.claim("Front Matter", 1),
        heading="Front Matter",
        text_content=text_content,
        word_count=word_count,
    )


def sections_from_outline(document: PdfDocument) -> list[RawSection]:
    """Build sections from the PDF's embedded bookmarks."""
    titles = flatten_outline(document.outline)
    if not titles:
        return []

    starts: list[ChapterStart] = []
    for title in titles:
        page_index = find_heading_in_pages(title, document.pages)
        if page_index == -1:
            logger.debug("Outline entry not found in page text: %s", title)
            continue
        starts.append(ChapterStart(title=title, page_index=page_index))

    if not starts:
        return []

    starts.sort(key=lambda s: s.page_index)

    slugs = SlugRegistry()
    front = front_matter_section(document.pages, starts[0].page_index, slugs)
    sections = build_sections(starts, document.pages, slugs, keep_context=True)
    if front is not None:
        sections.insert(0, front)
    return sections


def sections_from_heuristics(document: PdfDocument) -> list[RawSection]:
    """Build sections from chapter-looking lines at the top of pages."""
    starts: list[ChapterStart] = []

    for i, page_text in enumerate(document.pages):
        lines = [line.strip() for line in page_text.split("\n") if line.strip()]
        for line in lines[:HEURISTIC_SCAN_LINES]:
            if looks_like_chapter_start(line):
                starts.append(ChapterStart(title=line, page_index=i))
                break

    if not starts:
        return []

    return build_sections(starts, document.pages, SlugRegistry())


def sections_from_full_text(document: PdfDocument) -> list[RawSection]:
    """Treat the whole document as a single section."""
    full_text = _join_pages(document.pages).strip()
    if not full_text:
        return []

    return [
        RawSection(
            slug="full-text",
            heading="Full Text",
            text_content=full_text,
            word_count=count_words(full_text),
        )
    ]


PDF_STRATEGIES: tuple[Strategy, ...] = (
    sections_from_outline,
    sections_from_heuristics,
    sections_from_full_text,
)


def first_non_empty(
    strategies: Sequence[Strategy], document: PdfDocument
) -> tuple[str, list[RawSection]]:
    """Run strategies in order and return the first non-empty result.

    Returns:
        The winning strategy's name and its sections, or ``("", [])``
        if every strategy came up empty.
    """
    for strategy in strategies:
        sections = strategy(document)
        if sections:
            return strategy.__name__, sections
    return "", []


class PdfStructureRecoverer:
    """Recovers ordered chapters from PDF bytes."""

    def __init__(self, strategies: Sequence[Strategy] = PDF_STRATEGIES) -> None:
        self._strategies = tuple(strategies)

    def recover(self, data: bytes) -> list[RawSection]:
        """Split a PDF into sections whose bodies still need formatting.

        Args:
            data: Raw PDF file content.

        Returns:
            Sections in reading order; empty if nothing could be extracted.
        """
        document = load_pdf(data)
        return self.recover_document(document)

    def recover_document(self, document: PdfDocument) -> list[RawSection]:
        """Run the strategy chain over an already-loaded document."""
        strategy_name, sections = first_non_empty(self._strategies, document)
        if sections:
            logger.info(
                "Recovered %d sections from %d pages via %s",
                len(sections),
                len(document.pages),
                strategy_name,
            )
        else:
            logger.warning("No text recovered from PDF (%d pages)", len(document.pages))
        return sections
