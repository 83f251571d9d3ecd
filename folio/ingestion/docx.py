"""Section recovery for DOCX manuscripts."""

import html
import io
import logging
import re

from folio.errors import StructureRecoveryError
from folio.ingestion.normalizer import SlugRegistry, clean_heading, count_words, strip_html
from folio.models.section import RawSection

logger = logging.getLogger(__name__)

# Paragraph style name -> HTML tag; unlisted styles become <p>.
DOCX_STYLE_MAP: dict[str, str] = {
    "Heading 1": "h1",
    "Heading 2": "h2",
    "Title": "h1",
}

# Paragraph style name prefix -> list tag; consecutive items share one list.
DOCX_LIST_STYLES: dict[str, str] = {
    "List Bullet": "ul",
    "List Number": "ol",
}

SECTION_HEADING = re.compile(r"<h[12][^>]*>(.*?)</h[12]>", re.IGNORECASE)
TAG = re.compile(r"<[^>]+>")
FRONT_MATTER_MIN_CHARS = 50


def convert_to_html(data: bytes, style_map: dict[str, str] = DOCX_STYLE_MAP) -> str:
    """Convert a DOCX file to HTML using python-docx.

    The body is walked in document order. Paragraph styles are mapped
    through ``style_map``, "List Bullet"/"List Number" paragraphs are
    grouped into <ul>/<ol>, and tables become <table> rows of cell text.
    Bold and italic runs become <strong> and <em>. Empty paragraphs are
    dropped.

    Args:
        data: Raw DOCX content.
        style_map: Paragraph style name to tag mapping.

    Returns:
        HTML fragment, one element per paragraph, list or table.

    Raises:
        StructureRecoveryError: If the file is not a readable DOCX.
    """
    import docx

    try:
        document = docx.Document(io.BytesIO(data))
    except Exception as e:
        logger.exception("Failed to parse DOCX (%d bytes)", len(data))
        raise StructureRecoveryError("Invalid DOCX: cannot open document") from e

    parts: list[str] = []
    open_list: str | None = None
    for block in document.iter_inner_content():
        if hasattr(block, "rows"):
            list_tag = None
            element = _table_to_html(block)
        elif not block.text.strip():
            continue
        else:
            style_name = block.style.name if block.style is not None else ""
            list_tag = _list_tag(style_name)
            if list_tag:
                element = f"<li>{_runs_to_html(block)}</li>"
            else:
                tag = style_map.get(style_name, "p")
                element = f"<{tag}>{_runs_to_html(block)}</{tag}>"

        if open_list and list_tag != open_list:
            parts.append(f"</{open_list}>")
            open_list = None
        if list_tag and open_list is None:
            parts.append(f"<{list_tag}>")
            open_list = list_tag
        if element:
            parts.append(element)

    if open_list:
        parts.append(f"</{open_list}>")
    return "".join(parts)


def _list_tag(style_name: str) -> str | None:
    for prefix, tag in DOCX_LIST_STYLES.items():
        if style_name.startswith(prefix):
            return tag
    return None


def _table_to_html(table) -> str:
    grid = [[cell.text.strip() for cell in row.cells] for row in table.rows]
    if not any(text for row in grid for text in row):
        return ""
    rows = (
        "<tr>" + "".join(f"<td>{html.escape(text, quote=False)}</td>" for text in row) + "</tr>"
        for row in grid
    )
    return f"<table>{''.join(rows)}</table>"


def _runs_to_html(para) -> str:
    pieces: list[str] = []
    for run in para.runs:
        text = html.escape(run.text, quote=False)
        if not text:
            continue
        if run.italic:
            text = f"<em>{text}</em>"
        if run.bold:
            text = f"<strong>{text}</strong>"
        pieces.append(text)

    # Text held outside runs (hyperlinks, fields) is only visible on the paragraph.
    if not pieces:
        return html.escape(para.text, quote=False)
    return "".join(pieces)


def split_html_on_headings(html_text: str) -> list[RawSection]:
    """Split converted HTML into sections at every <h1>/<h2>.

    Each section runs from its heading (inclusive) to the next heading.
    Content before the first heading becomes "Front Matter" when it is
    longer than 50 characters.

    Args:
        html_text: Output of ``convert_to_html``.

    Returns:
        Sections in document order; empty if there are no headings.
    """
    matches = list(SECTION_HEADING.finditer(html_text))
    if not matches:
        return []

    slugs = SlugRegistry()
    sections: list[RawSection] = []

    preamble = html_text[: matches[0].start()].strip()
    if len(preamble) > FRONT_MATTER_MIN_CHARS:
        text = strip_html(preamble)
        sections.append(
            RawSection(
                slug=slugs.claim("Front Matter", 1),
                heading="Front Matter",
                text_content=text,
                word_count=count_words(text),
                html_content=preamble,
            )
        )

    for i, match in enumerate(matches):
        end = matches[i + 1].start() if i + 1 < len(matches) else len(html_text)
        section_html = html_text[match.start():end]
        text = strip_html(section_html)
        heading = clean_heading(html.unescape(TAG.sub("", match.group(1))))

        sections.append(
            RawSection(
                slug=slugs.claim(heading, i + 1),
                heading=heading,
                text_content=text,
                word_count=count_words(text),
                html_content=section_html,
            )
        )

    return sections


class DocxStructureRecoverer:
    """Recovers sections from a DOCX via its heading styles."""

    def recover(self, data: bytes) -> list[RawSection]:
        """Split a DOCX into sections.

        Args:
            data: Raw DOCX content.

        Returns:
            Sections split on Heading 1/Heading 2/Title paragraphs, or a
            single "Full Text" section if the document has no headings.
        """
        html_text = convert_to_html(data)
        sections = split_html_on_headings(html_text)
        if sections:
            logger.info("Recovered %d sections from DOCX headings", len(sections))
            return sections

        text = strip_html(html_text)
        if not text:
            return []

        logger.info("No headings in DOCX, using a single section")
        return [
            RawSection(
                slug="full-text",
                heading="Full Text",
                text_content=text,
                word_count=count_words(text),
                html_content=html_text,
            )
        ]
