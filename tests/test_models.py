"""Tests for data models."""

from folio.models import ChapterStart, OutlineEntry, PdfDocument, RawSection, Section


class TestSection:
    def test_create_section(self) -> None:
        section = Section(
            order=0,
            slug="chapter-1",
            heading="Chapter 1",
            html_content="<p>Hello</p>",
            text_content="Hello",
            word_count=1,
        )
        assert section.is_free is False
        assert section.order == 0

    def test_section_serialization(self) -> None:
        section = Section(
            order=2,
            slug="epilogue",
            heading="Epilogue",
            html_content="<p>The end</p>",
            text_content="The end",
            word_count=2,
            is_free=True,
        )
        data = section.model_dump()
        assert data["slug"] == "epilogue"
        restored = Section(**data)
        assert restored == section


class TestRawSection:
    def test_defaults_need_formatting(self) -> None:
        raw = RawSection(slug="a", heading="A", text_content="one two", word_count=2)
        assert raw.html_content is None
        assert raw.context_heading is None


class TestOutlineEntry:
    def test_nested_children(self) -> None:
        entry = OutlineEntry(
            title="Part One",
            destination=3,
            children=[OutlineEntry(title="Chapter 1"), OutlineEntry(title="Chapter 2")],
        )
        assert [c.title for c in entry.children] == ["Chapter 1", "Chapter 2"]
        assert entry.children[0].destination is None
        assert entry.children[0].children == []


class TestPdfDocument:
    def test_empty_document(self) -> None:
        document = PdfDocument()
        assert document.pages == []
        assert document.outline == []

    def test_chapter_start(self) -> None:
        start = ChapterStart(title="Chapter 1", page_index=4)
        assert start.page_index == 4
