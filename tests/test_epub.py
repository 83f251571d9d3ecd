"""Tests for EPUB section recovery."""

import io
import zipfile

import pytest

from folio.errors import StructureRecoveryError
from folio.ingestion.epub import EpubStructureRecoverer

CONTAINER_XML = """<?xml version="1.0"?>
<container version="1.0" xmlns="urn:oasis:names:tc:opendocument:xmlns:container">
  <rootfiles>
    <rootfile full-path="OEBPS/content.opf" media-type="application/oebps-package+xml"/>
  </rootfiles>
</container>"""


def _opf(manifest: dict[str, str], spine: list[str]) -> str:
    items = "\n".join(
        f'<item id="{item_id}" href="{href}" media-type="application/xhtml+xml"/>'
        for item_id, href in manifest.items()
    )
    refs = "\n".join(f'<itemref idref="{idref}"/>' for idref in spine)
    return f"""<?xml version="1.0"?>
<package xmlns="http://www.idpf.org/2007/opf" version="3.0">
  <manifest>{items}</manifest>
  <spine>{refs}</spine>
</package>"""


def _xhtml(body: str, title: str = "") -> str:
    return (
        '<?xml version="1.0" encoding="utf-8"?>'
        '<html xmlns="http://www.w3.org/1999/xhtml">'
        f"<head><title>{title}</title></head><body>{body}</body></html>"
    )


def _epub(files: dict[str, str | bytes], container: str | None = CONTAINER_XML) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        archive.writestr("mimetype", "application/epub+zip")
        if container is not None:
            archive.writestr("META-INF/container.xml", container)
        for path, content in files.items():
            archive.writestr(path, content)
    return buffer.getvalue()


CHAPTER_ONE = _xhtml("<h1>Chapter One</h1><p>It was a bright cold day in April.</p>")
CHAPTER_TWO = _xhtml("<h2>Chapter Two</h2><p>The clocks were striking thirteen that day.</p>")


@pytest.fixture
def recoverer() -> EpubStructureRecoverer:
    return EpubStructureRecoverer()


class TestSpineOrder:
    def test_spine_order_wins_over_manifest(self, recoverer: EpubStructureRecoverer) -> None:
        data = _epub(
            {
                "OEBPS/content.opf": _opf({"c1": "ch1.xhtml", "c2": "ch2.xhtml"}, ["c2", "c1"]),
                "OEBPS/ch1.xhtml": CHAPTER_ONE,
                "OEBPS/ch2.xhtml": CHAPTER_TWO,
            }
        )
        sections = recoverer.recover(data)
        assert [s.heading for s in sections] == ["Chapter Two", "Chapter One"]

    def test_sections_carry_html(self, recoverer: EpubStructureRecoverer) -> None:
        data = _epub(
            {
                "OEBPS/content.opf": _opf({"c1": "ch1.xhtml"}, ["c1"]),
                "OEBPS/ch1.xhtml": CHAPTER_ONE,
            }
        )
        (section,) = recoverer.recover(data)
        assert "<p>It was a bright cold day in April.</p>" in section.html_content
        assert section.text_content == "Chapter One It was a bright cold day in April."
        assert section.word_count == 10
        assert section.slug == "chapter-one"


class TestHeadings:
    def test_falls_back_to_title(self, recoverer: EpubStructureRecoverer) -> None:
        doc = _xhtml("<p>A body with enough words to keep it.</p>", title="Dedication")
        data = _epub(
            {"OEBPS/content.opf": _opf({"d": "d.xhtml"}, ["d"]), "OEBPS/d.xhtml": doc}
        )
        (section,) = recoverer.recover(data)
        assert section.heading == "Dedication"

    def test_positional_placeholder(self, recoverer: EpubStructureRecoverer) -> None:
        doc = _xhtml("<p>A body with enough words to keep it.</p>")
        data = _epub(
            {
                "OEBPS/content.opf": _opf({"c1": "ch1.xhtml", "x": "x.xhtml"}, ["c1", "x"]),
                "OEBPS/ch1.xhtml": CHAPTER_ONE,
                "OEBPS/x.xhtml": doc,
            }
        )
        sections = recoverer.recover(data)
        assert sections[1].heading == "Section 2"

    def test_duplicate_headings_get_unique_slugs(self, recoverer: EpubStructureRecoverer) -> None:
        data = _epub(
            {
                "OEBPS/content.opf": _opf({"a": "a.xhtml", "b": "b.xhtml"}, ["a", "b"]),
                "OEBPS/a.xhtml": CHAPTER_ONE,
                "OEBPS/b.xhtml": CHAPTER_ONE,
            }
        )
        sections = recoverer.recover(data)
        assert [s.slug for s in sections] == ["chapter-one", "chapter-one-2"]


class TestFiltering:
    def test_skips_near_empty_documents(self, recoverer: EpubStructureRecoverer) -> None:
        cover = _xhtml('<img src="cover.jpg"/><p>Cover</p>')
        data = _epub(
            {
                "OEBPS/content.opf": _opf({"cover": "cover.xhtml", "c1": "ch1.xhtml"}, ["cover", "c1"]),
                "OEBPS/cover.xhtml": cover,
                "OEBPS/ch1.xhtml": CHAPTER_ONE,
            }
        )
        sections = recoverer.recover(data)
        assert [s.heading for s in sections] == ["Chapter One"]

    def test_strips_scripts_and_styles(self, recoverer: EpubStructureRecoverer) -> None:
        doc = _xhtml(
            "<style>p { color: red; }</style><h1>Styled</h1>"
            "<script>alert('x')</script><p>Words that should remain in the text.</p>"
        )
        data = _epub(
            {"OEBPS/content.opf": _opf({"s": "s.xhtml"}, ["s"]), "OEBPS/s.xhtml": doc}
        )
        (section,) = recoverer.recover(data)
        assert "alert" not in section.html_content
        assert "color" not in section.text_content

    def test_skips_unknown_spine_refs(self, recoverer: EpubStructureRecoverer) -> None:
        data = _epub(
            {
                "OEBPS/content.opf": _opf({"c1": "ch1.xhtml", "gone": "gone.xhtml"}, ["ghost", "gone", "c1"]),
                "OEBPS/ch1.xhtml": CHAPTER_ONE,
            }
        )
        sections = recoverer.recover(data)
        assert [s.heading for s in sections] == ["Chapter One"]

    def test_url_encoded_href(self, recoverer: EpubStructureRecoverer) -> None:
        data = _epub(
            {
                "OEBPS/content.opf": _opf({"c1": "chapter%20one.xhtml"}, ["c1"]),
                "OEBPS/chapter one.xhtml": CHAPTER_ONE,
            }
        )
        assert len(recoverer.recover(data)) == 1

    def test_legacy_encoding_decoded(self, recoverer: EpubStructureRecoverer) -> None:
        doc = (
            "<html><head><title>Café</title></head><body><h1>Café Society</h1>"
            "<p>Un café crème très cher, déjà servi à la terrasse.</p>"
            "</body></html>"
        ).encode("latin-1")
        data = _epub(
            {"OEBPS/content.opf": _opf({"c": "c.xhtml"}, ["c"]), "OEBPS/c.xhtml": doc}
        )
        (section,) = recoverer.recover(data)
        assert section.word_count >= 5


class TestInvalidArchives:
    def test_not_a_zip(self, recoverer: EpubStructureRecoverer) -> None:
        with pytest.raises(StructureRecoveryError, match="not a zip"):
            recoverer.recover(b"definitely not a zip file")

    def test_missing_container(self, recoverer: EpubStructureRecoverer) -> None:
        with pytest.raises(StructureRecoveryError, match="container.xml"):
            recoverer.recover(_epub({}, container=None))

    def test_missing_package_document(self, recoverer: EpubStructureRecoverer) -> None:
        with pytest.raises(StructureRecoveryError, match="missing OPF"):
            recoverer.recover(_epub({}))

    def test_container_without_rootfile(self, recoverer: EpubStructureRecoverer) -> None:
        with pytest.raises(StructureRecoveryError, match="OPF path"):
            recoverer.recover(_epub({}, container="<container><rootfiles/></container>"))
