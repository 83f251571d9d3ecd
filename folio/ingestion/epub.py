"""Section recovery for EPUB manuscripts, in spine order."""

import io
import logging
import posixpath
import zipfile
from urllib.parse import unquote

import chardet
from bs4 import BeautifulSoup

from folio.errors import StructureRecoveryError
from folio.ingestion.normalizer import SlugRegistry, clean_heading, count_words, strip_html
from folio.models.section import RawSection

logger = logging.getLogger(__name__)

CONTAINER_PATH = "META-INF/container.xml"
MIN_SECTION_WORDS = 5


class EpubStructureRecoverer:
    """Recovers one section per spine item of an EPUB.

    The spine is the book's authoritative reading order; sections are
    emitted in exactly that order, never re-sorted by manifest position.
    """

    def recover(self, data: bytes) -> list[RawSection]:
        """Split an EPUB into sections.

        Args:
            data: Raw EPUB (zip) content.

        Returns:
            Sections in spine order, skipping near-empty documents.

        Raises:
            StructureRecoveryError: If the archive or its package document
                cannot be read.
        """
        try:
            archive = zipfile.ZipFile(io.BytesIO(data))
        except zipfile.BadZipFile as e:
            raise StructureRecoveryError(f"Invalid EPUB: not a zip archive ({e})") from e

        with archive:
            opf_path = self._find_package_path(archive)
            manifest, spine = self._read_package(archive, opf_path)
            opf_dir = posixpath.dirname(opf_path)

            sections: list[RawSection] = []
            slugs = SlugRegistry()

            for idref in spine:
                href = manifest.get(idref)
                if href is None:
                    logger.debug("Spine item %s missing from manifest", idref)
                    continue

                file_path = posixpath.join(opf_dir, unquote(href)) if opf_dir else unquote(href)
                raw = self._read_member(archive, file_path)
                if raw is None:
                    logger.debug("Spine document missing from archive: %s", file_path)
                    continue

                section = self._build_section(self._decode(raw), len(sections) + 1, slugs)
                if section is not None:
                    sections.append(section)

        logger.info("Recovered %d sections from %d spine items", len(sections), len(spine))
        return sections

    def _find_package_path(self, archive: zipfile.ZipFile) -> str:
        raw = self._read_member(archive, CONTAINER_PATH)
        if raw is None:
            raise StructureRecoveryError(f"Invalid EPUB: missing {CONTAINER_PATH}")

        container = BeautifulSoup(raw, "xml")
        rootfile = container.find("rootfile")
        full_path = rootfile.get("full-path") if rootfile is not None else None
        if not full_path:
            raise StructureRecoveryError("Invalid EPUB: cannot find OPF path")
        return str(full_path)

    def _read_package(
        self, archive: zipfile.ZipFile, opf_path: str
    ) -> tuple[dict[str, str], list[str]]:
        """Read the manifest (id -> href) and the spine (ordered idrefs)."""
        raw = self._read_member(archive, opf_path)
        if raw is None:
            raise StructureRecoveryError(f"Invalid EPUB: missing OPF file at {opf_path}")

        package = BeautifulSoup(raw, "xml")

        manifest: dict[str, str] = {}
        for item in package.find_all("item"):
            item_id, href = item.get("id"), item.get("href")
            if item_id and href:
                manifest[str(item_id)] = str(href)

        spine = [
            str(ref["idref"]) for ref in package.find_all("itemref") if ref.get("idref")
        ]
        return manifest, spine

    def _read_member(self, archive: zipfile.ZipFile, path: str) -> bytes | None:
        try:
            return archive.read(path)
        except KeyError:
            return None

    def _decode(self, raw: bytes) -> str:
        """Decode a content document, detecting legacy encodings with chardet."""
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError:
            pass

        detected = chardet.detect(raw)
        encoding = detected.get("encoding") or "utf-8"
        try:
            return raw.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            logger.warning("Could not decode EPUB document as %s", encoding)
            return raw.decode("utf-8", errors="replace")

    def _build_section(
        self, xhtml: str, position: int, slugs: SlugRegistry
    ) -> RawSection | None:
        soup = BeautifulSoup(xhtml, "lxml")

        for tag in soup(["script", "style"]):
            tag.decompose()

        body = soup.body
        body_html = body.decode_contents() if body is not None else str(soup)
        html_content = body_html.strip()

        text_content = strip_html(html_content)
        word_count = count_words(text_content)
        if word_count < MIN_SECTION_WORDS:
            return None

        heading = self._heading(soup) or f"Section {position}"
        heading = clean_heading(heading)

        return RawSection(
            slug=slugs.claim(heading, position),
            heading=heading,
            text_content=text_content,
            word_count=word_count,
            html_content=html_content,
        )

    def _heading(self, soup: BeautifulSoup) -> str:
        """First h1-h3 in the body, else the document title."""
        scope = soup.body or soup
        first_heading = scope.find(["h1", "h2", "h3"])
        if first_heading is not None:
            text = first_heading.get_text(" ", strip=True)
            if text:
                return text

        if soup.title is not None:
            return soup.title.get_text(" ", strip=True)
        return ""
