"""End-to-end processing of one manuscript into persisted sections."""

import logging
from enum import Enum
from typing import Protocol

from folio.config import AppConfig
from folio.errors import (
    InvalidSamplePercentError,
    PersistenceError,
    PipelineError,
    StructureRecoveryError,
    UnsupportedFormatError,
)
from folio.formatting.reformatter import AnthropicFormattingService, HtmlReformatter
from folio.ingestion.docx import DocxStructureRecoverer
from folio.ingestion.epub import EpubStructureRecoverer
from folio.ingestion.pdf import PdfStructureRecoverer
from folio.models.section import RawSection, Section
from folio.pipeline.fetcher import HttpManuscriptFetcher
from folio.pipeline.sample import allocate_sample
from folio.storage.sections import SectionSink

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    """Where a run currently is."""

    IDLE = "idle"
    FETCHING = "fetching"
    RECOVERING_STRUCTURE = "recovering_structure"
    REFORMATTING = "reformatting"
    ALLOCATING_SAMPLE = "allocating_sample"
    PERSISTING = "persisting"
    DONE = "done"
    FAILED = "failed"


class ManuscriptFetcher(Protocol):
    def fetch(self, url: str) -> bytes: ...


class StructureRecoverer(Protocol):
    def recover(self, data: bytes) -> list[RawSection]: ...


class ContentPipeline:
    """Turns a manuscript URL into a book's ordered, sample-flagged sections.

    A run is strictly sequential: download, structure recovery, one
    formatting call per section in reading order, sample allocation, then
    a single replace of the book's sections in the sink. Any failure
    aborts the run and is raised to the caller.

    Args:
        sink: Where sections are written.
        fetcher: Downloads the manuscript.
        reformatter: Formats plain-text section bodies.
        config: Application configuration (default sample percent).
        recoverers: Structure recoverer per file type.
    """

    def __init__(
        self,
        sink: SectionSink,
        fetcher: ManuscriptFetcher,
        reformatter: HtmlReformatter,
        config: AppConfig | None = None,
        recoverers: dict[str, StructureRecoverer] | None = None,
    ) -> None:
        self._sink = sink
        self._fetcher = fetcher
        self._reformatter = reformatter
        self._config = config or AppConfig()
        self._recoverers: dict[str, StructureRecoverer] = recoverers or {
            "pdf": PdfStructureRecoverer(),
            "epub": EpubStructureRecoverer(),
            "docx": DocxStructureRecoverer(),
        }
        self.state = PipelineState.IDLE

    @classmethod
    def from_config(cls, config: AppConfig, sink: SectionSink) -> "ContentPipeline":
        """Wire the production collaborators described by ``config``."""
        service = None
        if config.anthropic_api_key:
            service = AnthropicFormattingService(config.anthropic_api_key, config.formatting)
        else:
            logger.warning("ANTHROPIC_API_KEY not set, PDF formatting will use basic fallback")

        return cls(
            sink=sink,
            fetcher=HttpManuscriptFetcher(config.fetch),
            reformatter=HtmlReformatter(service, config.formatting),
            config=config,
        )

    @property
    def supported_types(self) -> list[str]:
        return sorted(self._recoverers)

    def _enter(self, state: PipelineState, book_id: str) -> None:
        logger.debug("Book %s: %s -> %s", book_id, self.state.value, state.value)
        self.state = state

    def process(
        self,
        book_id: str,
        manuscript_url: str,
        file_type: str,
        sample_percent: float | None = None,
    ) -> list[Section]:
        """Download, structure, format and persist a manuscript.

        Args:
            book_id: Book whose sections are replaced.
            manuscript_url: Where to download the manuscript from.
            file_type: "pdf", "epub" or "docx".
            sample_percent: Share of words given away free (0-100);
                defaults to the configured value.

        Returns:
            The sections as persisted, in order.

        Raises:
            InvalidSamplePercentError: If ``sample_percent`` is outside 0-100.
            FetchError: If the manuscript cannot be downloaded.
            UnsupportedFormatError: If ``file_type`` is not supported.
            StructureRecoveryError: If no sections could be recovered.
            PersistenceError: If writing to the sink fails.
        """
        if sample_percent is None:
            sample_percent = self._config.pipeline.sample_percent

        self.state = PipelineState.IDLE
        try:
            if not 0 <= sample_percent <= 100:
                raise InvalidSamplePercentError(
                    f"sample_percent must be between 0 and 100, got {sample_percent}"
                )

            self._enter(PipelineState.FETCHING, book_id)
            data = self._fetcher.fetch(manuscript_url)

            self._enter(PipelineState.RECOVERING_STRUCTURE, book_id)
            raw_sections = self._recover(file_type, data)

            self._enter(PipelineState.REFORMATTING, book_id)
            raw_sections = [self._format(section) for section in raw_sections]

            self._enter(PipelineState.ALLOCATING_SAMPLE, book_id)
            sections = self._allocate(raw_sections, sample_percent)

            self._enter(PipelineState.PERSISTING, book_id)
            self._persist(book_id, sections)
        except Exception:
            self._enter(PipelineState.FAILED, book_id)
            raise

        self._enter(PipelineState.DONE, book_id)
        logger.info(
            "Processed book %s: %d sections, %d free",
            book_id,
            len(sections),
            sum(s.is_free for s in sections),
        )
        return sections

    def _recover(self, file_type: str, data: bytes) -> list[RawSection]:
        recoverer = self._recoverers.get(file_type.lower())
        if recoverer is None:
            raise UnsupportedFormatError(
                f"Unsupported file type: '{file_type}'. "
                f"Supported: {', '.join(self.supported_types)}"
            )

        sections = recoverer.recover(data)
        if not sections:
            raise StructureRecoveryError("No sections could be extracted from the manuscript")
        return sections

    def _format(self, section: RawSection) -> RawSection:
        if section.html_content is not None:
            return section
        html_content = self._reformatter.reformat(
            section.text_content, section.context_heading
        )
        return section.model_copy(update={"html_content": html_content})

    def _allocate(self, raw_sections: list[RawSection], sample_percent: float) -> list[Section]:
        flags = allocate_sample([s.word_count for s in raw_sections], sample_percent)
        return [
            Section(
                order=order,
                slug=raw.slug,
                heading=raw.heading,
                html_content=raw.html_content or "",
                text_content=raw.text_content,
                word_count=raw.word_count,
                is_free=is_free,
            )
            for order, (raw, is_free) in enumerate(zip(raw_sections, flags))
        ]

    def _persist(self, book_id: str, sections: list[Section]) -> None:
        try:
            self._sink.replace_sections(book_id, sections)
        except PipelineError:
            raise
        except Exception as e:
            raise PersistenceError(f"Failed to persist sections for book {book_id}: {e}") from e
