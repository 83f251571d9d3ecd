"""Data models for the Folio manuscript pipeline."""

from folio.models.document import ChapterStart, OutlineEntry, PdfDocument
from folio.models.section import RawSection, Section

__all__ = [
    "ChapterStart",
    "OutlineEntry",
    "PdfDocument",
    "RawSection",
    "Section",
]
