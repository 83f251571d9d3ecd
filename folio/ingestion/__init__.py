"""Manuscript ingestion: normalization and per-format structure recovery."""

from folio.ingestion.docx import DocxStructureRecoverer
from folio.ingestion.epub import EpubStructureRecoverer
from folio.ingestion.headings import is_top_level_heading
from folio.ingestion.normalizer import normalize
from folio.ingestion.pdf import PdfStructureRecoverer, find_heading_in_pages

__all__ = [
    "DocxStructureRecoverer",
    "EpubStructureRecoverer",
    "PdfStructureRecoverer",
    "find_heading_in_pages",
    "is_top_level_heading",
    "normalize",
]
