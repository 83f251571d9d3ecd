"""Intermediate structures produced while reading a PDF."""

from __future__ import annotations

from pydantic import BaseModel, Field


class OutlineEntry(BaseModel):
    """A bookmark from a PDF's embedded outline.

    Outlines form a tree: a part contains chapters, a chapter contains
    subsections. Only the roots are treated as chapters.
    """

    title: str
    destination: int | None = None  # 0-based page index, if the bookmark has one
    children: list[OutlineEntry] = Field(default_factory=list)


class ChapterStart(BaseModel):
    """A chapter title and the page it was found on."""

    title: str
    page_index: int


class PdfDocument(BaseModel):
    """Page-indexed text plus the optional outline of a PDF."""

    pages: list[str] = Field(default_factory=list)
    outline: list[OutlineEntry] = Field(default_factory=list)
