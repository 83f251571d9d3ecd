"""Section data models."""

from pydantic import BaseModel


class RawSection(BaseModel):
    """A section recovered from a manuscript, before sample allocation.

    ``html_content`` is None when the body is plain text that still has to
    go through the reformatter (PDF-derived sections). ``context_heading``
    is the outline title handed to the reformatter so it can drop a
    subheading that merely repeats it.
    """

    slug: str
    heading: str
    text_content: str
    word_count: int
    html_content: str | None = None
    context_heading: str | None = None


class Section(BaseModel):
    """One addressable unit of reading content, as persisted."""

    order: int
    slug: str
    heading: str
    html_content: str
    text_content: str
    word_count: int
    is_free: bool = False
