"""Persistence sinks for a book's sections."""

import logging
from collections.abc import Sequence
from pathlib import Path

from folio.models.section import Section
from folio.storage.database import get_connection

logger = logging.getLogger(__name__)

INSERT_SECTION = """
    INSERT INTO sections (
        book_id, section_order, slug, heading,
        html_content, text_content, word_count, is_free
    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
"""


class SectionSink:
    """Where the pipeline writes a book's sections.

    Subclasses implement ``delete_all_sections`` and ``create_section``.
    ``replace_sections`` defaults to delete-then-insert with no transaction;
    stores that can do better should override it.
    """

    def delete_all_sections(self, book_id: str) -> None:
        raise NotImplementedError

    def create_section(self, book_id: str, section: Section) -> None:
        raise NotImplementedError

    def replace_sections(self, book_id: str, sections: Sequence[Section]) -> None:
        """Discard the book's sections and insert ``sections`` in order."""
        self.delete_all_sections(book_id)
        for section in sections:
            self.create_section(book_id, section)


class SqliteSectionStore(SectionSink):
    """Section storage in the application's SQLite database.

    ``replace_sections`` runs as one transaction: readers see either the
    old section list or the new one, and a failed insert rolls back to the
    old list.

    Args:
        db_path: Path to an initialized SQLite database.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = db_path

    def delete_all_sections(self, book_id: str) -> None:
        conn = get_connection(self._db_path)
        try:
            with conn:
                conn.execute("DELETE FROM sections WHERE book_id = ?", (book_id,))
        finally:
            conn.close()

    def create_section(self, book_id: str, section: Section) -> None:
        conn = get_connection(self._db_path)
        try:
            with conn:
                conn.execute(INSERT_SECTION, _row(book_id, section))
        finally:
            conn.close()

    def replace_sections(self, book_id: str, sections: Sequence[Section]) -> None:
        conn = get_connection(self._db_path)
        try:
            with conn:
                deleted = conn.execute(
                    "DELETE FROM sections WHERE book_id = ?", (book_id,)
                ).rowcount
                conn.executemany(INSERT_SECTION, [_row(book_id, s) for s in sections])
        finally:
            conn.close()

        logger.info(
            "Replaced %d sections with %d for book %s", deleted, len(sections), book_id
        )

    def list_sections(self, book_id: str) -> list[Section]:
        """Return a book's sections in reading order."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                """
                SELECT section_order, slug, heading, html_content,
                       text_content, word_count, is_free
                FROM sections
                WHERE book_id = ?
                ORDER BY section_order
                """,
                (book_id,),
            ).fetchall()
        finally:
            conn.close()

        return [
            Section(
                order=row["section_order"],
                slug=row["slug"],
                heading=row["heading"],
                html_content=row["html_content"],
                text_content=row["text_content"],
                word_count=row["word_count"],
                is_free=bool(row["is_free"]),
            )
            for row in rows
        ]


def _row(book_id: str, section: Section) -> tuple:
    return (
        book_id,
        section.order,
        section.slug,
        section.heading,
        section.html_content,
        section.text_content,
        section.word_count,
        int(section.is_free),
    )
