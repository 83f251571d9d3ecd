"""Section persistence."""

from folio.storage.database import get_connection, initialize_database
from folio.storage.sections import SectionSink, SqliteSectionStore

__all__ = ["SectionSink", "SqliteSectionStore", "get_connection", "initialize_database"]
