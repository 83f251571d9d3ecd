"""Entry point: process one manuscript into the local section store."""

import argparse
import logging
import sys

from folio.config import load_config
from folio.errors import PipelineError
from folio.pipeline import ContentPipeline
from folio.storage import SqliteSectionStore, initialize_database


def main() -> None:
    """Parse arguments, run the pipeline and report the resulting sections."""
    parser = argparse.ArgumentParser(description="Split a manuscript into reading sections.")
    parser.add_argument("book_id", help="Identifier of the book whose sections are replaced")
    parser.add_argument("url", help="URL of the uploaded manuscript")
    parser.add_argument("--type", dest="file_type", required=True, help="pdf, epub or docx")
    parser.add_argument("--sample-percent", type=float, default=None)
    parser.add_argument("--config", default="config.yaml")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = load_config(args.config)

    # Initialize SQLite database
    initialize_database(config.storage.sqlite_path)
    store = SqliteSectionStore(config.storage.sqlite_path)

    pipeline = ContentPipeline.from_config(config, store)
    try:
        sections = pipeline.process(args.book_id, args.url, args.file_type, args.sample_percent)
    except PipelineError as e:
        logging.getLogger(__name__).error("Processing failed: %s", e)
        sys.exit(1)

    for section in sections:
        marker = "free" if section.is_free else "paid"
        print(f"{section.order:3d}  {marker}  {section.word_count:6d}  {section.heading}")


if __name__ == "__main__":
    main()
