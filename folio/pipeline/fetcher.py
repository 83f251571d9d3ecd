"""Manuscript download over HTTP."""

import logging

import requests

from folio.config import FetchConfig
from folio.errors import FetchError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class HttpManuscriptFetcher:
    """Downloads manuscripts with a timeout and a size ceiling."""

    def __init__(self, config: FetchConfig | None = None) -> None:
        self._config = config or FetchConfig()

    def fetch(self, url: str) -> bytes:
        """Download a manuscript.

        Args:
            url: Public URL of the uploaded file.

        Returns:
            The file content.

        Raises:
            FetchError: On network failure, a non-2xx status, or a body
                larger than the configured maximum.
        """
        try:
            with requests.get(
                url, stream=True, timeout=self._config.timeout_seconds
            ) as response:
                if not 200 <= response.status_code < 300:
                    raise FetchError(
                        f"Failed to download manuscript: {response.status_code} {response.reason}"
                    )

                chunks: list[bytes] = []
                size = 0
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    size += len(chunk)
                    if size > self._config.max_bytes:
                        raise FetchError(
                            f"Manuscript exceeds {self._config.max_bytes} bytes"
                        )
                    chunks.append(chunk)
        except requests.RequestException as e:
            raise FetchError(f"Failed to download manuscript: {e}") from e

        logger.info("Downloaded manuscript (%d bytes)", size)
        return b"".join(chunks)
