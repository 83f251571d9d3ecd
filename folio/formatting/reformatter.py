"""Semantic HTML formatting of chapter text via an LLM, with a local fallback."""

import logging
import time
from collections.abc import Callable
from typing import Protocol

from folio.config import FormattingConfig
from folio.errors import RateLimitedError
from folio.formatting.markup import postprocess_html, strip_code_fences, text_to_html
from folio.ingestion.normalizer import count_words, normalize

logger = logging.getLogger(__name__)

FORMAT_PROMPT = """You are a book formatting assistant. Convert the following text from a book chapter into clean, well-structured HTML for a web-based ebook reader.

The text was extracted from a PDF and has artifacts you MUST fix.

Rules:
- Output ONLY the HTML body content (no <html>, <head>, <body> tags, no markdown fences)
- Use semantic HTML tags:
  - <p> for paragraphs (merge lines that are part of the same paragraph)
  - <h2> for major subheadings within the chapter
  - <h3> for minor subheadings
  - <blockquote> for quotations (especially lines starting with quotes or attributed to someone)
  - <ul>/<ol> with <li> for lists
  - <em> for emphasized/italic text
  - <strong> for bold text

CRITICAL: fix these PDF artifacts:
- Broken line breaks: PDF extraction splits lines mid-sentence. Rejoin them into flowing paragraphs.
- ALL CAPS headings: Convert headings from ALL CAPS to Title Case. For example "THEMASTERSKILL" becomes "The Master Skill".
- Concatenated words in headings: if a heading looks like "DEFININGAPOWERFULPURPOSE", split it into proper words: "Defining a Powerful Purpose".
- Remove any stray page numbers or running headers/footers.
- Example emails, letters, or sample text: wrap these in <blockquote> tags. Look for "Subject:" lines, "Dear...", "From:", etc.
- Preserve the author's actual words in body text; do not rephrase.
- Do not add any commentary or explanation. Output pure HTML only."""


class FormattingService(Protocol):
    """An external text-to-HTML generator."""

    def generate(self, prompt: str, text: str) -> str:
        """Return generated HTML; raise RateLimitedError when throttled."""
        ...


class AnthropicFormattingService:
    """Formatting service backed by the Anthropic Messages API."""

    def __init__(self, api_key: str, config: FormattingConfig, client=None) -> None:
        if client is None:
            import anthropic

            client = anthropic.Anthropic(api_key=api_key)
        self._client = client
        self._config = config

    def generate(self, prompt: str, text: str) -> str:
        import anthropic

        try:
            message = self._client.messages.create(
                model=self._config.model,
                max_tokens=self._config.max_tokens,
                temperature=self._config.temperature,
                system=prompt,
                messages=[{"role": "user", "content": text}],
            )
        except anthropic.RateLimitError as e:
            raise RateLimitedError(str(e)) from e

        return "".join(
            block.text for block in message.content if getattr(block, "type", "") == "text"
        )


def backoff_delay(attempt: int, base: float = 5.0, ceiling: float = 60.0) -> float:
    """Seconds to wait before retry ``attempt`` (0-based), capped at ``ceiling``."""
    return min(base * 2**attempt, ceiling)


class HtmlReformatter:
    """Turns raw chapter text into semantic HTML.

    Calls the formatting service when one is configured, retrying on rate
    limits with exponential backoff. Any other failure, exhausted retries,
    or a suspiciously short response falls back to plain <p> wrapping.
    ``reformat`` never raises.

    Args:
        service: External formatter, or None to always use the fallback.
        config: Retry and sanity-check settings.
        sleep: Called with the backoff delay in seconds.
    """

    def __init__(
        self,
        service: FormattingService | None,
        config: FormattingConfig | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._service = service
        self._config = config or FormattingConfig()
        self._sleep = sleep

    def reformat(self, text: str, context_heading: str | None = None) -> str:
        """Format a section body as HTML.

        Args:
            text: Plain section text.
            context_heading: The section's heading, used to drop a
                subheading that just repeats it.

        Returns:
            Non-empty HTML for non-empty input.
        """
        html_text = postprocess_html(self._generate(text, context_heading), context_heading)
        return html_text or text_to_html(text)

    def _generate(self, text: str, label: str | None) -> str:
        if self._service is None:
            return text_to_html(text)

        tag = f" [{label}]" if label else ""
        logger.info("Formatting%s (%d words)", tag, count_words(text))

        prepared = normalize(text)
        max_retries = self._config.max_retries

        for attempt in range(max_retries + 1):
            try:
                output = self._service.generate(FORMAT_PROMPT, prepared)
            except RateLimitedError:
                if attempt < max_retries:
                    delay = backoff_delay(
                        attempt,
                        self._config.base_delay_seconds,
                        self._config.max_delay_seconds,
                    )
                    logger.info(
                        "Rate limited%s, retrying in %.0fs (attempt %d/%d)",
                        tag,
                        delay,
                        attempt + 1,
                        max_retries,
                    )
                    self._sleep(delay)
                    continue
                logger.warning("Rate limit retries exhausted%s, using fallback", tag)
                return text_to_html(text)
            except Exception as e:
                logger.warning("Formatting failed%s, using fallback: %s", tag, e)
                return text_to_html(text)

            cleaned = strip_code_fences(output)
            if not cleaned or len(cleaned) < len(text) * self._config.min_output_ratio:
                logger.warning("Formatter returned suspiciously short output%s, using fallback", tag)
                return text_to_html(text)
            return cleaned

        return text_to_html(text)
