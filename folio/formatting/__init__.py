"""Chapter text to semantic HTML."""

from folio.formatting.markup import postprocess_html, text_to_html
from folio.formatting.reformatter import (
    AnthropicFormattingService,
    FormattingService,
    HtmlReformatter,
    backoff_delay,
)

__all__ = [
    "AnthropicFormattingService",
    "FormattingService",
    "HtmlReformatter",
    "backoff_delay",
    "postprocess_html",
    "text_to_html",
]
