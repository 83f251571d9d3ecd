"""Free-sample allocation by cumulative word count."""

import math
from collections.abc import Sequence


def sample_word_target(total_words: int, sample_percent: float) -> int:
    """Number of words the free sample must reach."""
    if not 0 <= sample_percent <= 100:
        raise ValueError(f"sample_percent must be between 0 and 100, got {sample_percent}")
    return math.ceil(total_words * sample_percent / 100)


def allocate_sample(word_counts: Sequence[int], sample_percent: float) -> list[bool]:
    """Mark the leading sections that make up the free sample.

    A section is free while the words already given away are below the
    target, so the section that crosses the target is still free and the
    sample never stops mid-chapter.

    Args:
        word_counts: Word count of each section, in reading order.
        sample_percent: Share of the book's words to give away (0-100).

    Returns:
        One flag per section, True for free sections.

    Raises:
        ValueError: If sample_percent is outside 0-100.
    """
    target = sample_word_target(sum(word_counts), sample_percent)

    flags: list[bool] = []
    free_words = 0
    for count in word_counts:
        flags.append(free_words < target)
        free_words += count
    return flags
