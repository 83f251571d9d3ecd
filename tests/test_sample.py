"""Tests for free-sample allocation."""

import math

import pytest

from folio.pipeline.sample import allocate_sample, sample_word_target


class TestSampleWordTarget:
    def test_rounds_up(self) -> None:
        assert sample_word_target(1001, 10) == 101

    def test_zero_percent(self) -> None:
        assert sample_word_target(1000, 0) == 0

    @pytest.mark.parametrize("percent", [-1, 101])
    def test_out_of_range(self, percent: int) -> None:
        with pytest.raises(ValueError, match="sample_percent"):
            sample_word_target(1000, percent)


class TestAllocateSample:
    def test_documented_scenario(self) -> None:
        flags = allocate_sample([100, 200, 150, 300, 250], 10)
        assert flags == [True, False, False, False, False]

    def test_crossing_section_is_free(self) -> None:
        flags = allocate_sample([50, 200, 150, 300, 300], 10)
        assert flags == [True, True, False, False, False]

    def test_zero_percent_gives_nothing(self) -> None:
        assert allocate_sample([10, 20], 0) == [False, False]

    def test_hundred_percent_gives_everything(self) -> None:
        assert allocate_sample([10, 20, 30], 100) == [True, True, True]

    def test_empty(self) -> None:
        assert allocate_sample([], 50) == []

    @pytest.mark.parametrize("percent", [1, 5, 10, 25, 33, 50, 75, 99])
    def test_minimal_but_sufficient(self, percent: int) -> None:
        counts = [120, 45, 800, 310, 5, 640, 90, 1200, 15, 400]
        flags = allocate_sample(counts, percent)
        target = math.ceil(sum(counts) * percent / 100)

        free = [c for c, is_free in zip(counts, flags) if is_free]
        assert sum(free) >= target
        assert sum(free) - free[-1] < target
        # Free sections form a prefix.
        assert flags == sorted(flags, reverse=True)
