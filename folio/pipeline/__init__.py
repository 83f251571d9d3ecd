"""Manuscript processing pipeline."""

from folio.pipeline.fetcher import HttpManuscriptFetcher
from folio.pipeline.orchestrator import ContentPipeline, PipelineState
from folio.pipeline.sample import allocate_sample, sample_word_target

__all__ = [
    "ContentPipeline",
    "HttpManuscriptFetcher",
    "PipelineState",
    "allocate_sample",
    "sample_word_target",
]
